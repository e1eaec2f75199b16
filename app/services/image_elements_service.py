import asyncio
import logging
import time

from patchright.async_api import Error as PlaywrightError, Page

from app.config import settings
from app.models.image_elements import ImageElementRecord, NetworkRecord
from app.services.browser_pool import browser_pool
from app.services.cdp_session import CdpSession
from app.services.image_enrichment import ImageElementEnricher
from app.services.network_index import index_network_records
from app.services.network_recorder import NetworkRecorder

logger = logging.getLogger(__name__)

# Collects <img> elements (light and shadow DOM) and CSS background images.
# devtoolsNodePath is the "index,NODENAME,..." form DOM.pushNodeByPathToFrontend
# accepts; whitespace-only text nodes are not counted, matching the DOM agent.
COLLECT_IMAGE_ELEMENTS_JS = """() => {
    function getNodeIndex(node) {
        let index = 0;
        let prev;
        while ((prev = node.previousSibling)) {
            node = prev;
            if (node.nodeType === Node.TEXT_NODE && node.nodeValue.trim().length === 0) continue;
            index++;
        }
        return index;
    }

    function getNodePath(node) {
        const path = [];
        while (node && node.parentNode) {
            path.push([getNodeIndex(node), node.nodeName]);
            node = node.parentNode;
        }
        path.reverse();
        return path.join(',');
    }

    function getSelector(el) {
        let selector = el.localName;
        if (el.id) selector += '#' + el.id;
        if (typeof el.className === 'string' && el.className.trim()) {
            selector += '.' + el.className.trim().split(/\\s+/).join('.');
        }
        const parent = el.parentElement;
        return parent ? parent.localName + ' > ' + selector : selector;
    }

    function getRects(el) {
        const r = el.getBoundingClientRect();
        const clientRect = {top: r.top, bottom: r.bottom, left: r.left, right: r.right};
        return {clientRect, boundingRect: {...clientRect, width: r.width, height: r.height}};
    }

    function getNodeDetails(el, boundingRect) {
        const shallow = el.cloneNode(false).outerHTML;
        return {
            lhId: '',
            devtoolsNodePath: getNodePath(el),
            selector: getSelector(el),
            nodeLabel: el.getAttribute('alt') || el.localName,
            snippet: shallow.length > 500 ? shallow.slice(0, 500) + '…' : shallow,
            boundingRect: boundingRect,
        };
    }

    const allElements = [];
    (function walk(root) {
        for (const el of root.querySelectorAll('*')) {
            allElements.push(el);
            if (el.shadowRoot) walk(el.shadowRoot);
        }
    })(document);

    const results = [];
    for (const el of allElements) {
        const style = window.getComputedStyle(el);
        const isInShadowDOM = el.getRootNode() instanceof ShadowRoot;
        const {clientRect, boundingRect} = getRects(el);

        if (el.localName === 'img') {
            const src = el.currentSrc || el.src;
            if (!src) continue;
            const parent = el.parentElement;
            results.push({
                src: src,
                srcset: el.getAttribute('srcset') || '',
                displayedWidth: el.width,
                displayedHeight: el.height,
                clientRect: clientRect,
                attributeWidth: el.getAttribute('width'),
                attributeHeight: el.getAttribute('height'),
                cssComputedPosition: style.position,
                cssComputedObjectFit: style.objectFit,
                cssComputedImageRendering: style.imageRendering,
                isCss: false,
                isPicture: !!parent && parent.localName === 'picture',
                isInShadowDOM: isInShadowDOM,
                node: getNodeDetails(el, boundingRect),
            });
            continue;
        }

        const bgImage = style.backgroundImage;
        if (!bgImage || bgImage === 'none' || !bgImage.includes('url(')) continue;
        const urlMatch = bgImage.match(/url\\(['"]?([^'")]+)['"]?\\)/);
        if (!urlMatch || urlMatch[1].startsWith('data:')) continue;

        results.push({
            src: urlMatch[1],
            srcset: '',
            displayedWidth: boundingRect.width,
            displayedHeight: boundingRect.height,
            clientRect: clientRect,
            attributeWidth: null,
            attributeHeight: null,
            cssComputedPosition: style.position,
            cssComputedObjectFit: style.objectFit,
            cssComputedImageRendering: style.imageRendering,
            isCss: true,
            isPicture: false,
            isInShadowDOM: isInShadowDOM,
            node: getNodeDetails(el, boundingRect),
        });
    }
    return results;
}"""

WAIT_FOR_IMAGES_JS = """async () => {
    const images = Array.from(document.querySelectorAll('img'));
    await Promise.all(images.map(img => {
        if (img.complete) return;
        return new Promise(resolve => {
            img.addEventListener('load', resolve);
            img.addEventListener('error', resolve);
            setTimeout(resolve, 3000);
        });
    }));
}"""


async def _settle_page(page: Page) -> None:
    try:
        await page.wait_for_load_state("load", timeout=settings.page_load_timeout)
        logger.info("Load state reached")
    except PlaywrightError:
        logger.info("Load state timeout (%dms), continuing...", settings.page_load_timeout)

    try:
        await page.wait_for_load_state("networkidle", timeout=settings.page_network_idle_timeout)
    except PlaywrightError:
        logger.info("Network idle timeout, continuing...")

    await page.evaluate(WAIT_FOR_IMAGES_JS)

    post_load = settings.page_post_load_delay
    if post_load > 0:
        safe_delay = min(post_load, 10000)
        logger.info("Waiting %dms for dynamic content...", safe_delay)
        await asyncio.sleep(safe_delay / 1000)


def sort_by_resource_size(
    elements: list[ImageElementRecord],
    network_index: dict[str, NetworkRecord],
) -> None:
    """Largest transfers first, so the sizing budget goes to the heaviest images."""

    def size(element: ImageElementRecord) -> int:
        record = network_index.get(element.src)
        return record.resourceSize if record else 0

    elements.sort(key=size, reverse=True)


async def collect_image_elements(url: str, max_elements: int | None = None) -> dict:
    if max_elements is None:
        max_elements = settings.image_elements_max

    overall_timeout = settings.image_elements_timeout / 1000
    start = time.time()

    async def _do_collect() -> dict:
        async with browser_pool.open_page() as page:
            recorder = NetworkRecorder()
            recorder.attach(page)

            logger.info("Navigating to %s...", url)
            await page.goto(url, wait_until="commit", timeout=settings.page_navigation_timeout)
            await _settle_page(page)

            session = await CdpSession.attach(page)
            try:
                await session.enable_domains()

                raw_elements = await page.evaluate(COLLECT_IMAGE_ELEMENTS_JS)
                elements = [ImageElementRecord.model_validate(raw) for raw in raw_elements]
                logger.info("Found %d image elements", len(elements))

                network_records = recorder.records()
                network_index = index_network_records(network_records)

                sort_by_resource_size(elements, network_index)
                elements = elements[:max_elements]

                enricher = ImageElementEnricher()
                await enricher.enrich(session, elements, network_index)
                logger.info(
                    "Enriched %d elements (%.0fms spent on source rules)",
                    len(elements),
                    enricher.budget.spent_ms,
                )

                await session.disable_domains()
            finally:
                await session.detach()

            return {
                "elements": elements,
                "network_records": len(network_records),
                "indexed_records": len(network_index),
                "budget_spent_ms": int(enricher.budget.spent_ms),
                "budget_exhausted": enricher.budget.exhausted,
                "natural_sizes": len(enricher.natural_sizes),
            }

    try:
        result = await asyncio.wait_for(_do_collect(), timeout=overall_timeout)
    except asyncio.TimeoutError:
        logger.error("Image element collection timed out after %ds", overall_timeout)
        raise

    elapsed = int((time.time() - start) * 1000)

    return {
        "elements": result["elements"],
        "metadata": {
            "processingTime": elapsed,
            "totalElements": len(result["elements"]),
            "networkRecords": result["network_records"],
            "indexedRecords": result["indexed_records"],
            "sizingBudgetSpentMs": result["budget_spent_ms"],
            "sizingBudgetExhausted": result["budget_exhausted"],
            "naturalSizesMeasured": result["natural_sizes"],
        },
    }
