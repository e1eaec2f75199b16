import logging
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Mapping, Sequence

from pydantic import ValidationError

from app.config import settings
from app.models.image_elements import ImageElementRecord, NaturalSize, NetworkRecord
from app.services.cdp_session import CdpSession, EvaluationError
from app.services.natural_size_cache import NaturalSizeCache
from app.services.source_rules import fetch_source_rules

logger = logging.getLogger(__name__)

# Loads the URL through the page's own decoder so the dimensions match
# whatever candidate the browser actually picked.
DETERMINE_NATURAL_SIZE_JS = """(url) => {
    return new Promise((resolve, reject) => {
        const img = new Image();
        img.addEventListener('error', () => reject(new Error('Unable to decode image')));
        img.addEventListener('load', () => {
            resolve({naturalWidth: img.naturalWidth, naturalHeight: img.naturalHeight});
        });
        img.src = url;
    });
}"""


class EnrichmentBudget:
    """Cumulative wall-clock time a run may spend fetching source rules."""

    def __init__(self, ceiling_ms: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.ceiling_ms = ceiling_ms
        self.spent_ms = 0.0
        self._clock = clock

    @property
    def exhausted(self) -> bool:
        return self.spent_ms >= self.ceiling_ms

    @contextmanager
    def measure(self) -> Iterator[None]:
        start = self._clock()
        try:
            yield
        finally:
            self.spent_ms += (self._clock() - start) * 1000


def needs_source_rules(element: ImageElementRecord) -> bool:
    # Node paths do not cross shadow roots, and CSS images are sized by
    # the style that declares them.
    return not element.isInShadowDOM and not element.isCss


def needs_natural_size(element: ImageElementRecord) -> bool:
    # With srcset or <picture> the loaded candidate can't be told from markup.
    return element.isPicture or bool(element.srcset)


class ImageElementEnricher:
    """Adds sizing and format details to discovered image elements.

    Build one per collection run: the natural size cache and the time
    budget belong to the run.
    """

    def __init__(
        self,
        budget_ms: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if budget_ms is None:
            budget_ms = settings.image_sizing_budget
        self.natural_sizes = NaturalSizeCache()
        self.budget = EnrichmentBudget(budget_ms, clock=clock)

    async def fetch_element_with_size_information(
        self,
        session: CdpSession,
        element: ImageElementRecord,
    ) -> None:
        url = element.src
        size = self.natural_sizes.get(url)
        if size is None:
            try:
                result = await session.evaluate(DETERMINE_NATURAL_SIZE_JS, url)
                size = NaturalSize.model_validate(result)
            except (EvaluationError, ValidationError) as e:
                logger.warning("Could not determine natural size of %s: %s", url, e)
                return
            self.natural_sizes.set(url, size)

        element.naturalWidth = size.naturalWidth
        element.naturalHeight = size.naturalHeight

    async def enrich(
        self,
        session: CdpSession,
        elements: Sequence[ImageElementRecord],
        network_index: Mapping[str, NetworkRecord],
    ) -> None:
        """Enrich ``elements`` in place, one remote call at a time.

        Individual failures leave fields unset; this never raises for them.
        """
        budget_reported = False

        for element in elements:
            record = network_index.get(element.src)
            if record is not None:
                element.mimeType = record.mimeType

            if needs_source_rules(element):
                if not self.budget.exhausted:
                    with self.budget.measure():
                        await fetch_source_rules(session, element.node.devtoolsNodePath, element)
                elif not budget_reported:
                    logger.info(
                        "Source rule budget of %dms used up, skipping remaining elements",
                        self.budget.ceiling_ms,
                    )
                    budget_reported = True

            if needs_natural_size(element):
                await self.fetch_element_with_size_information(session, element)
