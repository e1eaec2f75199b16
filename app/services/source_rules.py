import logging
from typing import Iterable, Optional

from app.models.image_elements import CssDeclarations, CssSizing, ImageElementRecord
from app.services.cdp_session import CdpSession, NodeNotFound, RemoteSessionError

logger = logging.getLogger(__name__)

SIZING_PROPERTIES = {
    "width": "width",
    "height": "height",
    "aspect-ratio": "aspectRatio",
}


def _collect_declarations(styles: Iterable[dict]) -> CssDeclarations:
    """Fold style blocks in order; a later declaration replaces an earlier one."""
    found: dict[str, str] = {}
    for style in styles:
        for prop in style.get("cssProperties") or []:
            field = SIZING_PROPERTIES.get(prop.get("name"))
            if field is None or prop.get("disabled"):
                continue
            value = prop.get("value")
            if value:
                found[field] = value
    return CssDeclarations(**found)


def _declarations_for(style: Optional[dict]) -> Optional[CssDeclarations]:
    if not style:
        return None
    return _collect_declarations([style])


def _declarations_for_rules(matched_rules: Optional[list]) -> Optional[CssDeclarations]:
    # The browser returns matched rules ordered so that later entries win.
    if not matched_rules:
        return None
    styles = [(match.get("rule") or {}).get("style") or {} for match in matched_rules]
    return _collect_declarations(styles)


def compute_css_sizing(matched_styles: dict) -> CssSizing:
    """Reduce a CSS.getMatchedStylesForNode response to effective sizing.

    Per property, inline style beats attribute style, which beats the
    matched stylesheet rules. Any of the three sections may be missing.
    """
    inline = _declarations_for(matched_styles.get("inlineStyle"))
    attribute = _declarations_for(matched_styles.get("attributesStyle"))
    rules = _declarations_for_rules(matched_styles.get("matchedCSSRules"))

    effective = {}
    for field in SIZING_PROPERTIES.values():
        for source in (inline, attribute, rules):
            value = getattr(source, field) if source else None
            if value is not None:
                effective[field] = value
                break

    return CssSizing(**effective, inline=inline, attribute=attribute, matchedRules=rules)


async def fetch_source_rules(
    session: CdpSession,
    devtools_node_path: str,
    element: ImageElementRecord,
) -> None:
    """Resolve which CSS source sizes ``element`` and record it in place.

    Remote failures leave the element untouched and are never raised.
    """
    try:
        node_id = await session.push_node_by_path(devtools_node_path)
        matched_styles = await session.get_matched_styles(node_id)
    except NodeNotFound:
        logger.debug("Node %s no longer exists, skipping source rules", devtools_node_path)
        return
    except RemoteSessionError as e:
        logger.warning("Could not fetch source rules for %s: %s", element.src, e)
        return

    sizing = compute_css_sizing(matched_styles or {})
    element.cssWidth = sizing.width
    element.cssHeight = sizing.height
    element.cssSizing = sizing
