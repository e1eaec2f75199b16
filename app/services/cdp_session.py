import logging
import re
from typing import Any

from patchright.async_api import CDPSession, Error as PlaywrightError, Page

logger = logging.getLogger(__name__)

NO_NODE_PATTERN = re.compile(r"No node.*found", re.IGNORECASE)


class RemoteSessionError(Exception):
    """A protocol command was rejected by the browser."""


class NodeNotFound(RemoteSessionError):
    """The addressed DOM path no longer resolves to a node."""


class EvaluationError(RemoteSessionError):
    """Evaluating an expression in the page threw or was rejected."""


class CdpSession:
    """One page's DevTools protocol channel.

    Commands are awaited one at a time by callers; nothing here pipelines
    or retries.
    """

    def __init__(self, page: Page, client: CDPSession) -> None:
        self._page = page
        self._client = client

    @classmethod
    async def attach(cls, page: Page) -> "CdpSession":
        client = await page.context.new_cdp_session(page)
        return cls(page, client)

    async def send(self, method: str, params: dict | None = None) -> dict:
        try:
            return await self._client.send(method, params or {})
        except PlaywrightError as e:
            raise RemoteSessionError(f"{method} failed: {e}") from e

    async def enable_domains(self) -> None:
        await self.send("DOM.enable")
        await self.send("CSS.enable")
        # Node paths only resolve once the document has been requested
        await self.send("DOM.getDocument", {"depth": -1, "pierce": True})

    async def disable_domains(self) -> None:
        for method in ("CSS.disable", "DOM.disable"):
            try:
                await self.send(method)
            except RemoteSessionError as e:
                logger.debug("%s", e)

    async def push_node_by_path(self, path: str) -> int:
        try:
            result = await self.send("DOM.pushNodeByPathToFrontend", {"path": path})
        except RemoteSessionError as e:
            if NO_NODE_PATTERN.search(str(e)):
                raise NodeNotFound(path) from e
            raise
        node_id = result.get("nodeId")
        if not node_id:
            raise NodeNotFound(path)
        return node_id

    async def get_matched_styles(self, node_id: int) -> dict:
        return await self.send("CSS.getMatchedStylesForNode", {"nodeId": node_id})

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        try:
            return await self._page.evaluate(expression, arg)
        except PlaywrightError as e:
            raise EvaluationError(str(e)) from e

    async def detach(self) -> None:
        try:
            await self._client.detach()
        except PlaywrightError as e:
            logger.debug("CDP session already detached: %s", e)
