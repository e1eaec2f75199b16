"""Tests for CdpSession error mapping."""

from unittest.mock import AsyncMock, MagicMock, call

import pytest
from patchright.async_api import Error as PlaywrightError

from app.services.cdp_session import CdpSession, EvaluationError, NodeNotFound, RemoteSessionError


def _session(send=None, evaluate=None):
    page = MagicMock()
    page.evaluate = evaluate or AsyncMock()
    client = MagicMock()
    client.send = send or AsyncMock(return_value={})
    client.detach = AsyncMock()
    return CdpSession(page, client), page, client


class TestAttach:
    @pytest.mark.asyncio
    async def test_opens_cdp_session_for_page(self):
        page = MagicMock()
        client = MagicMock()
        page.context.new_cdp_session = AsyncMock(return_value=client)

        session = await CdpSession.attach(page)

        page.context.new_cdp_session.assert_awaited_once_with(page)
        assert isinstance(session, CdpSession)


class TestPushNodeByPath:
    @pytest.mark.asyncio
    async def test_returns_node_id(self):
        session, _, client = _session(send=AsyncMock(return_value={"nodeId": 7}))

        assert await session.push_node_by_path("1,HTML,1,BODY") == 7
        client.send.assert_awaited_once_with("DOM.pushNodeByPathToFrontend", {"path": "1,HTML,1,BODY"})

    @pytest.mark.asyncio
    async def test_no_node_found_error(self):
        session, _, _ = _session(send=AsyncMock(side_effect=PlaywrightError("Protocol error: No node found at given path")))

        with pytest.raises(NodeNotFound):
            await session.push_node_by_path("1,HTML,1,BODY")

    @pytest.mark.asyncio
    async def test_zero_node_id(self):
        session, _, _ = _session(send=AsyncMock(return_value={"nodeId": 0}))

        with pytest.raises(NodeNotFound):
            await session.push_node_by_path("1,HTML,1,BODY")

    @pytest.mark.asyncio
    async def test_other_errors_are_not_node_not_found(self):
        session, _, _ = _session(send=AsyncMock(side_effect=PlaywrightError("Target closed")))

        with pytest.raises(RemoteSessionError) as exc_info:
            await session.push_node_by_path("1,HTML,1,BODY")
        assert not isinstance(exc_info.value, NodeNotFound)


class TestCommands:
    @pytest.mark.asyncio
    async def test_get_matched_styles(self):
        styles = {"inlineStyle": {"cssProperties": []}}
        session, _, client = _session(send=AsyncMock(return_value=styles))

        assert await session.get_matched_styles(3) == styles
        client.send.assert_awaited_once_with("CSS.getMatchedStylesForNode", {"nodeId": 3})

    @pytest.mark.asyncio
    async def test_enable_domains_requests_document(self):
        session, _, client = _session()

        await session.enable_domains()

        assert client.send.await_args_list == [
            call("DOM.enable", {}),
            call("CSS.enable", {}),
            call("DOM.getDocument", {"depth": -1, "pierce": True}),
        ]

    @pytest.mark.asyncio
    async def test_disable_domains_ignores_failures(self):
        session, _, client = _session(send=AsyncMock(side_effect=PlaywrightError("Target closed")))

        await session.disable_domains()

        assert client.send.await_count == 2


class TestEvaluate:
    @pytest.mark.asyncio
    async def test_returns_page_result(self):
        session, page, _ = _session(evaluate=AsyncMock(return_value={"naturalWidth": 1, "naturalHeight": 1}))

        assert await session.evaluate("(url) => url", "https://example.com/a.png") == {
            "naturalWidth": 1,
            "naturalHeight": 1,
        }
        page.evaluate.assert_awaited_once_with("(url) => url", "https://example.com/a.png")

    @pytest.mark.asyncio
    async def test_page_exception_raises_evaluation_error(self):
        session, _, _ = _session(evaluate=AsyncMock(side_effect=PlaywrightError("Error: Unable to decode image")))

        with pytest.raises(EvaluationError):
            await session.evaluate("(url) => url", "https://example.com/a.png")
