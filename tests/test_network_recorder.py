"""Tests for NetworkRecorder page event handling."""

from unittest.mock import MagicMock

from app.services.network_recorder import NetworkRecorder


def _attached_recorder():
    page = MagicMock()
    recorder = NetworkRecorder()
    recorder.attach(page)
    handlers = {c.args[0]: c.args[1] for c in page.on.call_args_list}
    return recorder, handlers


def _request(url):
    request = MagicMock()
    request.url = url
    request.failure = None
    return request


def _response(request, status=200, headers=None):
    response = MagicMock()
    response.request = request
    response.status = status
    response.headers = headers or {}
    return response


class TestNetworkRecorder:
    def test_subscribes_to_page_events(self):
        _, handlers = _attached_recorder()
        assert set(handlers) == {"request", "response", "requestfinished", "requestfailed"}

    def test_records_finished_transfer(self):
        recorder, handlers = _attached_recorder()
        request = _request("https://example.com/img.webp")

        handlers["request"](request)
        handlers["response"](_response(request, headers={
            "content-type": "Application/Octet-Stream; charset=binary",
            "content-length": "2048",
        }))
        handlers["requestfinished"](request)

        [record] = recorder.records()
        assert record.url == "https://example.com/img.webp"
        assert record.mimeType == "application/octet-stream"
        assert record.statusCode == 200
        assert record.resourceSize == 2048
        assert record.finished is True

    def test_failed_request_is_not_finished(self):
        recorder, handlers = _attached_recorder()
        request = _request("https://example.com/missing.png")

        handlers["request"](request)
        handlers["requestfailed"](request)

        [record] = recorder.records()
        assert record.finished is False
        assert record.statusCode == -1

    def test_keeps_request_order(self):
        recorder, handlers = _attached_recorder()
        first = _request("https://example.com/a.png")
        second = _request("https://example.com/b.png")

        handlers["request"](first)
        handlers["request"](second)
        handlers["requestfinished"](second)
        handlers["requestfinished"](first)

        assert [r.url for r in recorder.records()] == [
            "https://example.com/a.png",
            "https://example.com/b.png",
        ]

    def test_malformed_content_length(self):
        recorder, handlers = _attached_recorder()
        request = _request("https://example.com/a.png")

        handlers["request"](request)
        handlers["response"](_response(request, headers={"content-length": "lots"}))

        assert recorder.records()[0].resourceSize == 0
