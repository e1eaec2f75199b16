import logging

from patchright.async_api import Page, Request, Response

from app.models.image_elements import NetworkRecord

logger = logging.getLogger(__name__)


class NetworkRecorder:
    """Records every transfer a page makes, in the order requests start."""

    def __init__(self) -> None:
        self._records: dict[Request, NetworkRecord] = {}

    def attach(self, page: Page) -> None:
        page.on("request", self._on_request)
        page.on("response", self._on_response)
        page.on("requestfinished", self._on_finished)
        page.on("requestfailed", self._on_failed)

    def _record_for(self, request: Request) -> NetworkRecord:
        record = self._records.get(request)
        if record is None:
            record = NetworkRecord(url=request.url)
            self._records[request] = record
        return record

    def _on_request(self, request: Request) -> None:
        self._record_for(request)

    def _on_response(self, response: Response) -> None:
        record = self._record_for(response.request)
        headers = response.headers
        record.statusCode = response.status
        record.mimeType = headers.get("content-type", "").split(";")[0].strip().lower()
        try:
            record.resourceSize = int(headers.get("content-length", 0))
        except ValueError:
            record.resourceSize = 0

    def _on_finished(self, request: Request) -> None:
        self._record_for(request).finished = True

    def _on_failed(self, request: Request) -> None:
        logger.debug("Request failed: %s (%s)", request.url, request.failure)
        self._record_for(request).finished = False

    def records(self) -> list[NetworkRecord]:
        return list(self._records.values())
