from typing import Iterable

from app.models.image_elements import NetworkRecord


def index_network_records(records: Iterable[NetworkRecord]) -> dict[str, NetworkRecord]:
    """Map each URL to the last successfully completed transfer for it.

    Unfinished and non-2xx transfers are skipped without touching an
    entry indexed earlier. Joining on URL lets the delivered format be
    read off the record even when the file extension says otherwise.
    """
    index: dict[str, NetworkRecord] = {}
    for record in records:
        if not record.finished:
            continue
        if not 200 <= record.statusCode < 300:
            continue
        index[record.url] = record
    return index
