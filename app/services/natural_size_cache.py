from app.models.image_elements import NaturalSize


class NaturalSizeCache:
    """Natural dimensions by image URL for one collection run.

    Pages are assumed static while a run lasts, so entries are never
    evicted or invalidated.
    """

    def __init__(self) -> None:
        self._sizes: dict[str, NaturalSize] = {}

    def get(self, url: str) -> NaturalSize | None:
        return self._sizes.get(url)

    def set(self, url: str, size: NaturalSize) -> None:
        self._sizes[url] = size

    def __contains__(self, url: str) -> bool:
        return url in self._sizes

    def __len__(self) -> int:
        return len(self._sizes)
