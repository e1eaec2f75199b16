from unittest.mock import AsyncMock, MagicMock

import pytest

from app.models.image_elements import ImageElementRecord


def _element_data(**overrides) -> dict:
    data = {
        "src": "https://www.example.com/avatar150.jpg",
        "srcset": "",
        "displayedWidth": 200,
        "displayedHeight": 200,
        "clientRect": {"top": 50, "bottom": 250, "left": 50, "right": 250},
        "attributeWidth": "",
        "attributeHeight": "",
        "cssComputedPosition": "absolute",
        "isCss": False,
        "isPicture": False,
        "isInShadowDOM": False,
        "cssComputedObjectFit": "",
        "cssComputedImageRendering": "",
        "node": {
            "lhId": "__nodeid__",
            "devtoolsNodePath": "1,HTML,1,BODY,1,DIV,1,IMG",
            "selector": "body > img",
            "nodeLabel": "img",
            "snippet": '<img src="https://www.example.com/avatar150.jpg">',
            "boundingRect": {
                "top": 50,
                "bottom": 250,
                "left": 50,
                "right": 250,
                "width": 200,
                "height": 200,
            },
        },
    }
    data.update(overrides)
    return data


@pytest.fixture
def element_data():
    return _element_data


@pytest.fixture
def make_element():
    def _make(**overrides) -> ImageElementRecord:
        return ImageElementRecord.model_validate(_element_data(**overrides))

    return _make


@pytest.fixture
def session():
    """Stand-in for CdpSession; every remote call is an AsyncMock."""
    mock = MagicMock()
    mock.push_node_by_path = AsyncMock(return_value=1)
    mock.get_matched_styles = AsyncMock(return_value={})
    mock.evaluate = AsyncMock(return_value=None)
    mock.enable_domains = AsyncMock()
    mock.disable_domains = AsyncMock()
    mock.detach = AsyncMock()
    return mock


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()
