from typing import Optional

from pydantic import BaseModel


class ClientRect(BaseModel):
    top: float
    bottom: float
    left: float
    right: float


class BoundingRect(ClientRect):
    width: float
    height: float


class NodeDetails(BaseModel):
    lhId: str = ""
    devtoolsNodePath: str
    selector: str = ""
    nodeLabel: str = ""
    snippet: str = ""
    boundingRect: Optional[BoundingRect] = None


class NaturalSize(BaseModel):
    naturalWidth: int
    naturalHeight: int


class CssDeclarations(BaseModel):
    """Sizing properties declared by one style source. ``None`` means not declared."""

    width: Optional[str] = None
    height: Optional[str] = None
    aspectRatio: Optional[str] = None


class CssSizing(CssDeclarations):
    """Effective sizing plus where each candidate value came from."""

    inline: Optional[CssDeclarations] = None
    attribute: Optional[CssDeclarations] = None
    matchedRules: Optional[CssDeclarations] = None


class NetworkRecord(BaseModel):
    url: str
    mimeType: str = ""
    finished: bool = False
    statusCode: int = -1
    resourceSize: int = 0


class ImageElementRecord(BaseModel):
    src: str
    srcset: str = ""
    displayedWidth: float
    displayedHeight: float
    clientRect: ClientRect
    attributeWidth: Optional[str] = None
    attributeHeight: Optional[str] = None
    cssWidth: Optional[str] = None
    cssHeight: Optional[str] = None
    cssSizing: Optional[CssSizing] = None
    cssComputedPosition: str = ""
    cssComputedObjectFit: str = ""
    cssComputedImageRendering: str = ""
    isCss: bool = False
    isPicture: bool = False
    isInShadowDOM: bool = False
    node: NodeDetails

    # Filled in by enrichment
    naturalWidth: Optional[int] = None
    naturalHeight: Optional[int] = None
    mimeType: Optional[str] = None
