from typing import Optional

from pydantic import BaseModel

from app.models.image_elements import ImageElementRecord


class ImageElementsMetadata(BaseModel):
    processingTime: int
    totalElements: int
    networkRecords: int
    indexedRecords: int
    sizingBudgetSpentMs: int
    sizingBudgetExhausted: bool
    naturalSizesMeasured: int


class ImageElementsResponse(BaseModel):
    success: bool
    url: str
    totalElements: int
    elements: list[ImageElementRecord]
    metadata: ImageElementsMetadata


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    timeout: Optional[bool] = None
    retryable: Optional[bool] = None
