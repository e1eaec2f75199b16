import asyncio
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app.models.requests import ImageElementsRequest
from app.models.responses import ErrorResponse, ImageElementsResponse
from app.services.image_elements_service import collect_image_elements

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/image-elements",
    response_model=ImageElementsResponse,
    responses={500: {"model": ErrorResponse}, 504: {"model": ErrorResponse}},
)
async def image_elements_endpoint(request: Request, body: ImageElementsRequest):
    max_elements = body.options.maxElements if body.options else None

    try:
        result = await collect_image_elements(url=body.url, max_elements=max_elements)
    except asyncio.TimeoutError:
        return JSONResponse(
            status_code=504,
            content=ErrorResponse(
                error="Image element collection timed out",
                timeout=True,
                retryable=True,
            ).model_dump(exclude_none=True),
        )
    except Exception as e:
        logger.exception("Image element collection error for %s", body.url)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error=str(e), retryable=False).model_dump(exclude_none=True),
        )

    return ImageElementsResponse(
        success=True,
        url=body.url,
        totalElements=result["metadata"]["totalElements"],
        elements=result["elements"],
        metadata=result["metadata"],
    )
