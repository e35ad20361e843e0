"""
Lambda handler that serves a uniformly random active image.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.models.errors import MetadataOperationFailedError, NotFoundError
from core.utils.decorators import api_gateway_handler
from core.utils.response import ResponseBuilder

from .service import RandomImageService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()

NO_CACHE_HEADERS = {"Cache-Control": "no-cache"}


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle random image requests.

    Returns:
        200 with the image record and delivery URLs, or 404 when no image
        is eligible. Responses are never cached by clients.
    """
    logger.info(
        "Received random image request",
        extra={
            "http_method": event.get("httpMethod"),
            "path": event.get("path"),
            "request_id": getattr(context, "aws_request_id", None),
            "function_name": getattr(context, "function_name", None),
            "remaining_time_ms": context.get_remaining_time_in_millis()
            if hasattr(context, "get_remaining_time_in_millis")
            else None,
        },
    )

    service = RandomImageService()

    try:
        image = service.get_random_image()

    except NotFoundError as exc:
        logger.info("No images available for random selection")
        return ResponseBuilder.not_found(exc.message, error=exc.error_code)

    except MetadataOperationFailedError as exc:
        logger.exception("Random image selection failed")
        return ResponseBuilder.internal_error(exc.message)

    return ResponseBuilder.ok(image.model_dump(), headers=NO_CACHE_HEADERS)
