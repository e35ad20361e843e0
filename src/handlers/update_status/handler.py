"""
Lambda handler for changing an image's status (active, hidden, deleted).
"""

import json
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import ValidationError

from core.models.errors import MetadataOperationFailedError, NotFoundError
from core.utils.decorators import api_gateway_handler
from core.utils.response import ResponseBuilder
from core.utils.validators import sanitize_validation_errors, validate_request

from .models import UpdateStatusRequest, UpdateStatusResponse
from .service import StatusService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle PATCH /images/{image_id} status changes.

    Expected API Gateway event structure:
    {
        "pathParameters": {"image_id": "img_..."},
        "body": "{\"status\": \"hidden\"}"
    }
    """
    logger.info(
        "Received status update request",
        extra={
            "http_method": event.get("httpMethod"),
            "path": event.get("path"),
            "request_id": getattr(context, "aws_request_id", None),
            "function_name": getattr(context, "function_name", None),
        },
    )

    try:
        body = json.loads(event.get("body") or "{}")
    except json.JSONDecodeError as exc:
        logger.exception("Invalid JSON body received", exc_info=exc)
        return ResponseBuilder.bad_request(message="Invalid JSON body")

    if not isinstance(body, dict):
        return ResponseBuilder.bad_request(message="Invalid JSON body")

    path_params = event.get("pathParameters") or {}

    try:
        request = validate_request(
            UpdateStatusRequest,
            {"image_id": path_params.get("image_id"), "status": body.get("status")},
        )
    except ValidationError as exc:
        logger.error(
            "Request validation failed",
            extra={"errors": exc.errors()},
        )
        return ResponseBuilder.bad_request(
            message="Invalid request params",
            details={"errors": sanitize_validation_errors([err for err in exc.errors()])},
        )

    service = StatusService()

    try:
        image = service.update_status(image_id=request.image_id, status=request.status)

    except NotFoundError:
        logger.warning("Image not found during status update", extra={"image_id": request.image_id})
        return ResponseBuilder.not_found(f"Image not found: {request.image_id}")

    except MetadataOperationFailedError as exc:
        logger.exception("Status update failed", extra={"image_id": request.image_id})
        return ResponseBuilder.internal_error(exc.message)

    response = UpdateStatusResponse(
        image_id=request.image_id,
        status=image.get("status", request.status),
        updated_at=image.get("updated_at"),
        message="Image status updated",
    )
    return ResponseBuilder.ok(response.model_dump())
