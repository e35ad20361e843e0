"""
Lambda handler responsible for image upload and metadata creation.
"""

import json
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import ValidationError as PydanticValidationError

from core.models.errors import (
    DuplicateImageError,
    MetadataOperationFailedError,
    S3Error,
    ValidationError,
)
from core.utils.decorators import api_gateway_handler
from core.utils.response import ResponseBuilder
from core.utils.validators import sanitize_validation_errors, validate_request

from .models import ImageUploadRequest, ImageUploadResponse
from .service import UploadService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle image upload requests.

    The handler validates the base64 payload, rejects content that is
    already stored, extracts technical metadata, stores the image under
    its content address and returns the new image record.

    Expected API Gateway event structure:
    {
        "body": "{\"file\": \"...\", \"image_name\": \"cat.png\"}",
        "isBase64Encoded": false
    }

    Returns:
        201 with the created image, 409 when the content already exists
    """
    logger.info(
        "Received image upload request",
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

    try:
        body = json.loads(event.get("body") or "{}")
    except json.JSONDecodeError as exc:
        logger.exception("Invalid JSON body received", exc_info=exc)
        return ResponseBuilder.bad_request(message="Invalid JSON body")

    if not isinstance(body, dict):
        return ResponseBuilder.bad_request(message="Invalid JSON body")

    try:
        request = validate_request(ImageUploadRequest, body)
    except PydanticValidationError as exc:
        logger.error(
            "Request validation failed",
            extra={"errors": exc.errors()},
        )
        return ResponseBuilder.bad_request(
            message="Invalid request params",
            details={"errors": sanitize_validation_errors([err for err in exc.errors()])},
        )

    try:
        file_data = UploadService.decode_file(request.file)
        service = UploadService()

        image = service.upload_image(
            image_name=request.image_name,
            file_data=file_data,
            mime_type=request.mime_type,
            description=request.description,
        )

    except ValidationError as exc:
        logger.warning(
            "Validation error during image upload",
            extra={"image_name": request.image_name, "error": exc.message},
        )
        return ResponseBuilder.validation_error(
            message=exc.message,
            error=exc.error_code,
            details=exc.details,
        )

    except DuplicateImageError as exc:
        logger.warning(
            "Duplicate image upload attempted",
            extra={"image_name": request.image_name, "existing_id": exc.existing_id},
        )
        metrics.add_metric(name="DuplicateUploads", unit=MetricUnit.Count, value=1)
        return ResponseBuilder.conflict(
            exc.message,
            error=exc.error_code,
            details={
                "existing_id": exc.existing_id,
                "existing_filename": exc.existing_filename,
            },
        )

    except (S3Error, MetadataOperationFailedError) as exc:
        logger.exception(
            "Infrastructure error during image upload",
            extra={"image_name": request.image_name},
        )
        return ResponseBuilder.internal_error(exc.message)

    metrics.add_metric(name="ImagesUploaded", unit=MetricUnit.Count, value=1)

    response = ImageUploadResponse(
        image_id=image["image_id"],
        filename=image["filename"],
        original_filename=image["original_filename"],
        description=image.get("description"),
        file_size=image["file_size"],
        mime_type=image["mime_type"],
        width=image["width"],
        height=image["height"],
        format=image["format"],
        created_at=image["created_at"],
        message="Image uploaded successfully",
    )

    return ResponseBuilder.created(response.model_dump())
