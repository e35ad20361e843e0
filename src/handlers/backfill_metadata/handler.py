"""
Lambda handler for the metadata backfill job.

Query parameters: `dry_run`, `limit`, `force_all`.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import ValidationError

from core.models.errors import MetadataOperationFailedError
from core.utils.decorators import api_gateway_handler
from core.utils.response import ResponseBuilder
from core.utils.validators import sanitize_validation_errors, validate_request

from .models import BackfillRequest
from .service import BackfillService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle metadata backfill requests.

    Returns:
        200 with the run summary (counters and per-image errors)
    """
    logger.info(
        "Received metadata backfill request",
        extra={
            "http_method": event.get("httpMethod"),
            "path": event.get("path"),
            "query_params": event.get("queryStringParameters"),
            "request_id": getattr(context, "aws_request_id", None),
            "function_name": getattr(context, "function_name", None),
            "remaining_time_ms": context.get_remaining_time_in_millis()
            if hasattr(context, "get_remaining_time_in_millis")
            else None,
        },
    )

    query_params = event.get("queryStringParameters") or {}

    try:
        request = validate_request(
            BackfillRequest,
            {
                "dry_run": query_params.get("dry_run", "false"),
                "limit": query_params.get("limit", "0"),
                "force_all": query_params.get("force_all", "false"),
            },
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

    service = BackfillService()

    try:
        summary = service.backfill(
            dry_run=request.dry_run,
            limit=request.limit,
            force_all=request.force_all,
        )
    except MetadataOperationFailedError as exc:
        logger.exception("Metadata backfill failed")
        return ResponseBuilder.internal_error(exc.message)

    return ResponseBuilder.ok(summary.model_dump())
