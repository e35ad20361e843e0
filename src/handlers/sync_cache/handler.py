"""
Lambda handler for the random selection cache sync.

Triggered three ways:
- EventBridge schedule (periodic full refresh)
- POST: manual full refresh
- GET: current cache state
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.models.errors import CacheError, MetadataOperationFailedError
from core.utils.constants import SCHEDULED_EVENT_SOURCE
from core.utils.decorators import api_gateway_handler
from core.utils.response import ResponseBuilder

from .service import SyncService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle cache sync requests.

    Returns:
        `{success, count, timestamp}` after a refresh, or the cache state
        for GET requests
    """
    method = event.get("httpMethod")
    scheduled = event.get("source") == SCHEDULED_EVENT_SOURCE

    logger.info(
        "Received cache sync request",
        extra={
            "http_method": method,
            "path": event.get("path"),
            "scheduled": scheduled,
            "request_id": getattr(context, "aws_request_id", None),
            "function_name": getattr(context, "function_name", None),
        },
    )

    service = SyncService()

    if method == "GET":
        return ResponseBuilder.ok(service.status())

    if not scheduled and method != "POST":
        return ResponseBuilder.method_not_allowed(method)

    try:
        result = service.sync()
    except (MetadataOperationFailedError, CacheError) as exc:
        logger.exception("Cache sync failed", extra={"scheduled": scheduled})
        return ResponseBuilder.internal_error(exc.message)

    logger.info("Cache sync completed", extra={"count": result["count"], "scheduled": scheduled})
    return ResponseBuilder.ok(result)
