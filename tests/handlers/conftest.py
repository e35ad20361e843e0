import base64
import json
from collections.abc import Callable
from types import SimpleNamespace
from typing import Any

import pytest


@pytest.fixture
def lambda_context(monkeypatch):
    context = SimpleNamespace(
        aws_request_id="test-request-id",
        function_name="test-function",
        memory_limit_in_mb=256,
        invoked_function_arn="arn:aws:lambda:us-east-1:000000000000:function:test",
        log_group_name="/aws/lambda/test-function",
        log_stream_name="2024/01/01/[$LATEST]test",
    )

    monkeypatch.setattr(
        "aws_lambda_powertools.utilities.typing.LambdaContext",
        lambda: context,
        raising=False,
    )

    return context


@pytest.fixture
def api_event() -> Callable[..., dict[str, Any]]:
    """Build a minimal API Gateway proxy event."""

    def _event(
        method: str = "GET",
        *,
        body: Any = None,
        path_params: dict[str, str] | None = None,
        query: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        if body is not None and not isinstance(body, str):
            body = json.dumps(body)

        return {
            "httpMethod": method,
            "path": "/test",
            "body": body,
            "pathParameters": path_params,
            "queryStringParameters": query,
            "headers": {"Content-Type": "application/json"},
        }

    return _event


@pytest.fixture
def upload_event(api_event, sample_png) -> Callable[..., dict[str, Any]]:
    def _event(
        data: bytes | None = None,
        *,
        image_name: str = "cat.png",
        **fields: Any,
    ) -> dict[str, Any]:
        body = {
            "file": base64.b64encode(sample_png if data is None else data).decode("utf-8"),
            "image_name": image_name,
            **fields,
        }
        return api_event("POST", body=body)

    return _event


@pytest.fixture
def scheduled_event() -> dict[str, Any]:
    """EventBridge scheduled rule invocation."""
    return {
        "version": "0",
        "id": "53dc4d37-cffa-4f76-80c9-8b7d4a4d2eaa",
        "detail-type": "Scheduled Event",
        "source": "aws.events",
        "account": "000000000000",
        "time": "2024-01-01T00:00:00Z",
        "region": "us-east-1",
        "resources": ["arn:aws:events:us-east-1:000000000000:rule/cache-sync"],
        "detail": {},
    }
