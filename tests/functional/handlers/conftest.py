from types import SimpleNamespace

import pytest


@pytest.fixture
def lambda_context():
    return SimpleNamespace(
        aws_request_id="functional-request-id",
        function_name="functional-test",
        memory_limit_in_mb=256,
        invoked_function_arn="arn:aws:lambda:us-east-1:000000000000:function:functional-test",
    )


@pytest.fixture
def gallery(dynamodb_table, cache_table, s3_bucket, inline_dispatcher, monkeypatch):
    """Mocked tables and bucket; cache refreshes run inline."""
    monkeypatch.setattr(
        "core.services.random_selection.get_default_dispatcher",
        lambda: inline_dispatcher,
    )
    return inline_dispatcher
