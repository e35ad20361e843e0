import json
from typing import Any
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from core.models.errors import DynamoDBError
from core.models.image import ImageMetadata
from handlers.backfill_metadata.handler import handler
from handlers.backfill_metadata.models import BackfillRequest
from handlers.backfill_metadata.service import BackfillService


class FakeStorage:
    def __init__(self, objects: dict[str, bytes]) -> None:
        self.objects = objects

    def get_image(self, *, key: str) -> bytes | None:
        if key == "images/broken.png":
            raise RuntimeError("read timed out")
        return self.objects.get(key)


class FakeMetadata:
    def __init__(self, images: list[dict[str, Any]]) -> None:
        self.images = images
        self.updates: dict[str, ImageMetadata] = {}
        self.list_calls: list[dict[str, Any]] = []

    def list_images_missing_dimensions(
        self, *, limit: int = 0, force_all: bool = False
    ) -> list[dict[str, Any]]:
        self.list_calls.append({"limit": limit, "force_all": force_all})
        return self.images[:limit] if limit else list(self.images)

    def update_image_metadata(self, *, image_id: str, metadata: ImageMetadata) -> None:
        self.updates[image_id] = metadata


@pytest.fixture
def backfill_setup(png_factory, jpeg_factory):
    storage = FakeStorage(
        {
            "images/a.png": png_factory(64, 48),
            "images/b.jpg": jpeg_factory(20, 10),
            "images/c.png": b"\x89PNG\r\n\x1a\n",
        }
    )
    metadata = FakeMetadata(
        [
            {"image_id": "img_a", "filename": "images/a.png", "mime_type": "image/png"},
            {"image_id": "img_b", "filename": "images/b.jpg", "mime_type": "image/jpeg"},
            {"image_id": "img_c", "filename": "images/c.png", "mime_type": "image/png"},
            {"image_id": "img_d", "filename": "images/gone.png", "mime_type": "image/png"},
            {"image_id": "img_e", "filename": "images/broken.png", "mime_type": "image/png"},
        ]
    )
    return BackfillService(storage=storage, metadata=metadata), metadata


class TestBackfillRequest:
    def test_defaults(self) -> None:
        request = BackfillRequest()

        assert (request.dry_run, request.limit, request.force_all) == (False, 0, False)

    def test_parses_query_strings(self) -> None:
        request = BackfillRequest.model_validate(
            {"dry_run": "TRUE", "limit": "25", "force_all": "no"}
        )

        assert request.dry_run is True
        assert request.limit == 25
        assert request.force_all is False

    @pytest.mark.parametrize("limit", ["-1", "many"])
    def test_invalid_limit(self, limit) -> None:
        with pytest.raises(ValidationError):
            BackfillRequest.model_validate({"limit": limit})


class TestBackfillService:
    def test_summary(self, backfill_setup) -> None:
        service, metadata = backfill_setup

        summary = service.backfill()

        assert summary.total == 5
        assert summary.processed == 2
        assert summary.updated == 2
        assert summary.skipped == 1
        assert summary.failed == 2
        assert summary.dry_run is False
        assert summary.finished_at is not None
        assert summary.duration_ms >= 0

        assert set(metadata.updates) == {"img_a", "img_b"}
        assert (metadata.updates["img_a"].width, metadata.updates["img_a"].height) == (64, 48)
        assert metadata.updates["img_b"].format.value == "JPEG"

        errors = {error.image_id: error for error in summary.errors}
        assert errors["img_c"].error == "Dimension extraction failed"
        assert errors["img_c"].format == "PNG"
        assert errors["img_d"].error == "Not found in storage"
        assert errors["img_e"].error == "read timed out"

    def test_dry_run_writes_nothing(self, backfill_setup) -> None:
        service, metadata = backfill_setup

        summary = service.backfill(dry_run=True)

        assert summary.dry_run is True
        assert summary.processed == 2
        assert summary.updated == 0
        assert metadata.updates == {}

    def test_limit_and_force_all_are_forwarded(self, backfill_setup) -> None:
        service, metadata = backfill_setup

        summary = service.backfill(limit=1, force_all=True)

        assert metadata.list_calls == [{"limit": 1, "force_all": True}]
        assert summary.total == 1
        assert summary.updated == 1

    def test_empty_run(self) -> None:
        service = BackfillService(storage=FakeStorage({}), metadata=FakeMetadata([]))

        summary = service.backfill()

        assert summary.total == 0
        assert summary.errors == []


class TestBackfillHandler:
    def test_success(self, lambda_context, api_event, backfill_setup) -> None:
        service, _ = backfill_setup
        event = api_event("POST", query={"dry_run": "true", "limit": "10"})

        with patch("handlers.backfill_metadata.handler.BackfillService", return_value=service):
            response = handler(event, lambda_context)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["dry_run"] is True
        assert body["total"] == 5
        assert body["processed"] == 2
        assert len(body["errors"]) == 3

    def test_invalid_limit(self, lambda_context, api_event) -> None:
        response = handler(api_event("POST", query={"limit": "lots"}), lambda_context)

        assert response["statusCode"] == 400
        errors = json.loads(response["body"])["details"]["errors"]
        assert errors[0]["field"] == "limit"

    def test_listing_failure(self, lambda_context, api_event) -> None:
        with patch(
            "handlers.backfill_metadata.handler.BackfillService.backfill",
            side_effect=DynamoDBError(message="Unable to list images"),
        ):
            response = handler(api_event("POST"), lambda_context)

        assert response["statusCode"] == 500
        assert json.loads(response["body"])["message"] == "Unable to list images"
