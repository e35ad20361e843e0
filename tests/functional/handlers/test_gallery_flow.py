"""
Integration-style tests across the Lambda handlers.
Uses the real services with moto-backed DynamoDB and S3.
"""

import base64
import json

from handlers.backfill_metadata.handler import handler as backfill_handler
from handlers.random_image.handler import handler as random_handler
from handlers.sync_cache.handler import handler as sync_handler
from handlers.update_status.handler import handler as status_handler
from handlers.upload_image.handler import handler as upload_handler


def upload(data: bytes, image_name: str, lambda_context) -> dict:
    event = {
        "httpMethod": "POST",
        "body": json.dumps(
            {"file": base64.b64encode(data).decode(), "image_name": image_name}
        ),
    }
    return upload_handler(event, lambda_context)


def random_image(lambda_context) -> dict:
    return random_handler({"httpMethod": "GET"}, lambda_context)


class TestGalleryFlow:
    def test_upload_then_random(
        self, gallery, lambda_context, png_factory, s3_get_object, dynamodb_get_item
    ) -> None:
        data = png_factory(120, 80, srgb=True)

        response = upload(data, "sunset.png", lambda_context)

        assert response["statusCode"] == 201
        uploaded = json.loads(response["body"])
        assert (uploaded["width"], uploaded["height"]) == (120, 80)

        stored = s3_get_object(uploaded["filename"])
        assert stored["Body"].read() == data
        assert stored["ContentType"] == "image/png"
        assert dynamodb_get_item(uploaded["image_id"])["color_space"] == "sRGB"

        response = random_image(lambda_context)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["image_id"] == uploaded["image_id"]
        assert body["aspect_ratio"] == 1.5
        assert body["urls"]["original"] == f"/{uploaded['filename']}"

    def test_duplicate_upload_is_conflict(self, gallery, lambda_context, sample_png) -> None:
        first = json.loads(upload(sample_png, "one.png", lambda_context)["body"])

        response = upload(sample_png, "copy.png", lambda_context)

        assert response["statusCode"] == 409
        details = json.loads(response["body"])["details"]
        assert details["existing_id"] == first["image_id"]
        assert details["existing_filename"] == first["filename"]

    def test_hidden_images_are_never_selected(
        self, gallery, lambda_context, png_factory, gif_factory
    ) -> None:
        png = json.loads(upload(png_factory(4, 4), "a.png", lambda_context)["body"])
        gif = json.loads(upload(gif_factory(5, 5, frames=3), "b.gif", lambda_context)["body"])

        response = status_handler(
            {
                "httpMethod": "PATCH",
                "pathParameters": {"image_id": png["image_id"]},
                "body": json.dumps({"status": "hidden"}),
            },
            lambda_context,
        )
        assert response["statusCode"] == 200

        for _ in range(10):
            body = json.loads(random_image(lambda_context)["body"])
            assert body["image_id"] == gif["image_id"]
            assert body["is_animated"] is True

    def test_empty_gallery(self, gallery, lambda_context) -> None:
        response = random_image(lambda_context)

        assert response["statusCode"] == 404
        assert json.loads(response["body"])["error"] == "NO_IMAGES_AVAILABLE"

    def test_scheduled_sync(
        self, gallery, lambda_context, dynamodb_put_multiple_items, image_item_factory
    ) -> None:
        dynamodb_put_multiple_items([image_item_factory(i) for i in range(1, 4)])

        response = sync_handler({"source": "aws.events"}, lambda_context)

        assert response["statusCode"] == 200
        assert json.loads(response["body"])["count"] == 3

        status = json.loads(sync_handler({"httpMethod": "GET"}, lambda_context)["body"])
        assert status["state"] == "warm"
        assert status["count"] == 3
        assert status["cached_filenames"] == 3

    def test_backfill_fills_missing_dimensions(
        self,
        gallery,
        lambda_context,
        dynamodb_put_multiple_items,
        image_item_factory,
        s3_put_object,
        dynamodb_get_item,
        jpeg_factory,
    ) -> None:
        legacy = image_item_factory(
            1, filename="images/legacy.jpg", mime_type="image/jpeg", width=0, height=0
        )
        dynamodb_put_multiple_items([legacy, image_item_factory(2, width=0, height=0)])
        s3_put_object("images/legacy.jpg", jpeg_factory(30, 20), "image/jpeg")

        response = backfill_handler(
            {"httpMethod": "POST", "queryStringParameters": {"limit": "5"}},
            lambda_context,
        )

        assert response["statusCode"] == 200
        summary = json.loads(response["body"])
        assert summary["total"] == 2
        assert summary["updated"] == 1
        assert summary["skipped"] == 1
        assert summary["errors"][0]["image_id"] == "img_2"

        item = dynamodb_get_item("img_1")
        assert (item["width"], item["height"]) == (30, 20)
        assert item["format"] == "JPEG"
