import os, sys, base64, boto3, pytest
from moto import mock_aws
from fastapi.testclient import TestClient
from PIL import Image
from io import BytesIO

REGION = "us-east-1"

# Ensure project root on path
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from app import deps
from app.core.config import settings
from app.main import app


def _jpeg_b64():
    img = Image.new("RGB", (6, 4), color=(1, 2, 3))
    buf = BytesIO()
    img.save(buf, format="JPEG")
    return base64.b64encode(buf.getvalue()).decode()


@pytest.fixture
def live(monkeypatch):
    with mock_aws():
        monkeypatch.setattr(settings, "aws_endpoint_url", None)
        monkeypatch.setattr(settings, "aws_region", REGION)
        monkeypatch.setattr(settings, "media_bucket", "images-bucket")
        monkeypatch.setattr(settings, "media_url_endpoint", "https://media.example.com")
        monkeypatch.setattr(settings, "table_name", "Images")
        monkeypatch.setattr(settings, "rollback_orphaned_uploads", True)

        boto3.client("s3", region_name=REGION).create_bucket(Bucket="images-bucket")
        boto3.client("dynamodb", region_name=REGION).create_table(
            TableName="Images",
            AttributeDefinitions=[{"AttributeName": "image_id", "AttributeType": "S"}],
            KeySchema=[{"AttributeName": "image_id", "KeyType": "HASH"}],
            BillingMode="PAY_PER_REQUEST",
        )

        deps.reset()
        yield TestClient(app)
        deps.reset()


def test_images_batch_upload_end_to_end_success(live):
    src = _jpeg_b64()
    r = live.post(
        "/api/upload",
        json={"images": [{"src": f"data:image/jpeg;base64,{src}", "filter": "90s"}, {"src": "tiny"}, {"src": src}]},
    )
    assert r.status_code == 200, r.text
    results = r.json()["results"]
    assert [x["uploaded"] for x in results] == [True, False, True]
    assert results[0]["url"].startswith("https://media.example.com/")

    table = boto3.resource("dynamodb", region_name=REGION).Table("Images")
    item = table.get_item(Key={"image_id": results[0]["id"]}).get("Item")
    assert item is not None
    assert item["filter"] == "90s"
    assert item["meta"] == {"width": 6, "height": 4}
    assert item["url"] == results[0]["url"]

    s3 = boto3.client("s3", region_name=REGION)
    keys = [o["Key"] for o in s3.list_objects_v2(Bucket="images-bucket")["Contents"]]
    assert len(keys) == 2
    assert all(k.split("/", 1)[1].startswith("photo_") for k in keys)


def test_images_test_upload_end_to_end_success(live):
    r = live.post("/api/test-upload")
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["upload"]["width"] == 1
    assert body["upload"]["height"] == 1

    table = boto3.resource("dynamodb", region_name=REGION).Table("Images")
    assert table.get_item(Key={"image_id": body["id"]}).get("Item") is not None


def test_images_missing_table_rolls_back_upload_failure(live, monkeypatch):
    monkeypatch.setattr(settings, "table_name", "Missing")
    deps.reset()

    r = live.post("/api/upload", json={"images": [{"src": _jpeg_b64()}]})
    assert r.status_code == 200
    result = r.json()["results"][0]
    assert result["uploaded"] is False
    assert result["error"].startswith("Failed to save image record:")

    s3 = boto3.client("s3", region_name=REGION)
    assert s3.list_objects_v2(Bucket="images-bucket").get("KeyCount", 0) == 0


def test_images_store_not_configured_failure(live, monkeypatch):
    monkeypatch.setattr(settings, "table_name", None)
    deps.reset()

    r = live.post("/api/upload", json={"images": [{"src": _jpeg_b64()}]})
    assert r.status_code == 200
    assert r.json()["results"][0] == {
        "uploaded": False,
        "error": "Failed to save image record: image store is not connected",
    }
