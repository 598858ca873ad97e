from typing import Optional, Dict, Any
import logging
import uuid
from datetime import datetime, timezone
from ..core.config import settings
from ..core.errors import StoreUnavailableError
from ..core.models import ImageRecord
from .clients import dynamodb_table as dynamodb_table_factory

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ImageStore:
    """Image records in a DynamoDB table.

    One instance holds the process-wide table handle. Without a table name
    the store stays disconnected and every write raises StoreUnavailableError.
    """

    def __init__(self, table_name: Optional[str] = None, table=None):
        self.table_name = table_name if table_name is not None else settings.table_name
        self._table = table

    @property
    def connected(self) -> bool:
        return self._table is not None

    def connect(self) -> bool:
        if self._table is not None:
            return True
        if not self.table_name:
            logger.error("TABLE_NAME not set; image store left disconnected")
            return False
        self._table = dynamodb_table_factory(self.table_name)
        logger.info("Connected to image store table %s", self.table_name)
        return True

    def close(self) -> None:
        if self._table is not None:
            logger.info("Image store table %s disconnected", self.table_name)
        self._table = None

    def create(self, record: ImageRecord) -> Dict[str, Any]:
        if not self.connected:
            raise StoreUnavailableError("image store is not connected")

        stamp = _now()
        item: Dict[str, Any] = {
            "image_id": uuid.uuid4().hex,
            "url": record.url,
            "createdAt": stamp,
            "updatedAt": stamp,
        }
        if record.fileId is not None:
            item["fileId"] = record.fileId
        if record.fileName is not None:
            item["fileName"] = record.fileName
        if record.filter is not None:
            item["filter"] = record.filter
        item["meta"] = record.meta.model_dump(exclude_none=True)

        self._table.put_item(
            Item=item,
            ConditionExpression="attribute_not_exists(image_id)",
        )
        return item
