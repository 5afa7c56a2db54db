"""Item service - CRUD with ownership checks and upload bookkeeping"""

from __future__ import annotations

import base64
import binascii
import logging
import time
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from mobile_api.config import settings
from mobile_api.core.database import utc_now
from mobile_api.core.exceptions import (
    AuthorizationError,
    ResourceNotFoundError,
    StorageError,
    StorageNotConfiguredError,
    ValidationError,
)
from mobile_api.models.item import Item, Upload
from mobile_api.models.user import User
from mobile_api.services.storage_service import StorageClient

logger = logging.getLogger(__name__)

# Request field -> mapped column
ITEM_FIELDS = {
    "name": Item.name,
    "description": Item.description,
    "metadata": Item.metadata_,
}


class ItemService:
    """Service for items and their uploads"""

    @staticmethod
    def list_items(db: Session, user: Optional[User]) -> List[Item]:
        """Own items for a signed-in caller; a capped list of public items otherwise."""
        query = db.query(Item)
        if user is not None:
            query = query.filter(Item.user_id == user.id)
        else:
            query = query.filter(Item.user_id.is_(None))
        query = query.order_by(Item.created_at.desc(), Item.id.desc())
        if user is None:
            query = query.limit(settings.PUBLIC_ITEMS_LIMIT)
        return query.all()

    @staticmethod
    def get_item(db: Session, item_id: int) -> Item:
        item = db.get(Item, item_id)
        if item is None:
            raise ResourceNotFoundError("Item")
        return item

    @staticmethod
    def get_readable_item(db: Session, item_id: int, user: Optional[User]) -> Item:
        """Owned items are visible to their owner only; ownerless items to anyone."""
        item = ItemService.get_item(db, item_id)
        if item.user_id is not None and (user is None or item.user_id != user.id):
            raise AuthorizationError()
        return item

    @staticmethod
    def get_owned_item(db: Session, item_id: int, user: User) -> Item:
        item = ItemService.get_item(db, item_id)
        if item.user_id != user.id:
            raise AuthorizationError("Access denied - you do not own this item")
        return item

    @staticmethod
    def create_item(
        db: Session,
        user: User,
        name: Optional[str],
        description: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Item:
        if not name:
            raise ValidationError("Name is required", code="MISSING_NAME")

        item = Item(
            name=name,
            description=description or None,
            user_id=user.id,
            metadata_=metadata or {},
        )
        db.add(item)
        db.commit()
        db.refresh(item)
        logger.info(f"Created item {item.id} for user {user.id}")
        return item

    @staticmethod
    def update_item(db: Session, item_id: int, user: User, changes: Dict[str, Any]) -> Item:
        """
        Apply a partial update as one parameterised UPDATE

        Args:
            db: Database session
            item_id: Item ID
            user: Caller; must own the item
            changes: Mapping of request field to new value; only present keys apply

        Returns:
            Updated item
        """
        item = ItemService.get_owned_item(db, item_id, user)

        changes = {key: value for key, value in changes.items() if key in ITEM_FIELDS}
        if not changes:
            raise ValidationError("No fields to update", code="NO_UPDATES")
        if "name" in changes and not changes["name"]:
            raise ValidationError("Name is required", code="MISSING_NAME")
        if "metadata" in changes and changes["metadata"] is None:
            changes["metadata"] = {}

        values = {ITEM_FIELDS[key]: value for key, value in changes.items()}
        values[Item.updated_at] = utc_now()
        db.query(Item).filter(Item.id == item.id).update(values, synchronize_session=False)
        db.commit()
        db.refresh(item)
        return item

    @staticmethod
    def purge_upload_blobs(storage: StorageClient, uploads: Iterable[Upload]) -> int:
        """
        Best-effort removal of upload blobs from object storage

        Failures are logged and skipped; the blob is left orphaned.

        Returns:
            Number of blobs deleted
        """
        deleted = 0
        for upload in uploads:
            try:
                storage.delete(storage.key_from_url(upload.file_url))
                deleted += 1
            except (StorageError, StorageNotConfiguredError) as exc:
                logger.error(f"Error deleting file {upload.file_url} from Spaces: {exc.message}")
        return deleted

    @staticmethod
    def delete_item(db: Session, item_id: int, user: User, storage: StorageClient) -> None:
        item = ItemService.get_owned_item(db, item_id, user)

        uploads = db.query(Upload).filter(Upload.item_id == item.id).all()
        ItemService.purge_upload_blobs(storage, uploads)

        db.delete(item)
        db.commit()
        logger.info(f"Deleted item {item_id} ({len(uploads)} uploads)")

    @staticmethod
    def decode_content(content: str) -> bytes:
        """Strict base64; line breaks and other whitespace in the payload are ignored."""
        try:
            return base64.b64decode("".join(content.split()), validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError("Content must be base64 encoded", code="INVALID_CONTENT")

    @staticmethod
    def upload_file(
        db: Session,
        item_id: int,
        user: User,
        storage: StorageClient,
        filename: Optional[str],
        content: Optional[str],
        content_type: Optional[str] = None
    ) -> Upload:
        """
        Store a blob under items/<id>/<epoch-ms>-<filename> and record it

        A storage failure aborts the request; no upload row is written.
        """
        if not filename or not content:
            raise ValidationError("Filename and content are required", code="MISSING_FIELDS")

        item = ItemService.get_owned_item(db, item_id, user)

        body = ItemService.decode_content(content)
        if len(body) > settings.MAX_UPLOAD_BYTES:
            raise ValidationError("File too large", code="FILE_TOO_LARGE")

        key = f"items/{item.id}/{int(time.time() * 1000)}-{filename}"
        file_url = storage.upload(key, body, content_type or "application/octet-stream")

        upload = Upload(
            user_id=user.id,
            item_id=item.id,
            filename=filename,
            file_url=file_url,
            file_size=len(body),
            content_type=content_type,
        )
        db.add(upload)
        db.commit()
        db.refresh(upload)
        return upload

    @staticmethod
    def list_uploads(db: Session, item_id: int, user: User) -> List[Upload]:
        item = ItemService.get_owned_item(db, item_id, user)
        return (
            db.query(Upload)
            .filter(Upload.item_id == item.id)
            .order_by(Upload.created_at.desc(), Upload.id.desc())
            .all()
        )


item_service = ItemService()
