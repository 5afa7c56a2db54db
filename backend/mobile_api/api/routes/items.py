"""Item routes - CRUD with ownership and file uploads"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Optional

from mobile_api.core.database import get_db
from mobile_api.schemas.item import ItemCreate, ItemUpdate, UploadCreate
from mobile_api.schemas.response import APIResponse
from mobile_api.services.item_service import item_service
from mobile_api.services.storage_service import StorageClient
from mobile_api.api.deps import get_current_user, get_optional_current_user, get_storage
from mobile_api.models.user import User

router = APIRouter()


@router.get("")
def list_items(
    current_user: Optional[User] = Depends(get_optional_current_user),
    db: Session = Depends(get_db)
):
    """
    List items

    Signed-in callers get their own items; anonymous callers get a capped
    list of items without an owner.
    """
    items = item_service.list_items(db, current_user)
    return {
        "success": True,
        "count": len(items),
        "items": [item.to_dict() for item in items]
    }


@router.get("/{item_id}")
def get_item(
    item_id: int,
    current_user: Optional[User] = Depends(get_optional_current_user),
    db: Session = Depends(get_db)
):
    """Get single item by ID"""
    item = item_service.get_readable_item(db, item_id, current_user)
    return {
        "success": True,
        "item": item.to_dict()
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_item(
    body: ItemCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Create new item owned by the caller

    Args:
        body: Name (required), description and metadata
        current_user: Current authenticated user
        db: Database session

    Returns:
        Created item
    """
    item = item_service.create_item(db, current_user, body.name, body.description, body.metadata)
    return {
        "success": True,
        "item": item.to_dict()
    }


@router.put("/{item_id}")
def update_item(
    item_id: int,
    body: ItemUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update item (requires ownership); only fields present in the body change"""
    item = item_service.update_item(db, item_id, current_user, body.model_dump(exclude_unset=True))
    return {
        "success": True,
        "item": item.to_dict()
    }


@router.delete("/{item_id}")
def delete_item(
    item_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: StorageClient = Depends(get_storage)
):
    """
    Delete item (requires ownership)

    Stored blobs are removed best-effort before the rows are deleted.
    """
    item_service.delete_item(db, item_id, current_user, storage)
    return APIResponse(message="Item deleted successfully")


@router.post("/{item_id}/upload")
def upload_file(
    item_id: int,
    body: UploadCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: StorageClient = Depends(get_storage)
):
    """
    Upload a base64-encoded file to object storage and attach it to the item

    Returns:
        Upload record
    """
    upload = item_service.upload_file(
        db,
        item_id,
        current_user,
        storage,
        filename=body.filename,
        content=body.content,
        content_type=body.content_type,
    )
    return {
        "success": True,
        "upload": upload.to_dict()
    }


@router.get("/{item_id}/uploads")
def list_uploads(
    item_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get all uploads for an item (requires ownership)"""
    uploads = item_service.list_uploads(db, item_id, current_user)
    return {
        "success": True,
        "count": len(uploads),
        "uploads": [upload.to_dict() for upload in uploads]
    }
