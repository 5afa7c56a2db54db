"""Item and upload schemas"""

from pydantic import AliasChoices, BaseModel, Field
from typing import Any, Dict, Optional


class ItemCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class ItemUpdate(BaseModel):
    """Partial item update; only fields present in the body are applied"""
    name: Optional[str] = None
    description: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class UploadCreate(BaseModel):
    """Binary content delivered base64-encoded in the JSON body"""
    filename: Optional[str] = None
    content: Optional[str] = None
    content_type: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("content_type", "contentType"),
    )
