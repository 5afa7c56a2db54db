"""Database models"""

from mobile_api.models.user import User
from mobile_api.models.security import AuthSession
from mobile_api.models.item import Item, Upload

__all__ = ["User", "AuthSession", "Item", "Upload"]
