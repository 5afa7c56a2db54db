"""Item and upload models"""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from mobile_api.core.database import Base


class Item(Base):
    """Item model - user_id NULL marks a legacy/public item"""

    __tablename__ = "items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True)
    # "metadata" is reserved on declarative classes
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="items")
    uploads = relationship("Upload", back_populates="item", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_items_user_id', 'user_id'),
        Index('idx_items_created_at', 'created_at'),
    )

    def __repr__(self):
        return f"<Item(id={self.id}, user_id={self.user_id}, name='{self.name}')>"

    def to_dict(self):
        """Convert to dictionary"""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "user_id": self.user_id,
            "metadata": self.metadata_ or {},
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None
        }


class Upload(Base):
    """Upload model - record of a blob placed in object storage"""

    __tablename__ = "uploads"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"))
    item_id = Column(Integer, ForeignKey("items.id", ondelete="CASCADE"))
    filename = Column(String(255), nullable=False)
    file_url = Column(Text, nullable=False)
    file_size = Column(Integer)
    content_type = Column(String(100))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="uploads")
    item = relationship("Item", back_populates="uploads")

    __table_args__ = (
        Index('idx_uploads_user_id', 'user_id'),
        Index('idx_uploads_item_id', 'item_id'),
    )

    def __repr__(self):
        return f"<Upload(id={self.id}, item_id={self.item_id}, filename='{self.filename}')>"

    def to_dict(self):
        """Convert to dictionary"""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "item_id": self.item_id,
            "filename": self.filename,
            "file_url": self.file_url,
            "file_size": self.file_size,
            "content_type": self.content_type,
            "created_at": self.created_at.isoformat() if self.created_at else None
        }
