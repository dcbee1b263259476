"""
Item model: a merchant product with its 3D model files and public AR slug
"""
from datetime import datetime
import uuid
from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from core.database import Base
from models.scan_event import ScanEvent


class Item(Base):
    __tablename__ = "items"

    id = Column(String(64), primary_key=True, index=True, default=lambda: uuid.uuid4().hex)
    merchant_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    slug = Column(String(100), unique=True, index=True, nullable=False)
    description = Column(String(500), nullable=True)

    # Model assets
    model_url = Column(Text, nullable=False)  # GLB
    usdz_url = Column(Text, nullable=True)  # iOS Quick Look
    thumbnail_url = Column(Text, nullable=True)

    # Naive UTC
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    scan_events = relationship(ScanEvent, back_populates="item", cascade="all, delete-orphan", passive_deletes=True)

    def to_dict(self):
        return {
            "id": self.id,
            "merchantId": self.merchant_id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "modelUrl": self.model_url,
            "usdzUrl": self.usdz_url,
            "thumbnailUrl": self.thumbnail_url,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
