"""
Scan Event Model
One record per AR viewer session opened for an item
"""
from datetime import datetime
import uuid
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from core.database import Base


class ScanEvent(Base):
    """Track individual AR views of an item"""
    __tablename__ = "scan_events"

    id = Column(String(64), primary_key=True, index=True, default=lambda: uuid.uuid4().hex)
    item_id = Column(String(64), ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True)

    # Viewer info
    device_type = Column(String(50), nullable=True)  # ios, android, desktop, other
    session_id = Column(String(100), nullable=False, index=True)  # client generated, per browser session
    user_agent = Column(String(500), nullable=True)

    # Engagement, overwritten by heartbeat updates
    duration = Column(Integer, default=0, nullable=False)

    # Naive UTC
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    item = relationship("Item", back_populates="scan_events")

    __table_args__ = (
        CheckConstraint("duration >= 0", name="ck_scan_events_duration_non_negative"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "itemId": self.item_id,
            "deviceType": self.device_type,
            "sessionId": self.session_id,
            "userAgent": self.user_agent,
            "duration": self.duration,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
