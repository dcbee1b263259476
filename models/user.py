"""
Merchant account model
"""
import uuid
from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from core.database import Base

ROLE_USER = "USER"
ROLE_ADMIN = "ADMIN"

PLAN_FREE = "FREE"
PLAN_BASIC = "BASIC"
PLAN_PRO = "PRO"


class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True, index=True, default=lambda: uuid.uuid4().hex)

    # Basic info
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=True)  # null for provider-only accounts
    full_name = Column(String(255), nullable=False)
    avatar = Column(Text, nullable=True)

    # Account type
    role = Column(String(20), default=ROLE_USER, nullable=False)  # USER, ADMIN
    plan_type = Column(String(20), default=PLAN_FREE, nullable=False)  # FREE, BASIC, PRO
    provider = Column(String(20), default="email", nullable=False)  # email, google, apple

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def to_dict(self):
        """Convert to dict for API responses"""
        return {
            "id": self.id,
            "email": self.email,
            "fullName": self.full_name,
            "role": self.role,
            "planType": self.plan_type,
            "avatar": self.avatar,
            "provider": self.provider,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def to_auth_dict(self):
        return {
            "userId": self.id,
            "email": self.email,
            "fullName": self.full_name,
            "role": self.role,
            "planType": self.plan_type,
        }
