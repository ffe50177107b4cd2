"""User ORM model: marketplace account with a role."""
import enum
import uuid

from sqlalchemy import Boolean, Column, String, Enum as SAEnum

from app.database import Base, UTCDateTime, utcnow


class UserRole(str, enum.Enum):
    admin = "admin"
    store = "store"
    user = "user"


class User(Base):
    __tablename__ = "users"

    user_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), nullable=False, unique=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone_number = Column(String(40), nullable=True)
    role = Column(SAEnum(UserRole), nullable=False, default=UserRole.user)
    password_hash = Column(String(255), nullable=False, default="")
    # Store accounts are created with a temporary password and must replace it.
    password_changed = Column(Boolean, nullable=False, default=True)
    notifications_enabled = Column(Boolean, nullable=False, default=True)
    email_notifications = Column(Boolean, nullable=False, default=True)
    push_notifications = Column(Boolean, nullable=False, default=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)
