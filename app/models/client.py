import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, String

from app.db.base import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Client(Base):
    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=_new_id)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)

    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    va_name = Column(String, nullable=False)
    hire_type = Column(String, nullable=False)

    # Stamped from referral attribution at registration, never updated
    affiliate_id = Column(String, nullable=True, index=True)

    is_hired = Column(Boolean, nullable=False, default=False)
    is_paid = Column(Boolean, nullable=False, default=False)
