from sqlalchemy import JSON, Boolean, Column, Index, Integer, String, Text

from app.db.base import Base
from app.db.types import UTCDateTime, utcnow


class Notification(Base):
    """
    In-app notification addressed to a single user.
    """

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(String(64), nullable=False)
    type = Column(String(32), nullable=False, default="general")
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    data = Column(JSON, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)

    created_at = Column(UTCDateTime, nullable=False, default=utcnow, index=True)

    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "is_read"),
    )

    def __repr__(self) -> str:
        return f"<Notification id={self.id} user_id={self.user_id} type={self.type}>"
