from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.db.types import UTCDateTime, utcnow


class Meeting(Base):
    """
    A meeting on a user's calendar.

    Every meeting occupies time for its creator and for each attendee with
    a known user id; those intervals are the commitments checked when a
    booking is requested.
    """

    __tablename__ = "meetings"

    id = Column(Integer, primary_key=True, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    start_time = Column(UTCDateTime, nullable=False)
    end_time = Column(UTCDateTime, nullable=False)

    category = Column(String(32), nullable=False, default="meeting")
    location = Column(String(255), nullable=True)
    is_all_day = Column(Boolean, nullable=False, default=False)
    status = Column(String(32), nullable=False, default="busy")

    created_by = Column(String(64), nullable=False, index=True)

    meeting_type = Column(String(32), nullable=False, default="video")
    meeting_link = Column(String(512), nullable=True)
    meeting_code = Column(String(32), nullable=True)
    notes = Column(Text, nullable=True)
    agenda = Column(Text, nullable=True)

    booking_page_id = Column(
        Integer,
        ForeignKey("booking_pages.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    attendees = relationship(
        "MeetingAttendee",
        back_populates="meeting",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="MeetingAttendee.id",
    )

    __table_args__ = (
        Index("ix_meetings_created_by_start", "created_by", "start_time"),
        Index("ix_meetings_start_end", "start_time", "end_time"),
    )

    def __repr__(self) -> str:
        return (
            f"<Meeting id={self.id} created_by={self.created_by} "
            f"{self.start_time}-{self.end_time}>"
        )


class MeetingAttendee(Base):
    __tablename__ = "meeting_attendees"

    id = Column(Integer, primary_key=True)
    meeting_id = Column(
        Integer,
        ForeignKey("meetings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Null for external attendees without an account
    user_id = Column(String(64), nullable=True, index=True)
    email = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    status = Column(String(16), nullable=False, default="pending")
    responded_at = Column(UTCDateTime, nullable=True)

    meeting = relationship("Meeting", back_populates="attendees")
