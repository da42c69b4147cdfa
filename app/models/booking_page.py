from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.db.types import UTCDateTime, utcnow


class BookingPage(Base):
    """
    Public booking configuration owned by a single user.

    Exposes bookable meeting types and the owner's weekly availability
    under a unique URL slug.
    """

    __tablename__ = "booking_pages"

    id = Column(Integer, primary_key=True, index=True)

    owner_id = Column(String(64), nullable=False, index=True)
    owner_name = Column(String(255), nullable=True)
    owner_email = Column(String(255), nullable=True)

    slug = Column(String(120), nullable=False, unique=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # IANA timezone name, e.g. "Europe/Berlin"
    timezone = Column(String(64), nullable=False, default="UTC")
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    custom_fields = Column(JSON, nullable=False, default=list)
    settings = Column(JSON, nullable=False, default=dict)

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    meeting_types = relationship(
        "MeetingType",
        back_populates="booking_page",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="MeetingType.id",
    )
    availability = relationship(
        "AvailabilityRule",
        back_populates="booking_page",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="AvailabilityRule.day_of_week",
    )

    def __repr__(self) -> str:
        return f"<BookingPage id={self.id} slug={self.slug} owner_id={self.owner_id}>"


class MeetingType(Base):
    """
    A named, fixed-duration kind of appointment offered on a booking page.
    """

    __tablename__ = "meeting_types"

    id = Column(Integer, primary_key=True)
    booking_page_id = Column(
        Integer,
        ForeignKey("booking_pages.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Public identifier referenced by booking requests
    type_id = Column(String(64), nullable=False)
    name = Column(String(255), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    buffer_minutes = Column(Integer, nullable=False, default=0)
    locations = Column(JSON, nullable=False, default=list)

    booking_page = relationship("BookingPage", back_populates="meeting_types")

    __table_args__ = (
        UniqueConstraint(
            "booking_page_id",
            "type_id",
            name="uq_meeting_types_page_type_id",
        ),
    )


class AvailabilityRule(Base):
    """
    Weekly working window for one day of the week (0=Sunday .. 6=Saturday).
    """

    __tablename__ = "availability_rules"

    id = Column(Integer, primary_key=True)
    booking_page_id = Column(
        Integer,
        ForeignKey("booking_pages.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    day_of_week = Column(Integer, nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)
    buffer_minutes = Column(Integer, nullable=False, default=0)

    booking_page = relationship("BookingPage", back_populates="availability")

    __table_args__ = (
        UniqueConstraint(
            "booking_page_id",
            "day_of_week",
            name="uq_availability_rules_page_day",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<AvailabilityRule page={self.booking_page_id} day={self.day_of_week} "
            f"{self.start_time}-{self.end_time} available={self.is_available}>"
        )
