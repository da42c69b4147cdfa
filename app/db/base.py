from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models in the booking service.
    """
    pass


# Import ORM models so that Base.metadata is aware of them
# This import should stay at the bottom to avoid circular dependencies.
import app.models.booking_page  # noqa: E402,F401
import app.models.meeting  # noqa: E402,F401
import app.models.notification  # noqa: E402,F401
