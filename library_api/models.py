import enum
import math
from datetime import datetime, timezone
from library_api.database import Base
from sqlalchemy.orm import relationship
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Integer,
    String,
)


SECONDS_PER_DAY = 24 * 60 * 60
MIN_BORROW_QUANTITY = 1
MAX_BORROW_QUANTITY = 100


def utcnow():
    """Current time as a naive UTC datetime, the form every column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value):
    """Convert an aware datetime to naive UTC; naive values are taken as UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def as_utc(value):
    """Mark a stored naive UTC datetime as UTC for output."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class BorrowStatus(str, enum.Enum):
    ACTIVE = "active"
    RETURNED = "returned"
    OVERDUE = "overdue"


OUTSTANDING_STATUSES = (BorrowStatus.ACTIVE, BorrowStatus.OVERDUE)


def is_available(copies):
    return copies > 0


def resolve_status(status, due_date, now=None):
    """
    Status a borrow should have at ``now``.

    An active borrow whose due date has passed becomes overdue. Returned
    and overdue borrows are left as they are.
    """
    now = now or utcnow()
    if status == BorrowStatus.ACTIVE and now > due_date:
        return BorrowStatus.OVERDUE
    return status


def is_overdue(status, due_date, now=None):
    if status == BorrowStatus.RETURNED:
        return False
    return (now or utcnow()) > due_date


def days_remaining(status, due_date, now=None):
    """Whole days until the due date, rounded up; negative once past due."""
    if status == BorrowStatus.RETURNED:
        return 0
    delta = due_date - (now or utcnow())
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)


class Book(Base):
    """
    Book model representing a library title and its copy count.

    Business Logic:
    - copies is the number of units currently on the shelf
    - available mirrors copies > 0; it is stored only so it can be filtered
      on and is re-derived by the inventory service on every change
    """

    __tablename__ = "books"
    __table_args__ = (
        CheckConstraint("copies >= 0", name="ck_books_copies_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False, index=True)
    author = Column(String(100), nullable=False, index=True)
    genre = Column(String(50), nullable=False, index=True)
    isbn = Column(String, unique=True, nullable=False, index=True)
    description = Column(String(1000), nullable=False)
    copies = Column(Integer, nullable=False, default=1)
    available = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def available_copies(self):
        return self.copies


class Borrow(Base):
    """
    Borrow model representing copies of one book lent until a due date.

    Relationships:
    - book_id refers to a Book but carries no foreign key constraint;
      deleting a book leaves its borrows in place

    Business Logic:
    - status moves active -> overdue lazily, once the due date has passed
    - returned is terminal and is the only status with a returned_date
    """

    __tablename__ = "borrows"
    __table_args__ = (
        CheckConstraint(
            f"quantity >= {MIN_BORROW_QUANTITY} AND quantity <= {MAX_BORROW_QUANTITY}",
            name="ck_borrows_quantity_range",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    book_id = Column(Integer, nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    due_date = Column(DateTime, nullable=False, index=True)
    status = Column(
        Enum(
            BorrowStatus,
            name="borrow_status",
            native_enum=False,
            length=20,
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        default=BorrowStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    returned_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    book = relationship(
        "Book",
        primaryjoin="foreign(Borrow.book_id) == Book.id",
        viewonly=True,
    )
