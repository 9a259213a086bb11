from datetime import datetime
from typing import Generic, List, Optional, TypeVar
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_serializer
from pydantic.alias_generators import to_camel

from library_api.models import (
    MAX_BORROW_QUANTITY,
    MIN_BORROW_QUANTITY,
    BorrowStatus,
    as_utc,
    days_remaining,
    is_overdue,
)


class CamelModel(BaseModel):
    """
    Base for every schema on the wire.

    JSON keys are camelCase (dueDate, totalPages); requests may use either
    camelCase or the snake_case field names. from_attributes lets the
    schemas read SQLAlchemy objects directly.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


class BookBase(CamelModel):
    """Common book fields and their limits."""

    title: str = Field(..., min_length=1, max_length=200)
    author: str = Field(..., min_length=1, max_length=100)
    genre: str = Field(..., min_length=1, max_length=50)
    isbn: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1, max_length=1000)
    copies: int = Field(1, ge=0)


class BookCreate(BookBase):
    """
    Schema for creating a book.

    available is never accepted from the client; it follows copies.
    """

    pass


class BookUpdate(BookBase):
    """
    Schema for replacing a book's fields.

    PUT carries the full record and is validated exactly like a create.
    """

    pass


class Book(BookBase):
    """Schema for book responses."""

    id: int
    available: bool
    available_copies: int
    created_at: datetime
    updated_at: datetime

    @field_serializer("created_at", "updated_at")
    def serialize_timestamp(self, value: datetime) -> datetime:
        return as_utc(value)


class BookBrief(CamelModel):
    """The subset of a book embedded in borrow responses."""

    id: int
    title: str
    author: str
    isbn: str


class BorrowCreate(CamelModel):
    """
    Schema for borrowing copies of a book.

    The due date only has to parse here; the lending service rejects dates
    that are not in the future.
    """

    book_id: int = Field(..., gt=0)
    quantity: int = Field(..., ge=MIN_BORROW_QUANTITY, le=MAX_BORROW_QUANTITY)
    due_date: datetime


class Borrow(CamelModel):
    """
    Schema for borrow responses.

    is_overdue and days_remaining are computed at serialization time and
    never stored.
    """

    id: int
    book_id: int
    quantity: int
    due_date: datetime
    status: BorrowStatus
    returned_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    book: Optional[BookBrief] = None

    @field_serializer("due_date", "returned_date", "created_at", "updated_at")
    def serialize_timestamp(self, value: Optional[datetime]) -> Optional[datetime]:
        """Stored values are naive UTC; send them with an explicit offset."""
        return as_utc(value)

    @computed_field
    @property
    def is_overdue(self) -> bool:
        return is_overdue(self.status, self.due_date)

    @computed_field
    @property
    def days_remaining(self) -> int:
        return days_remaining(self.status, self.due_date)


class BorrowSummary(CamelModel):
    """One row of the per-book borrow summary."""

    book_id: int
    book_title: str
    isbn: str
    total_quantity_borrowed: int
    active_borrows: int
    overdue_borrows: int


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class FieldError(CamelModel):
    field: str
    message: str


DataT = TypeVar("DataT")


class ApiResponse(CamelModel, Generic[DataT]):
    """
    Envelope shared by every response, successful or not.

    Endpoints are registered with response_model_exclude_unset so keys
    that were never filled in are left out of the JSON.
    """

    success: bool = True
    message: Optional[str] = None
    data: Optional[DataT] = None
    error: Optional[str] = None
    errors: Optional[List[FieldError]] = None
    pagination: Optional[Pagination] = None
