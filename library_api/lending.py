"""
Lending: the borrow lifecycle and the reads built on top of it.

``LendingService`` keeps a Borrow's status in step with the copy count of
the book it refers to. Every write it performs, the borrow row and the
copy change together, goes out in a single commit.

Overdue detection is lazy. There is no scheduler; an active borrow whose
due date has passed is moved to overdue the next time borrows are read.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session, joinedload

from library_api import models
from library_api.errors import (
    AlreadyReturnedError,
    InvalidDueDateError,
    InvalidQuantityError,
    NotFoundError,
    ValidationFailedError,
)
from library_api.inventory import BookInventoryService
from library_api.models import BorrowStatus, utcnow


logger = logging.getLogger(__name__)

QUANTITY_RANGE_MESSAGE = (
    f"Quantity must be between {models.MIN_BORROW_QUANTITY} and {models.MAX_BORROW_QUANTITY}"
)


@dataclass
class BorrowSummary:
    """Per-book totals over the whole borrow history. Never stored."""

    book_id: int
    book_title: str
    isbn: str
    total_quantity_borrowed: int = 0
    active_borrows: int = 0
    overdue_borrows: int = 0


class LendingService:
    """Coordinates borrows with the inventory of the books they refer to."""

    def __init__(self, db: Session, inventory: Optional[BookInventoryService] = None):
        self.db = db
        self.inventory = inventory or BookInventoryService(db)

    def create_borrow(self, book_id: int, quantity: int, due_date, now=None) -> models.Borrow:
        """
        Lend ``quantity`` copies of a book until ``due_date``.

        Raises:
            ValidationFailedError: quantity outside 1..100
            InvalidDueDateError: the due date is not after now
            NotFoundError: the book does not exist
            InvalidQuantityError: not enough copies on the shelf

        The request itself is checked before the book is looked up, and
        all checks run before anything is written.
        """
        now = now or utcnow()

        if not models.MIN_BORROW_QUANTITY <= quantity <= models.MAX_BORROW_QUANTITY:
            raise ValidationFailedError(
                "Validation errors",
                errors=[{"field": "quantity", "message": QUANTITY_RANGE_MESSAGE}],
            )

        due_date = models.to_naive_utc(due_date)
        if due_date <= now:
            raise InvalidDueDateError("Due date must be in the future")

        book = self.db.get(models.Book, book_id)
        if book is None:
            raise NotFoundError("Book not found")

        if not self.inventory.can_borrow(book, quantity):
            raise InvalidQuantityError(_not_enough_copies(quantity, book.copies))

        borrow = models.Borrow(
            book_id=book.id,
            quantity=quantity,
            due_date=due_date,
            status=BorrowStatus.ACTIVE,
            returned_date=None,
        )
        self.db.add(borrow)
        self.db.flush()

        if not self.inventory.borrow(book, quantity):
            self.db.rollback()
            raise InvalidQuantityError(_not_enough_copies(quantity, book.copies))

        self.db.commit()
        logger.info(
            "Borrow %s created: %s copies of book %s due %s",
            borrow.id, quantity, book.id, due_date.isoformat(),
        )
        return self.get_borrow(borrow.id, now=now)

    def return_borrow(self, borrow_id: int, now=None) -> models.Borrow:
        """
        Mark a borrow returned and put its copies back on the shelf.

        If the book has been deleted in the meantime the borrow is still
        marked returned; there is just no copy count left to restore.
        """
        now = now or utcnow()
        borrow = self._load(borrow_id)

        if borrow.status == BorrowStatus.RETURNED:
            raise AlreadyReturnedError("Books have already been returned")

        borrow.status = BorrowStatus.RETURNED
        borrow.returned_date = now
        self.db.flush()
        self._restore_copies(borrow)
        self.db.commit()

        logger.info("Borrow %s returned (%s copies of book %s)", borrow.id, borrow.quantity, borrow.book_id)
        return self.get_borrow(borrow.id, now=now)

    def delete_borrow(self, borrow_id: int) -> None:
        """Delete a borrow, first restoring its copies if it was never returned."""
        borrow = self._load(borrow_id)

        if borrow.status != BorrowStatus.RETURNED:
            self._restore_copies(borrow)

        self.db.delete(borrow)
        self.db.commit()
        logger.info("Borrow %s deleted", borrow_id)

    def get_borrow(self, borrow_id: int, now=None) -> models.Borrow:
        borrow = self._load(borrow_id, with_book=True)

        status = models.resolve_status(borrow.status, borrow.due_date, now)
        if status != borrow.status:
            borrow.status = status
            self.db.commit()
            borrow = self._load(borrow_id, with_book=True)
        return borrow

    def list_borrows(
        self,
        status: Optional[BorrowStatus] = None,
        book_id: Optional[int] = None,
        offset: int = 0,
        limit: int = 10,
        now=None,
    ) -> Tuple[List[models.Borrow], int]:
        """Filter, count and page borrows, newest first, with their books."""
        self.refresh_overdue(now)

        query = self.db.query(models.Borrow)
        if status is not None:
            query = query.filter(models.Borrow.status == status)
        if book_id is not None:
            query = query.filter(models.Borrow.book_id == book_id)

        total = query.count()
        borrows = (
            query.options(joinedload(models.Borrow.book))
            .order_by(models.Borrow.created_at.desc(), models.Borrow.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return borrows, total

    def list_overdue(self, now=None) -> List[models.Borrow]:
        """Outstanding borrows whose due date is strictly before now."""
        now = now or utcnow()
        self.refresh_overdue(now)

        return (
            self.db.query(models.Borrow)
            .options(joinedload(models.Borrow.book))
            .filter(
                models.Borrow.status.in_(models.OUTSTANDING_STATUSES),
                models.Borrow.due_date < now,
            )
            .order_by(models.Borrow.due_date)
            .all()
        )

    def summarize(self, now=None) -> List[BorrowSummary]:
        """
        Total, active and overdue quantities per book, largest total first.

        Titles and isbns are read from the books at call time. Borrows of
        books that no longer exist are left out.
        """
        self.refresh_overdue(now)

        rows = (
            self.db.query(models.Borrow, models.Book)
            .join(models.Book, models.Book.id == models.Borrow.book_id)
            .order_by(models.Borrow.id)
            .all()
        )

        summaries: Dict[int, BorrowSummary] = {}
        for borrow, book in rows:
            summary = summaries.get(book.id)
            if summary is None:
                summary = summaries[book.id] = BorrowSummary(
                    book_id=book.id, book_title=book.title, isbn=book.isbn
                )
            summary.total_quantity_borrowed += borrow.quantity
            if borrow.status == BorrowStatus.ACTIVE:
                summary.active_borrows += borrow.quantity
            elif borrow.status == BorrowStatus.OVERDUE:
                summary.overdue_borrows += borrow.quantity

        return sorted(summaries.values(), key=lambda s: s.total_quantity_borrowed, reverse=True)

    def refresh_overdue(self, now=None) -> int:
        """Move every active borrow past its due date to overdue. Returns the count."""
        now = now or utcnow()
        updated = (
            self.db.query(models.Borrow)
            .filter(
                models.Borrow.status == BorrowStatus.ACTIVE,
                models.Borrow.due_date < now,
            )
            .update({models.Borrow.status: BorrowStatus.OVERDUE}, synchronize_session="fetch")
        )
        if updated:
            self.db.commit()
            logger.info("Marked %s borrow(s) overdue", updated)
        return updated

    def _load(self, borrow_id: int, with_book: bool = False) -> models.Borrow:
        query = self.db.query(models.Borrow)
        if with_book:
            query = query.options(joinedload(models.Borrow.book))
        borrow = query.filter(models.Borrow.id == borrow_id).first()
        if borrow is None:
            raise NotFoundError("Borrow record not found")
        return borrow

    def _restore_copies(self, borrow: models.Borrow) -> Optional[models.Book]:
        book = self.db.get(models.Book, borrow.book_id)
        if book is None:
            logger.warning(
                "Book %s of borrow %s no longer exists; %s copies not restored",
                borrow.book_id, borrow.id, borrow.quantity,
            )
            return None
        return self.inventory.return_copies(book, borrow.quantity)


def _not_enough_copies(quantity: int, copies: int) -> str:
    return f"Cannot borrow {quantity} copies. Only {copies} copies available."
