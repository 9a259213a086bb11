"""
Book inventory: copy counts, availability and book CRUD.

``BookInventoryService`` is the only code that changes ``Book.copies`` and
``Book.available``. Copy changes are issued as single conditional UPDATE
statements so two requests borrowing the same book cannot both succeed
and drive the count below zero.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from library_api import models
from library_api import schemas
from library_api.errors import DuplicateKeyError, NotFoundError


logger = logging.getLogger(__name__)


class BookInventoryService:
    """Owns the copies/availability invariant of every Book."""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def can_borrow(book: models.Book, quantity: int = 1) -> bool:
        return bool(book.available) and book.copies >= quantity

    def borrow(self, book: models.Book, quantity: int = 1) -> bool:
        """
        Take ``quantity`` copies off the shelf.

        Returns False, leaving the book unchanged, when the copies are not
        there. The decrement is guarded in SQL as well, so a concurrent
        borrow that got there first also makes this return False.

        The change is flushed, not committed; the caller owns the
        transaction.
        """
        if not self.can_borrow(book, quantity):
            return False

        remaining = models.Book.copies - quantity
        updated = (
            self.db.query(models.Book)
            .filter(
                models.Book.id == book.id,
                models.Book.available.is_(True),
                models.Book.copies >= quantity,
            )
            .update(
                {models.Book.copies: remaining, models.Book.available: remaining > 0},
                synchronize_session=False,
            )
        )
        self.db.refresh(book)
        if not updated:
            logger.info("Borrow of %s copies of book %s lost to a concurrent update", quantity, book.id)
            return False
        return True

    def return_copies(self, book: models.Book, quantity: int) -> models.Book:
        """
        Put ``quantity`` copies back and mark the book available.

        Any return restores availability, even if the count was already
        zero before. Flushed, not committed.
        """
        (
            self.db.query(models.Book)
            .filter(models.Book.id == book.id)
            .update(
                {models.Book.copies: models.Book.copies + quantity, models.Book.available: True},
                synchronize_session=False,
            )
        )
        self.db.refresh(book)
        return book

    def get_book(self, book_id: int) -> models.Book:
        book = self.db.get(models.Book, book_id)
        if book is None:
            raise NotFoundError("Book not found")
        return book

    def list_books(
        self,
        genre: Optional[str] = None,
        available: Optional[bool] = None,
        search: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[List[models.Book], int]:
        """
        Filter, count and page the catalogue, newest first.

        search is a case-insensitive substring match on title, author and
        isbn; genre must match exactly.
        """
        query = self.db.query(models.Book)

        if genre:
            query = query.filter(models.Book.genre == genre)
        if available is not None:
            query = query.filter(models.Book.available.is_(available))
        if search:
            query = query.filter(
                or_(
                    models.Book.title.icontains(search, autoescape=True),
                    models.Book.author.icontains(search, autoescape=True),
                    models.Book.isbn.icontains(search, autoescape=True),
                )
            )

        total = query.count()
        books = (
            query.order_by(models.Book.created_at.desc(), models.Book.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return books, total

    def list_available(self) -> List[models.Book]:
        return (
            self.db.query(models.Book)
            .filter(models.Book.available.is_(True))
            .order_by(models.Book.title)
            .all()
        )

    def create_book(self, data: schemas.BookCreate) -> models.Book:
        self._ensure_isbn_free(data.isbn)

        book = models.Book(**data.model_dump())
        book.available = models.is_available(book.copies)
        self.db.add(book)
        self._commit()
        self.db.refresh(book)
        logger.info("Created book %s (isbn %s, %s copies)", book.id, book.isbn, book.copies)
        return book

    def update_book(self, book_id: int, data: schemas.BookUpdate) -> models.Book:
        book = self.get_book(book_id)

        update_data = data.model_dump()
        if update_data["isbn"] != book.isbn:
            self._ensure_isbn_free(update_data["isbn"])

        for key, value in update_data.items():
            setattr(book, key, value)
        book.available = models.is_available(book.copies)

        self._commit()
        self.db.refresh(book)
        logger.info("Updated book %s", book.id)
        return book

    def delete_book(self, book_id: int) -> None:
        """
        Delete a book.

        Borrows that still refer to the book are not checked or touched.
        """
        book = self.get_book(book_id)
        self.db.delete(book)
        self.db.commit()
        logger.info("Deleted book %s", book_id)

    def _ensure_isbn_free(self, isbn: str) -> None:
        existing = self.db.query(models.Book).filter(models.Book.isbn == isbn).first()
        if existing is not None:
            raise DuplicateKeyError("ISBN already exists")

    def _commit(self) -> None:
        # The unique index still catches a duplicate isbn inserted between
        # the pre-check and this commit.
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            if "isbn" in str(exc.orig).lower():
                raise DuplicateKeyError("ISBN already exists") from exc
            raise
