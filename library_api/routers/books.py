from typing import List, Optional
from sqlalchemy.orm import Session
from fastapi import APIRouter, Depends, Query, status

from library_api import schemas
from library_api.database import get_db
from library_api.inventory import BookInventoryService
from library_api.pagination import PageParams, build_pagination, pagination_params


router = APIRouter(prefix="/books", tags=["books"])


def get_inventory(db: Session = Depends(get_db)) -> BookInventoryService:
    return BookInventoryService(db)


@router.get(
    "",
    response_model=schemas.ApiResponse[List[schemas.Book]],
    response_model_exclude_unset=True,
)
def list_books(
    genre: Optional[str] = Query(None, min_length=1),
    available: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, min_length=1, description="Title, author or ISBN"),
    paging: PageParams = Depends(pagination_params),
    inventory: BookInventoryService = Depends(get_inventory),
):
    """
    List books with optional filtering and pagination.

    Args:
        genre: Exact genre to match
        available: Only books that are (or are not) on the shelf
        search: Case-insensitive substring of title, author or ISBN
        paging: page and limit query parameters
        inventory: Inventory service bound to the request session

    Returns:
        Envelope with the page of books and the pagination block
    """
    books, total = inventory.list_books(
        genre=genre,
        available=available,
        search=search,
        offset=paging.offset,
        limit=paging.limit,
    )
    return {"success": True, "data": books, "pagination": build_pagination(paging, total)}


@router.get(
    "/available",
    response_model=schemas.ApiResponse[List[schemas.Book]],
    response_model_exclude_unset=True,
)
def list_available_books(inventory: BookInventoryService = Depends(get_inventory)):
    """Books with at least one copy on the shelf."""
    return {"success": True, "data": inventory.list_available()}


@router.get(
    "/{book_id}",
    response_model=schemas.ApiResponse[schemas.Book],
    response_model_exclude_unset=True,
)
def get_book(book_id: int, inventory: BookInventoryService = Depends(get_inventory)):
    """
    Retrieve a single book by id.

    Args:
        book_id: Id of the book
        inventory: Inventory service bound to the request session

    Returns:
        Envelope with the book

    Raises:
        NotFoundError: 404 if no book has this id
    """
    return {"success": True, "data": inventory.get_book(book_id)}


@router.post(
    "",
    response_model=schemas.ApiResponse[schemas.Book],
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
)
def create_book(
    book: schemas.BookCreate, inventory: BookInventoryService = Depends(get_inventory)
):
    """
    Create a new book.

    Business Logic:
    - ISBN must be unique across all books
    - available is derived from copies, never taken from the body

    Raises:
        DuplicateKeyError: 400 if the ISBN is already used
    """
    created = inventory.create_book(book)
    return {"success": True, "message": "Book created successfully", "data": created}


@router.put(
    "/{book_id}",
    response_model=schemas.ApiResponse[schemas.Book],
    response_model_exclude_unset=True,
)
def update_book(
    book_id: int,
    book_update: schemas.BookUpdate,
    inventory: BookInventoryService = Depends(get_inventory),
):
    """
    Replace a book's fields.

    The body is validated exactly like a create. Changing the ISBN to one
    that another book already has fails with 400.
    """
    updated = inventory.update_book(book_id, book_update)
    return {"success": True, "message": "Book updated successfully", "data": updated}


@router.delete(
    "/{book_id}",
    response_model=schemas.ApiResponse[None],
    response_model_exclude_unset=True,
)
def delete_book(book_id: int, inventory: BookInventoryService = Depends(get_inventory)):
    """
    Delete a book.

    Borrow records pointing at the book are left untouched.
    """
    inventory.delete_book(book_id)
    return {"success": True, "message": "Book deleted successfully"}
