from typing import List, Optional
from sqlalchemy.orm import Session
from fastapi import APIRouter, Depends, Query, status

from library_api import schemas
from library_api.database import get_db
from library_api.lending import LendingService
from library_api.models import BorrowStatus
from library_api.pagination import PageParams, build_pagination, pagination_params


router = APIRouter(prefix="/borrows", tags=["borrows"])


def get_lending(db: Session = Depends(get_db)) -> LendingService:
    return LendingService(db)


@router.get(
    "",
    response_model=schemas.ApiResponse[List[schemas.Borrow]],
    response_model_exclude_unset=True,
)
def list_borrows(
    status_filter: Optional[BorrowStatus] = Query(None, alias="status"),
    book: Optional[int] = Query(None, gt=0, description="Only borrows of this book id"),
    paging: PageParams = Depends(pagination_params),
    lending: LendingService = Depends(get_lending),
):
    """
    List borrow records, newest first, each with its book.

    Overdue statuses are brought up to date before filtering, so
    ``status=overdue`` includes borrows that only just passed their due date.
    """
    borrows, total = lending.list_borrows(
        status=status_filter,
        book_id=book,
        offset=paging.offset,
        limit=paging.limit,
    )
    return {"success": True, "data": borrows, "pagination": build_pagination(paging, total)}


@router.get(
    "/summary",
    response_model=schemas.ApiResponse[List[schemas.BorrowSummary]],
    response_model_exclude_unset=True,
)
def borrow_summary(lending: LendingService = Depends(get_lending)):
    """Per-book totals: quantity ever borrowed, currently active and overdue."""
    return {"success": True, "data": lending.summarize()}


@router.get(
    "/overdue",
    response_model=schemas.ApiResponse[List[schemas.Borrow]],
    response_model_exclude_unset=True,
)
def overdue_borrows(lending: LendingService = Depends(get_lending)):
    """
    List outstanding borrows whose due date has passed, oldest due first.

    Active borrows that are past due are moved to overdue before the list
    is built.

    Returns:
        Envelope with the overdue borrows and their books
    """
    return {"success": True, "data": lending.list_overdue()}


@router.get(
    "/{borrow_id}",
    response_model=schemas.ApiResponse[schemas.Borrow],
    response_model_exclude_unset=True,
)
def get_borrow(borrow_id: int, lending: LendingService = Depends(get_lending)):
    """
    Retrieve a single borrow record with its book.

    Args:
        borrow_id: Id of the borrow record
        lending: Lending service bound to the request session

    Returns:
        Envelope with the borrow, its status brought up to date

    Raises:
        NotFoundError: 404 if no borrow has this id
    """
    return {"success": True, "data": lending.get_borrow(borrow_id)}


@router.post(
    "",
    response_model=schemas.ApiResponse[schemas.Borrow],
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
)
def create_borrow(
    borrow: schemas.BorrowCreate, lending: LendingService = Depends(get_lending)
):
    """
    Borrow copies of a book.

    Business Logic:
    1. The due date must be in the future (400), checked first
    2. The book must exist (404 otherwise)
    3. It must have at least ``quantity`` copies on the shelf (400)
    4. The borrow row and the copy decrement are committed together

    Args:
        borrow: bookId, quantity and dueDate from the request body
        lending: Lending service bound to the request session

    Returns:
        The created borrow with its book
    """
    created = lending.create_borrow(borrow.book_id, borrow.quantity, borrow.due_date)
    return {"success": True, "message": "Book borrowed successfully", "data": created}


@router.put(
    "/{borrow_id}/return",
    response_model=schemas.ApiResponse[schemas.Borrow],
    response_model_exclude_unset=True,
)
def return_borrow(borrow_id: int, lending: LendingService = Depends(get_lending)):
    """
    Return borrowed copies.

    Raises:
        NotFoundError: 404 if the borrow does not exist
        AlreadyReturnedError: 400 if it was returned before
    """
    returned = lending.return_borrow(borrow_id)
    return {"success": True, "message": "Books returned successfully", "data": returned}


@router.delete(
    "/{borrow_id}",
    response_model=schemas.ApiResponse[None],
    response_model_exclude_unset=True,
)
def delete_borrow(borrow_id: int, lending: LendingService = Depends(get_lending)):
    """Delete a borrow record, restoring its copies if it was still out."""
    lending.delete_borrow(borrow_id)
    return {"success": True, "message": "Borrow record deleted successfully"}
