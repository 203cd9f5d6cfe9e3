from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from consignment.db import get_db
from consignment.ledger import schemas
from consignment.ledger.service import delete_dimension, list_expenses, record_expense

from .common import http_error

router = APIRouter(prefix="/api", tags=["ledger"])


@router.get("/expenses", response_model=List[schemas.ExpenseResponse])
def get_expenses(item_id: Optional[int] = None, general_only: bool = False, db: Session = Depends(get_db)):
    return list_expenses(db, item_id=item_id, general_only=general_only)


@router.post("/expenses", response_model=schemas.ExpenseResponse, status_code=status.HTTP_201_CREATED)
def create_expense(payload: schemas.ExpenseCreate, db: Session = Depends(get_db)):
    try:
        return record_expense(db, payload.model_dump())
    except ValueError as exc:
        raise http_error(exc)


def _delete(kind: str, entity_id: int, db: Session) -> Response:
    try:
        delete_dimension(db, kind, entity_id)
    except ValueError as exc:
        raise http_error(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/brands/{entity_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_brand(entity_id: int, db: Session = Depends(get_db)):
    return _delete("brands", entity_id, db)


@router.delete("/categories/{entity_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(entity_id: int, db: Session = Depends(get_db)):
    return _delete("categories", entity_id, db)


@router.delete("/vendors/{entity_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_vendor(entity_id: int, db: Session = Depends(get_db)):
    return _delete("vendors", entity_id, db)


@router.delete("/clients/{entity_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_client(entity_id: int, db: Session = Depends(get_db)):
    return _delete("clients", entity_id, db)
