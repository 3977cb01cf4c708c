from typing import Optional
from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.database import get_session
from app.services.entitlement_store import list_units

router = APIRouter()


@router.get("")
def get_units(
    category: Optional[str] = None,
    session: Session = Depends(get_session),
):
    return list_units(session, category=category)
