from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.database import get_session
from app.schemas.unit_schemas import UnitCreate, UnitUpdate
from app.services.entitlement_store import create_unit, update_unit
from app.dependencies.admin import require_admin
from app.utils.token import Identity

router = APIRouter()


@router.post("", status_code=201)
def add_unit(
    payload: UnitCreate,
    session: Session = Depends(get_session),
    _: Identity = Depends(require_admin),
):
    return create_unit(session, payload.model_dump())


@router.put("/{unit_id}")
def edit_unit(
    unit_id: str,
    payload: UnitUpdate,
    session: Session = Depends(get_session),
    _: Identity = Depends(require_admin),
):
    return update_unit(session, unit_id, payload.model_dump(exclude_unset=True))
