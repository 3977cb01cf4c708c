from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.database import get_session
from app.schemas.key_schemas import ManualKeyCreate, serialize_key
from app.services.entitlement_store import create_manual_order_key, list_manual_order_keys
from app.dependencies.admin import require_admin
from app.utils.token import Identity

router = APIRouter()


@router.post("", status_code=201)
def generate_manual_key(
    payload: ManualKeyCreate,
    session: Session = Depends(get_session),
    admin: Identity = Depends(require_admin),
):
    manual_key = create_manual_order_key(session, admin, payload.lines())
    return serialize_key(manual_key)


@router.get("")
def key_history(
    redeemed: Optional[bool] = None,
    session: Session = Depends(get_session),
    _: Identity = Depends(require_admin),
):
    return [serialize_key(k) for k in list_manual_order_keys(session, redeemed=redeemed)]
