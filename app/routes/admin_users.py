from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.database import get_session
from app.schemas.user_schemas import RoleUpdate
from app.services.entitlement_store import list_profiles, set_user_role
from app.dependencies.admin import require_admin
from app.utils.token import Identity

router = APIRouter()


@router.get("")
def list_users(
    session: Session = Depends(get_session),
    _: Identity = Depends(require_admin),
):
    return list_profiles(session)


@router.patch("/{uid}/role")
def change_role(
    uid: str,
    payload: RoleUpdate,
    session: Session = Depends(get_session),
    admin: Identity = Depends(require_admin),
):
    """The user gets the new claim from POST /users/me/token."""
    profile = set_user_role(session, uid, payload.role, admin)
    return {"uid": profile.uid, "role": profile.role}
