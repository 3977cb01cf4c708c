from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.database import get_session
from app.schemas.user_schemas import ProfileUpdate, serialize_profile
from app.services.entitlement_store import ensure_profile, refresh_token, update_profile
from app.utils.token import Identity, get_current_identity

router = APIRouter()


# -------- USER PROFILE --------

@router.get("/me")
def get_my_profile(
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    profile = ensure_profile(session, identity)
    session.commit()
    session.refresh(profile)
    return serialize_profile(profile)


@router.put("/update-profile")
def update_my_profile(
    payload: ProfileUpdate,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    profile = update_profile(session, identity, payload.display_name, payload.photo_url)
    return {"message": "Profile updated successfully", "user": serialize_profile(profile)}


@router.post("/me/token")
def refresh_my_token(
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    """Reissue the caller's token so a role change made by an admin takes effect."""
    token = refresh_token(session, identity)
    return {"access_token": token, "token_type": "bearer"}
