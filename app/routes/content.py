from datetime import datetime

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.database import get_session
from app.exceptions import InvalidRequest
from app.schemas.content_schemas import ItemAccessRequest
from app.services import access_window
from app.services.entitlement_store import list_completed_orders_for_user
from app.services.file_gateway import consume_and_revoke, grant_download
from app.services.r2_client import BlobStore, get_blob_store
from app.utils.token import Identity, get_current_identity

router = APIRouter()


def _require_fields(payload: ItemAccessRequest):
    if not payload.order_id or not payload.unit_id or not payload.item_type:
        raise InvalidRequest("Missing required parameters.")


@router.get("")
def my_unlocked_content(
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    """
    Purchased items with server-computed expiry.
    Clients derive their countdown from accessExpiresAt / serverTime.
    """
    now = datetime.utcnow()
    orders = list_completed_orders_for_user(session, identity.uid)
    return {
        "serverTime": now,
        "items": access_window.unlocked_content(orders, now),
    }


@router.post("/download-link")
def generate_download_link(
    payload: ItemAccessRequest,
    session: Session = Depends(get_session),
    blob: BlobStore = Depends(get_blob_store),
    identity: Identity = Depends(get_current_identity),
):
    _require_fields(payload)
    return grant_download(
        session,
        blob,
        payload.order_id,
        payload.unit_id,
        payload.item_type,
        identity,
    )


@router.post("/consume")
def delete_user_file(
    payload: ItemAccessRequest,
    session: Session = Depends(get_session),
    blob: BlobStore = Depends(get_blob_store),
    identity: Identity = Depends(get_current_identity),
):
    _require_fields(payload)
    return consume_and_revoke(
        session,
        blob,
        payload.order_id,
        payload.unit_id,
        payload.item_type,
        identity,
    )
