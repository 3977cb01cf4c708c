import logging

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.database import get_session
from app.schemas.content_schemas import RedeemKeyRequest
from app.schemas.orders_schemas import serialize_order
from app.services.file_gateway import materialize
from app.services.key_redemption import redeem
from app.services.r2_client import BlobStore, get_blob_store
from app.utils.token import Identity, get_current_identity

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/redeem")
def redeem_key(
    payload: RedeemKeyRequest,
    session: Session = Depends(get_session),
    blob: BlobStore = Depends(get_blob_store),
    identity: Identity = Depends(get_current_identity),
):
    order = redeem(session, payload.key, identity)

    # the order is already completed; copies are a follow-up
    materialized = materialize(session, blob, order)

    return {
        "message": "Key redeemed. Your content is unlocked.",
        "order": serialize_order(order),
        "materialized": materialized,
    }
