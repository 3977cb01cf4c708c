# app/services/file_gateway.py
import logging
from datetime import datetime
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError
from sqlmodel import Session

from app.config import settings
from app.constants.item_types import file_name_for
from app.constants.order_status import COMPLETED
from app.exceptions import (
    FileNotFound,
    Forbidden,
    InvalidItemType,
    ItemNotFound,
    OrderNotCompleted,
    WindowExpired,
)
from app.models.order import Order
from app.services import access_window
from app.services.entitlement_store import (
    find_item,
    list_completed_orders_for_user,
    lock_item,
    mark_item_downloaded,
    mark_item_file,
    require_order,
)
from app.services.order_event_service import log_order_event
from app.services.r2_client import BlobStore
from app.utils.token import Identity

logger = logging.getLogger(__name__)


def master_file_key(unit_id: str, item_type: str) -> Optional[str]:
    file_name = file_name_for(item_type)
    if not file_name:
        return None
    return f"units/{unit_id}/{file_name}"


def user_file_key(user_id: str, order_id: str, unit_id: str, item_type: str) -> str:
    return f"user-content/{user_id}/{order_id}/{unit_id}-{item_type}.pdf"


def materialize(session: Session, blob: BlobStore, order: Order) -> int:
    """
    Copy each purchased master file into the buyer's own folder.

    A missing master, or a blob call that fails or times out, leaves that
    item without a copy and moves on. Items already copied or already
    downloaded are skipped, so running this again never resurrects a
    revoked file. Each item row is re-read under a lock before it is
    checked, so a concurrent consume either waits for the copy or is seen.
    Returns the number of files copied.
    """
    order_id, user_id = order.id, order.user_id
    item_ids = [item.id for item in order.items]
    copied = 0

    for item_id in item_ids:
        item = lock_item(session, item_id)
        if item is None or item.user_file_key or item.downloaded:
            session.rollback()
            continue

        source = master_file_key(item.unit_id, item.item_type)
        if not source:
            logger.warning(f"Unknown item type {item.item_type} on order {order_id}, skipping")
            session.rollback()
            continue

        dest = user_file_key(user_id, order_id, item.unit_id, item.item_type)

        try:
            if not blob.exists(source):
                logger.warning(f"Original file not found, skipping copy: {source}")
                session.rollback()
                continue

            blob.copy(source, dest)
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"Copy of {source} for order {order_id} failed: {e}")
            session.rollback()
            continue

        mark_item_file(session, item, dest)
        copied += 1

    logger.info(f"Materialized {copied}/{len(item_ids)} files for order {order_id}")
    return copied


def _owned_order(session: Session, order_id: str, requester: Identity) -> Order:
    order = require_order(session, order_id)
    if order.user_id != requester.uid:
        raise Forbidden()
    return order


def grant_download(
    session: Session,
    blob: BlobStore,
    order_id: str,
    unit_id: str,
    item_type: str,
    requester: Identity,
    now: Optional[datetime] = None,
) -> dict:
    """
    Issue a short-lived signed URL to the master file of a purchased item.

    The access window is recomputed here from completed_at on every call;
    the URL's own TTL is layered underneath it.
    """
    now = now or datetime.utcnow()

    source = master_file_key(unit_id, item_type)
    if not source:
        raise InvalidItemType()

    order = _owned_order(session, order_id, requester)

    if order.status != COMPLETED:
        raise OrderNotCompleted()

    item = find_item(order, unit_id, item_type)
    if not item:
        raise ItemNotFound()

    orders = list_completed_orders_for_user(session, requester.uid)
    expiry = access_window.effective_expiry(orders, unit_id, item_type)
    if not access_window.is_accessible(expiry, now):
        raise WindowExpired()

    if not blob.exists(source):
        raise FileNotFound()

    ttl = settings.DOWNLOAD_URL_TTL_SECONDS
    url = blob.presigned_url(source, expires=ttl)

    log_order_event(
        session,
        order_id=order.id,
        event_type="download_granted",
        label=f"Download link issued for {item.item_name}",
        created_by=requester.uid,
        meta={"unitId": unit_id, "itemType": item_type},
    )
    session.commit()

    return {
        "downloadUrl": url,
        "expiresIn": ttl,
        "accessExpiresAt": expiry,
    }


def consume_and_revoke(
    session: Session,
    blob: BlobStore,
    order_id: str,
    unit_id: str,
    item_type: str,
    requester: Identity,
) -> dict:
    """Delete the buyer's copy and flag the item downloaded. Safe to call repeatedly."""
    order = _owned_order(session, order_id, requester)

    item = find_item(order, unit_id, item_type)
    if not item:
        raise ItemNotFound()

    try:
        item = lock_item(session, item.id)
        had_copy = item.user_file_key is not None
        if had_copy:
            blob.delete(item.user_file_key)

        mark_item_downloaded(session, item)
    except Exception:
        session.rollback()
        raise

    if had_copy:
        return {"message": "File successfully deleted after download."}
    return {"message": "File was already deleted."}
