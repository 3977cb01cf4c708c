# app/services/fulfillment.py
import logging
from datetime import datetime
from typing import Optional, Tuple

from sqlmodel import Session

from app.constants.order_status import COMPLETED
from app.exceptions import Forbidden
from app.models.order import Order
from app.services.entitlement_store import update_order_status
from app.services.file_gateway import materialize
from app.services.r2_client import BlobStore
from app.utils.token import Identity

logger = logging.getLogger(__name__)


def complete_order(
    session: Session,
    blob: BlobStore,
    order_id: str,
    admin: Identity,
    now: Optional[datetime] = None,
) -> Tuple[Order, int]:
    """
    Mark an order completed and copy its files for the buyer.

    Re-running on a completed order keeps the original completed_at, so the
    access window is never extended. Copying is best-effort and only fills in
    items that still have no file.
    """
    if not admin.is_admin:
        raise Forbidden("Admin access required")

    order, changed = update_order_status(session, order_id, COMPLETED, admin, now=now)
    if not changed:
        logger.info(f"Order {order.order_code} already completed at {order.completed_at}")

    materialized = materialize(session, blob, order)
    return order, materialized
