# app/services/key_redemption.py
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlmodel import Session, select

from app.constants.order_status import COMPLETED
from app.exceptions import InvalidRequest, KeyAlreadyRedeemed, KeyNotFound
from app.models.manual_order_key import ManualOrderKey
from app.models.order import Order
from app.services.entitlement_store import ensure_profile, items_from_snapshots
from app.services.order_event_service import log_order_event
from app.utils.token import Identity

logger = logging.getLogger(__name__)


def normalize_key(key: Optional[str]) -> str:
    return (key or "").strip().upper()


def redeem(
    session: Session,
    key: str,
    redeemer: Identity,
    now: Optional[datetime] = None,
) -> Order:
    """
    Turn a one-time manual key into a completed order for ``redeemer``.

    The key row is locked, and the claim itself is a conditional update on
    ``redeemed_by IS NULL``: if a concurrent redeemer got there first the
    update touches no row and the whole transaction rolls back. The order
    and the key marking commit together or not at all.
    """
    normalized = normalize_key(key)
    if not normalized:
        raise InvalidRequest("Missing key")

    now = now or datetime.utcnow()

    try:
        manual_key = session.exec(
            select(ManualOrderKey)
            .where(ManualOrderKey.key == normalized)
            .with_for_update()
        ).first()

        if not manual_key:
            raise KeyNotFound()

        if manual_key.redeemed_by is not None:
            raise KeyAlreadyRedeemed()

        profile = ensure_profile(session, redeemer)

        order = Order(
            order_code=manual_key.order_code,
            user_id=redeemer.uid,
            user_display_name=redeemer.display_name or profile.display_name or "",
            user_email=redeemer.email or profile.email,
            total=manual_key.total,
            status=COMPLETED,
            source="manual_key",
            created_at=now,
            updated_at=now,
            completed_at=now,
        )
        order.items = items_from_snapshots(manual_key.items)
        session.add(order)
        session.flush()

        claimed = session.exec(
            update(ManualOrderKey)
            .where(ManualOrderKey.id == manual_key.id)
            .where(ManualOrderKey.redeemed_by.is_(None))
            .values(redeemed_by=redeemer.uid, redeemed_at=now, order_id=order.id)
        )
        if claimed.rowcount != 1:
            raise KeyAlreadyRedeemed()

        log_order_event(
            session,
            order_id=order.id,
            event_type="key_redeemed",
            label=f"Manual key {manual_key.order_code} redeemed",
            created_by=redeemer.uid,
            meta={"keyId": manual_key.id},
        )

        session.commit()
    except Exception:
        session.rollback()
        raise

    session.refresh(order)
    logger.info(f"Key {order.order_code} redeemed by {redeemer.uid} as order {order.id}")
    return order
