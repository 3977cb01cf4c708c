# app/services/entitlement_store.py
import logging
import secrets
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlmodel import Session, select

from app.constants.item_types import ITEM_TYPE_DETAILS
from app.constants.order_status import ALLOWED_TRANSITIONS, COMPLETED, PENDING
from app.exceptions import (
    InvalidItemType,
    InvalidRequest,
    InvalidTransition,
    NotFound,
)
from app.models.manual_order_key import ManualOrderKey
from app.models.order import Order
from app.models.order_counter import OrderCounter
from app.models.order_item import OrderItem
from app.models.unit import Unit
from app.models.user import UserProfile
from app.services.order_event_service import log_order_event
from app.utils.token import ADMIN_ROLE, USER_ROLE, Identity, token_for

logger = logging.getLogger(__name__)

COUNTER_START = 1000
CODE_PREFIXES = {
    "order": "ORD",
    "manual": "MAN",
}

KEY_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
KEY_LENGTH = 12


# -------- SEQUENCES --------

def next_order_code(session: Session, sequence: str = "order") -> str:
    """
    Allocate the next human readable code (ORD-1001, MAN-1001, ...).

    The counter row is locked for the rest of the caller's transaction,
    so two concurrent creators never read the same value.
    """
    prefix = CODE_PREFIXES[sequence]

    counter = session.exec(
        select(OrderCounter)
        .where(OrderCounter.name == sequence)
        .with_for_update()
    ).first()

    if counter is None:
        counter = OrderCounter(name=sequence, value=COUNTER_START)

    counter.value += 1
    session.add(counter)
    session.flush()

    return f"{prefix}-{counter.value}"


def generate_key(length: int = KEY_LENGTH) -> str:
    return "".join(secrets.choice(KEY_ALPHABET) for _ in range(length))


# -------- LINE ITEM SNAPSHOTS --------

def snapshot_line(unit: Unit, item_type: str) -> dict:
    details = ITEM_TYPE_DETAILS.get(item_type)
    if details is None:
        raise InvalidItemType()

    price_field, medium, kind = details
    price = getattr(unit, price_field)
    if price is None:
        raise InvalidItemType(f"{unit.code} is not sold as {medium} {kind}")

    return {
        "unitId": unit.id,
        "unitCode": unit.code,
        "itemName": f"{unit.title} - {medium} {kind}",
        "price": price,
        "itemType": item_type,
        "title": unit.title,
        "sinhalaTitle": unit.sinhala_title,
    }


def snapshot_lines(session: Session, lines: Iterable[Tuple[str, str]]) -> Tuple[List[dict], float]:
    """Copy name and price of each (unit_id, item_type) into a line item snapshot."""
    lines = list(lines)
    if not lines:
        raise InvalidRequest("Cart is empty")

    if len(set(lines)) != len(lines):
        raise InvalidRequest("Duplicate items in cart")

    snapshots = []
    for unit_id, item_type in lines:
        unit = session.get(Unit, unit_id)
        if not unit:
            raise NotFound(f"Unit {unit_id} not found")
        snapshots.append(snapshot_line(unit, item_type))

    total = sum(s["price"] for s in snapshots)
    return snapshots, total


def items_from_snapshots(snapshots: List[dict]) -> List[OrderItem]:
    return [
        OrderItem(
            position=position,
            unit_id=s["unitId"],
            unit_code=s["unitCode"],
            item_name=s["itemName"],
            price=s["price"],
            item_type=s["itemType"],
            title=s["title"],
            sinhala_title=s.get("sinhalaTitle") or "",
        )
        for position, s in enumerate(snapshots)
    ]


# -------- PROFILES --------

def ensure_profile(session: Session, identity: Identity) -> UserProfile:
    """Create the profile on first sight. The role of an existing profile is never rewritten here."""
    profile = session.get(UserProfile, identity.uid)
    if profile:
        return profile

    profile = UserProfile(
        uid=identity.uid,
        email=identity.email,
        display_name=identity.display_name or None,
        role=identity.role,
    )
    session.add(profile)
    session.flush()
    return profile


def set_user_role(session: Session, uid: str, role: str, admin: Identity) -> UserProfile:
    """
    Trusted role-write path. Only the profile mirror changes here; the user
    picks up the new claim by refreshing their own token.
    """
    if role not in (USER_ROLE, ADMIN_ROLE):
        raise InvalidRequest(f"Unknown role: {role}")

    profile = session.get(UserProfile, uid)
    if not profile:
        raise NotFound("User not found")

    profile.role = role
    session.add(profile)
    session.commit()
    session.refresh(profile)

    logger.info(f"Role of {uid} set to {role} by {admin.uid}")
    return profile


def update_profile(
    session: Session,
    identity: Identity,
    display_name: Optional[str] = None,
    photo_url: Optional[str] = None,
) -> UserProfile:
    profile = ensure_profile(session, identity)

    if display_name:
        profile.display_name = display_name

    if photo_url is not None:
        profile.photo_url = photo_url or None

    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


def refresh_token(session: Session, identity: Identity) -> str:
    """Reissue the caller's own token with the role mirrored on their profile."""
    profile = ensure_profile(session, identity)
    session.commit()
    session.refresh(profile)

    return token_for(
        uid=profile.uid,
        email=profile.email,
        display_name=profile.display_name or "",
        role=profile.role,
    )


def list_profiles(session: Session) -> List[UserProfile]:
    return session.exec(select(UserProfile).order_by(UserProfile.created_at)).all()


# -------- UNITS --------

def list_units(session: Session, category: Optional[str] = None) -> List[Unit]:
    query = select(Unit)
    if category:
        query = query.where(Unit.category == category)
    return session.exec(query.order_by(Unit.order_index, Unit.code)).all()


def create_unit(session: Session, data: dict) -> Unit:
    if session.get(Unit, data["id"]):
        raise InvalidRequest(f"Unit {data['id']} already exists")

    unit = Unit(**data)
    session.add(unit)
    session.commit()
    session.refresh(unit)
    return unit


def update_unit(session: Session, unit_id: str, changes: dict) -> Unit:
    unit = session.get(Unit, unit_id)
    if not unit:
        raise NotFound(f"Unit {unit_id} not found")

    # past orders keep their own snapshots, so prices can change freely
    for field, value in changes.items():
        setattr(unit, field, value)
    unit.updated_at = datetime.utcnow()

    session.add(unit)
    session.commit()
    session.refresh(unit)
    return unit


# -------- ORDERS --------

def create_order(
    session: Session,
    identity: Identity,
    lines: Iterable[Tuple[str, str]],
    now: Optional[datetime] = None,
) -> Order:
    now = now or datetime.utcnow()

    try:
        profile = ensure_profile(session, identity)
        snapshots, total = snapshot_lines(session, lines)

        order = Order(
            order_code=next_order_code(session, "order"),
            user_id=identity.uid,
            user_display_name=identity.display_name or profile.display_name or "",
            user_email=identity.email or profile.email,
            total=total,
            status=PENDING,
            created_at=now,
            updated_at=now,
        )
        order.items = items_from_snapshots(snapshots)
        session.add(order)
        session.flush()

        log_order_event(
            session,
            order_id=order.id,
            event_type="order_placed",
            label=f"Order {order.order_code} placed",
            created_by=identity.uid,
            meta={"total": total, "items": len(snapshots)},
        )

        session.commit()
    except Exception:
        session.rollback()
        raise

    session.refresh(order)
    logger.info(f"Order {order.order_code} placed by {identity.uid}")
    return order


def get_order(session: Session, order_id: str) -> Optional[Order]:
    return session.get(Order, order_id)


def require_order(session: Session, order_id: str) -> Order:
    order = session.get(Order, order_id)
    if not order:
        raise NotFound("Order not found.")
    return order


def list_orders_for_user(session: Session, user_id: str, status: Optional[str] = None) -> List[Order]:
    query = select(Order).where(Order.user_id == user_id)
    if status:
        query = query.where(Order.status == status)
    return session.exec(query.order_by(Order.created_at.desc())).all()


def list_completed_orders_for_user(session: Session, user_id: str) -> List[Order]:
    return list_orders_for_user(session, user_id, status=COMPLETED)


def find_item(order: Order, unit_id: str, item_type: str) -> Optional[OrderItem]:
    for item in order.items:
        if item.unit_id == unit_id and item.item_type == item_type:
            return item
    return None


def update_order_status(
    session: Session,
    order_id: str,
    new_status: str,
    actor: Identity,
    now: Optional[datetime] = None,
) -> Tuple[Order, bool]:
    """
    Move an order along its status machine in one locked transaction.

    Returns (order, changed). Completing stamps completed_at in the same
    commit; an order that is already in the target state is left untouched.
    """
    if new_status not in ALLOWED_TRANSITIONS:
        raise InvalidRequest(f"Unknown order status: {new_status}")

    now = now or datetime.utcnow()

    try:
        order = session.exec(
            select(Order).where(Order.id == order_id).with_for_update()
        ).first()

        if not order:
            raise NotFound("Order not found.")

        if order.status == new_status:
            session.rollback()
            return order, False

        if new_status not in ALLOWED_TRANSITIONS[order.status]:
            raise InvalidTransition(
                f"Cannot move order from {order.status} to {new_status}"
            )

        previous = order.status
        order.status = new_status
        order.updated_at = now
        if new_status == COMPLETED:
            order.completed_at = now

        session.add(order)
        log_order_event(
            session,
            order_id=order.id,
            event_type=f"order_{new_status}",
            label=f"Order {order.order_code} {new_status}",
            created_by=actor.uid,
            meta={"from": previous, "to": new_status},
        )
        session.commit()
    except Exception:
        session.rollback()
        raise

    session.refresh(order)
    logger.info(f"Order {order.order_code} moved {previous} -> {new_status} by {actor.uid}")
    return order, True


def lock_item(session: Session, item_id: int) -> Optional[OrderItem]:
    """Fresh read of a line item, locked until the caller commits or rolls back."""
    return session.exec(
        select(OrderItem)
        .where(OrderItem.id == item_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).first()


def mark_item_file(session: Session, item: OrderItem, user_file_key: Optional[str]):
    item.user_file_key = user_file_key
    session.add(item)
    session.commit()


def mark_item_downloaded(session: Session, item: OrderItem):
    # the copy is gone once downloaded, so its key goes with it
    item.downloaded = True
    item.user_file_key = None
    session.add(item)
    session.commit()


# -------- MANUAL ORDER KEYS --------

def create_manual_order_key(
    session: Session,
    admin: Identity,
    lines: Iterable[Tuple[str, str]],
    now: Optional[datetime] = None,
) -> ManualOrderKey:
    now = now or datetime.utcnow()

    try:
        snapshots, total = snapshot_lines(session, lines)

        key = generate_key()
        while session.exec(select(ManualOrderKey).where(ManualOrderKey.key == key)).first():
            key = generate_key()

        manual_key = ManualOrderKey(
            key=key,
            order_code=next_order_code(session, "manual"),
            items=snapshots,
            total=total,
            created_at=now,
            created_by=admin.uid,
        )
        session.add(manual_key)
        session.commit()
    except Exception:
        session.rollback()
        raise

    session.refresh(manual_key)
    logger.info(f"Manual key {manual_key.order_code} created by {admin.uid}")
    return manual_key


def list_manual_order_keys(session: Session, redeemed: Optional[bool] = None) -> List[ManualOrderKey]:
    query = select(ManualOrderKey)
    if redeemed is True:
        query = query.where(ManualOrderKey.redeemed_by.is_not(None))
    elif redeemed is False:
        query = query.where(ManualOrderKey.redeemed_by.is_(None))
    return session.exec(query.order_by(ManualOrderKey.created_at.desc())).all()
