# app/services/access_window.py
"""
Access window arithmetic.

A completed order unlocks each of its items for ACCESS_WINDOW_HOURS after
``completed_at``. When the same (unit_id, item_type) was bought in several
orders the furthest expiry wins. Everything here is pure; callers pass ``now``
and the gateway evaluates it on every grant, so a client countdown is only a
display of these values.
"""
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from app.config import settings
from app.constants.order_status import COMPLETED
from app.models.order import Order


def access_window() -> timedelta:
    return timedelta(hours=settings.ACCESS_WINDOW_HOURS)


def expiry_of(order: Order) -> Optional[datetime]:
    if order.status != COMPLETED or order.completed_at is None:
        return None
    return order.completed_at + access_window()


def effective_expiry(orders: Iterable[Order], unit_id: str, item_type: str) -> Optional[datetime]:
    expiries = [
        expiry_of(order)
        for order in orders
        if any(i.unit_id == unit_id and i.item_type == item_type for i in order.items)
    ]
    expiries = [e for e in expiries if e is not None]
    return max(expiries) if expiries else None


def is_accessible(expiry: Optional[datetime], now: datetime) -> bool:
    return expiry is not None and now < expiry


def seconds_remaining(expiry: Optional[datetime], now: datetime) -> int:
    if expiry is None:
        return 0
    return max(0, int((expiry - now).total_seconds()))


def unlocked_content(orders: Iterable[Order], now: datetime) -> List[dict]:
    """One entry per purchased (unit_id, item_type), taken from the order with the latest expiry."""
    latest: Dict[Tuple[str, str], tuple] = {}

    for order in orders:
        expiry = expiry_of(order)
        if expiry is None:
            continue
        for item in order.items:
            key = (item.unit_id, item.item_type)
            if key not in latest or expiry > latest[key][0]:
                latest[key] = (expiry, order, item)

    content = []
    for (unit_id, item_type), (expiry, order, item) in latest.items():
        content.append({
            "orderId": order.id,
            "orderCode": order.order_code,
            "unitId": unit_id,
            "unitCode": item.unit_code,
            "itemType": item_type,
            "itemName": item.item_name,
            "completedAt": order.completed_at,
            "accessExpiresAt": expiry,
            "secondsRemaining": seconds_remaining(expiry, now),
            "accessible": is_accessible(expiry, now),
            "downloaded": item.downloaded,
        })

    content.sort(key=lambda c: c["accessExpiresAt"], reverse=True)
    return content
