from pydantic import BaseModel
from typing import List

from app.schemas.orders_schemas import CartLine


class ManualKeyCreate(BaseModel):
    items: List[CartLine]

    def lines(self):
        return [(line.unit_id, line.item_type) for line in self.items]


def serialize_key(manual_key) -> dict:
    return {
        "id": manual_key.id,
        "key": manual_key.key,
        "orderCode": manual_key.order_code,
        "items": manual_key.items,
        "total": manual_key.total,
        "createdAt": manual_key.created_at,
        "redeemedBy": manual_key.redeemed_by,
        "redeemedAt": manual_key.redeemed_at,
        "orderId": manual_key.order_id,
    }
