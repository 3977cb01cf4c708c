from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class CartLine(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    unit_id: str = Field(alias="unitId")
    item_type: str = Field(alias="itemType")


class PlaceOrderRequest(BaseModel):
    items: List[CartLine]

    def lines(self):
        return [(line.unit_id, line.item_type) for line in self.items]


class FulfillOrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: Optional[str] = Field(default=None, alias="orderId")


class OrderStatusUpdate(BaseModel):
    status: str


def serialize_item(item) -> dict:
    data = item.snapshot()
    data["userFileUrl"] = item.user_file_key
    data["downloaded"] = item.downloaded
    return data


def serialize_order(order) -> dict:
    return {
        "id": order.id,
        "orderCode": order.order_code,
        "userId": order.user_id,
        "userDisplayName": order.user_display_name,
        "userEmail": order.user_email,
        "items": [serialize_item(i) for i in order.items],
        "total": order.total,
        "status": order.status,
        "source": order.source,
        "createdAt": order.created_at,
        "completedAt": order.completed_at,
    }


class OrderEventRead(BaseModel):
    event_type: str
    label: str
    meta: Optional[dict] = None
    created_at: datetime
    created_by: str
