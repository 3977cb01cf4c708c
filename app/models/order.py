from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import CheckConstraint
from typing import List, Optional
from datetime import datetime
from uuid import uuid4

from app.models.order_item import OrderItem


class Order(SQLModel, table=True):
    __table_args__ = (
        CheckConstraint(
            "(status = 'completed') = (completed_at IS NOT NULL)",
            name="ck_order_completed_at_matches_status",
        ),
    )

    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    order_code: str = Field(index=True)

    user_id: str = Field(index=True)
    user_display_name: str = ""
    user_email: str = ""

    total: float
    status: str = Field(default="pending", index=True)
    source: str = Field(default="checkout")  # checkout | manual_key

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    # set exactly once, together with status == "completed"
    completed_at: Optional[datetime] = None

    items: List["OrderItem"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"order_by": "OrderItem.position"},
    )
