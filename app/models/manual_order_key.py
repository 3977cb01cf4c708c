from datetime import datetime
from typing import List, Optional
from uuid import uuid4

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON


class ManualOrderKey(SQLModel, table=True):
    __tablename__ = "manual_order_key"

    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    key: str = Field(unique=True, index=True)
    order_code: str

    # line item snapshots, same shape as OrderItem.snapshot()
    items: List[dict] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    total: float

    created_at: datetime = Field(default_factory=datetime.utcnow)
    created_by: Optional[str] = None

    redeemed_by: Optional[str] = Field(default=None, index=True)
    redeemed_at: Optional[datetime] = None
    order_id: Optional[str] = None
