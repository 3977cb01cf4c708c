from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class Unit(SQLModel, table=True):
    # course module, e.g. "BD-M01"
    id: str = Field(primary_key=True)
    code: str = Field(index=True)
    title: str
    sinhala_title: str = ""
    category: str = Field(index=True)

    # None -> this medium/kind is not sold for the unit
    price_sinhala_note: Optional[float] = None
    price_sinhala_assignment: Optional[float] = None
    price_english_note: Optional[float] = None
    price_english_assignment: Optional[float] = None

    order_index: int = Field(default=0)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
