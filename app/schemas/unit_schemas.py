from sqlmodel import SQLModel
from typing import Optional


class UnitCreate(SQLModel):
    id: str
    code: str
    title: str
    sinhala_title: str = ""
    category: str
    price_sinhala_note: Optional[float] = None
    price_sinhala_assignment: Optional[float] = None
    price_english_note: Optional[float] = None
    price_english_assignment: Optional[float] = None
    order_index: int = 0


class UnitUpdate(SQLModel):
    code: Optional[str] = None
    title: Optional[str] = None
    sinhala_title: Optional[str] = None
    category: Optional[str] = None
    price_sinhala_note: Optional[float] = None
    price_sinhala_assignment: Optional[float] = None
    price_english_note: Optional[float] = None
    price_english_assignment: Optional[float] = None
    order_index: Optional[int] = None
