from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.order import Order


class OrderItem(SQLModel, table=True):
    __tablename__ = "order_item"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: str = Field(foreign_key="order.id", index=True)
    position: int = Field(default=0)

    # snapshot of the unit at purchase time
    unit_id: str = Field(index=True)
    unit_code: str
    item_name: str
    price: float
    item_type: str
    title: str
    sinhala_title: str = ""

    # per-user copy in blob storage, None when the master was missing
    user_file_key: Optional[str] = None
    downloaded: bool = Field(default=False)

    order: Optional["Order"] = Relationship(back_populates="items")

    def snapshot(self) -> dict:
        return {
            "unitId": self.unit_id,
            "unitCode": self.unit_code,
            "itemName": self.item_name,
            "price": self.price,
            "itemType": self.item_type,
            "title": self.title,
            "sinhalaTitle": self.sinhala_title,
        }
