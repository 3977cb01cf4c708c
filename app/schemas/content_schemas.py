from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class ItemAccessRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # optional so missing fields surface as 400 rather than 422
    order_id: Optional[str] = Field(default=None, alias="orderId")
    unit_id: Optional[str] = Field(default=None, alias="unitId")
    item_type: Optional[str] = Field(default=None, alias="itemType")


class RedeemKeyRequest(BaseModel):
    key: Optional[str] = None
