from sqlmodel import SQLModel, Field


class OrderCounter(SQLModel, table=True):
    __tablename__ = "order_counter"

    name: str = Field(primary_key=True)  # "order" | "manual"
    value: int = Field(default=1000)
