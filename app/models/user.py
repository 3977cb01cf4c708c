from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class UserProfile(SQLModel, table=True):
    __tablename__ = "user_profile"

    uid: str = Field(primary_key=True)
    email: str = Field(index=True)
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    # mirror of the identity provider's role claim; authorization reads the claim
    role: str = Field(default="user")
    created_at: datetime = Field(default_factory=datetime.utcnow)
