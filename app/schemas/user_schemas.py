from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class RoleUpdate(BaseModel):
    role: str


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    display_name: Optional[str] = Field(default=None, alias="displayName")
    photo_url: Optional[str] = Field(default=None, alias="photoURL")


def serialize_profile(profile) -> dict:
    return {
        "uid": profile.uid,
        "email": profile.email,
        "displayName": profile.display_name,
        "photoURL": profile.photo_url,
        "role": profile.role,
        "createdAt": profile.created_at,
    }
