"""User schemas."""

from datetime import datetime

from pydantic import BaseModel


class UserResponse(BaseModel):
    """Schema for user response."""

    email: str
    name: str
    created_at: datetime

    model_config = {"from_attributes": True}
