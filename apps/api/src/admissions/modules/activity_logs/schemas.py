"""Activity log schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class ActivityLogItem(BaseModel):
    id: int
    created_at: datetime
    user_id: int | None = None
    user: str | None = Field(None, description="Acting user's full name")
    role: str | None = None
    action: str
    details: str | None = None


class ClientLogRequest(BaseModel):
    """Admin action reported by the admin UI."""

    action: str = Field("log", min_length=1, max_length=100)
    details: str = Field("", max_length=5000)


class ClientLogResponse(BaseModel):
    message: str
    logged: bool
