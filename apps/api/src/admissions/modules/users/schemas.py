"""Admin profile schemas."""

from pydantic import BaseModel


class AdminProfileResponse(BaseModel):
    id: int
    fullname: str | None = None
    email: str
    profile_picture: str


class AdminProfileUpdateResponse(BaseModel):
    message: str
    user: AdminProfileResponse
