from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field


# Auth / Tokens

class TokenResponse(BaseModel):
    """Token response for successful login"""
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field("bearer", description="Token type")


# Users

class UserCreateRequest(BaseModel):
    """Request model to register a new user"""
    email: EmailStr = Field(..., description="User email")
    password: str = Field(..., min_length=6, description="Plaintext password (min 6 chars)")
    username: Optional[str] = Field(None, max_length=255, description="Display name")


class UserResponse(BaseModel):
    """User response without sensitive fields"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: EmailStr
    username: Optional[str] = None
    created_at: datetime


# Notes
#
# Note fields carry no length or format limits: empty or missing title/color
# fall back to "Untitled" and the default swatch, anything else is stored as is.

class NoteCreateRequest(BaseModel):
    """Create note request"""
    title: Optional[str] = None
    content: Optional[str] = Field(None, description="Note content")
    color: Optional[str] = Field(None, description="Display color tag")


class NoteUpdateRequest(BaseModel):
    """
    Partial update. Only fields present in the body are applied;
    an explicit null reminder clears it.
    """
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    content: Optional[str] = None
    color: Optional[str] = None
    is_archived: Optional[bool] = Field(
        None, validation_alias=AliasChoices("is_archived", "archived", "isArchived")
    )
    reminder: Optional[datetime] = None


class NoteResponse(BaseModel):
    """Note response model"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content: str
    color: str
    is_archived: bool
    is_deleted: bool
    reminder: Optional[datetime] = None
    user_id: int
    created_at: datetime
    updated_at: datetime


class TrashResponse(BaseModel):
    """Acknowledgement of a soft delete, with the trashed note"""
    msg: str = "Note moved to trash"
    note: NoteResponse


class DestroyResponse(BaseModel):
    """Acknowledgement of a permanent delete"""
    msg: str = "Note permanently deleted"
    id: int
