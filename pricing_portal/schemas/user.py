from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import List, Optional


class CallerIdentity(BaseModel):
    id: Optional[str] = None
    email: Optional[str] = None
    is_admin: bool = False


class UserProfileResponse(BaseModel):
    id: str
    email: str
    company_name: Optional[str] = None
    contact_name: Optional[str] = None
    phone: Optional[str] = None
    role: str
    status: str
    discount_tier: float
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    data: List[UserProfileResponse]


class ClientPreauthorize(BaseModel):
    email: EmailStr
    company_name: str = Field(min_length=1)
    contact_name: Optional[str] = None
    phone: Optional[str] = None
    discount_tier: float = Field(default=0.0, ge=-500, le=100)


class ClientPreauthorizeResponse(BaseModel):
    user: UserProfileResponse
    message: Optional[str] = None
    warning: Optional[str] = None


class UserProfileUpdate(BaseModel):
    # role is not editable
    model_config = ConfigDict(extra="forbid")

    company_name: Optional[str] = Field(default=None, min_length=1)
    contact_name: Optional[str] = None
    phone: Optional[str] = None
    discount_tier: Optional[float] = Field(default=None, ge=-500, le=100)


class MeResponse(BaseModel):
    id: str
    email: Optional[str] = None
    is_admin: bool
    profile: Optional[UserProfileResponse] = None
