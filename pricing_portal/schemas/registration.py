from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RegistrationCreate(BaseModel):
    email: EmailStr
    company_name: str = Field(min_length=1)
    phone: Optional[str] = None


class RegistrationResponse(BaseModel):
    id: str
    email: str
    company_name: str
    phone: Optional[str] = None
    status: str
    rejection_reason: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    user_id: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class RegistrationListResponse(BaseModel):
    requests: List[RegistrationResponse]


class ApproveRegistrationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    request_id: str = Field(alias="requestId", min_length=1)
    # sent by the admin UI; the stored request is authoritative
    email: Optional[str] = None
    company_name: Optional[str] = None
    phone: Optional[str] = None


class ApprovalResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    warning: Optional[str] = None
    email: str


class RejectRegistrationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    request_id: str = Field(alias="requestId", min_length=1)
    reason: str = ""
