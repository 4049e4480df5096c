from pydantic import BaseModel, Field
from typing import Any, Optional


class BootstrapAdminRequest(BaseModel):
    # Any JSON scalar is accepted and stringified by the bootstrap operation
    username: Any = None
    password: Any = None
    full_name: Any = Field(None, alias="fullName")

    class Config:
        populate_by_name = True


class CreateUserRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    full_name: Optional[str] = Field(None, alias="fullName")
    role: Optional[str] = None
    job_title: Optional[str] = Field(None, alias="jobTitle")
    department: Optional[str] = None
    shift_id: Optional[str] = Field(None, alias="shiftId")

    class Config:
        populate_by_name = True


class DeleteUserRequest(BaseModel):
    user_id: Optional[str] = Field(None, alias="userId")

    class Config:
        populate_by_name = True


class ResetPasswordRequest(BaseModel):
    email: Optional[str] = None
    redirect_to: Optional[str] = Field(None, alias="redirectTo")

    class Config:
        populate_by_name = True


class AccountOut(BaseModel):
    id: str
    username: Optional[str] = None
    email: Optional[str] = None
    role: str
    company_id: Optional[str] = None


class ImportRowResult(BaseModel):
    row: int
    name: str
    email: str
    status: str  # "success" | "error"
    message: Optional[str] = None
