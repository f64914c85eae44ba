from pydantic import BaseModel, Field
from typing import Optional

class LoginRequest(BaseModel):
    email: str
    password: str

class RegisterRequest(BaseModel):
    email: str
    password: str = Field(min_length=8)
    fullName: str = ""
    phone: str = ""

class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"

class RefreshRequest(BaseModel):
    refresh_token: str

class ProfileUpdate(BaseModel):
    fullName: Optional[str] = None
    phone: Optional[str] = None

class PasswordChange(BaseModel):
    currentPassword: str
    newPassword: str

class UserCreate(BaseModel):
    email: str
    fullName: str = ""
    phone: str = ""
    role: str = "staff"
    tempPassword: Optional[str] = None

class UserUpdate(BaseModel):
    fullName: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    isActive: Optional[bool] = None
