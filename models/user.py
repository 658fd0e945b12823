from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Literal, Optional
import re

PHONE_PATTERN = re.compile(r"^[0-9]{10}$")

def validate_phone(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not PHONE_PATTERN.match(value):
        raise ValueError(f"{value} is not a valid phone number! Must be 10 digits.")
    return value

class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1)
    phone: str
    password: str = Field(..., min_length=6)
    # admins are seeded, never self-registered
    role: Literal["customer", "restaurant", "delivery_rider"] = "customer"

    @field_validator("phone")
    @classmethod
    def _phone(cls, v):
        return validate_phone(v)

class UserOut(BaseModel):
    id: str | None = None
    email: str
    name: str | None = None
    phone: str | None = None
    role: str = "customer"

class UserLogin(BaseModel):
    email: EmailStr
    password: str

class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
