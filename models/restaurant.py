# models/restaurant.py
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Any, Dict, List, Literal, Optional
import re
from models.user import validate_phone

RESTAURANT_STATUSES = ("pending_approval", "approved", "rejected")

# Every profile field that goes through the approval workflow, in display order.
PROFILE_FIELDS = (
    "name",
    "description",
    "address",
    "phone",
    "email",
    "cuisine",
    "opening_hours",
    "is_open",
    "delivery_radius",
    "minimum_order",
    "delivery_fee",
    "logo",
    "cover_image",
    "pan_number",
    "price_range",
)

PAN_PATTERN = re.compile(r"^[0-9]{9}$")

class RestaurantProfileFields(BaseModel):
    """
    One optional slot per profile field. A slot left unset (or sent as null)
    means "keep the current value".
    """
    name: Optional[str] = Field(None, min_length=2)
    description: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    cuisine: Optional[List[str]] = None
    opening_hours: Optional[Dict[str, Any]] = None
    is_open: Optional[bool] = None
    delivery_radius: Optional[float] = Field(None, ge=0)
    minimum_order: Optional[float] = Field(None, ge=0)
    delivery_fee: Optional[float] = Field(None, ge=0)
    logo: Optional[str] = None
    cover_image: Optional[str] = None
    pan_number: Optional[str] = None
    price_range: Optional[Literal["$", "$$", "$$$", "$$$$"]] = None

    @field_validator("phone")
    @classmethod
    def _phone(cls, v):
        return validate_phone(v)

    @field_validator("pan_number")
    @classmethod
    def _pan(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not PAN_PATTERN.match(v):
            raise ValueError("PAN number must be 9 digits")
        return v

    @field_validator("cuisine", mode="before")
    @classmethod
    def _cuisine(cls, v):
        # the dashboard form sends "Italian, Mexican"
        if isinstance(v, str):
            v = v.split(",")
        if v is None:
            return v
        return [c.strip() for c in v if c and c.strip()]

    def supplied(self) -> Dict[str, Any]:
        """Only the slots the caller actually filled in."""
        return self.model_dump(mode="json", exclude_unset=True, exclude_none=True)

class RestaurantRegister(RestaurantProfileFields):
    name: str = Field(..., min_length=2)
    address: str = Field(..., min_length=1)

class RestaurantOut(BaseModel):
    id: str
    owner_id: str
    name: str
    description: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    cuisine: List[str] = Field(default_factory=list)
    opening_hours: Dict[str, Any] = Field(default_factory=dict)
    is_open: bool = False
    delivery_radius: Optional[float] = None
    minimum_order: Optional[float] = None
    delivery_fee: Optional[float] = None
    logo: Optional[str] = None
    cover_image: Optional[str] = None
    pan_number: Optional[str] = None
    price_range: Optional[str] = None
    status: str = "pending_approval"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

class OwnerProfileOut(RestaurantOut):
    has_pending_changes: bool = False
    pending_approval_id: Optional[str] = None
