from pydantic import BaseModel, Field
from typing import List, Optional

class PackageIn(BaseModel):
    name: str = ""
    description: str = ""
    price: float = 0
    features: List[str] = Field(default_factory=list)
    icon: str = ""
    gradient: str = ""
    imageUrl: str = ""
    gallery: List[str] = Field(default_factory=list)

class AddressIn(BaseModel):
    street: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str = ""

class HoursIn(BaseModel):
    weekdays: str = ""
    weekends: str = ""

class ContactSettingsIn(BaseModel):
    phone: str = ""
    email: str = ""
    address: AddressIn = Field(default_factory=AddressIn)
    hours: HoursIn = Field(default_factory=HoursIn)

class EventTypeImagesIn(BaseModel):
    images: List[str] = Field(default_factory=list)
    description: Optional[str] = None

class ClosedDayIn(BaseModel):
    date: str
    reason: str = ""

class CashFlowEntryIn(BaseModel):
    type: str
    amount: float = Field(gt=0)
    description: str
    category: str = "other"
    date: str
    notes: str = ""
    bookingId: str = ""
