import datetime as dt
from pydantic import BaseModel, Field
from typing import List, Optional

EVENT_TYPES = ["wedding", "corporate", "birthday", "anniversary", "graduation", "other"]
PAYMENT_METHODS = ["cash", "card", "check", "bank_transfer"]

class LocationIn(BaseModel):
    address: str
    lat: Optional[float] = None
    lng: Optional[float] = None

class BookingCreate(BaseModel):
    customerName: str = ""
    customerEmail: str = ""  # plain str to allow .local and other dev domains
    customerPhone: str = ""
    eventType: str
    eventDate: dt.date
    eventTime: str = Field(pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    guestCount: int = Field(ge=1)
    location: LocationIn
    packageId: str = ""
    packageName: str = ""
    serviceType: str = ""
    specialRequests: str = ""
    dietaryRestrictions: str = ""
    basePrice: float = Field(default=0, ge=0)
    foodAddonsPrice: float = Field(default=0, ge=0)
    servicesAddonsPrice: float = Field(default=0, ge=0)
    discount: float = Field(default=0, ge=0)
    downpayment: float = Field(default=0, ge=0)

class ManagerBookingCreate(BookingCreate):
    """Book on behalf of a client; userId links to an existing customer account."""
    userId: Optional[str] = None

class CancelIn(BaseModel):
    reason: str = ""
    version: Optional[int] = None

class ConfirmIn(BaseModel):
    version: Optional[int] = None

class CompleteIn(BaseModel):
    finalPayment: float = Field(default=0, ge=0)
    paymentMethod: str = "cash"
    version: Optional[int] = None

class PaymentIn(BaseModel):
    amountPaid: float = Field(ge=0)
    paymentMethod: str = "cash"
    version: Optional[int] = None

class ExpenseIn(BaseModel):
    amount: float = Field(gt=0)
    description: str
    category: str
    date: Optional[dt.date] = None

class StaffAssignIn(BaseModel):
    staffId: str

class RescheduleIn(BaseModel):
    newDate: dt.date
    newTime: str = Field(pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    fee: float = Field(default=0, ge=0)
    reason: str = ""

class BudgetIn(BaseModel):
    budget: float = Field(ge=0)
    version: Optional[int] = None

class PriceAdjustIn(BaseModel):
    finalPrice: Optional[float] = Field(default=None, ge=0)
    discount: Optional[float] = Field(default=None, ge=0)
    priceNotes: Optional[str] = None

class BookingOut(BaseModel):
    id: str
    status: str
    paymentStatus: str
    eventType: str
    eventDate: str
    eventTime: str
    guestCount: int
    customerName: str
    customerEmail: str
    packageName: str
    totalPrice: float
    discount: float
    finalPrice: Optional[float] = None
    amountPaid: float = 0
    expensesTotal: float = 0
    cancelReason: str = ""
    assignedStaff: List[str] = Field(default_factory=list)
    version: int = 1
