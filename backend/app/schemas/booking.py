from datetime import date
from enum import Enum

from pydantic import BaseModel, EmailStr, Field


class BookingStatus(str, Enum):
    PENDING = "pending"
    PAYMENT_SCREENSHOT_UPLOADED = "payment_screenshot_uploaded"
    PAYMENT_VALIDATED = "payment_validated"
    TICKETED = "ticketed"
    CANCELLED = "cancelled"


class TravelDocument(BaseModel):
    number: str
    expiry_date: date
    issuance_country: str = Field(..., min_length=2, max_length=2)
    nationality: str = Field(..., min_length=2, max_length=2)
    document_type: str = "PASSPORT"


class Traveler(BaseModel):
    first_name: str
    last_name: str
    date_of_birth: date
    gender: str = "MALE"
    email: EmailStr
    phone_country_code: str = "222"
    phone_number: str
    document: TravelDocument | None = None


class BookingContact(BaseModel):
    first_name: str
    last_name: str
    email: EmailStr
    phone_country_code: str = "222"
    phone_number: str
