"""Contact inquiry request/response schemas."""
import re
import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, computed_field, field_validator

from sitecms.models.contact_inquiry import InquiryPriority, InquiryStatus

SERVICES = (
    "ERP Implementation",
    "Process Automation",
    "Business Consulting",
    "Digital Transformation",
    "System Integration",
    "Training & Support",
    "Custom Development",
    "Other",
)

_NAME_RE = re.compile(r"^[a-zA-Z\s]+$")
_PHONE_RE = re.compile(r"^[+]?[0-9\s\-()]+$")
_PHONE_STRIP_RE = re.compile(r"[^+0-9\s\-()]")


class ContactInquiryCreate(BaseModel):
    name: str = Field(max_length=255)
    email: EmailStr
    company: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=20)
    service: str | None = None
    message: str = Field(min_length=10, max_length=5000)

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = str(v or "").strip()
        if not v:
            raise ValueError("Name is required.")
        if not _NAME_RE.match(v):
            raise ValueError("Name should only contain letters and spaces.")
        return v

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return str(v or "").strip().lower()

    @field_validator("company", mode="before")
    @classmethod
    def normalize_company(cls, v: str | None) -> str | None:
        v = (v or "").strip()
        return v or None

    @field_validator("phone", mode="before")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        v = _PHONE_STRIP_RE.sub("", (v or "").strip())
        if not v:
            return None
        if not _PHONE_RE.match(v):
            raise ValueError("Please provide a valid phone number.")
        return v

    @field_validator("service")
    @classmethod
    def validate_service(cls, v: str | None) -> str | None:
        if v and v not in SERVICES:
            raise ValueError("Please select a valid service option.")
        return v or None

    @field_validator("message", mode="before")
    @classmethod
    def strip_message(cls, v: str) -> str:
        return str(v or "").strip()


class ContactInquiryUpdate(BaseModel):
    status: InquiryStatus | None = None
    priority: InquiryPriority | None = None
    assigned_to: uuid.UUID | None = None
    notes: str | None = Field(None, max_length=5000)


class ContactSubmitted(BaseModel):
    id: uuid.UUID
    reference_number: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ContactInquiryResponse(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    company: str | None = None
    phone: str | None = None
    service: str | None = None
    message: str
    status: InquiryStatus
    priority: InquiryPriority
    source: str
    metadata: dict | None = Field(None, validation_alias="metadata_")
    assigned_to: uuid.UUID | None = None
    notes: str | None = None
    responded_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def reference_number(self) -> str:
        return f"HIS-{self.id.hex[:8].upper()}"
