"""
Pydantic schemas for booking validation and serialization.
"""

from datetime import datetime
from typing import ClassVar, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StrictInt, field_validator, model_validator

from ceart_api.models.booking import BookingStatus
from ceart_api.models.event import MAX_DB_INT, EventStatus, as_utc


def _required_text(v: str, field: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError(f"{field} cannot be empty")
    return v


class RequesterInfo(BaseModel):
    """Contact details of the person holding a booking."""

    name: str
    email: str
    phone: Optional[str] = None
    notes: Optional[str] = None


class BookingCreate(BaseModel):
    """Schema for creating a new booking."""

    model_config = ConfigDict(extra="forbid")

    event_id: StrictInt = Field(..., gt=0, le=MAX_DB_INT, description="ID of the event to book")
    name: str = Field(..., min_length=1, max_length=255, description="Requester name")
    email: EmailStr = Field(..., description="Requester email")
    phone: Optional[str] = Field(None, max_length=50, description="Requester phone")
    notes: Optional[str] = Field(None, max_length=1000, description="Additional notes")
    qty: StrictInt = Field(1, ge=1, le=MAX_DB_INT, description="Number of capacity units to book")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _required_text(v, "name")

    def requester(self) -> RequesterInfo:
        return RequesterInfo(name=self.name, email=self.email, phone=self.phone, notes=self.notes)


class BookingPatch(BaseModel):
    """
    Partial update of a booking: status transitions, resizing and contact
    details. Only fields present in the request body are applied.
    """

    model_config = ConfigDict(extra="forbid")

    UPDATABLE_FIELDS: ClassVar[Tuple[str, ...]] = ("status", "qty", "name", "email", "phone", "notes")
    NON_NULLABLE_FIELDS: ClassVar[Tuple[str, ...]] = ("status", "qty", "name", "email")

    status: Optional[BookingStatus] = None
    qty: Optional[StrictInt] = Field(None, ge=1, le=MAX_DB_INT)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _required_text(v, "name") if v is not None else v

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        for name in self.NON_NULLABLE_FIELDS:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    @property
    def is_empty(self) -> bool:
        return not self.model_fields_set

    def has(self, name: str) -> bool:
        return name in self.model_fields_set

    def apply_to(self, booking) -> List[str]:
        """Copy the provided fields onto ``booking``; returns the names applied."""
        applied = []
        for name in self.UPDATABLE_FIELDS:
            if name in self.model_fields_set:
                setattr(booking, name, getattr(self, name))
                applied.append(name)
        return applied


class BookingResponse(BaseModel):
    """Schema for booking response."""

    id: int
    event_id: int
    name: str
    email: str
    phone: Optional[str] = None
    notes: Optional[str] = None
    qty: int
    status: BookingStatus
    event_title: Optional[str] = None
    event_start_at: Optional[datetime] = None
    event_status: Optional[EventStatus] = None
    venue_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("event_start_at", "created_at", "updated_at")
    @classmethod
    def stored_as_utc(cls, v):
        return as_utc(v) if v is not None else v

    class Config:
        from_attributes = True


class BookingListResponse(BaseModel):
    """Paginated list of bookings."""

    items: List[BookingResponse]
    total: int = Field(ge=0)
    page: int = Field(ge=1)
    page_size: int = Field(ge=1)
    total_pages: int = Field(ge=0)
    has_next: bool
    has_prev: bool


class BookingDeleteResponse(BaseModel):
    """Response for a deleted booking."""

    success: bool = True
    message: str
    booking: BookingResponse
