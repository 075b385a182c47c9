"""
Pydantic schemas for venues, events and availability.
"""

from datetime import datetime
from typing import ClassVar, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ceart_api.models.event import MAX_DB_INT, EventStatus, as_utc


class VenueCreate(BaseModel):
    """Schema for creating a venue."""

    name: str = Field(..., min_length=1, max_length=255, description="Venue name")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Venue name cannot be empty")
        return v


class VenueResponse(BaseModel):
    """Schema for venue response."""

    id: int
    name: str
    created_at: datetime

    class Config:
        from_attributes = True


class EventBase(BaseModel):
    """Fields shared by event creation and responses."""

    title: str = Field(..., min_length=1, max_length=255, description="Event title")
    summary: Optional[str] = Field(None, max_length=500, description="Short summary")
    description: Optional[str] = Field(None, description="Full description")
    category: Optional[str] = Field(None, max_length=100, description="Event category")
    tags: List[str] = Field(default_factory=list, description="Free-form tags")
    venue_id: Optional[int] = Field(None, gt=0, le=MAX_DB_INT, description="Venue ID")
    start_at: datetime = Field(..., description="Event start time")
    end_at: datetime = Field(..., description="Event end time")
    capacity_total: int = Field(..., ge=0, le=MAX_DB_INT, description="Total capacity in units")


class EventCreate(EventBase):
    """Schema for creating a new event."""

    model_config = ConfigDict(extra="forbid")

    status: EventStatus = Field(EventStatus.SCHEDULED, description="Initial status")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Title cannot be empty")
        return v

    @field_validator("start_at", "end_at")
    @classmethod
    def normalize_datetime(cls, v):
        return as_utc(v)

    @model_validator(mode="after")
    def validate_window(self):
        if self.start_at >= self.end_at:
            raise ValueError("start_at must be before end_at")
        return self


class EventPatch(BaseModel):
    """
    Partial update of an event.

    Only fields present in the request body are applied. Fields that cannot
    be null in storage reject an explicit null.
    """

    model_config = ConfigDict(extra="forbid")

    UPDATABLE_FIELDS: ClassVar[Tuple[str, ...]] = (
        "title", "summary", "description", "category", "tags",
        "venue_id", "start_at", "end_at", "capacity_total", "status",
    )
    NON_NULLABLE_FIELDS: ClassVar[Tuple[str, ...]] = ("title", "tags", "start_at", "end_at", "capacity_total", "status")

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    summary: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    tags: Optional[List[str]] = None
    venue_id: Optional[int] = Field(None, gt=0, le=MAX_DB_INT)
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    capacity_total: Optional[int] = Field(None, ge=0, le=MAX_DB_INT)
    status: Optional[EventStatus] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if v is not None:
            v = v.strip()
            if not v:
                raise ValueError("Title cannot be empty")
        return v

    @field_validator("start_at", "end_at")
    @classmethod
    def normalize_datetime(cls, v):
        return as_utc(v) if v is not None else v

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

    def apply_to(self, event) -> List[str]:
        """Copy the provided fields onto ``event``; returns the names applied."""
        applied = []
        for name in self.UPDATABLE_FIELDS:
            if name in self.model_fields_set:
                value = getattr(self, name)
                if name == "tags":
                    value = list(value)
                setattr(event, name, value)
                applied.append(name)
        return applied


class EventResponse(BaseModel):
    """Schema for event response."""

    id: int
    title: str
    summary: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    venue_id: Optional[int] = None
    venue_name: Optional[str] = None
    start_at: datetime
    end_at: datetime
    capacity_total: int
    status: EventStatus
    created_at: datetime
    updated_at: datetime

    @field_validator("start_at", "end_at", "created_at", "updated_at")
    @classmethod
    def stored_as_utc(cls, v):
        return as_utc(v)

    class Config:
        from_attributes = True


class EventListResponse(BaseModel):
    """Paginated list of events."""

    items: List[EventResponse]
    total: int = Field(ge=0)
    page: int = Field(ge=1)
    page_size: int = Field(ge=1)
    total_pages: int = Field(ge=0)
    has_next: bool
    has_prev: bool


class AvailabilitySummary(BaseModel):
    """Capacity snapshot of one event, read in a single statement."""

    event_id: int
    capacity_total: int = Field(ge=0)
    reserved_qty: int = Field(ge=0)
    available_qty: int = Field(ge=0)
    is_sold_out: bool
    status: EventStatus
