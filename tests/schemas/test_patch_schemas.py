"""
Tests for request schemas and partial updates.
"""

import pytest
from datetime import datetime, timedelta, timezone
from pydantic import ValidationError

from ceart_api.models.booking import Booking, BookingStatus
from ceart_api.models.event import MAX_DB_INT, Event, EventStatus
from ceart_api.schemas.booking import BookingCreate, BookingPatch
from ceart_api.schemas.event import EventCreate, EventPatch


START = datetime(2030, 5, 17, 19, 0, tzinfo=timezone.utc)


class TestBookingCreate:
    def test_defaults_to_single_unit(self):
        booking = BookingCreate(event_id=1, name=" Ana ", email="ana@example.com")

        assert booking.qty == 1
        assert booking.name == "Ana"
        assert booking.requester().email == "ana@example.com"

    @pytest.mark.parametrize("qty", [0, -3, 1.5, "2", True, 2 ** 31])
    def test_rejects_invalid_qty(self, qty):
        with pytest.raises(ValidationError):
            BookingCreate(event_id=1, name="Ana", email="ana@example.com", qty=qty)

    def test_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            BookingCreate(event_id=1, name="Ana", email="ana@example.com", seats=2)


class TestBookingPatch:
    def test_apply_only_touches_set_fields(self):
        booking = Booking(name="Ana", email="ana@example.com", phone="555", qty=2,
                          status=BookingStatus.CONFIRMED)
        patch = BookingPatch(phone=None, qty=3)

        applied = patch.apply_to(booking)

        assert applied == ["qty", "phone"]
        assert booking.phone is None
        assert booking.qty == 3
        assert booking.name == "Ana"

    def test_null_required_field_rejected(self):
        with pytest.raises(ValidationError):
            BookingPatch(status=None)

    def test_empty_patch(self):
        assert BookingPatch().is_empty is True
        assert BookingPatch(notes="hola").is_empty is False


class TestEventSchemas:
    def test_create_normalizes_to_utc(self):
        local = timezone(timedelta(hours=-6))
        event = EventCreate(
            title="Cine club",
            start_at=datetime(2030, 5, 17, 13, 0, tzinfo=local),
            end_at=datetime(2030, 5, 17, 15, 0, tzinfo=local),
            capacity_total=40,
        )

        assert event.start_at == START
        assert event.start_at.tzinfo == timezone.utc
        assert event.status == EventStatus.SCHEDULED

    def test_create_rejects_inverted_window(self):
        with pytest.raises(ValidationError):
            EventCreate(title="Cine club", start_at=START, end_at=START - timedelta(hours=1),
                        capacity_total=40)

    def test_patch_apply_copies_tags(self):
        event = Event(title="Cine club", tags=["cine"], capacity_total=40)
        tags = ["cine", "clásico"]

        applied = EventPatch(tags=tags).apply_to(event)

        assert applied == ["tags"]
        assert event.tags == tags
        assert event.tags is not tags
        assert event.title == "Cine club"

    def test_patch_allows_clearing_optional_fields(self):
        patch = EventPatch(summary=None, venue_id=None)

        assert patch.has("summary")
        assert patch.has("venue_id")
        assert not patch.has("title")

    @pytest.mark.parametrize("field", ["title", "capacity_total", "start_at", "status"])
    def test_patch_rejects_null_for_required(self, field):
        with pytest.raises(ValidationError):
            EventPatch(**{field: None})

    def test_patch_rejects_capacity_beyond_integer_column(self):
        with pytest.raises(ValidationError):
            EventPatch(capacity_total=MAX_DB_INT + 1)

        assert EventPatch(capacity_total=MAX_DB_INT).capacity_total == MAX_DB_INT

    def test_patch_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            EventPatch(capacity=10)
