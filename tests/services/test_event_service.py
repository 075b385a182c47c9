"""
Tests for EventService: event CRUD, admin edits and the venue directory.
"""

import pytest
from datetime import timedelta

from ceart_api.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from ceart_api.models.event import EventStatus
from ceart_api.schemas.event import EventCreate, EventPatch


class TestEventCrud:
    """Test event creation, reads and deletion."""

    def test_create_event_defaults(self, make_event):
        """New events start scheduled with an empty tag list."""
        event = make_event(capacity_total=10)

        assert event.id is not None
        assert event.status == EventStatus.SCHEDULED
        assert event.soldout_by_ledger is False
        assert event.tags == []

    def test_create_event_with_venue(self, event_service, make_event):
        venue = event_service.create_venue("Sala Carlos Chávez")

        event = make_event(venue_id=venue.id)

        assert event.venue_id == venue.id
        assert event.venue_name == "Sala Carlos Chávez"

    def test_create_event_unknown_venue(self, make_event):
        with pytest.raises(NotFoundError):
            make_event(venue_id=77)

    def test_get_event(self, event_service, make_event):
        created = make_event(title="Danza contemporánea", category="danza")

        event = event_service.get_event(created.id)

        assert event.title == "Danza contemporánea"
        assert event.category == "danza"

    def test_get_event_missing(self, event_service):
        with pytest.raises(NotFoundError):
            event_service.get_event(555)

    def test_list_events_ordered_and_filtered(self, event_service, make_event, event_start):
        later = make_event(title="Cine club", category="cine", start_at=event_start + timedelta(days=2),
                           end_at=event_start + timedelta(days=2, hours=2))
        earlier = make_event(title="Teatro", category="teatro")
        make_event(title="Cancelado", category="teatro", status=EventStatus.CANCELLED)

        events, total = event_service.list_events()
        assert total == 3
        assert events[-1].id == later.id

        events, total = event_service.list_events(category="teatro", status=EventStatus.SCHEDULED)
        assert total == 1
        assert [e.id for e in events] == [earlier.id]

    def test_list_events_pagination(self, event_service, make_event):
        for i in range(5):
            make_event(title=f"Evento {i}")

        events, total = event_service.list_events(page=2, page_size=2)

        assert total == 5
        assert len(events) == 2

    def test_delete_event_removes_bookings(self, event_service, ledger, make_event, requester):
        event = make_event(capacity_total=3)
        booking = ledger.reserve(event.id, 1, requester())

        event_service.delete_event(event.id)

        with pytest.raises(NotFoundError):
            event_service.get_event(event.id)
        with pytest.raises(NotFoundError):
            ledger.remove(booking.id)

    def test_delete_event_missing(self, event_service):
        with pytest.raises(NotFoundError):
            event_service.delete_event(999)


class TestEventUpdates:
    """Test partial updates under the ledger lock."""

    def test_update_selected_fields_only(self, event_service, make_event):
        event = make_event(title="Original", summary="Resumen")

        updated = event_service.update_event(event.id, EventPatch(title="Nuevo título"))

        assert updated.title == "Nuevo título"
        assert updated.summary == "Resumen"

    def test_update_clears_nullable_field(self, event_service, make_event):
        event = make_event(summary="Resumen")

        updated = event_service.update_event(event.id, EventPatch(summary=None))

        assert updated.summary is None

    def test_empty_patch_rejected(self, event_service, make_event):
        event = make_event()

        with pytest.raises(InvalidInputError):
            event_service.update_event(event.id, EventPatch())

    def test_capacity_below_reserved_rejected(self, event_service, ledger, make_event, requester):
        """Capacity cannot drop below the units already booked."""
        event = make_event(capacity_total=5)
        ledger.reserve(event.id, 3, requester())

        with pytest.raises(ConflictError):
            event_service.update_event(event.id, EventPatch(capacity_total=2))

        assert ledger.availability(event.id).capacity_total == 5

    def test_capacity_down_to_reserved_sells_out(self, event_service, ledger, make_event, requester):
        event = make_event(capacity_total=5)
        ledger.reserve(event.id, 3, requester())

        updated = event_service.update_event(event.id, EventPatch(capacity_total=3))

        assert updated.status == EventStatus.SOLDOUT

    def test_capacity_raise_reopens_ledger_soldout(self, event_service, ledger, make_event, requester):
        event = make_event(capacity_total=2)
        ledger.reserve(event.id, 2, requester())
        assert ledger.availability(event.id).status == EventStatus.SOLDOUT

        updated = event_service.update_event(event.id, EventPatch(capacity_total=4))

        assert updated.status == EventStatus.SCHEDULED
        assert ledger.availability(event.id).available_qty == 2

    def test_explicit_status_is_kept(self, event_service, ledger, make_event, requester):
        """An explicit admin status survives later capacity changes."""
        event = make_event(capacity_total=4)
        ledger.reserve(event.id, 2, requester())
        event_service.update_event(event.id, EventPatch(status=EventStatus.SOLDOUT))

        updated = event_service.update_event(event.id, EventPatch(capacity_total=6))

        assert updated.status == EventStatus.SOLDOUT
        assert updated.soldout_by_ledger is False

    def test_resent_status_keeps_ledger_soldout(self, event_service, ledger, make_event, requester):
        """Saving a ledger sold-out event with its current status leaves it ledger-governed."""
        event = make_event(capacity_total=2)
        ledger.reserve(event.id, 1, requester())
        second = ledger.reserve(event.id, 1, requester())

        updated = event_service.update_event(
            event.id, EventPatch(title="Concierto renombrado", status=EventStatus.SOLDOUT)
        )
        assert updated.status == EventStatus.SOLDOUT
        assert updated.soldout_by_ledger is True

        ledger.set_status(second.id, "cancelled")

        summary = ledger.availability(event.id)
        assert summary.available_qty == 1
        assert summary.status == EventStatus.SCHEDULED
        ledger.reserve(event.id, 1, requester())

    def test_explicit_scheduled_on_full_event_sells_out(self, event_service, ledger, make_event, requester):
        event = make_event(capacity_total=1)
        ledger.reserve(event.id, 1, requester())
        event_service.update_event(event.id, EventPatch(status=EventStatus.CANCELLED))

        updated = event_service.update_event(event.id, EventPatch(title="x", status=EventStatus.SCHEDULED))

        assert updated.status == EventStatus.SOLDOUT
        assert updated.soldout_by_ledger is True
        assert ledger.availability(event.id).status == EventStatus.SOLDOUT

    def test_resent_scheduled_on_full_event_sells_out(self, event_service, ledger, make_event, requester):
        event = make_event(capacity_total=1)
        ledger.reserve(event.id, 1, requester())

        updated = event_service.update_event(event.id, EventPatch(title="x", status=EventStatus.SCHEDULED))

        assert updated.status == EventStatus.SOLDOUT
        assert updated.soldout_by_ledger is True

    def test_invalid_window_rejected(self, event_service, make_event, event_start):
        event = make_event()

        with pytest.raises(InvalidInputError):
            event_service.update_event(event.id, EventPatch(end_at=event_start - timedelta(hours=1)))

    def test_window_move(self, event_service, make_event, event_start):
        event = make_event()
        new_start = event_start + timedelta(days=7)

        updated = event_service.update_event(
            event.id, EventPatch(start_at=new_start, end_at=new_start + timedelta(hours=1))
        )

        assert updated.start_at.replace(tzinfo=None) == new_start.replace(tzinfo=None)

    def test_update_unknown_venue(self, event_service, make_event):
        event = make_event()

        with pytest.raises(NotFoundError):
            event_service.update_event(event.id, EventPatch(venue_id=404))

    def test_update_missing_event(self, event_service):
        with pytest.raises(NotFoundError):
            event_service.update_event(1000, EventPatch(title="x"))


class TestVenues:
    """Test the venue directory."""

    def test_venues_listed_by_name(self, event_service):
        event_service.create_venue("Teatro Juárez")
        event_service.create_venue("Foro Bicentenario")

        names = [venue.name for venue in event_service.list_venues()]

        assert names == ["Foro Bicentenario", "Teatro Juárez"]

    def test_duplicate_venue_rejected(self, event_service):
        event_service.create_venue("Galería")

        with pytest.raises(ConflictError):
            event_service.create_venue("  Galería ")

    def test_blank_venue_rejected(self, event_service):
        with pytest.raises(InvalidInputError):
            event_service.create_venue("   ")

    def test_delete_venue_keeps_events(self, event_service, make_event):
        venue = event_service.create_venue("Patio central")
        event = make_event(venue_id=venue.id)

        event_service.delete_venue(venue.id)

        assert event_service.get_event(event.id).venue_id is None
        assert event_service.list_venues() == []

    def test_delete_missing_venue(self, event_service):
        with pytest.raises(NotFoundError):
            event_service.delete_venue(12)

    def test_event_create_schema_rejects_bad_window(self, event_start):
        with pytest.raises(ValueError):
            EventCreate(title="x", start_at=event_start, end_at=event_start, capacity_total=1)
