"""
Concurrency tests for the capacity ledger.
Many threads race for the same event; the database serialises them.
"""

import pytest
from concurrent.futures import ThreadPoolExecutor

from ceart_api.core.exceptions import CapacityExceededError
from ceart_api.models.booking import BookingStatus
from ceart_api.models.event import EventStatus
from ceart_api.schemas.booking import RequesterInfo


def _attempt(ledger, event_id, qty, index):
    try:
        ledger.reserve(event_id, qty, RequesterInfo(name=f"Guest {index}", email=f"guest{index}@example.com"))
        return "ok"
    except CapacityExceededError:
        return "conflict"


class TestConcurrentReservations:
    """Concurrent reservation tests."""

    def test_exactly_capacity_succeeds(self, ledger, make_event):
        """20 single-unit requests against 5 units: 5 succeed, 15 conflict."""
        event = make_event(capacity_total=5)

        with ThreadPoolExecutor(max_workers=10) as executor:
            results = list(executor.map(lambda i: _attempt(ledger, event.id, 1, i), range(20)))

        assert results.count("ok") == 5
        assert results.count("conflict") == 15

        summary = ledger.availability(event.id)
        assert summary.reserved_qty == 5
        assert summary.available_qty == 0
        assert summary.status == EventStatus.SOLDOUT

    def test_mixed_quantities_never_oversell(self, ledger, make_event):
        """Requests of different sizes never push the confirmed sum past capacity."""
        event = make_event(capacity_total=7)
        quantities = [3, 2, 4, 1, 2, 3, 1, 2]

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(
                executor.map(lambda pair: _attempt(ledger, event.id, pair[1], pair[0]), enumerate(quantities))
            )

        admitted = sum(qty for qty, result in zip(quantities, results) if result == "ok")
        summary = ledger.availability(event.id)
        assert summary.reserved_qty == admitted
        assert admitted <= 7

    def test_concurrent_cancel_and_reserve(self, ledger, make_event, requester):
        """Releasing and reserving at the same time keeps the ledger consistent."""
        event = make_event(capacity_total=4)
        held = [ledger.reserve(event.id, 1, requester()) for _ in range(4)]

        def cancel(booking):
            ledger.set_status(booking.id, BookingStatus.CANCELLED)
            return "cancelled"

        with ThreadPoolExecutor(max_workers=8) as executor:
            cancels = [executor.submit(cancel, booking) for booking in held[:2]]
            reserves = [executor.submit(_attempt, ledger, event.id, 1, 100 + i) for i in range(4)]
            outcomes = [future.result() for future in cancels + reserves]

        assert outcomes.count("cancelled") == 2
        summary = ledger.availability(event.id)
        assert summary.reserved_qty == 2 + outcomes.count("ok")
        assert summary.reserved_qty <= 4
        if summary.reserved_qty == 4:
            assert summary.status == EventStatus.SOLDOUT
        else:
            assert summary.status == EventStatus.SCHEDULED


@pytest.mark.asyncio
async def test_reservations_from_event_loop(ledger, make_event):
    """Requests dispatched from async code through the thread pool behave the same."""
    import asyncio
    from starlette.concurrency import run_in_threadpool

    event = make_event(capacity_total=3)

    results = await asyncio.gather(
        *[run_in_threadpool(_attempt, ledger, event.id, 1, i) for i in range(9)]
    )

    assert results.count("ok") == 3
    assert ledger.availability(event.id).reserved_qty == 3
