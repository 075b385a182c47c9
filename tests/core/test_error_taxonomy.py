"""
Tests for the error taxonomy and logging setup.
"""

import logging

from ceart_api.core.exceptions import (
    CapacityExceededError,
    ConflictError,
    DuplicateBookingError,
    EventClosedError,
    InvalidInputError,
    LedgerError,
    NotFoundError,
    StorageUnavailableError,
)
from ceart_api.core.logging import setup_logging


class TestErrorTaxonomy:
    """Test status codes and details."""

    def test_conflicts_share_status(self):
        for error in (
            CapacityExceededError(1, 2, 3),
            EventClosedError(1, "cancelled"),
            DuplicateBookingError(1, "a@example.com"),
        ):
            assert isinstance(error, ConflictError)
            assert isinstance(error, LedgerError)
            assert error.status_code == 409

    def test_capacity_details(self):
        error = CapacityExceededError(event_id=4, available_qty=2, requested_qty=3)

        assert error.details == {"event_id": 4, "available_qty": 2, "requested_qty": 3}
        assert error.message == "Only 2 available for event 4"

    def test_status_codes(self):
        assert NotFoundError("Event", 1).status_code == 404
        assert InvalidInputError("bad").status_code == 400
        assert StorageUnavailableError().status_code == 503


class TestSetupLogging:
    def test_setup_logging_configures_package_logger(self):
        logger = setup_logging("debug", "ceart")

        assert logger.name == "ceart_api"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert "CEART" in logger.handlers[0].formatter._fmt
