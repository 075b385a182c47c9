"""
Logging utilities for the CEART bookings service.
Provides standardized logging configuration and ledger audit helpers.
"""

import logging
import sys
from typing import Optional, Dict, Any
from datetime import datetime


def setup_logging(level: str = "INFO", service_name: str = "ceart_api") -> logging.Logger:
    """
    Setup standardized logging for the service.

    Module loggers live under the ``ceart_api`` namespace, so configuring
    that logger covers the whole package.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        service_name: Name of the service for log identification

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("ceart_api")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Remove existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper(), logging.INFO))

    formatter = logging.Formatter(
        f'[%(asctime)s] {service_name.upper()}: %(levelname)s - %(name)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(formatter)

    logger.addHandler(console_handler)
    logger.propagate = False

    return logger


def log_ledger_operation(operation: str, event_id: int, booking_id: Optional[int] = None,
                         qty: Optional[int] = None, event_status: Optional[str] = None,
                         extra: Optional[Dict[str, Any]] = None) -> None:
    """
    Log a committed ledger operation with standard format.

    Args:
        operation: Ledger operation name (reserve, cancel, remove, ...)
        event_id: Event the operation touched
        booking_id: Booking the operation touched, if any
        qty: Units involved
        event_status: Event status after commit
        extra: Additional fields to include
    """
    logger = logging.getLogger("ceart_api.ledger")
    log_data = {
        'operation': operation,
        'event_id': event_id,
        'timestamp': datetime.now().isoformat()
    }

    if booking_id is not None:
        log_data['booking_id'] = booking_id
    if qty is not None:
        log_data['qty'] = qty
    if event_status is not None:
        log_data['event_status'] = event_status
    if extra:
        log_data.update(extra)

    logger.info(f"Ledger operation: {log_data}")


def log_ledger_rejection(operation: str, event_id: Optional[int], reason: str) -> None:
    """
    Log a rejected ledger operation.

    Args:
        operation: Ledger operation name
        event_id: Event the operation targeted
        reason: Why it was rejected
    """
    logger = logging.getLogger("ceart_api.ledger")
    log_data = {
        'operation': operation,
        'event_id': event_id,
        'status': 'rejected',
        'reason': reason,
        'timestamp': datetime.now().isoformat()
    }

    logger.warning(f"Ledger operation rejected: {log_data}")
