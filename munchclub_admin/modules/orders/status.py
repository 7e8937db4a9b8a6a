"""
Order status values.

The store accepts any string for an order status, and historical rows are
not guaranteed to be clean. Known values parse to OrderStatus; anything else
parses to UnrecognizedStatus carrying the raw string unchanged.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union


class OrderStatus(str, Enum):
    PENDING = 'PENDING'
    PROCESSING = 'PROCESSING'
    RECEIVED = 'RECEIVED'
    ACCEPTED = 'ACCEPTED'
    PRINTED = 'PRINTED'
    SHIPPED = 'SHIPPED'
    DELIVERED = 'DELIVERED'
    CANCELLED = 'CANCELLED'
    ERROR = 'ERROR'


@dataclass(frozen=True)
class UnrecognizedStatus:
    value: str


StatusValue = Union[OrderStatus, UnrecognizedStatus]


def parse_status(raw: str) -> StatusValue:
    """Exact (case-sensitive) match against the known statuses"""
    try:
        return OrderStatus(raw)
    except ValueError:
        return UnrecognizedStatus(raw)


def parse_status_filter(raw: str):
    """Status filter from a query string: case-insensitive, known values only"""
    if not raw:
        return None
    status = parse_status(raw.strip().upper())
    return status if isinstance(status, OrderStatus) else None


def status_value(status: StatusValue) -> str:
    return status.value
