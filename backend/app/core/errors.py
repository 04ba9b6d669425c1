from __future__ import annotations

from fastapi import status


class BookingError(Exception):
    """Base class for errors the booking services report back to the caller."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "booking_error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InvalidInput(BookingError):
    code = "invalid_input"


class NotFound(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class SlotUnavailable(BookingError):
    """The requested slot is held by another active booking or has expired.

    Callers should re-fetch availability and pick a different slot.
    """

    status_code = status.HTTP_409_CONFLICT
    code = "slot_unavailable"


class Forbidden(BookingError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class InvalidState(BookingError):
    code = "invalid_state"
