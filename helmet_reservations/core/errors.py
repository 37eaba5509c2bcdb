from __future__ import annotations

class ReservationError(Exception):
    """Base for failures surfaced to HTTP callers as {"error": message}."""
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

class ValidationFailed(ReservationError):
    status_code = 400

class NotFound(ReservationError):
    status_code = 404

class Forbidden(ReservationError):
    status_code = 403

class Conflict(ReservationError):
    status_code = 400

class DuplicateReservation(Conflict):
    pass

class InvalidStateTransition(Conflict):
    pass

class StorageFailure(ReservationError):
    status_code = 500
