"""Custom exceptions for the route cinematic engine.

Rejected edits are reported to hosts as ErrorInfo values rather than raised;
these classes carry the machine-readable code and message for both paths.
"""

from cinematic.constants.error_codes import get_error_spec
from cinematic.schemas.envelope import ErrorInfo


class CinematicError(Exception):
    """Base exception for all route cinematic errors."""

    code: str = "INTERNAL_ERROR"
    message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        entry_id: str | None = None,
        suggested_fix: str | None = None,
    ):
        self.message = message or self.__class__.message
        if code:
            self.code = code
        self.entry_id = entry_id
        self.suggested_fix = suggested_fix
        super().__init__(self.message)

    def to_error_info(self) -> ErrorInfo:
        """Convert exception to ErrorInfo for an edit result."""
        spec = get_error_spec(self.code)
        return ErrorInfo(
            code=self.code,
            message=self.message,
            entry_id=self.entry_id,
            retryable=spec.get("retryable", False),
            suggested_fix=self.suggested_fix or spec.get("suggested_fix"),
        )


class EntryNotFoundError(CinematicError):
    """Timeline entry not found."""

    code = "ENTRY_NOT_FOUND"
    message = "Timeline entry not found"

    def __init__(self, entry_id: str | None = None):
        message = f"Timeline entry not found: {entry_id}" if entry_id else self.message
        super().__init__(message, entry_id=entry_id)


class SplitOutOfRangeError(CinematicError):
    """Split point too close to an entry boundary."""

    code = "SPLIT_OUT_OF_RANGE"
    message = "Split point is too close to the entry boundary"

    def __init__(self, entry_id: str, mile: float, start_mi: float, end_mi: float):
        message = (
            f"Cannot split {entry_id} at {mile:.3f} mi: "
            f"must be strictly inside ({start_mi:.3f}, {end_mi:.3f}) by the minimum span"
        )
        super().__init__(message, entry_id=entry_id)


class TimelineOverlapError(CinematicError):
    """A new block would overlap an existing block in its lane."""

    code = "TIMELINE_OVERLAP"
    message = "Timeline overlap detected."

    def __init__(self, entry_id: str | None = None, lane: str | None = None):
        super().__init__(self.message, entry_id=entry_id)
        self.lane = lane


class NoRoomOnRouteError(CinematicError):
    """The copy of an entry would not fit before the end of the route."""

    code = "NO_ROOM_ON_ROUTE"
    message = "No room left on the route"

    def __init__(self, entry_id: str, start_mi: float, max_miles: float):
        super().__init__(
            f"No room to place a copy of {entry_id} at {start_mi:.3f} mi (route ends at {max_miles:.3f} mi)",
            entry_id=entry_id,
        )


class InvalidOverlayTypeError(CinematicError):
    """Unknown overlay type."""

    code = "INVALID_OVERLAY_TYPE"
    message = "Invalid overlay type"

    def __init__(self, overlay_type: str):
        super().__init__(f"Invalid overlay type: {overlay_type}")


class InvalidDocumentError(CinematicError):
    """Document payload could not be parsed."""

    code = "INVALID_DOCUMENT"
    message = "Invalid route media document"


class EditRejectedError(CinematicError):
    """Raised by EditResult.raise_for_error for hosts that prefer exceptions."""

    def __init__(self, info: ErrorInfo):
        super().__init__(
            info.message,
            code=info.code,
            entry_id=info.entry_id,
            suggested_fix=info.suggested_fix,
        )
        self.error_info = info
