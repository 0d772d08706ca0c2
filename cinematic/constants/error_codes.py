"""Error codes dictionary for timeline edit rejections.

This is the single source of truth for all rejection codes, whether a host
can sensibly retry the edit, and a suggested fix to show the author. Used by
the exception hierarchy to build ErrorInfo payloads.
"""

from typing import TypedDict


class ErrorCodeSpec(TypedDict, total=False):
    """Specification for an error code."""

    retryable: bool
    suggested_fix: str


# Error codes dictionary - single source of truth
ERROR_CODES: dict[str, ErrorCodeSpec] = {
    # ==========================================================================
    # Lookup errors (retryable after the host refreshes its snapshot)
    # ==========================================================================
    "ENTRY_NOT_FOUND": {
        "retryable": True,
        "suggested_fix": "Refresh the timeline snapshot and select an existing entry",
    },
    # ==========================================================================
    # Guardrail rejections (not retryable without changing the input)
    # ==========================================================================
    "SPLIT_OUT_OF_RANGE": {
        "retryable": False,
        "suggested_fix": "Split further from the entry's start and end boundaries",
    },
    "NO_ROOM_ON_ROUTE": {
        "retryable": False,
        "suggested_fix": "Shorten the entry or duplicate one that ends earlier on the route",
    },
    "TIMELINE_OVERLAP": {
        "retryable": False,
        "suggested_fix": "Place the overlay after the end of the existing block in its lane",
    },
    "INVALID_OVERLAY_TYPE": {
        "retryable": False,
        "suggested_fix": "Use one of: title, poi, camera, speed",
    },
    # ==========================================================================
    # Document errors
    # ==========================================================================
    "INVALID_DOCUMENT": {
        "retryable": False,
        "suggested_fix": "Check the document payload against the route media schema",
    },
    "INTERNAL_ERROR": {
        "retryable": False,
    },
}


def get_error_spec(code: str) -> ErrorCodeSpec:
    """Get the specification for an error code.

    Unknown codes fall back to INTERNAL_ERROR's spec.
    """
    return ERROR_CODES.get(code, ERROR_CODES["INTERNAL_ERROR"])
