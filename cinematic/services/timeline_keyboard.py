"""Keyboard shortcuts for the timeline editor.

Key handling stays in the host; this module only maps a key press to an
editing action and dispatches that action to timeline_editing.
"""

from dataclasses import dataclass
from typing import Literal

from cinematic.config import get_settings
from cinematic.schemas.route_media import RouteMediaDocument
from cinematic.services.timeline_editing import (
    EditResult,
    IdFactory,
    duplicate_entry,
    generate_entry_id,
    nudge_entry,
    remove_entry,
    split_entry,
)
from cinematic.utils.numeric import to_finite

KeyboardActionKind = Literal["delete", "split", "duplicate", "nudge"]


@dataclass(frozen=True)
class KeyboardAction:
    kind: KeyboardActionKind
    start_delta_mi: float = 0.0
    end_delta_mi: float = 0.0


def resolve_keyboard_action(
    key: str,
    *,
    has_selection: bool,
    lane_locked: bool = False,
    editable_target: bool = False,
    meta: bool = False,
    ctrl: bool = False,
    shift: bool = False,
    alt: bool = False,
    nudge_step_mi: float | None = None,
) -> KeyboardAction | None:
    """Map a key press to a timeline action.

    Delete removes, s splits, d duplicates (both without meta/ctrl so the
    host's save/bookmark shortcuts still work). Left/Right nudge the whole
    entry; with shift only the end moves, with alt only the start.

    Returns:
        None when nothing is selected, focus is in a text field, the lane is
        locked, or the key has no binding.
    """
    if not has_selection or editable_target or lane_locked:
        return None

    step = to_finite(nudge_step_mi, 0.0) or get_settings().nudge_step_mi
    step = max(0.0001, step)

    if key == "Delete":
        return KeyboardAction(kind="delete")
    if key in ("s", "S") and not meta and not ctrl:
        return KeyboardAction(kind="split")
    if key in ("d", "D") and not meta and not ctrl:
        return KeyboardAction(kind="duplicate")
    if key in ("ArrowLeft", "ArrowRight"):
        delta = -step if key == "ArrowLeft" else step
        if shift:
            return KeyboardAction(kind="nudge", end_delta_mi=delta)
        if alt:
            return KeyboardAction(kind="nudge", start_delta_mi=delta)
        return KeyboardAction(kind="nudge", start_delta_mi=delta, end_delta_mi=delta)
    return None


def apply_keyboard_action(
    document: RouteMediaDocument,
    action: KeyboardAction,
    entry_id: str,
    mile: float,
    *,
    max_miles: float | None = None,
    id_factory: IdFactory = generate_entry_id,
) -> EditResult:
    """Dispatch a resolved action; mile is the playhead position used by split."""
    if action.kind == "delete":
        return remove_entry(document, entry_id)
    if action.kind == "split":
        return split_entry(document, entry_id, mile, max_miles=max_miles, id_factory=id_factory)
    if action.kind == "duplicate":
        return duplicate_entry(document, entry_id, max_miles=max_miles, id_factory=id_factory)
    return nudge_entry(
        document,
        entry_id,
        action.start_delta_mi,
        action.end_delta_mi,
        max_miles=max_miles,
    )
