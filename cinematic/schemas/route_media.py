from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from cinematic.exceptions import InvalidDocumentError
from cinematic.utils.numeric import is_finite_number, to_finite


# =============================================================================
# Field types
# =============================================================================

CameraMode = Literal["follow", "overview"]
MarkerType = Literal["poi", "title", "subtitle", "custom"]

DEFAULT_CAMERA_MODE: CameraMode = "follow"

# Values written by the legacy route builder
LEGACY_CAMERA_MODES = {
    "third-person-follow": "follow",
    "overview-lock": "overview",
}


def _normalize_camera_mode(value: Any) -> Any:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return LEGACY_CAMERA_MODES.get(text, text)


def _finite_or_zero(value: Any) -> float:
    return to_finite(value, 0.0)


def _finite_or_none(value: Any) -> float | None:
    if value is None or not is_finite_number(value):
        return None
    return to_finite(value)


FiniteFloat = Annotated[float, BeforeValidator(_finite_or_zero)]
OptionalFiniteFloat = Annotated[float | None, BeforeValidator(_finite_or_none)]
OptionalCameraMode = Annotated[CameraMode | None, BeforeValidator(_normalize_camera_mode)]


class _DocumentModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# =============================================================================
# Canonical records
# =============================================================================


class TimelineEntry(_DocumentModel):
    """A persisted timeline beat anchored to a mile range along the route."""
    id: str
    start_mi: FiniteFloat = 0.0
    end_mi: FiniteFloat = 0.0
    camera_mode: OptionalCameraMode = None
    speed_mi_per_sec: OptionalFiniteFloat = None
    title: str | None = None
    subtitle_ids: list[str] = Field(default_factory=list)
    marker_ids: list[str] = Field(default_factory=list)

    @property
    def span_mi(self) -> float:
        return self.end_mi - self.start_mi

    @property
    def primary_marker_id(self) -> str | None:
        return self.marker_ids[0] if self.marker_ids else None

    @property
    def primary_subtitle_id(self) -> str | None:
        return self.subtitle_ids[0] if self.subtitle_ids else None


class Marker(_DocumentModel):
    id: str
    at_mi: FiniteFloat = 0.0
    type: MarkerType = "custom"
    title: str = ""
    body: str | None = None


class Subtitle(_DocumentModel):
    id: str
    start_sec: FiniteFloat = 0.0
    end_sec: FiniteFloat = 0.0
    text: str = ""
    position: str | None = None


class PlaybackConfig(_DocumentModel):
    miles_per_second: FiniteFloat = 1.0
    fps: FiniteFloat = 24
    hold_seconds: FiniteFloat = 0.0


class CameraDefaults(_DocumentModel):
    mode: Annotated[CameraMode, BeforeValidator(_normalize_camera_mode)] = DEFAULT_CAMERA_MODE
    follow_distance_meters: FiniteFloat = 120
    altitude_meters: FiniteFloat = 90
    pitch_deg: FiniteFloat = 58
    heading_offset_deg: FiniteFloat = 0


# =============================================================================
# Document
# =============================================================================


class RouteMediaDocument(_DocumentModel):
    """Immutable snapshot of an authored route media document.

    Every editing operation returns a new snapshot; hosts keep the history.
    """
    route_id: str = ""
    variant_id: str | None = None
    playback: PlaybackConfig = Field(default_factory=PlaybackConfig)
    camera: CameraDefaults = Field(default_factory=CameraDefaults)
    timeline: list[TimelineEntry] = Field(default_factory=list)
    markers: list[Marker] = Field(default_factory=list)
    subtitles: list[Subtitle] = Field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "RouteMediaDocument":
        """Parse a camelCase JSON payload from the persistence layer.

        Raises:
            InvalidDocumentError: If the payload is structurally unusable
        """
        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            raise InvalidDocumentError(
                f"Invalid route media document: {e.error_count()} validation error(s)",
                suggested_fix=str(e.errors()[0].get("msg")) if e.errors() else None,
            ) from e

    def to_payload(self) -> dict[str, Any]:
        """Dump to the camelCase JSON shape, omitting fields never set."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True, exclude_none=True)

    def find_entry(self, entry_id: str) -> TimelineEntry | None:
        return next((entry for entry in self.timeline if entry.id == entry_id), None)

    @property
    def entry_ids(self) -> set[str]:
        return {entry.id for entry in self.timeline}
