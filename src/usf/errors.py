"""Error hierarchy for USF validation and building.

Validation collects ``Violation`` records and returns them; builder calls raise
the kind-specific exception for the single offending call.

Example usage:
    try:
        builder.add_occurrence(1, "all", "Physics", 3)
    except InvalidReferenceError as e:
        log.warning("occurrence_rejected", kind=e.kind, error=str(e))
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class ErrorKind(str, Enum):
    """Category of a USF defect."""

    STRUCTURAL = "structural"
    FORMAT = "format"
    RANGE = "range"
    REFERENCE = "reference"
    UNSUPPORTED_VERSION = "unsupported_version"
    DUPLICATE = "duplicate"
    CONFLICT = "conflict"


def format_path(path: tuple[str | int, ...]) -> str:
    """Render a location tuple as ``timetable[0][2]`` or ``subjects.Math.room``."""
    if not path:
        return "<root>"
    rendered = ""
    for part in path:
        if isinstance(part, int):
            rendered += f"[{part}]"
        elif rendered:
            rendered += f".{part}"
        else:
            rendered = str(part)
    return rendered


class Violation(BaseModel):
    """A single defect found in a USF document."""

    model_config = ConfigDict(frozen=True)

    path: tuple[str | int, ...]
    kind: ErrorKind
    reason: str

    @property
    def location(self) -> str:
        return format_path(self.path)

    def __str__(self) -> str:
        return f"{self.location}: {self.reason} ({self.kind.value})"


class USFError(Exception):
    """Base exception for all USF errors."""

    kind: ErrorKind = ErrorKind.STRUCTURAL


class StructuralError(USFError):
    """Wrong type or shape, missing required field, unknown key."""

    kind = ErrorKind.STRUCTURAL


class FormatError(USFError):
    """Malformed time string or invalid week type."""

    kind = ErrorKind.FORMAT


class RangeError(USFError):
    """Day or period index out of bounds, or a period that does not move forward."""

    kind = ErrorKind.RANGE


class InvalidReferenceError(USFError):
    """Occurrence references a subject or period that does not exist.

    Only raised in strict mode.
    """

    kind = ErrorKind.REFERENCE


class UnsupportedVersionError(USFError):
    """Version is not one of the supported format generations."""

    kind = ErrorKind.UNSUPPORTED_VERSION


class DuplicateEntryError(USFError):
    """Identical period or occurrence appears more than once.

    The builder suppresses duplicates silently; this is only used when
    surfacing strict validation results as exceptions.
    """

    kind = ErrorKind.DUPLICATE


class ScheduleConflictError(USFError):
    """Two different subjects occupy the same day, week type and period."""

    kind = ErrorKind.CONFLICT


class DocumentValidationError(USFError):
    """Raised on request when a validated document has violations.

    Carries the complete violation list, not just the first defect.
    """

    def __init__(self, violations: list[Violation]) -> None:
        self.violations = list(violations)
        lines = "\n".join(f"  - {v}" for v in self.violations)
        super().__init__(
            f"USF document has {len(self.violations)} violation(s):\n{lines}"
        )


_ERRORS_BY_KIND: dict[ErrorKind, type[USFError]] = {
    cls.kind: cls
    for cls in (
        StructuralError,
        FormatError,
        RangeError,
        InvalidReferenceError,
        UnsupportedVersionError,
        DuplicateEntryError,
        ScheduleConflictError,
    )
}


def error_for_kind(kind: ErrorKind) -> type[USFError]:
    """Exception class matching a violation kind."""
    return _ERRORS_BY_KIND[kind]
