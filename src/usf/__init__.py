"""Universal Schedule Format (USF) models, validation, builder and JSON Schema export.

USF is a compact JSON representation of a school timetable: named subjects,
time periods, and day/week-pattern class occurrences that reference subjects
by key and periods by 1-based index.
"""

from usf.builder import USFBuilder
from usf.errors import (
    DocumentValidationError,
    DuplicateEntryError,
    ErrorKind,
    FormatError,
    InvalidReferenceError,
    RangeError,
    ScheduleConflictError,
    StructuralError,
    UnsupportedVersionError,
    USFError,
    Violation,
)
from usf.json_schema import JsonSchemaOptions, to_json_schema
from usf.logging import quiet_until_configured
from usf.models import Document, DraftDocument, DraftSubject, Subject
from usf.schema import Mode, ValidationResult, validate, validate_json
from usf.validators import validate_time, validate_week_type

quiet_until_configured()

__all__ = [
    "USFBuilder",
    "Document",
    "DraftDocument",
    "Subject",
    "DraftSubject",
    "Mode",
    "ValidationResult",
    "validate",
    "validate_json",
    "validate_time",
    "validate_week_type",
    "JsonSchemaOptions",
    "to_json_schema",
    "ErrorKind",
    "Violation",
    "USFError",
    "StructuralError",
    "FormatError",
    "RangeError",
    "InvalidReferenceError",
    "UnsupportedVersionError",
    "DuplicateEntryError",
    "ScheduleConflictError",
    "DocumentValidationError",
]
