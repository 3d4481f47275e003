"""Document validation in strict and lenient mode.

Structural, format, range and version checks come from the pydantic models in
``usf.models``. Strict mode adds a second pass for referential integrity,
uniqueness and, optionally, schedule conflicts. It runs over the parsed document,
or over the raw data when parsing failed. Both passes always run so a single
call reports every defect.
"""

import json
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

from pydantic import BaseModel, ValidationError

from usf.config import get_config
from usf.errors import DocumentValidationError, ErrorKind, Violation
from usf.logging import get_logger
from usf.models import Document, DraftDocument
from usf.validators import is_strict_int

log = get_logger(__name__)


class Mode(str, Enum):
    """Validation mode.

    ``lenient`` accepts partial subject records and skips referential checks.
    ``strict`` requires complete subjects and enforces references and uniqueness.
    """

    STRICT = "strict"
    LENIENT = "lenient"


# pydantic error types that are not plain structural errors
_KIND_BY_ERROR_TYPE: dict[str, ErrorKind] = {
    "string_pattern_mismatch": ErrorKind.FORMAT,
    "literal_error": ErrorKind.FORMAT,
    "greater_than": ErrorKind.RANGE,
    "greater_than_equal": ErrorKind.RANGE,
    "less_than": ErrorKind.RANGE,
    "less_than_equal": ErrorKind.RANGE,
    "period_order": ErrorKind.RANGE,
    "unsupported_version": ErrorKind.UNSUPPORTED_VERSION,
}


class ValidationResult(BaseModel):
    """Outcome of validating one document.

    ``document`` is the parsed model when there are no errors, otherwise None.
    """

    mode: Mode
    document: Document | DraftDocument | None = None
    errors: list[Violation] = []

    @property
    def ok(self) -> bool:
        return not self.errors

    def errors_of(self, kind: ErrorKind) -> list[Violation]:
        return [v for v in self.errors if v.kind is kind]

    def raise_for_errors(self) -> Document | DraftDocument:
        """Return the validated document or raise with every violation.

        Raises:
            DocumentValidationError: If validation found any violation.
        """
        if self.errors or self.document is None:
            raise DocumentValidationError(self.errors)
        return self.document


def resolve_mode(mode: Mode | str | None) -> Mode:
    """Normalize a mode argument, falling back to the configured default."""
    if mode is None:
        return Mode(get_config().default_mode)
    return Mode(mode)


def _as_data(doc: Any) -> Any:
    if isinstance(doc, BaseModel):
        return doc.model_dump(mode="json", exclude_none=True)
    return doc


def _from_pydantic(error: ValidationError) -> list[Violation]:
    return [
        Violation(
            path=tuple(item["loc"]),
            kind=_KIND_BY_ERROR_TYPE.get(item["type"], ErrorKind.STRUCTURAL),
            reason=item["msg"],
        )
        for item in error.errors()
    ]


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def _is_period(entry: Any) -> bool:
    return (
        _is_sequence(entry)
        and len(entry) == 2
        and all(isinstance(part, str) for part in entry)
    )


def _is_occurrence(entry: Any) -> bool:
    return (
        _is_sequence(entry)
        and len(entry) == 4
        and is_strict_int(entry[0])
        and isinstance(entry[1], str)
        and isinstance(entry[2], str)
        and is_strict_int(entry[3])
    )


def _check_periods(periods: Any) -> list[Violation]:
    if not _is_sequence(periods):
        return []

    violations: list[Violation] = []
    first_seen: dict[tuple[str, str], int] = {}
    for i, entry in enumerate(periods):
        if not _is_period(entry):
            continue
        key = (entry[0], entry[1])
        if key in first_seen:
            violations.append(
                Violation(
                    path=("periods", i),
                    kind=ErrorKind.DUPLICATE,
                    reason=f"Duplicate of periods[{first_seen[key]}]",
                )
            )
        else:
            first_seen[key] = i
    return violations


def _check_timetable(
    timetable: Any,
    subject_keys: set[str] | None,
    period_count: int | None,
    detect_conflicts: bool,
) -> list[Violation]:
    if not _is_sequence(timetable):
        return []

    violations: list[Violation] = []
    first_seen: dict[tuple[int, str, str, int], int] = {}
    slots: dict[tuple[int, str, int], tuple[str, int]] = {}

    for i, entry in enumerate(timetable):
        if not _is_occurrence(entry):
            continue
        day, week_type, subject_key, period_index = entry

        if subject_keys is not None and subject_key not in subject_keys:
            violations.append(
                Violation(
                    path=("timetable", i, 2),
                    kind=ErrorKind.REFERENCE,
                    reason=f"Unknown subject {subject_key!r}",
                )
            )
        # index < 1 is already a range error from the models
        if period_count is not None and period_index >= 1 and period_index > period_count:
            violations.append(
                Violation(
                    path=("timetable", i, 3),
                    kind=ErrorKind.REFERENCE,
                    reason=(
                        f"Period index {period_index} exceeds the "
                        f"{period_count} defined period(s)"
                    ),
                )
            )

        key = (day, week_type, subject_key, period_index)
        if key in first_seen:
            violations.append(
                Violation(
                    path=("timetable", i),
                    kind=ErrorKind.DUPLICATE,
                    reason=f"Duplicate of timetable[{first_seen[key]}]",
                )
            )
            continue
        first_seen[key] = i

        if not detect_conflicts:
            continue
        slot = (day, week_type, period_index)
        if slot in slots and slots[slot][0] != subject_key:
            other, j = slots[slot]
            violations.append(
                Violation(
                    path=("timetable", i),
                    kind=ErrorKind.CONFLICT,
                    reason=(
                        f"{subject_key!r} conflicts with {other!r} in timetable[{j}] "
                        f"(day {day}, {week_type} weeks, period {period_index})"
                    ),
                )
            )
        else:
            slots.setdefault(slot, (subject_key, i))
    return violations


def _check_integrity(data: Any, detect_conflicts: bool) -> list[Violation]:
    if not isinstance(data, Mapping):
        return []

    subjects = data.get("subjects")
    subject_keys = set(subjects) if isinstance(subjects, Mapping) else None
    periods = data.get("periods")
    period_count = len(periods) if _is_sequence(periods) else None

    return _check_periods(periods) + _check_timetable(
        data.get("timetable"), subject_keys, period_count, detect_conflicts
    )


def validate(
    doc: Any,
    mode: Mode | str | None = None,
    *,
    detect_conflicts: bool | None = None,
) -> ValidationResult:
    """Validate a USF document and collect every violation.

    Args:
        doc: Mapping decoded from JSON, or a ``Document``/``DraftDocument``.
        mode: ``strict`` or ``lenient``; defaults to USF_DEFAULT_MODE.
        detect_conflicts: Report two subjects sharing a day, week type and
            period. Strict mode only; defaults to USF_DETECT_CONFLICTS.

    Returns:
        ValidationResult with the parsed document or the violation list.
    """
    mode = resolve_mode(mode)
    if detect_conflicts is None:
        detect_conflicts = get_config().detect_conflicts

    data = _as_data(doc)
    model = Document if mode is Mode.STRICT else DraftDocument

    violations: list[Violation] = []
    document = None
    try:
        document = model.model_validate(data)
    except ValidationError as e:
        violations.extend(_from_pydantic(e))

    if mode is Mode.STRICT:
        # the parsed model normalizes any sequence or set input to lists
        checked = document.model_dump(mode="json") if document is not None else data
        violations.extend(_check_integrity(checked, detect_conflicts))

    log.debug(
        "document_validated",
        mode=mode.value,
        ok=not violations,
        error_count=len(violations),
    )
    return ValidationResult(
        mode=mode,
        document=None if violations else document,
        errors=violations,
    )


def validate_json(
    raw: str | bytes,
    mode: Mode | str | None = None,
    *,
    detect_conflicts: bool | None = None,
) -> ValidationResult:
    """Validate a USF document from its UTF-8 JSON wire form.

    Undecodable input is reported as a single structural violation at the root.
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        log.debug("document_not_json", error=str(e))
        return ValidationResult(
            mode=resolve_mode(mode),
            errors=[
                Violation(path=(), kind=ErrorKind.STRUCTURAL, reason=f"Invalid JSON: {e}")
            ],
        )
    return validate(data, mode, detect_conflicts=detect_conflicts)
