"""USFBuilder - constructs a USF document one declaration at a time.

The builder keeps a live set of subject keys and a live period count, so in
strict mode every occurrence is checked against what already exists before it
is appended. Periods and occurrences are deduplicated through hash indexes;
re-declaring an existing entry is a no-op, not an error.

Usage:
    doc = (
        USFBuilder()
        .add_subject("Math", {"simplified_name": "Math", "teacher": "T", "room": "R1"})
        .add_period("08:00:00", "09:00:00")
        .add_occurrence(1, "all", "Math", 1)
        .build()
    )

Builders are not thread-safe. Give each document construction its own
instance.
"""

import copy
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ValidationError

from usf.config import get_config
from usf.errors import (
    FormatError,
    InvalidReferenceError,
    RangeError,
    ScheduleConflictError,
    StructuralError,
    UnsupportedVersionError,
)
from usf.logging import get_logger
from usf.models import DraftSubject, Subject
from usf.schema import Mode, ValidationResult, resolve_mode, validate
from usf.validators import (
    CURRENT_VERSION,
    MAX_DAY,
    MIN_DAY,
    SUPPORTED_VERSIONS,
    WEEK_TYPES,
    is_strict_int,
    period_moves_forward,
    validate_day,
    validate_time,
    validate_version,
    validate_week_type,
)

log = get_logger(__name__)


class USFBuilder:
    """Append-only builder for USF documents.

    In strict mode subjects must be complete and occurrences may only reference
    subjects and periods that were added earlier. In lenient mode partial
    subjects and forward references are accepted, which is useful for drafts.
    """

    def __init__(
        self,
        mode: Mode | str | None = None,
        *,
        detect_conflicts: bool | None = None,
    ) -> None:
        """Initialize an empty document at the current version.

        Args:
            mode: ``strict`` or ``lenient``; defaults to USF_DEFAULT_MODE.
            detect_conflicts: Reject an occurrence whose day, week type and
                period are already taken by another subject. Defaults to
                USF_DETECT_CONFLICTS.
        """
        self.mode = resolve_mode(mode)
        if detect_conflicts is None:
            detect_conflicts = get_config().detect_conflicts
        self.detect_conflicts = detect_conflicts

        self._document: dict[str, Any] = {
            "version": CURRENT_VERSION,
            "subjects": {},
            "periods": [],
            "timetable": [],
        }
        # (start, end) -> 1-based position
        self._period_positions: dict[tuple[str, str], int] = {}
        self._occurrences: set[tuple[int, str, str, int]] = set()
        # (day, week_type, period_index) -> subject key
        self._slots: dict[tuple[int, str, int], str] = {}

    @property
    def strict(self) -> bool:
        return self.mode is Mode.STRICT

    @property
    def subject_keys(self) -> frozenset[str]:
        """Subject names that occurrences may currently reference."""
        return frozenset(self._document["subjects"])

    @property
    def period_count(self) -> int:
        """Highest period index that occurrences may currently reference."""
        return len(self._document["periods"])

    def period_index(self, start: str, end: str) -> int | None:
        """1-based index of an already added period, or None."""
        return self._period_positions.get((start, end))

    def set_version(self, version: int) -> "USFBuilder":
        """Set the document version.

        Raises:
            UnsupportedVersionError: If the version is not a supported integer.
        """
        if not validate_version(version):
            self._reject("set_version", "unsupported_version", version=version)
            raise UnsupportedVersionError(
                f"USF version {version!r} is not supported, "
                f"expected one of {list(SUPPORTED_VERSIONS)}"
            )
        self._document["version"] = version
        return self

    def add_subject(
        self, name: str, subject: Mapping[str, Any] | BaseModel
    ) -> "USFBuilder":
        """Insert or overwrite the subject stored under ``name``.

        Re-declaring a subject replaces its details (last write wins).

        Args:
            name: Subject key referenced by occurrences (case-sensitive).
            subject: Subject details as a mapping or a ``Subject``/``DraftSubject``.

        Raises:
            StructuralError: If the name is not a string, or the details do not
                form a valid subject for the builder's mode.
        """
        if not isinstance(name, str):
            self._reject("add_subject", "name_not_string", name=repr(name))
            raise StructuralError(f"Subject name must be a string, got {name!r}")

        if isinstance(subject, BaseModel):
            subject = subject.model_dump(exclude_none=True)

        model = Subject if self.strict else DraftSubject
        try:
            details = model.model_validate(subject).model_dump(exclude_none=True)
        except ValidationError as e:
            self._reject("add_subject", "invalid_subject", name=name, errors=e.error_count())
            raise StructuralError(f"Invalid subject {name!r}: {e}") from e

        replaced = name in self._document["subjects"]
        self._document["subjects"][name] = details
        log.debug("subject_added", name=name, replaced=replaced)
        return self

    def add_period(self, start: str, end: str) -> "USFBuilder":
        """Append the period ``(start, end)`` unless it already exists.

        Raises:
            FormatError: If either bound is not an ``HH:MM:SS`` string.
            RangeError: If ``start`` is not strictly before ``end``.
        """
        for bound in (start, end):
            if not validate_time(bound):
                self._reject("add_period", "bad_time", value=repr(bound))
                raise FormatError(f"Invalid time {bound!r}, expected HH:MM:SS")
        if not period_moves_forward(start, end):
            self._reject("add_period", "period_order", start=start, end=end)
            raise RangeError(f"Period start {start} must be earlier than its end {end}")

        key = (start, end)
        if key in self._period_positions:
            log.debug(
                "period_duplicate_suppressed",
                start=start,
                end=end,
                index=self._period_positions[key],
            )
            return self

        self._document["periods"].append([start, end])
        self._period_positions[key] = self.period_count
        log.debug("period_added", start=start, end=end, index=self.period_count)
        return self

    def add_occurrence(
        self, day: int, week_type: str, subject_key: str, period_index: int
    ) -> "USFBuilder":
        """Append a class occurrence unless an identical one already exists.

        Args:
            day: Day of the week, 1=Monday through 7=Sunday.
            week_type: ``all``, ``even`` or ``odd``.
            subject_key: Key of a subject added earlier (strict mode).
            period_index: 1-based index of a period added earlier (strict mode).

        Raises:
            RangeError: If the day is outside [1, 7] or the period index is below 1.
            FormatError: If the week type is not recognized.
            StructuralError: If the subject key is not a string.
            InvalidReferenceError: Strict mode, if the subject or period does not
                exist yet.
            ScheduleConflictError: If conflict detection is on and the slot is
                taken by another subject.
        """
        if not validate_day(day):
            self._reject("add_occurrence", "bad_day", day=repr(day))
            raise RangeError(f"Day must be an integer in [{MIN_DAY}, {MAX_DAY}], got {day!r}")
        if not validate_week_type(week_type):
            self._reject("add_occurrence", "bad_week_type", week_type=repr(week_type))
            raise FormatError(f"Week type must be one of {list(WEEK_TYPES)}, got {week_type!r}")
        if not isinstance(subject_key, str):
            self._reject("add_occurrence", "subject_not_string", subject=repr(subject_key))
            raise StructuralError(f"Subject key must be a string, got {subject_key!r}")
        if not is_strict_int(period_index) or period_index < 1:
            self._reject("add_occurrence", "bad_period_index", period_index=repr(period_index))
            raise RangeError(f"Period index must be an integer >= 1, got {period_index!r}")

        if self.strict:
            if subject_key not in self._document["subjects"]:
                self._reject("add_occurrence", "unknown_subject", subject=subject_key)
                raise InvalidReferenceError(f"Unknown subject {subject_key!r}")
            if period_index > self.period_count:
                self._reject(
                    "add_occurrence",
                    "unknown_period",
                    period_index=period_index,
                    period_count=self.period_count,
                )
                raise InvalidReferenceError(
                    f"Period index {period_index} exceeds the "
                    f"{self.period_count} defined period(s)"
                )

        key = (day, week_type, subject_key, period_index)
        if key in self._occurrences:
            log.debug(
                "occurrence_duplicate_suppressed",
                day=day,
                week_type=week_type,
                subject=subject_key,
                period_index=period_index,
            )
            return self

        slot = (day, week_type, period_index)
        taken_by = self._slots.get(slot)
        if self.detect_conflicts and taken_by is not None and taken_by != subject_key:
            self._reject("add_occurrence", "conflict", subject=subject_key, taken_by=taken_by)
            raise ScheduleConflictError(
                f"{subject_key!r} conflicts with {taken_by!r} "
                f"(day {day}, {week_type} weeks, period {period_index})"
            )

        self._document["timetable"].append(list(key))
        self._occurrences.add(key)
        self._slots.setdefault(slot, subject_key)
        log.debug(
            "occurrence_added",
            day=day,
            week_type=week_type,
            subject=subject_key,
            period_index=period_index,
        )
        return self

    def build(self) -> dict[str, Any]:
        """Return a copy of the document built so far.

        The result is not validated; pass it to ``usf.schema.validate`` when a
        checked document is needed.
        """
        return copy.deepcopy(self._document)

    def validate(self) -> ValidationResult:
        """Validate the current document in the builder's mode."""
        return validate(self._document, self.mode, detect_conflicts=self.detect_conflicts)

    def _reject(self, operation: str, reason: str, **context: Any) -> None:
        log.debug("builder_call_rejected", operation=operation, reason=reason, **context)
