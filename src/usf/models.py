"""Pydantic models for USF documents.

All data structures use Pydantic v2 for validation, serialization, and JSON
Schema generation. ``Document`` is the strict, complete form; ``DraftDocument``
accepts partial subject records.

Periods are addressed by their 1-based position in ``periods``. Reordering the
list silently changes the meaning of every timetable entry that points at the
moved periods, so tools should only ever append.
"""

from typing import Annotated

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    StringConstraints,
)
from pydantic_core import PydanticCustomError

from usf.validators import (
    MAX_DAY,
    MIN_DAY,
    SUPPORTED_VERSIONS,
    TIME_PATTERN,
    WeekType,
    period_moves_forward,
)


def _check_version(version: int) -> int:
    if version not in SUPPORTED_VERSIONS:
        raise PydanticCustomError(
            "unsupported_version",
            "USF version {version} is not supported, expected one of {supported}",
            {"version": version, "supported": list(SUPPORTED_VERSIONS)},
        )
    return version


def _check_period_order(period: tuple[str, str]) -> tuple[str, str]:
    start, end = period
    if not period_moves_forward(start, end):
        raise PydanticCustomError(
            "period_order",
            "Period start {start} must be earlier than its end {end}",
            {"start": start, "end": end},
        )
    return period


TimeString = Annotated[StrictStr, StringConstraints(pattern=TIME_PATTERN)]

Version = Annotated[StrictInt, AfterValidator(_check_version)]

Period = Annotated[
    tuple[TimeString, TimeString], AfterValidator(_check_period_order)
]

Day = Annotated[
    StrictInt,
    Field(ge=MIN_DAY, le=MAX_DAY, description="Day of the week (1=Monday, 7=Sunday)."),
]
WeekTypeField = Annotated[WeekType, Field(description="Week type.")]
SubjectKey = Annotated[
    StrictStr, Field(description="Subject name (must match keys in 'subjects').")
]
PeriodIndex = Annotated[
    StrictInt,
    Field(ge=1, description="Class period (1-based index, must match 'periods')."),
]

Occurrence = tuple[Day, WeekTypeField, SubjectKey, PeriodIndex]


class DraftSubject(BaseModel):
    """Subject details where every field may still be missing."""

    model_config = ConfigDict(extra="ignore")

    simplified_name: StrictStr | None = None
    teacher: StrictStr | None = None
    room: StrictStr | None = None


class Subject(BaseModel):
    """Complete subject details."""

    model_config = ConfigDict(extra="forbid")

    simplified_name: StrictStr
    teacher: StrictStr
    room: StrictStr


class DraftDocument(BaseModel):
    """A USF document whose subjects may be incomplete."""

    model_config = ConfigDict(extra="forbid")

    version: Version = Field(description="USF version, currently fixed at 1.")
    subjects: dict[StrictStr, DraftSubject] = Field(
        description="Mapping of subject names to their details."
    )
    periods: list[Period] = Field(
        description="List of time periods, each containing a start and end time."
    )
    timetable: list[Occurrence] = Field(
        description="Schedule entries, each defining a class occurrence."
    )


class Document(DraftDocument):
    """A compact and efficient format for storing school schedules."""

    subjects: dict[StrictStr, Subject] = Field(
        description="Mapping of subject names to their details."
    )
