"""
Tests for the incremental document builder.
"""
import pytest
from structlog.testing import capture_logs

from usf.builder import USFBuilder
from usf.errors import (
    ErrorKind,
    FormatError,
    InvalidReferenceError,
    RangeError,
    ScheduleConflictError,
    StructuralError,
    UnsupportedVersionError,
)
from usf.models import DraftSubject, Subject
from usf.schema import Mode, validate


@pytest.fixture
def builder(math_subject):
    """Strict builder with one subject and two periods."""
    return (
        USFBuilder(Mode.STRICT)
        .add_subject("Math", math_subject)
        .add_period("08:00:00", "08:45:00")
        .add_period("08:55:00", "09:40:00")
    )


class TestScenario:
    """End-to-end construction."""

    def test_built_document_passes_strict_validation(self, math_subject):
        document = (
            USFBuilder(Mode.STRICT)
            .set_version(1)
            .add_subject("Math", math_subject)
            .add_period("08:00:00", "09:00:00")
            .add_occurrence(1, "all", "Math", 1)
            .build()
        )

        assert document == {
            "version": 1,
            "subjects": {"Math": math_subject},
            "periods": [["08:00:00", "09:00:00"]],
            "timetable": [[1, "all", "Math", 1]],
        }
        result = validate(document, Mode.STRICT)
        assert result.ok
        assert result.errors == []

    def test_empty_builder(self):
        assert USFBuilder().build() == {
            "version": 1,
            "subjects": {},
            "periods": [],
            "timetable": [],
        }

    def test_builder_validate_uses_its_mode(self):
        result = USFBuilder(Mode.LENIENT).add_occurrence(1, "all", "Math", 3).validate()

        assert result.mode is Mode.LENIENT
        assert result.ok


class TestVersion:
    def test_set_supported_version(self):
        assert USFBuilder().set_version(1).build()["version"] == 1

    @pytest.mark.parametrize("version", [2, 0, True, "1", 1.0])
    def test_unsupported_version_is_rejected(self, version):
        with pytest.raises(UnsupportedVersionError):
            USFBuilder().set_version(version)


class TestSubjects:
    def test_last_write_wins(self, builder):
        builder.add_subject("Math", {"simplified_name": "M", "teacher": "U", "room": "R2"})

        assert builder.build()["subjects"]["Math"] == {
            "simplified_name": "M",
            "teacher": "U",
            "room": "R2",
        }
        assert builder.subject_keys == {"Math"}

    def test_accepts_subject_models(self):
        builder = USFBuilder(Mode.STRICT).add_subject(
            "Art", Subject(simplified_name="Art", teacher="Kahlo", room="A1")
        )

        assert builder.build()["subjects"]["Art"]["teacher"] == "Kahlo"

    def test_strict_mode_requires_complete_subjects(self):
        builder = USFBuilder(Mode.STRICT)

        with pytest.raises(StructuralError):
            builder.add_subject("Math", {"room": "R1"})
        with pytest.raises(StructuralError):
            builder.add_subject("Math", DraftSubject(room="R1"))

        assert builder.build()["subjects"] == {}

    def test_lenient_mode_accepts_partial_subjects(self):
        builder = USFBuilder(Mode.LENIENT).add_subject("Math", {"room": "R1"})

        assert builder.build()["subjects"] == {"Math": {"room": "R1"}}

    def test_name_must_be_a_string(self, math_subject):
        with pytest.raises(StructuralError):
            USFBuilder().add_subject(1, math_subject)


class TestPeriods:
    @pytest.mark.parametrize(
        "start, end",
        [
            ("00:00:00", "00:00:01"),
            ("08:00:00", "09:00:00"),
            ("12:30:00", "23:59:59"),
        ],
    )
    @pytest.mark.parametrize("repeats", [1, 2, 5])
    def test_repeated_period_is_stored_once(self, start, end, repeats):
        builder = USFBuilder()
        for _ in range(repeats):
            builder.add_period(start, end)

        assert builder.build()["periods"] == [[start, end]]
        assert builder.period_count == 1

    def test_duplicate_keeps_original_position(self, builder):
        builder.add_period("08:00:00", "08:45:00")

        assert builder.period_count == 2
        assert builder.period_index("08:00:00", "08:45:00") == 1
        assert builder.period_index("08:55:00", "09:40:00") == 2
        assert builder.period_index("10:00:00", "10:45:00") is None

    def test_duplicate_is_logged(self, builder):
        with capture_logs() as logs:
            builder.add_period("08:00:00", "08:45:00")

        assert [entry["event"] for entry in logs] == ["period_duplicate_suppressed"]
        assert logs[0]["index"] == 1

    @pytest.mark.parametrize("bad", ["24:00:00", "8:00", "08:00:00 ", "0٨:00:00", None])
    def test_malformed_time_is_rejected(self, builder, bad):
        with pytest.raises(FormatError):
            builder.add_period(bad, "23:00:00")

        assert builder.period_count == 2

    @pytest.mark.parametrize(
        "start, end", [("09:00:00", "08:00:00"), ("09:00:00", "09:00:00")]
    )
    def test_period_must_move_forward(self, builder, start, end):
        with pytest.raises(RangeError):
            builder.add_period(start, end)

        assert builder.period_count == 2


class TestOccurrences:
    def test_reference_to_existing_entries(self, builder):
        builder.add_occurrence(1, "all", "Math", 1).add_occurrence(5, "even", "Math", 2)

        assert builder.build()["timetable"] == [[1, "all", "Math", 1], [5, "even", "Math", 2]]
        assert validate(builder.build(), Mode.STRICT).errors_of(ErrorKind.REFERENCE) == []

    def test_duplicate_occurrence_is_stored_once(self, builder):
        for _ in range(3):
            builder.add_occurrence(1, "all", "Math", 1)

        assert builder.build()["timetable"] == [[1, "all", "Math", 1]]

    def test_unknown_subject_fails_without_mutation(self, builder):
        builder.add_occurrence(1, "all", "Math", 1)
        before = builder.build()

        with pytest.raises(InvalidReferenceError) as exc_info:
            builder.add_occurrence(2, "all", "Physics", 1)

        assert exc_info.value.kind is ErrorKind.REFERENCE
        assert builder.build() == before

    def test_subject_reference_is_case_sensitive(self, builder):
        with pytest.raises(InvalidReferenceError):
            builder.add_occurrence(1, "all", "math", 1)

    def test_period_index_equal_to_count_is_accepted(self, builder):
        builder.add_occurrence(1, "all", "Math", builder.period_count)

        assert validate(builder.build(), Mode.STRICT).ok

    def test_period_index_past_count_fails(self, builder):
        before = builder.build()

        with pytest.raises(InvalidReferenceError):
            builder.add_occurrence(1, "all", "Math", 3)

        assert builder.build() == before

    def test_later_period_makes_reference_legal(self, builder):
        builder.add_period("10:00:00", "10:45:00").add_occurrence(1, "all", "Math", 3)

        assert builder.build()["timetable"] == [[1, "all", "Math", 3]]

    def test_period_index_zero_is_a_range_error(self, builder):
        with pytest.raises(RangeError):
            builder.add_occurrence(1, "all", "Math", 0)

    @pytest.mark.parametrize("day", [0, 8, True, "1"])
    def test_day_out_of_range(self, builder, day):
        with pytest.raises(RangeError):
            builder.add_occurrence(day, "all", "Math", 1)

    def test_invalid_week_type(self, builder):
        with pytest.raises(FormatError):
            builder.add_occurrence(1, "weekly", "Math", 1)

    def test_subject_key_must_be_a_string(self, builder):
        with pytest.raises(StructuralError):
            builder.add_occurrence(1, "all", None, 1)

    def test_lenient_mode_skips_reference_checks(self):
        builder = USFBuilder(Mode.LENIENT).add_occurrence(1, "all", "Math", 4)

        assert builder.build()["timetable"] == [[1, "all", "Math", 4]]

    def test_lenient_mode_still_checks_primitives(self):
        with pytest.raises(FormatError):
            USFBuilder(Mode.LENIENT).add_occurrence(1, "sometimes", "Math", 1)

    def test_rejection_is_logged(self, builder):
        with capture_logs() as logs:
            with pytest.raises(InvalidReferenceError):
                builder.add_occurrence(1, "all", "Physics", 1)

        assert logs[0]["event"] == "builder_call_rejected"
        assert logs[0]["reason"] == "unknown_subject"


class TestConflicts:
    @pytest.fixture
    def two_subjects(self, builder):
        return builder.add_subject(
            "Physics", {"simplified_name": "Phys", "teacher": "Curie", "room": "Lab"}
        )

    def test_conflicts_allowed_by_default(self, two_subjects):
        two_subjects.add_occurrence(1, "all", "Math", 1).add_occurrence(1, "all", "Physics", 1)

        assert len(two_subjects.build()["timetable"]) == 2

    def test_conflict_detection(self, math_subject):
        builder = (
            USFBuilder(Mode.STRICT, detect_conflicts=True)
            .add_subject("Math", math_subject)
            .add_subject("Physics", {"simplified_name": "P", "teacher": "C", "room": "L"})
            .add_period("08:00:00", "08:45:00")
            .add_occurrence(1, "all", "Math", 1)
        )

        with pytest.raises(ScheduleConflictError):
            builder.add_occurrence(1, "all", "Physics", 1)

        builder.add_occurrence(1, "odd", "Physics", 1)
        builder.add_occurrence(1, "all", "Math", 1)
        assert builder.build()["timetable"] == [[1, "all", "Math", 1], [1, "odd", "Physics", 1]]
        assert builder.validate().ok


class TestBuild:
    def test_build_returns_a_copy(self, builder):
        document = builder.build()
        document["periods"].clear()
        document["subjects"]["Math"]["room"] = "changed"

        assert builder.period_count == 2
        assert builder.build()["subjects"]["Math"]["room"] == "R1"

    def test_build_does_not_validate(self):
        # forward references are fine in a lenient draft
        document = USFBuilder(Mode.LENIENT).add_occurrence(2, "odd", "Art", 7).build()

        assert not validate(document, Mode.STRICT).ok

    def test_mode_defaults_from_environment(self, monkeypatch):
        monkeypatch.setenv("USF_DEFAULT_MODE", "lenient")

        assert USFBuilder().mode is Mode.LENIENT
        assert USFBuilder("strict").strict
