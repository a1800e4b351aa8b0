"""Tests for project validation."""

from datetime import datetime

import pytest

from tcplan.core.types import ProjectInput
from tcplan.pipeline.validator import (
    as_number,
    is_valid_index_number,
    parse_plan_date,
    validate_project,
)


def _with(project: ProjectInput, **changes) -> ProjectInput:
    for key, value in changes.items():
        setattr(project, key, value)
    return project


class TestHelpers:
    def test_index_number_format(self):
        assert is_valid_index_number("102-603")
        assert not is_valid_index_number("102603")
        assert not is_valid_index_number("102-6033")
        assert not is_valid_index_number(102603)

    def test_parse_plan_date(self):
        assert parse_plan_date("01/15/2024") == datetime(2024, 1, 15).date()

    @pytest.mark.parametrize("value", ["2024-01-15", "1/15/2024", "13/45/2024", "", None, 20240115])
    def test_parse_plan_date_rejects(self, value):
        assert parse_plan_date(value) is None

    def test_as_number(self):
        assert as_number(55) == 55.0
        assert as_number(" 55 ") == 55.0
        assert as_number("abc") is None
        assert as_number(True) is None
        assert as_number(float("nan")) is None


class TestRequiredFields:
    def test_valid_project(self, valid_project, rules, fixed_now):
        result = validate_project(valid_project, rules, now=fixed_now)
        assert result.is_valid
        assert result.errors == ()
        assert result.warnings == ()

    def test_empty_project_lists_every_required_field(self, rules, fixed_now):
        result = validate_project(ProjectInput(), rules, now=fixed_now)
        assert not result.is_valid
        assert result.errors == (
            "Missing required field: projectName",
            "Missing required field: siteLocation",
            "Missing required field: speedLimit",
            "Missing required field: workZoneLength",
        )

    def test_blank_string_is_missing(self, valid_project, rules, fixed_now):
        result = validate_project(_with(valid_project, project_name="   "), rules, now=fixed_now)
        assert "Missing required field: projectName" in result.errors

    def test_zero_is_present(self, valid_project, rules, fixed_now):
        """0 mph is present (so not 'missing') but out of range."""
        result = validate_project(_with(valid_project, speed_limit=0), rules, now=fixed_now)
        assert "Missing required field: speedLimit" not in result.errors
        assert "Speed limit must be between 25 and 80 mph" in result.errors


class TestRanges:
    @pytest.mark.parametrize("speed", [25, 80, "55", 45.0])
    def test_speed_in_range(self, valid_project, rules, fixed_now, speed):
        assert validate_project(_with(valid_project, speed_limit=speed), rules, now=fixed_now).is_valid

    @pytest.mark.parametrize("speed", [20, 85, 24.9])
    def test_speed_out_of_range(self, valid_project, rules, fixed_now, speed):
        result = validate_project(_with(valid_project, speed_limit=speed), rules, now=fixed_now)
        assert result.errors == ("Speed limit must be between 25 and 80 mph",)

    def test_speed_not_a_number(self, valid_project, rules, fixed_now):
        result = validate_project(_with(valid_project, speed_limit="fast"), rules, now=fixed_now)
        assert result.errors == ("Speed limit must be a number",)

    def test_length_out_of_range(self, valid_project, rules, fixed_now):
        result = validate_project(_with(valid_project, work_zone_length=50), rules, now=fixed_now)
        assert result.errors == ("Work zone length must be between 100 and 10000 feet",)

    def test_length_upper_bound_inclusive(self, valid_project, rules, fixed_now):
        assert validate_project(_with(valid_project, work_zone_length=10000), rules, now=fixed_now).is_valid

    def test_length_not_a_number(self, valid_project, rules, fixed_now):
        result = validate_project(_with(valid_project, work_zone_length="long"), rules, now=fixed_now)
        assert result.errors == ("Work zone length must be a number",)


class TestDates:
    def test_malformed_issue_date(self, valid_project, rules, fixed_now):
        result = validate_project(_with(valid_project, issue_date="2024-01-15"), rules, now=fixed_now)
        assert result.errors == ("Issue date must be in MM/DD/YYYY format",)

    def test_malformed_expiration_date(self, valid_project, rules, fixed_now):
        result = validate_project(_with(valid_project, expiration_date="13/45/2027"), rules, now=fixed_now)
        assert result.errors == ("Expiration date must be in MM/DD/YYYY format",)

    def test_expiration_before_issue(self, valid_project, rules, fixed_now):
        project = _with(valid_project, issue_date="06/01/2025", expiration_date="01/01/2025")
        result = validate_project(project, rules, now=fixed_now)
        assert "Expiration date must be after issue date" in result.errors

    def test_expired_certificate_is_warning_only(self, valid_project, rules, fixed_now):
        """Expired relative to the injected clock → warning, still valid."""
        project = _with(valid_project, issue_date="01/15/2023", expiration_date="01/15/2025")
        result = validate_project(project, rules, now=fixed_now)
        assert result.is_valid
        assert result.warnings == ("Certificate appears to be expired",)

    def test_expiry_is_relative_to_now(self, valid_project, rules):
        project = _with(valid_project, issue_date="01/15/2023", expiration_date="01/15/2025")
        earlier = validate_project(project, rules, now=datetime(2024, 12, 1))
        later = validate_project(project, rules, now=datetime(2025, 2, 1))
        assert earlier.warnings == ()
        assert later.warnings == ("Certificate appears to be expired",)

    def test_expiring_today_is_expired_after_midnight(self, valid_project, rules, fixed_now):
        project = _with(valid_project, issue_date="01/15/2023", expiration_date="06/15/2025")
        result = validate_project(project, rules, now=fixed_now)
        assert result.warnings == ("Certificate appears to be expired",)

    def test_expiring_at_midnight_exactly(self, valid_project, rules):
        project = _with(valid_project, issue_date="01/15/2023", expiration_date="06/15/2025")
        assert validate_project(project, rules, now=datetime(2025, 6, 15)).warnings == ()

    def test_dates_optional(self, valid_project, rules, fixed_now):
        project = _with(valid_project, issue_date=None, expiration_date=None)
        assert validate_project(project, rules, now=fixed_now).is_valid


class TestIndexNumber:
    def test_bad_index_number(self, valid_project, rules, fixed_now):
        result = validate_project(_with(valid_project, index_number="102603"), rules, now=fixed_now)
        assert result.errors == ("Index number must be in format XXX-XXX (e.g., 102-603)",)

    @pytest.mark.parametrize("index_number", ["102-60", "ABC-603", "1026-03", "102603", "102-6033"])
    def test_malformed_index_numbers(self, valid_project, rules, fixed_now, index_number):
        result = validate_project(_with(valid_project, index_number=index_number), rules, now=fixed_now)
        assert result.errors == ("Index number must be in format XXX-XXX (e.g., 102-603)",)

    def test_index_number_optional(self, valid_project, rules, fixed_now):
        assert validate_project(_with(valid_project, index_number=None), rules, now=fixed_now).is_valid


class TestResultInvariant:
    @pytest.mark.parametrize("changes", [
        {},
        {"speed_limit": 10},
        {"project_name": None, "work_zone_length": 5},
        {"issue_date": "01/15/2023", "expiration_date": "01/15/2025"},
    ])
    def test_is_valid_iff_no_errors(self, valid_project, rules, fixed_now, changes):
        result = validate_project(_with(valid_project, **changes), rules, now=fixed_now)
        assert result.is_valid == (len(result.errors) == 0)
