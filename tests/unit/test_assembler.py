"""Tests for rendering record assembly."""

import dataclasses

import pytest

from tcplan.core.types import ProjectInput
from tcplan.pipeline.assembler import assemble_record
from tcplan.pipeline.calculator import queue_length, spacing_requirements


def _minimal() -> ProjectInput:
    return ProjectInput(
        project_name="SR 84 Widening",
        site_location="SR 84 at I-595",
        speed_limit=45,
        work_zone_length=1500,
    )


class TestDefaults:
    def test_rule_table_defaults_fill_gaps(self, rules, fixed_now):
        record = assemble_record(_minimal(), rules, now=fixed_now)
        assert record.road_type == "arterial"
        assert record.estimated_duration_hours == 8
        assert record.index_number == "102-603"
        assert record.sheet_number == "1 of 2"
        assert record.lane_closure_type == "Right Lane"
        assert record.traffic_control_method == "Flagger"
        assert record.work_hours == "7:00 AM - 5:00 PM"

    def test_input_wins_over_default(self, rules, fixed_now):
        project = _minimal()
        project.lane_closure_type = "Left Lane"
        project.road_type = "interstate"
        record = assemble_record(project, rules, now=fixed_now)
        assert record.lane_closure_type == "Left Lane"
        assert record.road_type == "interstate"
        assert record.spacing.sign_spacing == 1500

    def test_blank_input_uses_default(self, rules, fixed_now):
        project = _minimal()
        project.lane_closure_type = "   "
        assert assemble_record(project, rules, now=fixed_now).lane_closure_type == "Right Lane"

    def test_zero_is_kept(self, rules, fixed_now):
        """A duration of 0 is a value, not a gap."""
        project = _minimal()
        project.estimated_duration_hours = 0
        record = assemble_record(project, rules, now=fixed_now)
        assert record.estimated_duration_hours == 0
        assert record.requires_rumble_strips is False

    def test_no_default_means_empty_string(self, rules, fixed_now):
        record = assemble_record(_minimal(), rules, now=fixed_now)
        assert record.contractor == ""
        assert record.satellite_image_path is None


class TestComputedFields:
    def test_timestamps_from_clock(self, rules, fixed_now):
        record = assemble_record(_minimal(), rules, now=fixed_now)
        assert record.timestamp == "2025-06-15 10:30:00"
        assert record.current_date == "06/15/25"

    def test_numeric_strings_converted(self, rules, fixed_now):
        project = _minimal()
        project.speed_limit = "55"
        project.work_zone_length = "2000"
        record = assemble_record(project, rules, now=fixed_now)
        assert record.speed_limit == 55
        assert isinstance(record.speed_limit, int)
        assert record.work_zone_length == 2000

    def test_calculations_match_calculator(self, rules, fixed_now):
        record = assemble_record(_minimal(), rules, now=fixed_now)
        assert record.spacing == spacing_requirements(45, "arterial", rules)
        assert record.queue_length == queue_length(1500, 45)
        assert record.advance_warning.urban == 300

    def test_plan_type_and_signs(self, rules, fixed_now):
        record = assemble_record(_minimal(), rules, now=fixed_now)
        assert record.plan_type.index_number == "102-603"
        assert record.work_zone_type == "flagging"
        assert "BE PREPARED TO STOP" in record.required_signs

    def test_explicit_work_zone_type(self, rules, fixed_now):
        project = _minimal()
        project.work_zone_type = "shoulder_work"
        record = assemble_record(project, rules, now=fixed_now)
        assert record.required_signs == ("ROAD WORK AHEAD", "SHOULDER WORK", "END ROAD WORK")

    def test_tables_ascending(self, rules, fixed_now):
        record = assemble_record(_minimal(), rules, now=fixed_now)
        for table in (record.device_spacing_table, record.taper_length_table, record.buffer_length_table):
            speeds = [row.speed for row in table]
            assert speeds == sorted(speeds)
            assert len(speeds) == 10


class TestImmutability:
    def test_record_is_frozen(self, rules, fixed_now):
        record = assemble_record(_minimal(), rules, now=fixed_now)
        with pytest.raises(dataclasses.FrozenInstanceError):
            record.speed_limit = 70

    def test_extra_is_read_only(self, rules, fixed_now):
        project = _minimal()
        project.extra = {"permitNumber": "P-1"}
        record = assemble_record(project, rules, now=fixed_now)
        assert record.extra["permitNumber"] == "P-1"
        with pytest.raises(TypeError):
            record.extra["permitNumber"] = "P-2"
