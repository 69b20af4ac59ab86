"""
Unit tests for display-math auto-fit planning.
"""

import pytest

from mdcompose.autofit import (
    AutoFitScaler,
    FitTransform,
    MathMeasurement,
    fit_scale,
    parse_measurements,
)


class TestFitScale:
    """Test the shrink factor computation."""

    def test_overflow_shrinks_to_container(self):
        assert fit_scale(800, 400) == pytest.approx(0.5)

    def test_fitting_block_untouched(self):
        assert fit_scale(300, 400) is None

    def test_subpixel_overflow_ignored(self):
        assert fit_scale(400.3, 400) is None

    @pytest.mark.parametrize("natural,container", [(0, 400), (400, 0), (-1, 10)])
    def test_unmeasured_block_untouched(self, natural, container):
        assert fit_scale(natural, container) is None


class TestAutoFitScaler:
    """Test plan bookkeeping."""

    def test_plan_only_overflowing(self):
        scaler = AutoFitScaler()
        transforms = scaler.plan(
            [MathMeasurement(0, 300, 400), MathMeasurement(1, 600, 400)]
        )

        assert transforms == [FitTransform(index=1, scale=pytest.approx(400 / 600))]
        assert list(scaler.applied) == [1]

    def test_replan_starts_from_scratch(self):
        """A later plan never keeps or compounds earlier scales."""
        scaler = AutoFitScaler()
        scaler.plan([MathMeasurement(0, 800, 400)])
        assert scaler.applied == {0: pytest.approx(0.5)}

        transforms = scaler.plan([MathMeasurement(0, 800, 600)])
        assert scaler.applied == {0: pytest.approx(0.75)}
        assert transforms[0].scale == pytest.approx(0.75)

        assert scaler.plan([MathMeasurement(0, 300, 600)]) == []
        assert scaler.applied == {}

    def test_css_transform(self):
        assert FitTransform(index=0, scale=0.5).css_transform == "scale(0.5000)"

    def test_apply_script_embeds_plan(self):
        scaler = AutoFitScaler()
        script = scaler.apply_script([FitTransform(index=2, scale=0.5)])

        assert '{"2": "scale(0.5000)"}' in script
        assert '".math-display"' in script

    def test_measure_script_clears_previous_transform(self):
        script = AutoFitScaler().measure_script()
        assert 'block.style.transform = "";' in script
        assert "scrollWidth" in script


class TestParseMeasurements:
    """Test coercion of page-side measurement results."""

    def test_valid_entries(self):
        result = parse_measurements([{"index": 0, "natural": 810, "container": "400"}])
        assert result == [MathMeasurement(0, 810.0, 400.0)]

    def test_junk_skipped(self):
        result = parse_measurements(
            [
                "junk",
                {"index": 1},
                {"index": 2, "natural": None, "container": 1},
                {"index": 3, "natural": 5, "container": 4},
            ]
        )
        assert [m.index for m in result] == [3]

    def test_non_list_result(self):
        assert parse_measurements(None) == []
        assert parse_measurements({"index": 0}) == []
