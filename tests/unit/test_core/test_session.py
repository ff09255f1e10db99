import pytest
from shapely.geometry import LineString

from core.errors import InvalidGeometryError, NoAvailableAreaError, NoCountrySelectedError, UnsupportedCountryError
from core.layers import AVAILABLE_AREA, RESTORATION_PRIORITY
from core.models import PriorityWeights, ProjectParameters, RestorationCriteria
from core.scoring import PriorityFactor
from core.session import (
    ClearDrawings,
    DrawShape,
    Reset,
    RunAnalysis,
    SelectCountry,
    SessionState,
    SetCriterion,
    SetProjectParameter,
    SetWeight,
    ShowAvailableArea,
    ShowFactorLayer,
    StartDrawing,
    apply_action,
)


def run(state, data, *actions):
    for action in actions:
        state = apply_action(state, action, data)
    return state


@pytest.fixture
def selected(data):
    return apply_action(SessionState(), SelectCountry("Testland"), data)


@pytest.fixture
def with_area(selected, data):
    return run(
        selected, data,
        SetCriterion("grassland", True),
        SetCriterion("reforestation", True),
        ShowAvailableArea(),
    )


class TestCountrySelection:

    def test_select_registers_hidden_base_layers(self, selected):
        assert selected.country_name == "Testland"
        assert [layer.name for layer in selected.layers] == ["Grassland", "Cropland", "Historical Forest"]
        assert not any(layer.shown for layer in selected.layers)

    def test_unsupported_country_keeps_state(self, selected, data):
        with pytest.raises(UnsupportedCountryError):
            apply_action(selected, SelectCountry("Atlantis"), data)
        assert selected.country_name == "Testland"

    def test_reselect_discards_derived_state(self, with_area, data, grid_box):
        state = run(with_area, data, RunAnalysis(), DrawShape(grid_box))
        state = apply_action(state, SelectCountry("Testland"), data)
        assert state.available_area is None
        assert state.priority is None
        assert state.statistics is None
        assert state.layer(AVAILABLE_AREA) is None
        # Criteria survive a country change
        assert state.criteria == with_area.criteria


class TestAvailableArea:

    def test_requires_country(self, data):
        with pytest.raises(NoCountrySelectedError):
            apply_action(SessionState(), ShowAvailableArea(), data)

    def test_show_available_area(self, with_area):
        assert with_area.available_area.valid.sum() == 2
        layer = with_area.layer(AVAILABLE_AREA)
        assert layer.palette == ("purple",)

    def test_criteria_change_does_not_touch_area(self, with_area, data):
        """Toggling a flag leaves the displayed area alone until it is shown again."""
        before = with_area.available_area
        state = apply_action(with_area, SetCriterion("afforestation", True), data)
        assert state.available_area is before
        assert state.available_area.valid.sum() == 2

        state = apply_action(state, ShowAvailableArea(), data)
        assert state.available_area.valid.sum() == 7

    def test_recompute_clears_priority(self, with_area, data):
        state = run(with_area, data, SetWeight(PriorityFactor.FOREST_PROXIMITY, 2), RunAnalysis())
        assert state.layer(RESTORATION_PRIORITY) is not None
        state = apply_action(state, ShowAvailableArea(), data)
        assert state.priority is None
        assert state.layer(RESTORATION_PRIORITY) is None


class TestAnalysis:

    def test_run_requires_available_area(self, selected, data):
        with pytest.raises(NoAvailableAreaError):
            apply_action(selected, RunAnalysis(), data)

    def test_run_without_country_reports_missing_area(self, data):
        with pytest.raises(NoAvailableAreaError):
            apply_action(SessionState(), RunAnalysis(), data)

    def test_run_analysis(self, with_area, data):
        state = run(with_area, data, SetWeight(PriorityFactor.FOREST_PROXIMITY, 5), RunAnalysis())
        # Uniform layers over two pixels: both are the maximum
        assert state.priority.valid.sum() == 2
        assert (state.priority.filled(0)[state.priority.valid] == 1.0).all()
        assert state.layer(RESTORATION_PRIORITY).vmax == 1

    def test_weights_are_read_at_run_time(self, with_area, data):
        state = run(with_area, data, SetWeight(PriorityFactor.FOREST_PROXIMITY, 5), SetWeight(PriorityFactor.FOREST_PROXIMITY, 0))
        state = apply_action(state, RunAnalysis(), data)
        assert (state.priority.filled(-1)[state.priority.valid] == 0).all()

    def test_invalid_weight_keeps_state(self, selected, data):
        with pytest.raises(ValueError):
            apply_action(selected, SetWeight(PriorityFactor.CARBON_POTENTIAL, 9), data)

    def test_show_factor_layer(self, selected, data):
        state = apply_action(selected, ShowFactorLayer(PriorityFactor.OPPORTUNITY_COST), data)
        layer = state.layer("Opportunity Cost")
        assert (layer.vmin, layer.vmax) == (0, 100)
        assert layer.legend == ("low", "high")


class TestDrawing:

    def test_draw_without_area_raises(self, selected, data, grid_box):
        with pytest.raises(NoAvailableAreaError):
            apply_action(selected, DrawShape(grid_box), data)

    def test_draw_computes_statistics(self, with_area, data, grid_box):
        state = apply_action(with_area, DrawShape(grid_box), data)
        assert state.aoi is grid_box
        assert state.statistics.species_count == 2
        assert state.statistics.beneficiaries == 20

    def test_invalid_shape_keeps_previous_statistics(self, with_area, data, grid_box):
        state = apply_action(with_area, DrawShape(grid_box), data)
        with pytest.raises(InvalidGeometryError):
            apply_action(state, DrawShape(LineString([(10, 0.97), (10.03, 0.99)])), data)
        assert state.statistics is not None

    def test_start_drawing_blanks_results(self, with_area, data, grid_box):
        state = run(with_area, data, DrawShape(grid_box), StartDrawing("polygon"))
        assert state.draw_mode == "polygon"
        assert state.aoi is None
        assert state.statistics is None

    def test_unknown_draw_shape(self, selected, data):
        with pytest.raises(ValueError):
            apply_action(selected, StartDrawing("circle"), data)

    def test_clear_drawings(self, with_area, data, grid_box):
        state = run(with_area, data, DrawShape(grid_box), ClearDrawings())
        assert state.aoi is None
        assert state.statistics is None
        assert state.available_area is with_area.available_area


class TestParametersAndReset:

    def test_parameter_change_keeps_statistics(self, with_area, data, grid_box):
        state = run(with_area, data, DrawShape(grid_box), SetProjectParameter("project_length", "30"))
        assert state.params.project_length == 30
        assert state.statistics == apply_action(with_area, DrawShape(grid_box), data).statistics

    def test_parameters_used_on_next_draw(self, with_area, data, grid_box):
        short = apply_action(with_area, DrawShape(grid_box), data)
        longer = run(with_area, data, SetProjectParameter("project_length", "30"), DrawShape(grid_box))
        assert longer.statistics.total_cost == pytest.approx(2 * short.statistics.total_cost, abs=1)

    def test_bad_parameter(self, selected, data):
        with pytest.raises(ValueError):
            apply_action(selected, SetProjectParameter("cost_per_ha_yr", "lots"), data)

    def test_reset(self, with_area, data, grid_box):
        """Reset clears everything except the project parameters."""
        state = run(
            with_area, data,
            SetWeight(PriorityFactor.CARBON_POTENTIAL, 4),
            RunAnalysis(),
            SetProjectParameter("cost_per_ha_yr", "2000"),
            DrawShape(grid_box),
            Reset(),
        )
        assert state.workspace is None
        assert state.criteria == RestorationCriteria()
        assert state.weights == PriorityWeights()
        assert state.available_area is None
        assert state.priority is None
        assert state.aoi is None
        assert state.statistics is None
        assert state.layers == ()
        assert state.params == ProjectParameters(cost_per_ha_yr=2000)


def test_unknown_action(data):
    with pytest.raises(TypeError):
        apply_action(SessionState(), object(), data)
