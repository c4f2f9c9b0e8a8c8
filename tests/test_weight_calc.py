import pytest

from modules.shipment.shipment_schema import Dimensions
from utils.exceptions import ValidationError
from utils.weight_calc import chargeable_weight, round_up_to_unit, volumetric_weight


def test_actual_weight_wins_for_small_box():
    # 10 x 10 x 10 cm is 0.2 kg volumetric
    assert chargeable_weight(1.5, Dimensions(length=10, width=10, height=10)) == 1.5


def test_volumetric_weight_wins_for_light_bulky_box():
    dims = {"length": 50, "width": 40, "height": 30}
    assert volumetric_weight(dims) == 12.0
    assert chargeable_weight(2, dims) == 12.0


@pytest.mark.parametrize("actual", [0.1, 0.5, 1.0, 3.3, 7.9])
def test_chargeable_is_max_of_actual_and_volumetric(actual):
    dims = {"length": 30, "width": 20, "height": 15}
    assert chargeable_weight(actual, dims) == max(actual, volumetric_weight(dims))


def test_custom_divisor():
    dims = {"length": 50, "width": 40, "height": 30}
    assert volumetric_weight(dims, divisor=4000) == 15.0


def test_billable_unit_rounding():
    dims = {"length": 10, "width": 10, "height": 10}
    assert chargeable_weight(1.2, dims, billable_unit=0.5) == 1.5
    assert chargeable_weight(1.5, dims, billable_unit=0.5) == 1.5
    assert round_up_to_unit(0.01, 0.5) == 0.5


@pytest.mark.parametrize("actual", [0, -1, None])
def test_non_positive_weight_is_rejected(actual):
    with pytest.raises(ValidationError):
        chargeable_weight(actual, {"length": 10, "width": 10, "height": 10})


@pytest.mark.parametrize("dims", [
    {"length": 0, "width": 10, "height": 10},
    {"length": 10, "width": -2, "height": 10},
    {"length": 10, "width": 10},
])
def test_bad_dimensions_are_rejected(dims):
    with pytest.raises(ValidationError):
        chargeable_weight(1, dims)
