import math
from typing import Optional

from utils.exceptions import ValidationError

DEFAULT_VOLUMETRIC_DIVISOR = 5000


def _dimension_values(dims) -> tuple:
    # accepts the Dimensions schema or a plain {"length", "width", "height"} dict
    if isinstance(dims, dict):
        return dims.get("length"), dims.get("width"), dims.get("height")
    return dims.length, dims.width, dims.height


def volumetric_weight(dims, divisor: float = DEFAULT_VOLUMETRIC_DIVISOR) -> float:
    """
    Volumetric weight in kg for dimensions in cm: (L x W x H) / divisor.
    """
    length, width, height = _dimension_values(dims)

    for name, value in (("length", length), ("width", width), ("height", height)):
        if value is None or float(value) <= 0:
            raise ValidationError("Dimension %s must be greater than 0" % name)

    if divisor <= 0:
        raise ValidationError("Volumetric divisor must be greater than 0")

    return float(length) * float(width) * float(height) / float(divisor)


def round_up_to_unit(weight: float, unit: float) -> float:
    """
    Round a weight up to the next multiple of unit, e.g. 1.2 -> 1.5 for 0.5 kg.
    """
    if unit is None or unit <= 0:
        return weight
    # shave float noise so that 1.5 / 0.5 stays exactly 3 units
    units = math.ceil(round(weight / unit, 9))
    return round(units * unit, 3)


def chargeable_weight(
    actual_kg: float,
    dims,
    divisor: float = DEFAULT_VOLUMETRIC_DIVISOR,
    billable_unit: Optional[float] = None,
) -> float:
    """
    Chargeable weight is the greater of actual and volumetric weight, rounded up
    to the provider's minimum billable unit when its rate card is slab aligned.
    """
    if actual_kg is None or float(actual_kg) <= 0:
        raise ValidationError("Actual weight must be greater than 0")

    weight = max(float(actual_kg), volumetric_weight(dims, divisor))

    if billable_unit:
        weight = round_up_to_unit(weight, billable_unit)

    return weight
