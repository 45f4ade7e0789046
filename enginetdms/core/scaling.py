# enginetdms/core/scaling.py
"""
Raw-to-engineering-unit scaling described by NI_Scale properties.

Supported scale types are Linear (y = slope * x + intercept) and Polynomial
(y = sum(c[i] * x**i)). Only the selected scale is applied; chained input
sources are not followed.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

import numpy as np

from .exceptions import InvalidChannel


@dataclass(frozen=True, slots=True)
class LinearScaling:
    slope: float
    intercept: float = 0.0

    def scale(self, data: np.ndarray) -> np.ndarray:
        return np.asarray(data, dtype=np.float64) * self.slope + self.intercept


@dataclass(frozen=True, slots=True)
class PolynomialScaling:
    coefficients: tuple[float, ...]

    def scale(self, data: np.ndarray) -> np.ndarray:
        # np.polyval wants the highest order first.
        return np.polyval(list(reversed(self.coefficients)), np.asarray(data, dtype=np.float64))


Scaling = LinearScaling | PolynomialScaling


def get_scaling(properties: Mapping[str, Any], scale_id: int | None = None) -> Scaling | None:
    """
    Build the scaling for a channel from its properties.

    Returns None when the channel carries no scales or is already scaled.
    `scale_id` selects a scale explicitly (DAQmx channels); otherwise the
    last declared scale is used.
    """
    if properties.get("NI_Scaling_Status", "unscaled") == "scaled":
        return None
    count = properties.get("NI_Number_Of_Scales")
    if not count:
        return None

    index = int(count) - 1 if scale_id is None else int(scale_id)
    prefix = f"NI_Scale[{index}]"
    scale_type = properties.get(f"{prefix}_Scale_Type")
    if scale_type is None:
        raise InvalidChannel(f"Scale {index} is not described in the channel properties.")

    if scale_type == "Linear":
        try:
            slope = float(properties[f"{prefix}_Linear_Slope"])
        except KeyError as e:
            raise InvalidChannel(f"Linear scale {index} has no slope.") from e
        intercept = float(properties.get(f"{prefix}_Linear_Y_Intercept", 0.0))
        return LinearScaling(slope=slope, intercept=intercept)

    if scale_type == "Polynomial":
        size = int(properties.get(f"{prefix}_Polynomial_Coefficients_Size", 0))
        try:
            coefficients = tuple(
                float(properties[f"{prefix}_Polynomial_Coefficients[{i}]"]) for i in range(size)
            )
        except KeyError as e:
            raise InvalidChannel(f"Polynomial scale {index} is missing a coefficient.") from e
        return PolynomialScaling(coefficients=coefficients)

    raise InvalidChannel(f"Unsupported scale type {scale_type!r} for scale {index}.")
