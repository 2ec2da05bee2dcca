"""SWEREF 99 TM to WGS 84 reprojection.

The municipal feed delivers planar survey coordinates in SWEREF 99 TM
(a transverse Mercator grid on the GRS 80 ellipsoid).  :func:`project`
runs the inverse Gauss-Krüger formulas, expanded to order 4 in the third
flattening ``n``, and yields ``(longitude, latitude)`` in degrees.

The module has no dependencies on the rest of the package.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

# GRS 80
_AXIS = 6378137.0
_FLATTENING = 1.0 / 298.257222101

# SWEREF 99 TM
_CENTRAL_MERIDIAN = 15.00
_SCALE = 0.9996
_FALSE_NORTHING = 0.0
_FALSE_EASTING = 500000.0


def _series_constants() -> tuple[float, tuple[float, float, float, float], tuple[float, float, float, float]]:
    e2 = _FLATTENING * (2.0 - _FLATTENING)
    n = _FLATTENING / (2.0 - _FLATTENING)

    a_roof = _AXIS / (1.0 + n) * (1.0 + n**2 / 4.0 + n**4 / 64.0)

    delta = (
        n / 2.0 - 2.0 * n**2 / 3.0 + 37.0 * n**3 / 96.0 - n**4 / 360.0,
        n**2 / 48.0 + n**3 / 15.0 - 437.0 * n**4 / 1440.0,
        17.0 * n**3 / 480.0 - 37.0 * n**4 / 840.0,
        4397.0 * n**4 / 161280.0,
    )

    latitude_terms = (
        e2 + e2**2 + e2**3 + e2**4,
        -(7.0 * e2**2 + 17.0 * e2**3 + 30.0 * e2**4) / 6.0,
        (224.0 * e2**3 + 889.0 * e2**4) / 120.0,
        -(4279.0 * e2**4) / 1260.0,
    )
    return a_roof, delta, latitude_terms


_A_ROOF, _DELTA, _LAT_TERMS = _series_constants()


def project(easting: float, northing: float) -> tuple[float, float]:
    """Convert a SWEREF 99 TM ``(easting, northing)`` pair to ``(longitude, latitude)``."""
    xi = (northing - _FALSE_NORTHING) / (_SCALE * _A_ROOF)
    eta = (easting - _FALSE_EASTING) / (_SCALE * _A_ROOF)

    xi_prim = xi
    eta_prim = eta
    for order, delta in enumerate(_DELTA, start=1):
        k = 2.0 * order
        xi_prim -= delta * math.sin(k * xi) * math.cosh(k * eta)
        eta_prim -= delta * math.cos(k * xi) * math.sinh(k * eta)

    phi_star = math.asin(math.sin(xi_prim) / math.cosh(eta_prim))
    delta_lambda = math.atan(math.sinh(eta_prim) / math.cos(xi_prim))

    a_star, b_star, c_star, d_star = _LAT_TERMS
    sin_phi = math.sin(phi_star)
    lat_radian = phi_star + sin_phi * math.cos(phi_star) * (
        a_star + b_star * sin_phi**2 + c_star * sin_phi**4 + d_star * sin_phi**6
    )
    lon_radian = math.radians(_CENTRAL_MERIDIAN) + delta_lambda

    return math.degrees(lon_radian), math.degrees(lat_radian)


def project_positions(coordinates: Any) -> Any:
    """Project every ``[easting, northing]`` pair in a nested coordinate structure.

    Works for any GeoJSON nesting depth (line string, ring, polygon,
    multi-polygon).  Lists become tuples; grouping is preserved.  Extra
    ordinates beyond the first two (e.g. elevation) are dropped.
    """
    if _is_position(coordinates):
        return project(float(coordinates[0]), float(coordinates[1]))
    return tuple(project_positions(item) for item in coordinates)


def _is_position(value: Any) -> bool:
    return (
        isinstance(value, Sequence)
        and len(value) >= 2
        and all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in value)
    )
