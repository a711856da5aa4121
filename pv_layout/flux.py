# This file is part of the solar wizard PV suitability model, copyright © Centre for Sustainable Energy, 2020-2023
# Licensed under the Reciprocal Public License v1.5. See LICENSE for licensing details.
"""Point lookups into an already-decoded annual flux raster"""
import math
from typing import Optional

import numpy as np

from pv_layout.datatypes import BoundingBox, FluxRaster, GeoPoint, InvalidGeometryError, PanelSpec
from pv_layout.geos import LocalScale

NEAREST = "nearest"
BILINEAR = "bilinear"


def flux_raster_from_array(values: np.ndarray,
                           bounds: BoundingBox,
                           pixel_size_meters: float = None) -> FluxRaster:
    """
    Wrap a 2-D (rows = north to south) array of annual flux as a FluxRaster.
    If the pixel size isn't known it is derived from the bounds.
    """
    values = np.asarray(values, dtype=np.float64)
    if values.ndim != 2:
        raise InvalidGeometryError(f"Flux raster must be 2-D, got shape {values.shape}")
    height, width = values.shape
    if pixel_size_meters is None:
        width_m, _ = LocalScale(bounds.center.latitude).extent_m(bounds)
        pixel_size_meters = width_m / width
    return FluxRaster(width=width, height=height, bounds=bounds,
                      pixel_size_meters=pixel_size_meters, values=values)


def _has_data(val: float) -> bool:
    return not math.isnan(val) and val > 0


def _pixel_coords(raster: FluxRaster, point: GeoPoint):
    b = raster.bounds
    fx = (point.longitude - b.west) / (b.east - b.west) * raster.width
    fy = (b.north - point.latitude) / (b.north - b.south) * raster.height
    return fx, fy


def flux_at(raster: FluxRaster, point: GeoPoint, interpolation: str = NEAREST) -> Optional[float]:
    """
    Annual flux (kWh/m2/year) at `point`, or None if the point is outside the
    raster or lands on a no-data cell.
    """
    fx, fy = _pixel_coords(raster, point)
    x = math.floor(fx)
    y = math.floor(fy)
    if x < 0 or x >= raster.width or y < 0 or y >= raster.height:
        return None

    nearest = raster.value_at(x, y)
    if interpolation == NEAREST:
        return nearest if _has_data(nearest) else None
    elif interpolation != BILINEAR:
        raise ValueError(f"Unrecognised interpolation: {interpolation}")

    # Bilinear between the four surrounding pixel centres. Any no-data
    # neighbour means falling back to the nearest cell.
    cx = min(max(fx - 0.5, 0.0), raster.width - 1.0)
    cy = min(max(fy - 0.5, 0.0), raster.height - 1.0)
    x0, y0 = int(math.floor(cx)), int(math.floor(cy))
    x1, y1 = min(x0 + 1, raster.width - 1), min(y0 + 1, raster.height - 1)
    tx, ty = cx - x0, cy - y0

    corners = (raster.value_at(x0, y0), raster.value_at(x1, y0),
               raster.value_at(x0, y1), raster.value_at(x1, y1))
    if not all(_has_data(v) for v in corners):
        return nearest if _has_data(nearest) else None

    v00, v10, v01, v11 = corners
    top = v00 * (1 - tx) + v10 * tx
    bottom = v01 * (1 - tx) + v11 * tx
    return top * (1 - ty) + bottom * ty


def median_flux(raster: FluxRaster) -> Optional[float]:
    """Median annual flux over the cells that have data, or None if none do"""
    values = raster.values[~np.isnan(raster.values)]
    values = values[values > 0]
    if values.size == 0:
        return None
    return float(np.median(values))


def panel_energy_from_flux(flux_kwh_m2: float, spec: PanelSpec) -> float:
    """Yearly DC output (kWh) of one panel sitting in `flux_kwh_m2` of annual flux"""
    return flux_kwh_m2 * spec.area_m2 * spec.efficiency * spec.derating_factor
