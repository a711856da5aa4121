# This file is part of the solar wizard PV suitability model, copyright © Centre for Sustainable Energy, 2020-2023
# Licensed under the Reciprocal Public License v1.5. See LICENSE for licensing details.
import math
from typing import List, NamedTuple, Tuple

from shapely.geometry import Polygon

from pv_layout.datatypes import BoundingBox, GeoPoint, PanelSpec, RoofSegment
from pv_layout.geos import LocalScale, inset_bounds, rect

# Slack (degrees, ~0.1mm) allowed when testing a slot against the margin box.
_EDGE_TOLERANCE_DEG = 1e-9


class GridSlot(NamedTuple):
    position: GeoPoint
    row_index: int
    col_index: int


def grid_dimensions(bounds: BoundingBox, spec: PanelSpec, scale: LocalScale) -> Tuple[int, int]:
    """
    (rows, cols) of panels that fit inside `bounds` once the edge margin is removed.
    Columns run east-west (panel width), rows north-south (panel height).
    """
    width_m, height_m = scale.extent_m(bounds)
    usable_w = width_m * (1 - 2 * spec.margin_fraction)
    usable_h = height_m * (1 - 2 * spec.margin_fraction)
    cols = max(math.floor(usable_w / spec.col_pitch_m), 0)
    rows = max(math.floor(usable_h / spec.row_pitch_m), 0)
    return rows, cols


def segment_capacity(segment: RoofSegment, spec: PanelSpec, scale: LocalScale) -> int:
    rows, cols = grid_dimensions(segment.bounds, spec, scale)
    return rows * cols


def panel_footprint(center: GeoPoint, spec: PanelSpec, scale: LocalScale) -> Polygon:
    """Landscape panel rectangle around `center`, in (lng, lat) degrees"""
    w = scale.lng_degrees(spec.width_m)
    h = scale.lat_degrees(spec.height_m)
    return rect(center.longitude - w / 2, center.latitude - h / 2, w, h)


def grid_slots(segment: RoofSegment, spec: PanelSpec, scale: LocalScale) -> List[GridSlot]:
    """
    Regular grid of panel slots over a roof segment's bounding box.

    Slots are laid out row-major from the south-west corner of the margin box,
    one panel pitch (panel + spacing) apart. Any slot whose panel would poke out of
    the margin box is dropped. A segment too small for a single row or column
    gives an empty list.
    """
    bounds = segment.bounds
    rows, cols = grid_dimensions(bounds, spec, scale)
    if rows == 0 or cols == 0:
        return []

    inner = inset_bounds(bounds, spec.margin_fraction)
    inner_tol = inner.buffer(_EDGE_TOLERANCE_DEG, join_style="mitre")
    inner_w, inner_s, _, _ = inner.bounds

    panel_w = scale.lng_degrees(spec.width_m)
    panel_h = scale.lat_degrees(spec.height_m)
    col_step = scale.lng_degrees(spec.col_pitch_m)
    row_step = scale.lat_degrees(spec.row_pitch_m)

    slots = []
    for row in range(rows):
        south = inner_s + row * row_step
        for col in range(cols):
            west = inner_w + col * col_step
            if not rect(west, south, panel_w, panel_h).within(inner_tol):
                continue
            slots.append(GridSlot(GeoPoint(south + panel_h / 2, west + panel_w / 2), row, col))
    return slots
