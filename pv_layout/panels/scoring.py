# This file is part of the solar wizard PV suitability model, copyright © Centre for Sustainable Energy, 2020-2023
# Licensed under the Reciprocal Public License v1.5. See LICENSE for licensing details.
import math
from typing import List, Optional, Sequence, Tuple

import numpy as np
from shapely.geometry import Point
from shapely.strtree import STRtree

from pv_layout import constants
from pv_layout.datatypes import BoundingBox, FluxRaster, GeoPoint, PanelSpec, ProviderPanel, \
    RoofSegment, ScoreSource
from pv_layout.flux import NEAREST, flux_at, median_flux, panel_energy_from_flux
from pv_layout.geos import deg_diff, to_positive_angle
from pv_layout.panels.grid import GridSlot
from pv_layout.util import stable_seed

_DIRECTIONS = ('N', 'NE', 'E', 'SE', 'S', 'SW', 'W', 'NW')


def degrees_from_south(azimuth: float) -> float:
    return deg_diff(to_positive_angle(azimuth), 180.0)


def check_multiplier_table(table: Sequence[Tuple[float, float]], floor: float):
    """
    Raise ValueError unless the table's multipliers never increase as the
    distance from south grows, and the floor is below all of them.
    """
    last_dist, last_mult = -1.0, math.inf
    for dist, mult in table:
        if dist <= last_dist:
            raise ValueError(f"Azimuth table distances must increase, got {dist} after {last_dist}")
        if mult > last_mult:
            raise ValueError(f"Azimuth table multipliers must not increase, got {mult} after {last_mult}")
        last_dist, last_mult = dist, mult
    if table and floor >= table[0][1]:
        raise ValueError(f"Azimuth floor {floor} must be below the south-facing multiplier {table[0][1]}")


def azimuth_multiplier(azimuth: float,
                       table: Sequence[Tuple[float, float]] = constants.AZIMUTH_MULTIPLIERS,
                       floor: float = constants.AZIMUTH_MULTIPLIER_FLOOR) -> float:
    """Yield multiplier for a roof facing `azimuth` (degrees clockwise from north)"""
    dist = degrees_from_south(azimuth)
    for max_dist, mult in table:
        if dist <= max_dist:
            return mult
    return floor


def segment_priority(azimuth: float) -> int:
    """Placement priority 1-5, 5 being south-facing"""
    dist = degrees_from_south(azimuth)
    for max_dist, priority in constants.SEGMENT_PRIORITY_BANDS:
        if dist <= max_dist:
            return priority
    return 1


def direction_name(azimuth: float) -> str:
    return _DIRECTIONS[int(((to_positive_angle(azimuth) + 22.5) % 360) // 45)]


def position_multiplier(point: GeoPoint, bounds: BoundingBox) -> float:
    """
    Panels near the middle of a segment lose less to edge shading: 1.0 at the
    centre, falling off towards the edges.
    """
    lat_pos = (point.latitude - bounds.south) / (bounds.north - bounds.south)
    lng_pos = (point.longitude - bounds.west) / (bounds.east - bounds.west)
    dist = math.hypot(lat_pos - 0.5, lng_pos - 0.5)
    return max(constants.POSITION_MULTIPLIER_FLOOR, 1.0 - dist * constants.POSITION_FALLOFF)


class ProviderPanelIndex:
    """Nearest-neighbour lookup over the provider's own panel positions"""

    def __init__(self, provider_panels: Sequence[ProviderPanel]):
        self.panels = list(provider_panels)
        self.tree = STRtree([Point(p.center.longitude, p.center.latitude) for p in self.panels])

    def nearest(self, point: GeoPoint) -> Optional[ProviderPanel]:
        if not self.panels:
            return None
        idx = self.tree.nearest(Point(point.longitude, point.latitude))
        return self.panels[int(idx)] if idx is not None else None


class SlotScorer:
    """
    Estimates yearly energy for each grid slot.

    With a flux raster, a slot is scored from the measured flux under it. Slots
    the raster doesn't cover (or covers with no data) fall back to the heuristic:
    base energy * azimuth multiplier * position multiplier. The base energy is the
    panel output at the raster's median flux when there is a raster, otherwise the
    nearest provider panel's output if there are any, otherwise the default.
    """

    def __init__(self,
                 spec: PanelSpec,
                 flux: Optional[FluxRaster] = None,
                 provider_panels: Sequence[ProviderPanel] = (),
                 interpolation: str = NEAREST,
                 base_energy_kwh: float = constants.DEFAULT_BASE_ENERGY_KWH,
                 irradiance_jitter: float = 0.0,
                 seed_key: str = "",
                 azimuth_table: Sequence[Tuple[float, float]] = constants.AZIMUTH_MULTIPLIERS,
                 azimuth_floor: float = constants.AZIMUTH_MULTIPLIER_FLOOR):
        if not 0.0 <= irradiance_jitter < 1.0:
            raise ValueError(f"irradiance_jitter must be in [0, 1), was {irradiance_jitter}")
        check_multiplier_table(azimuth_table, azimuth_floor)
        self.spec = spec
        self.flux = flux
        self.interpolation = interpolation
        self.base_energy_kwh = base_energy_kwh
        self.irradiance_jitter = irradiance_jitter
        self.seed_key = seed_key
        self.azimuth_table = azimuth_table
        self.azimuth_floor = azimuth_floor
        self.provider_index = ProviderPanelIndex(provider_panels) if provider_panels else None

        # With a raster, slots it doesn't cover are scored against the raster's own
        # typical yield so both kinds of score rank on one scale.
        self.calibrated_base_kwh = None
        if flux is not None:
            typical = median_flux(flux)
            if typical is not None:
                self.calibrated_base_kwh = panel_energy_from_flux(typical, spec)

    def _jitter(self, segment: RoofSegment, n: int) -> np.ndarray:
        if self.irradiance_jitter == 0.0:
            return np.ones(n)
        rng = np.random.default_rng(stable_seed(self.seed_key, segment.index))
        return rng.uniform(1.0 - self.irradiance_jitter, 1.0 + self.irradiance_jitter, n)

    def _base_energy(self, point: GeoPoint) -> float:
        if self.calibrated_base_kwh is not None:
            return self.calibrated_base_kwh
        if self.provider_index is not None:
            nearest = self.provider_index.nearest(point)
            if nearest is not None:
                return nearest.yearly_energy_dc_kwh
        return self.base_energy_kwh

    def heuristic_energy(self, segment: RoofSegment, point: GeoPoint) -> float:
        return (self._base_energy(point)
                * azimuth_multiplier(segment.azimuth_degrees, self.azimuth_table, self.azimuth_floor)
                * position_multiplier(point, segment.bounds))

    def score_segment(self, segment: RoofSegment,
                      slots: Sequence[GridSlot]) -> List[Tuple[float, ScoreSource]]:
        jitter = self._jitter(segment, len(slots))
        scores = []
        for slot, j in zip(slots, jitter):
            if self.flux is not None:
                flux = flux_at(self.flux, slot.position, self.interpolation)
                if flux is not None:
                    scores.append((panel_energy_from_flux(flux, self.spec), ScoreSource.FLUX))
                    continue
            energy = self.heuristic_energy(segment, slot.position) * float(j)
            scores.append((max(energy, 0.0), ScoreSource.HEURISTIC))
        return scores
