# This file is part of the solar wizard PV suitability model, copyright © Centre for Sustainable Energy, 2020-2023
# Licensed under the Reciprocal Public License v1.5. See LICENSE for licensing details.
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from pv_layout import constants
from pv_layout.datatypes import Building, FluxRaster, PanelCandidate, PanelSpec, PlacedPanel, \
    SystemMetrics, Tariff
from pv_layout.flux import NEAREST, BILINEAR
from pv_layout.geos import LocalScale
from pv_layout.metrics.system_metrics import system_metrics, estimate_energy_from_configs, \
    layout_efficiency
from pv_layout.panels.candidates import generate_candidates
from pv_layout.panels.grid import segment_capacity
from pv_layout.panels.scoring import SlotScorer, direction_name, segment_priority
from pv_layout.panels.selection import SeparationPolicy, ScoreTier, rank_candidates, \
    select_panels, tier_counts, segment_distribution
from pv_layout.util import validate_float, validate_int


@dataclass(frozen=True)
class SegmentSummary:
    segment_index: int
    direction: str
    priority: int
    capacity: int
    panel_count: int

    def as_dict(self) -> dict:
        return {
            "segmentIndex": self.segment_index,
            "direction": self.direction,
            "priority": self.priority,
            "capacity": self.capacity,
            "panelCount": self.panel_count,
        }


@dataclass(frozen=True)
class PanelLayout:
    panels: Tuple[PlacedPanel, ...]
    metrics: SystemMetrics
    requested_count: int
    candidate_count: int
    grid_capacity: int
    tier_counts: Dict[ScoreTier, int]
    segment_distribution: Dict[int, int]
    segments: Tuple[SegmentSummary, ...] = ()
    layout_efficiency: float = 0.0

    @property
    def shortfall(self) -> int:
        """How many requested panels didn't fit on the roof"""
        return self.requested_count - len(self.panels)

    def as_dict(self) -> dict:
        return {
            "requestedCount": self.requested_count,
            "candidateCount": self.candidate_count,
            "gridCapacity": self.grid_capacity,
            "shortfall": self.shortfall,
            "panels": [p.as_dict() for p in self.panels],
            "metrics": self.metrics.as_dict(),
            "tierCounts": {t.value: n for t, n in self.tier_counts.items()},
            "segmentDistribution": self.segment_distribution,
            "segments": [s.as_dict() for s in self.segments],
            "layoutEfficiency": self.layout_efficiency,
        }


def _tariff_for(building: Building, tariff: Optional[Tariff]) -> Tariff:
    if tariff is not None:
        return tariff
    if building.carbon_offset_factor_kg_per_mwh:
        return Tariff(co2_kg_per_kwh=building.carbon_offset_factor_kg_per_mwh / 1000)
    return Tariff()


def _spec_for(building: Building, spec: Optional[PanelSpec], use_provider_panel_dims: bool) -> PanelSpec:
    if spec is not None:
        return spec
    if use_provider_panel_dims and building.provider_panel_spec is not None:
        return building.provider_panel_spec
    return PanelSpec()


class LayoutSession:
    """
    Placement for one building. The scored and ranked candidate pool is built once,
    on first use, so changing the panel count only re-runs selection and metrics.
    """

    def __init__(self,
                 building: Building,
                 flux: Optional[FluxRaster] = None,
                 spec: Optional[PanelSpec] = None,
                 tariff: Optional[Tariff] = None,
                 use_provider_panel_dims: bool = False,
                 interpolation: str = NEAREST,
                 base_energy_kwh: float = constants.DEFAULT_BASE_ENERGY_KWH,
                 irradiance_jitter: float = 0.0,
                 workers: int = 1):
        if interpolation not in (NEAREST, BILINEAR):
            raise ValueError(f"parameter interpolation not in {[NEAREST, BILINEAR]}, was {interpolation}")
        self.building = building
        self.flux = flux
        self.spec = _spec_for(building, spec, use_provider_panel_dims)
        self.tariff = _tariff_for(building, tariff)
        self.interpolation = interpolation
        self.workers = validate_int(workers, "workers", 1)

        ref_lat = building.reference_latitude()
        self.scale = LocalScale(ref_lat if ref_lat is not None else 0.0)
        self.policy = SeparationPolicy(self.spec, self.scale)
        self.scorer = SlotScorer(
            spec=self.spec,
            flux=flux,
            provider_panels=building.provider_panels,
            interpolation=interpolation,
            base_energy_kwh=validate_float(base_energy_kwh, "base_energy_kwh", 0),
            irradiance_jitter=validate_float(irradiance_jitter, "irradiance_jitter", 0, 0.99),
            seed_key=building.building_id)
        self._ranked: Optional[List[PanelCandidate]] = None

    def ranked_candidates(self) -> List[PanelCandidate]:
        if self._ranked is None:
            candidates = generate_candidates(
                self.building.roof_segments, self.spec, self.scale, self.scorer, self.workers)
            self._ranked = rank_candidates(candidates)
        return self._ranked

    def segment_summaries(self, panels: List[PlacedPanel]) -> List[SegmentSummary]:
        """Per roof segment: which way it faces, its placement priority, and how full it is"""
        placed = segment_distribution(panels)
        return [SegmentSummary(segment_index=s.index,
                               direction=direction_name(s.azimuth_degrees),
                               priority=segment_priority(s.azimuth_degrees),
                               capacity=segment_capacity(s, self.spec, self.scale),
                               panel_count=placed.get(s.index, 0))
                for s in self.building.roof_segments]

    def panels(self, requested_count: int) -> List[PlacedPanel]:
        requested_count = validate_int(requested_count, "requested_count", 0)
        return select_panels(self.ranked_candidates(), requested_count, self.policy, ranked=True)

    def metrics(self, panels: List[PlacedPanel]) -> SystemMetrics:
        return system_metrics(panels, self.spec, self.building.total_roof_area_m2,
                              self.tariff, self.flux, self.interpolation)

    def layout(self, requested_count: int) -> PanelLayout:
        requested_count = validate_int(requested_count, "requested_count", 0)
        panels = self.panels(requested_count)
        if len(panels) < requested_count:
            logging.info(f"Building {self.building.building_id!r}: {requested_count} panels requested, "
                         f"room for {len(panels)}")
        segments = self.segment_summaries(panels)
        return PanelLayout(
            panels=tuple(panels),
            metrics=self.metrics(panels),
            requested_count=requested_count,
            candidate_count=len(self.ranked_candidates()),
            grid_capacity=sum(s.capacity for s in segments),
            tier_counts=tier_counts(panels),
            segment_distribution=segment_distribution(panels),
            segments=tuple(segments),
            layout_efficiency=layout_efficiency(len(panels), self.spec, self.building.total_roof_area_m2))

    def provider_estimate_kwh(self, panel_count: int) -> float:
        """Yearly energy as the provider's nearest panel configuration would estimate it"""
        return estimate_energy_from_configs(self.building.panel_configs, panel_count)


class LayoutCache:
    """
    Keeps the most recent sessions, keyed on building, data version, raster and
    layout options, so a panel count change for the same building reuses its
    ranked candidates.
    """

    def __init__(self, max_size: int = 16):
        self.max_size = validate_int(max_size, "max_size", 1)
        self._sessions: "OrderedDict[tuple, LayoutSession]" = OrderedDict()

    def session(self, building: Building, flux: Optional[FluxRaster] = None, **kwargs) -> LayoutSession:
        key = (building.building_id, building.data_version, id(flux), tuple(sorted(kwargs.items())))
        session = self._sessions.get(key)
        if session is None or session.building != building or session.flux is not flux:
            session = LayoutSession(building, flux, **kwargs)
            self._sessions[key] = session
        self._sessions.move_to_end(key)
        while len(self._sessions) > self.max_size:
            self._sessions.popitem(last=False)
        return session


def model_pv_layout(building: Building,
                    requested_panel_count: int,
                    flux: Optional[FluxRaster] = None,
                    spec: Optional[PanelSpec] = None,
                    tariff: Optional[Tariff] = None,
                    use_provider_panel_dims: bool = False,
                    interpolation: str = NEAREST,
                    irradiance_jitter: float = 0.0,
                    workers: int = 1) -> PanelLayout:
    """
    Place up to `requested_panel_count` panels on the building's roof, best
    yielding roof area first, and work out the system metrics for the result.

    :param flux: annual flux raster, if the data-layers provider had one. Without it
    panels are scored from roof orientation and position.
    :param irradiance_jitter: optional +/- fraction of per-slot variation in heuristic
    scores, seeded from the building ID so the same building always gets the same layout.
    """
    requested_panel_count = validate_int(requested_panel_count, "requested_panel_count", 0)
    session = LayoutSession(building, flux, spec=spec, tariff=tariff,
                            use_provider_panel_dims=use_provider_panel_dims,
                            interpolation=interpolation,
                            irradiance_jitter=irradiance_jitter,
                            workers=workers)
    return session.layout(requested_panel_count)
