# This file is part of the solar wizard PV suitability model, copyright © Centre for Sustainable Energy, 2020-2023
# Licensed under the Reciprocal Public License v1.5. See LICENSE for licensing details.
import enum
import math
from collections import defaultdict
from typing import Dict, Iterable, List, Sequence, Tuple

from pv_layout import constants
from pv_layout.datatypes import GeoPoint, PanelCandidate, PanelSpec, PlacedPanel
from pv_layout.geos import LocalScale
from pv_layout.util import validate_int


class ScoreTier(enum.Enum):
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    MODERATE = "MODERATE"
    LOW = "LOW"


def score_tier(yearly_energy_kwh: float) -> ScoreTier:
    if yearly_energy_kwh >= constants.TIER_EXCELLENT_KWH:
        return ScoreTier.EXCELLENT
    elif yearly_energy_kwh >= constants.TIER_GOOD_KWH:
        return ScoreTier.GOOD
    elif yearly_energy_kwh >= constants.TIER_MODERATE_KWH:
        return ScoreTier.MODERATE
    return ScoreTier.LOW


class SeparationPolicy:
    """
    Minimum spacing between two panel centres.

    Two panels overlap if they are closer than a row pitch north-south AND closer
    than a column pitch east-west (rectangle test), or if they are closer than
    the smaller of the two pitches in a straight line (Euclidean test). Either
    test failing is enough to reject.
    """

    def __init__(self, spec: PanelSpec, scale: LocalScale,
                 tolerance_m: float = constants.SEPARATION_TOLERANCE_M):
        self.scale = scale
        self.row_pitch_m = spec.row_pitch_m
        self.col_pitch_m = spec.col_pitch_m
        self.min_distance_m = min(spec.row_pitch_m, spec.col_pitch_m)
        self.tolerance_m = tolerance_m

    def distance_m(self, p1: GeoPoint, p2: GeoPoint) -> float:
        return self.scale.distance_m(p1, p2)

    def axis_overlap(self, p1: GeoPoint, p2: GeoPoint) -> bool:
        dy, dx = self.scale.offset_m(p1, p2)
        return (abs(dy) < self.row_pitch_m - self.tolerance_m
                and abs(dx) < self.col_pitch_m - self.tolerance_m)

    def euclidean_overlap(self, p1: GeoPoint, p2: GeoPoint) -> bool:
        return self.distance_m(p1, p2) < self.min_distance_m - self.tolerance_m

    def overlaps(self, p1: GeoPoint, p2: GeoPoint) -> bool:
        return self.axis_overlap(p1, p2) or self.euclidean_overlap(p1, p2)

    def cell(self, p: GeoPoint) -> Tuple[int, int]:
        """Spatial hash bucket one pitch across. Overlapping panels are always in
        the same or adjacent buckets."""
        return (math.floor(p.latitude * self.scale.metres_per_degree_lat / self.row_pitch_m),
                math.floor(p.longitude * self.scale.metres_per_degree_lng / self.col_pitch_m))


def rank_key(c: PanelCandidate):
    return -c.estimated_yearly_energy_kwh, c.segment_index, c.row_index, c.col_index


def rank_candidates(candidates: Iterable[PanelCandidate]) -> List[PanelCandidate]:
    """Highest yield first; ties broken by segment, then row, then column."""
    return sorted(candidates, key=rank_key)


def select_ranked(ranked: Sequence[PanelCandidate],
                  requested_count: int,
                  policy: SeparationPolicy) -> List[PanelCandidate]:
    """
    Walk the ranked candidates admitting each one that doesn't overlap anything
    already admitted, until `requested_count` are admitted or candidates run out.
    A short result means the roof is full, it is not an error.
    """
    requested_count = validate_int(requested_count, "requested_count", 0)
    admitted: List[PanelCandidate] = []
    if requested_count == 0:
        return admitted

    buckets: Dict[Tuple[int, int], List[GeoPoint]] = defaultdict(list)
    for candidate in ranked:
        pos = candidate.position
        row, col = policy.cell(pos)
        if any(policy.overlaps(pos, other)
               for dr in (-1, 0, 1)
               for dc in (-1, 0, 1)
               for other in buckets.get((row + dr, col + dc), ())):
            continue

        admitted.append(candidate)
        buckets[(row, col)].append(pos)
        if len(admitted) >= requested_count:
            break

    return admitted


def select_panels(candidates: Iterable[PanelCandidate],
                  requested_count: int,
                  policy: SeparationPolicy,
                  ranked: bool = False) -> List[PlacedPanel]:
    if not ranked:
        candidates = rank_candidates(candidates)
    return [PlacedPanel.from_candidate(c)
            for c in select_ranked(list(candidates), requested_count, policy)]


def tier_counts(panels: Iterable[PlacedPanel]) -> Dict[ScoreTier, int]:
    counts = {tier: 0 for tier in ScoreTier}
    for p in panels:
        counts[score_tier(p.yearly_energy_dc_kwh)] += 1
    return counts


def segment_distribution(panels: Iterable[PlacedPanel]) -> Dict[int, int]:
    dist: Dict[int, int] = defaultdict(int)
    for p in panels:
        dist[p.segment_index] += 1
    return dict(sorted(dist.items()))
