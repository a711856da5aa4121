# This file is part of the solar wizard PV suitability model, copyright © Centre for Sustainable Energy, 2020-2023
# Licensed under the Reciprocal Public License v1.5. See LICENSE for licensing details.
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Sequence

from pv_layout.datatypes import PanelCandidate, PanelSpec, RoofSegment, ScoreSource
from pv_layout.geos import LocalScale
from pv_layout.panels.grid import grid_slots
from pv_layout.panels.scoring import SlotScorer


def _segment_candidates(segment: RoofSegment,
                        spec: PanelSpec,
                        scale: LocalScale,
                        scorer: SlotScorer) -> List[PanelCandidate]:
    slots = grid_slots(segment, spec, scale)
    scores = scorer.score_segment(segment, slots)
    return [PanelCandidate(position=slot.position,
                           segment_index=segment.index,
                           row_index=slot.row_index,
                           col_index=slot.col_index,
                           estimated_yearly_energy_kwh=energy,
                           score_source=source)
            for slot, (energy, source) in zip(slots, scores)]


def generate_candidates(segments: Sequence[RoofSegment],
                        spec: PanelSpec,
                        scale: LocalScale,
                        scorer: SlotScorer,
                        workers: int = 1) -> List[PanelCandidate]:
    """
    Every valid panel slot on every roof segment, scored. Not capped or ordered by
    score: selection picks the best across the whole roof.

    Segments are independent, so with `workers` > 1 they are scored in a thread
    pool. Results are gathered back in segment order either way.
    """
    if scorer.flux is None and segments:
        logging.warning("No flux raster available, scoring panels from roof orientation only")

    if workers > 1 and len(segments) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            per_segment = list(pool.map(
                lambda s: _segment_candidates(s, spec, scale, scorer), segments))
    else:
        per_segment = [_segment_candidates(s, spec, scale, scorer) for s in segments]

    candidates = [c for seg_candidates in per_segment for c in seg_candidates]

    if scorer.flux is not None:
        fallback = sum(1 for c in candidates if c.score_source == ScoreSource.HEURISTIC)
        if fallback > 0:
            logging.info(f"{fallback} of {len(candidates)} panel slots outside flux raster coverage, "
                         f"scored from roof orientation")

    empty = [s.index for s, c in zip(segments, per_segment) if not c]
    if empty:
        logging.info(f"Roof segments with no room for a panel: {empty}")
    logging.info(f"{len(candidates)} candidate panel slots across {len(segments)} roof segments")
    return candidates
