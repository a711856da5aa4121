# This file is part of the solar wizard PV suitability model, copyright © Centre for Sustainable Energy, 2020-2023
# Licensed under the Reciprocal Public License v1.5. See LICENSE for licensing details.
from pv_layout.datatypes import PanelSpec, ScoreSource
from pv_layout.geos import LocalScale
from pv_layout.panels.candidates import generate_candidates
from pv_layout.panels.grid import segment_capacity
from pv_layout.panels.scoring import SlotScorer
from pv_layout.test_utils.test_funcs import ParameterisedTestCase, bbox, segment

_SCALE = LocalScale(51.4545)


def _segments():
    # three small roofs side by side facing south, east and north
    return [
        segment(0, bbox(51.45440, -2.58800, 51.45450, -2.58780), azimuth=180.0),
        segment(1, bbox(51.45440, -2.58770, 51.45450, -2.58750), azimuth=90.0),
        segment(2, bbox(51.45440, -2.58740, 51.45450, -2.58720), azimuth=0.0),
    ]


class CandidatesTest(ParameterisedTestCase):

    def test_one_candidate_per_slot(self):
        spec = PanelSpec()
        segments = _segments()
        candidates = generate_candidates(segments, spec, _SCALE, SlotScorer(spec))
        assert len(candidates) == sum(segment_capacity(s, spec, _SCALE) for s in segments)
        assert all(c.score_source == ScoreSource.HEURISTIC for c in candidates)
        assert [c.segment_index for c in candidates] == sorted(c.segment_index for c in candidates)

    def test_south_facing_scores_highest(self):
        spec = PanelSpec()
        candidates = generate_candidates(_segments(), spec, _SCALE, SlotScorer(spec))

        def _best(seg_index):
            return max(c.estimated_yearly_energy_kwh for c in candidates if c.segment_index == seg_index)

        def _worst(seg_index):
            return min(c.estimated_yearly_energy_kwh for c in candidates if c.segment_index == seg_index)

        assert _worst(0) > _best(1)
        assert _worst(1) > _best(2)

    def test_deterministic(self):
        spec = PanelSpec()
        scorer = SlotScorer(spec, irradiance_jitter=0.05, seed_key="buildings/ChIJ_bristol_0002")
        first = generate_candidates(_segments(), spec, _SCALE, scorer)
        again = generate_candidates(_segments(), spec, _SCALE,
                                    SlotScorer(spec, irradiance_jitter=0.05, seed_key="buildings/ChIJ_bristol_0002"))
        assert first == again

    def test_workers_give_same_candidates(self):
        spec = PanelSpec()
        scorer = SlotScorer(spec, irradiance_jitter=0.05, seed_key="b")
        serial = generate_candidates(_segments(), spec, _SCALE, scorer, workers=1)
        threaded = generate_candidates(_segments(), spec, _SCALE, scorer, workers=3)
        assert serial == threaded

    def test_logging(self):
        spec = PanelSpec()
        tiny = segment(7, bbox(51.45440, -2.58800, 51.454401, -2.587999))
        with self.assertLogs(level='INFO') as logs:
            candidates = generate_candidates(_segments() + [tiny], spec, _SCALE, SlotScorer(spec))
        assert not [c for c in candidates if c.segment_index == 7]
        output = "\n".join(logs.output)
        assert "WARNING:root:No flux raster available" in output
        assert "Roof segments with no room for a panel: [7]" in output

    def test_no_segments(self):
        spec = PanelSpec()
        assert generate_candidates([], spec, _SCALE, SlotScorer(spec)) == []
