# This file is part of the solar wizard PV suitability model, copyright © Centre for Sustainable Energy, 2020-2023
# Licensed under the Reciprocal Public License v1.5. See LICENSE for licensing details.
import numpy as np

from pv_layout.datatypes import GeoPoint, PanelSpec, ProviderPanel, ScoreSource
from pv_layout.flux import flux_raster_from_array
from pv_layout.geos import LocalScale
from pv_layout.panels.grid import grid_slots
from pv_layout.panels.scoring import azimuth_multiplier, segment_priority, direction_name, \
    position_multiplier, check_multiplier_table, SlotScorer
from pv_layout.test_utils.test_funcs import ParameterisedTestCase, bbox, segment, DUBLIN_BOUNDS

_DUBLIN = bbox(*DUBLIN_BOUNDS)
_DUBLIN_SCALE = LocalScale(_DUBLIN.center.latitude)


class ScoringTest(ParameterisedTestCase):

    def test_azimuth_multiplier(self):
        self.parameterised_test([
            (180.0, 1.0),
            (150.0, 1.0),
            (210.0, 1.0),
            (-180.0, 1.0),
            (211.0, 0.95),
            (240.0, 0.95),
            (90.0, 0.85),
            (270.0, 0.85),
            (300.0, 0.70),
            (45.0, 0.55),
            (0.0, 0.55),
            (360.0, 0.55),
        ], azimuth_multiplier)

    def test_azimuth_multiplier_never_increases_away_from_south(self):
        clockwise = [azimuth_multiplier(180.0 + d) for d in range(181)]
        anticlockwise = [azimuth_multiplier(180.0 - d) for d in range(181)]
        assert clockwise == anticlockwise
        assert all(m1 >= m2 for m1, m2 in zip(clockwise, clockwise[1:]))

    def test_bad_multiplier_table(self):
        with self.assertRaises(ValueError):
            check_multiplier_table(((30.0, 0.9), (60.0, 1.0)), 0.5)
        with self.assertRaises(ValueError):
            check_multiplier_table(((60.0, 1.0), (30.0, 0.9)), 0.5)
        with self.assertRaises(ValueError):
            check_multiplier_table(((30.0, 1.0),), 1.0)
        with self.assertRaises(ValueError):
            SlotScorer(PanelSpec(), azimuth_table=((30.0, 0.9), (60.0, 1.0)))

    def test_segment_priority(self):
        self.parameterised_test([
            (180.0, 5),
            (225.0, 4),
            (90.0, 3),
            (30.0, 2),
            (0.0, 1),
        ], segment_priority)

    def test_direction_name(self):
        self.parameterised_test([
            (0.0, 'N'),
            (22.4, 'N'),
            (22.5, 'NE'),
            (90.0, 'E'),
            (180.0, 'S'),
            (-90.0, 'W'),
            (315.0, 'NW'),
            (350.0, 'N'),
        ], direction_name)

    def test_position_multiplier(self):
        b = bbox(0.0, 0.0, 1.0, 1.0)
        self.parameterised_test([
            (GeoPoint(0.5, 0.5), b, 1.0),
            (GeoPoint(0.5, 1.0), b, 0.95),
            (GeoPoint(0.0, 0.0), b, 0.929289),
            (GeoPoint(5.0, 5.0), b, 0.9),
        ], lambda p, bounds: round(position_multiplier(p, bounds), 6))

    def test_south_beats_north(self):
        scorer = SlotScorer(PanelSpec())
        south = segment(0, _DUBLIN, azimuth=180.0)
        north = segment(1, _DUBLIN, azimuth=0.0)
        p = _DUBLIN.center
        assert round(scorer.heuristic_energy(south, p), 6) == 400.0
        assert round(scorer.heuristic_energy(north, p), 6) == 220.0
        assert scorer.heuristic_energy(south, GeoPoint(_DUBLIN.south, _DUBLIN.west)) < 400.0

    def test_base_energy_from_nearest_provider_panel(self):
        west = GeoPoint(_DUBLIN.center.latitude, _DUBLIN.west + 0.0001)
        east = GeoPoint(_DUBLIN.center.latitude, _DUBLIN.east - 0.0001)
        scorer = SlotScorer(PanelSpec(), provider_panels=[
            ProviderPanel(west, 500.0, 0),
            ProviderPanel(east, 300.0, 0),
        ])
        seg = segment(0, _DUBLIN)
        assert scorer.heuristic_energy(seg, GeoPoint(_DUBLIN.center.latitude, _DUBLIN.west + 0.0002)) < 500.0
        assert scorer.heuristic_energy(seg, GeoPoint(_DUBLIN.center.latitude, _DUBLIN.west + 0.0002)) > 450.0
        assert scorer.heuristic_energy(seg, GeoPoint(_DUBLIN.center.latitude, _DUBLIN.east - 0.0002)) < 300.0

    def test_flux_scores_with_heuristic_fallback(self):
        # raster only covers the western half of the roof
        covered = bbox(_DUBLIN.south, _DUBLIN.west, _DUBLIN.north, _DUBLIN.center.longitude)
        flux = flux_raster_from_array(np.full((10, 10), 1000.0), covered)
        spec = PanelSpec()
        seg = segment(0, _DUBLIN)
        scorer = SlotScorer(spec, flux=flux)

        slots = grid_slots(seg, spec, _DUBLIN_SCALE)
        scores = scorer.score_segment(seg, slots)
        assert len(scores) == len(slots)
        for slot, (energy, source) in zip(slots, scores):
            if covered.contains(slot.position) and slot.position.longitude < covered.east:
                assert source == ScoreSource.FLUX
                assert round(energy, 6) == 217.6
            else:
                # uncovered slots are scored against the raster's median yield
                assert source == ScoreSource.HEURISTIC
                assert 217.6 * 0.9 <= energy <= 217.6 + 1e-9

    def test_uncovered_slots_never_outrank_measured_ones(self):
        # high flux over the northern half of the roof only, no data to the south
        values = np.zeros((60, 100))
        values[:30, :] = 1400.0
        flux = flux_raster_from_array(values, _DUBLIN)
        spec = PanelSpec()
        seg = segment(0, _DUBLIN)
        scorer = SlotScorer(spec, flux=flux, base_energy_kwh=400.0)
        assert round(scorer.calibrated_base_kwh, 6) == round(1400 * 0.2176, 6)

        scores = scorer.score_segment(seg, grid_slots(seg, spec, _DUBLIN_SCALE))
        measured = [e for e, source in scores if source == ScoreSource.FLUX]
        fallback = [e for e, source in scores if source == ScoreSource.HEURISTIC]
        assert measured and fallback
        assert max(fallback) <= min(measured)

    def test_empty_raster_keeps_default_base(self):
        flux = flux_raster_from_array(np.zeros((2, 2)), _DUBLIN)
        scorer = SlotScorer(PanelSpec(), flux=flux)
        assert scorer.calibrated_base_kwh is None
        assert round(scorer.heuristic_energy(segment(0, _DUBLIN), _DUBLIN.center), 6) == 400.0

    def test_jitter_is_seeded(self):
        spec = PanelSpec()
        seg = segment(3, _DUBLIN)
        slots = grid_slots(seg, spec, _DUBLIN_SCALE)[:50]

        def _scores(seed_key, jitter=0.1):
            return [e for e, _ in SlotScorer(spec, irradiance_jitter=jitter, seed_key=seed_key)
                    .score_segment(seg, slots)]

        assert _scores("building-a") == _scores("building-a")
        assert _scores("building-a") != _scores("building-b")
        plain = _scores("building-a", jitter=0.0)
        for jittered, e in zip(_scores("building-a"), plain):
            assert e * 0.9 <= jittered <= e * 1.1

        with self.assertRaises(ValueError):
            SlotScorer(spec, irradiance_jitter=1.0)
