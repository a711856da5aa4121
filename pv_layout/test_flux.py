# This file is part of the solar wizard PV suitability model, copyright © Centre for Sustainable Energy, 2020-2023
# Licensed under the Reciprocal Public License v1.5. See LICENSE for licensing details.
import math

import numpy as np

from pv_layout.datatypes import GeoPoint, InvalidGeometryError, PanelSpec
from pv_layout.flux import flux_raster_from_array, flux_at, median_flux, panel_energy_from_flux, NEAREST, BILINEAR
from pv_layout.geos import LocalScale
from pv_layout.test_utils.test_funcs import ParameterisedTestCase, bbox, DUBLIN_BOUNDS

_UNIT = bbox(0.0, 0.0, 1.0, 1.0)


class FluxTest(ParameterisedTestCase):

    def test_nearest_lookup(self):
        raster = flux_raster_from_array(np.array([[1000.0, 1100.0],
                                                  [900.0, 0.0]]), _UNIT)

        def _flux(lat, lng):
            return flux_at(raster, GeoPoint(lat, lng), NEAREST)

        self.parameterised_test([
            (0.75, 0.25, 1000.0),
            (0.75, 0.75, 1100.0),
            (0.25, 0.25, 900.0),
            # no-data cell
            (0.25, 0.75, None),
            # north and west edges are inside, south and east are not
            (1.0, 0.0, 1000.0),
            (0.5, 1.0, None),
            (0.0, 0.5, None),
            (1.5, 0.5, None),
            (0.5, -0.1, None),
        ], _flux)

    def test_nan_is_no_data(self):
        raster = flux_raster_from_array(np.array([[math.nan, 800.0]]), _UNIT)
        assert flux_at(raster, GeoPoint(0.5, 0.25)) is None
        assert flux_at(raster, GeoPoint(0.5, 0.75)) == 800.0

    def test_bilinear_lookup(self):
        raster = flux_raster_from_array(np.array([[100.0, 200.0],
                                                  [300.0, 400.0]]), _UNIT)

        def _flux(lat, lng):
            return round(flux_at(raster, GeoPoint(lat, lng), BILINEAR), 6)

        self.parameterised_test([
            # pixel centres
            (0.75, 0.25, 100.0),
            (0.25, 0.75, 400.0),
            # halfway between all four
            (0.5, 0.5, 250.0),
            # halfway between the top two
            (0.75, 0.5, 150.0),
            # outside the pixel centres, clamped to the edge
            (0.99, 0.01, 100.0),
        ], _flux)

    def test_bilinear_falls_back_to_nearest_next_to_no_data(self):
        raster = flux_raster_from_array(np.array([[100.0, 0.0],
                                                  [300.0, 400.0]]), _UNIT)
        assert flux_at(raster, GeoPoint(0.5, 0.5), BILINEAR) == 400.0
        assert flux_at(raster, GeoPoint(0.74, 0.74), BILINEAR) is None

    def test_unknown_interpolation(self):
        raster = flux_raster_from_array(np.ones((2, 2)), _UNIT)
        with self.assertRaises(ValueError):
            flux_at(raster, GeoPoint(0.5, 0.5), "cubic")

    def test_raster_from_array(self):
        with self.assertRaises(InvalidGeometryError):
            flux_raster_from_array(np.ones(4), _UNIT)

        bounds = bbox(*DUBLIN_BOUNDS)
        raster = flux_raster_from_array(np.ones((60, 100)), bounds)
        assert (raster.width, raster.height) == (100, 60)
        width_m, _ = LocalScale(bounds.center.latitude).extent_m(bounds)
        assert math.isclose(raster.pixel_size_meters, width_m / 100)

        raster = flux_raster_from_array(np.ones((60, 100)), bounds, pixel_size_meters=0.5)
        assert raster.pixel_size_meters == 0.5

    def test_panel_energy_from_flux(self):
        self.parameterised_test([
            (1000.0, PanelSpec(), 217.6),
            (0.0, PanelSpec(), 0.0),
            (1000.0, PanelSpec(width_m=2.0, height_m=1.0, efficiency=0.25, derating_factor=1.0), 500.0),
        ], lambda flux, spec: round(panel_energy_from_flux(flux, spec), 6))

    def test_median_flux(self):
        self.parameterised_test([
            ([[1000.0, 1100.0], [900.0, 0.0]], 1000.0),
            ([[800.0, math.nan], [-5.0, 1200.0]], 1000.0),
            ([[1400.0, 1400.0], [0.0, 0.0]], 1400.0),
            ([[0.0, math.nan], [0.0, -1.0]], None),
        ], lambda values: median_flux(flux_raster_from_array(np.array(values), _UNIT)))
