import argparse
import json
import logging
import sys

import numpy as np

from pv_layout.building_insights import parse_building_insights
from pv_layout.datatypes import BoundingBox, GeoPoint, PanelSpec, Tariff
from pv_layout.flux import flux_raster_from_array, NEAREST, BILINEAR
from pv_layout.model_pv_layout import LayoutSession
from pv_layout import constants

if __name__ == '__main__':
    parser = argparse.ArgumentParser(description="Place PV panels on a roof and estimate system metrics")

    parser.add_argument("--building_insights", metavar="FILE", required=True,
                        help="Building insights JSON, as returned by the provider's findClosest call")
    parser.add_argument("--panels", metavar="INT", required=True, type=int, help="Number of panels to place")
    parser.add_argument("--flux", metavar="FILE", help="Annual flux raster as a 2-D .npy array (rows north to south)")
    parser.add_argument("--flux_bounds", metavar="DEG", type=float, nargs=4,
                        help="Flux raster bounds: south west north east")
    parser.add_argument("--flux_pixel_size", metavar="M", type=float, help="Flux raster pixel size in metres")
    parser.add_argument("--interpolation", default=NEAREST, choices=[NEAREST, BILINEAR],
                        help=f"Flux raster lookup (default {NEAREST})")
    parser.add_argument("--panel_width", default=constants.PANEL_WIDTH_M, type=float, metavar="M",
                        help=f"Panel width in metres (default {constants.PANEL_WIDTH_M})")
    parser.add_argument("--panel_height", default=constants.PANEL_HEIGHT_M, type=float, metavar="M",
                        help=f"Panel height in metres (default {constants.PANEL_HEIGHT_M})")
    parser.add_argument("--panel_spacing", default=constants.PANEL_SPACING_M, type=float, metavar="M",
                        help=f"Spacing between panels in metres (default {constants.PANEL_SPACING_M})")
    parser.add_argument("--margin", default=constants.EDGE_MARGIN_FRACTION, type=float, metavar="FRAC",
                        help=f"Edge margin as a fraction of each roof segment dimension (default {constants.EDGE_MARGIN_FRACTION})")
    parser.add_argument("--panel_capacity", default=constants.PANEL_CAPACITY_WATTS, type=float, metavar="W",
                        help=f"Panel capacity in watts (default {constants.PANEL_CAPACITY_WATTS})")
    parser.add_argument("--tariff", default=constants.DEFAULT_TARIFF_PER_KWH, type=float, metavar="RATE",
                        help=f"Electricity price per kWh (default {constants.DEFAULT_TARIFF_PER_KWH})")
    parser.add_argument("--currency", default=constants.DEFAULT_CURRENCY, help=f"Currency of the tariff (default {constants.DEFAULT_CURRENCY})")
    parser.add_argument("--co2_kg_per_kwh", default=constants.DEFAULT_CO2_KG_PER_KWH, type=float, metavar="KG",
                        help=f"Grid carbon intensity (default {constants.DEFAULT_CO2_KG_PER_KWH})")
    parser.add_argument("--jitter", default=0.0, type=float, metavar="FRAC",
                        help="Seeded per-slot variation in orientation-based scores (default 0, off)")
    parser.add_argument("--workers", default=1, type=int, metavar="INT", help="Threads for scoring roof segments (default 1)")
    parser.add_argument("--rounded", action='store_true', help="Round metrics as they would be displayed")
    parser.add_argument("--out", metavar="FILE", help="Write the layout JSON here rather than stdout")

    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO,
                        format='[%(asctime)s] %(levelname)s: %(message)s')

    with open(args.building_insights) as f:
        building = parse_building_insights(json.load(f))

    flux = None
    if args.flux:
        if not args.flux_bounds:
            parser.error("--flux_bounds is required with --flux")
        s, w, n, e = args.flux_bounds
        flux = flux_raster_from_array(np.load(args.flux),
                                      BoundingBox(GeoPoint(s, w), GeoPoint(n, e)),
                                      args.flux_pixel_size)

    session = LayoutSession(
        building=building,
        flux=flux,
        spec=PanelSpec(width_m=args.panel_width,
                       height_m=args.panel_height,
                       spacing_m=args.panel_spacing,
                       margin_fraction=args.margin,
                       capacity_watts=args.panel_capacity),
        tariff=Tariff(rate_per_kwh=args.tariff,
                      currency=args.currency,
                      co2_kg_per_kwh=args.co2_kg_per_kwh),
        interpolation=args.interpolation,
        irradiance_jitter=args.jitter,
        workers=args.workers)
    layout = session.layout(args.panels)

    result = layout.as_dict()
    if args.rounded:
        result['metrics'] = layout.metrics.rounded().as_dict()
    if building.panel_configs:
        result['providerEstimateKwh'] = session.provider_estimate_kwh(len(layout.panels))

    if args.out:
        with open(args.out, 'w') as f:
            json.dump(result, f, indent=2)
    else:
        json.dump(result, sys.stdout, indent=2)
