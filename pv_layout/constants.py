# This file is part of the solar wizard PV suitability model, copyright © Centre for Sustainable Energy, 2020-2023
# Licensed under the Reciprocal Public License v1.5. See LICENSE for licensing details.

# Metres per degree of latitude. Longitude is scaled by cos(reference latitude).
METRES_PER_DEGREE_LAT = 111000.0

# Default panel footprint, mounted landscape: width runs east-west, height north-south.
PANEL_WIDTH_M = 1.6
PANEL_HEIGHT_M = 0.8
PANEL_SPACING_M = 0.3

# Fraction of each segment dimension kept clear on each side of the segment.
EDGE_MARGIN_FRACTION = 0.05

# Rated DC capacity of one panel. Matches the building-insights provider's default.
PANEL_CAPACITY_WATTS = 400.0

# Used when converting annual flux (kWh/m2/year) to panel output.
PANEL_EFFICIENCY = 0.20
SYSTEM_DERATING_FACTOR = 0.85

# Yearly energy of a panel on an ideal segment when there is no raster or provider
# panel to base the estimate on.
DEFAULT_BASE_ENERGY_KWH = 400.0

# Angular distance from due south (degrees) -> yield multiplier. Must be monotonic
# non-increasing in distance.
AZIMUTH_MULTIPLIERS = (
    (30.0, 1.00),
    (60.0, 0.95),
    (90.0, 0.85),
    (120.0, 0.70),
)
AZIMUTH_MULTIPLIER_FLOOR = 0.55

# Position within the segment: centroid = 1.0, falling by this much per unit of
# normalised distance from the centroid, never below the floor.
POSITION_FALLOFF = 0.10
POSITION_MULTIPLIER_FLOOR = 0.90

# Same bands as the azimuth multipliers, expressed as a 1-5 placement priority.
SEGMENT_PRIORITY_BANDS = (
    (30.0, 5),
    (60.0, 4),
    (120.0, 3),
    (150.0, 2),
)

# Yearly kWh thresholds used to bucket panels for reporting.
TIER_EXCELLENT_KWH = 1200.0
TIER_GOOD_KWH = 1100.0
TIER_MODERATE_KWH = 1000.0

# Two panel centres closer than a pitch by less than this are not considered to
# overlap (absorbs float noise from degree <-> metre conversion).
SEPARATION_TOLERANCE_M = 1e-6

# Irish defaults: average domestic tariff (EUR/kWh) and grid carbon intensity.
DEFAULT_TARIFF_PER_KWH = 0.25
DEFAULT_CURRENCY = "EUR"
DEFAULT_CO2_KG_PER_KWH = 0.295

# Installed cost per kW of system size, for payback estimates.
DEFAULT_COST_PER_KW = 1500.0

# kg of CO2 absorbed by one tree per year.
CO2_KG_PER_TREE_YEAR = 22.0
