import enum
import math
from dataclasses import dataclass, asdict, replace
from typing import Optional, Tuple

import numpy as np

from pv_layout import constants
from pv_layout.util import validate_float


class PvLayoutError(Exception):
    pass


class InvalidGeometryError(PvLayoutError, ValueError):
    """Structural input that breaks a geometry invariant (inverted bounds, NaNs...)"""
    pass


class PanelOrientation(enum.Enum):
    LANDSCAPE = "LANDSCAPE"
    PORTRAIT = "PORTRAIT"


class ScoreSource(enum.Enum):
    """Which model produced a candidate's yearly energy estimate"""
    FLUX = "FLUX"
    HEURISTIC = "HEURISTIC"


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float

    def __post_init__(self):
        if not (math.isfinite(self.latitude) and math.isfinite(self.longitude)):
            raise InvalidGeometryError(f"Non-finite coordinate: ({self.latitude}, {self.longitude})")
        if not -90.0 <= self.latitude <= 90.0:
            raise InvalidGeometryError(f"Latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise InvalidGeometryError(f"Longitude out of range: {self.longitude}")

    @classmethod
    def from_dict(cls, d: dict) -> 'GeoPoint':
        return cls(latitude=float(d['latitude']), longitude=float(d['longitude']))


@dataclass(frozen=True)
class BoundingBox:
    southwest: GeoPoint
    northeast: GeoPoint

    def __post_init__(self):
        if not self.southwest.latitude < self.northeast.latitude:
            raise InvalidGeometryError(
                f"Bounding box south edge {self.southwest.latitude} is not below "
                f"north edge {self.northeast.latitude}")
        if not self.southwest.longitude < self.northeast.longitude:
            raise InvalidGeometryError(
                f"Bounding box west edge {self.southwest.longitude} is not left of "
                f"east edge {self.northeast.longitude}")

    @property
    def south(self) -> float:
        return self.southwest.latitude

    @property
    def west(self) -> float:
        return self.southwest.longitude

    @property
    def north(self) -> float:
        return self.northeast.latitude

    @property
    def east(self) -> float:
        return self.northeast.longitude

    @property
    def center(self) -> GeoPoint:
        return GeoPoint((self.south + self.north) / 2, (self.west + self.east) / 2)

    def contains(self, point: GeoPoint) -> bool:
        return (self.south <= point.latitude <= self.north
                and self.west <= point.longitude <= self.east)


@dataclass(frozen=True)
class RoofSegment:
    index: int
    area_m2: float
    pitch_degrees: float
    azimuth_degrees: float
    bounds: BoundingBox
    sunshine_hours: Tuple[float, ...] = ()
    center: Optional[GeoPoint] = None

    def __post_init__(self):
        if not math.isfinite(self.area_m2) or self.area_m2 < 0:
            raise InvalidGeometryError(f"Roof segment {self.index} has invalid area {self.area_m2}")
        if not math.isfinite(self.azimuth_degrees) or not math.isfinite(self.pitch_degrees):
            raise InvalidGeometryError(f"Roof segment {self.index} has non-finite pitch or azimuth")


@dataclass(frozen=True, eq=False)
class FluxRaster:
    """
    Annual solar flux (kWh/m2/year), row-major from the north-west corner.
    Values <= 0 or NaN are treated as no data.
    """
    width: int
    height: int
    bounds: BoundingBox
    pixel_size_meters: float
    values: np.ndarray

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise InvalidGeometryError(f"Flux raster has invalid shape {self.width}x{self.height}")
        values = np.array(self.values, dtype=np.float64).ravel()
        if values.size != self.width * self.height:
            raise InvalidGeometryError(
                f"Flux raster has {values.size} values, expected {self.width * self.height}")
        validate_float(self.pixel_size_meters, "pixel_size_meters", 0, exclusive_min=True)
        values.setflags(write=False)
        object.__setattr__(self, 'values', values)

    def value_at(self, x: int, y: int) -> float:
        return float(self.values[y * self.width + x])


@dataclass(frozen=True)
class PanelCandidate:
    position: GeoPoint
    segment_index: int
    row_index: int
    col_index: int
    estimated_yearly_energy_kwh: float
    score_source: ScoreSource = ScoreSource.HEURISTIC


@dataclass(frozen=True)
class PlacedPanel:
    position: GeoPoint
    segment_index: int
    yearly_energy_dc_kwh: float
    orientation: PanelOrientation = PanelOrientation.LANDSCAPE
    row_index: Optional[int] = None
    col_index: Optional[int] = None

    @classmethod
    def from_candidate(cls, candidate: PanelCandidate) -> 'PlacedPanel':
        return cls(position=candidate.position,
                   segment_index=candidate.segment_index,
                   yearly_energy_dc_kwh=candidate.estimated_yearly_energy_kwh,
                   row_index=candidate.row_index,
                   col_index=candidate.col_index)

    def as_dict(self) -> dict:
        return {
            "center": {"latitude": self.position.latitude, "longitude": self.position.longitude},
            "segmentIndex": self.segment_index,
            "orientation": self.orientation.value,
            "yearlyEnergyDcKwh": self.yearly_energy_dc_kwh,
            "rowIndex": self.row_index,
            "colIndex": self.col_index,
        }


@dataclass(frozen=True)
class SystemMetrics:
    panel_count: int = 0
    annual_energy_kwh: float = 0.0
    monthly_savings: float = 0.0
    system_size_kw: float = 0.0
    roof_coverage_percent: float = 0.0
    co2_offset_kg_per_year: float = 0.0
    estimated_cost: float = 0.0
    payback_years: float = 0.0
    trees_equivalent: float = 0.0

    def rounded(self) -> 'SystemMetrics':
        """Values as the dashboard shows them. The engine itself never rounds."""
        return replace(
            self,
            annual_energy_kwh=round(self.annual_energy_kwh),
            monthly_savings=round(self.monthly_savings),
            system_size_kw=round(self.system_size_kw, 1),
            roof_coverage_percent=round(self.roof_coverage_percent),
            co2_offset_kg_per_year=round(self.co2_offset_kg_per_year),
            estimated_cost=round(self.estimated_cost),
            payback_years=round(self.payback_years, 1),
            trees_equivalent=round(self.trees_equivalent))

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class PanelSpec:
    width_m: float = constants.PANEL_WIDTH_M
    height_m: float = constants.PANEL_HEIGHT_M
    spacing_m: float = constants.PANEL_SPACING_M
    margin_fraction: float = constants.EDGE_MARGIN_FRACTION
    capacity_watts: float = constants.PANEL_CAPACITY_WATTS
    efficiency: float = constants.PANEL_EFFICIENCY
    derating_factor: float = constants.SYSTEM_DERATING_FACTOR

    def __post_init__(self):
        validate_float(self.width_m, "width_m", 0, exclusive_min=True)
        validate_float(self.height_m, "height_m", 0, exclusive_min=True)
        validate_float(self.spacing_m, "spacing_m", 0)
        validate_float(self.margin_fraction, "margin_fraction", 0, 0.49)
        validate_float(self.capacity_watts, "capacity_watts", 0)
        validate_float(self.efficiency, "efficiency", 0, 1)
        validate_float(self.derating_factor, "derating_factor", 0, 1)

    @property
    def area_m2(self) -> float:
        return self.width_m * self.height_m

    @property
    def col_pitch_m(self) -> float:
        return self.width_m + self.spacing_m

    @property
    def row_pitch_m(self) -> float:
        return self.height_m + self.spacing_m


@dataclass(frozen=True)
class Tariff:
    rate_per_kwh: float = constants.DEFAULT_TARIFF_PER_KWH
    currency: str = constants.DEFAULT_CURRENCY
    co2_kg_per_kwh: float = constants.DEFAULT_CO2_KG_PER_KWH
    cost_per_kw: float = constants.DEFAULT_COST_PER_KW

    def __post_init__(self):
        validate_float(self.rate_per_kwh, "rate_per_kwh", 0)
        validate_float(self.co2_kg_per_kwh, "co2_kg_per_kwh", 0)
        validate_float(self.cost_per_kw, "cost_per_kw", 0)


@dataclass(frozen=True)
class ProviderPanel:
    """One of the building-insights provider's own optimal panel positions"""
    center: GeoPoint
    yearly_energy_dc_kwh: float
    segment_index: int
    orientation: PanelOrientation = PanelOrientation.LANDSCAPE


@dataclass(frozen=True)
class PanelConfig:
    panels_count: int
    yearly_energy_dc_kwh: float


@dataclass(frozen=True)
class Building:
    building_id: str
    roof_segments: Tuple[RoofSegment, ...] = ()
    total_roof_area_m2: float = 0.0
    center: Optional[GeoPoint] = None
    max_panels: int = 0
    provider_panels: Tuple[ProviderPanel, ...] = ()
    panel_configs: Tuple[PanelConfig, ...] = ()
    provider_panel_spec: Optional[PanelSpec] = None
    carbon_offset_factor_kg_per_mwh: Optional[float] = None
    imagery_quality: Optional[str] = None
    data_version: str = ""

    def __post_init__(self):
        indexes = [s.index for s in self.roof_segments]
        if len(indexes) != len(set(indexes)):
            raise InvalidGeometryError(f"Building {self.building_id} has duplicate roof segment indexes")
        if not math.isfinite(self.total_roof_area_m2) or self.total_roof_area_m2 < 0:
            raise InvalidGeometryError(
                f"Building {self.building_id} has invalid roof area {self.total_roof_area_m2}")

    def reference_latitude(self) -> Optional[float]:
        """Latitude used to scale longitude degrees to metres for this building."""
        if self.center is not None:
            return self.center.latitude
        if not self.roof_segments:
            return None
        return sum(s.bounds.center.latitude for s in self.roof_segments) / len(self.roof_segments)
