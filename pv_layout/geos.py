# This file is part of the solar wizard PV suitability model, copyright © Centre for Sustainable Energy, 2020-2023
# Licensed under the Reciprocal Public License v1.5. See LICENSE for licensing details.
import math
from dataclasses import dataclass
from typing import Tuple

from shapely.geometry import Polygon, box

from pv_layout.constants import METRES_PER_DEGREE_LAT
from pv_layout.datatypes import BoundingBox, GeoPoint, InvalidGeometryError


@dataclass(frozen=True)
class LocalScale:
    """
    Equirectangular metres <-> degrees conversion around a reference latitude.
    Good enough over the extent of a single building.
    """
    reference_latitude: float

    def __post_init__(self):
        if not math.isfinite(self.reference_latitude) or abs(self.reference_latitude) >= 90:
            raise InvalidGeometryError(f"Invalid reference latitude {self.reference_latitude}")

    @property
    def metres_per_degree_lat(self) -> float:
        return METRES_PER_DEGREE_LAT

    @property
    def metres_per_degree_lng(self) -> float:
        return METRES_PER_DEGREE_LAT * math.cos(math.radians(self.reference_latitude))

    def lat_degrees(self, metres: float) -> float:
        return metres / self.metres_per_degree_lat

    def lng_degrees(self, metres: float) -> float:
        return metres / self.metres_per_degree_lng

    def offset_m(self, p1: GeoPoint, p2: GeoPoint) -> Tuple[float, float]:
        """(north, east) offset of p2 from p1 in metres"""
        return ((p2.latitude - p1.latitude) * self.metres_per_degree_lat,
                (p2.longitude - p1.longitude) * self.metres_per_degree_lng)

    def distance_m(self, p1: GeoPoint, p2: GeoPoint) -> float:
        dy, dx = self.offset_m(p1, p2)
        return math.hypot(dx, dy)

    def extent_m(self, bounds: BoundingBox) -> Tuple[float, float]:
        """(width, height) of the bounds in metres"""
        return ((bounds.east - bounds.west) * self.metres_per_degree_lng,
                (bounds.north - bounds.south) * self.metres_per_degree_lat)


def rect(x: float, y: float, w: float, h: float) -> Polygon:
    return Polygon([(x, y),
                    (x, y + h),
                    (x + w, y + h),
                    (x + w, y),
                    (x, y)])


def inset_bounds(bounds: BoundingBox, margin_fraction: float) -> Polygon:
    """Bounds shrunk on every side by `margin_fraction` of the relevant dimension."""
    margin_lat = (bounds.north - bounds.south) * margin_fraction
    margin_lng = (bounds.east - bounds.west) * margin_fraction
    return box(bounds.west + margin_lng, bounds.south + margin_lat,
               bounds.east - margin_lng, bounds.north - margin_lat)


def deg_diff(r1, r2):
    """
    Smallest difference between degrees.
    Assumes degrees between 0 and 360. Will return a positive number.
    """
    return min(abs(r1 - r2), 360 - abs(r1 - r2))


def to_positive_angle(angle):
    angle = angle % 360
    return angle + 360 if angle < 0 else angle
