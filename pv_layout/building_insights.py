# This file is part of the solar wizard PV suitability model, copyright © Centre for Sustainable Energy, 2020-2023
# Licensed under the Reciprocal Public License v1.5. See LICENSE for licensing details.
"""
Convert a building-insights provider response (the `buildingInsights:findClosest`
JSON, already fetched and decoded) into a Building.
"""
import logging
from typing import List, Optional

from pv_layout.datatypes import Building, BoundingBox, GeoPoint, PanelConfig, PanelOrientation, \
    PanelSpec, ProviderPanel, RoofSegment
from pv_layout.geos import to_positive_angle


def _point(d: Optional[dict]) -> Optional[GeoPoint]:
    if not d or 'latitude' not in d or 'longitude' not in d:
        return None
    return GeoPoint.from_dict(d)


def _bounding_box(d: dict) -> BoundingBox:
    return BoundingBox(southwest=GeoPoint.from_dict(d['sw']),
                       northeast=GeoPoint.from_dict(d['ne']))


def _roof_segments(stats: List[dict]) -> List[RoofSegment]:
    segments = []
    for index, seg in enumerate(stats):
        seg_stats = seg.get('stats', {})
        segments.append(RoofSegment(
            index=index,
            area_m2=float(seg_stats.get('areaMeters2', 0.0)),
            pitch_degrees=float(seg.get('pitchDegrees', 0.0)),
            azimuth_degrees=to_positive_angle(float(seg.get('azimuthDegrees', 0.0))),
            bounds=_bounding_box(seg['boundingBox']),
            sunshine_hours=tuple(float(h) for h in seg_stats.get('sunshineQuantiles', [])),
            center=_point(seg.get('center'))))
    return segments


def _provider_panels(panels: List[dict]) -> List[ProviderPanel]:
    return [ProviderPanel(center=GeoPoint.from_dict(p['center']),
                          yearly_energy_dc_kwh=float(p.get('yearlyEnergyDcKwh', 0.0)),
                          segment_index=int(p.get('segmentIndex', 0)),
                          orientation=PanelOrientation(p.get('orientation', 'LANDSCAPE')))
            for p in panels]


def _provider_panel_spec(solar_potential: dict) -> Optional[PanelSpec]:
    width = solar_potential.get('panelWidthMeters')
    height = solar_potential.get('panelHeightMeters')
    capacity = solar_potential.get('panelCapacityWatts')
    if not width or not height:
        return None
    # Provider dimensions are for a portrait panel; the layout grid is landscape.
    kwargs = {"width_m": float(max(width, height)), "height_m": float(min(width, height))}
    if capacity:
        kwargs["capacity_watts"] = float(capacity)
    return PanelSpec(**kwargs)


def parse_building_insights(response: dict, data_version: str = "") -> Building:
    """
    A response without solar potential, or without roof segments, gives a Building
    with no segments: a valid zero-capacity building, not an error.
    """
    building_id = response.get('name', '')
    center = _point(response.get('center'))
    solar_potential = response.get('solarPotential')
    if not solar_potential:
        logging.info(f"No solar potential for building {building_id!r}")
        return Building(building_id=building_id, center=center,
                        imagery_quality=response.get('imageryQuality'),
                        data_version=data_version)

    segments = _roof_segments(solar_potential.get('roofSegmentStats', []))
    total_area = solar_potential.get('wholeRoofStats', {}).get('areaMeters2')
    if total_area is None:
        total_area = sum(s.area_m2 for s in segments)

    return Building(
        building_id=building_id,
        roof_segments=tuple(segments),
        total_roof_area_m2=float(total_area),
        center=center,
        max_panels=int(solar_potential.get('maxArrayPanelsCount', 0)),
        provider_panels=tuple(_provider_panels(solar_potential.get('solarPanels', []))),
        panel_configs=tuple(PanelConfig(panels_count=int(c['panelsCount']),
                                        yearly_energy_dc_kwh=float(c['yearlyEnergyDcKwh']))
                            for c in solar_potential.get('solarPanelConfigs', [])),
        provider_panel_spec=_provider_panel_spec(solar_potential),
        carbon_offset_factor_kg_per_mwh=solar_potential.get('carbonOffsetFactorKgPerMwh'),
        imagery_quality=response.get('imageryQuality'),
        data_version=data_version)
