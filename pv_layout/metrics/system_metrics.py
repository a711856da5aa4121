# This file is part of the solar wizard PV suitability model, copyright © Centre for Sustainable Energy, 2020-2023
# Licensed under the Reciprocal Public License v1.5. See LICENSE for licensing details.
"""Turn a panel placement into headline system figures"""
from typing import Optional, Sequence

from pv_layout import constants
from pv_layout.datatypes import FluxRaster, PanelCandidate, PanelConfig, PanelSpec, PlacedPanel, \
    SystemMetrics, Tariff
from pv_layout.flux import NEAREST, flux_at, panel_energy_from_flux
from pv_layout.panels.selection import SeparationPolicy, select_panels
from pv_layout.util import safe_div, validate_float, validate_int


def annual_energy_kwh(panels: Sequence[PlacedPanel],
                      spec: PanelSpec,
                      flux: Optional[FluxRaster] = None,
                      interpolation: str = NEAREST) -> float:
    """
    Yearly DC energy of the placement. Measured flux under each panel is used
    where there is a raster; panels it has no data for keep their own estimate.
    """
    total = 0.0
    for panel in panels:
        value = flux_at(flux, panel.position, interpolation) if flux is not None else None
        if value is not None:
            total += panel_energy_from_flux(value, spec)
        else:
            total += panel.yearly_energy_dc_kwh
    return total


def roof_coverage_percent(panel_count: int, spec: PanelSpec, total_roof_area_m2: float) -> float:
    """
    Share of the roof covered by panels. Not clamped: over 100 means the roof
    area figure undercounts the usable area, which is the caller's to present.
    """
    if total_roof_area_m2 <= 0:
        return 0.0
    return panel_count * spec.area_m2 / total_roof_area_m2 * 100


def layout_efficiency(panel_count: int, spec: PanelSpec, total_roof_area_m2: float) -> float:
    """Panel area over roof area, capped at 1"""
    return min(roof_coverage_percent(panel_count, spec, total_roof_area_m2) / 100, 1.0)


def system_metrics(panels: Sequence[PlacedPanel],
                   spec: PanelSpec,
                   total_roof_area_m2: float,
                   tariff: Tariff = Tariff(),
                   flux: Optional[FluxRaster] = None,
                   interpolation: str = NEAREST) -> SystemMetrics:
    total_roof_area_m2 = validate_float(total_roof_area_m2, "total_roof_area_m2", 0)
    count = len(panels)
    if count == 0:
        return SystemMetrics()

    energy = annual_energy_kwh(panels, spec, flux, interpolation)
    size_kw = count * spec.capacity_watts / 1000
    monthly_savings = energy / 12 * tariff.rate_per_kwh
    annual_savings = monthly_savings * 12
    cost = size_kw * tariff.cost_per_kw
    co2 = energy * tariff.co2_kg_per_kwh

    return SystemMetrics(
        panel_count=count,
        annual_energy_kwh=energy,
        monthly_savings=monthly_savings,
        system_size_kw=size_kw,
        roof_coverage_percent=roof_coverage_percent(count, spec, total_roof_area_m2),
        co2_offset_kg_per_year=co2,
        estimated_cost=cost,
        payback_years=safe_div(cost, annual_savings),
        trees_equivalent=co2 / constants.CO2_KG_PER_TREE_YEAR)


def metrics_for_count(ranked: Sequence[PanelCandidate],
                      panel_count: int,
                      policy: SeparationPolicy,
                      spec: PanelSpec,
                      total_roof_area_m2: float,
                      tariff: Tariff = Tariff(),
                      flux: Optional[FluxRaster] = None,
                      interpolation: str = NEAREST) -> SystemMetrics:
    """Metrics for `panel_count` panels chosen from an already-ranked candidate pool"""
    panels = select_panels(ranked, panel_count, policy, ranked=True)
    return system_metrics(panels, spec, total_roof_area_m2, tariff, flux, interpolation)


def estimate_energy_from_configs(panel_configs: Sequence[PanelConfig], panel_count: int) -> float:
    """
    Yearly energy for `panel_count` panels, scaled from whichever of the provider's
    own panel configurations has the nearest panel count. 0 if there are none.
    """
    panel_count = validate_int(panel_count, "panel_count", 0)
    usable = [c for c in panel_configs if c.panels_count > 0]
    if not usable or panel_count == 0:
        return 0.0
    closest = min(usable, key=lambda c: (abs(c.panels_count - panel_count), c.panels_count))
    return closest.yearly_energy_dc_kwh / closest.panels_count * panel_count
