# tankcheck/pricing/providers.py
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional, Protocol

import requests

from ..engine.constants import TIER_PROFILES, tier_for_warranty
from ..schemas import FuelType, InspectionRecord, InstallComplexity, UnitCategory, VentType

RANGE_LOW = 0.9
RANGE_HIGH = 1.15


class QuoteProviderError(RuntimeError):
    pass


@dataclass(frozen=True)
class PriceRange:
    low: int
    high: int
    median: int


@dataclass(frozen=True)
class InstallPreset:
    vent_type: VentType
    complexity: InstallComplexity
    labor_cost: int
    materials_cost: int
    permit_cost: int

    @property
    def total_cost(self) -> int:
        return self.labor_cost + self.materials_cost + self.permit_cost


@dataclass(frozen=True)
class TotalQuote:
    grand_total: int
    unit_price: int = 0
    install_cost: int = 0
    grand_total_range: Optional[PriceRange] = None


class QuoteProvider(Protocol):
    async def generate_quote(
        self,
        record: InspectionRecord,
        contractor_id: str,
        complexity: InstallComplexity,
    ) -> TotalQuote:
        ...


# -------------------------
# DEFAULT INSTALL PRESETS
# -------------------------
BASE_LABOR = {
    VentType.ATMOSPHERIC: 350,
    VentType.POWER_VENT: 550,
    VentType.DIRECT_VENT: 500,
}

COMPLEXITY_MULTIPLIER = {
    InstallComplexity.STANDARD: 1.0,
    InstallComplexity.CODE_UPGRADE: 1.4,
    InstallComplexity.DIFFICULT_ACCESS: 1.6,
    InstallComplexity.NEW_INSTALL: 2.0,
}


def default_install_preset(vent_type: VentType, complexity: InstallComplexity) -> InstallPreset:
    if complexity == InstallComplexity.CODE_UPGRADE:
        materials = 200
    elif complexity == InstallComplexity.NEW_INSTALL:
        materials = 300
    else:
        materials = 100
    return InstallPreset(
        vent_type=vent_type,
        complexity=complexity,
        labor_cost=round(BASE_LABOR[vent_type] * COMPLEXITY_MULTIPLIER[complexity]),
        materials_cost=materials,
        permit_cost=150 if complexity == InstallComplexity.NEW_INSTALL else 75,
    )


def _cost_key(fuel_type: FuelType) -> str:
    if fuel_type in (FuelType.TANKLESS_GAS, FuelType.TANKLESS_ELECTRIC):
        return "tankless"
    if fuel_type == FuelType.HYBRID:
        return "hybrid"
    if fuel_type == FuelType.ELECTRIC:
        return "tank_electric"
    return "tank_gas"


def unit_price(record: InspectionRecord) -> int:
    """Catalog price of the replacement unit at the tier the warranty implies."""
    tier = tier_for_warranty(record.warranty_years)
    base = TIER_PROFILES[tier]["base_cost"][_cost_key(record.fuel_type)]
    # list prices assume a 50 gallon tank
    if record.category != UnitCategory.TANKLESS and record.tank_capacity > 50:
        base = round(base * (1 + (record.tank_capacity - 50) / 100))
    return base


class PresetQuoteProvider:
    """Offline provider: tier catalog prices plus the default install presets."""

    async def generate_quote(
        self,
        record: InspectionRecord,
        contractor_id: str,
        complexity: InstallComplexity = InstallComplexity.STANDARD,
    ) -> TotalQuote:
        unit = unit_price(record)
        install = default_install_preset(record.vent_type, complexity).total_cost
        total = unit + install
        return TotalQuote(
            grand_total=total,
            unit_price=unit,
            install_cost=install,
            grand_total_range=PriceRange(
                low=round(total * RANGE_LOW),
                high=round(total * RANGE_HIGH),
                median=total,
            ),
        )


class HttpQuoteProvider:
    """
    Posts the record to a pricing service. The blocking `requests` call runs
    in a worker thread so tiers can be fetched concurrently.
    """

    def __init__(self, base_url: str, timeout: float = 10.0, session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _post(self, payload: dict) -> dict:
        try:
            res = self.session.post(f"{self.base_url}/quotes", json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise QuoteProviderError(f"Pricing service unreachable: {e}") from e
        if res.status_code != 200:
            raise QuoteProviderError(f"Pricing service returned HTTP {res.status_code}")
        try:
            return res.json()
        except ValueError as e:
            raise QuoteProviderError("Pricing service returned a non-JSON body") from e

    async def generate_quote(
        self,
        record: InspectionRecord,
        contractor_id: str,
        complexity: InstallComplexity = InstallComplexity.STANDARD,
    ) -> TotalQuote:
        payload = {
            "contractor_id": contractor_id,
            "complexity": complexity.value,
            "record": record.model_dump(mode="json"),
        }
        data = await asyncio.to_thread(self._post, payload)

        try:
            rng = data.get("grand_total_range")
            return TotalQuote(
                grand_total=int(data["grand_total"]),
                unit_price=int(data.get("unit_price") or 0),
                install_cost=int(data.get("install_cost") or 0),
                grand_total_range=PriceRange(
                    low=int(rng["low"]), high=int(rng["high"]), median=int(rng["median"])
                ) if rng else None,
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise QuoteProviderError(f"Malformed quote payload: {e}") from e
