# tests/test_bundler.py
import asyncio

import pytest

from tankcheck.engine.issues import detect_issues
from tankcheck.engine.metrics import compute_metrics
from tankcheck.pricing import PresetQuoteProvider, TieredQuoteBoard, TotalQuote, bundle_quotes
from tankcheck.pricing.bundler import CostRange, bundle_total
from tankcheck.pricing.providers import PriceRange, QuoteProviderError, default_install_preset
from tankcheck.schemas import FuelType, InspectionRecord, InstallComplexity, QualityTier, VentType


def make_record(**overrides):
    base = {
        "calendar_age": 5,
        "house_psi": 55,
        "fuel_type": FuelType.GAS,
        "is_closed_loop": True,  # needs an expansion tank
    }
    base.update(overrides)
    return InspectionRecord(**base)


class RecordingProvider:
    """Flat-priced fake that records the warranty each tier asked for."""

    def __init__(self, fail_warranty=None, price=2000):
        self.fail_warranty = fail_warranty
        self.price = price
        self.seen = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def generate_quote(self, record, contractor_id, complexity):
        self.seen.append(record.warranty_years)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0.01)
            if record.warranty_years == self.fail_warranty:
                raise QuoteProviderError("pricing service down")
            return TotalQuote(grand_total=self.price)
        finally:
            self.in_flight -= 1


def issues_for(record):
    return detect_issues(record, compute_metrics(record))


def test_bundle_total_with_and_without_range():
    cost = CostRange(250, 400)
    flat = bundle_total(TotalQuote(grand_total=2000), cost)
    assert (flat.low, flat.high, flat.median) == (2250, 2400, 2325)

    ranged = bundle_total(
        TotalQuote(grand_total=2000, grand_total_range=PriceRange(1800, 2300, 2000)),
        cost,
    )
    assert (ranged.low, ranged.high, ranged.median) == (2050, 2700, 2325)


def test_each_tier_quoted_at_its_warranty_concurrently():
    provider = RecordingProvider()
    rec = make_record()
    result = asyncio.run(bundle_quotes(rec, issues_for(rec), provider))

    assert list(result) == [
        QualityTier.BUILDER,
        QualityTier.STANDARD,
        QualityTier.PROFESSIONAL,
        QualityTier.PREMIUM,
    ]
    assert sorted(provider.seen) == [6, 9, 12, 15]
    assert provider.max_in_flight == 4


def test_violation_bundled_into_every_tier():
    provider = RecordingProvider()
    rec = make_record()
    result = asyncio.run(bundle_quotes(rec, issues_for(rec), provider))

    for quote in result.values():
        assert [i.id.value for i in quote.included_issues] == ["EXP_TANK_REQUIRED"]
        assert quote.bundle_total.median == 2000 + 325
        assert quote.error is None
        assert quote.loading is False


def test_failing_tier_is_isolated():
    provider = RecordingProvider(fail_warranty=9)
    rec = make_record()
    result = asyncio.run(bundle_quotes(rec, issues_for(rec), provider))

    failed = result[QualityTier.STANDARD]
    assert failed.error == "pricing service down"
    assert failed.quote is None
    assert failed.bundle_total is None
    # issues are still attached so the caller can show them
    assert failed.issues_cost == CostRange(250, 400)

    for tier in (QualityTier.BUILDER, QualityTier.PROFESSIONAL, QualityTier.PREMIUM):
        assert result[tier].error is None
        assert result[tier].quote.grand_total == 2000


def test_preset_provider_prices_tiers_upward():
    rec = make_record(is_closed_loop=False)
    result = asyncio.run(bundle_quotes(rec, [], PresetQuoteProvider()))
    medians = [result[t].bundle_total.median for t in result]
    assert medians == sorted(medians)
    assert len(set(medians)) == 4

    install = default_install_preset(VentType.ATMOSPHERIC, InstallComplexity.STANDARD).total_cost
    assert install == 350 + 100 + 75
    assert result[QualityTier.BUILDER].quote.grand_total == 1400 + install


def test_default_install_presets():
    preset = default_install_preset(VentType.POWER_VENT, InstallComplexity.NEW_INSTALL)
    assert preset.labor_cost == 1100
    assert preset.materials_cost == 300
    assert preset.permit_cost == 150


# --- BOARD ---
class GatedProvider:
    """Blocks quotes for the `slow_psi` record until cancelled."""

    def __init__(self, slow_psi):
        self.slow_psi = slow_psi
        self.cancelled = 0
        self.waiting = 0
        self.fail = False

    async def generate_quote(self, record, contractor_id, complexity):
        if record.house_psi == self.slow_psi:
            self.waiting += 1
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                self.cancelled += 1
                raise
        if self.fail and record.warranty_years == 9:
            raise QuoteProviderError("temporarily unavailable")
        return TotalQuote(grand_total=int(record.house_psi) * 100)


def test_board_drops_stale_results_for_outdated_record():
    async def scenario():
        provider = GatedProvider(slow_psi=50)
        board = TieredQuoteBoard(provider)

        stale = asyncio.create_task(board.refresh(make_record(house_psi=50), []))
        while provider.waiting < 4:
            await asyncio.sleep(0)
        assert board.all_loading

        tiers = await board.refresh(make_record(house_psi=70), [])
        await stale
        return provider, board, tiers

    provider, board, tiers = asyncio.run(scenario())
    assert provider.cancelled == 4
    assert board.generation == 2
    assert not board.all_loading
    assert {q.quote.grand_total for q in tiers.values()} == {7000}


def test_board_retry_single_tier():
    async def scenario():
        provider = GatedProvider(slow_psi=-1)
        provider.fail = True
        board = TieredQuoteBoard(provider)
        await board.refresh(make_record(), [])
        first = board.tiers[QualityTier.STANDARD]

        provider.fail = False
        retried = await board.retry_tier(QualityTier.STANDARD)
        return first, retried, board

    first, retried, board = asyncio.run(scenario())
    assert first.error == "temporarily unavailable"
    assert retried.error is None
    assert retried.quote.grand_total == 5500
    assert board.tiers[QualityTier.STANDARD] is retried


def test_retry_before_refresh_is_an_error():
    board = TieredQuoteBoard(PresetQuoteProvider())
    with pytest.raises(RuntimeError):
        asyncio.run(board.retry_tier(QualityTier.BUILDER))
