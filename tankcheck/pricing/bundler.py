# tankcheck/pricing/bundler.py
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Sequence

from ..engine.constants import TIER_ORDER, TIER_PROFILES
from ..engine.issues import InfrastructureIssue, issue_costs, issues_for_tier
from ..logging_config import log_event, log_failure
from ..schemas import InspectionRecord, InstallComplexity, QualityTier
from ..settings import get_settings
from .providers import PriceRange, QuoteProvider, TotalQuote

settings = get_settings()


@dataclass(frozen=True)
class CostRange:
    low: int = 0
    high: int = 0


@dataclass(frozen=True)
class TierQuote:
    tier: QualityTier
    quote: Optional[TotalQuote] = None
    included_issues: List[InfrastructureIssue] = field(default_factory=list)
    issues_cost: CostRange = CostRange()
    bundle_total: Optional[PriceRange] = None
    loading: bool = False
    error: Optional[str] = None

    @property
    def label(self) -> str:
        return TIER_PROFILES[self.tier]["label"]


def bundle_total(quote: TotalQuote, cost: CostRange) -> PriceRange:
    """Base quote plus the tier's infrastructure fixes."""
    midpoint = round((cost.low + cost.high) / 2)
    base = quote.grand_total_range
    if base is None:
        base = PriceRange(quote.grand_total, quote.grand_total, quote.grand_total)
    return PriceRange(
        low=base.low + cost.low,
        high=base.high + cost.high,
        median=base.median + midpoint,
    )


async def quote_tier(
    record: InspectionRecord,
    tier: QualityTier,
    issues: Iterable[InfrastructureIssue],
    provider: QuoteProvider,
    contractor_id: str,
    complexity: InstallComplexity = InstallComplexity.STANDARD,
) -> TierQuote:
    """
    Fetch one tier. Provider failures are captured on the returned
    TierQuote; they never escape this coroutine.
    """
    included = issues_for_tier(issues, tier)
    cost = CostRange(*issue_costs(included))
    # warranty drives the catalog lookup
    tier_record = record.model_copy(
        update={"warranty_years": TIER_PROFILES[tier]["warranty_years"]}
    )

    try:
        quote = await provider.generate_quote(tier_record, contractor_id, complexity)
    except Exception as e:
        log_failure(
            "QUOTE_TIER_FAILED",
            {"tier": tier.value, "contractor_id": contractor_id, "reason": str(e)},
        )
        return TierQuote(
            tier=tier,
            included_issues=included,
            issues_cost=cost,
            error=str(e) or "Failed to load pricing",
        )

    return TierQuote(
        tier=tier,
        quote=quote,
        included_issues=included,
        issues_cost=cost,
        bundle_total=bundle_total(quote, cost),
    )


async def bundle_quotes(
    record: InspectionRecord,
    issues: Sequence[InfrastructureIssue],
    provider: QuoteProvider,
    tiers: Sequence[QualityTier] = TIER_ORDER,
    contractor_id: str | None = None,
    complexity: InstallComplexity = InstallComplexity.STANDARD,
) -> Dict[QualityTier, TierQuote]:
    """One concurrent provider request per tier; a failing tier does not affect the others."""
    contractor_id = contractor_id or settings.DEFAULT_CONTRACTOR_ID
    results = await asyncio.gather(
        *(quote_tier(record, t, issues, provider, contractor_id, complexity) for t in tiers)
    )
    failed = [r.tier.value for r in results if r.error]
    log_event(
        "QUOTES_BUNDLED",
        "Tier quotes fetched",
        {"tiers": [t.value for t in tiers], "failed": failed, "issue_count": len(issues)},
    )
    return {r.tier: r for r in results}


class TieredQuoteBoard:
    """
    Per-tier quote state for one inspection at a time.

    `refresh` with a new record cancels whatever is still in flight for the
    previous one, and results that arrive for an outdated record are dropped.
    """

    def __init__(
        self,
        provider: QuoteProvider,
        contractor_id: str | None = None,
        complexity: InstallComplexity = InstallComplexity.STANDARD,
        tiers: Sequence[QualityTier] = TIER_ORDER,
    ):
        self.provider = provider
        self.contractor_id = contractor_id or settings.DEFAULT_CONTRACTOR_ID
        self.complexity = complexity
        self.tiers: Dict[QualityTier, TierQuote] = {t: TierQuote(tier=t) for t in tiers}
        self._record: Optional[InspectionRecord] = None
        self._issues: List[InfrastructureIssue] = []
        self._generation = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def all_loading(self) -> bool:
        return any(q.loading for q in self.tiers.values())

    @property
    def generation(self) -> int:
        return self._generation

    def _mark_loading(self, tier: QualityTier) -> None:
        self.tiers[tier] = replace(self.tiers[tier], loading=True, error=None)

    async def _fetch_tier(self, tier: QualityTier, generation: int) -> None:
        result = await quote_tier(
            self._record,
            tier,
            self._issues,
            self.provider,
            self.contractor_id,
            self.complexity,
        )
        if generation != self._generation:
            return
        self.tiers[tier] = result

    async def _fetch_all(self, generation: int) -> None:
        await asyncio.gather(*(self._fetch_tier(t, generation) for t in self.tiers))

    async def refresh(
        self,
        record: InspectionRecord,
        issues: Sequence[InfrastructureIssue],
    ) -> Dict[QualityTier, TierQuote]:
        self._generation += 1
        generation = self._generation
        if self._task is not None and not self._task.done():
            self._task.cancel()

        self._record = record
        self._issues = list(issues)
        for tier in self.tiers:
            self._mark_loading(tier)

        task = asyncio.ensure_future(self._fetch_all(generation))
        self._task = task
        try:
            await task
        except asyncio.CancelledError:
            # superseded by a newer refresh; only re-raise if we were cancelled ourselves
            if generation == self._generation:
                raise
        return self.tiers

    async def retry_tier(self, tier: QualityTier) -> TierQuote:
        if self._record is None:
            raise RuntimeError("retry_tier called before refresh")
        generation = self._generation
        self._mark_loading(tier)
        await self._fetch_tier(tier, generation)
        return self.tiers[tier]
