# tankcheck/routes/quotes.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from .. import schemas
from ..engine import compute_metrics, detect_issues
from ..engine.constants import TIER_ORDER
from ..pricing import HttpQuoteProvider, PresetQuoteProvider, QuoteProvider, bundle_quotes
from ..settings import get_settings

router = APIRouter(prefix="/quotes", tags=["quotes"])
settings = get_settings()


def get_quote_provider() -> QuoteProvider:
    if settings.QUOTE_PROVIDER_URL:
        return HttpQuoteProvider(
            settings.QUOTE_PROVIDER_URL,
            timeout=settings.QUOTE_TIMEOUT_SECONDS,
        )
    return PresetQuoteProvider()


@router.post("", response_model=schemas.QuotesOut)
async def create_quotes(
    inp: schemas.QuoteIn,
    provider: QuoteProvider = Depends(get_quote_provider),
):
    record = inp.record
    issues = detect_issues(record, compute_metrics(record))

    results = await bundle_quotes(
        record,
        issues,
        provider,
        tiers=inp.tiers or TIER_ORDER,
        contractor_id=inp.contractor_id,
        complexity=inp.complexity,
    )
    return schemas.QuotesOut(
        tiers=[schemas.TierQuoteOut.model_validate(q) for q in results.values()]
    )
