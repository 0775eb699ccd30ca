from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from .config import Settings, load_settings
from .models import Assessment
from .page_source import PageSource, PlaywrightPageSource
from .rater import rate_seller
from .scraper import SellerScraper

logger = logging.getLogger(__name__)


async def assess(
    username: str,
    *,
    settings: Settings | None = None,
    source: PageSource | None = None,
) -> Assessment:
    """Scrape one seller and rate it.

    Without an explicit `source` a Playwright browser is started for this
    assessment only and closed before returning.
    """
    settings = settings or load_settings()
    t0 = time.perf_counter()
    timings: dict[str, int] = {}

    logger.info("Assessing seller %s", username)

    if source is None:
        async with PlaywrightPageSource(settings) as browser_source:
            stats = await SellerScraper(username, browser_source, settings).scrape()
    else:
        stats = await SellerScraper(username, source, settings).scrape()
    timings["scrape"] = int((time.perf_counter() - t0) * 1000)

    t_rate = time.perf_counter()
    result = rate_seller(stats)
    timings["rate"] = int((time.perf_counter() - t_rate) * 1000)
    timings["total"] = int((time.perf_counter() - t0) * 1000)

    logger.info(
        "Seller %s scored %.1f (%d flags) in %dms",
        username, result.score, len(result.flags), timings["total"],
    )

    return Assessment(
        username=username,
        score=result.score,
        flags=result.flags,
        stats=stats,
        analyzed_at=datetime.now(timezone.utc).isoformat(),
        timings_ms=timings,
    )
