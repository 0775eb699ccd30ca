from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from urllib.parse import quote

from .config import Settings
from .dates import time_since
from .errors import NavigationError, SellerUnavailableError
from .feedback import FeedbackAnalyzer
from .item_sampler import ItemDetails, ItemSampler
from .mathutil import percentage, safe_div
from .models import SellerStats, TimeSince
from .page_source import PageSource, scoped_page
from .parsing import parse_date, parse_leading_int, parse_price
from .tasks import gather_or_cancel

logger = logging.getLogger(__name__)

SELLER_STATS_SELECTOR = ".str-seller-card__stats-content"
ITEM_PRICE_SELECTOR = ".s-item__price"
ITEM_LINK_SELECTOR = ".s-item__link"
SELLER_INFO_SELECTOR = ".str-about-description__seller-info span.str-text-span.BOLD"

# Listings at or below this price (in the storefront currency) count as cheap.
CHEAP_ITEM_THRESHOLD = 10


@dataclass
class ItemTotals:
    images: int = 0
    description_length: int = 0
    postage_allowed: int = 0
    free_postage: int = 0
    accept_returns: int = 0
    seller_pays_returns: int = 0

    def add(self, item: ItemDetails) -> None:
        self.images += item.images
        self.description_length += item.description_length or 0
        self.postage_allowed += int(item.postage.allows_postage)
        self.free_postage += int(item.postage.is_free)
        self.accept_returns += int(item.returns.return_allowed)
        self.seller_pays_returns += int(item.returns.seller_pays)

    def apply(self, stats: SellerStats) -> None:
        # Averages are over every sampled listing, including the ones that failed to load.
        stats.average_image_count = safe_div(self.images, stats.active_items)
        stats.average_description_length = safe_div(self.description_length, stats.active_items)
        stats.free_postage_percentage = percentage(self.free_postage, self.postage_allowed)
        stats.accept_returns_percentage = percentage(self.accept_returns, stats.active_items)
        stats.seller_pays_returns_percentage = percentage(self.seller_pays_returns, self.accept_returns)


class SellerScraper:
    """Collects the statistics of one seller.

    The storefront page is loaded once and drives the profile-level steps;
    listings, feedback and the about tab each get their own page.
    """

    def __init__(self, username: str, source: PageSource, settings: Settings | None = None):
        self.username = username
        self.source = source
        self.settings = settings or Settings()
        self._quoted = quote(username, safe="")

    async def scrape(self) -> SellerStats:
        stats = SellerStats()

        store_url = self.settings.store_url(self._quoted)
        async with scoped_page(self.source) as page:
            try:
                await self.source.navigate(page, store_url)
            except NavigationError as e:
                raise SellerUnavailableError(self.username, store_url) from e

            stats.sold_items = await self.sold_items(page)
            stats.cheap_items_percentage = await self.cheap_items_percentage(page)
            links = await self.item_links(page)

        stats.active_items = len(links)
        totals = await self.browse_items(links)
        totals.apply(stats)

        await self.browse_feedback(stats)
        stats.time_since_creation = await self.account_age()

        logger.info(
            "Scraped %s: %d active, %d sold, %d feedback",
            self.username, stats.active_items, stats.sold_items, stats.feedback_count,
        )
        return stats

    async def sold_items(self, page) -> int:
        container = await self.source.query_selector(page, SELLER_STATS_SELECTOR)
        if container is None:
            logger.debug("Seller stats card not found for %s", self.username)
            return 0

        cells = await self.source.query_selector_all(container, "div")
        if len(cells) < 2:
            return 0

        title = await self.source.read_attribute(cells[1], "title")
        if title is None:
            return 0
        return parse_leading_int(title)

    async def cheap_items_percentage(self, page) -> float:
        # TODO: check the leading decoy listing on storefronts with fewer than one full page
        price_elements = await self.source.query_selector_all(page, ITEM_PRICE_SELECTOR)
        price_elements = price_elements[1:]

        async def read_price(el) -> float:
            return parse_price(await self.source.read_text(el))

        prices = await gather_or_cancel(read_price(el) for el in price_elements)
        cheap = sum(1 for price in prices if price <= CHEAP_ITEM_THRESHOLD)
        return percentage(cheap, len(prices))

    async def item_links(self, page) -> list[str | None]:
        link_elements = await self.source.query_selector_all(page, ITEM_LINK_SELECTOR)
        link_elements = link_elements[1:]  # first result is a decoy
        return [await self.source.read_attribute(el, "href") for el in link_elements]

    async def browse_items(self, links: list[str | None]) -> ItemTotals:
        sampler = ItemSampler(self.source)
        semaphore = asyncio.Semaphore(self.settings.item_concurrency)

        async def sample(link: str | None) -> ItemDetails | None:
            if not link:
                return None
            async with semaphore:
                return await sampler.sample(link)

        samples = await gather_or_cancel(sample(link) for link in links)

        totals = ItemTotals()
        sampled = 0
        for item in samples:
            if item is None:
                continue
            totals.add(item)
            sampled += 1

        logger.info("Sampled %d of %d listings for %s", sampled, len(links), self.username)
        return totals

    async def browse_feedback(self, stats: SellerStats) -> None:
        url = self.settings.feedback_url(self._quoted)
        async with scoped_page(self.source) as page:
            try:
                await self.source.navigate(page, url)
            except NavigationError as e:
                logger.warning("Feedback page unavailable for %s: %s", self.username, e)
                return

            summary = await FeedbackAnalyzer(self.source).analyze(page)

        stats.feedback_count = summary.feedback_count
        stats.positive_feedback_percentage = summary.positive_feedback_percentage
        stats.duplicate_feedback_percentage = summary.duplicate_feedback_percentage

    async def account_age(self) -> TimeSince | None:
        url = self.settings.about_url(self._quoted)
        async with scoped_page(self.source) as page:
            try:
                await self.source.navigate(page, url)
            except NavigationError as e:
                logger.warning("About page unavailable for %s: %s", self.username, e)
                return None

            labels = await self.source.query_selector_all(page, SELLER_INFO_SELECTOR)
            if len(labels) < 2:
                logger.debug("Account creation date not found for %s", self.username)
                return None
            # Second label is the "Member since" date.
            created = await self.source.read_text(labels[1])

        if created is None:
            return None
        return time_since(parse_date(created))
