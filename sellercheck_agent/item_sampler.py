from __future__ import annotations

import logging
from dataclasses import dataclass

from .errors import NavigationError
from .page_source import PageSource, scoped_page

logger = logging.getLogger(__name__)

IMAGE_SELECTOR = ".ux-image-filmstrip-carousel-item.image-treatment.image"
DESCRIPTION_FRAME_SELECTOR = "#desc_ifr"
DESCRIPTION_SELECTOR = "#ds_div"
POSTAGE_SELECTOR = ".ux-labels-values.col-12.ux-labels-values--shipping span.ux-textspans.ux-textspans--BOLD"
RETURNS_SELECTOR = (
    ".ux-labels-values.col-12.ux-labels-values__column-last-row.ux-labels-values--returns "
    "div.ux-labels-values__values-content div"
)


@dataclass(frozen=True)
class PostageDetails:
    allows_postage: bool = False
    is_free: bool = False


@dataclass(frozen=True)
class ReturnDetails:
    return_allowed: bool = False
    seller_pays: bool = False


@dataclass(frozen=True)
class ItemDetails:
    images: int
    description_length: int | None
    postage: PostageDetails
    returns: ReturnDetails


def postage_from_text(text: str | None) -> PostageDetails:
    """`text` is the shipping-cost label, or None when the listing has none."""
    if text is None:
        return PostageDetails()
    return PostageDetails(allows_postage=True, is_free=text.strip().startswith("Free"))


def returns_from_text(text: str | None) -> ReturnDetails:
    # e.g. "30 days returns. Seller pays for return postage. See details"
    if text is None:
        return ReturnDetails()

    text = text.strip()
    if text.startswith("No"):
        return ReturnDetails()

    sentences = text.split(".")
    seller_pays = len(sentences) > 1 and sentences[1].strip().startswith("Seller")
    return ReturnDetails(return_allowed=True, seller_pays=seller_pays)


class ItemSampler:
    def __init__(self, source: PageSource):
        self.source = source

    async def sample(self, link: str) -> ItemDetails | None:
        """Extract the per-item signals of one listing.

        Returns None when the listing page cannot be loaded; the caller skips it.
        """
        async with scoped_page(self.source) as page:
            try:
                await self.source.navigate(page, link)
            except NavigationError as e:
                logger.warning("Skipping listing %s: %s", link, e)
                return None

            return ItemDetails(
                images=await self.image_count(page),
                description_length=await self.description_length(page),
                postage=await self.postage_details(page),
                returns=await self.return_details(page),
            )

    async def image_count(self, page) -> int:
        return len(await self.source.query_selector_all(page, IMAGE_SELECTOR))

    async def description_length(self, page) -> int | None:
        # The description only renders inside its iframe.
        iframe = await self.source.query_selector(page, DESCRIPTION_FRAME_SELECTOR)
        if iframe is None:
            return None
        frame = await self.source.nested_document(iframe)
        if frame is None:
            return None
        description = await self.source.query_selector(frame, DESCRIPTION_SELECTOR)
        if description is None:
            return None
        text = await self.source.read_text(description)
        if text is None:
            return None
        return len(text)

    async def postage_details(self, page) -> PostageDetails:
        el = await self.source.query_selector(page, POSTAGE_SELECTOR)
        if el is None:
            return PostageDetails()
        return postage_from_text(await self.source.read_text(el) or "")

    async def return_details(self, page) -> ReturnDetails:
        el = await self.source.query_selector(page, RETURNS_SELECTOR)
        if el is None:
            return ReturnDetails()
        return returns_from_text(await self.source.read_text(el))
