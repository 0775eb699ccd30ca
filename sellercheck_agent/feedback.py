from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from .mathutil import percentage
from .page_source import PageSource
from .parsing import parse_int, parse_trailing_percentage
from .tasks import gather_or_cancel

logger = logging.getLogger(__name__)

PAGE_SIZE_BUTTONS_SELECTOR = ".itemsPerPage button"
SURVEY_SELECTOR = "#seekSurvey"
FEEDBACK_COUNT_SELECTOR = ".userTopLine p"
POSITIVE_FEEDBACK_SELECTOR = ".positiveFeedbackText>span"
FEEDBACK_ROWS_SELECTOR = "#feedback-cards tr"
COMMENT_SELECTOR = ".card__comment"
REVIEWER_SELECTOR = ".card__from>span[data-test-id]"

# Shorter comments ("Great seller!") repeat naturally and are not compared.
MIN_COMMENT_LENGTH = 15


@dataclass(frozen=True)
class FeedbackSummary:
    feedback_count: int
    positive_feedback_percentage: float
    duplicate_feedback_percentage: float


class DuplicateFeedbackTally:
    """Counts comments posted verbatim by more than one distinct reviewer.

    A comment is counted once, when its second distinct reviewer shows up.
    The check-and-increment runs under a single lock, so the final count is the
    same whatever order concurrent readers report rows in.
    """

    def __init__(self, min_length: int = MIN_COMMENT_LENGTH):
        self.min_length = min_length
        self.duplicates = 0
        self._reviewers: dict[str, set[str]] = {}
        self._lock = threading.Lock()

    def record(self, comment: str | None, reviewer: str | None) -> bool:
        """Returns True if this row made `comment` count as a duplicate."""
        comment = (comment or "").strip()
        if len(comment) < self.min_length:
            return False

        reviewer = (reviewer or "").strip()
        with self._lock:
            reviewers = self._reviewers.setdefault(comment, set())
            if reviewer in reviewers:
                return False
            reviewers.add(reviewer)
            if len(reviewers) == 2:
                self.duplicates += 1
                return True
            return False


class FeedbackAnalyzer:
    def __init__(self, source: PageSource, min_comment_length: int = MIN_COMMENT_LENGTH):
        self.source = source
        self.min_comment_length = min_comment_length

    async def analyze(self, page) -> FeedbackSummary:
        await self.expand_page_size(page)
        return FeedbackSummary(
            feedback_count=await self.feedback_count(page),
            positive_feedback_percentage=await self.positive_feedback_percentage(page),
            duplicate_feedback_percentage=await self.duplicate_feedback_percentage(page),
        )

    async def expand_page_size(self, page) -> None:
        buttons = await self.source.query_selector_all(page, PAGE_SIZE_BUTTONS_SELECTOR)
        if not buttons:
            return

        # The survey prompt sits on top of the page-size control.
        survey = await self.source.query_selector(page, SURVEY_SELECTOR)
        if survey is not None:
            await self.source.remove(survey)

        await self.source.click(buttons[-1])
        # The feedback list re-renders with the new page size.
        await self.source.settle(page)

    async def feedback_count(self, page) -> int:
        el = await self.source.query_selector(page, FEEDBACK_COUNT_SELECTOR)
        if el is None:
            logger.debug("Feedback count label not found")
            return 0
        return parse_int(await self.source.read_text(el))

    async def positive_feedback_percentage(self, page) -> float:
        el = await self.source.query_selector(page, POSITIVE_FEEDBACK_SELECTOR)
        if el is None:
            logger.debug("Positive feedback label not found")
            return 0.0
        return parse_trailing_percentage(await self.source.read_text(el))

    async def duplicate_feedback_percentage(self, page) -> float:
        # TODO: restrict to positive feedback once the rating icon selector is pinned down
        rows = await self.source.query_selector_all(page, FEEDBACK_ROWS_SELECTOR)
        rows = rows[1:]  # first row is a decoy

        tally = DuplicateFeedbackTally(self.min_comment_length)
        await gather_or_cancel(self._inspect_row(row, tally) for row in rows)

        logger.debug("Duplicate feedback: %d of %d rows", tally.duplicates, len(rows))
        return percentage(tally.duplicates, len(rows))

    async def _inspect_row(self, row, tally: DuplicateFeedbackTally) -> None:
        comment_el = await self.source.query_selector(row, COMMENT_SELECTOR)
        if comment_el is None:
            return
        comment = (await self.source.read_text(comment_el) or "").strip()
        if len(comment) < tally.min_length:
            return

        reviewer_el = await self.source.query_selector(row, REVIEWER_SELECTOR)
        reviewer = None
        if reviewer_el is not None:
            reviewer = await self.source.read_text(reviewer_el)

        tally.record(comment, reviewer)
