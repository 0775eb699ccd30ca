import asyncio
import itertools
from unittest import IsolatedAsyncioTestCase, TestCase

from sellercheck_agent.errors import ParseError
from sellercheck_agent.feedback import DuplicateFeedbackTally, FeedbackAnalyzer, FeedbackSummary

from tests.fakes import FakePage, FakePageSource, feedback_document, feedback_row

COMMENT = "Item exactly as described, fast delivery"
OTHER_COMMENT = "Great communication, would buy again"


def _loaded(document):
    return FakePage(document=document)


class DuplicateFeedbackTallyTests(TestCase):
    def test_second_reviewer_counts_once(self):
        tally = DuplicateFeedbackTally()
        self.assertFalse(tally.record(COMMENT, "alice"))
        self.assertTrue(tally.record(COMMENT, "bob"))
        self.assertFalse(tally.record(COMMENT, "carol"))
        self.assertEqual(tally.duplicates, 1)

    def test_same_reviewer_repeating_does_not_count(self):
        tally = DuplicateFeedbackTally()
        tally.record(COMMENT, "alice")
        tally.record(COMMENT, "alice")
        self.assertEqual(tally.duplicates, 0)

    def test_short_comments_never_count(self):
        tally = DuplicateFeedbackTally()
        for reviewer in ("alice", "bob", "carol"):
            tally.record("Great seller!", reviewer)
        self.assertEqual(tally.duplicates, 0)

    def test_count_is_independent_of_order(self):
        entries = [
            (COMMENT, "alice"),
            (COMMENT, "bob"),
            (COMMENT, "alice"),
            (OTHER_COMMENT, "carol"),
            (OTHER_COMMENT, "dave"),
            (OTHER_COMMENT, "erin"),
            ("Thanks!", "frank"),
        ]
        for ordering in itertools.permutations(entries):
            tally = DuplicateFeedbackTally()
            for comment, reviewer in ordering:
                tally.record(comment, reviewer)
            self.assertEqual(tally.duplicates, 2)


class FeedbackAnalyzerTests(IsolatedAsyncioTestCase):
    async def test_duplicate_percentage_discards_decoy_row(self):
        rows = [
            feedback_row(COMMENT, "decoy"),
            feedback_row(COMMENT, "alice"),
            feedback_row(COMMENT, "bob"),
            feedback_row(COMMENT, "alice"),
        ]
        page = _loaded(feedback_document(rows=rows))

        percent = await FeedbackAnalyzer(FakePageSource()).duplicate_feedback_percentage(page)

        # one duplicated comment over 3 rows after the decoy
        self.assertAlmostEqual(percent, 100 / 3)

    async def test_short_comments_still_count_in_denominator(self):
        rows = [
            feedback_row("decoy comment text", "x"),
            feedback_row(COMMENT, "alice"),
            feedback_row(COMMENT, "bob"),
            feedback_row("A+", "carol"),
            feedback_row(None, "dave"),
        ]
        page = _loaded(feedback_document(rows=rows))

        percent = await FeedbackAnalyzer(FakePageSource()).duplicate_feedback_percentage(page)

        self.assertEqual(percent, 25)

    async def test_no_rows_after_decoy_gives_zero(self):
        source = FakePageSource()
        analyzer = FeedbackAnalyzer(source)
        self.assertEqual(await analyzer.duplicate_feedback_percentage(_loaded(feedback_document())), 0)
        only_decoy = feedback_document(rows=[feedback_row(COMMENT, "decoy")])
        self.assertEqual(await analyzer.duplicate_feedback_percentage(_loaded(only_decoy)), 0)

    async def test_analyze_reads_summary_labels(self):
        page = _loaded(feedback_document(
            count="1,532",
            positive="Positive Feedback (last 12 months): 99.4%",
            rows=[feedback_row(COMMENT, "decoy"), feedback_row(COMMENT, "alice")],
        ))

        summary = await FeedbackAnalyzer(FakePageSource()).analyze(page)

        self.assertEqual(summary, FeedbackSummary(1532, 99.4, 0.0))

    async def test_missing_labels_default_to_zero(self):
        summary = await FeedbackAnalyzer(FakePageSource()).analyze(_loaded(feedback_document()))
        self.assertEqual(summary, FeedbackSummary(0, 0.0, 0.0))

    async def test_malformed_count_raises(self):
        page = _loaded(feedback_document(count="lots"))
        with self.assertRaises(ParseError):
            await FeedbackAnalyzer(FakePageSource()).feedback_count(page)

    async def test_expands_page_size_after_removing_survey(self):
        document = feedback_document(page_size_buttons=4, survey=True)
        buttons = document.children[".itemsPerPage button"]
        survey = document.children["#seekSurvey"][0]

        await FeedbackAnalyzer(FakePageSource()).expand_page_size(_loaded(document))

        self.assertTrue(survey.removed)
        self.assertEqual([b.clicks for b in buttons], [0, 0, 0, 1])

    async def test_rows_are_read_after_expanded_list_settles(self):
        decoy = feedback_row(COMMENT, "decoy")
        document = feedback_document(rows=[decoy, feedback_row(COMMENT, "alice")], page_size_buttons=4)
        expanded = [decoy, feedback_row(COMMENT, "alice"), feedback_row(COMMENT, "bob")]

        def show_all_rows():
            document.children["#feedback-cards tr"] = expanded

        document.children[".itemsPerPage button"][-1].on_click = show_all_rows
        source = FakePageSource()

        summary = await FeedbackAnalyzer(source).analyze(_loaded(document))

        self.assertEqual(source.actions, ["click", "settle"])
        self.assertEqual(summary.duplicate_feedback_percentage, 50)

    async def test_failing_row_cancels_the_other_rows(self):
        source = FakePageSource()
        original_read = source.read_text
        finished = []

        async def read_text(element):
            if element.text == "broken":
                raise RuntimeError("Execution context was destroyed")
            await asyncio.sleep(0.01)
            finished.append(element.text)
            return await original_read(element)

        source.read_text = read_text
        rows = [feedback_row(COMMENT, "decoy"), feedback_row("broken", "x")]
        rows += [feedback_row(f"{COMMENT} #{i}", f"reviewer-{i}") for i in range(5)]

        with self.assertRaises(RuntimeError):
            await FeedbackAnalyzer(source).duplicate_feedback_percentage(_loaded(feedback_document(rows=rows)))
        await asyncio.sleep(0.05)

        self.assertEqual(finished, [])

    async def test_concurrent_rows_do_not_lose_updates(self):
        source = FakePageSource()
        original_read = source.read_text

        async def slow_read(element):
            # interleave the row tasks
            await asyncio.sleep(0)
            return await original_read(element)

        source.read_text = slow_read
        rows = [feedback_row(COMMENT, "decoy")]
        for i in range(20):
            rows.append(feedback_row(f"{COMMENT} #{i // 2}", f"reviewer-{i}"))
        page = _loaded(feedback_document(rows=rows))

        percent = await FeedbackAnalyzer(source).duplicate_feedback_percentage(page)

        self.assertEqual(percent, 50)
