"""Tests for brand mention consolidation."""

from brandpulse.analysis.consolidator import (
    consolidate,
    consolidate_by_question_type,
    is_brand_specific,
    merge_mentions,
    split_by_question_type,
)
from brandpulse.analysis.types import BrandMention, QuestionAnalysis, Sentiment


def _analysis(qid: str, question: str, mentions: list[BrandMention]) -> QuestionAnalysis:
    return QuestionAnalysis(
        question_id=qid,
        question=question,
        category="home",
        summary="s",
        brand_mentions=mentions,
        sentiment=Sentiment.NEUTRAL,
        confidence_score=0.8,
    )


class TestMergeMentions:
    def test_frequencies_add_and_evidence_appends(self):
        first = BrandMention("Occident", True, 3, Sentiment.POSITIVE, ["a"])
        second = BrandMention("Occident", True, 2, Sentiment.NEGATIVE, ["b", "c"])

        merged = merge_mentions([first, second])["Occident"]

        assert merged.frequency == 5
        assert merged.evidence == ["a", "b", "c"]
        # First-seen context wins
        assert merged.context == Sentiment.POSITIVE

    def test_mentioned_is_ored(self):
        merged = merge_mentions(
            [BrandMention("AXA", False, 0), BrandMention("AXA", True, 1)]
        )["AXA"]
        assert merged.mentioned is True

    def test_inputs_not_mutated(self):
        first = BrandMention("Occident", True, 3, evidence=["a"])
        second = BrandMention("Occident", True, 2, evidence=["b"])

        merge_mentions([first, second])

        assert first.frequency == 3
        assert first.evidence == ["a"]
        assert second.evidence == ["b"]

    def test_custom_key(self):
        merged = merge_mentions(
            [BrandMention("Mapfre", True, 1), BrandMention("MAPFRE", True, 2)],
            key=lambda m: m.brand.lower(),
        )
        assert list(merged) == ["mapfre"]
        assert merged["mapfre"].frequency == 3
        assert merged["mapfre"].brand == "Mapfre"


class TestConsolidate:
    def test_split_into_targets_and_competitors(self, run_config):
        analyses = [
            _analysis("q1", "Best insurer?", [BrandMention("Occident", True, 3, evidence=["o1"])]),
            _analysis(
                "q2",
                "Cheapest insurer?",
                [
                    BrandMention("Occident", True, 2, evidence=["o2"]),
                    BrandMention("Mapfre", True, 1),
                    BrandMention("Unknown Co", True, 4),
                ],
            ),
        ]

        summary = consolidate(analyses, run_config)

        assert [m.brand for m in summary.target_brands] == ["Occident"]
        assert summary.target_brands[0].frequency == 5
        assert summary.target_brands[0].evidence == ["o1", "o2"]
        assert [m.brand for m in summary.competitors] == ["Mapfre"]

    def test_empty(self, run_config):
        summary = consolidate([], run_config)
        assert summary.target_brands == []
        assert summary.competitors == []

    def test_unmentioned_brand_still_listed(self, run_config):
        summary = consolidate([_analysis("q1", "Q", [BrandMention("AXA", False, 0)])], run_config)
        assert summary.competitors[0].mentioned is False


class TestQuestionType:
    def test_brand_specific_is_case_insensitive(self, run_config):
        assert is_brand_specific("is OCCIDENT reliable?", run_config)
        assert is_brand_specific("mapfre vs others", run_config)
        assert not is_brand_specific("best home insurance?", run_config)

    def test_partition_is_disjoint_and_complete(self, run_config, questions):
        analyses = [_analysis(q.id, q.text, []) for q in questions]

        generic, specific = split_by_question_type(analyses, run_config)

        assert [a.question_id for a in specific] == ["q2", "q4"]
        assert [a.question_id for a in generic] == ["q1", "q3", "q5"]
        assert {a.question_id for a in generic}.isdisjoint({a.question_id for a in specific})

    def test_by_type_summaries(self, run_config):
        analyses = [
            _analysis("q1", "Best home insurance?", [BrandMention("Occident", True, 1)]),
            _analysis("q2", "Is Occident good?", [BrandMention("Occident", True, 4)]),
        ]

        by_type = consolidate_by_question_type(analyses, run_config)

        assert by_type.all.target_brands[0].frequency == 5
        assert by_type.generic.target_brands[0].frequency == 1
        assert by_type.specific.target_brands[0].frequency == 4
