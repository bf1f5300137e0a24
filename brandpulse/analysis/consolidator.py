"""Brand mention consolidation across questions.

Mentions are merged by brand name: frequencies add up, evidence is
appended in encounter order and ``mentioned`` is OR-ed. Inputs are never
mutated; accumulators start from copies.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence

from brandpulse.analysis.types import (
    BrandMention,
    BrandSummary,
    BrandSummaryByType,
    QuestionAnalysis,
    RunConfiguration,
)


def merge_mentions(
    mentions: Iterable[BrandMention],
    key: Callable[[BrandMention], str] = lambda m: m.brand,
) -> dict[str, BrandMention]:
    """Accumulate mentions by ``key``. Result keeps first-seen order and fields."""
    merged: dict[str, BrandMention] = {}
    for mention in mentions:
        k = key(mention)
        existing = merged.get(k)
        if existing is None:
            merged[k] = mention.copy()
            continue
        existing.frequency += mention.frequency
        existing.evidence.extend(mention.evidence)
        existing.mentioned = existing.mentioned or mention.mentioned
    return merged


def consolidate(analyses: Sequence[QuestionAnalysis], config: RunConfiguration) -> BrandSummary:
    """Merge mentions of all analyses and split them into targets and competitors.

    Brands on neither configured list are left out of the summary.
    """
    merged = merge_mentions(m for analysis in analyses for m in analysis.brand_mentions)

    targets = set(config.target_brands)
    competitors = set(config.competitor_brands)
    summary = BrandSummary()
    for brand, mention in merged.items():
        if brand in targets:
            summary.target_brands.append(mention)
        elif brand in competitors:
            summary.competitors.append(mention)
    return summary


def is_brand_specific(question_text: str, config: RunConfiguration) -> bool:
    text = question_text.lower()
    return any(brand.lower() in text for brand in config.all_brands)


def split_by_question_type(
    analyses: Sequence[QuestionAnalysis], config: RunConfiguration
) -> tuple[list[QuestionAnalysis], list[QuestionAnalysis]]:
    """Return (generic, specific). Specific questions name a configured brand."""
    generic: list[QuestionAnalysis] = []
    specific: list[QuestionAnalysis] = []
    for analysis in analyses:
        (specific if is_brand_specific(analysis.question, config) else generic).append(analysis)
    return generic, specific


def consolidate_by_question_type(
    analyses: Sequence[QuestionAnalysis], config: RunConfiguration
) -> BrandSummaryByType:
    generic, specific = split_by_question_type(analyses, config)
    return BrandSummaryByType(
        all=consolidate(analyses, config),
        generic=consolidate(generic, config),
        specific=consolidate(specific, config),
    )
