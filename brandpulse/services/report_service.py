"""Report renderers over a finished AnalysisResult.

All functions are pure: same result in, same document out.
"""

from __future__ import annotations

import csv
import io
import json
from typing import Any

from brandpulse.analysis.types import AnalysisResult, BrandMention, BrandSummary

PRIORITY_TRUST_SCORE = 0.9
DEFAULT_TRUST_SCORE = 0.6

CSV_COLUMNS = [
    "analysis_id",
    "question_id",
    "category",
    "question",
    "brand",
    "mentioned",
    "frequency",
    "context",
    "question_sentiment",
    "confidence",
    "evidence",
]


def relevance_score(frequency: int) -> float:
    return min(frequency / 10, 1.0)


def _pct(value: float) -> str:
    return f"{value * 100:.1f}%"


# ---------------------------------------------------------------------------
# Markdown
# ---------------------------------------------------------------------------


def _brand_table(mentions: list[BrandMention]) -> list[str]:
    if not mentions:
        return ["_No mentions._", ""]
    lines = ["| Brand | Mentioned | Frequency | Context |", "|---|---|---|---|"]
    for m in sorted(mentions, key=lambda m: m.frequency, reverse=True):
        lines.append(f"| {m.brand} | {'yes' if m.mentioned else 'no'} | {m.frequency} | {m.context.value} |")
    lines.append("")
    return lines


def _summary_section(title: str, summary: BrandSummary) -> list[str]:
    return [
        f"### {title}",
        "",
        "**Target brands**",
        "",
        *_brand_table(summary.target_brands),
        "**Competitors**",
        "",
        *_brand_table(summary.competitors),
    ]


def generate_markdown_report(result: AnalysisResult, title: str | None = None) -> str:
    questions_ok = sum(1 for q in result.questions if not q.is_error)
    target_mentions = sum(m.frequency for m in result.brand_summary.target_brands)
    competitor_mentions = sum(m.frequency for m in result.brand_summary.competitors)

    lines = [
        f"# {title or 'Brand Visibility Report'}",
        "",
        f"- **Analysis ID:** {result.analysis_id}",
        f"- **Date:** {result.timestamp.strftime('%Y-%m-%d %H:%M UTC')}",
        f"- **Status:** {result.status.value}",
        f"- **Categories:** {', '.join(result.categories) or '-'}",
        "",
        "## Executive summary",
        "",
        f"- Questions analyzed: {questions_ok}/{len(result.questions)}",
        f"- Overall confidence: {_pct(result.overall_confidence)}",
        f"- Sources: {result.total_sources} ({result.priority_sources} priority)",
        f"- Target brand mentions: {target_mentions}",
        f"- Competitor mentions: {competitor_mentions}",
        "",
        "## Brand summary",
        "",
        *_summary_section("All questions", result.brand_summary),
    ]

    if result.brand_summary_by_type is not None:
        lines += _summary_section("Generic questions", result.brand_summary_by_type.generic)
        lines += _summary_section("Brand-specific questions", result.brand_summary_by_type.specific)

    lines += ["## Questions", ""]
    for q in result.questions:
        lines += [
            f"### {q.question_id}: {q.question}",
            "",
            f"- Category: {q.category}",
            f"- Sentiment: {q.sentiment.value}",
            f"- Confidence: {_pct(q.confidence_score)}",
            "",
            q.summary,
            "",
        ]
        for m in q.brand_mentions:
            if not m.mentioned:
                continue
            lines.append(f"- **{m.brand}** ({m.frequency}x, {m.context.value})")
            for quote in m.evidence[:3]:
                lines.append(f"  > {quote}")
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


def _brand_entries(mentions: list[BrandMention]) -> list[dict[str, Any]]:
    return [
        {
            "brand": m.brand,
            "mentioned": m.mentioned,
            "frequency": m.frequency,
            "context": m.context.value,
            "relevanceScore": relevance_score(m.frequency),
            "evidence": list(m.evidence),
        }
        for m in mentions
    ]


def generate_json_report(result: AnalysisResult) -> str:
    report = {
        "metadata": {
            "analysisId": result.analysis_id,
            "generatedAt": result.timestamp.isoformat(),
            "status": result.status.value,
            "categories": list(result.categories),
            "totalQuestions": len(result.questions),
            "failedQuestions": sum(1 for q in result.questions if q.is_error),
            "overallConfidence": result.overall_confidence,
            "totalSources": result.total_sources,
            "prioritySources": result.priority_sources,
        },
        "brandSummary": {
            "targetBrands": _brand_entries(result.brand_summary.target_brands),
            "competitors": _brand_entries(result.brand_summary.competitors),
        },
        "questions": [
            {
                "questionId": q.question_id,
                "question": q.question,
                "category": q.category,
                "summary": q.summary,
                "sentiment": q.sentiment.value,
                "confidenceScore": q.confidence_score,
                "brandMentions": _brand_entries(q.brand_mentions),
                "sources": [
                    {
                        "url": s.url,
                        "title": s.title,
                        "domain": s.domain,
                        "isPriority": s.is_priority,
                        "trustScore": PRIORITY_TRUST_SCORE if s.is_priority else DEFAULT_TRUST_SCORE,
                    }
                    for s in q.sources
                ],
            }
            for q in result.questions
        ],
    }
    if result.brand_summary_by_type is not None:
        report["brandSummaryByType"] = result.brand_summary_by_type.to_dict()
    return json.dumps(report, ensure_ascii=False, indent=2)


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------


def generate_csv_report(result: AnalysisResult) -> str:
    """One row per (question, brand mention). Questions without mentions get one empty row."""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(CSV_COLUMNS)

    for q in result.questions:
        base = [result.analysis_id, q.question_id, q.category, q.question]
        tail = [q.sentiment.value, f"{q.confidence_score:.2f}"]
        if not q.brand_mentions:
            writer.writerow(base + ["", "", "", ""] + tail + [""])
            continue
        for m in q.brand_mentions:
            writer.writerow(
                base
                + [m.brand, "yes" if m.mentioned else "no", m.frequency, m.context.value]
                + tail
                + [" | ".join(m.evidence)]
            )

    return output.getvalue()
