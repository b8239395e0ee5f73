"""
Sector scoring and weekly insight derivation.

- build_sector_scores: contracts + entries -> one SectorScore per active sector
- overall_score: arithmetic mean, rounding deferred to display/lock time
- build_insights: facts / patterns / open loop text over a score set
- lock_week: freeze the in-progress timeline week with the rounded overall score
"""
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional, Sequence

from core.models import (
    ReflectionInsights,
    SectorContract,
    SectorScore,
    TimelineWeek,
    WeeklyEntryMap,
)

# 未评分的 sector 显示中位数，而不是 0
DEFAULT_SCORE = 5
LOW_SCORE_THRESHOLD = 6.0
NO_INTENTION_TEXT = "No intention set yet."

EMPTY_INSIGHTS = ReflectionInsights(
    facts="No active sectors configured for this week yet.",
    patterns="Activate at least one sector to generate weekly patterns.",
    open_loop="Define your top sector and set an intention.",
)
MAINTENANCE_PATTERN = "No sectors below 6.0 this week. Maintain consistency over intensity."


def round_score(value: float) -> float:
    """One-decimal rounding, half away from zero (2.25 -> 2.3)."""
    return float(Decimal(repr(float(value))).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def format_score(value: float) -> str:
    return f"{round_score(value):.1f}"


def build_sector_scores(
    contracts: Iterable[SectorContract],
    entries: WeeklyEntryMap,
) -> List[SectorScore]:
    scores = []
    for contract in contracts:
        if not contract.active:
            continue
        entry = entries.get(contract.id)
        rating = entry.rating if entry is not None else None
        intention = (entry.intention or "").strip() if entry is not None else ""
        scores.append(
            SectorScore(
                id=contract.id,
                icon=contract.icon,
                name=contract.name,
                score=rating if rating is not None else DEFAULT_SCORE,
                rationale=f"Next week: {intention}" if intention else NO_INTENTION_TEXT,
            )
        )
    return scores


def overall_score(scores: Sequence[SectorScore]) -> float:
    if not scores:
        return 0
    return sum(s.score for s in scores) / len(scores)


def build_insights(scores: Sequence[SectorScore]) -> ReflectionInsights:
    """
    根据本周分数生成三条洞察文本。

    排序为稳定降序；最低分并列时 open loop 取排序后的最后一个，
    也就是并列者中在 contract 列表里最靠后的那个。
    """
    if not scores:
        return ReflectionInsights(
            facts=EMPTY_INSIGHTS.facts,
            patterns=EMPTY_INSIGHTS.patterns,
            open_loop=EMPTY_INSIGHTS.open_loop,
        )

    ranked = sorted(scores, key=lambda s: s.score, reverse=True)
    strongest = ranked[0]
    weakest = ranked[-1]
    avg = overall_score(scores)
    low = [s for s in scores if s.score < LOW_SCORE_THRESHOLD]

    facts = (
        f"Active sectors: {len(scores)}. Average score: {format_score(avg)}/10. "
        f"Strongest sector: {strongest.name} ({format_score(strongest.score)})."
    )
    if low:
        listed = ", ".join(f"{s.name} ({format_score(s.score)})" for s in low)
        patterns = f"Sectors under 6.0: {listed}."
    else:
        patterns = MAINTENANCE_PATTERN

    return ReflectionInsights(
        facts=facts,
        patterns=patterns,
        open_loop=f"Primary open loop: elevate {weakest.name} next week.",
    )


def _trend(current: float, previous: Optional[float]) -> str:
    if previous is None or current == previous:
        return "flat"
    return "up" if current > previous else "down"


def lock_week(
    timeline: Sequence[TimelineWeek],
    scores: Sequence[SectorScore],
    title: str = "Week locked",
) -> List[TimelineWeek]:
    """
    锁定当前周：timeline[0] 是进行中的周，写入一位小数的总分和相对上周的趋势。

    返回新列表，不修改传入的 TimelineWeek。
    """
    if not timeline:
        return []

    current = timeline[0]
    score = round_score(overall_score(scores))
    previous = next((w.score for w in timeline[1:] if w.score is not None), None)
    locked = TimelineWeek(
        week=current.week,
        title=title,
        dates=current.dates,
        score=score,
        trend=_trend(score, previous),
        in_progress=False,
    )
    return [locked, *timeline[1:]]
