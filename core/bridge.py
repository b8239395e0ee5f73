"""
Bridge text: the plain-text weekly summary copied into an external chat tool.

The layout is consumed by people and by anything pasting it around, so line
order, punctuation, and placeholder wording must stay exactly as built here.
"""
from typing import Iterable, List

from core.models import PromptAnswer, SectorContract, WeeklyEntryMap
from core.scoring import NO_INTENTION_TEXT

HIGHLIGHT_PROMPT_COUNT = 2
NO_NOTES_TEXT = "No key notes captured yet."
CLOSING_INSTRUCTION = (
    "Challenge my self-assessment, surface blind spots, and help prioritize the next week."
)


def _format_number(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _answer_text(value: PromptAnswer) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return ", ".join(str(v) for v in value).strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return _format_number(value)
    return str(value).strip()


def visible_contracts(
    contracts: Iterable[SectorContract],
    include_sensitive: bool,
) -> List[SectorContract]:
    return [
        c for c in contracts
        if c.active and (include_sensitive or not c.sensitive)
    ]


def build_bridge_text(
    week_label: str,
    contracts: Iterable[SectorContract],
    entries: WeeklyEntryMap,
    include_sensitive: bool = False,
) -> str:
    visible = visible_contracts(contracts, include_sensitive)

    lines = [f"--- WEEKLY REVIEW: {week_label} ---", "", "SECTOR SCORES:"]
    for contract in visible:
        entry = entries.get(contract.id)
        rating = entry.rating if entry is not None else None
        if isinstance(rating, (int, float)) and not isinstance(rating, bool):
            rating_text = f"{_format_number(rating)}/10"
        else:
            rating_text = "Unrated"
        lines.append(f"- {contract.name}: {rating_text}")

    lines.extend(["", "SECTOR NOTES:"])
    for contract in visible:
        entry = entries.get(contract.id)
        answers = entry.prompt_answers if entry is not None else {}
        highlights = [
            text for text in (
                _answer_text(answers.get(prompt.id))
                for prompt in contract.prompts[:HIGHLIGHT_PROMPT_COUNT]
            )
            if text
        ]
        intention = (entry.intention or "").strip() if entry is not None else ""

        lines.append(f"- {contract.name}:")
        lines.append(f"  {' | '.join(highlights)}" if highlights else f"  {NO_NOTES_TEXT}")
        lines.append(f"  Intention: {intention or NO_INTENTION_TEXT}")

    lines.extend(["", "---", CLOSING_INSTRUCTION])
    return "\n".join(lines)
