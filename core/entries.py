"""
Weekly entry map maintenance.

All functions return a new WeeklyEntryMap and leave their input untouched.
Answers are validated against the owning contract's prompt kind at write time:

- text      -> str
- number    -> int / float (bool rejected)
- checklist -> list of option ids declared on the prompt
"""
import copy
from typing import Any, Iterable, Optional, Tuple

from core.exceptions import ValidationFailure
from core.models import (
    PromptAnswer,
    PromptDefinition,
    PromptKind,
    SectorContract,
    WeeklyEntryMap,
    WeeklySectorEntry,
)

MIN_RATING = 0
MAX_RATING = 10


def empty_entry(sector_id: str) -> WeeklySectorEntry:
    return WeeklySectorEntry(sector_id=sector_id)


def create_entry_map(contracts: Iterable[SectorContract]) -> WeeklyEntryMap:
    """Fresh entry map with every prompt pre-filled with its empty answer."""
    return {
        contract.id: WeeklySectorEntry(
            sector_id=contract.id,
            prompt_answers={p.id: p.empty_answer() for p in contract.prompts},
        )
        for contract in contracts
    }


def sync_entries_with_contracts(
    entries: WeeklyEntryMap,
    contracts: Iterable[SectorContract],
) -> WeeklyEntryMap:
    """
    补齐 entry 与 prompt key，保证每个 contract 的每个 prompt 都有答案槽位。

    已不在 contracts 里的旧 entry 原样保留（sector 可能只是暂时停用）。
    幂等：sync(sync(e, c), c) == sync(e, c)。
    """
    synced = copy.deepcopy(entries)
    for contract in contracts:
        entry = synced.get(contract.id)
        if entry is None:
            entry = empty_entry(contract.id)
            synced[contract.id] = entry
        for prompt in contract.prompts:
            if prompt.id not in entry.prompt_answers:
                entry.prompt_answers[prompt.id] = prompt.empty_answer()
    return synced


def validate_answer(prompt: PromptDefinition, value: PromptAnswer) -> PromptAnswer:
    """Check value against the prompt kind and return the normalized answer."""
    if prompt.type == PromptKind.TEXT:
        if not isinstance(value, str):
            raise ValidationFailure(f"Prompt '{prompt.id}' expects text", field=prompt.id)
        return value

    if prompt.type == PromptKind.NUMBER:
        # 允许空字符串表示"未填写"
        if value == "":
            return value
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationFailure(f"Prompt '{prompt.id}' expects a number", field=prompt.id)
        return value

    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationFailure(
            f"Prompt '{prompt.id}' expects a list of option ids", field=prompt.id
        )
    allowed = set(prompt.option_ids())
    unknown = [v for v in value if v not in allowed]
    if unknown:
        raise ValidationFailure(
            f"Unknown option(s) for prompt '{prompt.id}': {', '.join(unknown)}",
            field=prompt.id,
        )
    # 去重但保持用户选择顺序
    return list(dict.fromkeys(value))


def _with_entry(entries: WeeklyEntryMap, sector_id: str) -> Tuple[WeeklyEntryMap, WeeklySectorEntry]:
    updated = copy.deepcopy(entries)
    entry = updated.get(sector_id)
    if entry is None:
        entry = empty_entry(sector_id)
        updated[sector_id] = entry
    return updated, entry


def set_prompt_answer(
    entries: WeeklyEntryMap,
    contract: SectorContract,
    prompt_id: str,
    value: PromptAnswer,
) -> WeeklyEntryMap:
    prompt = contract.find_prompt(prompt_id)
    if prompt is None:
        raise ValidationFailure(
            f"Sector '{contract.id}' has no prompt '{prompt_id}'", field=prompt_id
        )
    normalized = validate_answer(prompt, value)
    updated, entry = _with_entry(entries, contract.id)
    entry.prompt_answers[prompt_id] = normalized
    return updated


def validate_rating(rating: Any, sector_id: Optional[str] = None) -> Optional[float]:
    """None (unrated) or a number in [0, 10]; bool is rejected."""
    if rating is None:
        return None
    where = f" for sector '{sector_id}'" if sector_id else ""
    if isinstance(rating, bool) or not isinstance(rating, (int, float)):
        raise ValidationFailure(f"Rating{where} must be a number", field="rating")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationFailure(
            f"Rating{where} must be between {MIN_RATING} and {MAX_RATING}", field="rating"
        )
    return rating


def validate_entry_ratings(entries: WeeklyEntryMap) -> WeeklyEntryMap:
    for sector_id, entry in entries.items():
        validate_rating(entry.rating, sector_id)
    return entries


def set_rating(entries: WeeklyEntryMap, sector_id: str, rating: Optional[float]) -> WeeklyEntryMap:
    rating = validate_rating(rating)
    updated, entry = _with_entry(entries, sector_id)
    entry.rating = rating
    return updated


def set_intention(entries: WeeklyEntryMap, sector_id: str, intention: str) -> WeeklyEntryMap:
    updated, entry = _with_entry(entries, sector_id)
    entry.intention = intention
    return updated


def set_what_makes_ten(entries: WeeklyEntryMap, sector_id: str, note: str) -> WeeklyEntryMap:
    updated, entry = _with_entry(entries, sector_id)
    entry.what_makes_ten = note
    return updated
