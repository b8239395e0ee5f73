import pytest

from core.entries import (
    create_entry_map,
    set_intention,
    set_prompt_answer,
    set_rating,
    set_what_makes_ten,
    sync_entries_with_contracts,
    validate_answer,
    validate_entry_ratings,
    validate_rating,
)
from core.exceptions import ValidationFailure
from core.models import (
    PromptDefinition,
    PromptKind,
    PromptOption,
    SectorContract,
    WeeklySectorEntry,
)


def _contract() -> SectorContract:
    return SectorContract(
        id="gym",
        name="Gym",
        active=True,
        prompts=[
            PromptDefinition(id="gym-p1", label="Sessions", type=PromptKind.TEXT),
            PromptDefinition(id="gym-p2", label="Bodyweight", type=PromptKind.NUMBER),
            PromptDefinition(
                id="gym-p3",
                label="Habits",
                type=PromptKind.CHECKLIST,
                options=[PromptOption(id="stretch", label="Stretch"), PromptOption(id="sauna", label="Sauna")],
            ),
        ],
    )


def test_create_entry_map_prefills_empty_answers():
    entries = create_entry_map([_contract()])
    assert entries["gym"].prompt_answers == {"gym-p1": "", "gym-p2": "", "gym-p3": []}
    assert entries["gym"].rating is None


def test_sync_adds_missing_entries_and_keys_without_mutating_input():
    contract = _contract()
    entries = {"gym": WeeklySectorEntry(sector_id="gym", prompt_answers={"gym-p1": "3x"}, rating=7)}

    synced = sync_entries_with_contracts(entries, [contract])

    assert synced["gym"].prompt_answers == {"gym-p1": "3x", "gym-p2": "", "gym-p3": []}
    assert synced["gym"].rating == 7
    assert entries["gym"].prompt_answers == {"gym-p1": "3x"}


def test_sync_is_idempotent():
    contract = _contract()
    once = sync_entries_with_contracts({}, [contract])
    twice = sync_entries_with_contracts(once, [contract])
    assert once == twice


def test_sync_keeps_entries_for_removed_sectors():
    stale = {"old": WeeklySectorEntry(sector_id="old", intention="keep me")}
    synced = sync_entries_with_contracts(stale, [_contract()])
    assert synced["old"].intention == "keep me"
    assert set(synced) == {"old", "gym"}


def test_validate_answer_by_kind():
    contract = _contract()
    text, number, checklist = contract.prompts

    assert validate_answer(text, "fine") == "fine"
    assert validate_answer(number, 81.5) == 81.5
    assert validate_answer(number, "") == ""
    assert validate_answer(checklist, ["sauna", "stretch", "sauna"]) == ["sauna", "stretch"]

    with pytest.raises(ValidationFailure):
        validate_answer(text, 3)
    with pytest.raises(ValidationFailure):
        validate_answer(number, True)
    with pytest.raises(ValidationFailure):
        validate_answer(number, "80")
    with pytest.raises(ValidationFailure) as exc:
        validate_answer(checklist, ["sauna", "ice"])
    assert "ice" in exc.value.message


def test_set_prompt_answer_returns_new_map():
    contract = _contract()
    entries = create_entry_map([contract])

    updated = set_prompt_answer(entries, contract, "gym-p3", ["stretch"])

    assert updated["gym"].prompt_answers["gym-p3"] == ["stretch"]
    assert entries["gym"].prompt_answers["gym-p3"] == []


def test_set_prompt_answer_unknown_prompt():
    with pytest.raises(ValidationFailure) as exc:
        set_prompt_answer({}, _contract(), "gym-p9", "x")
    assert exc.value.status_code == 400


def test_set_rating_bounds():
    entries = set_rating({}, "gym", 10)
    assert entries["gym"].rating == 10
    assert set_rating(entries, "gym", None)["gym"].rating is None

    with pytest.raises(ValidationFailure):
        set_rating({}, "gym", 11)
    with pytest.raises(ValidationFailure):
        set_rating({}, "gym", -1)


def test_text_setters():
    entries = set_intention({}, "gym", "hit 4 sessions")
    entries = set_what_makes_ten(entries, "gym", "sleep 8h")
    assert entries["gym"].intention == "hit 4 sessions"
    assert entries["gym"].what_makes_ten == "sleep 8h"


def test_validate_rating_types():
    assert validate_rating(None) is None
    assert validate_rating(7.5) == 7.5
    assert validate_rating(0) == 0

    with pytest.raises(ValidationFailure) as exc:
        validate_rating(True, "gym")
    assert exc.value.message == "Rating for sector 'gym' must be a number"
    with pytest.raises(ValidationFailure) as exc:
        validate_rating("8")
    assert exc.value.message == "Rating must be a number"
    with pytest.raises(ValidationFailure):
        set_rating({}, "gym", "8")


def test_validate_entry_ratings_names_sector():
    entries = {
        "gym": WeeklySectorEntry(sector_id="gym", rating=8),
        "work": WeeklySectorEntry(sector_id="work", rating=11),
    }
    with pytest.raises(ValidationFailure) as exc:
        validate_entry_ratings(entries)
    assert exc.value.message == "Rating for sector 'work' must be between 0 and 10"
