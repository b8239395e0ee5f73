from core.models import PresetPack, SectorPriority
from core.presets import (
    build_custom_sector_contract,
    find_preset_pack,
    make_contract,
    merge_preset_pack,
    preset_packs,
    slug,
    starter_sector_contracts,
)


def test_slug():
    assert slug("Gym & Fitness") == "gym-fitness"
    assert slug("  YouTube – Business & Content ") == "youtube-business-content"
    assert slug("Recovery & Optimisation", max_length=8) == "recovery"


def test_make_contract_prompt_ids():
    contract = make_contract(
        name="Deep Work",
        icon="🧱",
        intent="Protect focus blocks.",
        signals=["Blocks"],
        anti_patterns=["Meetings"],
        prompts=["Blocks completed", "Biggest distraction"],
        advanced_prompts=["What would have made it a 10?"],
    )

    assert contract.id == "deep-work"
    assert [p.id for p in contract.prompts] == ["deep-work-p1", "deep-work-p2", "deep-work-a1"]
    assert contract.prompts[2].advanced is True
    assert contract.prompts[0].placeholder == "Write a concise reflection..."
    assert contract.active is False


def test_custom_sector_is_active():
    contract = build_custom_sector_contract(
        name="Chess",
        icon="♟️",
        intent="Study openings",
        priority=SectorPriority.LOW,
        sensitive=False,
        signals=[],
        anti_patterns=[],
        prompts=["Games played"],
    )
    assert contract.active is True
    assert contract.priority == SectorPriority.LOW


def test_starter_sectors_are_active_and_unique():
    starters = starter_sector_contracts()
    assert [c.name for c in starters] == [
        "University",
        "Gym & Fitness",
        "Work",
        "Recovery & Optimisation",
        "Mindset & Focus",
    ]
    assert all(c.active for c in starters)
    assert len({c.id for c in starters}) == len(starters)


def test_preset_packs_are_inactive_and_romance_sensitive():
    life_map = find_preset_pack("life-map")
    assert life_map is not None
    assert not any(c.active for c in life_map.sectors)
    romance = next(c for c in life_map.sectors if c.name == "Romance")
    assert romance.sensitive is True
    assert find_preset_pack("nope") is None
    assert [p.id for p in preset_packs()] == ["life-map", "compact"]


def test_merge_preset_pack_keeps_existing_sectors():
    current = starter_sector_contracts()
    duplicate = make_contract("Work", "🧰", "", [], [], ["Other prompt"])
    extra = make_contract("Chess", "♟️", "", [], [], ["Games"])
    pack = PresetPack(id="p", name="P", description="", sectors=[duplicate, extra])

    merged = merge_preset_pack(current, pack)

    assert len(merged) == len(current) + 1
    work = next(c for c in merged if c.id == "work")
    assert work.icon == "💼"
    assert merged[-1].id == "chess"
    assert len(current) == 5
