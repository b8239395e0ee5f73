import asyncio
import json

from core.exceptions import UpstreamError
from core.llm_adapter import BaseLLMAdapter, LLMResponse
from core.models import SectorPriority
from core.onboarding import (
    CandidateSector,
    SurveyAnswers,
    apply_active_cap,
    candidates_from_names,
    dedupe_candidates,
    extract_sector_names,
    finalize_candidates,
    generate_candidates,
    parse_model_candidates,
    seed_from_survey,
    toggle_candidate,
)


class FakeAdapter(BaseLLMAdapter):
    def __init__(self, content: str = "", error: Exception = None):
        super().__init__("fake-model")
        self.content = content
        self.error = error
        self.calls = []

    async def generate(self, model_input, temperature=None):
        self.calls.append((model_input, temperature))
        if self.error is not None:
            raise self.error
        return LLMResponse(content=self.content, model=self.model_name)


def _all_yes() -> SurveyAnswers:
    return SurveyAnswers(
        student=True,
        employed=True,
        creator=True,
        training=True,
        combat=True,
        music=True,
        social_leadership=True,
        romance_focus=True,
    )


def test_seed_from_survey_adds_baseline_sectors():
    seeded = seed_from_survey(SurveyAnswers(student=True, training=True))

    assert [c.name for c in seeded] == [
        "University",
        "Gym & Fitness",
        "Recovery & Optimisation",
        "Mindset & Focus",
    ]
    assert seeded[0].id == "university-0"
    assert seeded[1].id == "gym-fitness-1"
    assert seeded[0].priority == SectorPriority.HIGH
    assert all(c.active for c in seeded)


def test_seed_romance_is_sensitive():
    seeded = seed_from_survey(SurveyAnswers(romance_focus=True))
    romance = next(c for c in seeded if c.name == "Romance")
    assert romance.sensitive is True


def test_extract_sector_names_from_delimited_text():
    assert extract_sector_names("Music, Deep Work, Dating life") == ["Music", "Deep Work", "Dating life"]


def test_extract_sector_names_skips_review_words_and_finds_called():
    names = extract_sector_names("Week 7. Overall good. I run a band called The Lows, Guitar practice")

    assert "Week 7" not in names
    assert "Overall good" not in names
    assert names[0] == "The Lows"
    assert "Guitar practice" in names


def test_extract_sector_names_respects_limit():
    text = ", ".join(f"Sector {chr(ord('A') + i)}" for i in range(12))
    assert len(extract_sector_names(text)) == 8
    assert len(extract_sector_names(text, limit=3)) == 3


def test_candidates_from_names_flags_sensitive_terms():
    candidates = candidates_from_names(["Music", "Dating life"])
    assert [c.id for c in candidates] == ["music-0", "dating-life-1"]
    assert [c.sensitive for c in candidates] == [False, True]
    assert candidates[0].intent == "Measure weekly execution and growth in Music."


def test_dedupe_is_case_insensitive_and_drops_blank():
    candidates = [
        CandidateSector(id="a", name="Music"),
        CandidateSector(id="b", name=" music "),
        CandidateSector(id="c", name="  "),
        CandidateSector(id="d", name="Work"),
    ]
    assert [c.id for c in dedupe_candidates(candidates)] == ["a", "d"]


def test_parse_model_candidates_tolerates_noise():
    content = 'Here you go:\n```json\n[{"name": "Chess", "icon": "♟️", "priority": "high"}, ' \
              '{"name": ""}, "junk", {"name": "Sauna", "priority": "urgent", "sensitive": false}]\n```'

    parsed = parse_model_candidates(content)

    assert [c.name for c in parsed] == ["Chess", "Sauna"]
    assert parsed[0].priority == SectorPriority.HIGH
    assert parsed[1].priority == SectorPriority.NORMAL
    assert parsed[1].icon == "✨"
    assert parse_model_candidates("no list here") == []


def test_generate_candidates_merges_model_output():
    adapter = FakeAdapter(json.dumps([{"name": "Chess", "intent": "Study openings"}]))

    candidates = asyncio.run(generate_candidates(
        SurveyAnswers(employed=True),
        freeform="I also want to track chess and reading",
        adapter=adapter,
    ))

    names = [c.name for c in candidates]
    assert names[0] == "Work"
    assert "Chess" in names
    assert len(adapter.calls) == 1
    assert adapter.calls[0][1] == 0.2


def test_generate_candidates_skips_model_for_short_text():
    adapter = FakeAdapter("[]")
    asyncio.run(generate_candidates(SurveyAnswers(), freeform="Chess", adapter=adapter))
    assert adapter.calls == []


def test_generate_candidates_survives_model_failure():
    adapter = FakeAdapter(error=UpstreamError("boom", provider="openai"))

    candidates = asyncio.run(generate_candidates(
        SurveyAnswers(music=True),
        freeform="Guitar practice, Songwriting sessions",
        adapter=adapter,
    ))

    names = [c.name for c in candidates]
    assert "Music (Band + Solo)" in names
    assert "Guitar practice" in names


def test_generate_candidates_caps_active():
    candidates = asyncio.run(generate_candidates(_all_yes(), use_model=False))

    assert len(candidates) == 10
    assert [c.active for c in candidates] == [True] * 7 + [False] * 3


def test_toggle_respects_cap():
    candidates = apply_active_cap(seed_from_survey(_all_yes()))
    inactive_id = candidates[-1].id

    assert toggle_candidate(candidates, inactive_id) == candidates

    freed = toggle_candidate(candidates, candidates[0].id)
    assert freed[0].active is False
    activated = toggle_candidate(freed, inactive_id)
    assert activated[-1].active is True
    assert sum(c.active for c in activated) == 7


def test_toggle_unknown_id_is_noop():
    candidates = seed_from_survey(SurveyAnswers())
    assert toggle_candidate(candidates, "missing") == candidates


def test_finalize_builds_contracts_and_demotes_overflow():
    candidates = [CandidateSector(id=f"c{i}", name=f" Sector {i} ", intent="") for i in range(9)]
    candidates.append(CandidateSector(id="x", name="X"))
    candidates.append(CandidateSector(id="off", name="Reading", active=False))

    contracts = finalize_candidates(candidates)

    assert len(contracts) == 10
    assert [c.active for c in contracts] == [True] * 7 + [False] * 3
    assert contracts[0].name == "Sector 0"
    assert contracts[0].id == "sector-0"
    assert contracts[0].intent == "Measure weekly execution and growth in Sector 0."
    assert [p.id for p in contracts[0].prompts] == ["sector-0-p1", "sector-0-p2", "sector-0-p3", "sector-0-a1"]
    assert contracts[-1].name == "Reading"
