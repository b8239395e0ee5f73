"""
Onboarding: turn a short survey plus optional freeform text into candidate
sectors, let the user review them, then finalize into SectorContracts.

Freeform name extraction is a regex heuristic with no grammar behind it; it
only aims to surface plausible names from clearly delimited text. An optional
model pass adds better-structured candidates when a key is configured.
"""
import json
import re
from dataclasses import asdict, dataclass, replace
from typing import Dict, List, Optional

from core.config_manager import config
from core.exceptions import ModelOutputError, UpstreamError
from core.llm_adapter import BaseLLMAdapter
from core.logger import get_logger
from core.models import SectorContract, SectorPriority
from core.presets import make_contract, slug
from core.utils import extract_json_array

logger = get_logger("onboarding")

DEFAULT_ICON = "✨"
CANDIDATE_SIGNALS = ["Consistency", "Execution quality", "Momentum"]
CANDIDATE_ANTI_PATTERNS = ["Avoidance", "No tracking"]
CANDIDATE_PROMPTS = [
    "What happened in this sector this week?",
    "What did you execute well?",
    "Where did you underperform?",
]
CANDIDATE_ADVANCED_PROMPTS = ["What would have made it a 10?"]
SLUG_MAX_LENGTH = 40

_CALLED_PATTERN = re.compile(r"(?:called|named)\s+([a-zA-Z0-9][a-zA-Z0-9\s_-]{2,32})", re.IGNORECASE)
_CHUNK_SPLIT = re.compile(r"\n|,|\.|;|\||/")
_SKIP_PREFIX = re.compile(r"^(week|rating|intention|what|focus|overall)", re.IGNORECASE)
_NAME_CHARS = re.compile(r"^[a-z0-9\s&+-]+$", re.IGNORECASE)
_SENSITIVE_HINT = re.compile(r"romance|sex|retention|dating", re.IGNORECASE)


@dataclass
class SurveyAnswers:
    """None = 未回答"""
    student: Optional[bool] = None
    employed: Optional[bool] = None
    creator: Optional[bool] = None
    training: Optional[bool] = None
    combat: Optional[bool] = None
    music: Optional[bool] = None
    social_leadership: Optional[bool] = None
    romance_focus: Optional[bool] = None


SURVEY_QUESTIONS = [
    ("student", "Are you currently a student?"),
    ("employed", "Are you actively employed or earning income?"),
    ("creator", "Are you building content, business, or a brand?"),
    ("training", "Is training/fitness a weekly priority?"),
    ("combat", "Do you practice combat sports (e.g., jiujitsu/wrestling)?"),
    ("music", "Is music a core commitment?"),
    ("social_leadership", "Do you lead groups, projects, or social dynamics?"),
    ("romance_focus", "Do you want romance tracked intentionally?"),
]


@dataclass
class CandidateSector:
    id: str
    name: str
    icon: str = DEFAULT_ICON
    intent: str = ""
    priority: SectorPriority = SectorPriority.NORMAL
    sensitive: bool = False
    active: bool = True

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["priority"] = self.priority.value
        return data


def default_intent(name: str) -> str:
    return f"Measure weekly execution and growth in {name}."


def dedupe_candidates(candidates: List[CandidateSector]) -> List[CandidateSector]:
    """Drop blank names and case-insensitive duplicates, keeping the first occurrence."""
    seen = set()
    result = []
    for candidate in candidates:
        key = candidate.name.strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        result.append(candidate)
    return result


def seed_from_survey(survey: SurveyAnswers) -> List[CandidateSector]:
    result: List[CandidateSector] = []

    def push(name, icon, intent, priority=SectorPriority.NORMAL, sensitive=False):
        result.append(CandidateSector(
            id=slug(f"{name}-{len(result)}", SLUG_MAX_LENGTH),
            name=name,
            icon=icon,
            intent=intent,
            priority=priority,
            sensitive=sensitive,
        ))

    if survey.student:
        push("University", "📚", "Track attendance, assignment progress, and learning quality.", SectorPriority.HIGH)
    if survey.employed:
        push("Work", "💼", "Track high-leverage output and income direction.", SectorPriority.HIGH)
    if survey.creator:
        push(
            "YouTube – Business & Content",
            "🎥",
            "Track publishing consistency, content quality, and momentum.",
            SectorPriority.HIGH,
        )
    if survey.training:
        push("Gym & Fitness", "💪", "Track sessions, intensity, recovery, and nutrition.", SectorPriority.HIGH)
    if survey.combat:
        push("Jiujitsu", "🥋", "Track sessions, techniques, and mat confidence progression.")
    if survey.music:
        push("Music (Band + Solo)", "🎸", "Track rehearsals, songwriting, and performance readiness.")
    if survey.social_leadership:
        push("Leadership & Adventure", "🧭", "Track initiative, influence, and challenge creation.")
    if survey.romance_focus:
        push(
            "Romance",
            "💘",
            "Track romantic interactions with standards, integrity, and emotional control.",
            sensitive=True,
        )

    # 所有人都有的基础 sector
    push("Recovery & Optimisation", "🛌", "Track sleep, recovery protocol, and daytime energy.")
    push("Mindset & Focus", "🧠", "Track attention discipline and internal alignment.")

    return dedupe_candidates(result)


def extract_sector_names(text: str, limit: Optional[int] = None) -> List[str]:
    """
    Heuristic: names after "called"/"named", plus short delimited chunks that
    look like titles. Order of first appearance is kept.
    """
    limit = limit or config.MAX_FREEFORM_CANDIDATES
    names: Dict[str, None] = {}

    for match in _CALLED_PATTERN.finditer(text or ""):
        names[match.group(1).strip()] = None

    for raw_chunk in _CHUNK_SPLIT.split(text or ""):
        chunk = raw_chunk.strip()
        if not 4 <= len(chunk) <= 34:
            continue
        if _SKIP_PREFIX.match(chunk):
            continue
        if not _NAME_CHARS.match(chunk) or not re.search(r"[a-z]", chunk, re.IGNORECASE):
            continue
        if re.search(r"[A-Z]", chunk) or len(chunk.split(" ")) <= 4:
            names[re.sub(r"^[-*]\s*", "", chunk)] = None

    return list(names)[:limit]


def candidates_from_names(names: List[str]) -> List[CandidateSector]:
    return [
        CandidateSector(
            id=slug(f"{name}-{index}", SLUG_MAX_LENGTH),
            name=name,
            intent=default_intent(name),
            sensitive=bool(_SENSITIVE_HINT.search(name)),
        )
        for index, name in enumerate(names)
    ]


def _model_prompt(freeform: str, survey: SurveyAnswers) -> str:
    return (
        "Extract weekly life sectors from this user profile. Return ONLY JSON array, each item: "
        '{"name":"...","icon":"...","intent":"...","priority":"high|normal|low","sensitive":true|false}. '
        "Keep 4-10 sectors max. Prefer concrete sectors.\n\n"
        f"Survey: {json.dumps(asdict(survey))}\n\nFreeform:\n{freeform}"
    )


def parse_model_candidates(content: str) -> List[CandidateSector]:
    rows = extract_json_array(content)
    if rows is None:
        return []

    result = []
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            continue
        name = str(row.get("name") or "").strip()
        if not name:
            continue
        try:
            priority = SectorPriority(row.get("priority"))
        except ValueError:
            priority = SectorPriority.NORMAL
        result.append(CandidateSector(
            id=slug(f"{name}-{index}", SLUG_MAX_LENGTH),
            name=name,
            icon=str(row.get("icon") or DEFAULT_ICON).strip() or DEFAULT_ICON,
            intent=str(row.get("intent") or default_intent(name)).strip(),
            priority=priority,
            sensitive=bool(row.get("sensitive")),
        ))
    return dedupe_candidates(result)


async def extract_with_model(
    adapter: BaseLLMAdapter,
    freeform: str,
    survey: SurveyAnswers,
) -> List[CandidateSector]:
    if not adapter.available:
        return []
    response = await adapter.generate(
        _model_prompt(freeform, survey),
        temperature=config.SECTOR_EXTRACTION_TEMPERATURE,
    )
    return parse_model_candidates(response.content)


def apply_active_cap(candidates: List[CandidateSector], cap: Optional[int] = None) -> List[CandidateSector]:
    cap = cap or config.MAX_ACTIVE_SECTORS
    return [replace(c, active=index < cap) for index, c in enumerate(candidates)]


async def generate_candidates(
    survey: SurveyAnswers,
    freeform: str = "",
    adapter: Optional[BaseLLMAdapter] = None,
    use_model: bool = True,
) -> List[CandidateSector]:
    """
    生成候选 sector：问卷种子 + 自由文本启发式 + 可选模型提取。

    模型调用失败时只记录 warning，继续使用前两者的结果。
    """
    generated = seed_from_survey(survey)
    generated.extend(candidates_from_names(extract_sector_names(freeform)))

    if (
        use_model
        and adapter is not None
        and adapter.available
        and len(freeform.strip()) > config.MIN_FREEFORM_FOR_MODEL
    ):
        try:
            generated.extend(await extract_with_model(adapter, freeform, survey))
        except (UpstreamError, ModelOutputError) as e:
            logger.warning("Model sector extraction failed, using heuristics only: %s", e)

    return apply_active_cap(dedupe_candidates(generated))


def toggle_candidate(candidates: List[CandidateSector], candidate_id: str) -> List[CandidateSector]:
    """Flip active; activating past the cap is a no-op."""
    target = next((c for c in candidates if c.id == candidate_id), None)
    if target is None:
        return list(candidates)
    active_count = sum(1 for c in candidates if c.active)
    if not target.active and active_count >= config.MAX_ACTIVE_SECTORS:
        return list(candidates)
    return [replace(c, active=not c.active) if c.id == candidate_id else c for c in candidates]


def candidate_to_contract(candidate: CandidateSector) -> SectorContract:
    return make_contract(
        name=candidate.name,
        icon=candidate.icon or DEFAULT_ICON,
        intent=candidate.intent or default_intent(candidate.name),
        signals=CANDIDATE_SIGNALS,
        anti_patterns=CANDIDATE_ANTI_PATTERNS,
        prompts=CANDIDATE_PROMPTS,
        advanced_prompts=CANDIDATE_ADVANCED_PROMPTS,
        priority=candidate.priority,
        sensitive=candidate.sensitive,
        active=candidate.active,
    )


def finalize_candidates(candidates: List[CandidateSector]) -> List[SectorContract]:
    """
    清理名称后转为 contract：active 在前且最多 MAX_ACTIVE_SECTORS 个，
    超出上限的 active 候选降为 inactive，而不是丢弃。
    """
    cleaned = []
    for candidate in candidates:
        name = candidate.name.strip()
        if len(name) <= 1:
            continue
        cleaned.append(replace(candidate, name=name, intent=candidate.intent.strip() or default_intent(name)))

    active = [c for c in cleaned if c.active]
    kept_active = active[:config.MAX_ACTIVE_SECTORS]
    demoted = [replace(c, active=False) for c in active[config.MAX_ACTIVE_SECTORS:]]
    inactive = [c for c in cleaned if not c.active]

    return [candidate_to_contract(c) for c in [*kept_active, *demoted, *inactive]]
