"""
Core Data Models for Sector Review.
Defines sector contracts, weekly entries, derived scores/insights, and daily logs.

Wire format (to_dict / from_dict) uses the client's camelCase keys;
from_dict also accepts snake_case.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class SectorPriority(str, Enum):
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


class PromptKind(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    CHECKLIST = "checklist"


class DailyLogKind(str, Enum):
    FOOD = "food"
    VOICE = "voice"
    QUICK_ADD = "quick_add"


# text -> str, number -> int/float, checklist -> List[option id]
PromptAnswer = Union[str, int, float, List[str]]


def _pick(data: Dict[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    if camel in data:
        return data[camel]
    return data.get(snake, default)


def _priority(value: Any) -> SectorPriority:
    try:
        return SectorPriority(value)
    except ValueError:
        return SectorPriority.NORMAL


@dataclass
class PromptOption:
    id: str
    label: str


@dataclass
class PromptDefinition:
    """单个反思问题"""
    id: str
    label: str
    type: PromptKind = PromptKind.TEXT
    placeholder: Optional[str] = None
    options: Optional[List[PromptOption]] = None
    advanced: bool = False

    def empty_answer(self) -> PromptAnswer:
        return [] if self.type == PromptKind.CHECKLIST else ""

    def option_ids(self) -> List[str]:
        return [o.id for o in self.options or []]

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id, "label": self.label, "type": self.type.value}
        if self.placeholder is not None:
            data["placeholder"] = self.placeholder
        if self.options is not None:
            data["options"] = [{"id": o.id, "label": o.label} for o in self.options]
        if self.advanced:
            data["advanced"] = True
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PromptDefinition":
        raw_options = data.get("options")
        return cls(
            id=str(data["id"]),
            label=str(data.get("label", "")),
            type=PromptKind(data.get("type", "text")),
            placeholder=data.get("placeholder"),
            options=(
                [PromptOption(id=str(o["id"]), label=str(o.get("label", ""))) for o in raw_options]
                if raw_options is not None else None
            ),
            advanced=bool(data.get("advanced", False)),
        )


@dataclass
class SectorRubric:
    """四档评分标准 (0 / 5 / 8 / 10)"""
    zero: str = "Avoided core behaviors and ignored standards."
    five: str = "Mixed execution with visible inconsistency."
    eight: str = "Strong execution with one clear gap."
    ten: str = "Elite execution aligned to intent and standards."

    def to_dict(self) -> Dict[str, str]:
        return {"zero": self.zero, "five": self.five, "eight": self.eight, "ten": self.ten}


@dataclass
class SectorContract:
    """
    用户定义的追踪领域 (sector)。
    由 onboarding/编辑流程创建和修改；active 的数量受 MAX_ACTIVE_SECTORS 限制。
    """
    id: str
    name: str
    icon: str = "✨"
    intent: str = ""
    priority: SectorPriority = SectorPriority.NORMAL
    sensitive: bool = False           # 默认不出现在导出文本中
    active: bool = False
    signals: List[str] = field(default_factory=list)
    anti_patterns: List[str] = field(default_factory=list)
    prompts: List[PromptDefinition] = field(default_factory=list)
    rubric: SectorRubric = field(default_factory=SectorRubric)

    def find_prompt(self, prompt_id: str) -> Optional[PromptDefinition]:
        return next((p for p in self.prompts if p.id == prompt_id), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "intent": self.intent,
            "priority": self.priority.value,
            "sensitive": self.sensitive,
            "active": self.active,
            "signals": list(self.signals),
            "antiPatterns": list(self.anti_patterns),
            "prompts": [p.to_dict() for p in self.prompts],
            "rubric": self.rubric.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SectorContract":
        rubric = data.get("rubric")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            icon=str(data.get("icon") or "✨"),
            intent=str(data.get("intent", "")),
            priority=_priority(data.get("priority", "normal")),
            sensitive=bool(data.get("sensitive", False)),
            active=bool(data.get("active", False)),
            signals=list(data.get("signals") or []),
            anti_patterns=list(_pick(data, "antiPatterns", "anti_patterns", []) or []),
            prompts=[PromptDefinition.from_dict(p) for p in data.get("prompts") or []],
            rubric=SectorRubric(**rubric) if isinstance(rubric, dict) else SectorRubric(),
        )


@dataclass
class WeeklySectorEntry:
    """某个 sector 本周的填写内容"""
    sector_id: str
    prompt_answers: Dict[str, PromptAnswer] = field(default_factory=dict)
    rating: Optional[float] = None    # 0-10，None 表示未评分
    what_makes_ten: str = ""
    intention: str = ""               # 下周意图

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sectorId": self.sector_id,
            "promptAnswers": {
                key: list(value) if isinstance(value, list) else value
                for key, value in self.prompt_answers.items()
            },
            "rating": self.rating,
            "whatMakesTen": self.what_makes_ten,
            "intention": self.intention,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], sector_id: Optional[str] = None) -> "WeeklySectorEntry":
        return cls(
            sector_id=str(_pick(data, "sectorId", "sector_id", sector_id) or sector_id or ""),
            prompt_answers=dict(_pick(data, "promptAnswers", "prompt_answers", {}) or {}),
            rating=data.get("rating"),
            what_makes_ten=str(_pick(data, "whatMakesTen", "what_makes_ten", "") or ""),
            intention=str(data.get("intention") or ""),
        )


WeeklyEntryMap = Dict[str, WeeklySectorEntry]


def entries_from_dict(data: Dict[str, Any]) -> WeeklyEntryMap:
    return {
        sector_id: WeeklySectorEntry.from_dict(raw or {}, sector_id=sector_id)
        for sector_id, raw in (data or {}).items()
    }


def entries_to_dict(entries: WeeklyEntryMap) -> Dict[str, Any]:
    return {sector_id: entry.to_dict() for sector_id, entry in entries.items()}


@dataclass
class SectorScore:
    id: str
    icon: str
    name: str
    score: float
    rationale: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "icon": self.icon,
            "name": self.name,
            "score": self.score,
            "rationale": self.rationale,
        }


@dataclass
class ReflectionInsights:
    facts: str
    patterns: str
    open_loop: str

    def to_dict(self) -> Dict[str, str]:
        return {"facts": self.facts, "patterns": self.patterns, "openLoop": self.open_loop}


@dataclass(frozen=True)
class DailyLog:
    """每日记录（食物 / 语音 / 快速添加），创建后不可修改"""
    id: str
    type: DailyLogKind
    item: str
    calories: float
    protein: float
    created_at: str
    confidence: Optional[float] = None  # 0-1，仅模型估算时存在

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "item": self.item,
            "calories": self.calories,
            "protein": self.protein,
            "createdAt": self.created_at,
        }
        if self.confidence is not None:
            data["confidence"] = self.confidence
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DailyLog":
        confidence = data.get("confidence")
        return cls(
            id=str(data["id"]),
            type=DailyLogKind(data.get("type", "food")),
            item=str(data.get("item", "")),
            calories=data.get("calories") or 0,
            protein=data.get("protein") or 0,
            created_at=str(_pick(data, "createdAt", "created_at", "")),
            confidence=float(confidence) if confidence is not None else None,
        )


@dataclass
class PresetPack:
    id: str
    name: str
    description: str
    sectors: List[SectorContract] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "sectors": [s.to_dict() for s in self.sectors],
        }


@dataclass
class TimelineWeek:
    week: str
    title: str
    dates: str
    score: Optional[float] = None
    trend: Optional[str] = None       # "up" / "down" / "flat"
    in_progress: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week": self.week,
            "title": self.title,
            "dates": self.dates,
            "score": self.score,
            "trend": self.trend,
            "inProgress": self.in_progress,
        }
