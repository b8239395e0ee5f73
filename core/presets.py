"""
Seeded sector contracts and preset packs.

make_contract() is the single constructor used by presets, onboarding, and
custom sectors, so prompt ids are always `{sector_id}-p{n}` and advanced
prompts `{sector_id}-a{n}`.
"""
import re
from typing import List, Optional, Sequence

from core.models import (
    PresetPack,
    PromptDefinition,
    PromptKind,
    SectorContract,
    SectorPriority,
    SectorRubric,
)

PROMPT_PLACEHOLDER = "Write a concise reflection..."
ADVANCED_PROMPT_PLACEHOLDER = "Optional deeper note..."


def slug(text: str, max_length: Optional[int] = None) -> str:
    """'Gym & Fitness' -> 'gym-fitness'"""
    value = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    if max_length is not None:
        value = value[:max_length]
    return value


def make_contract(
    name: str,
    icon: str,
    intent: str,
    signals: Sequence[str],
    anti_patterns: Sequence[str],
    prompts: Sequence[str],
    advanced_prompts: Sequence[str] = (),
    priority: SectorPriority = SectorPriority.NORMAL,
    sensitive: bool = False,
    active: bool = False,
    sector_id: Optional[str] = None,
) -> SectorContract:
    sector_id = sector_id or slug(name)
    definitions = [
        PromptDefinition(
            id=f"{sector_id}-p{index}",
            label=label,
            type=PromptKind.TEXT,
            placeholder=PROMPT_PLACEHOLDER,
        )
        for index, label in enumerate(prompts, start=1)
    ]
    definitions.extend(
        PromptDefinition(
            id=f"{sector_id}-a{index}",
            label=label,
            type=PromptKind.TEXT,
            placeholder=ADVANCED_PROMPT_PLACEHOLDER,
            advanced=True,
        )
        for index, label in enumerate(advanced_prompts, start=1)
    )
    return SectorContract(
        id=sector_id,
        name=name,
        icon=icon,
        intent=intent,
        priority=SectorPriority(priority),
        sensitive=sensitive,
        active=active,
        signals=list(signals),
        anti_patterns=list(anti_patterns),
        prompts=definitions,
        rubric=SectorRubric(),
    )


def build_custom_sector_contract(
    name: str,
    icon: str,
    intent: str,
    priority: SectorPriority,
    sensitive: bool,
    signals: Sequence[str],
    anti_patterns: Sequence[str],
    prompts: Sequence[str],
    advanced_prompts: Sequence[str] = (),
) -> SectorContract:
    """User-built sectors always start active."""
    return make_contract(
        name=name,
        icon=icon,
        intent=intent,
        signals=signals,
        anti_patterns=anti_patterns,
        prompts=prompts,
        advanced_prompts=advanced_prompts,
        priority=priority,
        sensitive=sensitive,
        active=True,
    )


def merge_preset_pack(current: List[SectorContract], pack: PresetPack) -> List[SectorContract]:
    """Append pack sectors whose ids are not already present; existing sectors win."""
    merged = list(current)
    seen = {sector.id for sector in current}
    for sector in pack.sectors:
        if sector.id not in seen:
            merged.append(sector)
            seen.add(sector.id)
    return merged


def starter_sector_contracts() -> List[SectorContract]:
    return [
        make_contract(
            name="University",
            icon="📚",
            active=True,
            priority=SectorPriority.HIGH,
            intent="Show up, progress assignments, and compound real understanding.",
            signals=["Attendance", "Assignment progress", "Focus in lectures"],
            anti_patterns=["Skipping classes", "No assignment tracking"],
            prompts=[
                "Classes attended",
                "Assignments progressed or submitted",
                "Assessment tracker updated?",
                "Lecture presence and focus",
                "Class interactions and networking",
                "Learning highlights",
            ],
            advanced_prompts=["What would have made it a 10?"],
        ),
        make_contract(
            name="Gym & Fitness",
            icon="💪",
            active=True,
            priority=SectorPriority.HIGH,
            intent="Train with intent and execute recovery + nutrition around it.",
            signals=["Workouts done", "Intensity", "Nutrition"],
            anti_patterns=["Missed sessions", "Undereating protein"],
            prompts=[
                "Workouts completed",
                "Training intensity and key PRs",
                "Nutrition (calories + protein)",
                "Bodyweight check-in",
                "Physical changes/comments",
            ],
            advanced_prompts=["Recovery impact on training"],
        ),
        make_contract(
            name="Work",
            icon="💼",
            active=True,
            priority=SectorPriority.HIGH,
            intent="Move high-leverage work and income forward each week.",
            signals=["Hours worked", "Income actions", "Execution quality"],
            anti_patterns=["Drift", "Low leverage busywork"],
            prompts=[
                "Hours worked",
                "Income generated",
                "Job search or alt-income steps",
                "Alignment with ideal work life",
            ],
        ),
        make_contract(
            name="Recovery & Optimisation",
            icon="🛌",
            active=True,
            intent="Recover aggressively so output quality compounds.",
            signals=["Sleep routine", "Energy", "Recovery habits"],
            anti_patterns=["Late-night drift", "No recovery protocol"],
            prompts=[
                "Sleep routine (lights out / wake-up)",
                "Supplement consistency",
                "Stretching / mobility / sauna / cold",
                "Sunlight exposure",
                "Energy levels during the day",
            ],
        ),
        make_contract(
            name="Mindset & Focus",
            icon="🧠",
            active=True,
            intent="Protect mental clarity and direct attention to meaningful action.",
            signals=["Journaling", "Focus quality", "Dopamine discipline"],
            anti_patterns=["Compulsive scrolling", "Unstructured reactivity"],
            prompts=[
                "Journaling quality and frequency",
                "Mental clarity and purpose in action",
                "Scrolling/dopamine discipline",
                "Visualization or presence practice",
                "Handling of stress or chaos",
            ],
        ),
    ]


def _life_map_sectors() -> List[SectorContract]:
    return [
        make_contract(
            name="YouTube – Business & Content",
            icon="🎥",
            intent="Publish consistently and grow audience with quality iterations.",
            signals=["Uploads", "Quality", "Engagement"],
            anti_patterns=["No publishing", "No idea capture"],
            prompts=[
                "Videos uploaded",
                "Content quality reflection",
                "Ideas generated / logged",
                "Engagement (comments, shares, DMs)",
                "Growth / metrics",
                "Creative energy / momentum",
            ],
        ),
        make_contract(
            name="Music (Band + Solo)",
            icon="🎸",
            intent="Advance musicianship, songs, and performance readiness.",
            signals=["Practice", "Songwriting", "Rehearsals"],
            anti_patterns=["No reps", "No prep for rehearsals"],
            prompts=[
                "Rehearsals attended / led",
                "Songwriting progress / lyric ideas",
                "Practice done (guitar / vocals)",
                "Setlist refinement or gig prep",
                "Creative flow moments",
            ],
        ),
        make_contract(
            name="Jiujitsu",
            icon="🥋",
            intent="Develop technical sharpness and mat confidence.",
            signals=["Sessions", "Technique reps", "Mental game"],
            anti_patterns=["Inconsistent sessions", "No technical recall"],
            prompts=[
                "Sessions attended",
                "Techniques learned or tested",
                "Submissions attempted / landed",
                "Mental game (instinct, flow, aggression)",
                "Coach feedback / partner wins",
            ],
        ),
        make_contract(
            name="Knowledge & Growth",
            icon="📖",
            intent="Turn reading into applied knowledge and insight.",
            signals=["Pages read", "Zettels", "Applied ideas"],
            anti_patterns=["Passive intake", "No synthesis"],
            prompts=[
                "Pages read or books studied",
                "Zettels created or refined",
                "Ideas applied in real life/content",
                "Personal insight or paradigm shift",
            ],
        ),
        make_contract(
            name="Leadership & Adventure",
            icon="🧭",
            intent="Initiate momentum and bring others into action.",
            signals=["Leadership moves", "Challenges proposed", "Novelty"],
            anti_patterns=["Passive following", "No initiative"],
            prompts=[
                "Did you lead or elevate a group dynamic?",
                "Did you propose a challenge/mission/trip?",
                "1-on-1 influence moments",
                "Adventure / novelty experienced",
            ],
        ),
        make_contract(
            name="Social Life",
            icon="🕺",
            intent="Build meaningful connection and social momentum.",
            signals=["Events", "Depth of connection", "Group energy"],
            anti_patterns=["Isolation", "Low-quality social loops"],
            prompts=[
                "Hangouts or events attended",
                "1-on-1 bonding moments",
                "Any group drama / awareness moments",
                "Leadership / vibe elevation",
            ],
        ),
        make_contract(
            name="Romance",
            icon="💘",
            sensitive=True,
            intent="Lead interactions with integrity, standards, and emotional control.",
            signals=["Interaction quality", "Frame", "Decision quality"],
            anti_patterns=["Reactive behavior", "Blurred standards"],
            prompts=[
                "Interactions this week",
                "Frame maintenance",
                "Emotional control in romantic contexts",
                "Reflections or shifts in standards",
            ],
        ),
        make_contract(
            name="Aesthetics & Presentation",
            icon="💈",
            priority=SectorPriority.LOW,
            intent="Maintain presentation standards without letting vanity dominate.",
            signals=["Grooming", "Confidence", "Consistency"],
            anti_patterns=["Neglect", "Over-focus"],
            prompts=[
                "Outfits or grooming enhancements",
                "Comments / noticing from others",
                "Self-perception / confidence spike",
            ],
        ),
    ]


def _compact_sectors() -> List[SectorContract]:
    return [
        make_contract(
            name="Combat Training",
            icon="🥋",
            intent="Increase technical competence and composure under pressure.",
            signals=["Sessions", "Wins", "Skill gain"],
            anti_patterns=["No tracking", "No follow-up practice"],
            prompts=[
                "Sessions attended",
                "Key wins / submissions",
                "Skills learned / improved",
                "Areas to focus next week",
            ],
        ),
        make_contract(
            name="Content & Brand",
            icon="📱",
            intent="Produce and distribute content with clear strategic iteration.",
            signals=["Posts", "Growth", "Experiments"],
            anti_patterns=["No output", "No feedback loop"],
            prompts=[
                "Posts uploaded",
                "Growth (subs/followers)",
                "Engagement handled",
                "Strategy experiment this week",
            ],
        ),
    ]


def preset_packs() -> List[PresetPack]:
    return [
        PresetPack(
            id="life-map",
            name="Life Map",
            description="Large life-map preset covering creative, social, and physical sectors.",
            sectors=_life_map_sectors(),
        ),
        PresetPack(
            id="compact",
            name="Compact",
            description="Compact preset for a short tracking structure.",
            sectors=_compact_sectors(),
        ),
    ]


def find_preset_pack(pack_id: str) -> Optional[PresetPack]:
    return next((pack for pack in preset_packs() if pack.id == pack_id), None)
