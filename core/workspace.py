"""
YAML workspace file: the sector contracts, this week's entries, and the daily log.

    week_label: "Week 7 (Feb 3-9, 2026)"
    contracts: [...]        # SectorContract.to_dict()
    entries: {gym: {...}}   # WeeklySectorEntry.to_dict()
    daily_logs: [...]       # DailyLog.to_dict(), append-only
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml

from core.config_manager import config
from core.entries import create_entry_map, sync_entries_with_contracts, validate_entry_ratings
from core.exceptions import ConfigError, ValidationFailure
from core.models import (
    DailyLog,
    SectorContract,
    WeeklyEntryMap,
    entries_from_dict,
    entries_to_dict,
)


@dataclass
class Workspace:
    contracts: List[SectorContract] = field(default_factory=list)
    entries: WeeklyEntryMap = field(default_factory=dict)
    week_label: str = ""
    daily_logs: List[DailyLog] = field(default_factory=list)


def new_workspace(contracts: List[SectorContract], week_label: Optional[str] = None) -> Workspace:
    return Workspace(
        contracts=contracts,
        entries=create_entry_map(contracts),
        week_label=week_label or config.DEFAULT_WEEK_LABEL,
    )


def load_workspace(path: Path) -> Workspace:
    """读取并 sync 工作区；文件缺失、格式错误或评分越界时抛出 ConfigError。"""
    if not path.exists():
        raise ConfigError(f"Workspace file not found: {path}", config_path=str(path))
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Workspace is not valid YAML: {e}", config_path=str(path))
    if not isinstance(raw, dict):
        raise ConfigError("Workspace root must be a mapping", config_path=str(path))

    try:
        contracts = [SectorContract.from_dict(c) for c in raw.get("contracts") or []]
        entries = validate_entry_ratings(entries_from_dict(raw.get("entries") or {}))
        daily_logs = [DailyLog.from_dict(log) for log in raw.get("daily_logs") or []]
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigError(f"Invalid workspace content: {e}", config_path=str(path))
    except ValidationFailure as e:
        raise ConfigError(e.message, config_path=str(path))

    return Workspace(
        contracts=contracts,
        entries=sync_entries_with_contracts(entries, contracts),
        week_label=str(raw.get("week_label") or config.DEFAULT_WEEK_LABEL),
        daily_logs=daily_logs,
    )


def save_workspace(workspace: Workspace, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    document = {
        "week_label": workspace.week_label,
        "contracts": [c.to_dict() for c in workspace.contracts],
        "entries": entries_to_dict(workspace.entries),
        "daily_logs": [log.to_dict() for log in workspace.daily_logs],
    }
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(document, f, allow_unicode=True, sort_keys=False)
