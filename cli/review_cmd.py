"""
CLI 命令：sector-review
本地工作区 (YAML) 上的周评审：查看分数、导出 bridge 文本、套用预设、记录每日饮食。
"""
import asyncio
import sys
from pathlib import Path

import click

# 添加项目根目录到 sys.path，以便导入 core 模块
project_root = Path(__file__).parent.parent
sys.path.append(str(project_root))

from core.bridge import build_bridge_text
from core.config_manager import ServerSettings
from core.daily_log import (
    append_log,
    calculate_daily_macro_totals,
    new_food_log,
    new_quick_add_log,
    new_voice_log,
)
from core.entries import sync_entries_with_contracts
from core.exceptions import ReviewError
from core.food_analyzer import FoodAnalyzer
from core.llm_adapter import create_llm_adapter
from core.paths import DATA_DIR
from core.presets import find_preset_pack, merge_preset_pack, preset_packs, starter_sector_contracts
from core.scoring import build_insights, build_sector_scores, format_score, overall_score
from core.utils import utc_now_iso
from core.workspace import load_workspace, new_workspace, save_workspace

DEFAULT_WORKSPACE = DATA_DIR / "workspace.yaml"


def _load(path: Path):
    try:
        return load_workspace(path)
    except ReviewError as e:
        raise click.ClickException(e.get_user_message())


@click.group()
def review():
    """Weekly sector review commands"""
    pass


@review.command()
def presets():
    """List the starter sectors and preset packs"""
    click.echo("Starter sectors:")
    for contract in starter_sector_contracts():
        click.echo(f"  {contract.icon} {contract.name} [{contract.priority.value}]")

    for pack in preset_packs():
        click.echo(f"\n{pack.name} ({pack.id}): {pack.description}")
        for contract in pack.sectors:
            marker = " (sensitive)" if contract.sensitive else ""
            click.echo(f"  {contract.icon} {contract.name}{marker}")


@review.command()
@click.option("--workspace", "workspace_path", type=click.Path(path_type=Path), default=DEFAULT_WORKSPACE)
@click.option("--week-label", default=None, help="Label used in the bridge header")
@click.option("--pack", "pack_id", default=None, help="Preset pack id to merge into the starter sectors")
@click.option("--force", is_flag=True, help="Overwrite an existing workspace")
def init(workspace_path: Path, week_label, pack_id, force):
    """Create a workspace from the starter sectors"""
    if workspace_path.exists() and not force:
        raise click.ClickException(f"{workspace_path} already exists (use --force to overwrite)")

    contracts = starter_sector_contracts()
    if pack_id:
        pack = find_preset_pack(pack_id)
        if pack is None:
            raise click.ClickException(f"Unknown preset pack: {pack_id}")
        contracts = merge_preset_pack(contracts, pack)

    workspace = new_workspace(contracts, week_label)
    save_workspace(workspace, workspace_path)
    click.echo(f"Workspace written to {workspace_path} ({len(contracts)} sectors)")


@review.command()
@click.option("--workspace", "workspace_path", type=click.Path(path_type=Path), default=DEFAULT_WORKSPACE)
def scores(workspace_path: Path):
    """Show sector scores and weekly insights"""
    workspace = _load(workspace_path)
    sector_scores = build_sector_scores(workspace.contracts, workspace.entries)

    for score in sector_scores:
        click.echo(f"{score.icon} {score.name}: {format_score(score.score)}  {score.rationale}")
    click.echo(f"\nOverall: {format_score(overall_score(sector_scores))}/10\n")

    insights = build_insights(sector_scores)
    click.echo(insights.facts)
    click.echo(insights.patterns)
    click.echo(insights.open_loop)


@review.command()
@click.option("--workspace", "workspace_path", type=click.Path(path_type=Path), default=DEFAULT_WORKSPACE)
@click.option("--include-sensitive", is_flag=True, help="Include sectors flagged sensitive")
@click.option("--week-label", default=None)
def bridge(workspace_path: Path, include_sensitive, week_label):
    """Print the bridge text for pasting into a chat tool"""
    workspace = _load(workspace_path)
    click.echo(build_bridge_text(
        week_label=week_label or workspace.week_label,
        contracts=workspace.contracts,
        entries=workspace.entries,
        include_sensitive=include_sensitive,
    ))


@review.command()
@click.option("--workspace", "workspace_path", type=click.Path(path_type=Path), default=DEFAULT_WORKSPACE)
def sync(workspace_path: Path):
    """Add missing entries and prompt keys to the workspace file"""
    workspace = _load(workspace_path)
    workspace.entries = sync_entries_with_contracts(workspace.entries, workspace.contracts)
    save_workspace(workspace, workspace_path)
    click.echo(f"Synced {len(workspace.entries)} entries")



def _estimate_food(text: str):
    analyzer = FoodAnalyzer(create_llm_adapter(ServerSettings.from_env()))
    return asyncio.run(analyzer.analyze_text(text))


@review.command()
@click.argument("kind", type=click.Choice(["food", "quick", "voice"]))
@click.argument("text")
@click.option("--calories", type=float, default=0, help="Calories for a quick add")
@click.option("--protein", type=float, default=0, help="Protein (g) for a quick add")
@click.option("--workspace", "workspace_path", type=click.Path(path_type=Path), default=DEFAULT_WORKSPACE)
def log(kind, text, calories, protein, workspace_path: Path):
    """Append a food, quick-add, or voice entry to the daily log"""
    workspace = _load(workspace_path)

    if kind == "food":
        try:
            estimate = _estimate_food(text)
        except ReviewError as e:
            raise click.ClickException(e.get_user_message())
        entry = new_food_log(estimate.item, estimate.calories, estimate.protein, estimate.confidence)
    elif kind == "quick":
        entry = new_quick_add_log(text, calories, protein)
    else:
        entry = new_voice_log(text)
        if entry is None:
            raise click.ClickException("Voice note is empty")

    workspace.daily_logs = append_log(workspace.daily_logs, entry)
    save_workspace(workspace, workspace_path)
    click.echo(f"Logged {entry.item}: {entry.calories:g} kcal, {entry.protein:g} g protein")

    # 只统计今天 (UTC) 的记录
    today = utc_now_iso()[:10]
    totals = calculate_daily_macro_totals(
        item for item in workspace.daily_logs if item.created_at.startswith(today)
    )
    click.echo(f"Today: {totals['calories']:g} kcal, {totals['protein']:g} g protein")


if __name__ == "__main__":
    review()
