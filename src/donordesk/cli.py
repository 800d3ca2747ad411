from __future__ import annotations

from pathlib import Path

import typer

from donordesk import __version__
from donordesk.adapters.api.client import DonationApiClient, RemoteFailure
from donordesk.config import (
    WorkspaceConfig,
    WorkspaceError,
    api_token,
    ensure_workspaces_dir,
    load_workspace,
    set_current_workspace,
    workspace_config_path,
    write_workspace_config,
)
from donordesk.domain.models import NOT_AVAILABLE, PickupRequest
from donordesk.domain.rules import ValidationError
from donordesk.domain.stages import LeaderboardOrder, Tab, TimeSlot
from donordesk.services import ranking
from donordesk.services.events import EventLogger
from donordesk.services.pickups import PickupDesk

app = typer.Typer(help="Donordesk CLI")
workspace_app = typer.Typer(help="Workspace management")
pickups_app = typer.Typer(help="Pickup request review")
leaderboard_app = typer.Typer(help="Donor leaderboard")
donor_app = typer.Typer(help="Donor statistics")

app.add_typer(workspace_app, name="workspace")
app.add_typer(pickups_app, name="pickups")
app.add_typer(leaderboard_app, name="leaderboard")
app.add_typer(donor_app, name="donor")


@app.callback()
def version_callback(version: bool = typer.Option(False, "--version", help="Show version and exit.")):
    if version:
        typer.echo(__version__)
        raise typer.Exit()


@app.command("init")
def init() -> None:
    """Initialize the workspaces directory."""
    ensure_workspaces_dir()
    typer.echo("Initialized donordesk directories.")


@workspace_app.command("add")
def workspace_add(
    name: str = typer.Argument(...),
    api_url: str = typer.Option(..., "--api-url", help="Base URL of the donation service."),
    org: str | None = typer.Option(None, "--org", help="Organization id used for pickups."),
    use: bool = typer.Option(True, "--use/--no-use", help="Set as current workspace."),
    force: bool = typer.Option(
        False, "--force", help="Overwrite existing workspace config if it exists."
    ),
) -> None:
    config_path = workspace_config_path(name)
    if config_path.exists() and not force:
        raise typer.BadParameter(
            f"Workspace already exists: {config_path}. Use --force to overwrite."
        )
    config_path = write_workspace_config(name, api_url, org)
    if use:
        set_current_workspace(name)
    typer.echo(f"Workspace created: {config_path}")


@workspace_app.command("use")
def workspace_use(name: str = typer.Argument(...)) -> None:
    if not workspace_config_path(name).exists():
        raise typer.BadParameter(f"Workspace config not found: {workspace_config_path(name)}")
    set_current_workspace(name)
    typer.echo(f"Active workspace: {name}")


@pickups_app.command("list")
def pickups_list(tab: Tab = typer.Option(Tab.ACTIVE, "--tab")) -> None:
    desk = _desk(_load_workspace())
    _refresh(desk)
    view = desk.view(tab)
    typer.echo(" | ".join(f"{t.value}={view.counts[t]}" for t in Tab))
    if not view.requests:
        typer.echo(f"No {tab.value} requests.")
        return
    for request in view.requests:
        typer.echo(_format_request(desk, request))


@pickups_app.command("accept")
def pickups_accept(
    donor_id: str = typer.Argument(...),
    pickup_date: str = typer.Option(..., "--date", help="Pickup date (YYYY-MM-DD)."),
    pickup_time: str = typer.Option(..., "--time", help="One of `donordesk pickups slots`."),
) -> None:
    desk = _desk(_load_workspace())
    _refresh(desk)
    outcome = desk.accept(donor_id, pickup_date, pickup_time)
    if not outcome.ok:
        _exit_with_error(outcome.reason or "accept failed")
    typer.echo(f"Accepted pickup for donor {donor_id} on {pickup_date} at {pickup_time}")


@pickups_app.command("decline")
def pickups_decline(donor_id: str = typer.Argument(...)) -> None:
    desk = _desk(_load_workspace())
    _refresh(desk)
    outcome = desk.decline(donor_id)
    if not outcome.ok:
        _exit_with_error(outcome.reason or "decline failed")
    typer.echo(f"Declined pickup for donor {donor_id}")


@pickups_app.command("slots")
def pickups_slots() -> None:
    for slot in TimeSlot:
        typer.echo(slot.value)


@leaderboard_app.command("show")
def leaderboard_show(
    search: str | None = typer.Option(None, "--search"),
    sort: LeaderboardOrder = typer.Option(
        LeaderboardOrder.ITEMS, "--sort", help="Display order; ranks stay by items donated."
    ),
    limit: int | None = typer.Option(None, "--limit", min=0),
) -> None:
    desk = _desk(_load_workspace())
    try:
        entries = desk.leaderboard(search=search, order=sort)
    except (RemoteFailure, ValidationError) as exc:
        _exit_with_error(str(exc))
    if limit is not None:
        entries = entries[:limit]
    if not entries:
        typer.echo("No donors found.")
        return
    for entry in entries:
        badge = ranking.podium_badge(entry.rank)
        tier = entry.tier.value if entry.tier else "-"
        suffix = f" | {badge.value}" if badge else ""
        typer.echo(f"{entry.rank} | {entry.display_name} | {entry.items_donated} | {tier}{suffix}")


@leaderboard_app.command("tiers")
def leaderboard_tiers() -> None:
    for threshold, tier in reversed(ranking.TIER_TABLE):
        typer.echo(f"{tier.value} | {threshold}+ items donated")


@donor_app.command("summary")
def donor_summary(
    donor_id: str = typer.Argument(...),
    category: str | None = typer.Option(None, "--category", help="Only count donations of this item."),
) -> None:
    desk = _desk(_load_workspace())
    try:
        summary = desk.donor_summary(donor_id, category=category)
        categories = desk.donor_categories(donor_id)
    except (RemoteFailure, ValidationError) as exc:
        _exit_with_error(str(exc))
    tier = ranking.tier_for(summary.items_donated)
    typer.echo(f"Donor: {summary.display_name}")
    if category:
        typer.echo(f"Category: {category}")
    typer.echo(f"Total donations: {summary.total_donations}")
    typer.echo(f"Items donated: {summary.items_donated}")
    typer.echo(f"Last donation: {summary.last_donation_date}")
    typer.echo(f"Impact score: {summary.impact_score}")
    typer.echo(f"Tier: {tier.value if tier else '-'}")
    typer.echo(f"Categories: {', '.join(categories) or NOT_AVAILABLE}")


def _desk(ws: WorkspaceConfig) -> PickupDesk:
    client = DonationApiClient(ws.api.base_url, api_token=api_token(), timeout=ws.api.timeout)
    logger = EventLogger(path=Path(ws.events.path), workspace=ws.name, enabled=ws.events.enabled)
    return PickupDesk(client, ws.organization_id, logger=logger)


def _refresh(desk: PickupDesk) -> None:
    try:
        desk.refresh()
    except (RemoteFailure, ValidationError) as exc:
        _exit_with_error(str(exc))


def _format_request(desk: PickupDesk, request: PickupRequest) -> str:
    line = (
        f"{request.donor_id} | {desk.donor_name(request.donor_id)} | {request.item_name} "
        f"({request.quantity} items) | {request.condition.value} | "
        f"{request.submitted_at.date().isoformat()}"
    )
    if request.scheduled_date is not None:
        line += f" | pickup {request.scheduled_date.isoformat()} at {request.scheduled_time.value}"
    return line


def _load_workspace() -> WorkspaceConfig:
    try:
        return load_workspace()
    except WorkspaceError as exc:
        typer.echo(str(exc))
        raise typer.Exit(code=1) from exc


def _exit_with_error(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
