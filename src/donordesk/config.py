from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

WORKSPACES_DIR = Path("workspaces")
CURRENT_WORKSPACE_FILE = WORKSPACES_DIR / ".current"
WORKSPACE_FILENAME = "workspace.yaml"
API_TOKEN_ENV = "DONORDESK_API_TOKEN"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class ApiConfig:
    base_url: str
    timeout: float = DEFAULT_TIMEOUT


@dataclass(frozen=True)
class EventsConfig:
    enabled: bool
    path: Path


@dataclass(frozen=True)
class WorkspaceConfig:
    name: str
    api: ApiConfig
    organization_id: str | None
    events: EventsConfig
    path: Path


class WorkspaceError(RuntimeError):
    pass


def ensure_workspaces_dir() -> None:
    WORKSPACES_DIR.mkdir(parents=True, exist_ok=True)


def set_current_workspace(name: str) -> None:
    ensure_workspaces_dir()
    CURRENT_WORKSPACE_FILE.write_text(f"{name}\n", encoding="utf-8")


def get_current_workspace_name() -> str:
    if not CURRENT_WORKSPACE_FILE.exists():
        raise WorkspaceError("No active workspace. Run `donordesk workspace use <name>`.")
    return CURRENT_WORKSPACE_FILE.read_text(encoding="utf-8").strip()


def workspace_path(name: str) -> Path:
    return WORKSPACES_DIR / name


def workspace_config_path(name: str) -> Path:
    return workspace_path(name) / WORKSPACE_FILENAME


def load_workspace(name: str | None = None) -> WorkspaceConfig:
    if name is None:
        name = get_current_workspace_name()
    return load_workspace_file(workspace_config_path(name), name)


def load_workspace_file(config_path: Path, name: str | None = None) -> WorkspaceConfig:
    if not config_path.exists():
        raise WorkspaceError(f"Workspace config not found: {config_path}")
    data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise WorkspaceError("Workspace config must be a mapping.")
    name = name or str(data.get("workspace") or config_path.parent.name)
    return WorkspaceConfig(
        name=name,
        api=_parse_api(data.get("api")),
        organization_id=_parse_organization(data.get("organization")),
        events=_parse_events(data.get("events"), config_path),
        path=config_path.parent,
    )


def write_workspace_config(name: str, base_url: str, organization_id: str | None) -> Path:
    ensure_workspaces_dir()
    ws_dir = workspace_path(name)
    ws_dir.mkdir(parents=True, exist_ok=True)
    config = {
        "workspace": name,
        "api": {"base_url": base_url, "timeout": DEFAULT_TIMEOUT},
        "organization": {"id": organization_id},
        "events": {"enabled": True, "path": "./events.jsonl"},
    }
    config_path = workspace_config_path(name)
    config_path.write_text(yaml.safe_dump(config, sort_keys=False), encoding="utf-8")
    return config_path


def api_token() -> str | None:
    return os.getenv(API_TOKEN_ENV) or None


def _parse_api(api_data: Any) -> ApiConfig:
    if not isinstance(api_data, dict):
        raise WorkspaceError("Invalid workspace api configuration.")
    base_url = api_data.get("base_url")
    if not base_url or not isinstance(base_url, str):
        raise WorkspaceError("Workspace api.base_url is required.")
    timeout_raw = api_data.get("timeout", DEFAULT_TIMEOUT)
    try:
        timeout = float(timeout_raw)
    except (TypeError, ValueError) as exc:
        raise WorkspaceError("Workspace api.timeout must be a number.") from exc
    if timeout <= 0:
        raise WorkspaceError("Workspace api.timeout must be positive.")
    return ApiConfig(base_url=base_url, timeout=timeout)


def _parse_organization(org_data: Any) -> str | None:
    if org_data is None:
        return None
    if not isinstance(org_data, dict):
        raise WorkspaceError("Invalid workspace organization configuration.")
    org_id = org_data.get("id")
    return str(org_id) if org_id else None


def _parse_events(events_data: Any, config_path: Path) -> EventsConfig:
    if events_data is None:
        events_data = {}
    if not isinstance(events_data, dict):
        raise WorkspaceError("Invalid workspace events configuration.")
    enabled = bool(events_data.get("enabled", True))
    raw_path = events_data.get("path") or "./events.jsonl"
    if not isinstance(raw_path, str):
        raise WorkspaceError("Workspace events.path must be a string.")
    return EventsConfig(enabled=enabled, path=_resolve_workspace_path(raw_path, config_path))


def _resolve_workspace_path(raw: str, config_path: Path) -> Path:
    raw_path = Path(raw)
    if raw_path.is_absolute():
        return raw_path
    # Relative paths are anchored at the workspace directory.
    workspace_dir = config_path.parent
    if raw_path.parts and raw_path.parts[0] == WORKSPACES_DIR.name:
        return (workspace_dir.parent.parent / raw_path).resolve()
    return (workspace_dir / raw_path).resolve()
