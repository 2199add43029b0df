"""Click CLI wiring and entry points for display_sync."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, cast

import click
from rich import print
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from src.config_loader import ConfigError, load_config, resolve_display_modes
from src.datatypes import AppConfig
from src.display_sync.cli_runtime import CLIAppError, JsonTail, mode_to_json
from src.display_sync.controller import SyncController, SyncOutcome, SyncPlan
from src.display_sync.device import resolve_platform
from src.display_sync.filters import ResolutionPolicy, filter_by_resolution_band
from src.display_sync.layout_utils import (
    color_text,
    format_family,
    format_kv,
    mode_line,
    mode_lines,
)
from src.display_sync.matcher import canonical_rate
from src.display_sync.modes import DisplayMode, format_mode
from src.display_sync.prefs import DisplayPrefs, DisplayPrefsStore, InMemoryPrefs
from src.display_sync.providers import SimulatedDisplayProvider
from src.display_sync.rates import lookup_family

CONFIG_ENV_VAR = "DISPLAY_SYNC_CONFIG"
DEFAULT_CONFIG_NAME = "display_sync.toml"
_DEFAULT_CONFIG_HELP = (
    f"Path to the TOML config. Defaults to ${CONFIG_ENV_VAR} or ./{DEFAULT_CONFIG_NAME}."
)


class _ConsoleSyncListener:
    """Announces mode switches as the controller issues them."""

    def __init__(self) -> None:
        self.started: List[DisplayMode] = []

    def on_sync_started(self, new_mode: DisplayMode) -> None:
        self.started.append(new_mode)
        print(f"[cyan]→[/cyan] Switching display to {mode_line(new_mode).strip()}")


def _configure_logging(verbose: bool) -> None:
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if verbose and not any(isinstance(handler, RichHandler) for handler in root.handlers):
        root.addHandler(RichHandler(console=Console(stderr=True), show_path=False))


def _resolve_config_path(override: Optional[str]) -> Path:
    if override:
        return Path(override).expanduser()
    env_value = os.environ.get(CONFIG_ENV_VAR, "").strip()
    if env_value:
        return Path(env_value).expanduser()
    return Path.cwd() / DEFAULT_CONFIG_NAME


def _load_app_config(config_path: Path, *, allow_missing: bool = False) -> Tuple[AppConfig, Optional[str]]:
    """Load the config, converting loader failures into :class:`CLIAppError`."""

    try:
        return load_config(str(config_path)), None
    except FileNotFoundError as exc:
        if allow_missing:
            return AppConfig(), f"Config file not found at {config_path}; using defaults."
        raise CLIAppError(
            f"Config file not found at {config_path}",
            code=2,
            rich_message=f"[red]Config file not found:[/red] {escape(str(config_path))}",
        ) from exc
    except ConfigError as exc:
        raise CLIAppError(
            f"Config parsing failed: {exc}",
            code=2,
            rich_message=f"[red]Config parsing failed:[/red] {escape(str(exc))}",
        ) from exc
    except OSError as exc:
        raise CLIAppError(
            f"Unable to read config: {exc}",
            code=2,
            rich_message=f"[red]Unable to read config:[/red] {escape(str(exc))}",
        ) from exc


def _build_prefs(cfg: AppConfig, config_path: Path) -> DisplayPrefsStore:
    if not cfg.prefs.path:
        return InMemoryPrefs()
    prefs_path = Path(cfg.prefs.path)
    if not prefs_path.is_absolute():
        prefs_path = config_path.parent / prefs_path
    return DisplayPrefs(prefs_path)


def _build_session(
    cfg: AppConfig,
    config_path: Path,
    *,
    listener: Optional[_ConsoleSyncListener] = None,
) -> Tuple[SyncController, SimulatedDisplayProvider]:
    try:
        modes = resolve_display_modes(cfg.display)
    except ConfigError as exc:
        raise CLIAppError(str(exc), code=2, rich_message=f"[red]Invalid display modes:[/red] {escape(str(exc))}") from exc
    if not modes:
        raise CLIAppError(
            "No display modes configured",
            code=2,
            rich_message="[red]No display modes configured.[/red] Add display.modes tables to the config.",
        )
    provider = SimulatedDisplayProvider(
        modes,
        active_mode_id=cfg.display.active_mode_id,
        auto_confirm=cfg.display.auto_confirm,
    )
    controller = SyncController(
        provider,
        resolve_platform(cfg.platform),
        prefs=_build_prefs(cfg, config_path),
        listener=listener,
        policy=ResolutionPolicy(prefer_uhd=cfg.sync.prefer_uhd, prefer_fhd=cfg.sync.prefer_fhd),
    )
    return controller, provider


def _emit_json_tail(json_tail: JsonTail, cfg: AppConfig, *, pretty: bool) -> None:
    if not cfg.cli.emit_json_tail:
        return
    if pretty:
        click.echo(json.dumps(json_tail, indent=2))
    else:
        click.echo(json.dumps(json_tail, separators=(",", ":")))


def _target_block(width: int, fps: float) -> Dict[str, Any]:
    key = canonical_rate(fps)
    return {
        "width": width,
        "fps": fps,
        "canonical_rate": key,
        "family": list(lookup_family(key)),
    }


def _print_plan(plan: SyncPlan) -> None:
    key = canonical_rate(plan.target_frame_rate)
    print(format_kv("fps", f"{plan.target_frame_rate:g}") + "  " + format_kv("key", key))
    print(f"{color_text('family', 'dim')}={format_family(lookup_family(key))}")
    if plan.resolution_switch:
        print(format_kv("band", f"{plan.band[0]}..{plan.band[1]}"))
    else:
        print(format_kv("band", "same resolution as active mode"))
    if plan.candidates:
        print("Candidates:")
        for line in mode_lines(plan.candidates, current=plan.current):
            print(line)
    else:
        print(color_text("No candidate modes.", "yellow"))


def _params(ctx: click.Context) -> Dict[str, Any]:
    return cast(Dict[str, Any], ctx.ensure_object(dict))


def _fail(exc: CLIAppError) -> click.exceptions.Exit:
    print(exc.rich_message)
    return click.exceptions.Exit(exc.code)


@click.group()
@click.option("--config", "config_path", default=None, help=_DEFAULT_CONFIG_HELP)
@click.option("--verbose", is_flag=True, help="Show diagnostic logging on stderr.")
@click.option("--json-pretty", is_flag=True, help="Pretty-print the JSON tail output.")
@click.pass_context
def main(ctx: click.Context, config_path: Optional[str], verbose: bool, json_pretty: bool) -> None:
    """Match display modes to video frame rates."""

    params = _params(ctx)
    params["config_path"] = _resolve_config_path(config_path)
    params["verbose"] = verbose
    params["json_pretty"] = json_pretty
    _configure_logging(verbose)


@main.command("modes")
@click.option(
    "--band",
    "band",
    type=(int, int),
    default=None,
    metavar="MIN MAX",
    help="Only list modes whose height lies in MIN..MAX.",
)
@click.pass_context
def modes_command(ctx: click.Context, band: Optional[Tuple[int, int]]) -> None:
    """List the modes the configured display supports."""

    params = _params(ctx)
    config_path: Path = params["config_path"]
    try:
        cfg, _ = _load_app_config(config_path)
        controller, provider = _build_session(cfg, config_path)
    except CLIAppError as exc:
        raise _fail(exc) from exc

    modes = [mode for mode in provider.get_supported_modes() if mode is not None]
    if band is not None:
        modes = filter_by_resolution_band(modes, band[0], band[1])
    current = provider.get_current_mode()
    for line in mode_lines(modes, current=current):
        print(line)
    if not modes:
        print(color_text("No modes match.", "yellow"))

    json_tail: JsonTail = {
        "command": "modes",
        "modes": [cast(Any, mode_to_json(mode)) for mode in modes],
        "current": mode_to_json(current),
        "multi_mode": controller.supports_multi_mode_switching(),
    }
    if band is not None:
        json_tail["band"] = [band[0], band[1]]
    _emit_json_tail(json_tail, cfg, pretty=bool(params.get("json_pretty")))


@main.command("match")
@click.argument("fps", type=float)
@click.option("--width", type=int, default=1920, show_default=True, help="Video width in pixels.")
@click.pass_context
def match_command(ctx: click.Context, fps: float, width: int) -> None:
    """Show which mode a sync would pick for FPS, without switching."""

    params = _params(ctx)
    config_path: Path = params["config_path"]
    try:
        cfg, _ = _load_app_config(config_path)
        controller, _provider = _build_session(cfg, config_path)
    except CLIAppError as exc:
        raise _fail(exc) from exc

    plan = controller.plan_sync(width, fps)
    _print_plan(plan)
    if plan.closest is None:
        print(f"[yellow]No related refresh rate available for {fps:g} fps.[/yellow]")
    else:
        print(f"[green]Best match:[/green] {mode_line(plan.closest, current=plan.current).strip()}")

    json_tail: JsonTail = {
        "command": "match",
        "target": cast(Any, _target_block(width, fps)),
        "band": [plan.band[0], plan.band[1]],
        "current": mode_to_json(plan.current),
        "matched": mode_to_json(plan.closest),
    }
    _emit_json_tail(json_tail, cfg, pretty=bool(params.get("json_pretty")))


def _await_outcome(controller: SyncController, provider: SimulatedDisplayProvider) -> Optional[SyncOutcome]:
    provider.deliver_pending()
    switch = controller.last_switch
    if switch is None or not switch.done:
        return None
    return switch.outcome(timeout=0)


@main.command("sync")
@click.argument("fps", type=float)
@click.option("--width", type=int, default=1920, show_default=True, help="Video width in pixels.")
@click.option("--force", "force_flag", is_flag=True, default=None, help="Switch even if the display already matches.")
@click.option(
    "--restore/--no-restore",
    "restore_flag",
    default=None,
    help="Restore the original mode after switching. Defaults to [sync].restore_after_sync.",
)
@click.pass_context
def sync_command(
    ctx: click.Context,
    fps: float,
    width: int,
    force_flag: Optional[bool],
    restore_flag: Optional[bool],
) -> None:
    """Switch the simulated display to the best mode for FPS."""

    params = _params(ctx)
    config_path: Path = params["config_path"]
    listener = _ConsoleSyncListener()
    try:
        cfg, _ = _load_app_config(config_path)
        controller, provider = _build_session(cfg, config_path, listener=listener)
    except CLIAppError as exc:
        raise _fail(exc) from exc

    force = bool(force_flag) or cfg.sync.force
    restore = cfg.sync.restore_after_sync if restore_flag is None else restore_flag
    warnings: List[str] = []

    supported = resolve_platform(cfg.platform).supports_mode_switching()
    if not supported:
        warnings.append("Platform does not support display mode switching.")
        print("[yellow]Warning:[/yellow] Platform does not support display mode switching.")

    controller.save_original_state()
    issued = controller.request_sync(width, fps, force=force)
    outcome = _await_outcome(controller, provider) if issued else None
    if issued:
        print(f"[✓] Mode change issued ({outcome.value if outcome else 'pending'})")
        if outcome is SyncOutcome.MISMATCHED:
            warnings.append("Display reported a different mode than requested.")
        elif outcome is SyncOutcome.FAILED:
            warnings.append("Display did not report any active mode.")
    else:
        print(f"No mode change needed or possible for {fps:g} fps at width {width}.")

    restored = False
    if restore:
        restored = controller.restore_original_state()
        if restored:
            provider.deliver_pending()
            print(f"Restored original mode {format_mode(controller.original_mode)}")

    json_tail: JsonTail = {
        "command": "sync",
        "platform_supported": supported,
        "target": cast(Any, _target_block(width, fps)),
        "original": mode_to_json(controller.original_mode),
        "matched": mode_to_json(controller.pending_mode if issued else None),
        "current": mode_to_json(provider.get_current_mode()),
        "issued": issued,
        "outcome": outcome.value if outcome else None,
        "restored": restored,
        "warnings": warnings,
    }
    _emit_json_tail(json_tail, cfg, pretty=bool(params.get("json_pretty")))


@main.command("fallback")
@click.pass_context
def fallback_command(ctx: click.Context) -> None:
    """Move the baseline mode to 50/60 Hz for displays that mishandle switching."""

    params = _params(ctx)
    config_path: Path = params["config_path"]
    listener = _ConsoleSyncListener()
    try:
        cfg, _ = _load_app_config(config_path)
        controller, provider = _build_session(cfg, config_path, listener=listener)
    except CLIAppError as exc:
        raise _fail(exc) from exc

    previous = controller.save_original_state()
    issued = controller.apply_fallback_mode()
    outcome = _await_outcome(controller, provider) if issued else None
    if issued:
        print(f"[✓] Baseline mode is now {format_mode(controller.original_mode)}")
    else:
        print("Baseline mode unchanged.")

    json_tail: JsonTail = {
        "command": "fallback",
        "original": mode_to_json(controller.original_mode),
        "current": mode_to_json(provider.get_current_mode()),
        "issued": issued,
        "outcome": outcome.value if outcome else None,
    }
    if previous is None:
        json_tail["warnings"] = ["Display reported no active mode before fallback."]
    _emit_json_tail(json_tail, cfg, pretty=bool(params.get("json_pretty")))


@main.command("doctor")
@click.pass_context
def doctor_command(ctx: click.Context) -> None:
    """Summarise platform support and display capabilities."""

    params = _params(ctx)
    config_path: Path = params["config_path"]
    try:
        cfg, config_issue = _load_app_config(config_path, allow_missing=True)
    except CLIAppError as exc:
        raise _fail(exc) from exc

    warnings: List[str] = []
    if config_issue:
        warnings.append(config_issue)
        print(f"[yellow]Warning:[/yellow] {escape(config_issue)}")

    platform = resolve_platform(cfg.platform)
    supported = platform.supports_mode_switching()
    print(format_kv("sdk", platform.sdk_int) + "  " + format_kv("fire_tv", platform.is_fire_tv))
    print(format_kv("mode_switching", "supported" if supported else "unsupported"))

    multi_mode = False
    try:
        controller, _provider = _build_session(cfg, config_path)
    except CLIAppError as exc:
        warnings.append(str(exc))
        print(f"[yellow]Warning:[/yellow] {escape(str(exc))}")
    else:
        multi_mode = controller.supports_multi_mode_switching()
        print(format_kv("modes", controller.cached_mode_count))
    print(format_kv("multi_mode", multi_mode))

    json_tail: JsonTail = {
        "command": "doctor",
        "platform_supported": supported,
        "fire_tv": platform.is_fire_tv,
        "multi_mode": multi_mode,
        "warnings": warnings,
    }
    _emit_json_tail(json_tail, cfg, pretty=bool(params.get("json_pretty")))


__all__ = ["CONFIG_ENV_VAR", "DEFAULT_CONFIG_NAME", "main"]
