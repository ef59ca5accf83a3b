"""CLI for puckcoach."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from itertools import zip_longest
from pathlib import Path
from typing import Any, Mapping

import httpx
import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from puckcoach.ai.client import GeminiClient
from puckcoach.analysis import (
    AnalysisRunner,
    CoachService,
    ShotRaterService,
    SkillCheckService,
    StickAnalyzerService,
    ValidationGate,
)
from puckcoach.config import load_app_config
from puckcoach.config.models import AppConfig
from puckcoach.constants import PACKAGE_VERSION
from puckcoach.errors import INVALID_CONTENT_TIPS, AnalyzerError
from puckcoach.flow import (
    FlowSequencer,
    ai_coach_flow,
    shot_rater_flow,
    skill_check_flow,
    stick_analyzer_flow,
)
from puckcoach.observability import TracerProtocol, create_tracer
from puckcoach.schemas.enums import (
    AnalyzerErrorKind,
    FlowType,
    Handedness,
    PriorityFocus,
    ShootingZone,
    normalize_shot_type,
)
from puckcoach.schemas.profile import PlayerProfile
from puckcoach.schemas.results import (
    AnalysisResult,
    CoachAnalysis,
    ShotAnalysis,
    SkillAnalysis,
    StickAnalysis,
    ValidationResult,
)
from puckcoach.security.redaction import redact_text
from puckcoach.storage import AnalysisResultStore, FlowStateStore, KeyValueStore

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="puckcoach hockey shot analysis.",
)
console = Console()

_FEATURE_HELP = "shot_rater, ai_coach, skill_check or stick_analyzer."


@dataclass
class Services:
    """Collaborators wired for one CLI invocation."""

    config: AppConfig
    client: GeminiClient
    runner: AnalysisRunner
    result_store: AnalysisResultStore
    flow_state_store: FlowStateStore
    tracer: TracerProtocol


def build_stores(config: AppConfig) -> tuple[AnalysisResultStore, FlowStateStore]:
    store = KeyValueStore(config.storage.db_path)
    return (
        AnalysisResultStore(store, max_results=config.storage.max_results),
        FlowStateStore(store, ttl_days=config.storage.flow_state_ttl_days),
    )


def build_services(
    config: AppConfig,
    *,
    env: Mapping[str, str] | None = None,
    http_client: httpx.Client | None = None,
) -> Services:
    """Construct the client, services, stores and tracer from ``config``."""
    active_env = dict(os.environ) if env is None else dict(env)
    client = GeminiClient.from_config(config, env=active_env, http_client=http_client)
    result_store, flow_state_store = build_stores(config)
    tracer = create_tracer(active_env)
    runner = AnalysisRunner(
        gate=ValidationGate(client, config),
        shot_rater=ShotRaterService(client, config),
        coach=CoachService(client, config),
        skill_check=SkillCheckService(client, config),
        stick_analyzer=StickAnalyzerService(client, config),
        tracer=tracer,
        result_store=result_store,
        flow_state_store=flow_state_store,
    )
    return Services(
        config=config,
        client=client,
        runner=runner,
        result_store=result_store,
        flow_state_store=flow_state_store,
        tracer=tracer,
    )


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Configure logging for the invoked command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def version() -> None:
    """Print the puckcoach version."""
    typer.echo(PACKAGE_VERSION)


@app.command("validate-config")
def validate_config(
    config: Path | None = typer.Option(
        None, "--config", help="Path to settings.yaml override."
    ),
) -> None:
    """Validate configuration and print the effective settings."""
    try:
        config_model = load_app_config(config)
    except Exception as exc:  # noqa: BLE001
        console.print(f"[red]Configuration validation failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    table = Table(title="Effective Configuration")
    table.add_column("Section")
    table.add_column("Setting")
    table.add_column("Value")
    payload: dict[str, Any] = config_model.model_dump(mode="json")
    for section, values in payload.items():
        if not isinstance(values, dict):
            table.add_row("-", section, str(values))
            continue
        for key, value in values.items():
            table.add_row(section, key, str(value))
    console.print(table)


@app.command("validate")
def validate(
    videos: list[Path] = typer.Argument(..., help="One or more video files, in order."),
    angles: bool = typer.Option(
        False, "--angles", help="Also report front/side angle detection."
    ),
    fail_closed: bool = typer.Option(
        False, "--fail-closed", help="Treat validation timeouts and errors as failures."
    ),
    config: Path | None = typer.Option(None, "--config", help="Path to settings.yaml override."),
) -> None:
    """Run the pre-flight content check on one or more clips."""
    try:
        overrides = {"validation.fail_open": False} if fail_closed else None
        cfg = load_app_config(config, cli_overrides=overrides)
        services = build_services(cfg)
        with services.client, _spinner("Validating video"):
            result = services.runner.gate.preflight(videos, with_angles=angles or len(videos) > 1)
    except AnalyzerError as exc:
        _render_analyzer_error(exc)
        raise typer.Exit(code=1) from exc
    except Exception as exc:  # noqa: BLE001
        console.print(f"[red]Validation failed:[/red] {redact_text(str(exc))}")
        raise typer.Exit(code=1) from exc

    _render_validation(result)
    if not result.is_valid:
        raise typer.Exit(code=1)


@app.command("rate-shot")
def rate_shot(
    video: Path = typer.Argument(..., help="Video of a single shot."),
    shot_type: str = typer.Option("wrist", "--shot-type", help="wrist, slap, snap or backhand."),
    model: str | None = typer.Option(None, "--model", help="Gemini model override."),
    config: Path | None = typer.Option(None, "--config", help="Path to settings.yaml override."),
    db_path: Path | None = typer.Option(None, "--db-path", help="SQLite path for local state."),
) -> None:
    """Validate and rate a single recorded shot."""
    try:
        cfg = _load_config(config, model=model, db_path=db_path)
        services = build_services(cfg)
        sequencer = FlowSequencer(shot_rater_flow())
        sequencer.set_data("shot_type", normalize_shot_type(shot_type))
        sequencer.proceed()
        sequencer.set_data("video_path", video)
        sequencer.proceed()
        with services.client, _spinner(f"Rating {sequencer.context.shot_type.display_name}"):
            result = services.runner.run(sequencer)
    except AnalyzerError as exc:
        _render_analyzer_error(exc)
        raise typer.Exit(code=1) from exc
    except Exception as exc:  # noqa: BLE001
        console.print(f"[red]Shot rating failed:[/red] {redact_text(str(exc))}")
        raise typer.Exit(code=1) from exc

    _render_result(result)


@app.command("coach")
def coach(
    front: Path = typer.Option(..., "--front", help="Video filmed from behind the shooter."),
    side: Path = typer.Option(..., "--side", help="Video filmed from the side."),
    shot_type: str = typer.Option("wrist", "--shot-type", help="wrist, slap, snap or backhand."),
    age: int | None = typer.Option(None, "--age", help="Player age."),
    height: float | None = typer.Option(None, "--height", help="Height in inches."),
    weight: float | None = typer.Option(None, "--weight", help="Weight in pounds."),
    handedness: Handedness | None = typer.Option(None, "--shoots", help="left or right."),
    position: str | None = typer.Option(None, "--position", help="Playing position."),
    model: str | None = typer.Option(None, "--model", help="Gemini model override."),
    config: Path | None = typer.Option(None, "--config", help="Path to settings.yaml override."),
    db_path: Path | None = typer.Option(None, "--db-path", help="SQLite path for local state."),
) -> None:
    """Run the two-angle coaching analysis."""
    try:
        cfg = _load_config(config, model=model, db_path=db_path)
        services = build_services(cfg)
        sequencer = FlowSequencer(ai_coach_flow())
        sequencer.set_data("shot_type", normalize_shot_type(shot_type))
        sequencer.set_data(
            "profile",
            PlayerProfile(
                age=age,
                height_inches=height,
                weight_lbs=weight,
                handedness=handedness,
                position=position,
            ),
        )
        sequencer.proceed()
        sequencer.set_data("front_video_path", front)
        sequencer.proceed()
        sequencer.set_data("side_video_path", side)
        sequencer.proceed()
        with services.client, _spinner("Analyzing both camera angles"):
            result = services.runner.run(sequencer)
    except AnalyzerError as exc:
        _render_analyzer_error(exc)
        raise typer.Exit(code=1) from exc
    except Exception as exc:  # noqa: BLE001
        console.print(f"[red]Coaching analysis failed:[/red] {redact_text(str(exc))}")
        raise typer.Exit(code=1) from exc

    _render_result(result)


@app.command("skill-check")
def skill_check(
    video: Path = typer.Argument(..., help="Video of any hockey skill."),
    focus: str | None = typer.Option(
        None, "--focus", help="What you want feedback on, in your own words."
    ),
    model: str | None = typer.Option(None, "--model", help="Gemini model override."),
    config: Path | None = typer.Option(None, "--config", help="Path to settings.yaml override."),
    db_path: Path | None = typer.Option(None, "--db-path", help="SQLite path for local state."),
) -> None:
    """Identify and review the skill shown in one clip."""
    try:
        cfg = _load_config(config, model=model, db_path=db_path)
        services = build_services(cfg)
        sequencer = FlowSequencer(skill_check_flow())
        sequencer.set_data("video_path", video)
        sequencer.proceed()
        if focus:
            sequencer.set_data("focus_request", focus)
            sequencer.proceed()
        else:
            sequencer.skip()
        with services.client, _spinner("Reviewing your skill"):
            result = services.runner.run(sequencer)
    except AnalyzerError as exc:
        _render_analyzer_error(exc)
        raise typer.Exit(code=1) from exc
    except Exception as exc:  # noqa: BLE001
        console.print(f"[red]Skill check failed:[/red] {redact_text(str(exc))}")
        raise typer.Exit(code=1) from exc

    _render_result(result)


@app.command("stick-analyzer")
def stick_analyzer(
    priority: PriorityFocus = typer.Option(..., "--priority", help="power, accuracy or balance."),
    primary_shot: str = typer.Option("wrist", "--primary-shot", help="wrist, slap, snap or backhand."),
    zone: ShootingZone = typer.Option(
        ..., "--zone", help="point, slot, close_range or varies."
    ),
    video: Path | None = typer.Option(
        None, "--video", help="Optional shot clip; without it only the profile is used."
    ),
    age: int | None = typer.Option(None, "--age", help="Player age."),
    height: float | None = typer.Option(None, "--height", help="Height in inches."),
    weight: float | None = typer.Option(None, "--weight", help="Weight in pounds."),
    gender: str | None = typer.Option(None, "--gender", help="Player gender."),
    handedness: Handedness | None = typer.Option(None, "--shoots", help="left or right."),
    position: str | None = typer.Option(None, "--position", help="Playing position."),
    model: str | None = typer.Option(None, "--model", help="Gemini model override."),
    config: Path | None = typer.Option(None, "--config", help="Path to settings.yaml override."),
    db_path: Path | None = typer.Option(None, "--db-path", help="SQLite path for local state."),
) -> None:
    """Recommend stick specs and models from a profile and shooting preferences."""
    try:
        cfg = _load_config(config, model=model, db_path=db_path)
        services = build_services(cfg)
        sequencer = FlowSequencer(stick_analyzer_flow())
        sequencer.set_data(
            "profile",
            PlayerProfile(
                age=age,
                height_inches=height,
                weight_lbs=weight,
                gender=gender,
                handedness=handedness,
                position=position,
            ),
        )
        sequencer.proceed()
        if video is not None:
            sequencer.set_data("video_path", video)
            sequencer.proceed()
        else:
            sequencer.skip()
        for key, value in (
            ("priority_focus", priority),
            ("shot_type", normalize_shot_type(primary_shot)),
            ("shooting_zone", zone),
        ):
            sequencer.set_data(key, value)
            sequencer.proceed()
        with services.client, _spinner("Generating stick recommendations"):
            result = services.runner.run(sequencer)
    except AnalyzerError as exc:
        _render_analyzer_error(exc)
        raise typer.Exit(code=1) from exc
    except Exception as exc:  # noqa: BLE001
        console.print(f"[red]Stick analysis failed:[/red] {redact_text(str(exc))}")
        raise typer.Exit(code=1) from exc

    _render_result(result)


@app.command("results")
def results(
    feature: FlowType = typer.Option(FlowType.SHOT_RATER, "--feature", help=_FEATURE_HELP),
    history: bool = typer.Option(False, "--history", help="List saved results, newest first."),
    config: Path | None = typer.Option(None, "--config", help="Path to settings.yaml override."),
    db_path: Path | None = typer.Option(None, "--db-path", help="SQLite path for local state."),
) -> None:
    """Show the latest saved result (or the history) of a feature."""
    try:
        cfg = _load_config(config, db_path=db_path)
        result_store, _ = build_stores(cfg)
        entries = result_store.history(feature) if history else []
        latest = None if history else result_store.latest(feature)
    except Exception as exc:  # noqa: BLE001
        console.print(f"[red]Could not read results:[/red] {redact_text(str(exc))}")
        raise typer.Exit(code=1) from exc

    if history:
        if not entries:
            console.print(f"No saved {feature.display_name} results.")
            return
        table = Table(title=f"{feature.display_name} History")
        table.add_column("Saved")
        table.add_column("Shot")
        table.add_column("Result", justify="right")
        for entry in entries:
            analysis = entry.analysis()
            table.add_row(
                entry.saved_at.strftime("%Y-%m-%d %H:%M"),
                entry.shot_type.display_name if entry.shot_type else "-",
                _headline(analysis),
            )
        console.print(table)
        return

    if latest is None:
        console.print(f"No saved {feature.display_name} results.")
        return
    _render_result(latest.analysis())


@app.command("resume-info")
def resume_info(
    feature: FlowType = typer.Option(FlowType.SHOT_RATER, "--feature", help=_FEATURE_HELP),
    clear: bool = typer.Option(False, "--clear", help="Discard the saved flow."),
    config: Path | None = typer.Option(None, "--config", help="Path to settings.yaml override."),
    db_path: Path | None = typer.Option(None, "--db-path", help="SQLite path for local state."),
) -> None:
    """Show (or discard) the in-progress flow saved for a feature."""
    try:
        cfg = _load_config(config, db_path=db_path)
        _, flow_state_store = build_stores(cfg)
        if clear:
            flow_state_store.clear(feature)
            console.print(f"Cleared saved {feature.display_name} flow.")
            return
        sequencer = flow_state_store.load(feature)
    except Exception as exc:  # noqa: BLE001
        console.print(f"[red]Could not read saved flow:[/red] {redact_text(str(exc))}")
        raise typer.Exit(code=1) from exc

    if sequencer is None:
        console.print(f"No saved {feature.display_name} flow.")
        return
    stage = sequencer.current
    console.print(
        Panel.fit(
            f"Stage: [bold]{stage.title}[/bold] ({sequencer.index + 1}/{sequencer.total})\n"
            f"Media: {', '.join(str(path) for path in sequencer.context.media_paths()) or '-'}",
            title=f"Saved {feature.display_name} Flow",
        )
    )


def _load_config(
    config: Path | None,
    *,
    model: str | None = None,
    db_path: Path | None = None,
) -> AppConfig:
    return load_app_config(
        config,
        cli_overrides={
            "gemini.model": model,
            "storage.db_path": str(db_path) if db_path else None,
        },
    )


def _spinner(description: str) -> Progress:
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
        console=console,
    )
    progress.add_task(description=description, total=None)
    return progress


def _render_analyzer_error(error: AnalyzerError) -> None:
    lines = [error.failure_reason or error.title, "", f"[dim]{error.recovery_suggestion}[/dim]"]
    if error.kind == AnalyzerErrorKind.INVALID_CONTENT:
        lines.extend(f"  - {tip}" for tip in INVALID_CONTENT_TIPS)
    lines.append(f"\nNext: [bold]{error.action_label}[/bold]")
    console.print(
        Panel.fit(
            redact_text("\n".join(lines)),
            title=f"[red]{error.title}[/red]",
        )
    )


def _render_validation(result: ValidationResult) -> None:
    status = "[green]valid[/green]" if result.is_valid else "[red]invalid[/red]"
    table = Table(title="Validation")
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("Result", status + (" (assumed)" if result.assumed else ""))
    table.add_row("Confidence", f"{result.confidence:.2f}")
    table.add_row("Reason", result.reason or "-")
    if result.has_front_angle is not None or result.has_side_angle is not None:
        table.add_row("Front angle", _flag(result.has_front_angle))
        table.add_row("Side angle", _flag(result.has_side_angle))
    console.print(table)


def _render_result(result: AnalysisResult) -> None:
    if isinstance(result, ShotAnalysis):
        _render_shot(result)
    elif isinstance(result, SkillAnalysis):
        _render_skill(result)
    elif isinstance(result, StickAnalysis):
        _render_stick(result)
    else:
        _render_coach(result)


def _headline(result: AnalysisResult) -> str:
    if isinstance(result, StickAnalysis):
        return f"Flex {result.flex_display}, {result.length_display}"
    return f"{result.overall_rating} ({result.overall_label})"


def _render_shot(result: ShotAnalysis) -> None:
    table = Table(title=f"Shot Rating: {result.overall_rating} ({result.overall_label})")
    table.add_column("Metric")
    table.add_column("Score", justify="right")
    table.add_column("Why")
    table.add_row("Technique", str(result.technique_score), result.technique_reason)
    table.add_row("Power", str(result.power_score), result.power_reason)
    console.print(table)
    console.print(Panel.fit(result.summary, title="Summary"))


def _render_coach(result: CoachAnalysis) -> None:
    metrics = result.radar_metrics
    reasoning = result.metric_reasoning
    tips = result.improvement_tips
    table = Table(title=f"Coach Rating: {result.overall_rating} ({result.overall_label})")
    table.add_column("Metric")
    table.add_column("Score", justify="right")
    table.add_column("Observation")
    table.add_column("Tip")
    rows = (
        ("Stance", metrics.stance_score, reasoning.stance, tips.stance),
        ("Balance", metrics.balance_score, reasoning.balance, tips.balance),
        ("Follow-through", metrics.follow_through_score, reasoning.follow_through, tips.follow_through),
        ("Power", metrics.explosive_power_score, reasoning.power, tips.power),
        ("Release", metrics.release_point_score, reasoning.release, tips.release),
    )
    for name, score, observation, tip in rows:
        table.add_row(name, str(score), observation, tip)
    console.print(Panel.fit(result.key_observation, title="Key Observation"))
    console.print(table)
    focus = result.primary_focus
    cues = "\n".join(f"  - {cue}" for cue in focus.coaching_cues)
    console.print(
        Panel.fit(
            f"[bold]{focus.specific_issue}[/bold]\n{focus.why_it_matters}\n\n"
            f"{focus.how_to_improve}\n\n{cues}\n\nDrill: {focus.drill}",
            title=f"Primary Focus: {focus.metric}",
        )
    )


def _render_skill(result: SkillAnalysis) -> None:
    title = f"Skill Check: {result.overall_rating} ({result.overall_label})"
    if result.category:
        title = f"{title}, {result.category}"
    console.print(Panel.fit(result.ai_comment, title=title))
    table = Table()
    table.add_column("What you did well")
    table.add_column("What to work on")
    table.add_column("How to improve")
    for row in zip_longest(
        result.what_you_did_well, result.what_to_work_on, result.how_to_improve, fillvalue=""
    ):
        table.add_row(*row)
    console.print(table)


def _render_stick(result: StickAnalysis) -> None:
    specs = Table(title="Ideal Stick")
    specs.add_column("Attribute")
    specs.add_column("Value")
    specs.add_column("Why")
    specs.add_row("Flex", result.flex_display, result.flex_reasoning)
    specs.add_row("Length", result.length_display, result.length_reasoning)
    specs.add_row("Curve", ", ".join(result.ideal_curves), result.curve_reasoning)
    specs.add_row(
        "Kick point", result.ideal_kick_point.value, result.kick_point_reasoning
    )
    specs.add_row("Lie", str(result.ideal_lie), result.lie_reasoning)
    console.print(specs)
    if not result.recommended_sticks:
        return
    picks = Table(title="Recommended Sticks")
    picks.add_column("Stick")
    picks.add_column("Flex", justify="right")
    picks.add_column("Curve")
    picks.add_column("Match", justify="right")
    picks.add_column("Why")
    for stick in sorted(result.recommended_sticks, key=lambda item: -item.match_score):
        picks.add_row(
            stick.display_name,
            str(stick.flex),
            stick.curve,
            str(stick.match_score),
            stick.reasoning,
        )
    console.print(picks)


def _flag(value: bool | None) -> str:
    if value is None:
        return "-"
    return "yes" if value else "no"
