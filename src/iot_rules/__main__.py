"""CLI entry point for iot-rules."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

import click

from . import __version__
from .config import IoTRulesConfig, load_config
from .exceptions import IoTRulesError

logger = logging.getLogger("iot-rules")


# ── Helpers ──────────────────────────────────────────────


def _configure_logging(level: str) -> None:
    root = logging.getLogger()
    if root.handlers:
        # Host already configured logging (embedding app, test runner)
        logger.setLevel(level.upper())
        return

    log_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(logging.Formatter(log_format, datefmt=date_format))
    logging.basicConfig(level=level.upper(), handlers=[console], force=True)
    for noisy in ("aiohttp", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def _open_store(config: IoTRulesConfig):
    from .rules.store import JsonRulesFile, RuleStore

    store = RuleStore(JsonRulesFile(config.rules_file))
    try:
        store.load()
    except IoTRulesError as e:
        raise click.ClickException(f"Cannot load {config.rules_file}: {e}") from e
    return store


def _format_rule(rule) -> str:
    from .rules.payload import describe_action

    status = "enabled" if rule.enabled else "disabled"
    devices = ", ".join(rule.device_ids) if rule.device_ids else "None selected"
    conditions = f" {rule.logic.value} ".join(c.describe() for c in rule.conditions)
    return (
        f"{rule.id}  {rule.name}  [{status}]\n"
        f"    Devices: {devices}\n"
        f"    When: {conditions}\n"
        f"    Action: {describe_action(rule.action)}"
    )


# ── CLI Commands ─────────────────────────────────────────


@click.group()
@click.version_option(version=__version__, prog_name="iot-rules")
@click.option("--config", "config_path", default=None, help="Config file path")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """iot-rules: threshold alerts for IoT telemetry."""
    try:
        config = load_config(config_path)
    except IoTRulesError as e:
        raise click.ClickException(str(e)) from e
    _configure_logging("DEBUG" if verbose else config.log_level)
    ctx.obj = config


@main.group()
def rules() -> None:
    """Create, edit, and share rules."""


@rules.command("list")
@click.option("--json", "as_json", is_flag=True, help="Print the JSON export instead")
@click.pass_obj
def list_rules(config: IoTRulesConfig, as_json: bool) -> None:
    """List rules in creation order."""
    store = _open_store(config)
    if as_json:
        click.echo(store.export_json())
        return
    items = store.list_rules()
    if not items:
        click.echo("No rules yet. Add one with 'iot-rules rules add'.")
        return
    for rule in items:
        click.echo(_format_rule(rule))


@rules.command("show")
@click.argument("rule_id")
@click.pass_obj
def show_rule(config: IoTRulesConfig, rule_id: str) -> None:
    """Print one rule as JSON."""
    store = _open_store(config)
    try:
        rule = store.get(rule_id)
    except IoTRulesError as e:
        raise click.ClickException(str(e)) from e
    click.echo(json.dumps(rule.model_dump(mode="json"), indent=2))


@rules.command("add")
@click.option("--name", default="", help="Rule name (defaults to 'Rule N')")
@click.option("--device", "-d", "devices", multiple=True, help="Target device id (repeatable)")
@click.option(
    "--condition",
    "-c",
    "conditions",
    multiple=True,
    help="Condition, e.g. 'temperature > 30' or 'humidity between 40 60' (repeatable)",
)
@click.option("--logic", type=click.Choice(["AND", "OR"]), default="AND")
@click.option(
    "--action",
    "action_type",
    type=click.Choice(["alert", "device_control", "webhook"]),
    default="alert",
)
@click.option("--payload", default="", help="Alert message, 'deviceId:command', or webhook URL")
@click.option("--template", "template_id", default=None, help="Start from a template")
@click.option("--disabled", is_flag=True, help="Save the rule disabled")
@click.pass_obj
def add_rule(
    config: IoTRulesConfig,
    name: str,
    devices: tuple[str, ...],
    conditions: tuple[str, ...],
    logic: str,
    action_type: str,
    payload: str,
    template_id: str | None,
    disabled: bool,
) -> None:
    """Add a rule."""
    from .rules.models import Logic, Rule
    from .rules.payload import parse_action_payload, parse_condition
    from .rules.templates import get_template, rule_from_template

    try:
        if template_id:
            template = get_template(template_id)
            if template is None:
                raise click.ClickException(f"Unknown template: {template_id}")
            rule = rule_from_template(template, list(devices), name=name or None)
            if payload or action_type != "alert":
                rule.action = parse_action_payload(action_type, payload)
        else:
            if not conditions:
                raise click.UsageError("At least one --condition is required")
            rule = Rule(
                name=name,
                device_ids=list(devices),
                conditions=[parse_condition(text) for text in conditions],
                logic=Logic(logic),
                action=parse_action_payload(action_type, payload),
            )
    except IoTRulesError as e:
        raise click.ClickException(str(e)) from e

    rule.enabled = not disabled
    store = _open_store(config)
    saved = store.add(rule)
    if not saved.device_ids:
        click.echo("Warning: no devices selected, this rule will never fire.", err=True)
    click.echo(f"Added rule {saved.id}: {saved.name}")


@rules.command("remove")
@click.argument("rule_id")
@click.pass_obj
def remove_rule(config: IoTRulesConfig, rule_id: str) -> None:
    """Delete a rule."""
    store = _open_store(config)
    try:
        removed = store.remove(rule_id)
    except IoTRulesError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Removed rule {rule_id}: {removed.name}")


@rules.command("enable")
@click.argument("rule_id")
@click.pass_obj
def enable_rule(config: IoTRulesConfig, rule_id: str) -> None:
    """Enable a rule."""
    store = _open_store(config)
    try:
        store.set_enabled(rule_id, True)
    except IoTRulesError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Enabled {rule_id}")


@rules.command("disable")
@click.argument("rule_id")
@click.pass_obj
def disable_rule(config: IoTRulesConfig, rule_id: str) -> None:
    """Disable a rule without deleting it."""
    store = _open_store(config)
    try:
        store.set_enabled(rule_id, False)
    except IoTRulesError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Disabled {rule_id}")


@rules.command("export")
@click.argument("path", required=False, type=click.Path(dir_okay=False))
@click.pass_obj
def export_cmd(config: IoTRulesConfig, path: str | None) -> None:
    """Export rules as a JSON array (stdout if no PATH)."""
    store = _open_store(config)
    data = store.export_json()
    if path is None:
        click.echo(data)
        return
    Path(path).write_text(data + "\n", encoding="utf-8")
    click.echo(f"Exported {len(store)} rule(s) to {path}")


@rules.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def import_cmd(config: IoTRulesConfig, path: str) -> None:
    """Replace all rules with the contents of a JSON export."""
    store = _open_store(config)
    try:
        count = store.import_json(Path(path).read_text(encoding="utf-8"))
    except (IoTRulesError, UnicodeDecodeError) as e:
        raise click.ClickException(f"Import rejected, no rules changed: {e}") from e
    click.echo(f"Imported {count} rule(s) from {path}")


@main.command()
@click.option("--category", default=None, help="Only show one category")
def templates(category: str | None) -> None:
    """List built-in rule templates."""
    from .rules.templates import get_categories, list_templates

    found = list_templates(category)
    if not found:
        click.echo(f"No templates in category {category!r}. "
                   f"Categories: {', '.join(get_categories())}")
        return
    for t in found:
        logic = f" {t.logic} ".join(t.conditions)
        click.echo(f"  {t.icon} {t.id:<20} {t.name}: {logic}")


@main.command()
@click.argument("telemetry_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--deliver/--no-deliver", default=False, help="Deliver triggered actions")
@click.option(
    "--state",
    "state_path",
    default=None,
    type=click.Path(dir_okay=False),
    help="Load/save trigger state so repeated runs only fire on new transitions",
)
@click.pass_obj
def evaluate(
    config: IoTRulesConfig, telemetry_file: str, deliver: bool, state_path: str | None
) -> None:
    """Evaluate rules against a telemetry file, tick by tick."""
    from .alert_queue import AlertQueue
    from .monitor import RuleMonitor
    from .notifications import NotificationDispatcher
    from .rules.dispatcher import ActionDispatcher, DispatchState
    from .rules.payload import describe_action
    from .telemetry import load_ticks

    store = _open_store(config)
    try:
        ticks = load_ticks(telemetry_file)
    except IoTRulesError as e:
        raise click.ClickException(str(e)) from e

    state = DispatchState()
    if state_path and Path(state_path).exists():
        try:
            state = DispatchState.from_dict(
                json.loads(Path(state_path).read_text(encoding="utf-8"))
            )
        except (json.JSONDecodeError, UnicodeDecodeError, IoTRulesError) as e:
            raise click.ClickException(f"Cannot load state {state_path}: {e}") from e

    notifier = None
    alerts = None
    if deliver:
        alerts = AlertQueue(
            max_size=config.monitor.alert_queue_size,
            ttl_seconds=config.monitor.alert_ttl_seconds,
        )
        notifier = NotificationDispatcher(config.notifications, alert_queue=alerts)
    monitor = RuleMonitor(store, dispatcher=ActionDispatcher(state), notifier=notifier)

    async def _run() -> None:
        try:
            for number, tick in enumerate(ticks, 1):
                for intent in await monitor.process(tick):
                    click.echo(
                        f"tick {number}: {intent.rule_name} fired on "
                        f"{intent.device_id} → {describe_action(intent.action)}"
                    )
                if alerts is not None:
                    for alert in await alerts.pop_all():
                        click.echo(
                            f"  alert [{alert.rule_name}] {alert.device_id}: "
                            f"{alert.action.message}"
                        )
        finally:
            await monitor.close()

    asyncio.run(_run())

    if state_path:
        Path(state_path).write_text(
            json.dumps(state.to_dict(), indent=2), encoding="utf-8"
        )

    summary = monitor.stats.summary()
    click.echo(
        f"{summary['passes']} tick(s), {summary['intents']} trigger(s), "
        f"{summary['delivered']} delivered, {summary['failed']} failed"
    )


if __name__ == "__main__":
    main()
