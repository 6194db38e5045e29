"""CLI interface for reincarnation."""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from reincarnation import __version__
from reincarnation.config import CHECKS, ConfigError, ConfigStore, ReincarnationConfig
from reincarnation.constants import (
    CHECK_CRON_TIME,
    CHECK_REGEX_CRON_TIME,
    CHECK_REGEX_VALUE,
    FIELD_ACTIVE_CRON,
    FIELD_ACTIVE_TRIGGER,
    FIELD_CRON_TIME,
    FIELD_MAX_DEPTH,
    FIELD_NO_CHANGE,
    FIELD_REG_EXPRS,
    FIELD_REGEX_CRON_TIME,
    FIELD_REGEX_DESCRIPTION,
    FIELD_REGEX_VALUE,
)
from reincarnation.logger import get_logger
from reincarnation.validation import check_cron_time, check_regex_cron_time, check_regex_value

console = Console()


def _open_store() -> ConfigStore:
    """Opens the store of the current project, exiting on a corrupt file."""
    try:
        return ConfigStore(Path.cwd())
    except ConfigError as e:
        get_logger().error(str(e))
        sys.exit(1)


def _flag_cell(enabled: bool, raw: Optional[str]) -> str:
    style = "green" if enabled else "red"
    label = "enabled" if enabled else "disabled"
    return f"[{style}]{label}[/{style}] [dim]({escape(repr(raw))})[/dim]"


def _report_form_checks(config: ReincarnationConfig) -> None:
    """Logs the advisory checks of a submission (they never block the save)."""
    logger = get_logger()

    result = check_cron_time(config.cron_time)
    if not result.is_ok:
        logger.validation(FIELD_CRON_TIME, result)

    for index, rule in enumerate(config.reg_exprs, start=1):
        for name, result in (
            (f"rule {index} {FIELD_REGEX_VALUE}", check_regex_value(rule.value)),
            (f"rule {index} {FIELD_REGEX_CRON_TIME}", check_regex_cron_time(rule.cron_time)),
        ):
            if not result.is_ok:
                logger.validation(name, result)


@click.group()
@click.version_option(version=__version__, prog_name="reincarnation")
@click.option("-q", "--quiet", is_flag=True, help="Only print warnings, errors and check results")
def main(quiet: bool):
    """Reincarnation - configures the periodic restart of failed jobs."""
    get_logger().set_quiet(quiet)


@main.command()
def show():
    """Displays the current configuration."""
    store = _open_store()
    config = store.config

    table = Table(title="Periodic Reincarnation")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Cron restart", _flag_cell(config.is_cron_active(), config.active_cron))
    table.add_row("Cron time", escape(config.cron_time or "-"))
    table.add_row("Afterbuild restart", _flag_cell(config.is_trigger_active(), config.active_trigger))
    table.add_row("Max restart depth", str(config.max_retry_depth))
    table.add_row(
        "Restart unchanged jobs",
        _flag_cell(config.is_restart_unchanged_enabled(), config.no_change),
    )
    console.print(table)

    if not config.reg_exprs:
        console.print("[dim]No regular expressions configured.[/dim]")
        return

    rules = Table(title="Regular expressions")
    rules.add_column("#", style="dim")
    rules.add_column("RegEx", style="cyan")
    rules.add_column("Description")
    rules.add_column("Cron time", style="blue")
    for index, rule in enumerate(config.reg_exprs, start=1):
        cron = escape(rule.cron_time) if rule.has_cron_override() else f"[dim]{escape(config.cron_time or '')} (global)[/dim]"
        rules.add_row(str(index), escape(rule.value), escape(rule.description or "-"), cron)
    console.print(rules)


@main.command()
@click.option("--active-cron", type=str, help='Cron restart flag ("true" enables it)')
@click.option("--cron-time", type=str, help="Global cron time")
@click.option("--active-trigger", type=str, help='Afterbuild restart flag ("true" enables it)')
@click.option("--max-depth", type=str, help="Maximal consecutive afterbuild restarts")
@click.option("--no-change", type=str, help='Restart unchanged jobs flag ("true" enables it)')
@click.option(
    "--rule",
    "rules",
    type=(str, str),
    multiple=True,
    metavar="REGEX CRON",
    help='Regular expression and its cron time ("" uses the global one). Replaces existing rules.',
)
@click.option("--description", "descriptions", multiple=True, help="Description of the rule at the same position")
@click.option("--clear-rules", is_flag=True, help="Remove all regular expressions")
def configure(
    active_cron: Optional[str],
    cron_time: Optional[str],
    active_trigger: Optional[str],
    max_depth: Optional[str],
    no_change: Optional[str],
    rules: tuple[tuple[str, str], ...],
    descriptions: tuple[str, ...],
    clear_rules: bool,
):
    """Submits a new configuration.

    Options not given keep their current value. The whole configuration is
    then rewritten, as a form submission would.
    """
    store = _open_store()
    form = store.config.to_form()

    overrides = {
        FIELD_ACTIVE_CRON: active_cron,
        FIELD_CRON_TIME: cron_time,
        FIELD_ACTIVE_TRIGGER: active_trigger,
        FIELD_MAX_DEPTH: max_depth,
        FIELD_NO_CHANGE: no_change,
    }
    form.update({name: value for name, value in overrides.items() if value is not None})

    if clear_rules:
        form[FIELD_REG_EXPRS] = []
    if rules:
        form[FIELD_REG_EXPRS] = [
            {
                FIELD_REGEX_VALUE: value,
                FIELD_REGEX_DESCRIPTION: descriptions[index] if index < len(descriptions) else "",
                FIELD_REGEX_CRON_TIME: cron,
            }
            for index, (value, cron) in enumerate(rules)
        ]

    _report_form_checks(ReincarnationConfig.from_form(form))
    store.configure(form)


@main.command()
@click.argument(
    "field_name",
    type=click.Choice(["cron", "regex", "regex-cron"]),
)
@click.argument("value", type=str)
def check(field_name: str, value: str):
    """Checks a single field value.

    FIELD_NAME: cron, regex or regex-cron

    Exits with code 1 if the value cannot be used.
    """
    checks = {
        "cron": CHECK_CRON_TIME,
        "regex": CHECK_REGEX_VALUE,
        "regex-cron": CHECK_REGEX_CRON_TIME,
    }
    result = CHECKS[checks[field_name]](value)
    get_logger().validation(checks[field_name], result)
    if result.is_error:
        sys.exit(1)


@main.command()
@click.argument("text", type=str)
def match(text: str):
    """Lists the regular expressions found in TEXT."""
    store = _open_store()
    matched = store.rules_for(text)
    if not matched:
        console.print("[yellow]No regular expression matches.[/yellow]")
        return

    for rule in matched:
        cron = rule.effective_cron_time(store.cron_time)
        console.print(f"[cyan]{escape(rule.value)}[/cyan] [dim]->[/dim] {escape(cron or '-')}")


@main.command()
def reset():
    """Restores the default configuration."""
    store = _open_store()
    if not click.confirm("Reset the configuration to defaults?", default=False):
        console.print("[dim]Reset cancelled.[/dim]")
        return
    store.reset()


if __name__ == "__main__":
    main()
