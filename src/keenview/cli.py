"""CLI entry point for keenview."""

import json
import logging
import sys
from typing import Any

import click

from keenview import create_client
from keenview.client.models import Query, QueryResponse
from keenview.config import (
    REGISTRY,
    effective_value,
    load_settings,
    resolve_entry,
    serialize_value,
)
from keenview.errors import KeenViewError, ResultShapeError
from keenview.results import QueryOutcome, Success, classify_response, summarize

log = logging.getLogger("keenview.cli")

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _parse_assignments(pairs: tuple[str, ...]) -> dict[str, Any]:
    """Turn ``KEY=VALUE`` pairs into a dict, decoding JSON values where possible."""
    parsed: dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"Expected KEY=VALUE, got {pair!r}")
        try:
            parsed[key] = json.loads(raw)
        except ValueError:
            parsed[key] = raw
    return parsed


def _fail(message: str, hint: str | None = None) -> None:
    click.echo(message, err=True)
    if hint:
        click.echo(click.style(f"  hint: {hint}", dim=True), err=True)
    sys.exit(1)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """keenview analytics tool."""
    level = "DEBUG"
    if not verbose:
        try:
            level = load_settings().log_level.upper()
        except KeenViewError:
            level = "WARNING"
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


# ---- query / event -------------------------------------------------------


@main.command("query")
@click.argument("analysis")
@click.option("--collection", "event_collection", required=True, help="Event collection")
@click.option("--timeframe", default="this_7_days", show_default=True)
@click.option("--target-property", default=None)
@click.option("--group-by", default=None)
@click.option("--name", default=None, help="Query name")
@click.option("--property", "extra", multiple=True, help="Extra KEY=VALUE query property")
@click.option("--first-group", is_flag=True, help="Print the first group-by result")
def query_command(
    analysis: str,
    event_collection: str,
    timeframe: str,
    target_property: str | None,
    group_by: str | None,
    name: str | None,
    extra: tuple[str, ...],
    first_group: bool,
) -> None:
    """Run one analysis and print the response."""
    properties: dict[str, Any] = {"event_collection": event_collection, "timeframe": timeframe}
    if target_property:
        properties["target_property"] = target_property
    if group_by:
        properties["group_by"] = group_by
    properties.update(_parse_assignments(extra))

    try:
        client = create_client()
    except KeenViewError as e:
        _fail(str(e), e.hint)
        return

    outcomes: list[QueryOutcome] = []

    def on_response(response: QueryResponse) -> None:
        outcomes.append(classify_response(response))

    try:
        client.run_async_query(Query(analysis, properties, name=name), on_response).result()
    finally:
        client.close()

    if not outcomes:
        _fail("Query finished without a usable response", hint="Run with -v for details")
        return

    outcome = outcomes[0]
    click.echo(summarize(outcome))

    if not isinstance(outcome, Success):
        sys.exit(1)

    if first_group:
        try:
            click.echo(f"resultValue: {outcome.first_group_result()}")
        except (ResultShapeError, IndexError) as e:
            _fail(f"No group-by result: {e}")


@main.command("event")
@click.argument("collection")
@click.argument("properties", nargs=-1)
def event_command(collection: str, properties: tuple[str, ...]) -> None:
    """Send one event built from KEY=VALUE properties."""
    event = _parse_assignments(properties)
    try:
        client = create_client()
        sent = client.add_event(event, collection)
    except KeenViewError as e:
        _fail(str(e), e.hint)
        return
    client.close()

    if not sent:
        _fail(f"Event was not recorded in {collection}")
    click.echo(f"Recorded event in {collection}")


# ---- config group --------------------------------------------------------


@main.group()
def config() -> None:
    """View configuration settings."""


@config.command("list")
def config_list() -> None:
    """Show all settings with their effective values."""
    current_group = ""
    for entry in REGISTRY:
        group = entry.key.split(".")[0]
        if group != current_group:
            if current_group:
                click.echo()
            click.echo(click.style(f"[{group}]", bold=True))
            current_group = group

        try:
            value, source = effective_value(entry)
        except KeenViewError as e:
            _fail(str(e), e.hint)
            return
        shown = serialize_value(entry, value)

        if entry.secret and source == "env":
            display = "********"
        else:
            display = shown if shown else "(empty)"

        source_tag = click.style(f"[{source}]", fg="cyan" if source == "env" else "yellow")
        click.echo(f"  {entry.key} = {display}  {source_tag}")
        click.echo(click.style(f"    {entry.description} ({entry.env_var})", dim=True))


@config.command("get")
@click.argument("key")
def config_get(key: str) -> None:
    """Get the effective value of a setting."""
    entry = resolve_entry(key)
    if not entry:
        _fail(f"Unknown setting: {key}")
        return

    try:
        value, source = effective_value(entry)
    except KeenViewError as e:
        _fail(str(e), e.hint)
        return

    if entry.secret and source == "env":
        click.echo("********")
    else:
        shown = serialize_value(entry, value)
        click.echo(shown if shown else "(empty)")
