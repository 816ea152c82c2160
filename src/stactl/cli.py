from __future__ import annotations

import json
import logging
from typing import Any, Callable, List, Optional, Sequence

import click
from tabulate import tabulate

from stalib.config import Config, ConfigError, Server, load_config, resolve_server
import stalib.clients as clients
from stalib import fields, navigation
from stalib.errors import (
    BrowserError,
    format_config_error,
    format_error_message,
    suggest_troubleshooting_steps,
)
from stalib.session import BrowserSession, BrowserState
from stalib.views import Collection, SingleEntity


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--json-output",
    "json_output",
    is_flag=True,
    help="Output JSON instead of tables (pretty-printed)",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Enable verbose logging to stderr (what the CLI is doing)",
)
@click.pass_context
def cli(ctx: click.Context, json_output: bool, verbose: bool) -> None:
    """SensorThings API browser.

    Browse the entity sets of a SensorThings (or similar hypermedia) API,
    follow navigation links and page through collections. Servers come from
    a YAML config loaded via XDG or STACTL_CONFIG, or from --url.
    """
    ctx.ensure_object(dict)
    ctx.obj["json"] = json_output
    ctx.obj["verbose"] = verbose

    # Configure logging once per process
    level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def main() -> None:  # entry point
    cli(standalone_mode=True)


def server_options(func: Callable) -> Callable:
    """Attach the options that pick a server and its credentials."""
    options = [
        click.option("--server", "server_name", default=None, help="Server name from config; uses default if omitted"),
        click.option("--url", default=None, help="Service root URL; overrides --server"),
        click.option("--username", default=None, help="Username for HTTP basic auth"),
        click.option("--password", default=None, help="Password for HTTP basic auth"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _load_config_or_exit(log: logging.Logger) -> Config:
    try:
        log.info("Loading config...")
        cfg = load_config()
        log.info("Loaded config from %s", getattr(cfg, "source_path", "<unknown>"))
        return cfg
    except ConfigError as e:
        click.echo(format_config_error(e), err=True)
        raise SystemExit(2)


def _resolve_server_or_exit(
    log: logging.Logger,
    server_name: Optional[str],
    url: Optional[str],
    username: Optional[str],
    password: Optional[str],
) -> Server:
    cfg: Optional[Config] = None
    if not url or server_name:
        try:
            cfg = load_config()
            log.info("Loaded config from %s", cfg.source_path)
        except ConfigError as e:
            # Running without a config file is fine; a broken one is not.
            if "no config file found" not in str(e).lower() or server_name:
                click.echo(format_config_error(e), err=True)
                raise SystemExit(2)
            log.info("No config file; using %s", url or "the built-in default server")
    try:
        return resolve_server(cfg, server_name, url, username, password)
    except ConfigError as e:
        click.echo(format_config_error(e), err=True)
        raise SystemExit(2)


def _fail(ctx: click.Context, operation: str, error: BrowserError, context: dict) -> None:
    click.echo(format_error_message(operation, error, context), err=True)
    if ctx.obj.get("verbose"):
        suggestions = suggest_troubleshooting_steps(operation, error)
        if suggestions:
            click.echo("\nTroubleshooting suggestions:", err=True)
            for suggestion in suggestions[:3]:  # Show top 3 suggestions
                click.echo(f"  • {suggestion}", err=True)
    raise SystemExit(2)


def _connected_session(ctx: click.Context, log: logging.Logger, server: Server) -> BrowserSession:
    session = BrowserSession(fetcher=clients.RequestsFetcher(timeout=server.timeout))
    log.info("Connecting to server '%s' at %s", server.name, server.url)
    state = session.connect(server.url, server.credentials())
    if state.root_error is not None:
        _fail(ctx, "connect", state.root_error, {"server": state.base_url})
    log.info("Found %d entity sets", len(state.entity_sets))
    return session


def _truncate(text: str, width: int) -> str:
    if width > 0 and len(text) > width:
        return text[: width - 3] + "..."
    return text


def _collection_rows(items: Sequence[Any], width: int) -> List[List[Any]]:
    rows = []
    for i, item in enumerate(items):
        rows.append(
            [
                i,
                _truncate(fields.title_for(item, f"Item {i}"), width),
                fields.display_id(item),
                len(fields.navigation_links(item)),
            ]
        )
    return rows


def _entity_rows(entity: dict, width: int) -> List[List[str]]:
    rows = []
    for key, value, c in fields.iter_fields(entity):
        if c.is_explorable:
            shown = c.url or ""
        elif c.kind is fields.FieldKind.NESTED:
            shown = fields.summarize_nested(value, width)
        else:
            shown = fields.format_primitive(value)
        rows.append([key, c.kind.value, _truncate(shown, width)])
    return rows


def _view_to_json(state: BrowserState, items: Optional[Sequence[Any]] = None, pages: int = 1) -> dict:
    out: dict = {
        "breadcrumbs": [{"label": c.label, "url": c.url} for c in state.stack],
    }
    view = state.view
    if isinstance(view, Collection):
        out.update(
            {
                "kind": "collection",
                "items": list(items if items is not None else view.items),
                "count": view.total_count,
                "next_link": view.next_link,
                "pages": pages,
            }
        )
    elif isinstance(view, SingleEntity):
        out.update(
            {
                "kind": "entity",
                "entity": view.entity,
                "links": [
                    {"key": key, "label": label, "url": url}
                    for key, label, url in fields.navigation_links(view.entity)
                ],
            }
        )
    return out


def _echo_view(
    ctx: click.Context,
    log: logging.Logger,
    state: BrowserState,
    width: int,
    items: Optional[Sequence[Any]] = None,
    pages: int = 1,
) -> None:
    if ctx.obj.get("json"):
        click.echo(json.dumps(_view_to_json(state, items, pages), indent=2, sort_keys=True))
        return

    click.echo(navigation.breadcrumb_text(state.stack))
    view = state.view
    if isinstance(view, Collection):
        shown = list(items if items is not None else view.items)
        if not shown:
            click.echo("No items found")
        else:
            log.info("Rendering %d items", len(shown))
            click.echo(tabulate(_collection_rows(shown, width), headers=["#", "TITLE", "ID", "LINKS"]))
        if view.total_count is not None:
            click.echo(f"\nTotal count: {view.total_count}")
        if view.next_link:
            click.echo(f"Next page: {view.next_link}")
    elif isinstance(view, SingleEntity):
        log.info("Rendering %d fields", len(view.entity))
        click.echo(tabulate(_entity_rows(view.entity, width), headers=["FIELD", "KIND", "VALUE"]))


def _find_entity_set(state: BrowserState, name: str):
    wanted = name.lower()
    for entity_set in state.entity_sets:
        if entity_set.name.lower() == wanted:
            return entity_set
    return None


# SERVERS commands


@cli.group()
@click.pass_context
def servers(ctx: click.Context) -> None:  # noqa: D401
    """Configured server commands."""
    pass


@servers.command("list")
@click.pass_context
def servers_list(ctx: click.Context) -> None:
    """List configured servers."""
    log = logging.getLogger("stactl.servers")
    cfg = _load_config_or_exit(log)

    rows = []
    for name, server in sorted(cfg.servers.items()):
        rows.append(
            [
                name,
                (server.url or "—"),
                (server.username or "—"),
                "yes" if (cfg.default_server == name) else "—",
            ]
        )

    if ctx.obj.get("json"):
        out = {
            "servers": [
                {
                    "name": r[0],
                    "url": None if r[1] == "—" else r[1],
                    "username": None if r[2] == "—" else r[2],
                    "default": r[3] == "yes",
                }
                for r in rows
            ]
        }
        click.echo(json.dumps(out, indent=2, sort_keys=True))
    else:
        log.info("Rendering table output for %d servers", len(rows))
        click.echo(tabulate(rows, headers=["NAME", "URL", "USERNAME", "DEFAULT"]))


@servers.command("show")
@click.option("--server", "server_name", help="Server name; uses default if omitted")
@click.pass_context
def servers_show(ctx: click.Context, server_name: Optional[str]) -> None:
    """Show details for a server."""
    log = logging.getLogger("stactl.servers")
    cfg = _load_config_or_exit(log)

    name = server_name or cfg.default_server
    if not name:
        click.echo("No server specified and no default_server set in config", err=True)
        raise SystemExit(2)

    server = cfg.servers.get(name)
    if not server:
        click.echo(f"Server not found: {name}", err=True)
        raise SystemExit(2)

    if ctx.obj.get("json"):
        out = {
            "name": server.name,
            "url": server.url or None,
            "username": server.username,
            "password_set": bool(server.password),
            "timeout": server.timeout,
            "default": cfg.default_server == name,
        }
        click.echo(json.dumps(out, indent=2, sort_keys=True))
        return

    rows = [
        ["name", server.name],
        ["url", server.url or "—"],
        ["username", server.username or "—"],
        ["password", "set" if server.password else "—"],
        ["timeout", server.timeout],
        ["default", "yes" if (cfg.default_server == name) else "—"],
    ]
    log.info("Rendering server details for '%s'", name)
    click.echo(tabulate(rows, headers=["FIELD", "VALUE"]))


# SETS commands


@cli.group()
@click.pass_context
def sets(ctx: click.Context) -> None:  # noqa: D401
    """Entity set commands."""
    pass


@sets.command("list")
@server_options
@click.pass_context
def sets_list(
    ctx: click.Context,
    server_name: Optional[str],
    url: Optional[str],
    username: Optional[str],
    password: Optional[str],
) -> None:
    """List the entity sets a server exposes."""
    log = logging.getLogger("stactl.sets")
    server = _resolve_server_or_exit(log, server_name, url, username, password)
    state = _connected_session(ctx, log, server).state

    if ctx.obj.get("json"):
        out = {
            "base_url": state.base_url,
            "entity_sets": [
                {"name": s.name, "url": s.url, "description": s.description}
                for s in state.entity_sets
            ],
        }
        click.echo(json.dumps(out, indent=2, sort_keys=True))
        return

    rows = [[s.name, s.url, s.description or "—"] for s in state.entity_sets]
    log.info("Rendering %d entity sets", len(rows))
    click.echo(tabulate(rows, headers=["NAME", "URL", "DESCRIPTION"]))


# RESOURCE commands


@cli.command("get")
@click.argument("target")
@server_options
@click.option("-p", "--pages", default=1, type=click.IntRange(min=1), help="Number of pages to fetch (default: 1)")
@click.option("--max-col-width", default=80, help="Max column width for display (default: 80)")
@click.pass_context
def get_resource(
    ctx: click.Context,
    target: str,
    server_name: Optional[str],
    url: Optional[str],
    username: Optional[str],
    password: Optional[str],
    pages: int,
    max_col_width: int,
) -> None:
    """Show an entity set, collection or entity.

    TARGET is an entity set name (e.g. Things) or a URL relative to the
    service root (e.g. "Things(1)/Datastreams?$top=5").
    """
    log = logging.getLogger("stactl.get")
    server = _resolve_server_or_exit(log, server_name, url, username, password)
    session = _connected_session(ctx, log, server)

    entity_set = _find_entity_set(session.state, target)
    if entity_set is not None:
        state = session.open(entity_set.url, entity_set.name)
    else:
        state = session.open(target, target)
    if state.content_error is not None:
        _fail(ctx, "load resource", state.content_error, {"target": target, "server": state.base_url})

    items: Optional[List[Any]] = None
    fetched = 1
    if isinstance(state.view, Collection):
        items = list(state.view.items)
        while fetched < pages and isinstance(state.view, Collection) and state.view.next_link:
            log.info("Fetching page %d from %s", fetched + 1, state.view.next_link)
            state = session.paginate(state.view.next_link)
            if state.content_error is not None:
                _fail(ctx, "load next page", state.content_error, {"target": target, "server": state.base_url})
            fetched += 1
            if isinstance(state.view, Collection):
                items.extend(state.view.items)

    _echo_view(ctx, log, state, max_col_width, items, fetched)


@cli.command("walk")
@click.argument("entity_set_name")
@click.argument("steps", nargs=-1)
@server_options
@click.option("--max-col-width", default=80, help="Max column width for display (default: 80)")
@click.pass_context
def walk(
    ctx: click.Context,
    entity_set_name: str,
    steps: Sequence[str],
    server_name: Optional[str],
    url: Optional[str],
    username: Optional[str],
    password: Optional[str],
    max_col_width: int,
) -> None:
    """Open an entity set and follow a path of links.

    Each STEP is either an item index (in a collection) or the name of a
    navigation link (on an entity), e.g. "stactl walk Things 0 Datastreams 1".
    """
    log = logging.getLogger("stactl.walk")
    server = _resolve_server_or_exit(log, server_name, url, username, password)
    session = _connected_session(ctx, log, server)

    entity_set = _find_entity_set(session.state, entity_set_name)
    if entity_set is None:
        names = ", ".join(s.name for s in session.state.entity_sets)
        click.echo(f"Entity set not found: {entity_set_name} (available: {names})", err=True)
        raise SystemExit(2)

    state = session.open(entity_set.url, entity_set.name)
    if state.content_error is not None:
        _fail(ctx, "open entity set", state.content_error, {"target": entity_set.name, "server": state.base_url})

    for step in steps:
        view = state.view
        if isinstance(view, Collection):
            if not step.isdigit() or int(step) >= len(view.items):
                click.echo(f"Step '{step}' is not an item index (0-{len(view.items) - 1})", err=True)
                raise SystemExit(2)
            item = view.items[int(step)]
            link = fields.self_link(item)
            if not link:
                click.echo(f"Item {step} has no {fields.SELF_LINK_KEY}", err=True)
                raise SystemExit(2)
            label = fields.title_for(item, f"Item {step}")
        elif isinstance(view, SingleEntity):
            match = fields.find_navigation_link(view.entity, step)
            if match is None:
                available = ", ".join(label for _, label, _ in fields.navigation_links(view.entity))
                click.echo(f"No navigation link '{step}' (available: {available or 'none'})", err=True)
                raise SystemExit(2)
            label, link = match
        else:
            click.echo("Nothing loaded to walk from", err=True)
            raise SystemExit(2)

        log.info("Following '%s' -> %s", label, link)
        state = session.follow(link, label)
        if state.content_error is not None:
            _fail(ctx, f"follow '{step}'", state.content_error, {"target": step, "server": state.base_url})

    _echo_view(ctx, log, state, max_col_width)


@cli.command()
@server_options
@click.pass_context
def tui(
    ctx: click.Context,
    server_name: Optional[str],
    url: Optional[str],
    username: Optional[str],
    password: Optional[str],
) -> None:
    """Launch interactive TUI for API exploration."""
    log = logging.getLogger("stactl.tui")
    server = _resolve_server_or_exit(log, server_name, url, username, password)
    try:
        from statui.app import run_tui
    except ImportError as e:
        click.echo(f"TUI dependencies not available: {e}", err=True)
        raise SystemExit(1)
    run_tui(server)


if __name__ == "__main__":  # pragma: no cover
    main()
