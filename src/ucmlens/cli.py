"""Command-line interface for ucmlens."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

import click
from ucmlens import __version__
from ucmlens.config import (
    ProjectConfig,
    find_project_root,
    load_config,
    save_config,
    set_config_value,
)
from ucmlens.exceptions import ConfigError
from ucmlens.naming.libinfo import parse_lib_info
from ucmlens.ui.console import Console

console = Console()


def _get_project_root(path: str | None = None) -> Path:
    """Find the project root or error."""
    if path:
        root = Path(path).resolve()
        if not root.exists():
            console.error(f"Path does not exist: {path}")
            sys.exit(1)
        return root

    root = find_project_root()
    if root is None:
        console.error(
            "No ucmlens project found. Run 'ucmlens init' first, "
            "or specify a path with --path."
        )
        sys.exit(1)
    return root


def _load_project_config(path: str | None) -> ProjectConfig:
    """Load the project config if there is one, else defaults."""
    root = Path(path).resolve() if path else find_project_root()
    if root is None:
        return ProjectConfig()
    try:
        return load_config(root)
    except ConfigError as e:
        console.error(str(e))
        sys.exit(1)


def _apply_scope(config: ProjectConfig, project: str | None, branch: str | None) -> ProjectConfig:
    if project:
        config.scope.project = project
    if branch:
        config.scope.branch = branch
    return config


def _build_intelligence(config: ProjectConfig, require_scope: bool = True):
    """Create the editor-intelligence service for a one-shot command."""
    from ucmlens.providers.context import EditorIntelligence

    if require_scope and not config.scope.project:
        console.error(
            "No project scope. Pass --project or run "
            "'ucmlens config set scope.project <name>'."
        )
        sys.exit(1)
    return EditorIntelligence.from_config(config)


def scope_options(func):
    """Shared --path/--project/--branch options."""
    func = click.option("--branch", "-b", default=None, help="Branch name (default: main).")(func)
    func = click.option("--project", default=None, help="UCM project name.")(func)
    func = click.option("--path", "-p", default=None, help="Path to the project root.")(func)
    return func


@click.group()
@click.version_option(version=__version__, prog_name="ucmlens")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr.")
def main(verbose: bool):
    """ucmlens - editor intelligence for Unison scratch files, backed by UCM."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


@main.command()
@click.option("--path", "-p", default=None, help="Path to the project root.")
@click.option("--project", default=None, help="UCM project name.")
@click.option("--branch", "-b", default=None, help="Branch name.")
@click.option("--host", default=None, help="UCM codebase API host.")
@click.option("--port", type=int, default=None, help="UCM codebase API port.")
def init(
    path: str | None,
    project: str | None,
    branch: str | None,
    host: str | None,
    port: int | None,
):
    """Initialize ucmlens for a directory of Unison scratch files."""
    root = Path(path or ".").resolve()
    if not root.exists():
        console.error(f"Path does not exist: {root}")
        sys.exit(1)

    console.banner()
    console.info(f"Initializing ucmlens for: {root}")

    try:
        config = load_config(root)
    except ConfigError as e:
        console.error(str(e))
        sys.exit(1)
    config.name = root.name
    config.root_path = str(root)
    _apply_scope(config, project, branch)
    if host:
        config.store.host = host
    if port:
        config.store.port = port

    try:
        save_config(root, config)
    except ConfigError as e:
        console.error(str(e))
        sys.exit(1)
    console.success("Configuration saved")
    console.info(f"Codebase API: {config.store.base_url}")
    if config.scope.project:
        console.info(f"Scope: {config.scope.project}/{config.scope.branch}")
    else:
        console.warning("No project set. Run 'ucmlens config set scope.project <name>'.")


@main.command()
@click.argument("fqn")
def libinfo(fqn: str):
    """Show how a lib.* FQN splits into library, version and path."""
    console.show_lib_info(fqn, parse_lib_info(fqn))


@main.command()
@click.argument("identifier")
@scope_options
def resolve(identifier: str, path: str | None, project: str | None, branch: str | None):
    """Resolve a hash, FQN or short name to its canonical definition."""
    config = _apply_scope(_load_project_config(path), project, branch)
    intelligence = _build_intelligence(config)
    scope = intelligence.scope

    async def _run():
        try:
            return await intelligence.resolver.resolve(identifier, scope)
        finally:
            await intelligence.close()

    resolved = asyncio.run(_run())
    if resolved is None:
        console.error(f"Could not resolve '{identifier}' in {scope}")
        sys.exit(1)
    console.show_resolved(resolved)


@main.command()
@click.argument("query")
@scope_options
def complete(query: str, path: str | None, project: str | None, branch: str | None):
    """List completions for a partial (dotted) identifier."""
    from ucmlens.providers.base import Position, TextDocument

    config = _apply_scope(_load_project_config(path), project, branch)
    intelligence = _build_intelligence(config)
    document = TextDocument("cli:complete", query)

    async def _run():
        try:
            return await intelligence.completion.provide_completion_items(
                document, Position(line=0, character=len(query))
            )
        finally:
            await intelligence.close()

    console.show_completions(asyncio.run(_run()))


@main.command()
@click.argument("name")
@scope_options
def hover(name: str, path: str | None, project: str | None, branch: str | None):
    """Show the hover card for a name, keyword or literal."""
    from ucmlens.providers.base import Position, TextDocument

    config = _apply_scope(_load_project_config(path), project, branch)
    # Keywords and literals need no scope
    intelligence = _build_intelligence(config, require_scope=False)
    document = TextDocument("cli:hover", name)

    async def _run():
        try:
            return await intelligence.hover.provide_hover(
                document, Position(line=0, character=0)
            )
        finally:
            await intelligence.close()

    result = asyncio.run(_run())
    if result is None:
        console.warning(f"Nothing to show for '{name}'")
        sys.exit(1)
    console.show_hover(result)


@main.command()
@scope_options
def serve(path: str | None, project: str | None, branch: str | None):
    """Start the language server on stdio.

    Point your editor's LSP client at ``ucmlens serve``. The project scope
    comes from .ucmlens/config.json, --project/--branch, or the client's
    initializationOptions, and can be switched with a ucm/setScope
    notification.
    """
    from ucmlens.lsp.server import LSPServer
    from ucmlens.providers.context import EditorIntelligence

    # stdout carries the protocol
    global console
    console = Console(stderr=True)

    config = _apply_scope(_load_project_config(path), project, branch)
    server = LSPServer(EditorIntelligence.from_config(config))
    asyncio.run(server.run_stdio())


# =========================================================================
# Config Management
# =========================================================================

@main.command("config")
@click.argument("action", type=click.Choice(["set", "get", "show"]))
@click.argument("key", required=False)
@click.argument("value", required=False)
@click.option("--path", "-p", default=None, help="Path to the project root.")
def config_cmd(action: str, key: str | None, value: str | None, path: str | None):
    """Manage ucmlens configuration."""
    root = _get_project_root(path)
    try:
        config = load_config(root)
    except ConfigError as e:
        console.error(str(e))
        sys.exit(1)

    if action == "show":
        console.console.print_json(json.dumps(config.model_dump(), indent=2))
    elif action == "get":
        if not key:
            console.error("Usage: ucmlens config get <key>")
            sys.exit(1)
        data = config.model_dump()
        for part in key.split("."):
            if isinstance(data, dict) and part in data:
                data = data[part]
            else:
                console.error(f"Unknown key: {key}")
                sys.exit(1)
        console.console.print(f"{key} = {data}")
    elif action == "set":
        if not key or value is None:
            console.error("Usage: ucmlens config set <key> <value>")
            sys.exit(1)
        # Try to parse as JSON for non-string values
        try:
            parsed_value = json.loads(value)
        except json.JSONDecodeError:
            parsed_value = value
        try:
            save_config(root, set_config_value(config, key, parsed_value))
        except ConfigError as e:
            console.error(str(e))
            sys.exit(1)
        console.success(f"Set {key} = {parsed_value}")


if __name__ == "__main__":
    main()
