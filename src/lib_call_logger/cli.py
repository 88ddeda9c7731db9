"""CLI adapter for ``lib_call_logger`` built on ``lib_cli_exit_tools``.

Purpose
-------
Let operators check what their rules do before shipping them: how a pattern
is classified, which entries a rule file produces, and which effective
configuration a given call would receive.

Contents
--------
* :func:`cli` – root command wiring traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata.
* :func:`cli_compile` – shows the kind and expression of a pattern.
* :func:`cli_rules` – lists the effective rule entries of a rule file.
* :func:`cli_match` – resolves the effective config for one call.
* :func:`main` – entry point used by ``console_scripts`` registration.
"""

from __future__ import annotations

import json
import sys
from dataclasses import asdict
from importlib import metadata
from pathlib import Path
from typing import Any, Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .application.patterns import compile_pattern
from .application.registry import RuleRegistry
from .core import read_settings
from .domain.matching import CallIdentity, Matcher
from .domain.rules import RuleEntry

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000
_DISTRIBUTION: Final[str] = "lib_call_logger"

_CONFIG_OPTION = click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, exists=True, file_okay=True, dir_okay=False, readable=True),
    default=None,
    help="Rule file (TOML, JSON or YAML); environment overrides apply on top",
)
_INDENT_OPTION = click.option("--indent", type=int, default=2, show_default=True, help="JSON indentation")


def _resolve_version() -> str:
    try:
        return metadata.version(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        return "0.0.0"


@click.group(
    help="Configuration-driven call logging with live rule reload",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name=_DISTRIBUTION,
    message="lib_call_logger version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command storing the traceback preference for all subcommands."""

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        click.echo(f"{_DISTRIBUTION} (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', _DISTRIBUTION)}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")


@cli.command("compile", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("pattern")
@_INDENT_OPTION
def cli_compile(pattern: str, indent: int) -> None:
    """Show how PATTERN is classified and which expression it compiles to.

    Examples
    --------
    >>> from click.testing import CliRunner
    >>> result = CliRunner().invoke(cli, ["compile", "svc.Order.save", "--indent", "0"])
    >>> json.loads(result.output)["kind"]
    'method'
    """

    if not pattern.strip():
        raise click.BadParameter("Pattern must not be blank", param_hint="PATTERN")
    click.echo(json.dumps(_describe_matcher(compile_pattern(pattern)), indent=indent))


@cli.command("rules", context_settings=CLICK_CONTEXT_SETTINGS)
@_CONFIG_OPTION
@_INDENT_OPTION
def cli_rules(config_path: Optional[Path], indent: int) -> None:
    """List the effective rule entries in match-priority order."""

    registry = _load_registry(config_path)
    payload = {
        "enabled": registry.global_enabled(),
        "defaults": asdict(registry.snapshot.defaults),
        "entries": [_describe_entry(entry) for entry in registry.snapshot.entries],
    }
    click.echo(json.dumps(payload, indent=indent))


@cli.command("match", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("type_name")
@click.argument("method_name")
@click.option("--marker", "markers", multiple=True, help="Marker carried by the callable (repeatable)")
@_CONFIG_OPTION
@_INDENT_OPTION
def cli_match(
    type_name: str,
    method_name: str,
    markers: Sequence[str],
    config_path: Optional[Path],
    indent: int,
) -> None:
    """Print the effective config a call to TYPE_NAME.METHOD_NAME receives, or null."""

    registry = _load_registry(config_path)
    call = CallIdentity(type_name, method_name, frozenset(markers))
    config = registry.match(call) if registry.global_enabled() else None
    click.echo(json.dumps(asdict(config) if config is not None else None, indent=indent))


def _load_registry(config_path: Optional[Path]) -> RuleRegistry:
    return RuleRegistry(read_settings(str(config_path) if config_path is not None else None))


def _describe_matcher(matcher: Matcher) -> dict[str, Any]:
    return {"pattern": matcher.pattern, "kind": matcher.kind.value, "expression": matcher.expression}


def _describe_entry(entry: RuleEntry) -> dict[str, Any]:
    return _describe_matcher(entry.matcher) | {"config": asdict(entry.config)}


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name=_DISTRIBUTION,
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
