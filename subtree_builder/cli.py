"""CLI entrypoint for subtree-builder."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Annotated, TypeVar

import typer

from subtree_builder import __version__
from subtree_builder.commands import SubtreeCommandBuilder
from subtree_builder.config import AppConfig, default_config_template, load_app_config
from subtree_builder.errors import ConfigError, SubtreeError
from subtree_builder.git import resolve_repo_root
from subtree_builder.output import (
    CommandResult,
    render_commands_human,
    render_commands_json,
    render_config_human,
    render_subtree_list,
)
from subtree_builder.reporting import LoggingReporter, configure_logging

T = TypeVar("T")

app = typer.Typer(
    name="subtree-builder",
    no_args_is_help=True,
    help="Generate git subtree commands from per-subtree configuration.",
)

RepoOption = Annotated[Path, typer.Option(help="Repository path.")]
ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Path to config TOML or YAML file."),
]
FormatOption = Annotated[str, typer.Option(help="Output format: human|json.")]


def version_callback(value: bool) -> None:
    """Print version and exit when --version is provided."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option("--version", help="Show version and exit.", callback=version_callback),
    ] = False,
    verbose: Annotated[
        int,
        typer.Option("--verbose", "-v", count=True, help="Increase log verbosity."),
    ] = 0,
) -> None:
    """Root command callback."""
    _ = version
    configure_logging(verbosity=verbose)


@app.command("add")
def add_command(
    names: Annotated[
        list[str] | None,
        typer.Argument(help="Subtree names. Defaults to every configured subtree."),
    ] = None,
    fail_quietly: Annotated[
        bool,
        typer.Option("--fail-quietly", help="Skip subtrees whose directory already exists."),
    ] = False,
    repo: RepoOption = Path("."),
    config_file: ConfigOption = None,
    format: FormatOption = "human",
) -> None:
    """Print the git subtree add command for each subtree."""
    output_format = _resolve_format(format)
    ctx = _prepare_context(repo, config_file)
    # Adding everything at once must not stop at subtrees that are already in place.
    quiet = fail_quietly or not names

    results: list[CommandResult] = []
    for name in names or list(ctx.app_config.subtrees):
        builder = ctx.builder(name)
        command = _or_exit(lambda: builder.add(fail_quietly=quiet))
        results.append(_result(builder, command or None, "nothing to add"))

    _emit(results, operation="add", ctx=ctx, output_format=output_format)


@app.command("pull")
def pull_command(
    names: Annotated[
        list[str] | None,
        typer.Argument(help="Subtree names. Defaults to every configured subtree."),
    ] = None,
    repo: RepoOption = Path("."),
    config_file: ConfigOption = None,
    format: FormatOption = "human",
) -> None:
    """Print the git subtree pull command for each subtree."""
    output_format = _resolve_format(format)
    ctx = _prepare_context(repo, config_file)

    results: list[CommandResult] = []
    for name in names or list(ctx.app_config.subtrees):
        builder = ctx.builder(name)
        results.append(_result(builder, builder.pull() or None, "pull disabled"))

    _emit(results, operation="pull", ctx=ctx, output_format=output_format)


@app.command("merge")
def merge_command(
    name: Annotated[str, typer.Argument(help="Subtree name.")],
    commit_id: Annotated[str, typer.Argument(help="Commit to merge into the subtree.")],
    tag: Annotated[str, typer.Option(help="Tag the commit corresponds to.")] = "",
    repo: RepoOption = Path("."),
    config_file: ConfigOption = None,
    format: FormatOption = "human",
) -> None:
    """Print the git subtree merge command for a commit."""
    output_format = _resolve_format(format)
    ctx = _prepare_context(repo, config_file)
    builder = ctx.builder(name)
    command = builder.merge(commit_id, tag=tag)
    _emit(
        [_result(builder, command or None, "merge disabled")],
        operation="merge",
        ctx=ctx,
        output_format=output_format,
    )


@app.command("push")
def push_command(
    name: Annotated[str, typer.Argument(help="Subtree name.")],
    repo: RepoOption = Path("."),
    config_file: ConfigOption = None,
    format: FormatOption = "human",
) -> None:
    """Print the git subtree push command."""
    output_format = _resolve_format(format)
    ctx = _prepare_context(repo, config_file)
    builder = ctx.builder(name)
    command = _or_exit(builder.push)
    _emit([_result(builder, command, None)], operation="push", ctx=ctx, output_format=output_format)


@app.command("split")
def split_command(
    name: Annotated[str, typer.Argument(help="Subtree name.")],
    repo: RepoOption = Path("."),
    config_file: ConfigOption = None,
    format: FormatOption = "human",
) -> None:
    """Print the git subtree split command."""
    output_format = _resolve_format(format)
    ctx = _prepare_context(repo, config_file)
    builder = ctx.builder(name)
    _emit(
        [_result(builder, builder.split(), None)],
        operation="split",
        ctx=ctx,
        output_format=output_format,
    )


@app.command("list")
def list_command(
    repo: RepoOption = Path("."),
    config_file: ConfigOption = None,
    format: FormatOption = "human",
) -> None:
    """List configured subtrees."""
    output_format = _resolve_format(format)
    ctx = _prepare_context(repo, config_file)
    app_config = ctx.app_config

    if output_format == "json":
        payload = {
            "subtrees": [
                {**subtree.to_dict(), "prefix": app_config.prefix_for(name)}
                for name, subtree in app_config.subtrees.items()
            ],
            "meta": {"config_source": app_config.source},
        }
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    typer.echo(render_subtree_list(app_config))


@app.command("config")
def config_command(
    repo: RepoOption = Path("."),
    config_file: ConfigOption = None,
    format: FormatOption = "human",
) -> None:
    """Show resolved configuration."""
    output_format = _resolve_format(format)
    ctx = _prepare_context(repo, config_file)

    if output_format == "json":
        typer.echo(json.dumps(ctx.app_config.to_dict(), sort_keys=True))
        return
    typer.echo(render_config_human(ctx.app_config))


@app.command("config-init")
def config_init_command(
    out: Annotated[Path, typer.Option(help="Output path for starter config TOML.")] = Path(
        ".subtrees.toml"
    ),
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite if file already exists."),
    ] = False,
) -> None:
    """Create a starter repository config file."""
    out_path = out.resolve()
    if out_path.exists() and not force:
        raise typer.BadParameter(
            f"Refusing to overwrite existing file: {out_path}. Use --force to overwrite."
        )
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(default_config_template(), encoding="utf-8")
    typer.echo(f"Wrote starter config: {out_path}")


@app.command("config-validate")
def config_validate_command(
    repo: RepoOption = Path("."),
    config_file: ConfigOption = None,
    format: FormatOption = "human",
) -> None:
    """Validate a config file and report configured subtrees."""
    output_format = _resolve_format(format)
    ctx = _prepare_context(repo, config_file)
    payload = {
        "ok": True,
        "source": ctx.app_config.source,
        "subtrees": list(ctx.app_config.subtrees),
    }
    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return
    typer.echo(
        "\n".join(
            [
                "Config is valid.",
                f"- source: {payload['source']}",
                f"- subtrees: {payload['subtrees']}",
            ]
        )
    )


def main() -> None:
    """Console script entrypoint."""
    app()


class _CommandContext:
    """Resolved repository, configuration and reporter shared by command flows."""

    def __init__(self, *, repo_root: Path, app_config: AppConfig) -> None:
        self.repo_root = repo_root
        self.app_config = app_config
        self.reporter = LoggingReporter()

    def builder(self, name: str) -> SubtreeCommandBuilder:
        try:
            subtree = self.app_config.get_subtree(name)
        except ConfigError as exc:
            raise typer.BadParameter(str(exc), param_hint="NAME") from exc
        return SubtreeCommandBuilder(
            subtree,
            self.app_config.prefix_for(name),
            reporter=self.reporter,
            root=self.repo_root,
        )


def _prepare_context(repo: Path, config_file: Path | None) -> _CommandContext:
    repo_root = resolve_repo_root(repo)
    try:
        app_config = load_app_config(repo_root, config_path=config_file)
    except ConfigError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc
    return _CommandContext(repo_root=repo_root, app_config=app_config)


def _resolve_format(value: str) -> str:
    output_format = value.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")
    return output_format


def _or_exit(operation: Callable[[], T]) -> T:
    try:
        return operation()
    except SubtreeError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _result(
    builder: SubtreeCommandBuilder, command: str | None, skip_reason: str | None
) -> CommandResult:
    return CommandResult(
        name=builder.name,
        prefix=builder.prefix,
        command=command,
        skipped=None if command else skip_reason,
    )


def _emit(
    results: list[CommandResult],
    *,
    operation: str,
    ctx: _CommandContext,
    output_format: str,
) -> None:
    if output_format == "json":
        typer.echo(
            render_commands_json(
                results,
                operation=operation,
                repo_root=str(ctx.repo_root),
                config_source=ctx.app_config.source,
            )
        )
        return

    rendered = render_commands_human(results)
    if rendered:
        typer.echo(rendered)
