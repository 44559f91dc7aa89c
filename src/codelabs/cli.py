"""Command line interface for the codelabs catalog tool."""

from __future__ import annotations

import difflib
import logging
from pathlib import Path
from typing import Any, NoReturn

import click
import yaml
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from codelabs.api import ApiError
from codelabs.catalog import CatalogListingError, CatalogScanError, ScanResult, remove_codelabs
from codelabs.config import (
    CodelabsConfig,
    ConfigError,
    ConfigManager,
    ProjectPaths,
    assign_nested,
    flatten_for_env,
    resolve_paths,
    resolve_with_precedence,
)
from codelabs.publish import PublishResult, regenerate_api, scan_catalog

console = Console()

LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


def _configure_logging(level_name: str, verbose: bool) -> None:
    """Configure root logging from the configured level, or DEBUG when verbose."""
    level = logging.DEBUG if verbose else getattr(logging, level_name.upper(), logging.WARNING)
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> NoReturn:
    """Emit a standardized error and terminate the command.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output.
        click.ClickException: For non-JSON flows.
    """
    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool) -> None:
    """Print CLI output unless quiet mode suppresses it.

    Args:
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
        quiet: Whether quiet mode is active.
    """
    if quiet and mode != "error":
        return
    console.print(message)


def _format_summary_line(command: str, root: Path | str, metrics: dict[str, Any]) -> str:
    """Return a standardized summary line for CLI output.

    Args:
        command: Command name used in the summary prefix.
        root: Directory the command operated on.
        metrics: Ordered metrics to render as key=value pairs.

    Returns:
        str: Rich-formatted summary line.
    """
    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {root}: {parts}.[/green]"


def _failure_payload(scan: ScanResult) -> list[dict[str, str]]:
    """Describe each failed directory for JSON output.

    Args:
        scan: Scan result whose failures should be reported.

    Returns:
        list[dict[str, str]]: One entry per failure with directory, error type and message.
    """
    return [
        {
            "directory": failure.entry.name,
            "type": type(failure.error).__name__,
            "message": str(failure.error),
        }
        for failure in scan.failures
    ]


def _emit_failures(scan: ScanResult, *, quiet: bool) -> None:
    """Print each failed directory and its error.

    Args:
        scan: Scan result whose failures should be printed.
        quiet: Whether quiet mode is active.
    """
    if scan.ok:
        return
    _emit_message("[red]Codelabs that failed to load:[/red]", mode="error", quiet=quiet)
    for failure in scan.failures:
        _emit_message(f"  - {escape(str(failure))}", mode="error", quiet=quiet)


def _prepare(
    ctx: click.Context, root: Path | None, *, json_output: bool
) -> tuple[CodelabsConfig, ProjectPaths]:
    """Load configuration, configure logging and resolve project paths."""
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    try:
        config = ConfigManager().load()
        _configure_logging(config.logging.level, verbose)
        paths = resolve_paths(config, root=root)
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    return config, paths


def _publish(
    config: CodelabsConfig,
    paths: ProjectPaths,
    *,
    allow_partial: bool | None,
    json_output: bool,
    details: dict[str, Any] | None = None,
) -> PublishResult:
    """Regenerate the API document, turning failures into CLI errors."""
    extra = details or {}
    try:
        return regenerate_api(config, paths, allow_partial=allow_partial)
    except CatalogScanError as exc:
        if not json_output:
            _emit_failures(exc.result, quiet=False)
        _handle_cli_error(
            f"{len(exc.result.failures)} codelab(s) failed to load; {paths.output_file} was not updated.",
            code="scan_failed",
            json_output=json_output,
            details={**extra, "failures": _failure_payload(exc.result)},
            original=exc,
        )
    except CatalogListingError as exc:
        _handle_cli_error(
            str(exc), code="listing_failed", json_output=json_output, details=extra or None, original=exc
        )
    except ApiError as exc:
        _handle_cli_error(
            str(exc), code="publish_failed", json_output=json_output, details=extra or None, original=exc
        )


def _publish_payload(result: PublishResult, paths: ProjectPaths) -> dict[str, Any]:
    """Build the JSON payload describing a publish run.

    Args:
        result: Outcome of the publish run.
        paths: Resolved project paths.

    Returns:
        dict[str, Any]: Context, counts, index and failures for JSON output.
    """
    return {
        "context": {
            "codelabs_dir": str(paths.codelabs_dir),
            "output": str(result.output_path) if result.output_path else None,
            "partial": result.partial,
        },
        "counts": {
            "codelabs": len(result.scan.codelabs),
            "failures": len(result.scan.failures),
            "skipped": len(result.scan.skipped),
        },
        "index": dict(sorted(result.scan.index.items())),
        "failures": _failure_payload(result.scan),
    }


def _emit_publish(result: PublishResult, paths: ProjectPaths, *, quiet: bool) -> None:
    """Print failures, the partial warning and the summary line for a publish run.

    Args:
        result: Outcome of the publish run.
        paths: Resolved project paths.
        quiet: Whether quiet mode is active.
    """
    _emit_failures(result.scan, quiet=quiet)
    if result.partial:
        _emit_message(
            "[yellow]Published a partial catalog; fix the codelabs above and regenerate.[/yellow]",
            mode="warning",
            quiet=quiet,
        )
    _emit_message(
        _format_summary_line(
            "Generate",
            paths.codelabs_dir,
            {
                "codelabs": len(result.scan.codelabs),
                "failures": len(result.scan.failures),
                "output": result.output_path,
            },
        ),
        mode="summary",
        quiet=quiet,
    )


root_option = click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Project root containing the codelabs directory.",
)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="codelabs-tool")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Codelabs scans codelab directories and publishes the codelabs API document."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@cli.command()
@root_option
@click.option("--allow-partial", is_flag=True, help="Publish codelabs that loaded even if others failed.")
@click.option("--json", "json_output", is_flag=True, help="Emit a JSON summary.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def generate(
    ctx: click.Context,
    root: Path | None,
    allow_partial: bool,
    json_output: bool,
    quiet: bool,
) -> None:
    """Rescan every codelab and rewrite the API document."""
    config, paths = _prepare(ctx, root, json_output=json_output)
    quiet_enabled = quiet or config.cli.quiet_default

    result = _publish(config, paths, allow_partial=True if allow_partial else None, json_output=json_output)

    if json_output:
        console.print_json(data=_publish_payload(result, paths))
    else:
        _emit_publish(result, paths, quiet=quiet_enabled)

    if result.partial:
        raise SystemExit(1)


@cli.command()
@root_option
@click.option("--json", "json_output", is_flag=True, help="Emit catalog status as JSON.")
@click.pass_context
def status(ctx: click.Context, root: Path | None, json_output: bool) -> None:
    """Show the codelabs found on disk without publishing anything."""
    config, paths = _prepare(ctx, root, json_output=json_output)
    try:
        scan = scan_catalog(config, paths)
    except CatalogListingError as exc:
        _handle_cli_error(str(exc), code="listing_failed", json_output=json_output, original=exc)

    codelabs = sorted(scan.codelabs, key=lambda codelab: codelab.source)
    if json_output:
        console.print_json(
            data={
                "context": {"codelabs_dir": str(paths.codelabs_dir)},
                "counts": {"codelabs": len(codelabs), "failures": len(scan.failures)},
                "codelabs": [codelab.model_dump(mode="json") for codelab in codelabs],
                "failures": _failure_payload(scan),
            }
        )
    else:
        table = Table(title=f"Codelabs in {paths.codelabs_dir}")
        table.add_column("Source", style="cyan")
        table.add_column("Directory")
        table.add_column("Title")
        table.add_column("Categories")
        table.add_column("URL")
        for codelab in codelabs:
            directory = scan.directories.get(codelab.source)
            table.add_row(
                codelab.source,
                directory.name if directory else "-",
                codelab.title,
                ", ".join(codelab.category),
                codelab.url,
            )
        console.print(table)
        _emit_failures(scan, quiet=False)

    if not scan.ok:
        raise SystemExit(1)


@cli.command()
@click.argument("targets", nargs=-1, required=True)
@root_option
@click.option("--allow-partial", is_flag=True, help="Publish codelabs that loaded even if others failed.")
@click.option("--json", "json_output", is_flag=True, help="Emit a JSON summary.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def remove(
    ctx: click.Context,
    targets: tuple[str, ...],
    root: Path | None,
    allow_partial: bool,
    json_output: bool,
    quiet: bool,
) -> None:
    """Remove codelabs by directory name or source identifier, then regenerate.

    The API document is regenerated even when some targets could not be
    removed, so it always reflects what is on disk.
    """
    config, paths = _prepare(ctx, root, json_output=json_output)
    quiet_enabled = quiet or config.cli.quiet_default

    try:
        scan = scan_catalog(config, paths)
    except CatalogListingError as exc:
        _handle_cli_error(str(exc), code="listing_failed", json_output=json_output, original=exc)

    removal = remove_codelabs(paths.codelabs_dir, targets, scan)
    removal_payload = {
        "removed": [path.name for path in removal.removed],
        "missing": removal.missing,
        "errors": removal.errors,
    }
    if not json_output:
        for path in removal.removed:
            _emit_message(f"[cyan]Removed {escape(path.name)}.[/cyan]", mode="detail", quiet=quiet_enabled)
        for target in removal.missing:
            _emit_message(f"[red]Couldn't find {escape(target)}.[/red]", mode="error", quiet=quiet_enabled)
        for message in removal.errors:
            _emit_message(f"[red]Couldn't remove {escape(message)}[/red]", mode="error", quiet=quiet_enabled)

    result = _publish(
        config,
        paths,
        allow_partial=True if allow_partial else None,
        json_output=json_output,
        details={"removal": removal_payload},
    )

    if json_output:
        console.print_json(data={"removal": removal_payload, **_publish_payload(result, paths)})
    else:
        _emit_publish(result, paths, quiet=quiet_enabled)
        if not removal.ok:
            _emit_message(
                "[red]One or more codelabs couldn't be removed.[/red]", mode="error", quiet=quiet_enabled
            )

    if not removal.ok or result.partial:
        raise SystemExit(1)


@cli.group()
def config() -> None:
    """Manage codelabs tool configuration."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
@click.option(
    "--env-keys",
    is_flag=True,
    help="Show the effective values as CODELABS__SECTION__KEY environment variables.",
)
def config_view(no_env: bool, env_keys: bool) -> None:
    """Display the effective configuration after applying precedence rules."""
    manager = ConfigManager()
    try:
        effective = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    if env_keys:
        lines = [f"{name}={value}" for name, value in flatten_for_env(effective).items()]
        console.print(Syntax("\n".join(lines), "bash", word_wrap=True))
        return

    yaml_text = yaml.safe_dump(effective.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must specify a dotted path such as 'publish.allow_partial'.")

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    before = manager.read_text().splitlines()
    try:
        file_data = manager.load_file_overrides()
        assign_nested(file_data, segments, parsed_value)
        resolve_with_precedence(defaults=CodelabsConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    after = manager.read_text().splitlines()

    # The timestamp line always changes; only report a diff when a value did.
    diff = list(
        difflib.unified_diff(
            before, after, fromfile="config.yaml (before)", tofile="config.yaml (after)", lineterm=""
        )
    )
    changed = [
        line
        for line in diff
        if line.startswith(("+", "-"))
        and not line.startswith(("+++", "---"))
        and "Last updated" not in line
    ]
    if not changed:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
