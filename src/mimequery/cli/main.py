import contextlib
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from mimequery.cli.shared_flags import output_options, query_options
from mimequery.core.domain.entities import DefaultAppResult, ErrorPolicy
from mimequery.core.services.error_codes import ErrorCode, MimeQueryError
from mimequery.core.services.exit_codes import EX_CANTCREAT, exit_code_for_error
from mimequery.core.services.observability import get_current_run_id, timed_query
from mimequery.core.services.output_formatter import (
    format_envelope,
    format_error_envelope,
)
from mimequery.core.services.settings import load_settings
from mimequery.core.services.xdg_environment import resolve_environment
from mimequery.core.use_cases.list_search_paths import ListSearchPathsUseCase
from mimequery.core.use_cases.query_default_app import QueryDefaultAppUseCase
from mimequery.core.use_cases.query_file_handler import (
    QueryFileHandlerUseCase,
    QueryMimeTypeUseCase,
)

console = Console()


def get_console() -> Console:
    """Helper to get the rich console from context if available."""
    ctx = click.get_current_context(silent=True)
    if ctx and isinstance(ctx.obj, dict) and "console" in ctx.obj:
        return ctx.obj["console"]
    return console


@contextlib.contextmanager
def command_output_handler(
    command_name: str,
    format: str,
    output: Optional[str],
    include_timestamp: bool,
    run_id: str,
):
    """Centralized error handling and output formatting for CLI commands."""
    try:
        yield
    except MimeQueryError as e:
        if format == "json":
            _write_output(
                format_error_envelope(
                    command=command_name,
                    error_code=e.code,
                    message=e.message,
                    details=e.details,
                    include_timestamp=include_timestamp,
                    run_id=run_id,
                ),
                output,
            )
        elif format == "md":
            _write_output(
                f"# Error\n\n- Code: {e.code.value}\n- Message: {_md_escape(e.message)}\n",
                output,
            )
        else:
            with maybe_capture(output, format):
                get_console().print(f"[bold red][ERROR {e.code.value}] {escape(e.message)}[/bold red]")
        raise SystemExit(exit_code_for_error(e.code))
    except Exception as e:
        safe_msg = "An unexpected internal error occurred."
        if format == "json":
            _write_output(
                format_error_envelope(
                    command=command_name,
                    error_code=ErrorCode.UNKNOWN_ERROR,
                    message=safe_msg,
                    details={"internal_error": str(e)},
                    include_timestamp=include_timestamp,
                    run_id=run_id,
                ),
                output,
            )
        elif format == "md":
            _write_output(
                f"# Error\n\n- Code: UNKNOWN_ERROR\n- Message: {safe_msg}\n",
                output,
            )
        else:
            with maybe_capture(output, format):
                get_console().print(f"[bold red][ERROR UNKNOWN_ERROR] {safe_msg}[/bold red]")

        # Always log the real error to stderr for operators
        click.echo(f"INTERNAL ERROR: {e}", err=True)
        raise SystemExit(exit_code_for_error(ErrorCode.UNKNOWN_ERROR))


def _write_output(
    output_str: str,
    output: Optional[str] = None,
    add_newline: bool = True,
) -> None:
    """Write output to stdout or to a file if requested."""
    if output:
        out_path = Path(output)
        try:
            with out_path.open("w", encoding="utf-8") as handle:
                handle.write(output_str)
                if add_newline:
                    handle.write("\n")
        except OSError as exc:
            click.echo(f"Error writing output file '{output}': {exc}", err=True)
            raise SystemExit(EX_CANTCREAT)
        return
    click.echo(output_str, nl=add_newline)


@contextlib.contextmanager
def maybe_capture(output: Optional[str], format: str):
    """Capture console output if output file is specified and format is text."""
    if format == "text" and output:
        capture_obj = None
        try:
            with get_console().capture() as capture:
                capture_obj = capture
                yield
        finally:
            if capture_obj:
                captured_text = capture_obj.get()
                if captured_text.strip():
                    _write_output(
                        captured_text,
                        output=output,
                        add_newline=False,
                    )
    else:
        yield


def _md_escape(value: object) -> str:
    text = "" if value is None else str(value)
    return text.replace("\\", "\\\\").replace("|", "\\|").replace("\n", "<br>")


def _md_table(headers: list[str], rows: list[list[object]]) -> str:
    head = "| " + " | ".join(_md_escape(h) for h in headers) + " |"
    sep = "| " + " | ".join(["---"] * len(headers)) + " |"
    body = ["| " + " | ".join(_md_escape(c) for c in row) + " |" for row in rows]
    return "\n".join([head, sep, *body])


def _md_warnings(warnings: List[Dict[str, Any]]) -> List[str]:
    if not warnings:
        return []
    lines = ["", "## Skipped", ""]
    for warning in warnings:
        lines.append(
            f"- [{warning.get('code')}] {_md_escape(warning.get('message'))}"
        )
    return lines


def resolve_error_policy(error_policy: Optional[str]) -> ErrorPolicy:
    """CLI flag, then MIMEQUERY_ERROR_POLICY, then the config file."""
    return load_settings(resolve_environment(), override=error_policy).error_policy


def _emit_default_app(
    command: str,
    result: DefaultAppResult,
    data: Dict[str, Any],
    format: str,
    output: Optional[str],
    include_timestamp: bool,
    run_id: str,
) -> None:
    if format == "json":
        _write_output(
            format_envelope(
                command=command,
                success=True,
                data=data,
                warnings=result.issues,
                include_timestamp=include_timestamp,
                run_id=run_id,
            ),
            output,
        )
        return

    if format == "md":
        lines = [f"# mimequery {command}", ""]
        if "file" in data:
            lines.append(f"- File: `{data['file']}`")
        lines.extend(
            [
                f"- MIME type: `{result.mime_type}`",
                f"- Binary: `{result.binary}`",
                f"- Desktop id: `{result.desktop_id}`",
                f"- Desktop file: `{result.desktop_file}`",
                f"- Found in: `{result.mimeapps_list}`",
            ]
        )
        lines.extend(_md_warnings(result.issues))
        _write_output("\n".join(lines) + "\n", output)
        return

    with maybe_capture(output, format):
        get_console().print(str(result.binary), markup=False, highlight=False, soft_wrap=True)


@click.group()
@click.version_option(package_name="mimequery", prog_name="mimequery")
@click.option("--no-color", is_flag=True, default=False, help="Disable ANSI colors in text output.")
@click.option("--verbose", is_flag=True, default=False, help="Enable verbose debug logging.")
@click.pass_context
def cli(ctx: click.Context, no_color: bool, verbose: bool):
    """Query the default applications configured through XDG mimeapps.list files."""
    if no_color:
        os.environ["NO_COLOR"] = "1"
        os.environ["RICH_NO_COLOR"] = "1"
    if verbose:
        previous_debug = os.environ.get("MIMEQUERY_DEBUG")
        os.environ["MIMEQUERY_DEBUG"] = "1"
        def _restore_debug() -> None:
            if previous_debug is None:
                os.environ.pop("MIMEQUERY_DEBUG", None)
            else:
                os.environ["MIMEQUERY_DEBUG"] = previous_debug
        ctx.call_on_close(_restore_debug)

    ctx.ensure_object(dict)
    ctx.obj["console"] = Console(no_color=no_color)


@cli.command("default-app")
@click.argument("mime_type")
@query_options()
def default_app(mime_type, error_policy, format, output, include_timestamp):
    """Print the binary of the default application for MIME_TYPE."""
    run_id = get_current_run_id()

    with command_output_handler("default-app", format, output, include_timestamp, run_id):
        policy = resolve_error_policy(error_policy)
        with timed_query("default_app_query", mime_type=mime_type, policy=policy.value) as logged:
            result = QueryDefaultAppUseCase(policy=policy).execute(mime_type)
            logged["binary"] = str(result.binary)

        _emit_default_app(
            "default-app", result, result.as_dict(), format, output, include_timestamp, run_id
        )


@cli.command("mime-type")
@click.argument("path", type=click.Path())
@output_options()
def mime_type(path, format, output, include_timestamp):
    """Print the MIME type of the file at PATH (via `mimetype` or `file`)."""
    run_id = get_current_run_id()

    with command_output_handler("mime-type", format, output, include_timestamp, run_id):
        with timed_query("mime_type_query", path=path):
            detected = QueryMimeTypeUseCase().execute(path)

        if format == "json":
            _write_output(
                format_envelope(
                    command="mime-type",
                    success=True,
                    data={"file": path, "mime_type": detected},
                    include_timestamp=include_timestamp,
                    run_id=run_id,
                ),
                output,
            )
            return

        if format == "md":
            _write_output(
                "# mimequery mime-type\n\n"
                f"- File: `{path}`\n"
                f"- MIME type: `{detected}`\n",
                output,
            )
            return

        with maybe_capture(output, format):
            get_console().print(detected, markup=False, highlight=False, soft_wrap=True)


@cli.command()
@click.argument("path", type=click.Path())
@query_options()
def handler(path, error_policy, format, output, include_timestamp):
    """Print the binary that would open the file at PATH."""
    run_id = get_current_run_id()

    with command_output_handler("handler", format, output, include_timestamp, run_id):
        policy = resolve_error_policy(error_policy)
        with timed_query("file_handler_query", path=path, policy=policy.value) as logged:
            result = QueryFileHandlerUseCase(policy=policy).execute(path)
            logged["mime_type"] = result.mime_type

        _emit_default_app(
            "handler",
            result.default_app,
            result.as_dict(),
            format,
            output,
            include_timestamp,
            run_id,
        )


@cli.command("search-paths")
@click.option("--all", "include_missing", is_flag=True, default=False, help="Include candidates that do not exist")
@output_options()
def search_paths(include_missing, format, output, include_timestamp):
    """List mimeapps.list candidates in the order they are searched."""
    run_id = get_current_run_id()

    with command_output_handler("search-paths", format, output, include_timestamp, run_id):
        entries = ListSearchPathsUseCase().execute(include_missing=include_missing)

        if format == "json":
            _write_output(
                format_envelope(
                    command="search-paths",
                    success=True,
                    data={"candidates": [entry.as_dict() for entry in entries]},
                    include_timestamp=include_timestamp,
                    run_id=run_id,
                ),
                output,
            )
            return

        if format == "md":
            rows = [
                [entry.path, entry.tier, entry.source, entry.desktop or "", "yes" if entry.exists else "no"]
                for entry in entries
            ]
            _write_output(
                "# mimequery search-paths\n\n"
                + _md_table(["Path", "Tier", "Source", "Desktop", "Exists"], rows)
                + "\n",
                output,
            )
            return

        with maybe_capture(output, format):
            if not entries:
                get_console().print("[yellow]No mimeapps.list files found.[/yellow]")
                return
            table = Table(title="mimeapps.list search order")
            table.add_column("#", justify="right")
            table.add_column("Path")
            table.add_column("Tier")
            table.add_column("Source")
            table.add_column("Desktop")
            if include_missing:
                table.add_column("Exists")
            for position, entry in enumerate(entries, start=1):
                row = [str(position), entry.path, entry.tier, entry.source, entry.desktop or ""]
                if include_missing:
                    row.append("yes" if entry.exists else "no")
                table.add_row(*row)
            get_console().print(table)


if __name__ == "__main__":
    cli()
