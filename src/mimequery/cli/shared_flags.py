"""Shared Click option decorators for the mimequery CLI.

Centralizes flags that apply across multiple commands to avoid duplication
and keep them consistent.
"""

import functools
import os

import click

from mimequery.core.domain.entities import ErrorPolicy


def format_option():
    """Add --format option (text|json|md)."""

    def decorator(f):
        return click.option(
            "--format",
            "format",
            type=click.Choice(["text", "json", "md"], case_sensitive=False),
            default="text",
            help="Output format (text|json|md).",
        )(f)

    return decorator


def output_option():
    """Add --output option to write output to a file."""

    def decorator(f):
        return click.option(
            "--output",
            type=click.Path(dir_okay=False),
            default=None,
            help="Write output to this file path instead of stdout.",
        )(f)

    return decorator


def include_timestamp_option():
    def decorator(f):
        return click.option(
            "--include-timestamp",
            is_flag=True,
            default=False,
            help="Include ISO 8601 UTC timestamp in JSON output.",
        )(f)

    return decorator


def error_policy_option():
    """Add --error-policy option (best-effort|fail-fast)."""

    def decorator(f):
        return click.option(
            "--error-policy",
            type=click.Choice([p.value for p in ErrorPolicy], case_sensitive=False),
            default=None,
            help=(
                "What to do with config or .desktop files that exist but cannot be read: "
                "skip them (best-effort) or stop (fail-fast). "
                "Defaults to MIMEQUERY_ERROR_POLICY or the config file."
            ),
        )(f)

    return decorator


def with_log_silence():
    """Silence log events for JSON/file output unless debug is enabled."""

    def decorator(f):
        @functools.wraps(f)
        def wrapper(*args, **kwargs):
            previous = os.environ.get("MIMEQUERY_LOG_SILENT")
            format_value = kwargs.get("format")
            output_value = kwargs.get("output")
            silence_logs = False
            if os.environ.get("MIMEQUERY_DEBUG") != "1":
                if format_value == "json" or output_value:
                    silence_logs = True
            changed = False
            if silence_logs and previous != "1":
                os.environ["MIMEQUERY_LOG_SILENT"] = "1"
                changed = True
            try:
                return f(*args, **kwargs)
            finally:
                if changed:
                    if previous is None:
                        os.environ.pop("MIMEQUERY_LOG_SILENT", None)
                    else:
                        os.environ["MIMEQUERY_LOG_SILENT"] = previous

        return wrapper

    return decorator


def output_options():
    """Composite decorator applying all output flags.

    Applies: --format, --output, --include-timestamp.

    Usage::

        @cli.command()
        @output_options()
        def my_command(format, output, include_timestamp, ...):
            ...
    """

    def decorator(f):
        f = format_option()(f)
        f = output_option()(f)
        f = include_timestamp_option()(f)
        f = with_log_silence()(f)
        return f

    return decorator


def query_options():
    """Output flags plus --error-policy, for commands that run a resolution."""

    def decorator(f):
        f = output_options()(f)
        f = error_policy_option()(f)
        return f

    return decorator
