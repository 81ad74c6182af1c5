"""Command-line interface for bibtidy.

Tidies one or more BibTeX files: prints the canonical text, rewrites files
in place, or checks whether they are already tidy.
"""

import importlib.metadata
import json
import sys
import time
from pathlib import Path
from typing import Any

import click

from bibtidy.api import tidy, write_report
from bibtidy.audit import AuditLogger, generate_run_id
from bibtidy.engine import OptionsError, TidyOptions
from bibtidy.engine.config import DEFAULT_KEY_TEMPLATE, MergeStrategy
from bibtidy.models import TidyResult
from bibtidy.parse import ParseError
from bibtidy.utils import calculate_string_sha256

__all__ = ["cli"]

try:
    __version__ = importlib.metadata.version("bibtidy")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.1.0"  # Fallback for development

EXIT_CHANGED = 1
EXIT_ERROR = 2

# Boolean switches copied into the option mapping when given
_SWITCHES = (
    "curly",
    "numeric",
    "tab",
    "months",
    "page_ranges",
    "strip_comments",
    "strip_enclosing_braces",
    "drop_all_caps",
    "remove_empty_fields",
    "sort_fields",
    "trailing_commas",
    "single_line",
    "fuzzy_titles",
    "expand_macros",
    "encode_urls",
)


def _split_list(value: str | None) -> list[str] | None:
    if value is None:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


def build_options(config_path: str | None, overrides: dict[str, Any]) -> TidyOptions:
    """Combine a ``--config`` JSON file with command-line overrides.

    Parameters
    ----------
    config_path : str | None
        JSON file holding an option mapping.
    overrides : dict[str, Any]
        Options given on the command line; None values are ignored.

    Returns
    -------
    TidyOptions
        Validated options.

    Raises
    ------
    OptionsError
        If the combined mapping is invalid.
    """
    mapping: dict[str, Any] = {}
    if config_path is not None:
        try:
            mapping = json.loads(Path(config_path).read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise OptionsError(f"Config file {config_path} is not valid JSON: {e}") from e
        if not isinstance(mapping, dict):
            raise OptionsError(f"Config file {config_path} must hold a JSON object")

    for key, value in overrides.items():
        if value is None or (value is False and key in _SWITCHES):
            continue
        mapping[key] = value

    return TidyOptions.from_mapping(mapping)


def _read_input(source: str) -> str:
    if source == "-":
        return click.get_text_stream("stdin").read()
    return Path(source).read_text(encoding="utf-8-sig")


def _report_warnings(source: str, result: TidyResult) -> None:
    for warning in result.warnings:
        click.secho(f"{source}: {warning.kind}: {warning.message}", fg="yellow", err=True)


@click.command()
@click.version_option(version=__version__, prog_name="bibtidy")
@click.argument("inputs", nargs=-1, required=True, type=click.Path(allow_dash=True))
@click.option("--output", "-o", type=click.Path(), help="Write output to this file")
@click.option("--modify", "-m", is_flag=True, help="Rewrite input files in place")
@click.option("--check", is_flag=True, help="Exit with status 1 if any input is not tidy")
@click.option("--config", "config_path", type=click.Path(exists=True), help="JSON options file")
@click.option("--report", type=click.Path(), help="Write a JSON report of the run")
@click.option("--audit-log", type=click.Path(), help="Append JSONL audit events to this file")
@click.option("--quiet", "-q", is_flag=True, help="Do not print warnings")
@click.option("--curly", is_flag=True, help="Enclose values in braces")
@click.option("--numeric", is_flag=True, help="Leave numeric values unenclosed")
@click.option("--tab", is_flag=True, help="Indent with a tab")
@click.option("--space", type=click.IntRange(min=0), help="Indent with N spaces")
@click.option("--align", type=click.IntRange(min=0), help="Value column (0 disables)")
@click.option("--wrap", type=click.IntRange(min=1), help="Wrap values longer than N columns")
@click.option(
    "--sort",
    is_flag=False,
    flag_value="key",
    help="Sort entries by comma-separated keys (prefix '-' for descending)",
)
@click.option("--sort-fields", is_flag=True, help="Order fields within entries")
@click.option(
    "--duplicates",
    help="Comma-separated duplicate strategies: key, doi, citation, abstract",
)
@click.option(
    "--merge",
    type=click.Choice([s.value for s in MergeStrategy]),
    help="Merge duplicates with this strategy",
)
@click.option("--fuzzy-titles", is_flag=True, help="Match near-identical titles")
@click.option(
    "--generate-keys",
    is_flag=False,
    flag_value=DEFAULT_KEY_TEMPLATE,
    help="Regenerate citation keys from a template",
)
@click.option("--months", is_flag=True, help="Rewrite months as three-letter macros")
@click.option("--page-ranges", is_flag=True, help="Write page ranges with '--'")
@click.option("--strip-comments", is_flag=True, help="Remove comments")
@click.option("--strip-enclosing-braces", is_flag=True, help="Remove braces around whole values")
@click.option("--drop-all-caps", is_flag=True, help="Title-case values in all capitals")
@click.option("--remove-empty-fields", is_flag=True, help="Remove empty fields")
@click.option("--trailing-commas", is_flag=True, help="Comma after the last field")
@click.option("--single-line", is_flag=True, help="One line per entry")
@click.option("--expand-macros", is_flag=True, help="Substitute @string definitions")
@click.option("--encode-urls", is_flag=True, help="Percent-encode URLs")
@click.option("--escape/--no-escape", default=None, help="Escape Unicode as LaTeX")
@click.option(
    "--collapse-whitespace/--keep-whitespace",
    default=None,
    help="Collapse whitespace in values (--keep-whitespace keeps line breaks)",
)
@click.option("--max-authors", type=click.IntRange(min=1), help="Truncate name lists")
@click.option("--omit", help="Comma-separated fields to remove")
def cli(
    inputs: tuple[str, ...],
    output: str | None,
    modify: bool,
    check: bool,
    config_path: str | None,
    report: str | None,
    audit_log: str | None,
    quiet: bool,
    **switches: Any,
) -> None:
    """Normalize and deduplicate BibTeX files.

    INPUTS are .bib files; '-' reads standard input. Without --output,
    --modify or --check the canonical text is printed.

    Exit status is 0 on success, 1 when --check finds untidy input and 2
    on errors.

    Examples
    --------
        bibtidy refs.bib
        bibtidy refs.bib -m --curly --sort=-year,key
        bibtidy refs.bib --duplicates citation,doi --merge combine -o clean.bib
        bibtidy *.bib --check
    """
    if sum(bool(flag) for flag in (output, modify, check)) > 1:
        raise click.UsageError("--output, --modify and --check are mutually exclusive")
    if (output or report) and len(inputs) > 1:
        raise click.UsageError("--output and --report accept a single input")
    if modify and "-" in inputs:
        raise click.UsageError("--modify cannot rewrite standard input")

    overrides = dict(switches)
    overrides["sort"] = _split_list(overrides["sort"])
    overrides["duplicates"] = _split_list(overrides["duplicates"])
    overrides["omit"] = _split_list(overrides["omit"])

    try:
        options = build_options(config_path, overrides)
    except OptionsError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(EXIT_ERROR)

    logger = AuditLogger(generate_run_id(), Path(audit_log)) if audit_log else None
    start_time = time.perf_counter()
    status = "success"
    entries_processed = 0

    try:
        if logger:
            logger.run_started(command=sys.argv, parameters=options.to_dict())

        for source in inputs:
            if logger:
                logger.set_source(source)

            text = _read_input(source)
            result = tidy(text, options)
            changed = result.bibtex != text
            entries_processed += result.entries.parsed

            if logger:
                logger.input_tidied(calculate_string_sha256(text), result, changed)
            if not quiet:
                _report_warnings(source, result)

            if report:
                write_report(result, report)

            if check:
                if changed:
                    status = "changed"
                    click.echo(f"{source}: not tidy", err=True)
            elif modify:
                if changed:
                    Path(source).write_text(result.bibtex, encoding="utf-8")
                    if not quiet:
                        click.secho(f"✓ Tidied {source}", fg="green", err=True)
            elif output:
                Path(output).write_text(result.bibtex, encoding="utf-8")
                if not quiet:
                    click.secho(
                        f"✓ Wrote {result.entries.written} entries to {output}",
                        fg="green",
                        err=True,
                    )
            else:
                click.echo(result.bibtex, nl=False)

    except (ParseError, OptionsError, OSError, UnicodeDecodeError) as e:
        status = "failed"
        if logger:
            logger.error(type(e).__name__, str(e))
        click.secho(f"✗ Error: {e}", fg="red", err=True)
        sys.exit(EXIT_ERROR)

    finally:
        if logger:
            logger.run_finished(
                status=status,
                duration_seconds=time.perf_counter() - start_time,
                entries_processed=entries_processed,
            )
            logger.close()

    if status == "changed":
        sys.exit(EXIT_CHANGED)


if __name__ == "__main__":
    cli()
