"""
Command-line interface for the GETS readiness engine.

Provides the following commands:
- analyze: Score a CSV/JSON invoice file and write the report
- rules: List the business rules
- fields: List the canonical GETS fields
- version: Show version information
"""

import json
from pathlib import Path
from typing import Optional

import typer

from .analyzer import analyze as run_analysis
from .config import MAX_ROWS_TO_PROCESS, logger
from .gets_schema import GETS_FIELDS, GETS_VERSION, get_aliases, get_required_fields
from .loader import load_rows_from_file
from .processing import MalformedInputError
from .report import format_report_text
from .rules import VALIDATION_RULES
from .schemas import Questionnaire, UploadMeta


# Create Typer app
app = typer.Typer(
    name="gets-readiness",
    help="GETS e-invoicing readiness analysis CLI",
    add_completion=False,
)


@app.command()
def analyze(
    input_file: Path = typer.Option(
        ...,
        "--input",
        "-i",
        help="CSV or JSON file containing invoice rows",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
    file_type: Optional[str] = typer.Option(
        None,
        "--type",
        "-t",
        help="Force the input format (csv or json)",
    ),
    webhooks: bool = typer.Option(False, "--webhooks", help="Integration supports webhooks"),
    sandbox: bool = typer.Option(False, "--sandbox", help="A sandbox environment is available"),
    retries: bool = typer.Option(False, "--retries", help="Failed submissions are retried"),
    report: Optional[Path] = typer.Option(
        None,
        "--report",
        "-r",
        help="Write the full report JSON to this path",
    ),
    max_rows: int = typer.Option(
        MAX_ROWS_TO_PROCESS,
        "--max-rows",
        help="Maximum number of rows to analyse",
        min=1,
    ),
    fail_below: Optional[int] = typer.Option(
        None,
        "--fail-below",
        help="Exit with non-zero status if the overall score is below this value",
        min=0,
        max=100,
    ),
) -> None:
    """
    Analyse an invoice file for GETS readiness.

    Maps the file's columns onto the canonical schema, checks the business
    rules, scores the result and prints a summary.
    """
    typer.echo(f"Analysing invoices from: {input_file}")

    try:
        rows = load_rows_from_file(input_file, file_type=file_type)

        result = run_analysis(
            rows,
            questionnaire=Questionnaire(webhooks=webhooks, sandbox_env=sandbox, retries=retries),
            upload_meta=UploadMeta(filename=input_file.name, file_type=file_type),
            max_rows=max_rows,
        )
    except MalformedInputError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    except Exception as e:
        typer.echo(f"Error during analysis: {e}", err=True)
        logger.exception("Analysis failed")
        raise typer.Exit(code=1)

    typer.echo("\n" + format_report_text(result))

    if report:
        with open(report, "w", encoding="utf-8") as f:
            json.dump(result.model_dump(mode="json"), f, indent=2)
        typer.echo(f"\n[OK] Report saved to: {report}")

    if fail_below is not None and result.scores.overall < fail_below:
        raise typer.Exit(code=1)


@app.command()
def rules() -> None:
    """List the business rules applied to every analysis."""
    for rule in VALIDATION_RULES:
        typer.echo(f"{rule.rule_id.value}: {rule.description}")


@app.command()
def fields() -> None:
    """List the canonical GETS fields and their known aliases."""
    typer.echo(f"GETS v{GETS_VERSION} ({len(GETS_FIELDS)} fields, {len(get_required_fields())} required)")
    for field in GETS_FIELDS:
        marker = "*" if field.required else " "
        aliases = ", ".join(get_aliases(field.path))
        typer.echo(f"{marker} {field.path:<24} {field.type.value:<7} {aliases}")


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__
    typer.echo(f"GETS Readiness v{__version__}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
