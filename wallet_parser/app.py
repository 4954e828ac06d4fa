#!/usr/bin/env python3
"""
CLI interface for the wallet statement parser.
"""
import typer
from pathlib import Path
from typing import Optional
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from wallet_parser.core.detectors import DEFAULT_TEMPLATE_ID, detect_template
from wallet_parser.core.errors import ExtractionError
from wallet_parser.core.loader import extract_lines, preprocess_lines
from wallet_parser.core.runner import StatementExtractor

app = typer.Typer(help="Wallet Statement Parser")
console = Console()


def _write_result(json_text: str, output: Optional[Path]):
    if output:
        output.write_text(json_text)
        console.print(f"[green]✓ Parsed successfully! Output written to: {output}[/green]")
    else:
        console.print_json(json_text)


def _print_failures(result):
    if not result.failures:
        console.print("[green]No line failures[/green]")
        return

    table = Table(title="Skipped transaction lines")
    table.add_column("Line", justify="right")
    table.add_column("Content")
    table.add_column("Error", style="red")
    for failure in result.failures:
        table.add_row(str(failure.line_number), escape(failure.line), escape(failure.error))
    console.print(table)


@app.command()
def parse(
    pdf_path: Path = typer.Argument(..., help="Path to PDF file"),
    output: Optional[Path] = typer.Option(None, "--out", "-o", help="Output JSON file path"),
    template: Optional[str] = typer.Option(None, "--template", "-t", help="Template ID to use"),
    show_failures: bool = typer.Option(False, "--show-failures", help="List lines that could not be parsed"),
    debug_overlay: Optional[Path] = typer.Option(None, "--debug-overlay", help="Create debug overlay images"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output")
):
    """Parse a wallet statement PDF into structured JSON."""

    if not pdf_path.exists():
        console.print(f"[red]Error: PDF file not found: {pdf_path}[/red]")
        raise typer.Exit(1)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True
        ) as progress:
            task = progress.add_task("Reading PDF...", total=None)
            lines = extract_lines(pdf_path)

            # Detect template if not specified
            if not template:
                progress.update(task, description="Detecting template...")
                template = detect_template(lines)
                if not template:
                    console.print("[red]Error: Could not detect template for this PDF[/red]")
                    raise typer.Exit(1)

            progress.update(task, description="Extracting data...")
            extractor = StatementExtractor(template, verbose=verbose)
            result = extractor.extract(lines)

            if debug_overlay:
                from wallet_parser.tools.debug_overlay import create_debug_overlay

                progress.update(task, description="Creating debug overlay...")
                create_debug_overlay(pdf_path, template, debug_overlay)

        _write_result(result.statement.model_dump_json(indent=2), output)
        if show_failures:
            _print_failures(result)
        if debug_overlay:
            console.print(f"[blue]Debug overlay created in: {debug_overlay}[/blue]")

    except typer.Exit:
        raise
    except (ExtractionError, ValueError, OSError, RuntimeError) as e:
        console.print(f"[red]Error parsing PDF: {escape(str(e))}[/red]")
        if verbose:
            import traceback
            console.print(traceback.format_exc())
        raise typer.Exit(1)


@app.command("parse-text")
def parse_text(
    text_path: Path = typer.Argument(..., help="Path to text already extracted from a statement"),
    output: Optional[Path] = typer.Option(None, "--out", "-o", help="Output JSON file path"),
    template: str = typer.Option(DEFAULT_TEMPLATE_ID, "--template", "-t", help="Template ID to use"),
    show_failures: bool = typer.Option(False, "--show-failures", help="List lines that could not be parsed")
):
    """Parse extracted statement text into structured JSON."""
    if not text_path.exists():
        console.print(f"[red]Error: Text file not found: {text_path}[/red]")
        raise typer.Exit(1)

    try:
        extractor = StatementExtractor(template)
    except ValueError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    try:
        result = extractor.extract(preprocess_lines(text_path.read_text(encoding="utf-8")))
        _write_result(result.statement.model_dump_json(indent=2), output)
    except OSError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if show_failures:
        _print_failures(result)


@app.command()
def detect(
    pdf_path: Path = typer.Argument(..., help="Path to PDF file")
):
    """Detect which template matches a PDF file."""
    try:
        template = detect_template(pdf_path)
    except ExtractionError as e:
        console.print(f"[red]Error detecting template: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if template:
        console.print(f"[green]Detected template: {template}[/green]")
    else:
        console.print("[red]No matching template found[/red]")
        raise typer.Exit(1)


@app.command()
def validate(
    json_path: Path = typer.Argument(..., help="Path to JSON file to validate")
):
    """Validate a JSON file against the schema."""
    from pydantic import ValidationError
    from wallet_parser.models.schema import StatementRecord

    try:
        data = StatementRecord.model_validate_json(json_path.read_text())
    except (OSError, ValidationError) as e:
        console.print(f"[red]Validation failed: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print("[green]✓ JSON is valid[/green]")
    console.print(f"Account Holder: {data.account_holder}")
    console.print(f"Statement Period: {data.statement_period}")
    console.print(f"Transactions: {len(data.transactions)}")


if __name__ == "__main__":
    app()
