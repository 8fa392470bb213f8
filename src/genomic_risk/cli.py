"""Command line interface for the genomic risk studio."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Optional

import typer

from .analysis import AnalysisWorkflow
from .config import get_settings
from .exceptions import PredictorError, UploadValidationError
from .logging_config import get_logger
from .models import DataType, UploadedFile
from .predictor import build_predictor
from .reporting import export_text, render_text_report
from .uploads import load_local_file

app = typer.Typer(add_completion=False, no_args_is_help=True)
logger = get_logger(__name__)


def _resolve_path(path: Path) -> Path:
    path = path.expanduser().resolve()
    if not path.exists():
        raise typer.BadParameter(f"Path not found: {path}")
    return path


def _load_files(dna: Path, rna: Path, mirna: Path) -> Dict[DataType, UploadedFile]:
    max_bytes = get_settings().max_upload_bytes
    files: Dict[DataType, UploadedFile] = {}
    failed = False
    for data_type, path in ((DataType.DNA, dna), (DataType.RNA, rna), (DataType.MIRNA, mirna)):
        resolved = _resolve_path(path)
        try:
            files[data_type] = load_local_file(data_type, resolved, max_bytes=max_bytes)
        except UploadValidationError as exc:
            typer.secho(f"{data_type.display_name}: {exc.title}. {exc.description}", fg=typer.colors.RED)
            failed = True
    if failed:
        raise typer.Exit(code=1)
    return files


@app.command("validate")
def validate(
    dna: Path = typer.Argument(..., help="DNA methylation data (.parquet)."),
    rna: Path = typer.Argument(..., help="RNA expression data (.parquet)."),
    mirna: Path = typer.Argument(..., help="miRNA profile data (.parquet)."),
) -> None:
    """Check the three genomic files against the upload rules."""
    files = _load_files(dna, rna, mirna)
    for data_type, uploaded in files.items():
        typer.echo(f"{data_type.display_name}: {uploaded.filename} ({uploaded.size}, ~{uploaded.records} records)")
    typer.secho("All genomic data files are valid.", fg=typer.colors.GREEN)
    logger.info("Validated genomic files", files=[uploaded.filename for uploaded in files.values()])


@app.command("predict")
def predict(
    dna: Path = typer.Argument(..., help="DNA methylation data (.parquet)."),
    rna: Path = typer.Argument(..., help="RNA expression data (.parquet)."),
    mirna: Path = typer.Argument(..., help="miRNA profile data (.parquet)."),
    report: Optional[Path] = typer.Option(None, "--report", "-r", help="Write the text report to this path."),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON instead of the text report."),
) -> None:
    """Send the three files to the predictor and print the risk report."""
    files = _load_files(dna, rna, mirna)
    workflow = AnalysisWorkflow(build_predictor(), files=list(files.values()))
    try:
        result = workflow.run()
    except PredictorError as exc:
        typer.secho(f"Prediction failed: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=2) from exc

    if as_json:
        typer.echo(json.dumps(result.model_dump(mode="json"), indent=2))
    else:
        typer.echo(render_text_report(result))
    if report is not None:
        export_text(result, report)
        typer.secho(f"Report written to {report}", fg=typer.colors.GREEN)


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Host to bind the web app."),
    port: int = typer.Option(8050, help="Port to bind the web app."),
    debug: bool = typer.Option(False, help="Enable Dash debug mode (development only)."),
) -> None:
    """Launch the Dash upload form."""
    from .app import create_app

    typer.echo(f"Starting Genomic Risk Studio on {host}:{port} ...")
    create_app().run(host=host, port=port, debug=debug)


@app.command("serve-api")
def serve_api(
    host: str = typer.Option("0.0.0.0", help="Host to bind the API server."),
    port: int = typer.Option(8000, help="Port to bind the API server."),
    reload: bool = typer.Option(False, help="Enable auto-reload (development only)."),
) -> None:
    """Launch the FastAPI service via uvicorn."""
    import uvicorn

    typer.echo(f"Starting Genomic Risk Studio API on {host}:{port} ...")
    uvicorn.run("genomic_risk.api:create_app", host=host, port=port, reload=reload, factory=True)


def main() -> None:
    """Entry point for setuptools."""
    app()


if __name__ == "__main__":
    main()
