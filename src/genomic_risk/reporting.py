"""Plain-text report export for completed analyses."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .models import AnalysisResult

TEMPLATE_DIR = Path(__file__).parent / "templates"

REPORT_DISCLAIMER = (
    "This AI analysis is for informational purposes only and should not replace professional "
    "medical diagnosis. Please consult with a qualified healthcare provider for proper medical "
    "evaluation and treatment decisions."
)


def _environment(template_dir: Path) -> Environment:
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml"]),
    )


def _format_date(value: datetime) -> str:
    return f"{value.month}/{value.day}/{value.year}"


def render_text_report(
    result: AnalysisResult,
    generated_at: Optional[datetime] = None,
    template_dir: Path = TEMPLATE_DIR,
) -> str:
    """Render the downloadable plain-text report."""
    generated_at = generated_at or datetime.now()
    template = _environment(template_dir).get_template("report.txt")
    return template.render(
        result=result,
        analysis_date=_format_date(generated_at),
        disclaimer=REPORT_DISCLAIMER,
    )


def report_filename(generated_at: Optional[datetime] = None) -> str:
    generated_at = generated_at or datetime.now()
    return f"breast-cancer-analysis-{int(generated_at.timestamp() * 1000)}.txt"


def export_text(result: AnalysisResult, output_path: Path, generated_at: Optional[datetime] = None) -> Path:
    output_path.write_text(render_text_report(result, generated_at=generated_at), encoding="utf-8")
    return output_path
