from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from genomic_risk.analysis import HIGH_RISK_RECOMMENDATIONS, LOW_RISK_RECOMMENDATIONS
from genomic_risk.models import AnalysisResult, RiskLevel
from genomic_risk.reporting import REPORT_DISCLAIMER, export_text, render_text_report, report_filename

GENERATED_AT = datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def high_risk_result() -> AnalysisResult:
    return AnalysisResult(
        overall_risk=RiskLevel.HIGH,
        confidence=92.3,
        recommendations=list(HIGH_RISK_RECOMMENDATIONS),
        predicted_label="1",
    )


def test_render_text_report_sections(high_risk_result: AnalysisResult):
    report = render_text_report(high_risk_result, generated_at=GENERATED_AT)
    lines = report.splitlines()

    assert lines[0] == "BREAST CANCER DETECTION ANALYSIS REPORT"
    assert "Overall Assessment: high risk" in lines
    assert "Confidence Level: 92.3%" in lines
    assert "Analysis Date: 3/5/2024" in lines
    assert report.index("RECOMMENDATIONS:") < report.index("DISCLAIMER:")
    assert report.rstrip().endswith(REPORT_DISCLAIMER)


def test_recommendations_are_numbered_in_order(high_risk_result: AnalysisResult):
    lines = render_text_report(high_risk_result, generated_at=GENERATED_AT).splitlines()
    start = lines.index("RECOMMENDATIONS:") + 1
    expected = [f"{number}. {text}" for number, text in enumerate(HIGH_RISK_RECOMMENDATIONS, start=1)]
    assert lines[start : start + 3] == expected


def test_low_risk_report_uses_low_risk_wording():
    result = AnalysisResult(
        overall_risk=RiskLevel.LOW,
        confidence=64.125,
        recommendations=list(LOW_RISK_RECOMMENDATIONS),
        predicted_label="0",
    )
    report = render_text_report(result, generated_at=GENERATED_AT)
    assert "Overall Assessment: low risk" in report
    assert "Confidence Level: 64.125%" in report
    assert f"1. {LOW_RISK_RECOMMENDATIONS[0]}" in report


def test_report_filename_uses_epoch_milliseconds():
    assert report_filename(GENERATED_AT) == "breast-cancer-analysis-1709640000000.txt"


def test_report_filename_defaults_to_now():
    name = report_filename()
    assert name.startswith("breast-cancer-analysis-")
    assert name.endswith(".txt")
    assert name[len("breast-cancer-analysis-") : -len(".txt")].isdigit()


def test_export_text_writes_report(high_risk_result: AnalysisResult, tmp_path: Path):
    output = export_text(high_risk_result, tmp_path / "report.txt", generated_at=GENERATED_AT)
    assert output.read_text(encoding="utf-8") == render_text_report(high_risk_result, generated_at=GENERATED_AT)
