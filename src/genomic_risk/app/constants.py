"""Shared UI constants for the Dash experience."""

from __future__ import annotations

from typing import Dict

from ..models import DataType

APP_TITLE = "Genomic Breast Cancer Risk Assessment"
APP_SUBTITLE = "AI-powered analysis using DNA, RNA, and miRNA data"

SLOT_DESCRIPTIONS: Dict[DataType, str] = {
    DataType.DNA: "DNA sequencing data (.parquet)",
    DataType.RNA: "RNA expression data (.parquet)",
    DataType.MIRNA: "miRNA profile data (.parquet)",
}

SLOT_COLORS: Dict[DataType, str] = {
    DataType.DNA: "danger",
    DataType.RNA: "success",
    DataType.MIRNA: "primary",
}

INSTRUCTIONS = (
    "Please upload three parquet files containing DNA, RNA, and miRNA data for comprehensive "
    "genomic analysis. Our AI system will process the genomic information to assess breast "
    "cancer risk."
)

MEDICAL_DISCLAIMER = (
    "This AI analysis is for informational and educational purposes only. It should not be used "
    "as a substitute for professional medical diagnosis, treatment, or advice. Always consult with "
    "qualified healthcare providers for proper medical evaluation and treatment decisions. The "
    "accuracy of AI analysis may vary and should be validated by medical professionals."
)

TOAST_DURATION_MS = 4000
