"""Pydantic domain models for the genomic risk workflow.

The upload records, predictor payloads and analysis session state are plain
pydantic models so they can round-trip through Dash ``dcc.Store`` components
and the FastAPI surface without custom serialisers.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class DataType(str, Enum):
    """Genomic data categories, one upload slot each."""

    DNA = "dna"
    RNA = "rna"
    MIRNA = "mirna"

    @property
    def display_name(self) -> str:
        return "miRNA" if self is DataType.MIRNA else self.value.upper()


class RiskLevel(str, Enum):
    """Two-tier risk classification shown to the user."""

    LOW = "low risk"
    HIGH = "high risk"


class AnalysisStatus(str, Enum):
    """Lifecycle of a single analysis session."""

    IDLE = "idle"
    ANALYZING = "analyzing"
    COMPLETE = "complete"
    FAILED = "failed"


class UploadedFile(BaseModel):
    """A validated genomic data file occupying one type slot."""

    data_type: DataType
    filename: str
    path: Path = Field(..., description="Server-side copy of the uploaded bytes.")
    size_bytes: int = Field(..., ge=0)
    size: str = Field(..., description="Human-readable size, e.g. '1.5 KB'.")
    records: int = Field(..., ge=0, description="Record estimate derived from the byte size.")
    data_url: Optional[str] = Field(default=None, exclude=True, repr=False)


def _label_text(value: object) -> str:
    # Integral floats (1.0) name the same class as their integer form.
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


class LabelConfidence(BaseModel):
    label: str
    confidence: float

    @field_validator("label", mode="before")
    @classmethod
    def _coerce_label(cls, value: object) -> str:
        return _label_text(value)


class Prediction(BaseModel):
    """Label output returned by the remote predictor."""

    label: str
    confidences: List[LabelConfidence] = Field(default_factory=list)

    @field_validator("label", mode="before")
    @classmethod
    def _coerce_label(cls, value: object) -> str:
        if value is None:
            raise ValueError("Prediction label is missing.")
        return _label_text(value)

    def confidence_for(self, label: str) -> Optional[float]:
        """Return the confidence reported for ``label``, if any."""
        for entry in self.confidences:
            if entry.label == label:
                return entry.confidence
        return None


class AnalysisResult(BaseModel):
    """Risk report built from one completed prediction."""

    overall_risk: RiskLevel
    confidence: float = Field(..., ge=0, le=100)
    recommendations: List[str]
    predicted_label: Optional[str] = None
    completed_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_high_risk(self) -> bool:
        return self.overall_risk == RiskLevel.HIGH

    @property
    def confidence_display(self) -> str:
        """Confidence without trailing zeros, e.g. ``92.3``."""
        return f"{self.confidence:g}"
