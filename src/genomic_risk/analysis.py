"""Analysis orchestration: session state machine and prediction mapping."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ValidationError

from .exceptions import AnalysisNotReadyError, InvalidTransitionError, PredictorError
from .logging_config import get_logger
from .models import AnalysisResult, AnalysisStatus, DataType, Prediction, RiskLevel, UploadedFile
from .predictor import Predictor
from .uploads import UploadCollection

logger = get_logger(__name__)

HIGH_RISK_LABEL = "1"

HIGH_RISK_RECOMMENDATIONS: List[str] = [
    "Visit your doctor for thorough clinical evaluations and monitoring",
    "Confirm all test results in a certified laboratory",
    "Maintain close follow-up with oncology genetics specialists for ongoing assessment and updates on preventive measures",
]

LOW_RISK_RECOMMENDATIONS: List[str] = [
    "Continue standard screening protocols based on family history",
    "Genetic counseling may be beneficial for family planning",
    "Regular follow-up with oncology genetics if indicated",
]


def map_prediction(prediction: Prediction) -> AnalysisResult:
    """Translate a predictor label into the two-tier risk report."""
    high_risk = prediction.label == HIGH_RISK_LABEL
    confidence = prediction.confidence_for(prediction.label) or 0.0
    return AnalysisResult(
        overall_risk=RiskLevel.HIGH if high_risk else RiskLevel.LOW,
        confidence=round(confidence * 100, 3),
        recommendations=list(HIGH_RISK_RECOMMENDATIONS if high_risk else LOW_RISK_RECOMMENDATIONS),
        predicted_label=prediction.label,
    )


class AnalysisSession(BaseModel):
    """Linear UI state: idle -> analyzing -> complete, with a failed branch."""

    status: AnalysisStatus = AnalysisStatus.IDLE
    result: Optional[AnalysisResult] = None
    error: Optional[str] = None
    job_id: Optional[str] = None

    def begin(self, file_count: int) -> None:
        if self.status not in (AnalysisStatus.IDLE, AnalysisStatus.FAILED):
            raise InvalidTransitionError(self.status.value, AnalysisStatus.ANALYZING.value)
        if file_count != len(DataType):
            raise AnalysisNotReadyError(
                f"Analysis requires {len(DataType)} genomic data files, got {file_count}"
            )
        self.status = AnalysisStatus.ANALYZING
        self.result = None
        self.error = None

    def complete(self, result: AnalysisResult) -> None:
        self._require(AnalysisStatus.ANALYZING, AnalysisStatus.COMPLETE)
        self.status = AnalysisStatus.COMPLETE
        self.result = result
        self.job_id = None

    def fail(self, message: str) -> None:
        self._require(AnalysisStatus.ANALYZING, AnalysisStatus.FAILED)
        self.status = AnalysisStatus.FAILED
        self.error = message
        self.job_id = None

    def reset(self) -> None:
        self.status = AnalysisStatus.IDLE
        self.result = None
        self.error = None
        self.job_id = None

    def files_changed(self) -> None:
        # A finished report no longer describes a changed upload set.
        if self.status in (AnalysisStatus.COMPLETE, AnalysisStatus.FAILED):
            self.reset()

    def _require(self, expected: AnalysisStatus, target: AnalysisStatus) -> None:
        if self.status != expected:
            raise InvalidTransitionError(self.status.value, target.value)


class AnalysisWorkflow:
    """Owns the upload collection and session, and drives the predictor."""

    def __init__(
        self,
        predictor: Predictor,
        files: Optional[List[UploadedFile]] = None,
        session: Optional[AnalysisSession] = None,
    ) -> None:
        self.predictor = predictor
        self.session = session or AnalysisSession()
        self.uploads = UploadCollection(files or [], on_change=self._on_files_uploaded)

    def _on_files_uploaded(self, files: List[UploadedFile]) -> None:
        logger.debug("Upload set changed", count=len(files))
        self.session.files_changed()

    def begin(self) -> Dict[DataType, Path]:
        self.session.begin(len(self.uploads))
        logger.info("Analysis started", files=[uploaded.filename for uploaded in self.uploads])
        return self.uploads.paths()

    def finish(self, prediction: Prediction) -> AnalysisResult:
        """Map the prediction and complete the session.

        A prediction that cannot be mapped fails the session and raises
        ``PredictorError``.
        """
        try:
            result = map_prediction(prediction)
        except ValidationError as exc:
            error = PredictorError(f"Predictor response out of range: {exc.errors()[0]['msg']}")
            self.fail(error)
            raise error from exc
        self.session.complete(result)
        logger.info("Analysis complete", risk=result.overall_risk.value, confidence=result.confidence)
        return result

    def fail(self, error: BaseException) -> None:
        self.session.fail(str(error))
        logger.error("Analysis failed", error=str(error))

    def run(self) -> AnalysisResult:
        """Run a full synchronous round trip to the predictor."""
        paths = self.begin()
        try:
            prediction = self.predictor.predict(paths)
        except Exception as exc:
            self.fail(exc)
            raise
        return self.finish(prediction)

    def start_new(self) -> None:
        self.uploads.clear()
        self.session.reset()
