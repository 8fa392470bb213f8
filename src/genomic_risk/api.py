"""FastAPI surface for the genomic risk workflow."""

from __future__ import annotations

from typing import Dict, Optional

from fastapi import Depends, FastAPI, File, Header, HTTPException, UploadFile, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from . import __version__
from .analysis import AnalysisWorkflow
from .config import get_settings
from .exceptions import PredictorError, UploadValidationError
from .logging_config import get_logger
from .models import AnalysisResult, DataType
from .predictor import FIELD_NAMES, Predictor, build_predictor
from .reporting import render_text_report, report_filename
from .uploads import accept_upload

logger = get_logger(__name__)


class HealthResponse(BaseModel):
    status: str
    version: str
    predictor_space: str


def create_app(predictor: Optional[Predictor] = None) -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Genomic Risk Studio API", version=__version__)

    def auth_dependency(x_api_key: Optional[str] = Header(default=None, alias="X-API-Key")) -> None:
        configured = settings.api_key
        if configured and x_api_key != configured:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")

    def predictor_dependency() -> Predictor:
        return predictor or build_predictor()

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__, predictor_space=settings.predictor_space)

    @app.post("/v1/predictions", response_model=AnalysisResult)
    def create_prediction(
        dna_file: UploadFile = File(..., description="DNA methylation data (.parquet)"),
        rna_file: UploadFile = File(..., description="RNA expression data (.parquet)"),
        mirna_file: UploadFile = File(..., description="miRNA profile data (.parquet)"),
        active_predictor: Predictor = Depends(predictor_dependency),
        _: None = Depends(auth_dependency),
    ) -> AnalysisResult:
        uploads: Dict[DataType, UploadFile] = {
            DataType.DNA: dna_file,
            DataType.RNA: rna_file,
            DataType.MIRNA: mirna_file,
        }
        workflow = AnalysisWorkflow(active_predictor)
        try:
            for data_type, upload in uploads.items():
                try:
                    uploaded = accept_upload(
                        data_type,
                        upload.filename or "",
                        upload.file.read(),
                        settings.uploads_dir,
                        max_bytes=settings.max_upload_bytes,
                    )
                except UploadValidationError as exc:
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail={
                            "field": f"{data_type.value}_file",
                            "title": exc.title,
                            "description": exc.description,
                        },
                    ) from exc
                workflow.uploads.upsert(uploaded)

            try:
                return workflow.run()
            except PredictorError as exc:
                raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
        finally:
            for uploaded in workflow.uploads:
                uploaded.path.unlink(missing_ok=True)

    @app.post("/v1/reports", response_class=PlainTextResponse)
    def create_report(result: AnalysisResult, _: None = Depends(auth_dependency)) -> PlainTextResponse:
        filename = report_filename()
        return PlainTextResponse(
            render_text_report(result),
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    logger.info("API ready", predictor_space=settings.predictor_space, fields=sorted(FIELD_NAMES.values()))
    return app
