"""Component ids shared by the layout and callbacks."""

from __future__ import annotations

from typing import Dict

from ..models import DataType

STORE_UPLOADS = "store-uploads"
STORE_SESSION = "store-session"
INTERVAL_JOB = "interval-job"
DOWNLOAD_REPORT = "download-report"
TOAST_CONTAINER = "toast-container"

UPLOAD_VIEW = "upload-view"
UPLOAD_PROGRESS = "upload-progress"
ANALYZE_PANEL = "analyze-panel"
BUTTON_ANALYZE = "button-analyze"
ANALYZE_STATUS = "analyze-status"
ANALYSIS_ERROR = "analysis-error"

RESULTS_VIEW = "results-view"
RESULTS_BODY = "results-body"
BUTTON_DOWNLOAD_REPORT = "button-download-report"
BUTTON_START_NEW = "button-start-new"

REMOVE_FILE = "remove-file"

UPLOAD_INPUTS: Dict[DataType, str] = {data_type: f"upload-{data_type.value}" for data_type in DataType}
SLOT_STATUS: Dict[DataType, str] = {data_type: f"slot-status-{data_type.value}" for data_type in DataType}
