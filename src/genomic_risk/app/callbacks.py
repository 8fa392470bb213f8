"""Dash callbacks for the genomic risk app.

The registered callbacks are thin wrappers; the store transitions live in the
module-level ``process_*`` helpers so they can be exercised without a browser.
"""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import dash
import dash_bootstrap_components as dbc
from dash import Dash, Input, Output, State, callback_context, dcc, html, no_update
from dash.dependencies import ALL
from dash.development.base_component import Component

from ..analysis import AnalysisSession, AnalysisWorkflow
from ..background import FAILED, FINISHED, QUEUED, RUNNING, JobManager
from ..config import get_settings
from ..exceptions import AnalysisNotReadyError, InvalidTransitionError, PredictorError, UploadValidationError
from ..logging_config import get_logger
from ..models import AnalysisResult, AnalysisStatus, DataType, UploadedFile
from ..predictor import Predictor, build_predictor
from ..reporting import render_text_report, report_filename
from ..uploads import accept_upload, decode_data_url
from ..visualization import confidence_gauge
from . import ids
from .constants import MEDICAL_DISCLAIMER, SLOT_COLORS, TOAST_DURATION_MS
from .state import session_from_store, session_to_store, uploads_from_store, uploads_to_store

logger = get_logger(__name__)

JOB_MANAGER = JobManager(max_workers=2)
# Files replaced while a job still reads them, keyed by job id.
_DEFERRED_DISCARDS: Dict[str, List[UploadedFile]] = {}
_DEFERRED_LOCK = threading.Lock()
_UPLOAD_TYPES: Dict[str, DataType] = {component_id: data_type for data_type, component_id in ids.UPLOAD_INPUTS.items()}

StoreData = Any


def _workflow(uploads_data: Optional[List[Dict[str, Any]]], session_data: Optional[Dict[str, Any]]) -> AnalysisWorkflow:
    collection = uploads_from_store(uploads_data)
    return AnalysisWorkflow(build_predictor(), files=collection.files, session=session_from_store(session_data))


def _toast(title: str, description: str, icon: str = "success") -> dbc.Toast:
    return dbc.Toast(
        description,
        header=title,
        icon=icon,
        is_open=True,
        dismissable=True,
        duration=TOAST_DURATION_MS,
    )


def _discard_files(files: List[UploadedFile]) -> None:
    for uploaded in files:
        uploaded.path.unlink(missing_ok=True)


def _release_files(session: AnalysisSession, files: List[UploadedFile]) -> None:
    """Delete files now, or once the running job for ``session`` settles."""
    job_id = session.job_id
    if session.status == AnalysisStatus.ANALYZING and job_id and JOB_MANAGER.status(job_id) in (QUEUED, RUNNING):
        with _DEFERRED_LOCK:
            _DEFERRED_DISCARDS.setdefault(job_id, []).extend(files)
        return
    _discard_files(files)


def _release_deferred(job_id: str) -> None:
    with _DEFERRED_LOCK:
        files = _DEFERRED_DISCARDS.pop(job_id, [])
    _discard_files(files)


def _predict(predictor: Predictor, paths: Dict[DataType, Any]):
    return predictor.predict(paths)


def process_upload(
    data_type: DataType,
    contents: Optional[str],
    filename: Optional[str],
    uploads_data: StoreData,
    session_data: StoreData,
) -> Tuple[StoreData, StoreData, Component]:
    """Validate one dropped file and upsert it into the type slot."""
    if not contents or not filename:
        raise dash.exceptions.PreventUpdate

    settings = get_settings()
    try:
        payload = decode_data_url(contents)
        uploaded = accept_upload(
            data_type,
            filename,
            payload,
            settings.uploads_dir,
            max_bytes=settings.max_upload_bytes,
            data_url=contents,
        )
    except UploadValidationError as exc:
        return no_update, no_update, _toast(exc.title, exc.description, icon="danger")
    except ValueError as exc:
        logger.warning("Upload could not be decoded", data_type=data_type.value, filename=filename)
        return no_update, no_update, _toast("Upload failed", str(exc), icon="danger")

    workflow = _workflow(uploads_data, session_data)
    previous = workflow.uploads.get(data_type)
    workflow.uploads.upsert(uploaded)
    if previous is not None:
        _release_files(workflow.session, [previous])
    return (
        uploads_to_store(workflow.uploads),
        session_to_store(workflow.session),
        _toast("Genomic data uploaded", f"{data_type.value.upper()} file has been uploaded successfully"),
    )


def process_removal(
    data_type: DataType,
    uploads_data: StoreData,
    session_data: StoreData,
) -> Tuple[StoreData, StoreData, Component]:
    workflow = _workflow(uploads_data, session_data)
    index = workflow.uploads.index_of(data_type)
    if index < 0:
        raise dash.exceptions.PreventUpdate
    removed = workflow.uploads.remove(index)
    _release_files(workflow.session, [removed])
    logger.info("Upload removed", data_type=data_type.value, filename=removed.filename)
    return (
        uploads_to_store(workflow.uploads),
        session_to_store(workflow.session),
        _toast("File removed", "Genomic data file has been removed from the analysis"),
    )


def process_start(uploads_data: StoreData, session_data: StoreData) -> Tuple[StoreData, bool]:
    """Move the session to analyzing and submit the predictor call."""
    workflow = _workflow(uploads_data, session_data)
    try:
        paths = workflow.begin()
    except (AnalysisNotReadyError, InvalidTransitionError) as exc:
        logger.warning("Analysis not started", reason=str(exc))
        raise dash.exceptions.PreventUpdate from exc

    workflow.session.job_id = JOB_MANAGER.submit(_predict, workflow.predictor, paths)
    return session_to_store(workflow.session), False


def process_poll(session_data: StoreData) -> Tuple[StoreData, bool]:
    """Settle an analyzing session once its background job has finished."""
    session = session_from_store(session_data)
    if session.status != AnalysisStatus.ANALYZING or not session.job_id:
        return no_update, True

    job_id = session.job_id
    status = JOB_MANAGER.status(job_id)
    if status in (QUEUED, RUNNING):
        raise dash.exceptions.PreventUpdate

    workflow = AnalysisWorkflow(build_predictor(), session=session)
    if status == FINISHED:
        try:
            workflow.finish(JOB_MANAGER.result(job_id))
        except PredictorError as exc:
            logger.warning("Prediction could not be mapped", job_id=job_id, error=str(exc))
    elif status == FAILED:
        workflow.fail(JOB_MANAGER.exception(job_id) or RuntimeError("Unknown failure"))
    else:
        workflow.fail(RuntimeError("Analysis job was lost before it finished"))
    JOB_MANAGER.discard(job_id)
    _release_deferred(job_id)
    return session_to_store(workflow.session), True


def process_start_new(uploads_data: StoreData, session_data: StoreData) -> Tuple[StoreData, StoreData]:
    workflow = _workflow(uploads_data, session_data)
    files = workflow.uploads.files
    workflow.start_new()
    _discard_files(files)
    return uploads_to_store(workflow.uploads), session_to_store(workflow.session)


def process_download(session_data: StoreData) -> Dict[str, str]:
    session = session_from_store(session_data)
    if session.result is None:
        raise dash.exceptions.PreventUpdate
    generated_at = datetime.now()
    return dict(
        content=render_text_report(session.result, generated_at=generated_at),
        filename=report_filename(generated_at),
    )


def _uploaded_card(uploaded: UploadedFile) -> Component:
    return html.Div(
        [
            dbc.Alert(
                [
                    html.Div(
                        [
                            html.Strong(uploaded.filename, className="text-truncate"),
                            dbc.Button(
                                "✕",
                                id={"type": ids.REMOVE_FILE, "data_type": uploaded.data_type.value},
                                color="link",
                                size="sm",
                                className="text-danger p-0 ms-2",
                            ),
                        ],
                        className="d-flex justify-content-between align-items-center",
                    ),
                    html.Small(f"Size: {uploaded.size}"),
                ],
                color="success",
                className="mb-2",
            ),
            html.Div(dbc.Badge("✓ Uploaded", color=SLOT_COLORS[uploaded.data_type], pill=True), className="text-center"),
        ]
    )


def render_upload_slots(uploads_data: StoreData) -> Tuple[List[Any], List[str], Any, bool]:
    """Return slot cards, drop-zone classes, progress block and analyze-panel visibility."""
    collection = uploads_from_store(uploads_data)
    slot_children: List[Any] = []
    zone_classes: List[str] = []
    base_class = "upload-dropzone border border-2 rounded p-4 text-center"
    for data_type in DataType:
        uploaded = collection.get(data_type)
        slot_children.append(_uploaded_card(uploaded) if uploaded else None)
        zone_classes.append(f"{base_class} d-none" if uploaded else base_class)

    count = len(collection)
    total = len(DataType)
    if count:
        progress = html.Div(
            [
                html.Div(
                    [
                        html.Span(f"{count} of {total} genomic data files uploaded"),
                        dbc.Badge("✓ Ready for analysis", color="success", className="ms-2") if collection.is_complete else None,
                    ],
                    className="mb-2",
                ),
                dbc.Progress(value=count / total * 100),
            ]
        )
    else:
        progress = None
    return slot_children, zone_classes, progress, not collection.is_complete


def render_results(result: AnalysisResult) -> Component:
    risk_color = "danger" if result.is_high_risk else "success"
    return html.Div(
        [
            dbc.Card(
                dbc.CardBody(
                    [
                        html.H4("Overall Risk Assessment", className="section-title"),
                        dbc.Row(
                            [
                                dbc.Col(
                                    [
                                        dbc.Alert(
                                            html.H3(result.overall_risk.value, className="mb-0"),
                                            color=risk_color,
                                            className="text-center",
                                        ),
                                        html.Small("AI Confidence", className="text-muted"),
                                        dbc.Progress(
                                            value=result.confidence,
                                            label=f"{result.confidence_display}%",
                                            color=risk_color,
                                            className="mt-1",
                                        ),
                                    ],
                                    md=6,
                                ),
                                dbc.Col(
                                    dcc.Graph(figure=confidence_gauge(result), config={"displayModeBar": False}),
                                    md=6,
                                ),
                            ],
                            align="center",
                        ),
                    ]
                ),
                className="mb-4",
            ),
            dbc.Card(
                dbc.CardBody(
                    [
                        html.H4("Medical Recommendations", className="section-title"),
                        html.Ol([html.Li(item, className="mb-2") for item in result.recommendations], className="mb-0"),
                    ]
                ),
                className="mb-4",
            ),
            dbc.Alert(
                [html.H5("Medical Disclaimer", className="alert-heading"), html.P(MEDICAL_DISCLAIMER, className="mb-0")],
                color="warning",
            ),
        ]
    )


def render_session(session_data: StoreData) -> Tuple[bool, bool, Any, bool, Any, Any, Any]:
    """Return view visibility, analyze button state, error alert and results body."""
    session = session_from_store(session_data)
    analyzing = session.status == AnalysisStatus.ANALYZING
    complete = session.status == AnalysisStatus.COMPLETE and session.result is not None

    if analyzing:
        button_children: Any = [dbc.Spinner(size="sm", spinner_class_name="me-2"), "Processing Genomic Data..."]
        status_text: Any = "Our AI is analyzing your genomic data. This may take several minutes..."
    else:
        button_children = "Start Genomic Analysis"
        status_text = None

    error_alert = None
    if session.status == AnalysisStatus.FAILED:
        error_alert = dbc.Alert(
            [
                html.Strong("Analysis failed. "),
                session.error or "The prediction service did not respond.",
                " You can start the analysis again or replace a file.",
            ],
            color="danger",
        )

    results_body = render_results(session.result) if complete else None
    return complete, not complete, button_children, analyzing, status_text, error_alert, results_body


def register_callbacks(app: Dash) -> None:
    upload_types = list(DataType)

    @app.callback(
        Output(ids.STORE_UPLOADS, "data"),
        Output(ids.STORE_SESSION, "data", allow_duplicate=True),
        Output(ids.TOAST_CONTAINER, "children"),
        *[Output(ids.UPLOAD_INPUTS[data_type], "contents") for data_type in upload_types],
        *[Input(ids.UPLOAD_INPUTS[data_type], "contents") for data_type in upload_types],
        *[State(ids.UPLOAD_INPUTS[data_type], "filename") for data_type in upload_types],
        State(ids.STORE_UPLOADS, "data"),
        State(ids.STORE_SESSION, "data"),
        prevent_initial_call=True,
    )
    def handle_upload(*args):
        count = len(upload_types)
        contents_by_type = dict(zip(upload_types, args[:count]))
        filenames_by_type = dict(zip(upload_types, args[count : 2 * count]))
        uploads_data, session_data = args[2 * count :]

        data_type = _UPLOAD_TYPES.get(callback_context.triggered_id)
        if data_type is None:
            raise dash.exceptions.PreventUpdate
        uploads, session, toast = process_upload(
            data_type,
            contents_by_type[data_type],
            filenames_by_type[data_type],
            uploads_data,
            session_data,
        )
        # Clearing the contents lets the same file be selected again later.
        return (uploads, session, toast, *[None] * count)

    @app.callback(
        Output(ids.STORE_UPLOADS, "data", allow_duplicate=True),
        Output(ids.STORE_SESSION, "data", allow_duplicate=True),
        Output(ids.TOAST_CONTAINER, "children", allow_duplicate=True),
        Input({"type": ids.REMOVE_FILE, "data_type": ALL}, "n_clicks"),
        State(ids.STORE_UPLOADS, "data"),
        State(ids.STORE_SESSION, "data"),
        prevent_initial_call=True,
    )
    def remove_file(_n_clicks, uploads_data, session_data):
        triggered_id = callback_context.triggered_id
        if not isinstance(triggered_id, dict) or not callback_context.triggered[0].get("value"):
            raise dash.exceptions.PreventUpdate
        return process_removal(DataType(triggered_id["data_type"]), uploads_data, session_data)

    @app.callback(
        *[Output(ids.SLOT_STATUS[data_type], "children") for data_type in upload_types],
        *[Output(ids.UPLOAD_INPUTS[data_type], "className") for data_type in upload_types],
        Output(ids.UPLOAD_PROGRESS, "children"),
        Output(ids.ANALYZE_PANEL, "hidden"),
        Input(ids.STORE_UPLOADS, "data"),
    )
    def refresh_upload_slots(uploads_data):
        slot_children, zone_classes, progress, panel_hidden = render_upload_slots(uploads_data)
        return (*slot_children, *zone_classes, progress, panel_hidden)

    @app.callback(
        Output(ids.STORE_SESSION, "data"),
        Output(ids.INTERVAL_JOB, "disabled"),
        Input(ids.BUTTON_ANALYZE, "n_clicks"),
        State(ids.STORE_UPLOADS, "data"),
        State(ids.STORE_SESSION, "data"),
        prevent_initial_call=True,
    )
    def start_analysis(_n_clicks, uploads_data, session_data):
        return process_start(uploads_data, session_data)

    @app.callback(
        Output(ids.STORE_SESSION, "data", allow_duplicate=True),
        Output(ids.INTERVAL_JOB, "disabled", allow_duplicate=True),
        Input(ids.INTERVAL_JOB, "n_intervals"),
        State(ids.STORE_SESSION, "data"),
        prevent_initial_call=True,
    )
    def poll_analysis(_n_intervals, session_data):
        return process_poll(session_data)

    @app.callback(
        Output(ids.UPLOAD_VIEW, "hidden"),
        Output(ids.RESULTS_VIEW, "hidden"),
        Output(ids.BUTTON_ANALYZE, "children"),
        Output(ids.BUTTON_ANALYZE, "disabled"),
        Output(ids.ANALYZE_STATUS, "children"),
        Output(ids.ANALYSIS_ERROR, "children"),
        Output(ids.RESULTS_BODY, "children"),
        Input(ids.STORE_SESSION, "data"),
    )
    def refresh_session(session_data):
        return render_session(session_data)

    @app.callback(
        Output(ids.STORE_UPLOADS, "data", allow_duplicate=True),
        Output(ids.STORE_SESSION, "data", allow_duplicate=True),
        Input(ids.BUTTON_START_NEW, "n_clicks"),
        State(ids.STORE_UPLOADS, "data"),
        State(ids.STORE_SESSION, "data"),
        prevent_initial_call=True,
    )
    def start_new(_n_clicks, uploads_data, session_data):
        return process_start_new(uploads_data, session_data)

    @app.callback(
        Output(ids.DOWNLOAD_REPORT, "data"),
        Input(ids.BUTTON_DOWNLOAD_REPORT, "n_clicks"),
        State(ids.STORE_SESSION, "data"),
        prevent_initial_call=True,
    )
    def download_report(_n_clicks, session_data):
        return process_download(session_data)
