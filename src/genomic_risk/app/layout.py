"""Dash layout composition."""

from __future__ import annotations

import dash_bootstrap_components as dbc
from dash import dcc, html
from dash.development.base_component import Component

from ..analysis import AnalysisSession
from ..config import get_settings
from ..models import DataType
from . import ids
from .constants import APP_SUBTITLE, APP_TITLE, INSTRUCTIONS, SLOT_DESCRIPTIONS
from .state import session_to_store


def build_layout() -> Component:
    """Compose the header, upload view and results view."""
    settings = get_settings()
    return html.Div(
        [
            dcc.Store(id=ids.STORE_UPLOADS, data=[]),
            dcc.Store(id=ids.STORE_SESSION, data=session_to_store(AnalysisSession())),
            dcc.Interval(id=ids.INTERVAL_JOB, interval=settings.job_poll_interval_ms, n_intervals=0, disabled=True),
            dcc.Download(id=ids.DOWNLOAD_REPORT),
            html.Div(
                id=ids.TOAST_CONTAINER,
                style={"position": "fixed", "top": 16, "right": 16, "zIndex": 1080, "width": 350},
            ),
            _build_header(),
            dbc.Container(
                [
                    html.Div(_upload_view(), id=ids.UPLOAD_VIEW),
                    html.Div(_results_view(), id=ids.RESULTS_VIEW, hidden=True),
                ],
                className="py-4",
            ),
        ],
        className="app-root",
    )


def _build_header() -> Component:
    return html.Div(
        dbc.Container(
            html.Div(
                [
                    html.H1(APP_TITLE, className="h3 mb-1"),
                    html.P(APP_SUBTITLE, className="text-muted mb-0"),
                ]
            ),
            className="py-3",
        ),
        className="border-bottom bg-light",
    )


def _upload_view() -> Component:
    return html.Div(
        [
            dbc.Card(
                dbc.CardBody(
                    [
                        html.H4("Upload Genomic Data Files", className="section-title"),
                        html.P(INSTRUCTIONS, className="text-muted"),
                        html.Ul(
                            [
                                html.Li("DNA Sequencing Data"),
                                html.Li("RNA Expression Data"),
                                html.Li("miRNA Profile Data"),
                            ],
                            className="mb-0",
                        ),
                    ]
                ),
                className="mb-4",
            ),
            dbc.Card(
                dbc.CardBody(
                    [
                        dbc.Row([dbc.Col(_upload_slot(data_type), md=4) for data_type in DataType], className="g-4"),
                        html.Div(id=ids.UPLOAD_PROGRESS, className="mt-4"),
                    ]
                ),
                className="mb-4",
            ),
            html.Div(_analyze_panel(), id=ids.ANALYZE_PANEL, hidden=True),
            html.Div(id=ids.ANALYSIS_ERROR),
        ]
    )


def _upload_slot(data_type: DataType) -> Component:
    return html.Div(
        [
            html.Div(
                [
                    html.H5(data_type.display_name, className="mb-1"),
                    html.Small(SLOT_DESCRIPTIONS[data_type], className="text-muted"),
                ],
                className="text-center mb-3",
            ),
            dcc.Upload(
                id=ids.UPLOAD_INPUTS[data_type],
                multiple=False,
                accept=".parquet",
                children=html.Div(
                    [
                        html.Div(f"Drop {data_type.display_name} parquet file here or click to browse"),
                        dbc.Button("Select File", color="primary", size="sm", className="mt-2"),
                    ]
                ),
                className="upload-dropzone border border-2 rounded p-4 text-center",
                style={"borderStyle": "dashed"},
            ),
            html.Div(id=ids.SLOT_STATUS[data_type]),
        ]
    )


def _analyze_panel() -> Component:
    return dbc.Card(
        dbc.CardBody(
            [
                dbc.Button(
                    "Start Genomic Analysis",
                    id=ids.BUTTON_ANALYZE,
                    color="primary",
                    size="lg",
                ),
                html.Div(id=ids.ANALYZE_STATUS, className="text-muted mt-3"),
            ],
            className="text-center",
        ),
        className="mb-4",
    )


def _results_view() -> Component:
    return html.Div(
        [
            dbc.Card(
                dbc.CardBody(
                    dbc.Row(
                        [
                            dbc.Col(
                                [
                                    html.H3("Analysis Complete", className="mb-1"),
                                    html.P("AI-powered breast cancer detection results", className="text-muted mb-0"),
                                ],
                                md=7,
                            ),
                            dbc.Col(
                                [
                                    dbc.Button(
                                        "Download Report",
                                        id=ids.BUTTON_DOWNLOAD_REPORT,
                                        color="primary",
                                        className="me-2",
                                    ),
                                    dbc.Button(
                                        "New Analysis",
                                        id=ids.BUTTON_START_NEW,
                                        color="secondary",
                                        outline=True,
                                    ),
                                ],
                                md=5,
                                className="text-md-end mt-3 mt-md-0",
                            ),
                        ],
                        align="center",
                    )
                ),
                className="mb-4",
            ),
            html.Div(id=ids.RESULTS_BODY),
        ]
    )
