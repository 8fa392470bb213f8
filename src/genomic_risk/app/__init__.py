"""Dash application factory for the genomic risk studio."""

from __future__ import annotations

import dash_bootstrap_components as dbc
from dash import Dash

from .callbacks import register_callbacks
from .constants import APP_TITLE
from .layout import build_layout


def create_app() -> Dash:
    app = Dash(__name__, external_stylesheets=[dbc.themes.FLATLY], suppress_callback_exceptions=True)
    app.title = APP_TITLE
    app.layout = build_layout()
    register_callbacks(app)
    return app
