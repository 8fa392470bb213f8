"""Plotly visualization utilities for analysis results."""

from __future__ import annotations

import plotly.graph_objects as go

from .models import AnalysisResult

HIGH_RISK_COLOR = "#dc3545"
LOW_RISK_COLOR = "#198754"


def risk_color(result: AnalysisResult) -> str:
    return HIGH_RISK_COLOR if result.is_high_risk else LOW_RISK_COLOR


def confidence_gauge(result: AnalysisResult) -> go.Figure:
    """Create a gauge showing the model confidence for the predicted label."""
    fig = go.Figure(
        go.Indicator(
            mode="gauge+number",
            value=result.confidence,
            number={"suffix": "%", "valueformat": ".3~f"},
            title={"text": "AI Confidence"},
            gauge={
                "axis": {"range": [0, 100]},
                "bar": {"color": risk_color(result)},
                "steps": [
                    {"range": [0, 50], "color": "rgba(0,0,0,0.05)"},
                    {"range": [50, 100], "color": "rgba(0,0,0,0.1)"},
                ],
            },
        )
    )
    fig.update_layout(height=240, margin=dict(l=30, r=30, t=50, b=10), template="plotly_white")
    return fig
