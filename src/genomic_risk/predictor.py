"""Thin RPC client for the hosted risk predictor."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Protocol

from gradio_client import Client, handle_file
from pydantic import ValidationError

from .config import get_settings
from .exceptions import PredictorError
from .logging_config import get_logger
from .models import DataType, Prediction

logger = get_logger(__name__)

FIELD_NAMES: Dict[DataType, str] = {
    DataType.DNA: "meth_file",
    DataType.RNA: "rna_file",
    DataType.MIRNA: "mirna_file",
}
"""Keyword names the predictor endpoint expects for each data type."""


class Predictor(Protocol):
    def predict(self, files: Mapping[DataType, Path]) -> Prediction:
        ...


def parse_prediction(raw: Any) -> Prediction:
    """Normalise the predictor's Label output into a ``Prediction``."""
    payload = raw
    if isinstance(payload, (list, tuple)):
        if not payload:
            raise PredictorError("Predictor returned an empty response")
        payload = payload[0]
    if not isinstance(payload, dict):
        raise PredictorError(f"Unexpected predictor response: {type(payload).__name__}")
    try:
        return Prediction.model_validate(payload)
    except ValidationError as exc:
        raise PredictorError(f"Malformed predictor response: {exc.errors()[0]['msg']}") from exc


class GradioPredictor:
    """Calls a Gradio Space endpoint with the three genomic files."""

    def __init__(
        self,
        space: str,
        api_name: str = "/predict",
        hf_token: Optional[str] = None,
        client_factory: Callable[..., Any] = Client,
    ) -> None:
        self.space = space
        self.api_name = api_name
        self._hf_token = hf_token
        self._client_factory = client_factory
        self._client: Any = None

    def _connect(self) -> Any:
        if self._client is None:
            kwargs = {"hf_token": self._hf_token} if self._hf_token else {}
            logger.info("Connecting to predictor", space=self.space)
            self._client = self._client_factory(self.space, **kwargs)
        return self._client

    def predict(self, files: Mapping[DataType, Path]) -> Prediction:
        missing = [data_type.value for data_type in FIELD_NAMES if data_type not in files]
        if missing:
            raise PredictorError(f"Predictor requires files for: {', '.join(missing)}")

        try:
            arguments = {FIELD_NAMES[data_type]: handle_file(str(files[data_type])) for data_type in FIELD_NAMES}
            client = self._connect()
            raw = client.predict(api_name=self.api_name, **arguments)
        except Exception as exc:
            logger.error("Predictor call failed", space=self.space, error=str(exc))
            raise PredictorError(f"Predictor call failed: {exc}") from exc

        prediction = parse_prediction(raw)
        logger.info("Prediction received", label=prediction.label, confidences=len(prediction.confidences))
        return prediction


@lru_cache(1)
def build_predictor() -> GradioPredictor:
    settings = get_settings()
    return GradioPredictor(
        space=settings.predictor_space,
        api_name=settings.predictor_api_name,
        hf_token=settings.hf_token,
    )
