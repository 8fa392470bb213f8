from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Mapping, Optional

import pytest

from genomic_risk import config as config_module
from genomic_risk import predictor as predictor_module
from genomic_risk.config import Settings
from genomic_risk.models import DataType, LabelConfidence, Prediction, UploadedFile
from genomic_risk.uploads import estimate_records, format_file_size


class FakePredictor:
    """Stands in for the hosted predictor and records every call."""

    def __init__(self, prediction: Optional[Prediction] = None, error: Optional[Exception] = None) -> None:
        self.prediction = prediction or Prediction(
            label="1",
            confidences=[
                LabelConfidence(label="1", confidence=0.923),
                LabelConfidence(label="0", confidence=0.077),
            ],
        )
        self.error = error
        self.calls: List[Dict[DataType, Path]] = []

    def predict(self, files: Mapping[DataType, Path]) -> Prediction:
        self.calls.append(dict(files))
        if self.error is not None:
            raise self.error
        return self.prediction


@pytest.fixture(autouse=True)
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Settings:
    monkeypatch.setenv("UPLOADS_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("LOGS_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("API_KEY", raising=False)
    monkeypatch.delenv("HF_TOKEN", raising=False)
    monkeypatch.delenv("MAX_UPLOAD_MB", raising=False)
    config_module.get_settings.cache_clear()
    predictor_module.build_predictor.cache_clear()
    yield config_module.get_settings()
    config_module.get_settings.cache_clear()
    predictor_module.build_predictor.cache_clear()


@pytest.fixture()
def fake_predictor() -> FakePredictor:
    return FakePredictor()


@pytest.fixture()
def predictor_factory():
    return FakePredictor


@pytest.fixture()
def parquet_files(tmp_path: Path) -> Dict[DataType, Path]:
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    files = {}
    for index, data_type in enumerate(DataType, start=1):
        path = data_dir / f"{data_type.value}_sample.parquet"
        path.write_bytes(b"PAR1" + b"\x00" * (2048 * index) + b"PAR1")
        files[data_type] = path
    return files


def _make_uploaded(data_type: DataType, path: Path, filename: Optional[str] = None) -> UploadedFile:
    size_bytes = path.stat().st_size if path.exists() else 0
    return UploadedFile(
        data_type=data_type,
        filename=filename or path.name,
        path=path,
        size_bytes=size_bytes,
        size=format_file_size(size_bytes),
        records=estimate_records(size_bytes),
    )


@pytest.fixture()
def uploaded_factory():
    return _make_uploaded


@pytest.fixture()
def uploaded_files(parquet_files: Dict[DataType, Path]) -> List[UploadedFile]:
    return [_make_uploaded(data_type, path) for data_type, path in parquet_files.items()]
