"""Upload validation and the keyed-by-type upload collection."""

from __future__ import annotations

import base64
import binascii
import uuid
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from .exceptions import AnalysisNotReadyError, UploadValidationError
from .logging_config import get_logger
from .models import DataType, UploadedFile

logger = get_logger(__name__)

ALLOWED_SUFFIX = ".parquet"
DEFAULT_MAX_BYTES = 100 * 1024 * 1024
_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")

ChangeListener = Callable[[List[UploadedFile]], None]


def format_file_size(size_bytes: int) -> str:
    """Return a human-readable size using base-1024 units."""
    if size_bytes <= 0:
        return "0 Bytes"
    exponent = 0
    while size_bytes >= 1024 ** (exponent + 1) and exponent < len(_SIZE_UNITS) - 1:
        exponent += 1
    value = round(size_bytes / 1024**exponent, 2)
    return f"{value:g} {_SIZE_UNITS[exponent]}"


def estimate_records(size_bytes: int) -> int:
    return size_bytes // 1024


def validate_upload(filename: str, size_bytes: int, max_bytes: int = DEFAULT_MAX_BYTES) -> None:
    """Reject files that are not parquet or exceed ``max_bytes``."""
    if not filename or not filename.lower().endswith(ALLOWED_SUFFIX):
        raise UploadValidationError("Invalid file type", "Please upload .parquet files only")
    if size_bytes > max_bytes:
        limit_mb = max_bytes // (1024 * 1024)
        raise UploadValidationError("File too large", f"Please upload files smaller than {limit_mb}MB")


def decode_data_url(contents: str) -> bytes:
    """Decode the base64 payload of a browser data URL."""
    if not contents:
        raise ValueError("No contents to decode")
    _, _, data = contents.partition(",")
    try:
        return base64.b64decode(data or contents, validate=False)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("Upload contents are not valid base64") from exc


def accept_upload(
    data_type: DataType,
    filename: str,
    payload: bytes,
    upload_dir: Path,
    max_bytes: int = DEFAULT_MAX_BYTES,
    data_url: Optional[str] = None,
) -> UploadedFile:
    """Validate and persist an uploaded file, returning its slot record."""
    try:
        validate_upload(filename, len(payload), max_bytes)
    except UploadValidationError as exc:
        logger.warning("Upload rejected", data_type=data_type.value, filename=filename, reason=exc.title)
        raise

    upload_dir.mkdir(parents=True, exist_ok=True)
    path = upload_dir / f"{data_type.value}_{uuid.uuid4().hex}{ALLOWED_SUFFIX}"
    path.write_bytes(payload)

    size_bytes = len(payload)
    uploaded = UploadedFile(
        data_type=data_type,
        filename=filename,
        path=path,
        size_bytes=size_bytes,
        size=format_file_size(size_bytes),
        records=estimate_records(size_bytes),
        data_url=data_url,
    )
    logger.info("Upload accepted", data_type=data_type.value, filename=filename, size=uploaded.size)
    return uploaded


def load_local_file(data_type: DataType, path: Path, max_bytes: int = DEFAULT_MAX_BYTES) -> UploadedFile:
    """Validate a file already on disk and describe it without copying it."""
    size_bytes = path.stat().st_size
    validate_upload(path.name, size_bytes, max_bytes)
    return UploadedFile(
        data_type=data_type,
        filename=path.name,
        path=path,
        size_bytes=size_bytes,
        size=format_file_size(size_bytes),
        records=estimate_records(size_bytes),
    )


class UploadCollection:
    """At most one uploaded file per data type, in upload order.

    Every mutation notifies ``on_change`` with a copy of the full collection
    as it stands after the mutation.
    """

    def __init__(
        self,
        files: Iterable[UploadedFile] = (),
        on_change: Optional[ChangeListener] = None,
    ) -> None:
        self._files: List[UploadedFile] = []
        for uploaded in files:
            self._upsert(uploaded)
        self._on_change = on_change

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[UploadedFile]:
        return iter(list(self._files))

    @property
    def files(self) -> List[UploadedFile]:
        return list(self._files)

    @property
    def is_complete(self) -> bool:
        return len(self._files) == len(DataType)

    def get(self, data_type: DataType) -> Optional[UploadedFile]:
        index = self.index_of(data_type)
        return self._files[index] if index >= 0 else None

    def index_of(self, data_type: DataType) -> int:
        for index, uploaded in enumerate(self._files):
            if uploaded.data_type == data_type:
                return index
        return -1

    def missing_types(self) -> List[DataType]:
        present = {uploaded.data_type for uploaded in self._files}
        return [data_type for data_type in DataType if data_type not in present]

    def paths(self) -> Dict[DataType, Path]:
        if not self.is_complete:
            missing = ", ".join(data_type.display_name for data_type in self.missing_types())
            raise AnalysisNotReadyError(f"Missing genomic data files: {missing}")
        return {uploaded.data_type: uploaded.path for uploaded in self._files}

    def upsert(self, uploaded: UploadedFile) -> None:
        self._upsert(uploaded)
        self._notify()

    def remove(self, index: int) -> UploadedFile:
        if index < 0 or index >= len(self._files):
            raise IndexError(f"No uploaded file at position {index}")
        removed = self._files.pop(index)
        self._notify()
        return removed

    def clear(self) -> None:
        self._files = []
        self._notify()

    def _upsert(self, uploaded: UploadedFile) -> None:
        index = self.index_of(uploaded.data_type)
        if index >= 0:
            self._files[index] = uploaded
        else:
            self._files.append(uploaded)

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self.files)
