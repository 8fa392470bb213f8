"""Conversions between ``dcc.Store`` payloads and domain objects."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

from ..analysis import AnalysisSession
from ..config import get_settings
from ..logging_config import get_logger
from ..models import UploadedFile
from ..uploads import UploadCollection

logger = get_logger(__name__)


def _inside(path: Path, root: Path) -> bool:
    return path.resolve().is_relative_to(root.resolve())


def uploads_from_store(data: Optional[List[Dict[str, Any]]]) -> UploadCollection:
    """Rebuild the collection, dropping entries that point outside the uploads dir.

    Store payloads come back from the browser, so a path is only trusted when
    it names a file this server wrote.
    """
    uploads_dir = get_settings().uploads_dir
    files: List[UploadedFile] = []
    for item in data or []:
        uploaded = UploadedFile.model_validate(item)
        if not _inside(uploaded.path, uploads_dir):
            logger.warning("Ignoring upload outside uploads dir", path=str(uploaded.path))
            continue
        files.append(uploaded)
    return UploadCollection(files)


def uploads_to_store(collection: UploadCollection) -> List[Dict[str, Any]]:
    return [uploaded.model_dump(mode="json") for uploaded in collection]


def session_from_store(data: Optional[Dict[str, Any]]) -> AnalysisSession:
    if not data:
        return AnalysisSession()
    return AnalysisSession.model_validate(data)


def session_to_store(session: AnalysisSession) -> Dict[str, Any]:
    return session.model_dump(mode="json")
