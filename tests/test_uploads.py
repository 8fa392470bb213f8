from __future__ import annotations

import base64
from pathlib import Path

import pytest

from genomic_risk.exceptions import AnalysisNotReadyError, UploadValidationError
from genomic_risk.models import DataType
from genomic_risk.uploads import (
    DEFAULT_MAX_BYTES,
    UploadCollection,
    accept_upload,
    decode_data_url,
    estimate_records,
    format_file_size,
    load_local_file,
    validate_upload,
)


@pytest.mark.parametrize(
    ("size_bytes", "expected"),
    [
        (0, "0 Bytes"),
        (500, "500 Bytes"),
        (1024, "1 KB"),
        (1536, "1.5 KB"),
        (1234, "1.21 KB"),
        (5 * 1024 * 1024, "5 MB"),
        (3 * 1024**3, "3 GB"),
    ],
)
def test_format_file_size(size_bytes: int, expected: str):
    assert format_file_size(size_bytes) == expected


def test_estimate_records_uses_kilobytes():
    assert estimate_records(10 * 1024 + 5) == 10
    assert estimate_records(1023) == 0


def test_validate_upload_rejects_wrong_extension():
    with pytest.raises(UploadValidationError) as excinfo:
        validate_upload("expression.csv", 10)
    assert excinfo.value.title == "Invalid file type"
    assert excinfo.value.description == "Please upload .parquet files only"


def test_validate_upload_checks_extension_before_size():
    with pytest.raises(UploadValidationError) as excinfo:
        validate_upload("expression.csv", DEFAULT_MAX_BYTES + 1)
    assert excinfo.value.title == "Invalid file type"


def test_validate_upload_rejects_oversized_file():
    with pytest.raises(UploadValidationError) as excinfo:
        validate_upload("methylation.parquet", DEFAULT_MAX_BYTES + 1)
    assert excinfo.value.title == "File too large"
    assert excinfo.value.description == "Please upload files smaller than 100MB"


def test_validate_upload_accepts_boundary_and_uppercase_suffix():
    validate_upload("METHYLATION.PARQUET", DEFAULT_MAX_BYTES)


def test_decode_data_url():
    encoded = base64.b64encode(b"PAR1 payload").decode()
    assert decode_data_url(f"data:application/octet-stream;base64,{encoded}") == b"PAR1 payload"


def test_decode_data_url_requires_contents():
    with pytest.raises(ValueError):
        decode_data_url("")


def test_accept_upload_persists_file(tmp_path: Path):
    upload_dir = tmp_path / "uploads"
    payload = b"x" * 4096
    uploaded = accept_upload(DataType.RNA, "rna.parquet", payload, upload_dir, data_url="data:;base64,eA==")

    assert uploaded.data_type == DataType.RNA
    assert uploaded.filename == "rna.parquet"
    assert uploaded.path.parent == upload_dir
    assert uploaded.path.read_bytes() == payload
    assert uploaded.size == "4 KB"
    assert uploaded.records == 4
    assert uploaded.data_url == "data:;base64,eA=="
    assert "data_url" not in uploaded.model_dump(mode="json")


def test_accept_upload_rejection_writes_nothing(tmp_path: Path):
    upload_dir = tmp_path / "uploads"
    with pytest.raises(UploadValidationError):
        accept_upload(DataType.DNA, "dna.txt", b"abc", upload_dir)
    assert not upload_dir.exists() or not any(upload_dir.iterdir())


def test_accept_upload_honours_custom_limit(tmp_path: Path):
    with pytest.raises(UploadValidationError) as excinfo:
        accept_upload(DataType.DNA, "dna.parquet", b"x" * (2 * 1024 * 1024 + 1), tmp_path, max_bytes=2 * 1024 * 1024)
    assert excinfo.value.description == "Please upload files smaller than 2MB"


def test_load_local_file_describes_without_copying(parquet_files):
    path = parquet_files[DataType.MIRNA]
    uploaded = load_local_file(DataType.MIRNA, path)
    assert uploaded.path == path
    assert uploaded.size_bytes == path.stat().st_size


def test_upsert_replaces_same_type(uploaded_files, uploaded_factory, tmp_path: Path):
    collection = UploadCollection(uploaded_files[:2])
    replacement_path = tmp_path / "dna_v2.parquet"
    replacement_path.write_bytes(b"PAR1")

    collection.upsert(uploaded_factory(DataType.DNA, replacement_path))

    assert len(collection) == 2
    assert collection.index_of(DataType.DNA) == 0
    assert collection.get(DataType.DNA).filename == "dna_v2.parquet"


def test_collection_never_exceeds_three_entries(uploaded_factory, tmp_path: Path):
    collection = UploadCollection()
    for round_number in range(4):
        for data_type in DataType:
            path = tmp_path / f"{data_type.value}_{round_number}.parquet"
            path.write_bytes(b"PAR1")
            collection.upsert(uploaded_factory(data_type, path))
            assert len(collection) <= 3

    assert len(collection) == 3
    assert {uploaded.data_type for uploaded in collection} == set(DataType)
    assert collection.get(DataType.RNA).filename == "rna_3.parquet"


def test_change_listener_receives_current_collection(uploaded_files):
    seen = []
    collection = UploadCollection(on_change=seen.append)

    for uploaded in uploaded_files:
        collection.upsert(uploaded)
    removed = collection.remove(1)

    assert [len(files) for files in seen] == [1, 2, 3, 2]
    assert removed.data_type == DataType.RNA
    assert [uploaded.data_type for uploaded in seen[-1]] == [DataType.DNA, DataType.MIRNA]
    assert seen[-1] == collection.files


def test_change_listener_gets_a_copy(uploaded_files):
    seen = []
    collection = UploadCollection(uploaded_files, on_change=seen.append)
    collection.clear()
    seen[-1].append(uploaded_files[0])
    assert len(collection) == 0


def test_initial_files_do_not_notify(uploaded_files):
    seen = []
    UploadCollection(uploaded_files, on_change=seen.append)
    assert seen == []


def test_remove_out_of_range(uploaded_files):
    collection = UploadCollection(uploaded_files)
    with pytest.raises(IndexError):
        collection.remove(3)
    with pytest.raises(IndexError):
        collection.remove(-1)
    assert len(collection) == 3


def test_rejected_file_leaves_collection_untouched(uploaded_files, tmp_path: Path):
    collection = UploadCollection(uploaded_files)
    before = collection.files
    with pytest.raises(UploadValidationError):
        collection.upsert(accept_upload(DataType.DNA, "dna.csv", b"abc", tmp_path))
    assert collection.files == before


def test_paths_require_complete_collection(uploaded_files, parquet_files):
    collection = UploadCollection(uploaded_files[:2])
    assert not collection.is_complete
    assert collection.missing_types() == [DataType.MIRNA]
    with pytest.raises(AnalysisNotReadyError, match="miRNA"):
        collection.paths()

    collection.upsert(uploaded_files[2])
    assert collection.is_complete
    assert collection.paths() == parquet_files
