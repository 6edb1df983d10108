import os

import pytest

from nodedisk import sparse
from nodedisk.sparse import (
    ENV_SPARSE_FILE_COUNT,
    ENV_SPARSE_FILE_DIR,
    ENV_SPARSE_FILE_SIZE,
    SPARSE_FILE_DEFAULT_SIZE,
    SPARSE_FILE_MIN_SIZE,
    check_and_create_sparse_file,
    get_active_sparse_block_devices_uuid,
    get_sparse_block_device_uuid,
    get_sparse_file_count,
    get_sparse_file_dir,
    get_sparse_file_size,
)


def test_sparse_file_dir_not_set(monkeypatch):
    monkeypatch.setenv(ENV_SPARSE_FILE_DIR, "")
    assert get_sparse_file_dir() == ""


def test_sparse_file_dir_unset_entirely(monkeypatch):
    monkeypatch.delenv(ENV_SPARSE_FILE_DIR, raising=False)
    assert get_sparse_file_dir() == ""


def test_sparse_file_dir_invalid(monkeypatch, tmp_path):
    monkeypatch.setenv(ENV_SPARSE_FILE_DIR, str(tmp_path / "invalid"))
    assert get_sparse_file_dir() == ""


def test_sparse_file_dir_is_file(monkeypatch, tmp_path):
    regular = tmp_path / "regular"
    regular.write_text("x")
    monkeypatch.setenv(ENV_SPARSE_FILE_DIR, str(regular))
    assert get_sparse_file_dir() == ""


def test_sparse_file_dir_valid(monkeypatch, tmp_path):
    monkeypatch.setenv(ENV_SPARSE_FILE_DIR, str(tmp_path))
    assert get_sparse_file_dir() == str(tmp_path)


@pytest.mark.parametrize(
    "value, expected",
    [("", 1), ("2", 2), ("z", 0), ("-3", -3), ("1.5", 0)],
)
def test_sparse_file_count(monkeypatch, value, expected):
    monkeypatch.setenv(ENV_SPARSE_FILE_COUNT, value)
    assert get_sparse_file_count() == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("", SPARSE_FILE_DEFAULT_SIZE),
        ("2000000000", 2000000000),
        ("1.073741824e+11", 107374182400),
        ("100", SPARSE_FILE_MIN_SIZE),
        ("z", 0),
        ("inf", 0),
    ],
)
def test_sparse_file_size(monkeypatch, value, expected):
    monkeypatch.setenv(ENV_SPARSE_FILE_SIZE, value)
    assert get_sparse_file_size() == expected


def test_unset_size_defaults_to_one_gibibyte(monkeypatch):
    monkeypatch.delenv(ENV_SPARSE_FILE_SIZE, raising=False)
    assert get_sparse_file_size() == 1073741824


def test_small_size_raised_to_one_gibibyte(monkeypatch):
    monkeypatch.setenv(ENV_SPARSE_FILE_SIZE, "100")
    assert get_sparse_file_size() == 1073741824


def test_check_and_create_sparse_file_creates_then_reuses(tmp_path):
    test_file = str(tmp_path / "test.img")
    check_and_create_sparse_file(test_file, 1000)
    assert os.path.getsize(test_file) == 1000

    check_and_create_sparse_file(test_file, 2000)
    assert os.path.getsize(test_file) == 1000


def test_check_and_create_sparse_file_in_missing_dir(tmp_path):
    with pytest.raises(OSError):
        check_and_create_sparse_file(str(tmp_path / "missing" / "x.img"), 1000)


@pytest.mark.parametrize(
    "hostname, path, expected",
    [
        ("instance-1", "/tmp/0-ndm-sparse.img", "sparse-2b3468d4b928c7e048ad8747ba710e4c"),
        ("instance-1", "/tmp/1-ndm-sparse.img", "sparse-af2cd3d402e3447e315aadb7e7b46a34"),
        ("fake-host-name", "/tmp/0-ndm-sparse.img", "sparse-11063db4a4bfd3d0443d0b9d98391707"),
    ],
)
def test_sparse_block_device_uuid(hostname, path, expected):
    assert get_sparse_block_device_uuid(hostname, path) == expected


def test_sparse_file_path():
    assert sparse.sparse_file_path("/tmp/", 0) == "/tmp/0-ndm-sparse.img"


def test_active_sparse_uuids_valid_dir(monkeypatch, tmp_path):
    for name in ("1-ndm-sparse.img", "0-ndm-sparse.img", "other.img"):
        (tmp_path / name).write_bytes(b"")
    monkeypatch.setenv(ENV_SPARSE_FILE_DIR, str(tmp_path))
    result = get_active_sparse_block_devices_uuid("instance-1")
    assert result == [
        get_sparse_block_device_uuid("instance-1", str(tmp_path / "0-ndm-sparse.img")),
        get_sparse_block_device_uuid("instance-1", str(tmp_path / "1-ndm-sparse.img")),
    ]
    assert all(uuid.startswith("sparse-") and len(uuid) == 39 for uuid in result)


def test_active_sparse_uuids_invalid_dir(monkeypatch, tmp_path):
    monkeypatch.setenv(ENV_SPARSE_FILE_DIR, str(tmp_path / "invalid"))
    assert get_active_sparse_block_devices_uuid("instance-1") == []


def test_active_sparse_uuids_empty_dir(monkeypatch, tmp_path):
    monkeypatch.setenv(ENV_SPARSE_FILE_DIR, str(tmp_path))
    assert get_active_sparse_block_devices_uuid("instance-1") == []