"""Sparse files that stand in for disks when testing the disk manager."""

from __future__ import annotations

import hashlib
import logging
import math
import os
import posixpath
import re
from typing import List

logger = logging.getLogger(__name__)

# Directory in which sparse files are created; nothing is created when unset.
ENV_SPARSE_FILE_DIR = "SPARSE_FILE_DIR"
# Size in bytes of each sparse file.
ENV_SPARSE_FILE_SIZE = "SPARSE_FILE_SIZE"
# Number of sparse files to create.
ENV_SPARSE_FILE_COUNT = "SPARSE_FILE_COUNT"

SPARSE_FILE_NAME = "ndm-sparse.img"
SPARSE_FILE_DEFAULT_SIZE = 1073741824
SPARSE_FILE_MIN_SIZE = 1073741824
SPARSE_FILE_DEFAULT_COUNT = "1"

SPARSE_BLOCK_DEVICE_PREFIX = "sparse-"

_INTEGER = re.compile(r"[+-]?[0-9]+")
_FLOAT = re.compile(
    r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?"
)


def _join(directory: str, name: str) -> str:
    return posixpath.normpath(posixpath.join(directory, name))


def sparse_file_path(sparse_file_dir: str, index: int) -> str:
    """Path of the sparse file with the given index inside sparse_file_dir."""
    return _join(sparse_file_dir, f"{index}-{SPARSE_FILE_NAME}")


def get_sparse_file_dir() -> str:
    """Directory for sparse files, or "" when unset or not a directory."""
    sparse_file_dir = os.environ.get(ENV_SPARSE_FILE_DIR, "")
    if not sparse_file_dir:
        return ""
    if not os.path.isdir(sparse_file_dir):
        logger.info("Specified directory doesn't exist: %s", sparse_file_dir)
        return ""
    return sparse_file_dir


def get_sparse_file_count() -> int:
    """Number of sparse files to create; 0 when the value is invalid."""
    count_text = os.environ.get(ENV_SPARSE_FILE_COUNT, "") or SPARSE_FILE_DEFAULT_COUNT
    if not _INTEGER.fullmatch(count_text):
        logger.info("Error converting sparse file count: %s", count_text)
        return 0
    return int(count_text)


def get_sparse_file_size() -> int:
    """Size of each sparse file in bytes; 0 when the value is invalid.

    Sizes below the minimum are raised to the minimum.
    """
    size_text = os.environ.get(ENV_SPARSE_FILE_SIZE, "")
    if not size_text:
        logger.info("No size was specified. Using default size: %d", SPARSE_FILE_DEFAULT_SIZE)
        return SPARSE_FILE_DEFAULT_SIZE

    if not _FLOAT.fullmatch(size_text):
        logger.error("Error converting sparse file size: %s", size_text)
        return 0
    value = float(size_text)
    if not math.isfinite(value):
        logger.error("Error converting sparse file size: %s", size_text)
        return 0
    size = int(value)

    if size < SPARSE_FILE_MIN_SIZE:
        logger.info(
            "%s is less than minimum required. Setting the size to: %d",
            size_text,
            SPARSE_FILE_MIN_SIZE,
        )
        return SPARSE_FILE_MIN_SIZE
    return size


def check_and_create_sparse_file(sparse_file: str, sparse_file_size: int) -> None:
    """Reuse sparse_file if it exists, otherwise create it with the given size.

    Raises OSError when the file cannot be created.
    """
    try:
        os.stat(sparse_file)
    except OSError as exc:
        logger.info("Check for existing file returned error: %s", exc)
        logger.info("Creating a new sparse file: %s", sparse_file)
        with open(sparse_file, "wb") as handle:
            handle.truncate(sparse_file_size)
        return
    logger.info("Sparse file already exists: %s", os.path.basename(sparse_file))


def get_sparse_block_device_uuid(hostname: str, sparse_file: str) -> str:
    """Fixed identifier of the sparse device for a file on a given host."""
    digest = hashlib.md5((hostname + sparse_file).encode("utf-8")).hexdigest()
    return SPARSE_BLOCK_DEVICE_PREFIX + digest


def get_active_sparse_block_devices_uuid(hostname: str) -> List[str]:
    """Identifiers of the sparse files present in the sparse file directory."""
    location = get_sparse_file_dir()
    try:
        names = sorted(os.listdir(location))
    except OSError as exc:
        logger.error("Failed to read sparse file names: %s", exc)
        return []
    return [
        get_sparse_block_device_uuid(hostname, _join(location, name))
        for name in names
        if name.endswith(SPARSE_FILE_NAME)
    ]