# videocatalog/upload.py
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Iterable, List

from videocatalog.catalog import is_video_name

logger = logging.getLogger("videocatalog.upload")

CHUNK_SIZE = 1024 * 1024

BAD_TYPE_MESSAGE = "Only MP4 files are allowed."
TRANSPORT_MESSAGE = "A network error occurred during file upload."


class OutcomeKind(Enum):
    ACCEPTED = 200
    BAD_TYPE = 400
    OVERSIZE = 413
    STORAGE = 500
    TRANSPORT = 503


@dataclass(frozen=True)
class UploadOutcome:
    kind: OutcomeKind
    message: str = ""
    saved: List[str] = field(default_factory=list)

    @property
    def status_code(self) -> int:
        return self.kind.value

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.ACCEPTED


@dataclass
class UploadItem:
    file_name: str
    content: BinaryIO
    declared_length: int


class _ReadFailed(Exception):
    pass


def base_file_name(name: str) -> str:
    # browsers on Windows may send the full client path
    return name.replace("\\", "/").rsplit("/", 1)[-1]


def format_megabytes(n: int) -> str:
    mb = n / (1024 * 1024)
    return f"{mb:.0f}" if mb == int(mb) else f"{mb:.2f}"


def oversize_outcome(max_aggregate_bytes: int) -> UploadOutcome:
    limit = format_megabytes(max_aggregate_bytes)
    return UploadOutcome(
        OutcomeKind.OVERSIZE,
        f"Total file size exceeds {limit} MB. Please upload smaller files.",
    )


def _copy(item: UploadItem, target: Path) -> None:
    # Read errors belong to the transport, write errors to storage.
    with target.open("wb") as out:
        while True:
            try:
                chunk = item.content.read(CHUNK_SIZE)
            except OSError as e:
                raise _ReadFailed(str(e)) from e
            if not chunk:
                break
            out.write(chunk)


def upload_batch(
    items: Iterable[UploadItem],
    media_path: Path,
    max_aggregate_bytes: int,
    logger: logging.Logger = logger,
) -> UploadOutcome:
    """Validate and store one batch of uploaded files.

    The size check covers the whole batch before anything is written. After
    that files are handled in submission order and the batch stops at the
    first rejected or failing file; files already written stay on disk.
    """
    items = list(items)
    logger.info("Received %d files for upload.", len(items))

    total = sum(max(item.declared_length, 0) for item in items)
    if total > max_aggregate_bytes:
        logger.warning(
            "Total file size %d exceeds %s MB. Request rejected.", total, format_megabytes(max_aggregate_bytes)
        )
        return oversize_outcome(max_aggregate_bytes)

    saved: List[str] = []
    for item in items:
        name = base_file_name(item.file_name or "")
        if item.declared_length <= 0 or not name or not is_video_name(name):
            logger.warning("Rejected file '%s' because it is not an MP4 file.", item.file_name)
            return UploadOutcome(OutcomeKind.BAD_TYPE, BAD_TYPE_MESSAGE, saved)

        target = media_path / name
        try:
            _copy(item, target)
        except _ReadFailed:
            logger.exception("A network error occurred while reading '%s'.", item.file_name)
            return UploadOutcome(OutcomeKind.TRANSPORT, TRANSPORT_MESSAGE, saved)
        except (OSError, ValueError) as e:
            # ValueError: names the OS cannot represent, e.g. an embedded NUL
            logger.exception("An error occurred while uploading the file '%s'.", item.file_name)
            return UploadOutcome(
                OutcomeKind.STORAGE,
                f"An error occurred while uploading the file: {getattr(e, 'strerror', None) or e}",
                saved,
            )

        saved.append(name)
        logger.info("File '%s' uploaded successfully.", name)

    return UploadOutcome(OutcomeKind.ACCEPTED, saved=saved)
