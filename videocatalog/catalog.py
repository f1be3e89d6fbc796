# videocatalog/catalog.py
from __future__ import annotations
import logging, re
from dataclasses import dataclass
from email.utils import formatdate
from hashlib import md5
from pathlib import Path
from typing import Iterator, List

from videocatalog.errors import RangeNotSatisfiable, StorageUnavailable

logger = logging.getLogger("videocatalog.catalog")

VIDEO_SUFFIX = ".mp4"
VIDEO_MEDIA_TYPE = "video/mp4"
CHUNK_SIZE = 512 * 1024

_RANGE = re.compile(r"^bytes=(\d*)-(\d*)$")


@dataclass(frozen=True)
class VideoFileDescriptor:
    file_name: str
    file_size: int

    def to_json(self) -> dict:
        return {"fileName": self.file_name, "fileSize": self.file_size}


def is_video_name(name: str) -> bool:
    return name.lower().endswith(VIDEO_SUFFIX)


def list_videos(media_path: Path) -> List[VideoFileDescriptor]:
    """Every .mp4 file directly inside media_path, sorted by name.

    The folder is re-read on each call; nothing is cached.
    """
    try:
        root = media_path.resolve()
        entries = sorted(media_path.iterdir(), key=lambda p: p.name)
        videos = [
            VideoFileDescriptor(file_name=p.name, file_size=p.stat().st_size)
            for p in entries
            if is_video_name(p.name) and _inside(root, p)
        ]
    except OSError as e:
        logger.exception("Error reading media folder %s: %s", media_path, e)
        raise StorageUnavailable(media_path, e.strerror or str(e)) from e
    return videos


def _inside(root: Path, p: Path) -> bool:
    # symlinks count only when their target is a file in the same folder
    return p.is_file() and p.resolve().parent == root


def descriptors_to_json(videos: List[VideoFileDescriptor]) -> list[dict]:
    return [v.to_json() for v in videos]


def _is_plain_name(name: str) -> bool:
    return bool(name) and name not in (".", "..") and "/" not in name and "\\" not in name and "\x00" not in name


def resolve_video(media_path: Path, name: str | None) -> Path | None:
    """Path of an existing video called `name` inside media_path, else None.

    Anything that is not a bare file name (separators, "..") is treated as
    absent, so a request can never reach outside the media folder.
    """
    if not name or not _is_plain_name(name):
        if name:
            logger.warning("Rejected video name outside media folder: %r", name)
        return None
    if not is_video_name(name):
        return None

    root = media_path.resolve()
    p = root / name
    if not _inside(root, p):
        return None
    return p.resolve()


def headers_for_file(p: Path) -> dict:
    st = p.stat()
    etag = '"' + md5(f"{st.st_mtime_ns}-{st.st_size}".encode()).hexdigest() + '"'
    return {
        "Content-Type": VIDEO_MEDIA_TYPE,
        "Accept-Ranges": "bytes",
        "ETag": etag,
        "Last-Modified": formatdate(st.st_mtime, usegmt=True),
    }


def parse_byte_range(header: str, size: int) -> tuple[int, int] | None:
    """Parse `bytes=start-end` or `bytes=-suffix` into an inclusive (start, end).

    Returns None for headers that should be ignored (other units, several
    ranges, malformed specs); the caller then serves the whole file.
    """
    m = _RANGE.match(header.strip())
    if not m:
        return None

    start_str, end_str = m.groups()
    if start_str == "":
        # suffix range: bytes=-N
        if end_str == "":
            return None
        length = int(end_str)
        if length <= 0 or size == 0:
            raise RangeNotSatisfiable(size)
        start = max(size - length, 0)
        end = size - 1
    else:
        start = int(start_str)
        if end_str and int(end_str) < start:
            return None
        end = min(int(end_str), size - 1) if end_str else size - 1

    if start > end or start >= size:
        raise RangeNotSatisfiable(size)
    return start, end


def iter_file(p: Path, start: int, end: int, chunk: int = CHUNK_SIZE) -> Iterator[bytes]:
    with p.open("rb") as f:
        f.seek(start)
        remaining = end - start + 1
        while remaining > 0:
            data = f.read(min(chunk, remaining))
            if not data:
                break
            remaining -= len(data)
            yield data
