# videocatalog/settings.py
from __future__ import annotations
import json, os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from videocatalog.errors import ConfigurationError

DEFAULT_CONFIG = Path("config") / "videocatalog.json"
DEFAULT_MAX_UPLOAD_BYTES = 200 * 1024 * 1024  # 200 MB

ENV_PREFIX = "VIDEOCATALOG_"


@dataclass(frozen=True)
class MediaFolderConfig:
    base_path: Path
    media_folder_name: str = "media"
    max_aggregate_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: tuple[str, ...] = field(default_factory=tuple)
    log_level: str = "INFO"

    def __post_init__(self):
        if not str(self.base_path or "").strip():
            raise ConfigurationError("WebRootPath must not be empty")
        name = self.media_folder_name or ""
        if not name.strip() or name in (".", "..") or "/" in name or "\\" in name:
            raise ConfigurationError(f"MediaFolderName must be a single folder name, got {name!r}")
        if self.max_aggregate_upload_bytes <= 0:
            raise ConfigurationError("MaxFileSizeBytes must be a positive integer")

    @property
    def media_path(self) -> Path:
        return Path(self.base_path) / self.media_folder_name


def _read_file(path: Path) -> dict:
    # tolerate BOM if present
    try:
        data = json.loads(path.read_text(encoding="utf-8-sig"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"{path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a JSON object")
    # accept the settings either at top level or under a section, like appsettings files
    section = data.get("VideoCatalog")
    return section if isinstance(section, dict) else data


def _as_int(name: str, raw) -> int:
    if isinstance(raw, bool):
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


def _as_origins(raw) -> tuple[str, ...]:
    if not raw:
        return ()
    if isinstance(raw, str):
        raw = raw.split(",")
    return tuple(str(o).strip().rstrip("/") for o in raw if str(o).strip())


def load_settings(config_path: Path | str | None = None, environ: Mapping[str, str] | None = None) -> MediaFolderConfig:
    """Resolve settings from the JSON config file, then environment overrides.

    The file is optional unless it was named explicitly (argument or
    VIDEOCATALOG_CONFIG). Relative paths are taken from the working directory.
    """
    env = os.environ if environ is None else environ

    explicit = config_path or env.get(f"{ENV_PREFIX}CONFIG")
    path = Path(explicit) if explicit else DEFAULT_CONFIG
    values: dict = {}
    if path.exists():
        values = _read_file(path)
    elif explicit:
        raise ConfigurationError(f"missing config file: {path}")

    overrides = {
        "WebRootPath": env.get(f"{ENV_PREFIX}WEB_ROOT"),
        "MediaFolderName": env.get(f"{ENV_PREFIX}MEDIA_FOLDER"),
        "MaxFileSizeBytes": env.get(f"{ENV_PREFIX}MAX_UPLOAD_BYTES"),
        "CorsOrigins": env.get(f"{ENV_PREFIX}CORS_ORIGINS"),
        "Host": env.get(f"{ENV_PREFIX}HOST"),
        "Port": env.get(f"{ENV_PREFIX}PORT"),
        "LogLevel": env.get(f"{ENV_PREFIX}LOG_LEVEL"),
    }
    values.update({k: v for k, v in overrides.items() if v not in (None, "")})

    web_root = str(values.get("WebRootPath", "wwwroot") or "").strip()
    if not web_root:
        raise ConfigurationError("WebRootPath must not be empty")

    return MediaFolderConfig(
        base_path=Path(web_root),
        media_folder_name=str(values.get("MediaFolderName", "media") or ""),
        max_aggregate_upload_bytes=_as_int("MaxFileSizeBytes", values.get("MaxFileSizeBytes", DEFAULT_MAX_UPLOAD_BYTES)),
        host=str(values.get("Host", "0.0.0.0")),
        port=_as_int("Port", values.get("Port", 8000)),
        cors_origins=_as_origins(values.get("CorsOrigins")),
        log_level=str(values.get("LogLevel", "INFO")).upper(),
    )
