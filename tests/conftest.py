from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from videocatalog.app import create_app
from videocatalog.settings import MediaFolderConfig


@pytest.fixture
def settings(tmp_path: Path) -> MediaFolderConfig:
    return MediaFolderConfig(
        base_path=tmp_path / "wwwroot",
        media_folder_name="media",
        max_aggregate_upload_bytes=200,
    )


@pytest.fixture
def media_dir(settings: MediaFolderConfig) -> Path:
    settings.media_path.mkdir(parents=True, exist_ok=True)
    return settings.media_path


@pytest.fixture
def client(settings: MediaFolderConfig, media_dir: Path):
    with TestClient(create_app(settings)) as c:
        yield c
