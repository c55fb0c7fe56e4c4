"""
Pytest configuration and fixtures for the Print Sheet Builder tests.

Provides the Flask test application, generated sample photos and a
catalog with extra entries for edge cases.
"""

import io
import pytest
import tempfile
import shutil
from pathlib import Path
from PIL import Image
from loguru import logger

from printsheet import create_app
from printsheet import config as config_module
from printsheet import sheet as sheet_module
from printsheet.config import BUILTIN_PAGES, BUILTIN_STANDARDS, PageCatalog, PageSpec, PhotoStandard


RED = (220, 20, 20)
BLUE = (20, 20, 220)


@pytest.fixture(scope='session')
def app():
    """Create and configure a test Flask application."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-key',
        'LOG_FILE': None,
        'LOG_LEVEL': 'DEBUG',
        'CATALOG_PATH': 'does/not/exist.yaml',
    })

    yield app


@pytest.fixture
def client(app):
    """Create a test client for the Flask application."""
    return app.test_client()


@pytest.fixture
def temp_work_dir():
    """Create a temporary work directory for test processing."""
    temp_dir = Path(tempfile.mkdtemp())
    yield temp_dir
    shutil.rmtree(temp_dir)


@pytest.fixture
def sample_photo():
    """
    35x45 photo at native size: red top half, blue bottom half.

    The two halves make the orientation of a drawn cell visible.
    """
    img = Image.new('RGB', (413, 531), color=BLUE)
    img.paste(RED, (0, 0, 413, 531 // 2))
    return img


@pytest.fixture
def sample_photo_bytes(sample_photo):
    """The sample photo encoded as PNG."""
    buffer = io.BytesIO()
    sample_photo.save(buffer, format='PNG')
    return buffer.getvalue()


@pytest.fixture
def sample_photo_path(temp_work_dir, sample_photo):
    """The sample photo saved to disk as PNG."""
    path = temp_work_dir / "photo.png"
    sample_photo.save(path)
    return path


@pytest.fixture
def test_catalog():
    """Built-in tables plus a wide strip page and an oversized standard."""
    pages = dict(BUILTIN_PAGES)
    pages['strip'] = PageSpec(key='strip', label='Strip', width_px=1200, height_px=500)
    standards = dict(BUILTIN_STANDARDS)
    standards['huge'] = PhotoStandard(key='huge', label='Huge', width_px=2000, height_px=2000)
    return PageCatalog(pages=pages, standards=standards)


@pytest.fixture
def log_messages():
    """Capture loguru messages emitted during a test."""
    messages = []
    handler_id = logger.add(lambda message: messages.append(message.record), level='DEBUG')
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def settings_dir(temp_work_dir, monkeypatch):
    """
    Empty config/ directory in a fresh working directory.

    The cached settings and shared catalog are cleared so that files written
    here are picked up, and restored after the test.
    """
    config_dir = temp_work_dir / "config"
    config_dir.mkdir()
    monkeypatch.chdir(temp_work_dir)
    for name in ('FLASK_ENV', 'LOG_LEVEL', 'LOG_FILE', 'CATALOG_PATH'):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config_module, '_config_instance', None)
    monkeypatch.setattr(sheet_module, '_default_catalog', None)
    return config_dir
