"""Shared fixtures: a temporary JSPWiki page tree and engine configurations."""

import logging
from pathlib import Path

import pytest

from config_loader import ConfigLoader
from models import EngineConfig
from providers import mangle_name
from providers.attachment_provider import file_extension


@pytest.fixture(autouse=True)
def reset_migrator_logging():
    """Drop handlers installed by setup_logging so tests stay independent."""
    yield
    logger = logging.getLogger('jspwiki_migrator')
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def source_dir(tmp_path):
    path = tmp_path / 'wiki'
    path.mkdir()
    return path


@pytest.fixture
def target_dir(tmp_path):
    return tmp_path / 'markdown'


@pytest.fixture
def work_root(tmp_path):
    return tmp_path / 'work'


@pytest.fixture
def jspwiki_config(source_dir, work_root):
    return EngineConfig.for_dialect('jspwiki', source_dir, work_root)


@pytest.fixture
def markdown_config(target_dir, work_root):
    return EngineConfig.for_dialect('markdown', target_dir, work_root)


@pytest.fixture
def write_page():
    """Write a page file in the JSPWiki layout; bytes are written as-is."""
    def _write(page_dir, name, text, extension='.txt'):
        path = Path(page_dir) / f"{mangle_name(name)}{extension}"
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(text, bytes):
            path.write_bytes(text)
        else:
            path.write_text(text, encoding='utf-8')
        return path
    return _write


@pytest.fixture
def write_attachment():
    """Write one attachment version in the JSPWiki layout."""
    def _write(page_dir, page_name, filename, data, version=1):
        file_dir = Path(page_dir) / f"{mangle_name(page_name)}-att" / f"{mangle_name(filename)}-dir"
        file_dir.mkdir(parents=True, exist_ok=True)
        path = file_dir / f"{version}.{file_extension(filename)}"
        path.write_bytes(data)
        return path
    return _write


@pytest.fixture
def run_config(source_dir, target_dir, work_root):
    """Runner configuration for migrating source_dir into target_dir."""
    config = ConfigLoader.defaults()
    config['migration'].update({
        'source_directory': str(source_dir),
        'target_directory': str(target_dir),
        'language': 'de',
        'progress_bars': False,
    })
    config['engine']['work_directory'] = str(work_root)
    return config
