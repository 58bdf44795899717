"""Shared fixtures for xml-flow tests."""

from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    """Directory holding the XML fixture documents."""
    return FIXTURES_DIR


@pytest.fixture
def sample_document() -> Path:
    """Document with attribute, mixed-content, script and whitespace cases."""
    return FIXTURES_DIR / "test.xml"


@pytest.fixture
def simple_document() -> Path:
    """Document with three <item> siblings."""
    return FIXTURES_DIR / "simple.xml"
