"""
Pytest configuration and fixtures for vcoords tests.
"""

import tempfile
from pathlib import Path

import pytest


# ============================================================================
# Path Fixtures
# ============================================================================

@pytest.fixture
def project_root():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ============================================================================
# Coords Fixtures
# ============================================================================

@pytest.fixture
def spliced_coords():
    """Two-segment forward-strand feature."""
    return "11..40:+,42..101:+"


@pytest.fixture
def relative_cases():
    """(absolute coords, relative coords, expected absolute result)."""
    return [
        ("11..100:+", "6..38:+", "16..48:+"),
        ("100..11:-", "4..33:+", "97..68:-"),
        ("11..40:+,42..101:+", "4..33:+", "14..40:+,42..44:+"),
        ("11..40:+,42..101:+", "14..35:+", "24..40:+,42..46:+"),
        ("101..42:-,40..11:-", "55..65:+", "47..42:-,40..36:-"),
        ("1..10:+,20..29:+,40..49:+", "5..25:+", "5..10:+,20..29:+,40..44:+"),
        ("11..100:+", "38..6:-", "48..16:-"),
    ]


# ============================================================================
# Insert File Fixtures
# ============================================================================

@pytest.fixture
def sample_ifile_text():
    """Provide ifile content with two models."""
    return """\
# cmalign insert file
NC_039477 7567
JQ911595.1 7511 3 7513  2560 2553 3  2583 2579 3
KM198574.1 7431 17 7447
NC_001959 7654
AB039774.1 7590 1 7590  0 1 2
"""


@pytest.fixture
def sample_ifile(temp_dir, sample_ifile_text):
    """Create a temporary ifile."""
    ifile_path = temp_dir / "test.ifile"
    ifile_path.write_text(sample_ifile_text)
    return ifile_path


# ============================================================================
# Model Map Fixtures
# ============================================================================

@pytest.fixture
def sample_model_map_text():
    """Provide model map content."""
    return """\
# from len_from to len_to cigar
MDL_A 8 MDL_B 7 3M2I2M1D1M

MDL_B 7 MDL_A 8 3M2D2M1I1M
"""


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def sample_config():
    """Provide a sample configuration dictionary."""
    return {
        "frameshift": {
            "min_internal_length": 9,
            "min_terminal_length": 5,
        },
        "model_map": {
            "file": None,
        },
    }


@pytest.fixture
def sample_config_yaml():
    """Provide sample YAML configuration text."""
    return """\
frameshift:
  min_internal_length: 9
  min_terminal_length: 5
model_map:
  file:
"""


@pytest.fixture
def sample_config_file(temp_dir, sample_config_yaml):
    """Create a temporary YAML config file."""
    config_path = temp_dir / "vcoords.yaml"
    config_path.write_text(sample_config_yaml)
    return config_path
