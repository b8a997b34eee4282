"""Shared fixtures for the MJML Toolkit test-suite.

The user configuration directory is redirected to a throw-away folder before
anything touches :class:`ConfigManager`, so tests never read or write the
developer's real overrides.
"""

import os
import shutil
import tempfile
from pathlib import Path
import sys

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

_CONFIG_DIR = tempfile.mkdtemp(prefix="mjml_toolkit_cfg_")
os.environ["MJML_TOOLKIT_CONFIG_DIR"] = _CONFIG_DIR
os.environ.setdefault("MJML_LOG_DIR", os.path.join(_CONFIG_DIR, "logs"))

from mjml_toolkit.core.models import DocumentContext, EditorNode  # noqa: E402
from mjml_toolkit.core.scheduling import EventQueueScheduler  # noqa: E402
from mjml_toolkit.core.schema import get_default_schema  # noqa: E402
from mjml_toolkit.core.services.structure_editing_service import StructureEditingService  # noqa: E402


def pytest_sessionfinish(session, exitstatus):
    shutil.rmtree(_CONFIG_DIR, ignore_errors=True)


@pytest.fixture(scope="session")
def schema():
    """The packaged component catalogue."""
    return get_default_schema()


@pytest.fixture
def sample_document():
    """body > [section(column(text, button, spacer)), section(column(image))]."""
    return EditorNode(
        type="mj-body",
        attributes={"background-color": "#f4f4f4", "width": "600px"},
        id="body",
        children=(
            EditorNode(
                type="mj-section",
                attributes={"padding": "20px 0"},
                id="s1",
                children=(
                    EditorNode(
                        type="mj-column",
                        id="c1",
                        children=(
                            EditorNode(type="mj-text", attributes={"color": "#333"}, content="Hello", id="t1"),
                            EditorNode(type="mj-button", attributes={"href": "#"}, content="Go", id="b1"),
                            EditorNode(type="mj-spacer", attributes={"height": "20px"}, id="sp1"),
                        ),
                    ),
                ),
            ),
            EditorNode(
                type="mj-section",
                id="s2",
                children=(
                    EditorNode(
                        type="mj-column",
                        id="c2",
                        children=(
                            EditorNode(type="mj-image", attributes={"src": "a.png", "alt": "A"}, id="i1"),
                        ),
                    ),
                ),
            ),
        ),
    )


@pytest.fixture
def context(sample_document):
    return DocumentContext(document=sample_document)


@pytest.fixture
def service(schema):
    return StructureEditingService(schema)


@pytest.fixture
def scheduler():
    return EventQueueScheduler()
