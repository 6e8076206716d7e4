"""Shared fixtures for the MJML toolkit test-suite.

Trees built here use fixed, readable ids so tests can address blocks
directly. Configuration is isolated per test: user overrides are read from a
temporary directory and the config singleton is reloaded.
"""

import logging
import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from mjml_toolkit.config import ConfigManager
from mjml_toolkit.core.models import EmailBlock

# Configure test logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


SAMPLE_MJML = """
<mjml>
  <mj-head>
    <mj-title>Welcome</mj-title>
    <mj-font name="Roboto" href="https://fonts.googleapis.com/css?family=Roboto" />
  </mj-head>
  <mj-body background-color="#f4f4f4">
    <mj-section>
      <mj-column>
        <mj-text font-family="Roboto, Arial">Hello World</mj-text>
        <mj-button href="https://example.com">Click</mj-button>
      </mj-column>
    </mj-section>
  </mj-body>
</mjml>
"""


def block_tree_dict():
    """Canonical dict of a small document with fixed ids."""
    return {
        "id": "root",
        "type": "mjml",
        "children": [
            {
                "id": "head",
                "type": "mj-head",
                "children": [
                    {"id": "font", "type": "mj-font",
                     "attributes": {"name": "Roboto", "href": "https://fonts.googleapis.com/css?family=Roboto"}},
                    {"id": "style", "type": "mj-style", "content": ".x { color: red; }"},
                ],
            },
            {
                "id": "body",
                "type": "mj-body",
                "children": [
                    {
                        "id": "s1",
                        "type": "mj-section",
                        "children": [
                            {
                                "id": "c1",
                                "type": "mj-column",
                                "attributes": {"width": "50%"},
                                "children": [
                                    {"id": "t1", "type": "mj-text",
                                     "attributes": {"fontFamily": "'Roboto', Arial, sans-serif"},
                                     "content": "<p>One</p>"},
                                ],
                            },
                            {
                                "id": "c2",
                                "type": "mj-column",
                                "attributes": {"width": "50%"},
                                "children": [
                                    {"id": "b1", "type": "mj-button", "content": "Go"},
                                ],
                            },
                        ],
                    },
                    {
                        "id": "s2",
                        "type": "mj-section",
                        "children": [
                            {
                                "id": "c3",
                                "type": "mj-column",
                                "attributes": {"width": "100%"},
                                "children": [
                                    {"id": "t2", "type": "mj-text", "content": "<p>Two</p>"},
                                ],
                            },
                        ],
                    },
                ],
            },
        ],
    }


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point user config at an empty temp dir and reload the singleton."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    monkeypatch.setenv("MJML_TOOLKIT_CONFIG_DIR", str(config_dir))
    ConfigManager.reload()
    yield config_dir
    ConfigManager.reload()


@pytest.fixture
def sample_mjml():
    return SAMPLE_MJML


@pytest.fixture
def tree():
    """Small document: head (font, style) and body with two sections."""
    return EmailBlock.from_dict(block_tree_dict())
