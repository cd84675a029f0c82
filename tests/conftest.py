# tests/conftest.py
from datetime import datetime, timezone
from pathlib import Path

import pytest

from promptkit.core.templating import TemplateRenderer

FIXED_NOW = datetime(2025, 7, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def no_user_config(tmp_path: Path, monkeypatch):
    """Keeps a real ~/.config/promptkit/config.toml out of the tests."""
    monkeypatch.setattr("promptkit.config.loader.USER_CONFIG_FILE", tmp_path / "no-user-config.toml")


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """A template directory with a plain, a front matter and a sectioned template."""
    directory = tmp_path / "templates"
    directory.mkdir()
    (directory / "basic.md").write_text("Hello {{name}}!\n")
    (directory / "meta.md").write_text(
        "---\n"
        "subject: Welcome, {{name}}\n"
        "priority: 2\n"
        "---\n"
        "Thanks for joining, {{name}}.\n"
    )
    (directory / "sections.md").write_text(
        "=== SYSTEM ===\n"
        "\n"
        "You are a helpful assistant.\n"
        "\n"
        "=== USER ===\n"
        "\n"
        "My name is {{name}}.\n"
    )
    (directory / "notes.txt").write_text("plain text {{name}}")
    return directory


@pytest.fixture
def renderer(template_dir: Path, fixed_clock) -> TemplateRenderer:
    return TemplateRenderer(
        directory=template_dir,
        timezone="America/New_York",
        clock=fixed_clock,
        params={"name": "Ada"},
    )
