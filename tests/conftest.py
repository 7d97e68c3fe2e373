"""Common test fixtures for orgwiki."""

from pathlib import Path

import pytest

from orgwiki.config import OrgWikiConfig
from orgwiki.services.wiki_service import WikiService
from tests.fakes import FakePrompt, FakeSearch, FakeSession


@pytest.fixture
def notes_dir(tmp_path):
    """Empty notes directory."""
    path = tmp_path / "wiki"
    path.mkdir()
    return path


@pytest.fixture
def test_config(notes_dir, tmp_path):
    """Explicit config pointing at the temporary notes directory."""
    return OrgWikiConfig(
        notes_dir=notes_dir,
        search_program="rg",
        editor="true",
        log_dir=tmp_path / "logs",
    )


@pytest.fixture
def isolated_env(test_config, monkeypatch):
    """Point the environment-loaded config at temporary paths (auto-restored)."""
    monkeypatch.setenv("ORGWIKI_DIR", str(test_config.notes_dir))
    monkeypatch.setenv("ORGWIKI_LOG_DIR", str(test_config.log_dir))
    for name in ("ORGWIKI_SEARCH_PROGRAM", "ORGWIKI_SEARCH_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    yield test_config


@pytest.fixture
def fake_prompt():
    return FakePrompt({"keywords": ["python tooling"]})


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def fake_search():
    return FakeSearch()


@pytest.fixture
def wiki_service(test_config, fake_prompt, fake_session, fake_search):
    """WikiService wired to scripted fakes."""
    return WikiService(
        config=test_config,
        prompt=fake_prompt,
        session=fake_session,
        searcher=fake_search,
    )


def write_note(notes_dir: Path, topic: str, body: str = "", keywords: str = "") -> Path:
    """Write a note in the template layout plus *body*."""
    path = notes_dir / f"{topic}.org"
    path.write_text(
        f"#+TITLE: {topic}\n#+KEYWORDS: {keywords}\n\n* \n{body}",
        encoding="utf-8",
    )
    return path
