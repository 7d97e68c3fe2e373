"""Tests for the host collaborators: terminal prompt, editor session, link dispatch."""
import io
import subprocess
from pathlib import Path

import pytest

from orgwiki.exceptions import EditorError, ErrorCode, LinkError, PromptCancelledError
from orgwiki.host.links import follow_link, split_link
from orgwiki.host.prompt import TerminalPrompt, fuzzy_candidates
from orgwiki.host.session import Buffer, EditorSession, mode_for_path
from tests.fakes import FakePrompt


def scripted_input(*answers):
    """input() replacement returning *answers* in order, then EOF."""
    queue = list(answers)
    asked = []

    def read(message):
        asked.append(message)
        if not queue:
            raise EOFError
        return queue.pop(0)

    read.asked = asked
    return read


class TestFuzzyCandidates:
    def test_substring_hits_first_shortest_first(self):
        choices = ["python-mode (major mode)", "python", "cpython internals", "rust"]
        assert fuzzy_candidates("PYTHON", choices)[:3] == [
            "python",
            "cpython internals",
            "python-mode (major mode)",
        ]

    def test_close_matches_after_substrings(self):
        assert fuzzy_candidates("haskel", ["haskell", "shell"]) == ["haskell"]
        assert fuzzy_candidates("pyhton", ["python", "rust"]) == ["python"]

    def test_blank_query_lists_choices(self):
        assert fuzzy_candidates("", ["a", "b"]) == ["a", "b"]


class TestTerminalPrompt:
    def test_pick_by_number(self):
        prompt = TerminalPrompt(scripted_input("2"), output=io.StringIO())
        assert prompt("topic", ["awk", "sed"]) == "sed"

    def test_exact_topic(self):
        prompt = TerminalPrompt(scripted_input("awk"), output=io.StringIO())
        assert prompt("topic", ["awk", "sed"]) == "awk"

    def test_fuzzy_suggestion_then_pick(self):
        out = io.StringIO()
        prompt = TerminalPrompt(scripted_input("pyth", "1"), output=out)
        assert prompt("topic", ["python", "rust"]) == "python"
        assert "Did you mean" in out.getvalue()

    def test_fuzzy_suggestion_keep_typed_text(self):
        prompt = TerminalPrompt(scripted_input("pyth", ""), output=io.StringIO())
        assert prompt("topic", ["python", "rust"]) == "pyth"

    def test_new_topic_without_candidates(self):
        read = scripted_input("zig")
        prompt = TerminalPrompt(read, output=io.StringIO())
        assert prompt("topic", ["python", "rust"]) == "zig"
        assert len(read.asked) == 1

    def test_keywords(self):
        prompt = TerminalPrompt(scripted_input("a b"), output=io.StringIO())
        assert prompt("keywords") == "a b"

    def test_eof_cancels(self):
        prompt = TerminalPrompt(scripted_input(), output=io.StringIO())
        with pytest.raises(PromptCancelledError) as exc_info:
            prompt("keywords")
        assert exc_info.value.code == ErrorCode.PROMPT_CANCELLED

    def test_confirm_close_retries_until_understood(self):
        prompt = TerminalPrompt(scripted_input("what", "D"), output=io.StringIO())
        assert prompt("confirm-close", ["a.org"]) == "discard"


class TestModeForPath:
    @pytest.mark.parametrize(
        "path, mode",
        [
            ("x.py", "python-mode"),
            ("X.RS", "rust-mode"),
            ("init.el", "emacs-lisp-mode"),
            ("notes.org", "org-mode"),
            ("Makefile", "fundamental-mode"),
        ],
    )
    def test_modes(self, path, mode):
        assert mode_for_path(Path(path)) == mode

    def test_none(self):
        assert mode_for_path(None) == "fundamental-mode"


class TestEditorSession:
    @pytest.fixture
    def runs(self):
        return []

    @pytest.fixture
    def session(self, runs):
        def runner(cmd, **kwargs):
            runs.append(cmd)
            return subprocess.CompletedProcess(cmd, 0)

        return EditorSession("emacsclient -t", FakePrompt(), runner=runner)

    def test_open_runs_editor_with_line(self, session, runs, tmp_path):
        path = tmp_path / "a.org"
        buffer = session.open(path, line=4)
        assert runs == [["emacsclient", "-t", "+4", str(path)]]
        assert buffer.path == path
        assert buffer.mode == "org-mode"
        assert session.current() is buffer

    def test_reopen_reuses_buffer(self, session, tmp_path):
        first = session.open(tmp_path / "a.org")
        session.open(tmp_path / "main.py")
        again = session.open(tmp_path / "a.org")
        assert again is first
        assert len(session.buffers()) == 2
        assert session.current() is first

    def test_close_clean_buffer(self, session, tmp_path):
        a = session.open(tmp_path / "a.org")
        b = session.open(tmp_path / "b.org")
        assert session.close(b) is True
        assert session.buffers() == [a]
        assert session.current() is a

    def test_editor_buffers_close_without_confirmation(self, tmp_path):
        """The external editor saves its own file, so nothing is left to confirm."""
        prompt = FakePrompt()
        session = EditorSession("vi", prompt, runner=lambda cmd, **kw: subprocess.CompletedProcess(cmd, 0))
        buffer = session.open(tmp_path / "a.org", line=4)

        assert not buffer.modified
        assert session.close(buffer) is True
        assert prompt.calls == []

    def test_close_modified_asks_and_saves(self, runs, tmp_path):
        prompt = FakePrompt({"confirm-close": ["save"]})
        session = EditorSession("vi", prompt, runner=lambda cmd, **kw: subprocess.CompletedProcess(cmd, 0))
        path = tmp_path / "a.org"
        buffer = session.open(path)
        buffer.unsaved = "new text"

        assert session.close(buffer) is True
        assert path.read_text() == "new text"
        assert prompt.calls == [("confirm-close", ["a.org"])]

    def test_close_modified_cancelled(self, tmp_path):
        prompt = FakePrompt({"confirm-close": ["cancel"]})
        session = EditorSession("vi", prompt, runner=lambda cmd, **kw: subprocess.CompletedProcess(cmd, 0))
        buffer = session.open(tmp_path / "a.org")
        buffer.unsaved = "draft"

        assert session.close(buffer) is False
        assert session.buffers() == [buffer]
        assert not (tmp_path / "a.org").exists()

    def test_missing_editor(self, tmp_path):
        def runner(cmd, **kwargs):
            raise FileNotFoundError(cmd[0])

        session = EditorSession("no-such-editor", FakePrompt(), runner=runner)
        with pytest.raises(EditorError):
            session.open(tmp_path / "a.org")
        assert session.buffers() == []

    def test_editor_failure(self, tmp_path):
        session = EditorSession(
            "vi", FakePrompt(), runner=lambda cmd, **kw: subprocess.CompletedProcess(cmd, 1)
        )
        with pytest.raises(EditorError) as exc_info:
            session.open(tmp_path / "a.org")
        assert exc_info.value.returncode == 1


class TestBuffer:
    def test_modified(self):
        assert not Buffer(name="a").modified
        assert Buffer(name="a", unsaved="").modified

    def test_save_without_path_is_noop(self):
        buffer = Buffer(name="*scratch*", unsaved="x")
        buffer.save()
        assert buffer.unsaved == "x"


class TestLinks:
    @pytest.mark.parametrize(
        "link, expected",
        [
            ("wiki:topic", ("wiki", "topic")),
            ("[[wiki:two words]]", ("wiki", "two words")),
            ("[[wiki:two words][desc]]", ("wiki", "two words")),
            ("  wiki: padded ", ("wiki", "padded")),
            ("https://example.org", ("https", "//example.org")),
        ],
    )
    def test_split(self, link, expected):
        assert split_link(link) == expected

    @pytest.mark.parametrize("link", ["no scheme", "wiki:", "[[wiki:]]", ""])
    def test_split_invalid(self, link):
        with pytest.raises(LinkError):
            split_link(link)

    def test_dispatch(self):
        seen = []
        registry = {"wiki": lambda target: seen.append(target) or target}
        assert follow_link(registry, "[[wiki:x][X]]") == "x"
        assert seen == ["x"]

    def test_unknown_scheme(self):
        with pytest.raises(LinkError) as exc_info:
            follow_link({"wiki": print}, "mailto:me@example.org")
        assert exc_info.value.code == ErrorCode.LINK_SCHEME_UNKNOWN
        assert exc_info.value.scheme == "mailto"
