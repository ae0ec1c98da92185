"""Tests for pagesmith.cli — argument parsing and the generate command."""

from pathlib import Path

import pytest

from pagesmith.cli import main
from pagesmith.cli._generate import _generate
from pagesmith.collaborators import FileArtifactStore
from pagesmith.config import GeneratorConfig
from pagesmith.controller import GenerationController
from tests.helpers import FakeBackend, sse_text

DOC = "<!DOCTYPE html><html><body>Hi</body></html>"


class TestCLIHelp:
    def test_help_exits_zero(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--help"])
        assert exc_info.value.code == 0

    def test_generate_help_exits_zero(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["generate", "--help"])
        assert exc_info.value.code == 0


class TestCLIMissingArgs:
    def test_generate_missing_prompt(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["generate"])
        assert exc_info.value.code == 2

    def test_bad_log_level(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["generate", "hi", "--log-level", "loud"])
        assert exc_info.value.code == 2


class TestCLINoCommand:
    def test_no_command_exits_zero(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0
        captured = capsys.readouterr()
        assert "pagesmith" in captured.out


class TestGenerateSetupErrors:
    def test_bad_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PAGESMITH_TIMEOUT", "never")
        with pytest.raises(SystemExit) as exc_info:
            main(["generate", "hi"])
        assert exc_info.value.code == 1

    def test_missing_current_file(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["generate", "hi", "--current", str(tmp_path / "missing.html")])
        assert exc_info.value.code == 1


class TestGenerateCommand:
    @pytest.fixture
    def controller(self, config: GeneratorConfig, backend: FakeBackend) -> GenerationController:
        return GenerationController(config, client=backend.client)

    async def test_page_written_to_out_dir(
        self,
        controller: GenerationController,
        backend: FakeBackend,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        backend.respond([sse_text(DOC)])
        store = FileArtifactStore(tmp_path)

        assert await _generate(controller, store, "Say hi", None, None) == 0
        assert (tmp_path / "index.html").read_text(encoding="utf-8") == DOC
        captured = capsys.readouterr()
        assert "index.html" in captured.out
        assert "Complete in" in captured.err

    async def test_conversation_printed(
        self,
        controller: GenerationController,
        backend: FakeBackend,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        backend.respond(
            [sse_text("Sure, ", "what colour?")], headers={"X-Response-Type": "conversation"}
        )
        store = FileArtifactStore(tmp_path / "out")

        assert await _generate(controller, store, "Make it pop", "m", DOC) == 0
        assert capsys.readouterr().out.strip() == "Sure, what colour?"
        assert not (tmp_path / "out").exists()
        assert backend.payloads[0]["currentCode"] == DOC

    async def test_error_exit_code(
        self,
        controller: GenerationController,
        backend: FakeBackend,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        backend.respond(status=500)
        assert await _generate(controller, FileArtifactStore(tmp_path), "x", None, None) == 1
        assert "Error:" in capsys.readouterr().err
