"""
Tests for the Tika app engine, output decoding, and engine state.
"""

import json
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from docbridge.config import EngineSettings
from docbridge.engine import (
    ExtractionResult,
    OutputKind,
    configure_engine,
    get_engine,
)
from docbridge.engine.output import build_result, decode_output, parse_metadata
from docbridge.engine.tika_app import TikaAppEngine
from docbridge.errors import (
    EngineNotFoundError,
    EngineTimeoutError,
    ExtractionError,
    InvocationError,
)


@pytest.fixture
def jar(tmp_path):
    """Create a placeholder jar file."""
    jar_path = tmp_path / "tika-app.jar"
    jar_path.write_bytes(b"PK")
    return jar_path


@pytest.fixture
def engine(jar):
    """Create a Tika app engine with test settings."""
    return TikaAppEngine(EngineSettings(java_path="java", jar_path=jar, timeout=5))


def completed(returncode=0, stdout=b"", stderr=b""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


# =============================================================================
# Output Kind Tests
# =============================================================================

class TestOutputKind:
    """Tests for OutputKind."""

    def test_flags(self):
        assert OutputKind.TEXT.flag == "--text"
        assert OutputKind.METADATA.flag == "--json"
        assert OutputKind.HTML.flag == "--html"

    def test_parse_names(self):
        """Test that kinds can be given by name."""
        assert OutputKind.parse("text") is OutputKind.TEXT
        assert OutputKind.parse("METADATA") is OutputKind.METADATA
        assert OutputKind.parse(OutputKind.HTML) is OutputKind.HTML

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="expected one of"):
            OutputKind.parse("pdf")


# =============================================================================
# Command Building Tests
# =============================================================================

class TestCommand:
    """Tests for the Tika command line."""

    def test_path_with_spaces_is_one_argument(self, engine, jar):
        """Test that a path with spaces is passed as a single argument."""
        path = Path("docs/sample filename with spaces.pages")

        command = engine.build_command(OutputKind.TEXT, path)

        assert command == [
            "java",
            "-Djava.awt.headless=true",
            "-jar",
            str(jar),
            "--text",
            "--encoding=UTF-8",
            "docs/sample filename with spaces.pages",
        ]

    def test_stdin_command_has_no_path(self, engine):
        command = engine.build_command(OutputKind.METADATA)
        assert command[-2:] == ["--json", "--encoding=UTF-8"]


# =============================================================================
# Invocation Tests
# =============================================================================

class TestRun:
    """Tests for TikaAppEngine.run()."""

    def test_run_with_path(self, engine):
        """Test that paths are passed as an argument, not through stdin."""
        with patch("docbridge.engine.tika_app.subprocess.run", return_value=completed(stdout=b"hello")) as run:
            output = engine.run(Path("sample.pages"), OutputKind.TEXT)

        assert output == b"hello"
        args, kwargs = run.call_args
        assert args[0][-1] == "sample.pages"
        assert kwargs["input"] is None
        assert kwargs["stdin"] == subprocess.DEVNULL
        assert kwargs["timeout"] == 5

    def test_run_with_bytes(self, engine):
        """Test that content is piped through stdin."""
        with patch("docbridge.engine.tika_app.subprocess.run", return_value=completed(stdout=b"{}")) as run:
            engine.run(b"document bytes", OutputKind.METADATA)

        args, kwargs = run.call_args
        assert args[0][-1] == "--encoding=UTF-8"
        assert kwargs["input"] == b"document bytes"
        assert kwargs["stdin"] is None

    def test_nonzero_exit(self, engine):
        """Test that engine failures raise ExtractionError with stderr."""
        result = completed(returncode=1, stderr=b"WARN something\nTikaException: Unsupported format\n")
        with patch("docbridge.engine.tika_app.subprocess.run", return_value=result):
            with pytest.raises(ExtractionError) as exc_info:
                engine.run(b"garbage", OutputKind.TEXT)

        assert exc_info.value.returncode == 1
        assert "Unsupported format" in str(exc_info.value)
        assert "WARN something" in exc_info.value.stderr
        assert isinstance(exc_info.value, InvocationError)

    def test_timeout(self, engine):
        """Test that a hung engine raises EngineTimeoutError."""
        error = subprocess.TimeoutExpired(cmd=["java"], timeout=5, stderr=b"still parsing")
        with patch("docbridge.engine.tika_app.subprocess.run", side_effect=error):
            with pytest.raises(EngineTimeoutError) as exc_info:
                engine.run(b"big", OutputKind.TEXT)

        assert exc_info.value.stderr == "still parsing"

    def test_missing_java(self, engine):
        """Test that a missing java executable raises EngineNotFoundError."""
        with patch("docbridge.engine.tika_app.subprocess.run", side_effect=FileNotFoundError("java")):
            with pytest.raises(EngineNotFoundError):
                engine.run(b"data", OutputKind.TEXT)

    def test_extract_builds_result(self, engine):
        """Test that extract() decodes output into an ExtractionResult."""
        stdout = json.dumps({"Content-Type": "application/pdf"}).encode()
        with patch("docbridge.engine.tika_app.subprocess.run", return_value=completed(stdout=stdout)):
            result = engine.extract(b"%PDF", OutputKind.METADATA)

        assert result.engine == "tika-app"
        assert result.metadata == {"Content-Type": "application/pdf"}
        assert result.value == result.metadata


class TestVerify:
    """Tests for TikaAppEngine.verify()."""

    def test_verify_ok(self, engine):
        with patch("docbridge.engine.tika_app.shutil.which", return_value="/usr/bin/java"):
            engine.verify()

    def test_verify_missing_java(self, engine):
        with patch("docbridge.engine.tika_app.shutil.which", return_value=None):
            with pytest.raises(EngineNotFoundError, match="Java runtime"):
                engine.verify()

    def test_verify_missing_jar(self, tmp_path):
        engine = TikaAppEngine(EngineSettings(jar_path=tmp_path / "missing.jar"))
        with patch("docbridge.engine.tika_app.shutil.which", return_value="/usr/bin/java"):
            with pytest.raises(EngineNotFoundError, match="Tika jar"):
                engine.verify()


# =============================================================================
# Output Decoding Tests
# =============================================================================

class TestOutput:
    """Tests for output decoding and metadata parsing."""

    def test_decode_utf8(self):
        assert decode_output("naïve café".encode("utf-8")) == "naïve café"

    def test_decode_fallback(self):
        """Test that non-UTF-8 output still decodes."""
        text = decode_output("Ceci est un résumé du café.".encode("latin-1"))
        assert isinstance(text, str)
        assert text.startswith("Ceci est un r")

    def test_parse_metadata(self):
        """Test flattening of multi-valued keys."""
        output = json.dumps({
            "Content-Type": "application/vnd.apple.pages",
            "dc:creator": ["Ann", "Bob"],
            "xmpTPg:NPages": 3,
        })

        metadata = parse_metadata(output)

        assert metadata == {
            "Content-Type": "application/vnd.apple.pages",
            "dc:creator": "Ann, Bob",
            "xmpTPg:NPages": "3",
        }

    def test_parse_metadata_list_wrapped(self):
        assert parse_metadata('[{"Content-Type": "text/plain"}]') == {"Content-Type": "text/plain"}

    def test_parse_metadata_malformed(self):
        with pytest.raises(ExtractionError, match="malformed metadata"):
            parse_metadata("Content-Type: text/plain")

    def test_parse_metadata_wrong_shape(self):
        with pytest.raises(ExtractionError, match="unexpected metadata type"):
            parse_metadata('"text/plain"')

    def test_build_result_projections(self):
        text = build_result(OutputKind.TEXT, "x", b"hello")
        html = build_result(OutputKind.HTML, "x", b"<p>hello</p>")

        assert text == ExtractionResult(kind=OutputKind.TEXT, engine="x", text="hello")
        assert text.value == "hello"
        assert html.value == "<p>hello</p>"
        assert html.text is None


# =============================================================================
# Process-wide Engine Tests
# =============================================================================

class TestEngineState:
    """Tests for configure_engine()/get_engine()."""

    def test_configured_engine_is_returned(self, fake_engine):
        configure_engine(fake_engine)
        assert get_engine() is fake_engine

    def test_default_engine_is_verified_once(self):
        """Test that the default engine is built and verified on first use."""
        with patch.object(TikaAppEngine, "verify") as verify:
            first = get_engine()
            second = get_engine()

        assert isinstance(first, TikaAppEngine)
        assert first is second
        verify.assert_called_once()

    def test_missing_engine_fails_fast(self):
        """Test that an unavailable engine is not installed."""
        with patch.object(TikaAppEngine, "verify", side_effect=EngineNotFoundError("no jar")):
            with pytest.raises(EngineNotFoundError):
                get_engine()

        with patch.object(TikaAppEngine, "verify") as verify:
            get_engine()
        verify.assert_called_once()
