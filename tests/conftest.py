"""
Shared fixtures.

FakeEngine stands in for Tika: it treats every document as plain text,
so text output is the document bytes and metadata reports a fixed
content type plus the byte count.
"""

import json
from pathlib import Path

import pytest

from docbridge.engine import BaseEngine, OutputKind, reset_engine

SAMPLE_TEXT = "Sample document.\nThe quick brown fox jumped over the lazy cat.\n"
PAGES_TYPE = "application/vnd.apple.pages"


class FakeEngine(BaseEngine):
    """Deterministic engine that records every call."""

    def __init__(self, content_type: str = PAGES_TYPE, extra_metadata=None):
        self.content_type = content_type
        self.extra_metadata = extra_metadata or {}
        self.calls = []

    @property
    def name(self) -> str:
        return "fake"

    def verify(self) -> None:
        pass

    def run(self, payload, kind):
        self.calls.append((payload, kind))
        data = payload.read_bytes() if isinstance(payload, Path) else payload

        if kind is OutputKind.METADATA:
            metadata = {
                "Content-Type": self.content_type,
                "Content-Length": str(len(data)),
                **self.extra_metadata,
            }
            return json.dumps(metadata).encode("utf-8")
        if kind is OutputKind.HTML:
            return b"<html><body><p>" + data + b"</p></body></html>"
        return data


@pytest.fixture(autouse=True)
def _reset_process_engine():
    """Keep the process-wide engine from leaking between tests."""
    reset_engine()
    yield
    reset_engine()


@pytest.fixture
def fake_engine():
    """Create a fake engine."""
    return FakeEngine()


@pytest.fixture
def samples_dir(tmp_path):
    """Create a directory of sample documents."""
    samples = tmp_path / "samples"
    samples.mkdir()
    (samples / "sample.pages").write_text(SAMPLE_TEXT, encoding="utf-8")
    (samples / "sample filename with spaces.pages").write_text(SAMPLE_TEXT, encoding="utf-8")
    return samples


@pytest.fixture
def sample_path(samples_dir):
    """Path to the main sample document."""
    return samples_dir / "sample.pages"


@pytest.fixture
def engine_factory():
    """Build fake engines with custom metadata."""
    return FakeEngine
