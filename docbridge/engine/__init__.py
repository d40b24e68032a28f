"""
Extraction engine interface.

The engine is an opaque external process (Apache Tika). Implementations
take either a filesystem path or the document bytes plus an output kind and
return the engine's raw output.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Union

logger = logging.getLogger(__name__)

Payload = Union[Path, bytes]


class OutputKind(str, Enum):
    """Which projection of the engine's result is requested."""

    TEXT = "text"
    METADATA = "metadata"
    HTML = "html"

    @property
    def flag(self) -> str:
        """Tika command-line switch selecting this output."""
        return _FLAGS[self]

    @classmethod
    def parse(cls, value: Union["OutputKind", str]) -> "OutputKind":
        """Accept an OutputKind or its name ('text', 'metadata', 'html')."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            choices = ", ".join(kind.value for kind in cls)
            raise ValueError(f"Unknown output kind {value!r} (expected one of: {choices})") from None


_FLAGS = {
    OutputKind.TEXT: "--text",
    OutputKind.METADATA: "--json",
    OutputKind.HTML: "--html",
}


@dataclass
class ExtractionResult:
    """Result of a single engine invocation."""
    kind: OutputKind
    engine: str  # 'tika-app', 'tika-server', etc.
    text: Optional[str] = None
    html: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def value(self) -> Union[str, Dict[str, str]]:
        """The projection selected by kind."""
        if self.kind is OutputKind.METADATA:
            return self.metadata
        if self.kind is OutputKind.HTML:
            return self.html
        return self.text


class BaseEngine(ABC):
    """Abstract base class for extraction engines."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of this engine."""
        pass

    @abstractmethod
    def verify(self) -> None:
        """Raise EngineNotFoundError if the engine cannot run."""
        pass

    @abstractmethod
    def run(self, payload: Payload, kind: OutputKind) -> bytes:
        """Run the engine and return its raw output."""
        pass

    def extract(self, payload: Payload, kind: OutputKind) -> ExtractionResult:
        """Run the engine and decode its output into an ExtractionResult."""
        from .output import build_result

        raw = self.run(payload, kind)
        return build_result(kind, self.name, raw)


# Process-wide engine, installed explicitly or built once from settings
_engine: Optional[BaseEngine] = None


def configure_engine(engine: BaseEngine) -> BaseEngine:
    """Install the process-wide engine."""
    global _engine
    _engine = engine
    logger.debug("Configured extraction engine: %s", engine.name)
    return engine


def get_engine() -> BaseEngine:
    """
    Get the process-wide engine.

    On first use, builds a TikaAppEngine from the loaded settings and
    verifies it, so a missing java runtime or jar fails fast.
    """
    if _engine is None:
        from ..config import DocbridgeSettings
        from .tika_app import TikaAppEngine

        engine = TikaAppEngine(DocbridgeSettings.load().engine)
        engine.verify()
        configure_engine(engine)
    return _engine


def reset_engine() -> None:
    """Forget the process-wide engine."""
    global _engine
    _engine = None


__all__ = [
    "BaseEngine",
    "ExtractionResult",
    "OutputKind",
    "Payload",
    "configure_engine",
    "get_engine",
    "reset_engine",
]
