"""
Tika app engine.

Runs `java -jar tika-app.jar` once per extraction. Paths are handed to Tika
as an argument; in-memory documents are piped through stdin.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

from ..config import EngineSettings
from ..errors import EngineNotFoundError, EngineTimeoutError, ExtractionError
from . import BaseEngine, OutputKind, Payload

logger = logging.getLogger(__name__)


class TikaAppEngine(BaseEngine):
    """Extraction engine backed by a tika-app jar in a child JVM."""

    def __init__(self, settings: Optional[EngineSettings] = None):
        self.settings = settings or EngineSettings()

    @property
    def name(self) -> str:
        """Return the name of this engine."""
        return "tika-app"

    def verify(self) -> None:
        """Check that the java runtime and the jar are both present."""
        if shutil.which(self.settings.java_path) is None:
            raise EngineNotFoundError(f"Java runtime not found: {self.settings.java_path}")
        if not Path(self.settings.jar_path).is_file():
            raise EngineNotFoundError(f"Tika jar not found: {self.settings.jar_path}")

    def base_command(self) -> List[str]:
        """JVM invocation shared by one-shot and server modes."""
        return [
            self.settings.java_path,
            *self.settings.java_options,
            "-jar",
            str(self.settings.jar_path),
        ]

    def build_command(self, kind: OutputKind, path: Optional[Path] = None) -> List[str]:
        """Build the argument vector. Never passed through a shell."""
        command = self.base_command() + [kind.flag, "--encoding=UTF-8"]
        if path is not None:
            command.append(str(path))
        return command

    def run(self, payload: Payload, kind: OutputKind) -> bytes:
        """Run Tika and return its stdout."""
        if isinstance(payload, Path):
            command = self.build_command(kind, payload)
            stdin = None
        else:
            command = self.build_command(kind)
            stdin = payload

        logger.debug("Running engine: %s", command)
        try:
            completed = subprocess.run(
                command,
                input=stdin,
                stdin=subprocess.DEVNULL if stdin is None else None,
                capture_output=True,
                timeout=self.settings.timeout,
            )
        except FileNotFoundError as e:
            raise EngineNotFoundError(f"Java runtime not found: {self.settings.java_path}") from e
        except subprocess.TimeoutExpired as e:
            logger.warning("Engine timed out after %ss", self.settings.timeout)
            raise EngineTimeoutError(
                f"Tika timed out after {self.settings.timeout}s",
                stderr=_decode_stderr(e.stderr),
            ) from e

        if completed.returncode != 0:
            stderr = _decode_stderr(completed.stderr)
            logger.warning("Engine exited with status %d: %s", completed.returncode, stderr)
            raise ExtractionError(
                f"Tika exited with status {completed.returncode}: {_last_line(stderr)}",
                stderr=stderr,
                returncode=completed.returncode,
            )

        return completed.stdout


def _decode_stderr(stderr: Optional[bytes]) -> str:
    if not stderr:
        return ""
    return stderr.decode("utf-8", errors="replace").strip()


def _last_line(text: str) -> str:
    lines = [line for line in text.splitlines() if line.strip()]
    return lines[-1] if lines else "no error output"
