"""
Tika socket server engine.

Keeps one JVM alive (`tika-app.jar --server --port N <flag>`) to avoid the
JVM start-up cost per document. The server is bound to a single output
kind: each connection receives the document bytes, the client half-closes,
and Tika writes the result back before closing.
"""

import logging
import socket
import subprocess
import time
from pathlib import Path
from typing import Optional

from ..config import EngineSettings, ServerSettings
from ..errors import EngineNotFoundError, EngineTimeoutError, ExtractionError
from . import BaseEngine, OutputKind, Payload
from .tika_app import TikaAppEngine

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.2
STOP_GRACE_SECONDS = 5.0


class TikaServerEngine(BaseEngine):
    """Extraction engine backed by a long-running Tika socket server."""

    def __init__(
        self,
        kind: OutputKind = OutputKind.TEXT,
        engine_settings: Optional[EngineSettings] = None,
        server_settings: Optional[ServerSettings] = None,
    ):
        self.kind = OutputKind.parse(kind)
        self.app = TikaAppEngine(engine_settings)
        self.server_settings = server_settings or ServerSettings()
        self._process: Optional[subprocess.Popen] = None

    @property
    def name(self) -> str:
        """Return the name of this engine."""
        return "tika-server"

    @property
    def address(self) -> tuple:
        return (self.server_settings.host, self.server_settings.port)

    @property
    def running(self) -> bool:
        """True while the server process is alive."""
        return self._process is not None and self._process.poll() is None

    def verify(self) -> None:
        """Check the JVM and jar, and that the server has been started."""
        self.app.verify()
        if not self.running:
            raise EngineNotFoundError(f"Tika server is not running on {self.address[0]}:{self.address[1]}")

    def command(self):
        return self.app.base_command() + [
            "--server",
            "--port",
            str(self.server_settings.port),
            self.kind.flag,
        ]

    def start(self) -> "TikaServerEngine":
        """Start the server and block until it accepts connections."""
        if self.running:
            return self

        self.app.verify()
        command = self.command()
        logger.info("Starting Tika server on %s:%d (%s)", *self.address, self.kind.value)
        logger.debug("Server command: %s", command)
        try:
            self._process = subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except FileNotFoundError as e:
            raise EngineNotFoundError(f"Java runtime not found: {self.app.settings.java_path}") from e

        self._wait_until_ready()
        return self

    def _wait_until_ready(self) -> None:
        deadline = time.monotonic() + self.server_settings.startup_timeout
        while time.monotonic() < deadline:
            if self._process.poll() is not None:
                returncode = self._process.returncode
                self._process = None
                raise ExtractionError(
                    f"Tika server exited during start-up with status {returncode}",
                    returncode=returncode,
                )
            try:
                with socket.create_connection(self.address, timeout=POLL_INTERVAL):
                    pass
            except OSError:
                time.sleep(POLL_INTERVAL)
                continue

            # A listener that is not our child means the port was already taken
            if self._process.poll() is not None:
                returncode = self._process.returncode
                self._process = None
                raise ExtractionError(
                    f"Port {self.address[1]} is in use by another process "
                    f"(Tika server exited with status {returncode})",
                    returncode=returncode,
                )
            logger.info("Tika server ready on %s:%d", *self.address)
            return

        self.stop()
        raise EngineTimeoutError(
            f"Tika server did not start within {self.server_settings.startup_timeout}s"
        )

    def stop(self) -> None:
        """Terminate the server, killing it if it ignores SIGTERM."""
        if self._process is None:
            return
        process, self._process = self._process, None
        if process.poll() is not None:
            return

        logger.info("Stopping Tika server on %s:%d", *self.address)
        process.terminate()
        try:
            process.wait(timeout=STOP_GRACE_SECONDS)
        except subprocess.TimeoutExpired:
            logger.warning("Tika server ignored terminate, killing")
            process.kill()
            process.wait()

    def __enter__(self) -> "TikaServerEngine":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def run(self, payload: Payload, kind: OutputKind) -> bytes:
        """Send the document to the server and return its reply."""
        if kind is not self.kind:
            raise ExtractionError(
                f"Tika server was started for {self.kind.value} output, cannot serve {kind.value}"
            )
        if isinstance(payload, Path):
            data = payload.read_bytes()
        else:
            data = payload

        timeout = self.app.settings.timeout
        chunks = []
        try:
            with socket.create_connection(self.address, timeout=timeout) as sock:
                sock.sendall(data)
                sock.shutdown(socket.SHUT_WR)
                while True:
                    chunk = sock.recv(65536)
                    if not chunk:
                        break
                    chunks.append(chunk)
        except socket.timeout as e:
            raise EngineTimeoutError(f"Tika server did not answer within {timeout}s") from e
        except OSError as e:
            raise ExtractionError(f"Tika server request failed: {e}") from e

        return b"".join(chunks)
