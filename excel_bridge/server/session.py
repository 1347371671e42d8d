"""Server layer — stdio session loop.

Reads one line at a time from stdin, hands it to the dispatcher and writes
exactly one response line per non-blank input line.  stdout carries
protocol traffic only; diagnostics go to stderr through the logger.
"""

from __future__ import annotations

import asyncio
import sys
from dataclasses import dataclass
from typing import IO, Any

from excel_bridge.exceptions import SERVER_ERROR
from excel_bridge.logging import get_logger
from excel_bridge.server.dispatcher import Dispatcher

log = get_logger(__name__)


@dataclass
class SessionStats:
    lines_read: int = 0
    responses_written: int = 0
    errors: int = 0


class StdioSession:
    """Line loop over a pair of byte streams.

    *stdin* must be a binary stream (``readline()`` returns ``bytes``).
    *stdout* may be binary or text.  Both default to the process streams.
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        stdin: IO[bytes] | None = None,
        stdout: IO[Any] | None = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._stdin = stdin if stdin is not None else sys.stdin.buffer
        self._stdout = stdout if stdout is not None else sys.stdout.buffer
        self.stats = SessionStats()

    async def run(self) -> SessionStats:
        """Serve until EOF."""
        log.info("session_started")
        while True:
            raw = await asyncio.to_thread(self._stdin.readline)
            if not raw:
                break
            self.stats.lines_read += 1

            try:
                text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
                if not text.strip():
                    continue
                response = await self._dispatcher.handle_line(text)
            except Exception as exc:
                log.error("session_line_failed", error=str(exc), exc_info=True)
                self.stats.errors += 1
                response = self._dispatcher.codec.encode_error(
                    None, SERVER_ERROR, str(exc) or type(exc).__name__
                )

            self._write(response)

        log.info(
            "session_ended",
            lines_read=self.stats.lines_read,
            responses_written=self.stats.responses_written,
            errors=self.stats.errors,
        )
        return self.stats

    def _write(self, line: str) -> None:
        payload = line + "\n"
        if _is_binary(self._stdout):
            self._stdout.write(payload.encode("utf-8"))
        else:
            self._stdout.write(payload)
        self._stdout.flush()
        self.stats.responses_written += 1


def _is_binary(stream: IO[Any]) -> bool:
    mode = getattr(stream, "mode", None)
    if isinstance(mode, str):
        return "b" in mode
    # BytesIO and buffered writers have no text encoding.
    return not hasattr(stream, "encoding")
