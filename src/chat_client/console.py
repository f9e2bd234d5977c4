"""
Console Input

Blocking terminal reads cannot be cancelled, so every prompt runs its read
on a short-lived daemon thread that hands the line back to the event loop.
The caller races that line against the cancellation event. A read that is
still pending after cancellation keeps its thread until process exit.

Lines are read from the raw file descriptor rather than ``sys.stdin`` so a
thread left blocked in a read holds no interpreter-level stream lock when
the process exits.
"""

import asyncio
import logging
import os
import sys
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 4096


class ConsoleReader:
    """
    Cancellable line reader for an interactive terminal.

    Attributes:
        fd: File descriptor lines are read from (stdin by default)
        encoding: Text encoding of the input
        write: Function used to display prompts
    """

    def __init__(
        self,
        fd: Optional[int] = None,
        encoding: Optional[str] = None,
        write: Optional[Callable[[str], None]] = None,
    ):
        self.fd = sys.stdin.fileno() if fd is None else fd
        self.encoding = (
            encoding or getattr(sys.stdin, "encoding", None) or "utf-8"
        )
        self.write = write or self._write_stdout
        self._pending = b""

    @staticmethod
    def _write_stdout(text: str) -> None:
        sys.stdout.write(text)
        sys.stdout.flush()

    def _read_line_blocking(self) -> str:
        while b"\n" not in self._pending:
            chunk = os.read(self.fd, READ_CHUNK_SIZE)
            if not chunk:
                # EOF: hand back what is left, then "" on the next call
                line, self._pending = self._pending, b""
                return line.decode(self.encoding, errors="replace")
            self._pending += chunk
        line, _, self._pending = self._pending.partition(b"\n")
        if line.endswith(b"\r"):
            line = line[:-1]
        return line.decode(self.encoding, errors="replace")

    async def read_line(self, prompt: str, cancel: asyncio.Event) -> str:
        """
        Show ``prompt`` and wait for one line.

        Returns:
            The line without its line ending, or "" on EOF or when
            ``cancel`` fires first
        """
        if cancel.is_set():
            return ""

        loop = asyncio.get_running_loop()
        line_future = loop.create_future()

        def deliver(line: str) -> None:
            if not line_future.done():
                line_future.set_result(line)

        def read() -> None:
            try:
                line = self._read_line_blocking()
            except OSError as e:
                logger.warning("Failed to read from terminal: %s", e)
                line = ""
            try:
                loop.call_soon_threadsafe(deliver, line)
            except RuntimeError:
                logger.debug("Event loop closed before line was delivered")

        self.write(prompt)
        threading.Thread(
            target=read, name="console-reader", daemon=True
        ).start()

        cancel_wait = asyncio.ensure_future(cancel.wait())
        try:
            await asyncio.wait(
                {line_future, cancel_wait},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            cancel_wait.cancel()

        if cancel.is_set() or not line_future.done():
            line_future.cancel()
            return ""
        return line_future.result()
