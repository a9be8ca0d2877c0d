"""Chromedriver process supervision: spawn, readiness detection, crash notification."""

from __future__ import annotations

import asyncio
import codecs
import contextlib
import logging
import shutil
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from chromedroid.shared.enums import LaunchState
from chromedroid.shared.exceptions import (
    DriverPrematureExitError,
    DriverResolutionError,
    DriverSpawnError,
)

logger = logging.getLogger(__name__)

# Printed by chromedriver once it is listening
READY_MARKER = "Starting ChromeDriver"

_READ_CHUNK = 4096

# How often the exit watcher re-checks the OS exit status
_EXIT_POLL_INTERVAL = 0.1

DeathCallback = Callable[[], None]


class LineScanner:
    """Split arbitrarily-chunked text into lines.

    Chunks need not align with newlines: a partial trailing line is kept in
    :attr:`pending` until its newline arrives.
    """

    def __init__(self) -> None:
        self.pending = ""

    def feed(self, text: str) -> list[str]:
        """Add decoded text and return the lines it completed."""
        self.pending += text
        *lines, self.pending = self.pending.split("\n")
        return [line.rstrip("\r") for line in lines]

    def flush(self) -> list[str]:
        """Return the unterminated tail, if any, and reset."""
        tail, self.pending = self.pending, ""
        return [tail.rstrip("\r")] if tail else []


@dataclass(slots=True)
class DriverProcess:
    """A spawned chromedriver and what is known about it."""

    proc: asyncio.subprocess.Process
    binary: str
    ready: bool = False
    exit_code: int | None = None

    @property
    def pid(self) -> int:
        return self.proc.pid

    @property
    def running(self) -> bool:
        return self.exit_code is None and self.proc.returncode is None


class _LaunchAttempt:
    """One-shot outcome of a single launch: ready or failed, never both."""

    def __init__(self) -> None:
        self.state = LaunchState.PENDING
        self.outcome: asyncio.Future[None] = asyncio.get_running_loop().create_future()

    def resolve(self, exc: BaseException | None = None) -> bool:
        """Deliver the outcome unless one was already delivered."""
        if self.state is not LaunchState.PENDING:
            return False
        self.state = LaunchState.RESOLVED
        if self.outcome.done():
            # Launch caller went away
            return True
        if exc is None:
            self.outcome.set_result(None)
        else:
            self.outcome.set_exception(exc)
        return True


class ProcessSupervisor:
    """Run one chromedriver process and classify its lifecycle.

    :meth:`launch` returns once the driver prints its readiness marker, or
    raises if it cannot be spawned or exits first. After readiness, an exit
    that :meth:`stop` did not cause is reported through the ``on_die``
    callback.
    """

    def __init__(self, *, stop_timeout: float = 5.0, drain_timeout: float = 0.5) -> None:
        self._stop_timeout = stop_timeout
        self._drain_timeout = drain_timeout
        self.process: DriverProcess | None = None
        self._on_die: DeathCallback | None = None
        self._stopping = False
        self._readers: list[asyncio.Task[None]] = []
        self._watcher: asyncio.Task[None] | None = None

    @staticmethod
    def resolve_binary(name: str) -> str:
        """Locate ``name`` on PATH.

        Returns:
            Absolute path of the binary.

        Raises:
            DriverResolutionError: If it is not on PATH.
        """
        logger.info("ensuring %s exists", name)
        path = shutil.which(name)
        if path is None:
            raise DriverResolutionError(f"Could not find {name}, is it on PATH?")
        return path

    async def launch(
        self,
        binary: str,
        args: Sequence[str],
        *,
        on_die: DeathCallback | None = None,
    ) -> DriverProcess:
        """Spawn ``binary`` and wait until it reports readiness.

        Args:
            binary: Resolved path to chromedriver.
            args: Command-line arguments.
            on_die: Called when the driver dies after becoming ready, or
                when the OS refuses to spawn it.

        Returns:
            The ready driver process.

        Raises:
            DriverSpawnError: If the process could not be started.
            DriverPrematureExitError: If it exited before becoming ready.
        """
        if self.process is not None and self.process.running:
            raise DriverSpawnError(f"chromedriver already running (pid={self.process.pid})")

        self._on_die = on_die
        self._stopping = False

        logger.info("spawning chromedriver with: %s %s", binary, " ".join(args))
        try:
            proc = await asyncio.create_subprocess_exec(
                binary,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            logger.error("chromedriver process failed with error: %s", exc)
            self._notify_death()
            raise DriverSpawnError(f"failed to spawn {binary}: {exc}") from exc

        attempt = _LaunchAttempt()
        process = DriverProcess(proc=proc, binary=binary)
        self.process = process
        readers = [
            asyncio.create_task(self._read_stdout(process, attempt), name="chromedriver-stdout"),
            asyncio.create_task(self._read_stderr(process), name="chromedriver-stderr"),
        ]
        self._readers = readers
        self._watcher = asyncio.create_task(self._watch_exit(process, attempt, readers), name="chromedriver-exit")

        await attempt.outcome
        logger.info("chromedriver ready (pid=%d)", process.pid)
        return process

    async def stop(self) -> None:
        """Kill the driver. Never raises; safe to call repeatedly or before launch."""
        process = self.process
        if process is None:
            logger.debug("stop requested with no chromedriver process")
            return
        self._stopping = True

        if process.running:
            logger.info("killing chromedriver (pid=%d)", process.pid)
            try:
                process.proc.kill()
            except ProcessLookupError:
                logger.debug("chromedriver %d already gone", process.pid)
            except OSError as exc:
                logger.error("failed to kill chromedriver %d: %s", process.pid, exc)

        watcher = self._watcher
        if watcher is not None and not watcher.done():
            try:
                await asyncio.wait_for(asyncio.shield(watcher), timeout=self._stop_timeout)
            except asyncio.TimeoutError:
                logger.error("chromedriver %d not reaped after %.1fs", process.pid, self._stop_timeout)

        for task in self._readers:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._readers = []

    async def wait(self) -> int | None:
        """Wait for the current driver to exit and return its exit code."""
        if self._watcher is not None:
            await asyncio.shield(self._watcher)
        return self.process.exit_code if self.process is not None else None

    async def _read_stdout(self, process: DriverProcess, attempt: _LaunchAttempt) -> None:
        scanner = LineScanner()

        def on_text(text: str) -> None:
            for line in scanner.feed(text):
                logger.info("[CHROMEDRIVER] %s", line)
                check(line)
            # Marker without its newline yet
            check(scanner.pending)

        def check(line: str) -> None:
            if not process.ready and line.startswith(READY_MARKER) and attempt.resolve():
                process.ready = True

        await _pump(process.proc.stdout, on_text)
        for line in scanner.flush():
            logger.info("[CHROMEDRIVER] %s", line)

    async def _read_stderr(self, process: DriverProcess) -> None:
        scanner = LineScanner()

        def on_text(text: str) -> None:
            for line in scanner.feed(text):
                logger.info("[CHROMEDRIVER STDERR] %s", line)

        await _pump(process.proc.stderr, on_text)
        for line in scanner.flush():
            logger.info("[CHROMEDRIVER STDERR] %s", line)

    async def _watch_exit(
        self,
        process: DriverProcess,
        attempt: _LaunchAttempt,
        readers: list[asyncio.Task[None]],
    ) -> None:
        code = await _wait_exit(process.proc)
        # Give buffered output a moment so a marker printed just before exit
        # still counts. Children holding the pipes open must not stall this.
        _, pending = await asyncio.wait(readers, timeout=self._drain_timeout)
        if pending:
            logger.debug("chromedriver output still open after exit, classifying anyway")
        process.exit_code = code
        logger.info("chromedriver exited with code %s", code)

        if attempt.resolve(DriverPrematureExitError("Chromedriver quit before it was available")):
            return
        if self._stopping:
            return
        self._notify_death()

    def _notify_death(self) -> None:
        if self._on_die is None:
            return
        on_die, self._on_die = self._on_die, None
        try:
            on_die()
        except Exception:
            logger.exception("chromedriver death callback failed")


async def _pump(stream: asyncio.StreamReader | None, on_text: Callable[[str], None]) -> None:
    """Feed decoded chunks from ``stream`` to ``on_text`` until EOF."""
    if stream is None:
        return
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while True:
        data = await stream.read(_READ_CHUNK)
        if not data:
            break
        on_text(decoder.decode(data))
    tail = decoder.decode(b"", final=True)
    if tail:
        on_text(tail)


async def _wait_exit(proc: asyncio.subprocess.Process) -> int:
    """Return the exit code as soon as the OS reports it.

    ``Process.wait()`` may not return until the pipes close, which a
    surviving child can delay indefinitely, so ``returncode`` is polled too.
    """
    waiter = asyncio.ensure_future(proc.wait())
    try:
        while proc.returncode is None:
            done, _ = await asyncio.wait({waiter}, timeout=_EXIT_POLL_INTERVAL)
            if done:
                return waiter.result()
        return proc.returncode
    finally:
        if not waiter.done():
            waiter.cancel()
