"""One bounded-time run of an external CLI process.

An Invocation spawns the process, writes the prompt to its stdin,
collects stdout/stderr and settles exactly once. Four events race to
settle it:

- the timeout timer            -> TIMED_OUT
- the process closing          -> CLOSED (success or failure by exit code)
- the spawn raising            -> SPAWN_FAILED
- the stdin write raising      -> INPUT_WRITE_FAILED

Every event goes through _transition(), which consults the allowed-
transition table. The first terminal event wins; later events find a
terminal state with no outgoing transitions and are ignored. All
handlers run on the event loop thread, so no lock is needed.

On every failure path the child is sent SIGTERM without waiting for it
to exit. A detached task reaps it afterwards.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum

from ..errors import (
    ConsultError,
    EngineExitError,
    EngineInputError,
    EngineSpawnError,
    EngineTimeoutError,
)

logger = logging.getLogger(__name__)

_READ_CHUNK = 64 * 1024


class InvocationState(str, Enum):
    SPAWNED = "spawned"
    RUNNING = "running"
    TIMED_OUT = "timed_out"
    CLOSED = "closed"
    SPAWN_FAILED = "spawn_failed"
    INPUT_WRITE_FAILED = "input_write_failed"


_TRANSITIONS: dict[InvocationState, frozenset[InvocationState]] = {
    InvocationState.SPAWNED: frozenset({
        InvocationState.RUNNING,
        InvocationState.TIMED_OUT,
        InvocationState.SPAWN_FAILED,
    }),
    InvocationState.RUNNING: frozenset({
        InvocationState.TIMED_OUT,
        InvocationState.CLOSED,
        InvocationState.SPAWN_FAILED,
        InvocationState.INPUT_WRITE_FAILED,
    }),
}

TERMINAL_STATES = frozenset({
    InvocationState.TIMED_OUT,
    InvocationState.CLOSED,
    InvocationState.SPAWN_FAILED,
    InvocationState.INPUT_WRITE_FAILED,
})

# Reaper tasks for terminated children; held here so they are not
# garbage collected before the child is waited on.
_REAPER_TASKS: set[asyncio.Task] = set()


@dataclass
class InvocationOutcome:
    """Terminal result of an Invocation."""
    state: InvocationState
    stdout: str = ""
    stderr: str = ""
    exit_code: int | None = None
    error: ConsultError | None = None

    @property
    def success(self) -> bool:
        return self.error is None


SettleCallback = Callable[[InvocationOutcome], None]


class Invocation:
    """A single run of ``command *args`` with a hard deadline."""

    def __init__(
        self,
        command: str,
        args: Sequence[str],
        *,
        timeout_ms: int,
        env: dict[str, str] | None = None,
        on_settle: SettleCallback | None = None,
    ) -> None:
        self.command = command
        self.args: tuple[str, ...] = tuple(args)
        self.timeout_ms = timeout_ms
        self.state = InvocationState.SPAWNED
        self.outcome: InvocationOutcome | None = None
        self.process: asyncio.subprocess.Process | None = None
        self.deadline: float | None = None
        self._env = env
        self._on_settle = on_settle
        self._settled = asyncio.Event()
        self._timer: asyncio.TimerHandle | None = None
        self._stdout: list[bytes] = []
        self._stderr: list[bytes] = []

    @property
    def settled(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def stdout_text(self) -> str:
        return b"".join(self._stdout).decode("utf-8", errors="replace")

    @property
    def stderr_text(self) -> str:
        return b"".join(self._stderr).decode("utf-8", errors="replace")

    # ── State machine ─────────────────────────────────────────

    def _transition(self, target: InvocationState) -> bool:
        allowed = _TRANSITIONS.get(self.state, frozenset())
        if target not in allowed:
            logger.debug(
                "Invocation %s: ignoring %s (state=%s)",
                self.command, target.value, self.state.value,
            )
            return False
        self.state = target
        return True

    def _settle(
        self,
        target: InvocationState,
        *,
        exit_code: int | None = None,
        error: ConsultError | None = None,
    ) -> bool:
        if not self._transition(target):
            return False
        if self._timer is not None:
            self._timer.cancel()
        self.outcome = InvocationOutcome(
            state=target,
            stdout=self.stdout_text,
            stderr=self.stderr_text,
            exit_code=exit_code,
            error=error,
        )
        self._settled.set()
        if self._on_settle is not None:
            self._on_settle(self.outcome)
        return True

    def attach(self, process: asyncio.subprocess.Process) -> bool:
        """Record the spawned process and move to RUNNING."""
        self.process = process
        return self._transition(InvocationState.RUNNING)

    # ── Event handlers ────────────────────────────────────────

    def handle_timeout(self) -> bool:
        if not self._settle(
            InvocationState.TIMED_OUT,
            error=EngineTimeoutError(self.timeout_ms),
        ):
            return False
        logger.warning(
            "%s timed out after %dms; terminating", self.command, self.timeout_ms,
        )
        self._terminate()
        return True

    def handle_close(self, exit_code: int | None) -> bool:
        # Partial output on a non-zero exit still counts as an answer.
        if exit_code == 0 or self.stdout_text.strip():
            if not self._settle(InvocationState.CLOSED, exit_code=exit_code):
                return False
            if exit_code != 0:
                logger.warning(
                    "%s exited with code %s but produced output; "
                    "treating as success",
                    self.command, exit_code,
                )
            return True
        return self._settle(
            InvocationState.CLOSED,
            exit_code=exit_code,
            error=EngineExitError(exit_code, self.stderr_text),
        )

    def handle_spawn_error(self, exc: BaseException) -> bool:
        if not self._settle(
            InvocationState.SPAWN_FAILED,
            error=EngineSpawnError(str(exc)),
        ):
            return False
        logger.error("Failed to spawn %s: %s", self.command, exc)
        self._terminate()
        return True

    def handle_input_error(self, exc: BaseException) -> bool:
        if not self._settle(
            InvocationState.INPUT_WRITE_FAILED,
            error=EngineInputError(str(exc)),
        ):
            return False
        logger.error("Writing prompt to %s failed: %s", self.command, exc)
        self._terminate()
        return True

    # ── Process management ────────────────────────────────────

    def _terminate(self) -> None:
        """Send SIGTERM to the child without waiting for it to exit."""
        proc = self.process
        if proc is None or proc.returncode is not None:
            return
        try:
            proc.terminate()
        except ProcessLookupError:
            return
        logger.info("Sent SIGTERM to %s (pid=%s)", self.command, proc.pid)
        task = asyncio.get_running_loop().create_task(
            proc.wait(), name=f"reap-{self.command}-{proc.pid}",
        )
        _REAPER_TASKS.add(task)
        task.add_done_callback(_REAPER_TASKS.discard)

    @staticmethod
    async def _collect(
        stream: asyncio.StreamReader | None, sink: list[bytes],
    ) -> None:
        if stream is None:
            return
        while True:
            chunk = await stream.read(_READ_CHUNK)
            if not chunk:
                return
            sink.append(chunk)

    async def _pump(self, prompt: str) -> None:
        """Feed stdin, drain stdout/stderr, then report the exit code."""
        proc = self.process
        assert proc is not None
        readers = [
            asyncio.create_task(self._collect(proc.stdout, self._stdout)),
            asyncio.create_task(self._collect(proc.stderr, self._stderr)),
        ]
        try:
            if proc.stdin is not None:
                try:
                    proc.stdin.write(prompt.encode("utf-8"))
                    await proc.stdin.drain()
                    proc.stdin.close()
                    await proc.stdin.wait_closed()
                except OSError as exc:
                    self.handle_input_error(exc)
                    return
            await asyncio.gather(*readers)
            exit_code = await proc.wait()
        finally:
            for task in readers:
                if not task.done():
                    task.cancel()
        self.handle_close(exit_code)

    async def run(self, prompt: str) -> str:
        """Run the process to completion and return its raw stdout.

        Raises the ConsultError carried by the outcome on any failure.
        """
        loop = asyncio.get_running_loop()
        self.deadline = loop.time() + self.timeout_ms / 1000.0
        self._timer = loop.call_at(self.deadline, self.handle_timeout)
        pump: asyncio.Task | None = None
        try:
            try:
                process = await asyncio.create_subprocess_exec(
                    self.command,
                    *self.args,
                    stdin=asyncio.subprocess.PIPE,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    env=self._env,
                )
            except (OSError, ValueError) as exc:
                self.handle_spawn_error(exc)
            else:
                if self.attach(process):
                    logger.debug(
                        "Spawned %s (pid=%s, timeout=%dms)",
                        self.command, process.pid, self.timeout_ms,
                    )
                    pump = loop.create_task(
                        self._pump(prompt), name=f"invocation-{self.command}",
                    )
                else:
                    # Timed out before the spawn returned
                    self._terminate()
            await self._settled.wait()
        finally:
            if self._timer is not None:
                self._timer.cancel()
            if pump is not None and not pump.done():
                pump.cancel()
            if not self.settled:
                self._terminate()

        assert self.outcome is not None
        if self.outcome.error is not None:
            raise self.outcome.error
        return self.outcome.stdout
