import logging
import os
import signal
import subprocess
import threading
from dataclasses import dataclass
from typing import List, Optional, Union

from .errors import (
    DecompileFailed,
    DecompilerUnavailable,
    DecompileTimeout,
    EmptyDecompilation,
    OutputTooLarge,
)

logger = logging.getLogger(__name__)

READ_CHUNK = 64 * 1024
TERMINATE_GRACE = 2.0
STDERR_LOG_LIMIT = 4096


@dataclass(frozen=True)
class Completed:
    stdout: str
    stderr: str
    returncode: int


@dataclass(frozen=True)
class TimedOut:
    timeout: float


@dataclass(frozen=True)
class KilledForOutputLimit:
    limit: int


@dataclass(frozen=True)
class NotFound:
    detail: str


@dataclass(frozen=True)
class OtherFailure:
    detail: str


Outcome = Union[Completed, TimedOut, KilledForOutputLimit, NotFound, OtherFailure]


class _Invocation:
    """One running decompiler process with bounded output capture."""

    def __init__(self, process: subprocess.Popen, max_output: int):
        self.process = process
        self.max_output = max_output
        self.output_exceeded = False
        self.killed = False
        self._received = 0
        self._lock = threading.Lock()
        self._stdout: List[bytes] = []
        self._stderr: List[bytes] = []
        self._readers = [
            threading.Thread(target=self._drain, args=(process.stdout, self._stdout), daemon=True),
            threading.Thread(target=self._drain, args=(process.stderr, self._stderr), daemon=True),
        ]
        for reader in self._readers:
            reader.start()

    def _drain(self, stream, chunks):
        try:
            with stream:
                while True:
                    chunk = stream.read(READ_CHUNK)
                    if not chunk:
                        return
                    with self._lock:
                        self._received += len(chunk)
                        overflow = self._received > self.max_output
                        if overflow:
                            self.output_exceeded = True
                        else:
                            chunks.append(chunk)
                    if overflow:
                        self._kill()
                        return
        except (OSError, ValueError):
            # The pipe was closed under us by _join.
            return

    def _signal_group(self, sig):
        # The decompiler leads its own session, so its pid is the group id.
        try:
            os.killpg(self.process.pid, sig)
        except (ProcessLookupError, PermissionError):
            pass

    def _kill(self):
        with self._lock:
            if self.process.poll() is None:
                self.killed = True
        self._signal_group(signal.SIGKILL)

    def _terminate(self):
        with self._lock:
            self.killed = True
        self._signal_group(signal.SIGTERM)
        try:
            self.process.wait(timeout=TERMINATE_GRACE)
        except subprocess.TimeoutExpired:
            logger.warning(f"Decompiler did not terminate, killing pid {self.process.pid}")
        self._signal_group(signal.SIGKILL)
        self.process.wait()

    def _join(self):
        for reader in self._readers:
            reader.join(TERMINATE_GRACE)
        if any(reader.is_alive() for reader in self._readers):
            logger.warning(f"Output pipes of pid {self.process.pid} still open, closing them")
            for stream in (self.process.stdout, self.process.stderr):
                try:
                    stream.close()
                except OSError:
                    pass
            for reader in self._readers:
                reader.join(TERMINATE_GRACE)

    @staticmethod
    def _text(chunks):
        return b"".join(chunks).decode("utf-8", errors="replace")

    def wait(self, timeout: float) -> Outcome:
        try:
            self.process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.warning(f"Decompiler exceeded {timeout}s, terminating pid {self.process.pid}")
            self._terminate()
            self._join()
            return TimedOut(timeout)

        # Anything the decompiler left behind dies with it.
        self._signal_group(signal.SIGKILL)
        self._join()
        if self.output_exceeded:
            return KilledForOutputLimit(self.max_output)

        returncode = self.process.returncode
        if returncode == -signal.SIGKILL and not self.killed:
            # Killed from outside, most likely the kernel OOM killer.
            return KilledForOutputLimit(self.max_output)
        return Completed(self._text(self._stdout), self._text(self._stderr), returncode)


def run_decompiler(
    executable: str,
    path: str,
    flag: str,
    timeout: float,
    max_output: int,
    env: Optional[dict] = None,
) -> Outcome:
    """Run ``executable path flag`` without a shell and report how it ended."""
    args = [executable, path, flag]
    try:
        process = subprocess.Popen(
            args,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=env,
            bufsize=0,
            start_new_session=True,
        )
    except (FileNotFoundError, PermissionError) as e:
        return NotFound(str(e))
    except OSError as e:
        return OtherFailure(str(e))

    return _Invocation(process, max_output).wait(timeout)


def classify(outcome: Outcome) -> str:
    """Turn an invocation outcome into decompiled text or raise the matching error."""
    if isinstance(outcome, NotFound):
        logger.error(f"Decompiler not invocable: {outcome.detail}")
        raise DecompilerUnavailable()
    if isinstance(outcome, TimedOut):
        logger.error(f"Decompilation timed out after {outcome.timeout}s")
        raise DecompileTimeout()
    if isinstance(outcome, KilledForOutputLimit):
        logger.error(f"Decompiler killed, output limit {outcome.limit} bytes")
        raise OutputTooLarge()
    if isinstance(outcome, OtherFailure):
        logger.error(f"Decompilation error: {outcome.detail}")
        raise DecompileFailed()

    if outcome.stderr:
        stderr = outcome.stderr
        if len(stderr) > STDERR_LOG_LIMIT:
            stderr = f"{stderr[:STDERR_LOG_LIMIT]}... ({len(outcome.stderr)} chars total)"
        logger.warning(f"Decompiler warning: {stderr}")
    if outcome.returncode != 0:
        logger.error(f"Decompiler exited with status {outcome.returncode}")
        raise DecompileFailed()
    if not outcome.stdout.strip():
        logger.error("Decompiler returned empty output")
        raise EmptyDecompilation()
    return outcome.stdout
