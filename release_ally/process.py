# -*- coding: utf-8 -*-
"""
Process runner for the external release tools.

- Commands are exec'd as an argv list; nothing goes through a shell.
- stdout and stderr are drained by one thread each into a single queue,
  so a chatty process never blocks on a full pipe while we wait on it.
- Lines from the two streams interleave in arrival order. Within a stream
  the order is preserved; across streams it is not.
"""

import enum
import logging
import queue
import subprocess
import threading
from dataclasses import dataclass
from typing import IO, Iterator, List, Optional, Sequence


class Outcome(enum.Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    LAUNCH_ERROR = "launch_error"


@dataclass(frozen=True)
class RunResult:
    outcome: Outcome
    returncode: Optional[int] = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS


class LaunchError(Exception):
    pass


_EOF = object()


def _drain(stream: IO[str], out: "queue.Queue[object]") -> None:
    try:
        for line in stream:
            out.put(line.rstrip("\r\n"))
    finally:
        stream.close()
        out.put(_EOF)


class RunningProcess:
    def __init__(self, proc: subprocess.Popen):
        self._proc = proc
        self._lines: "queue.Queue[object]" = queue.Queue()
        self._readers = [
            threading.Thread(target=_drain, args=(proc.stdout, self._lines), daemon=True),
            threading.Thread(target=_drain, args=(proc.stderr, self._lines), daemon=True),
        ]
        for t in self._readers:
            t.start()

    def lines(self) -> Iterator[str]:
        """Combined output stream; ends once both pipes are closed."""
        open_streams = len(self._readers)
        while open_streams:
            item = self._lines.get()
            if item is _EOF:
                open_streams -= 1
                continue
            yield item  # type: ignore[misc]

    def wait(self) -> int:
        rc = self._proc.wait()
        for t in self._readers:
            t.join()
        return rc


class ProcessRunner:
    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logging.getLogger("release-ally.process")

    def start(self, program: str, args: Sequence[str]) -> RunningProcess:
        argv: List[str] = [program] + list(args)
        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                universal_newlines=True,
                errors="replace",
            )
        except (OSError, ValueError) as e:
            raise LaunchError(f"unable to start {program}: {e}") from e
        return RunningProcess(proc)

    def run(self, program: str, args: Sequence[str]) -> RunResult:
        try:
            running = self.start(program, args)
        except LaunchError as e:
            self.log.error("command launch failed program=%s error=%s", program, e)
            return RunResult(Outcome.LAUNCH_ERROR, error=str(e))

        for line in running.lines():
            self.log.info("%s", line)

        rc = running.wait()
        if rc != 0:
            self.log.error("command failed program=%s exit=%s", program, rc)
            return RunResult(Outcome.FAILURE, returncode=rc, error=f"exit status {rc}")
        return RunResult(Outcome.SUCCESS, returncode=0)
