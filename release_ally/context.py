# -*- coding: utf-8 -*-
"""Everything a handler needs, built once at startup and passed down."""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable

from release_ally.config import Config
from release_ally.process import ProcessRunner
from release_ally.status import StatusReporter


@dataclass
class AppContext:
    config: Config
    log: logging.Logger
    status: StatusReporter
    runner: ProcessRunner

    def submit(self, name: str, fn: Callable[..., Any], *args: Any) -> threading.Thread:
        """Start fn on its own daemon thread; pipelines may run for hours, so nothing queues behind them."""
        t = threading.Thread(
            target=self.run_guarded,
            args=(name, fn) + args,
            name=f"flow-{name}",
            daemon=True,
        )
        t.start()
        self.log.debug("flow started name=%s thread=%s", name, t.name)
        return t

    def run_guarded(self, name: str, fn: Callable[..., Any], *args: Any) -> None:
        try:
            fn(*args)
        except Exception as e:
            self.log.error("unable to run %s error=%s", name, e, exc_info=True)
