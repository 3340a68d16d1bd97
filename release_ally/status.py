# -*- coding: utf-8 -*-
"""
Status reporting back to Slack.

Every Slack call made from here is best effort: failures are logged and
swallowed so that a broken chat transport never decides whether a release
succeeded. A pending invocation is reported terminal exactly once; `track`
guarantees that on every exit path of the block it wraps.
"""

import enum
import logging
import shlex
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional

from slack_sdk import WebClient
from slack_sdk.errors import SlackClientError
from slack_sdk.webhook import WebhookClient


class Terminal(enum.Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class PendingInvocation:
    operation: str
    channel: str
    handle: Optional[str] = None
    argv: List[str] = field(default_factory=list)
    outcome: Optional[Terminal] = None
    reported: bool = False

    def succeed(self) -> None:
        self._settle(Terminal.SUCCESS)

    def fail(self) -> None:
        self._settle(Terminal.FAILURE)

    def _settle(self, outcome: Terminal) -> None:
        if self.outcome is None:
            self.outcome = outcome

    @property
    def succeeded(self) -> bool:
        return self.outcome is Terminal.SUCCESS


class StatusReporter:
    def __init__(self, client: WebClient, log: Optional[logging.Logger] = None,
                 webhook_factory: Callable[[str], WebhookClient] = WebhookClient):
        self.client = client
        self.log = log or logging.getLogger("release-ally.status")
        self._webhook_factory = webhook_factory

    # ---------------- Transport wrappers ----------------
    def post_message(self, channel: str, text: str = "",
                     blocks: Optional[List[Dict[str, Any]]] = None,
                     metadata: Optional[Dict[str, Any]] = None) -> Optional[str]:
        kwargs: Dict[str, Any] = {"channel": channel, "text": text}
        if blocks is not None:
            kwargs["blocks"] = blocks
        if metadata is not None:
            kwargs["metadata"] = metadata
        try:
            resp = self.client.chat_postMessage(**kwargs)
        except (SlackClientError, OSError) as e:
            self.log.error("unable to post message to slack channel channel=%s error=%s", channel, e)
            return None
        return resp.get("ts")

    def update_message(self, channel: str, ts: Optional[str], text: str) -> None:
        if not ts:
            self.log.error("unable to update message to slack channel channel=%s error=%s",
                           channel, "no message handle")
            return
        try:
            self.client.chat_update(channel=channel, ts=ts, text=text)
        except (SlackClientError, OSError) as e:
            self.log.error("unable to update message to slack channel channel=%s error=%s", channel, e)

    def notify(self, channel: str, text: str) -> None:
        self.post_message(channel, text=text)

    def replace_original(self, response_url: str, text: str = "",
                         blocks: Optional[List[Dict[str, Any]]] = None) -> None:
        if not response_url:
            self.log.error("unable to replace original message error=%s", "no response_url")
            return
        try:
            resp = self._webhook_factory(response_url).send(
                text=text, blocks=blocks, replace_original=True,
            )
        except (SlackClientError, OSError) as e:
            self.log.error("unable to replace original message error=%s", e)
            return
        if resp.status_code != 200:
            self.log.error("unable to replace original message status=%s body=%s",
                           resp.status_code, resp.body)

    # ---------------- Progress / terminal ----------------
    def report_progress(self, channel: str, text: str) -> Optional[str]:
        return self.post_message(channel, text=text)

    def report_terminal(self, pending: PendingInvocation, success_text: str, failure_text: str) -> None:
        if pending.reported:
            self.log.warning("terminal status already reported operation=%s", pending.operation)
            return
        pending.reported = True
        pending.fail()  # no-op when the invocation already succeeded

        text = success_text if pending.succeeded else failure_text
        self.log.info("invocation finished operation=%s outcome=%s command=%s",
                      pending.operation, pending.outcome.value, shlex.join(pending.argv))
        self.update_message(pending.channel, pending.handle, text)

    @contextmanager
    def track(self, operation: str, channel: str, progress_text: str,
              success_text: str, failure_text: str) -> Iterator[PendingInvocation]:
        pending = PendingInvocation(operation=operation, channel=channel)
        pending.handle = self.report_progress(channel, progress_text)
        try:
            yield pending
        finally:
            self.report_terminal(pending, success_text, failure_text)
