"""Shared fixtures: a config, an inline-running context and fake Slack."""

import logging
from unittest.mock import MagicMock

import pytest

from release_ally.config import Config, Project
from release_ally.context import AppContext
from release_ally.process import Outcome, RunResult
from release_ally.status import StatusReporter


NOTIFY_CHANNEL = "C011B98EA5U"
CF_CONFIG = "/foo/bar/.cfconfig"


class InlineContext(AppContext):
    """Runs submitted flows on the calling thread so tests can assert on the outcome."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.submitted = []

    def submit(self, name, fn, *args):
        self.submitted.append((name, fn, args))
        self.run_guarded(name, fn, *args)


@pytest.fixture
def config():
    return Config(
        notify_slack_channel=NOTIFY_CHANNEL,
        codefresh_config=CF_CONFIG,
        projects=(
            Project("go-sdk", "go-sdk/prepare-release"),
            Project("terraform-gcp-config", "terraform-modules/prepare-release-for",
                    ("TF_MODULE=terraform-gcp-config",)),
            Project("terraform-aws-ecr", "terraform-modules/prepare-release-for",
                    ("TF_MODULE=terraform-aws-ecr", "DRY_RUN=false")),
        ),
    )


@pytest.fixture
def slack_client():
    client = MagicMock()
    client.chat_postMessage.return_value = {"ok": True, "ts": "1700000000.000100"}
    client.chat_update.return_value = {"ok": True}
    return client


@pytest.fixture
def webhook():
    hook = MagicMock()
    hook.send.return_value = MagicMock(status_code=200, body="ok")
    return hook


@pytest.fixture
def runner():
    r = MagicMock()
    r.run.return_value = RunResult(Outcome.SUCCESS, returncode=0)
    return r


@pytest.fixture
def ctx(config, slack_client, webhook, runner):
    log = logging.getLogger("release-ally.test")
    return InlineContext(
        config=config,
        log=log,
        status=StatusReporter(slack_client, log, webhook_factory=lambda url: webhook),
        runner=runner,
    )
