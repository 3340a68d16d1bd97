# -*- coding: utf-8 -*-
"""
Release Ally Slack Bot (Socket Mode)

Startup order:
- load ally.toml (-c / RELEASE_ALLY_CONFIG)
- validate the environment (codefresh + gh on PATH, codefresh context, GH_TOKEN)
- connect to Slack (SLACK_BOT_TOKEN xoxb-, SLACK_APP_TOKEN xapp-)
- start the router

Any failure before the router starts is fatal. Once running, a single
event can fail without taking the bot down.

Set DEBUG=1 for debug logging (bolt and slack_sdk included).
"""

import argparse
import logging
import os
import sys
from typing import List, Optional, Tuple

from slack_bolt import App
from slack_bolt.adapter.socket_mode import SocketModeHandler
from slack_bolt.error import BoltError
from slack_sdk.errors import SlackClientError

from release_ally.config import DEFAULT_CONFIG_PATH, Config, load_config, validate_environment
from release_ally.context import AppContext
from release_ally.errors import StartupError
from release_ally.process import ProcessRunner
from release_ally.router import EventRouter
from release_ally.status import StatusReporter


LOGGER_NAME = "release-ally"


# ---------------- Logging ----------------
def debug() -> bool:
    return os.environ.get("DEBUG", "") != ""


def setup_logging() -> logging.Logger:
    logging.basicConfig(
        level=logging.DEBUG if debug() else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return logging.getLogger(LOGGER_NAME)


# ---------------- Slack ----------------
def read_slack_tokens() -> Tuple[str, str]:
    app_token = os.environ.get("SLACK_APP_TOKEN", "")
    if not app_token:
        raise StartupError("SLACK_APP_TOKEN must be set")
    if not app_token.startswith("xapp-"):
        raise StartupError('SLACK_APP_TOKEN must have the prefix "xapp-".')

    bot_token = os.environ.get("SLACK_BOT_TOKEN", "")
    if not bot_token:
        raise StartupError("SLACK_BOT_TOKEN must be set.")
    if not bot_token.startswith("xoxb-"):
        raise StartupError('SLACK_BOT_TOKEN must have the prefix "xoxb-".')

    return bot_token, app_token


def connect_to_slack(log: logging.Logger) -> Tuple[App, str]:
    bot_token, app_token = read_slack_tokens()
    try:
        # process_before_response: listeners finish (they only decode and
        # submit) before the envelope is acked, one envelope at a time.
        app = App(token=bot_token, process_before_response=True, logger=log.getChild("bolt"))
    except (BoltError, SlackClientError, OSError) as e:
        raise StartupError(f"unable to connect to slack: {e}") from e
    return app, app_token


# ---------------- Wiring ----------------
def build_context(config: Config, app: App, log: logging.Logger) -> AppContext:
    return AppContext(
        config=config,
        log=log,
        status=StatusReporter(app.client, log.getChild("status")),
        runner=ProcessRunner(log.getChild("process")),
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="release-ally", description="Release Ally Slack bot")
    parser.add_argument(
        "-c", "--config",
        default=os.environ.get("RELEASE_ALLY_CONFIG", DEFAULT_CONFIG_PATH),
        help="path to TOML config file (default: %(default)s)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    log = setup_logging()

    try:
        config = load_config(args.config, log)
        config = validate_environment(config, log)
        app, app_token = connect_to_slack(log)
    except StartupError as e:
        log.critical("%s", e)
        sys.exit(1)

    ctx = build_context(config, app, log)
    EventRouter(ctx).register(app)

    log.info("Starting release ally Slack bot...")
    log.info("SLASH_CMD=%s", config.slash_command)
    log.info("NOTIFY_CHANNEL=%s", config.notify_slack_channel)
    log.info("PROJECTS=%s", ", ".join(config.list_projects()))
    try:
        SocketModeHandler(app, app_token, concurrency=1).start()
    except (SlackClientError, OSError) as e:
        log.critical("unable to run release ally Slack app error=%s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
