# -*- coding: utf-8 -*-
"""
@release_ally mentions.

    @release_ally sign_cli v0.55.0 https://g.codefresh.io/build/abc123
    @release_ally trigger_action:WORKFLOW_ID --repo [HOST/]OWNER/REPO

Codefresh pipelines can mention the bot through a slack-message-sender step,
which is why `user` may be empty.
"""

from typing import Any, Dict

from release_ally import flows
from release_ally.blocks import (
    SIGN_CLI_USAGE,
    TRIGGER_ACTION_USAGE,
    build_help_blocks,
    build_sign_cli_prompt,
    format_app_mention,
    sign_cli_metadata,
)
from release_ally.context import AppContext


# "<@BOT> sign_cli VERSION BUILD_LINK"
SIGN_CLI_TOKENS = 4


def handle_app_mention(ctx: AppContext, event: Dict[str, Any]) -> None:
    user = event.get("user") or ""
    channel = event.get("channel") or ""
    text = event.get("text") or ""

    ctx.status.notify(ctx.config.notify_slack_channel, format_app_mention(user, channel, text))

    if "sign_cli" in text:
        parts = text.split()
        if len(parts) != SIGN_CLI_TOKENS:
            ctx.status.notify(channel, SIGN_CLI_USAGE)
            return

        tag, pipeline = parts[2], parts[3]
        ctx.status.post_message(
            channel,
            text=f"Lacework CLI {tag} is ready to be signed",
            blocks=build_sign_cli_prompt(tag, pipeline),
            metadata=sign_cli_metadata(tag),
        )
        return

    if "trigger_action" in text:
        parts = text.split(":")
        if len(parts) != 2:
            ctx.status.notify(channel, TRIGGER_ACTION_USAGE)
            return

        ctx.submit("github workflow", flows.run_github_action, ctx, channel, parts[1])
        return

    ctx.status.post_message(channel, text="Hi there!", blocks=build_help_blocks())
