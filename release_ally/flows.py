# -*- coding: utf-8 -*-
"""
Release flows. Each one runs on its own thread, owns its own pending
invocation and Slack message, and touches no state shared with other flows.

- release trigger   -> codefresh pipeline from the project table
- signing approval  -> gh workflow with MFA token and tag
- trigger_action    -> gh workflow with free-form args from a mention
"""

from typing import Any, Dict, List

from release_ally.blocks import build_approved_prompt
from release_ally.commands import Invocation, build_for, build_signing_workflow, build_with_args
from release_ally.context import AppContext
from release_ally.status import PendingInvocation


def _execute(ctx: AppContext, pending: PendingInvocation, invocation: Invocation) -> None:
    pending.argv = invocation.argv
    ctx.log.info("running command command=%s", invocation)
    result = ctx.runner.run(invocation.program, invocation.args)
    if result.ok:
        pending.succeed()
    else:
        pending.fail()


def run_release_pipeline(ctx: AppContext, channel: str, response_url: str, repo: str) -> bool:
    notify = ctx.config.notify_slack_channel

    ctx.status.notify(notify, f"A release has been triggered for the *{repo}* project. :megamix:")
    ctx.status.replace_original(response_url, text="Roger that! :rockon:")

    with ctx.status.track(
        repo,
        channel,
        progress_text=f":waiting: Triggering the release PR of the *{repo}* project :rocket:",
        success_text=f":white_check_mark: Triggered! (project: *{repo}*)",
        failure_text=f":x: Something went wrong while triggering the release! (project: *{repo}*)",
    ) as pending:
        invocation = build_for(ctx.config, repo)
        if invocation is None:
            ctx.log.error("no pipeline configured for project repository=%s", repo)
            return False
        _execute(ctx, pending, invocation)

    if pending.succeeded:
        ctx.status.post_message(channel, text=f"_:eyes: Look at <#{notify}> for the release PR._")
    return pending.succeeded


def run_signing_workflow(ctx: AppContext, channel: str, response_url: str, user_name: str,
                         prompt_blocks: List[Dict[str, Any]], mfa_token: str, tag: str) -> bool:
    ctx.status.notify(
        ctx.config.notify_slack_channel,
        f"User {user_name} approved signing of the *Lacework CLI {tag}* :chewbacca:",
    )

    # The prompt loses its token input and approve button; everyone sees who approved.
    ctx.status.replace_original(
        response_url,
        text=f"Approved by {user_name}",
        blocks=build_approved_prompt(prompt_blocks, user_name),
    )

    with ctx.status.track(
        f"sign_cli {tag}",
        channel,
        progress_text=f":waiting: Running Github Action to sign the *Lacework CLI {tag}* :rocket:",
        success_text="That was a success! :megamix:",
        failure_text=":x: Something went wrong while running the Github Action!",
    ) as pending:
        _execute(ctx, pending, build_signing_workflow(ctx.config.signing, mfa_token, tag))

    return pending.succeeded


def run_github_action(ctx: AppContext, channel: str, raw_args: str) -> bool:
    with ctx.status.track(
        f"workflow {raw_args.strip()}",
        channel,
        progress_text=f":waiting: Running Github Action with args: '{raw_args}' :rocket:",
        success_text=":white_check_mark: That was a success!",
        failure_text=":x: Something went wrong while running the Github Action!",
    ) as pending:
        _execute(ctx, pending, build_with_args(raw_args))

    return pending.succeeded
