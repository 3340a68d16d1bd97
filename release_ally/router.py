# -*- coding: utf-8 -*-
"""
Event router (bolt listeners).

Behavior:
- /release        -> notice to the notify channel, ack with the project selector.
- app_mention     -> ack, then the mention handler; errors are logged only.
- block_actions   -> ack right away, decode and start the flow on its own thread.
- shortcuts/views -> ack, log, tell the notify channel something odd arrived.
- other events    -> ack, log a warning.

Every listener acks exactly once and none of them raise, so one bad event
never stops the socket mode loop.
"""

import re
from typing import Any, Callable, Dict, Optional

from slack_bolt import App

from release_ally.actions import ActionDispatcher
from release_ally.blocks import build_release_selector
from release_ally.context import AppContext
from release_ally.errors import PayloadError
from release_ally.mentions import handle_app_mention


ANY = re.compile(".*")


class EventRouter:
    def __init__(self, ctx: AppContext, dispatcher: Optional[ActionDispatcher] = None):
        self.ctx = ctx
        self.log = ctx.log.getChild("router")
        self.dispatcher = dispatcher or ActionDispatcher(ctx)

    def register(self, app: App) -> None:
        app.command(self.ctx.config.slash_command)(self.on_slash_command)
        app.event("app_mention")(self.on_app_mention)
        app.block_action(ANY)(self.on_block_action)
        app.shortcut(ANY)(self.on_other_interaction)
        app.view(ANY)(self.on_other_interaction)
        # registered last: bolt runs the first listener that matches
        app.event(ANY)(self.on_unhandled_event)

    # ---------------- Slash commands ----------------
    def on_slash_command(self, ack: Callable[..., None], command: Dict[str, Any]) -> None:
        user_name = command.get("user_name", "")
        self.log.info("event received type=%s username=%s command=%s channel_name=%s",
                      "slash_commands", user_name, command.get("command"), command.get("channel_name"))

        self.ctx.status.notify(
            self.ctx.config.notify_slack_channel,
            f"User {user_name} is preparing a release via `{self.ctx.config.slash_command}`",
        )
        ack(**build_release_selector(self.ctx.config))

    # ---------------- Events API ----------------
    def on_app_mention(self, ack: Callable[..., None], event: Dict[str, Any]) -> None:
        ack()
        self.log.info("event received type=%s user=%s channel=%s text=%s",
                      "app_mention", event.get("user"), event.get("channel"), event.get("text"))
        try:
            handle_app_mention(self.ctx, event)
        except Exception as e:
            self.log.error("unable to handle EventsAPI event event=%s error=%s", event, e, exc_info=True)

    def on_unhandled_event(self, ack: Callable[..., None], body: Dict[str, Any]) -> None:
        ack()
        event = body.get("event") or {}
        self.log.warning("unexpected event type received type=%s raw=%s", event.get("type"), body)

    # ---------------- Interactive ----------------
    def on_block_action(self, ack: Callable[..., None], body: Dict[str, Any]) -> None:
        ack()
        self.log.info("event received type=%s response_url=%s channel_name=%s",
                      body.get("type"), body.get("response_url"), (body.get("channel") or {}).get("name"))
        try:
            self.dispatcher.dispatch(body)
        except PayloadError as e:
            self.log.error("unable to handle Interactive event error=%s raw=%s", e, body)
        except Exception as e:
            self.log.error("unable to handle Interactive event error=%s", e, exc_info=True)

    def on_other_interaction(self, ack: Callable[..., None], body: Dict[str, Any]) -> None:
        ack()
        kind = body.get("type", "unknown")
        self.log.warning("event ignored type=%s", kind)
        self.ctx.status.notify(
            self.ctx.config.notify_slack_channel,
            f"Some weird type just showed up: *{kind}*",
        )
