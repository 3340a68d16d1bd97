# -*- coding: utf-8 -*-
"""
Interactive (block_actions) payloads.

Slack reports the state of an interactive message as a mapping of
block_id -> action_id -> value. That mapping is decoded here, once, into a
small set of typed actions; the rest of the bot never reaches into the raw
payload. Each valid action starts its flow on a thread of its own so a slow release
never holds up the next Slack event.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from release_ally.blocks import (
    MFA_TOKEN_ACTION,
    MFA_TOKEN_LENGTH,
    SELECTED_PROJECT_ACTION,
    SIGN_CLI_BLOCK,
    TRIGGER_PROJECT_BLOCK,
)
from release_ally.context import AppContext
from release_ally.errors import PayloadError
from release_ally import flows


@dataclass(frozen=True)
class Origin:
    channel_id: str
    response_url: str
    user_name: str


@dataclass(frozen=True)
class ReleaseTrigger:
    origin: Origin
    target: str


@dataclass(frozen=True)
class WorkflowApproval:
    origin: Origin
    mfa_token: str
    tag: str
    prompt_blocks: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class UnknownBlock:
    origin: Origin
    block_id: str
    values: Dict[str, Any] = field(default_factory=dict)


Action = Union[ReleaseTrigger, WorkflowApproval, UnknownBlock]


# ---------------- Decoding ----------------
def _origin(body: Dict[str, Any]) -> Origin:
    user = body.get("user") or {}
    channel = body.get("channel") or {}
    return Origin(
        channel_id=channel.get("id", ""),
        response_url=body.get("response_url", ""),
        user_name=user.get("name") or user.get("username") or user.get("id", ""),
    )


def _selected_value(action: Dict[str, Any]) -> str:
    selected = action.get("selected_option") or {}
    return (selected.get("value") or "").strip()


def _metadata_tag(body: Dict[str, Any]) -> str:
    message = body.get("message") or {}
    payload = (message.get("metadata") or {}).get("event_payload") or {}
    tag = payload.get("tag")
    return tag.strip() if isinstance(tag, str) else ""


def decode_block_actions(body: Dict[str, Any]) -> List[Action]:
    state = body.get("state")
    if not isinstance(state, dict) or not isinstance(state.get("values"), dict):
        # without the state we can't tell what the user picked
        raise PayloadError("no block_actions state field")

    origin = _origin(body)
    decoded: List[Action] = []

    for block_id, values in state["values"].items():
        values = values or {}
        if block_id == TRIGGER_PROJECT_BLOCK:
            decoded.append(ReleaseTrigger(
                origin=origin,
                target=_selected_value(values.get(SELECTED_PROJECT_ACTION) or {}),
            ))
        elif block_id == SIGN_CLI_BLOCK:
            token_field = values.get(MFA_TOKEN_ACTION) or {}
            decoded.append(WorkflowApproval(
                origin=origin,
                mfa_token=(token_field.get("value") or "").strip(),
                tag=_metadata_tag(body),
                prompt_blocks=list((body.get("message") or {}).get("blocks") or []),
            ))
        else:
            decoded.append(UnknownBlock(origin=origin, block_id=block_id, values=values))

    return decoded


def validate(action: Action) -> Optional[str]:
    """Returns the reason an action can't run, or None."""
    if isinstance(action, ReleaseTrigger):
        if not action.target:
            return "no target selected"
    elif isinstance(action, WorkflowApproval):
        if not action.mfa_token:
            return "missing MFA token"
        if not (action.mfa_token.isascii() and action.mfa_token.isdigit()):
            return "MFA token must be numeric"
        if len(action.mfa_token) != MFA_TOKEN_LENGTH:
            return f"MFA token must be {MFA_TOKEN_LENGTH} digits"
        if not action.tag:
            return "missing 'tag' field in message metadata"
    return None


# ---------------- Dispatching ----------------
class ActionDispatcher:
    def __init__(self, ctx: AppContext):
        self.ctx = ctx
        self.log = ctx.log.getChild("actions")

    def dispatch(self, body: Dict[str, Any]) -> int:
        """Decodes and launches; returns how many flows were submitted."""
        launched = 0
        for action in decode_block_actions(body):
            if isinstance(action, UnknownBlock):
                self.log.error("unknown or not yet implemented interactive block_id block_id=%s raw=%s",
                               action.block_id, action.values)
                continue

            problem = validate(action)
            if problem:
                self.log.error("dropping interactive action reason=%s action=%s",
                               problem, type(action).__name__)
                continue

            self.launch(action)
            launched += 1
        return launched

    def launch(self, action: Action) -> None:
        origin = action.origin
        if isinstance(action, ReleaseTrigger):
            self.log.info("release requested repository=%s user=%s", action.target, origin.user_name)
            self.ctx.submit("codefresh pipeline", flows.run_release_pipeline,
                            self.ctx, origin.channel_id, origin.response_url, action.target)
        elif isinstance(action, WorkflowApproval):
            self.log.info("signing approved tag=%s user=%s", action.tag, origin.user_name)
            self.ctx.submit("github workflow", flows.run_signing_workflow,
                            self.ctx, origin.channel_id, origin.response_url, origin.user_name,
                            action.prompt_blocks, action.mfa_token, action.tag)
