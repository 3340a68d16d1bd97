# -*- coding: utf-8 -*-
"""Block Kit payloads and the plain-text notices the bot posts."""

from typing import Any, Dict, List

from release_ally.config import Config


# Release trigger (codefresh pipeline)
TRIGGER_PROJECT_BLOCK = "trigger_tech_ally_project"
SELECTED_PROJECT_ACTION = "selected_tech_ally_project"

# Signing approval (gh workflow)
SIGN_CLI_BLOCK = "sign_cli_via_gh_action"
MFA_TOKEN_ACTION = "mfa_token_for_gh_action"
MFA_TOKEN_LENGTH = 6
SIGN_CLI_METADATA_EVENT = "sign_cli_metadata"

SIGN_CLI_USAGE = (
    "I was expecting a message with the following format:\n\n"
    "> @release_ally sign_cli VERSION BUILD_LINK"
)
TRIGGER_ACTION_USAGE = (
    "I was expecting a message with the following format:\n\n"
    "> @release_ally trigger_action:WORKFLOW_ID --repo [HOST/]OWNER/REPO"
)


def mrkdwn_section(text: str) -> Dict[str, Any]:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def option_objects(options: List[str]) -> List[Dict[str, Any]]:
    return [
        {"text": {"type": "plain_text", "text": o}, "value": o}
        for o in options
    ]


def build_release_selector(config: Config) -> Dict[str, Any]:
    return {
        "blocks": [
            {
                "type": "section",
                "block_id": TRIGGER_PROJECT_BLOCK,
                "text": {"type": "mrkdwn", "text": ":waving: Select the project to release"},
                "accessory": {
                    "type": "static_select",
                    "action_id": SELECTED_PROJECT_ACTION,
                    "placeholder": {"type": "plain_text", "text": "tech-ally projects"},
                    "options": option_objects(config.list_projects()),
                },
            }
        ]
    }


def build_sign_cli_prompt(tag: str, pipeline: str) -> List[Dict[str, Any]]:
    header = mrkdwn_section(
        "*A new release of the Lacework CLI is ready to be signed.*\n\n"
        "Only authorized users with Okta Verify configured can approve this action."
    )

    details = mrkdwn_section(
        f"*:1234: Version:* {tag}"
        "\n*:win-as-a-team: Approver:* <!subteam^S01JP5A3ACQ|@allies>\n"
        f"\n*:codefresh: Triggered by pipeline:*\n{pipeline}\n"
        "\n*:gear: Approve to run Github Action:*\n"
        "https://github.com/lacework-dev/lacework-cli-signing/actions\n"
    )
    details["accessory"] = {
        "type": "image",
        "image_url": "https://upload.wikimedia.org/wikipedia/commons/c/c7/Windows_logo_-_2012.png",
        "alt_text": "windows logo",
    }

    token_input = {
        "type": "input",
        "block_id": SIGN_CLI_BLOCK,
        "label": {"type": "plain_text", "text": ":key: MFA Token", "emoji": True},
        "element": {
            "type": "plain_text_input",
            "action_id": MFA_TOKEN_ACTION,
            "multiline": False,
            "max_length": MFA_TOKEN_LENGTH,
        },
    }

    approve = {
        "type": "actions",
        "elements": [
            {
                "type": "button",
                "action_id": "click_me",
                "text": {"type": "plain_text", "text": "Approve"},
            }
        ],
    }

    return [header, details, token_input, approve]


def sign_cli_metadata(tag: str) -> Dict[str, Any]:
    return {"event_type": SIGN_CLI_METADATA_EVENT, "event_payload": {"tag": tag}}


def build_approved_prompt(original_blocks: List[Dict[str, Any]], user_name: str) -> List[Dict[str, Any]]:
    """Keeps the header and details of the signing prompt, drops the input and button."""
    approver = mrkdwn_section(f"\n:white_check_mark: *Approved by {user_name}*")
    return list(original_blocks[:2]) + [approver]


def build_help_blocks() -> List[Dict[str, Any]]:
    return [
        mrkdwn_section(
            ":waving: Hi there!\n\n"
            "There are three things I can help you with:\n\n"
            "*1. To trigger releases from the list of projects*\nType: `/release`\n\n"
            "*2. To sign the Lacework CLI artifacts*\nType: `@release_ally sign_cli VERSION BUILD_LINK`\n\n"
            "*3. To trigger Github Workflows*\nType: `@release_ally trigger_action:WORKFLOW_ID --repo [HOST/]OWNER/REPO`\n\n"
        )
    ]


def format_app_mention(user: str, channel: str, text: str) -> str:
    if user:
        msg = f"User <@{user}> is interacting with the release ally app! :woohoo:"
    else:
        msg = "Incoming webhook interacting with the release ally app! :woohoo:"

    msg = f"{msg}\n\n*Message:*\n> {text}"

    if channel:
        msg = f"{msg}\n\n*Channel:* <#{channel}>"
    return msg
