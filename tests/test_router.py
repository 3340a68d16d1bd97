"""Tests for EventRouter listeners: one ack per event, nothing ever raises."""

from unittest.mock import MagicMock, patch

import pytest
from slack_bolt import App, BoltRequest
from slack_bolt.authorization import AuthorizeResult

from release_ally.errors import PayloadError
from release_ally.router import EventRouter

from tests.helpers import posted_texts


def test_register_wires_listeners(ctx):
    app = MagicMock()

    EventRouter(ctx).register(app)

    app.command.assert_called_once_with("/release")
    event_types = [c.args[0] for c in app.event.call_args_list]
    assert event_types[0] == "app_mention"
    assert len(event_types) == 2
    app.block_action.assert_called_once()


def test_slash_command_acks_with_project_selector(ctx, slack_client):
    ack = MagicMock()
    command = {"command": "/release", "user_name": "jane", "channel_name": "releases", "text": ""}

    EventRouter(ctx).on_slash_command(ack, command)

    ack.assert_called_once()
    (section,) = ack.call_args.kwargs["blocks"]
    assert section["block_id"] == "trigger_tech_ally_project"
    options = [o["value"] for o in section["accessory"]["options"]]
    assert options == ["go-sdk", "terraform-gcp-config", "terraform-aws-ecr"]
    assert posted_texts(slack_client) == ["User jane is preparing a release via `/release`"]


def test_slash_command_acks_even_if_notice_fails(ctx, slack_client):
    slack_client.chat_postMessage.side_effect = OSError("network down")
    ack = MagicMock()

    EventRouter(ctx).on_slash_command(ack, {"user_name": "jane"})

    ack.assert_called_once()


def test_app_mention_errors_are_logged_not_raised(ctx):
    ack = MagicMock()

    with patch("release_ally.router.handle_app_mention", side_effect=RuntimeError("boom")):
        EventRouter(ctx).on_app_mention(ack, {"user": "U1", "channel": "C42", "text": "hi"})

    ack.assert_called_once_with()


def test_block_action_acks_before_dispatch(ctx):
    calls = []
    ack = MagicMock(side_effect=lambda *a, **k: calls.append("ack"))
    dispatcher = MagicMock()
    dispatcher.dispatch.side_effect = lambda body: calls.append("dispatch")

    EventRouter(ctx, dispatcher=dispatcher).on_block_action(ack, {"type": "block_actions"})

    assert calls == ["ack", "dispatch"]
    ack.assert_called_once_with()


def test_block_action_malformed_payload_is_logged(ctx):
    ack = MagicMock()
    dispatcher = MagicMock()
    dispatcher.dispatch.side_effect = PayloadError("no block_actions state field")

    EventRouter(ctx, dispatcher=dispatcher).on_block_action(ack, {"type": "block_actions"})

    ack.assert_called_once()


def test_block_action_without_state_runs_nothing(ctx, runner):
    ack = MagicMock()

    EventRouter(ctx).on_block_action(ack, {"type": "block_actions", "channel": {"id": "C42"}})

    ack.assert_called_once()
    runner.run.assert_not_called()


def test_unhandled_event_is_acked(ctx, slack_client):
    ack = MagicMock()

    EventRouter(ctx).on_unhandled_event(ack, {"event": {"type": "reaction_added"}})

    ack.assert_called_once_with()
    slack_client.chat_postMessage.assert_not_called()


def test_other_interaction_notifies(ctx, slack_client):
    ack = MagicMock()

    EventRouter(ctx).on_other_interaction(ack, {"type": "shortcut"})

    ack.assert_called_once_with()
    assert posted_texts(slack_client) == ["Some weird type just showed up: *shortcut*"]


# ---------------------------------------------------------------------------
# Dispatch through a real bolt App
# ---------------------------------------------------------------------------

def _authorize(**kwargs):
    return AuthorizeResult(
        enterprise_id=None,
        team_id="T1",
        bot_token="xoxb-test",
        bot_id="B1",
        bot_user_id="UBOT",
    )


@pytest.fixture
def bolt_app(ctx):
    app = App(
        signing_secret="secret",
        authorize=_authorize,
        process_before_response=True,
        request_verification_enabled=False,
    )
    EventRouter(ctx).register(app)
    return app


def _dispatch(app, body):
    return app.dispatch(BoltRequest(body=body, mode="socket_mode"))


def _event_body(event):
    return {
        "token": "verification-token",
        "team_id": "T1",
        "api_app_id": "A1",
        "type": "event_callback",
        "event_id": "Ev1",
        "event_time": 1700000000,
        "authorizations": [
            {"enterprise_id": None, "team_id": "T1", "user_id": "UBOT", "is_bot": True},
        ],
        "event": event,
    }


def _project_selected_body(target):
    selected = {"text": {"type": "plain_text", "text": target}, "value": target}
    return {
        "type": "block_actions",
        "team": {"id": "T1", "domain": "lacework"},
        "user": {"id": "U1", "username": "jane", "name": "jane", "team_id": "T1"},
        "api_app_id": "A1",
        "token": "verification-token",
        "trigger_id": "1.2.3",
        "channel": {"id": "C42", "name": "releases"},
        "response_url": "https://hooks.slack.com/actions/T1/1/x",
        "message": {"type": "message", "ts": "1700000000.000200", "blocks": []},
        "actions": [
            {
                "type": "static_select",
                "action_id": "selected_tech_ally_project",
                "block_id": "trigger_tech_ally_project",
                "selected_option": selected,
                "action_ts": "1700000001.000000",
            }
        ],
        "state": {
            "values": {
                "trigger_tech_ally_project": {
                    "selected_tech_ally_project": {"type": "static_select", "selected_option": selected},
                },
            },
        },
    }


def test_bolt_app_mention_posts_notice(bolt_app, slack_client, runner):
    resp = _dispatch(bolt_app, _event_body({
        "type": "app_mention",
        "user": "U1",
        "channel": "C42",
        "text": "<@UBOT> hello",
        "ts": "1700000000.000300",
        "event_ts": "1700000000.000300",
    }))

    assert resp.status == 200
    first = slack_client.chat_postMessage.call_args_list[0].kwargs
    assert first["channel"] == "C011B98EA5U"
    assert "interacting" in first["text"]
    runner.run.assert_not_called()


def test_bolt_block_action_runs_pipeline(bolt_app, runner, webhook):
    resp = _dispatch(bolt_app, _project_selected_body("go-sdk"))

    assert resp.status == 200
    runner.run.assert_called_once()
    program, args = runner.run.call_args[0]
    assert program == "codefresh"
    assert list(args)[:2] == ["run", "go-sdk/prepare-release"]
    webhook.send.assert_called()


def test_bolt_unhandled_event_is_acked(bolt_app, slack_client, runner):
    resp = _dispatch(bolt_app, _event_body({
        "type": "reaction_added",
        "user": "U1",
        "reaction": "eyes",
        "item": {"type": "message", "channel": "C42", "ts": "1700000000.000300"},
        "event_ts": "1700000000.000400",
    }))

    assert resp.status == 200
    slack_client.chat_postMessage.assert_not_called()
    runner.run.assert_not_called()


def test_bolt_shortcut_notifies(bolt_app, slack_client, runner):
    resp = _dispatch(bolt_app, {
        "type": "shortcut",
        "token": "verification-token",
        "action_ts": "1700000000.000500",
        "team": {"id": "T1", "domain": "lacework"},
        "user": {"id": "U1", "username": "jane", "team_id": "T1"},
        "callback_id": "release_shortcut",
        "trigger_id": "1.2.4",
    })

    assert resp.status == 200
    assert posted_texts(slack_client) == ["Some weird type just showed up: *shortcut*"]
    runner.run.assert_not_called()


def test_bolt_slash_command_acks_with_selector(bolt_app, slack_client, runner):
    resp = _dispatch(bolt_app, {
        "token": "verification-token",
        "team_id": "T1",
        "channel_id": "C42",
        "channel_name": "releases",
        "user_id": "U1",
        "user_name": "jane",
        "command": "/release",
        "text": "",
        "api_app_id": "A1",
        "response_url": "https://hooks.slack.com/commands/T1/1/x",
        "trigger_id": "1.2.5",
    })

    assert resp.status == 200
    assert "trigger_tech_ally_project" in resp.body
    assert posted_texts(slack_client) == ["User jane is preparing a release via `/release`"]
    runner.run.assert_not_called()
