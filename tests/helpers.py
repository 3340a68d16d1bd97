"""Assertion helpers for the fake Slack client."""


def posted_texts(client):
    return [c.kwargs.get("text") for c in client.chat_postMessage.call_args_list]


def posted_channels(client):
    return [c.kwargs.get("channel") for c in client.chat_postMessage.call_args_list]


def updated_texts(client):
    return [c.kwargs.get("text") for c in client.chat_update.call_args_list]
