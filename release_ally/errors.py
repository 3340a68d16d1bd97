# -*- coding: utf-8 -*-


class StartupError(Exception):
    """Anything that must stop the bot before it connects to Slack."""


class ConfigError(StartupError):
    pass


class PayloadError(ValueError):
    """An interactive payload we cannot make sense of."""
