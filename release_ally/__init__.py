# -*- coding: utf-8 -*-
"""Release Ally: Slack release automation relay."""

__version__ = "0.1.0"
