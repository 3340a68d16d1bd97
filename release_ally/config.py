# -*- coding: utf-8 -*-
"""
Release Ally configuration (TOML).

Example ally.toml:

    notify_slack_channel = "C011B98EA5U"
    codefresh_config = "/foo/bar/.cfconfig"

    [[project]]
    repository = "go-sdk"
    pipeline = "go-sdk/prepare-release"

    [[project]]
    repository = "terraform-aws-ecr"
    pipeline = "terraform-modules/prepare-release-for"
    variables = ["TF_MODULE=terraform-aws-ecr"]

The file is read once at startup; everything here is frozen afterwards.
Environment checks (CLIs on PATH, credentials) live here too because they
complete the config: a missing codefresh context is created on the fly.
"""

import logging
import os
import shutil
import subprocess
import tomllib
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from release_ally.errors import ConfigError, StartupError


DEFAULT_CONFIG_PATH = "ally.toml"
CODEFRESH_CONFIG_FILE = ".cfconfig"
DEFAULT_SLASH_COMMAND = "/release"

CODEFRESH_BIN = "codefresh"
GITHUB_BIN = "gh"


@dataclass(frozen=True)
class Project:
    repository: str
    pipeline: str
    variables: Tuple[str, ...] = ()

    program = CODEFRESH_BIN

    @property
    def args(self) -> Tuple[str, ...]:
        return ("run", self.pipeline)


@dataclass(frozen=True)
class Signing:
    workflow_id: str = "32728677"
    repository: str = "lacework-dev/lacework-cli-signing"


@dataclass(frozen=True)
class Config:
    notify_slack_channel: str
    codefresh_config: str = ""
    projects: Tuple[Project, ...] = ()
    signing: Signing = field(default_factory=Signing)
    slash_command: str = DEFAULT_SLASH_COMMAND

    def list_projects(self) -> List[str]:
        return [p.repository for p in self.projects]

    def find_project(self, repository: str) -> Optional[Project]:
        for p in self.projects:
            if p.repository == repository:
                return p
        return None


# ---------------- Loading ----------------
def _require_str(table: Dict[str, Any], key: str, where: str) -> str:
    value = table.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{where}: '{key}' must be a non-empty string")
    return value.strip()


def _parse_project(raw: Any, index: int) -> Project:
    where = f"project #{index + 1}"
    if not isinstance(raw, dict):
        raise ConfigError(f"{where}: expected a table")

    variables = raw.get("variables", [])
    if not isinstance(variables, list) or not all(isinstance(v, str) for v in variables):
        raise ConfigError(f"{where}: 'variables' must be a list of KEY=VALUE strings")

    return Project(
        repository=_require_str(raw, "repository", where),
        pipeline=_require_str(raw, "pipeline", where),
        variables=tuple(variables),
    )


def _parse_signing(raw: Any) -> Signing:
    if raw is None:
        return Signing()
    if not isinstance(raw, dict):
        raise ConfigError("signing: expected a table")
    defaults = Signing()
    return Signing(
        workflow_id=str(raw.get("workflow_id", defaults.workflow_id)),
        repository=str(raw.get("repository", defaults.repository)),
    )


def parse_config(data: Dict[str, Any]) -> Config:
    projects = data.get("project", [])
    if not isinstance(projects, list):
        raise ConfigError("'project' must be an array of tables ([[project]])")

    return Config(
        notify_slack_channel=_require_str(data, "notify_slack_channel", "config"),
        codefresh_config=str(data.get("codefresh_config", "") or ""),
        projects=tuple(_parse_project(p, i) for i, p in enumerate(projects)),
        signing=_parse_signing(data.get("signing")),
        slash_command=str(data.get("slash_command", DEFAULT_SLASH_COMMAND)).strip(),
    )


def load_config(path: str, log: logging.Logger) -> Config:
    log.info("loading config path=%s", path)
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"unable to decode config {path}: {e}") from e

    config = parse_config(data)
    for p in config.projects:
        log.debug("project loaded repository=%s pipeline=%s variables=%s",
                  p.repository, p.pipeline, list(p.variables))
    return config


# ---------------- Environment ----------------
def default_codefresh_config() -> str:
    return os.path.join(os.path.expanduser("~"), CODEFRESH_CONFIG_FILE)


def configure_codefresh_cli(cf_config: str, log: logging.Logger,
                            run: Callable[..., subprocess.CompletedProcess] = subprocess.run) -> None:
    api_key = os.environ.get("CODEFRESH_API_KEY", "")
    if not api_key:
        raise StartupError("CODEFRESH_API_KEY must be set")

    log.info("configuring the codefresh CLI")
    try:
        p = run(
            [CODEFRESH_BIN, "auth", "create-context", "--api-key", api_key, "--cfconfig", cf_config],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            universal_newlines=True,
        )
    except OSError as e:
        raise StartupError(f"unable to run codefresh auth: {e}") from e

    log.debug("command output cmd=%s output=%s", "codefresh auth create-context", p.stdout)
    if p.returncode != 0:
        stderr = (p.stderr or "").strip()
        raise StartupError(f"codefresh auth create-context failed (exit {p.returncode}): {stderr}")


def verify_codefresh_config(config: Config, log: logging.Logger,
                            run: Callable[..., subprocess.CompletedProcess] = subprocess.run) -> Config:
    """Returns the config with codefresh_config resolved to an existing file."""
    if not config.codefresh_config:
        config = replace(config, codefresh_config=default_codefresh_config())

    if os.path.isfile(config.codefresh_config):
        return config

    configure_codefresh_cli(config.codefresh_config, log, run=run)
    return config


def verify_github_cli_config() -> None:
    if not os.environ.get("GH_TOKEN"):
        raise StartupError("GH_TOKEN must be set")


def validate_environment(config: Config, log: logging.Logger,
                         which: Callable[[str], Optional[str]] = shutil.which,
                         run: Callable[..., subprocess.CompletedProcess] = subprocess.run) -> Config:
    for binary in (CODEFRESH_BIN, GITHUB_BIN):
        if not which(binary):
            raise StartupError(f"missing dependency bin={binary}")

    try:
        config = verify_codefresh_config(config, log, run=run)
    except StartupError as e:
        raise StartupError(f"unable to configure the Codefresh CLI: {e}") from e

    verify_github_cli_config()
    return config
