# -*- coding: utf-8 -*-
"""Builds the codefresh / gh invocations the flows run."""

import shlex
from dataclasses import dataclass
from typing import List, Optional, Tuple

from release_ally.config import GITHUB_BIN, Config, Signing


WORKFLOW_RUN = ("workflow", "run")


@dataclass(frozen=True)
class Invocation:
    program: str
    args: Tuple[str, ...]

    @property
    def argv(self) -> List[str]:
        return [self.program] + list(self.args)

    def __str__(self) -> str:
        return shlex.join(self.argv)


def build_for(config: Config, name: str) -> Optional[Invocation]:
    """None means no project is configured under that name."""
    project = config.find_project(name)
    if project is None:
        return None

    args: List[str] = list(project.args) + ["--cfconfig", config.codefresh_config]
    for v in project.variables:
        args += ["-v", v]
    return Invocation(project.program, tuple(args))


def build_with_args(raw_args: str) -> Invocation:
    return Invocation(GITHUB_BIN, WORKFLOW_RUN + tuple(raw_args.split()))


def build_signing_workflow(signing: Signing, mfa_token: str, tag: str) -> Invocation:
    return Invocation(GITHUB_BIN, WORKFLOW_RUN + (
        signing.workflow_id,
        "-R", signing.repository,
        "--field", f"mfa_token={mfa_token}",
        "--field", f"branch_or_tag={tag}",
    ))
