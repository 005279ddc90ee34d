"""
models.py

pydantic models for config entries and small dataclasses used by the hook runner.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from .errors import HookError
from .settings import CONFIG_FILE_NAME, HOOKS_DIR_NAME, IGNORES_DIR_NAME, REPOS_DIR_NAME


class OsType(str, Enum):
    ANY = "any"
    UNIX = "unix"
    MACOS = "macos"
    WINDOWS = "windows"


class BootstrapSettings(BaseModel):
    """
    [repos.<name>.bootstrap]: where to clone the repo from and which machines get it.
    """

    clone: str | None = Field(None, description="url to clone from")
    os: OsType | None = Field(None, description="only bootstrap on this os")
    users: list[str] | None = Field(None, description="only bootstrap for these user accounts")
    hosts: list[str] | None = Field(None, description="only bootstrap on these hosts")

    @field_validator("os", mode="before")
    @classmethod
    def _known_os(cls, v: object) -> object:
        # unknown names mean "any"
        if isinstance(v, str) and v not in {o.value for o in OsType}:
            return OsType.ANY
        return v

    @property
    def is_empty(self) -> bool:
        return self.clone is None and self.os is None and self.users is None and self.hosts is None


class RepoEntry(BaseModel):
    name: str = Field(..., min_length=1, description="repo name, also the toml key")
    target: str | None = Field(None, description="work-tree override; None = plain self-contained repo")
    branch: str | None = None
    remote: str | None = None
    workdir_home: bool = False
    bootstrap: BootstrapSettings | None = None

    @property
    def is_overlay(self) -> bool:
        return self.target is not None


class HookPhase(str, Enum):
    PRE = "pre"
    POST = "post"


class HookPolicy(str, Enum):
    ALWAYS = "always"
    NEVER = "never"
    PROMPT = "prompt"


class HookAction(BaseModel):
    phase: HookPhase
    script: str = Field(..., min_length=1, description="bare filename inside the hooks dir")
    workdir: str | None = Field(None, description="working directory, ~ and $VARS expanded at run time")

    @field_validator("script")
    @classmethod
    def _bare_filename(cls, v: str) -> str:
        if "/" in v or "\\" in v or v in (".", ".."):
            raise ValueError(f"hook script must be a bare filename: {v!r}")
        return v


class HookEntry(BaseModel):
    command: str = Field(..., min_length=1)
    actions: list[HookAction] = Field(default_factory=list)

    def for_phase(self, phase: HookPhase) -> list[HookAction]:
        return [a for a in self.actions if a.phase == phase]


@dataclass(frozen=True)
class ResolvedHook:
    phase: HookPhase
    script_path: Path
    workdir: str | None = None


class HookStatus(str, Enum):
    EXECUTED = "executed"
    SKIPPED = "skipped"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass
class HookOutcome:
    hook: ResolvedHook
    status: HookStatus
    exit_code: int | None = None
    output: str = ""
    error: HookError | None = None

    @property
    def ok(self) -> bool:
        if self.status == HookStatus.SKIPPED:
            return True
        return self.status == HookStatus.EXECUTED and self.exit_code == 0


@dataclass
class HookReport:
    pre: list[HookOutcome] = field(default_factory=list)
    post: list[HookOutcome] = field(default_factory=list)
    result: object = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return all(o.ok for o in self.pre + self.post)


@dataclass(frozen=True)
class DirLayout:
    config_dir: Path
    data_dir: Path

    @property
    def config_file(self) -> Path:
        return self.config_dir / CONFIG_FILE_NAME

    @property
    def hooks_dir(self) -> Path:
        return self.config_dir / HOOKS_DIR_NAME

    @property
    def ignores_dir(self) -> Path:
        return self.config_dir / IGNORES_DIR_NAME

    @property
    def repos_dir(self) -> Path:
        return self.data_dir / REPOS_DIR_NAME
