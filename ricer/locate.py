"""
locate.py

resolves where ricer keeps its config document, hook scripts, ignore files and repositories.

layout (defaults, xdg base directory style):
- $XDG_CONFIG_HOME/ricer/config.toml
- $XDG_CONFIG_HOME/ricer/hooks/<script>
- $XDG_CONFIG_HOME/ricer/ignores/<repo>.ignore
- $XDG_DATA_HOME/ricer/repos/<repo>.git

an explicit override (or $RICER_CONFIG_DIR) moves everything, data included, under one root.
path methods are pure joins; only ensure_config_dir_exists() touches the filesystem.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

from .errors import LocatorIOError, NoHomeError
from .models import DirLayout
from .settings import APP_NAME, CONFIG_DIR_ENV

logger = logging.getLogger(__name__)


def _home() -> Path:
    try:
        return Path.home()
    except (RuntimeError, KeyError) as e:
        raise NoHomeError() from e


def _env_dir(env: Mapping[str, str], key: str) -> Path | None:
    value = env.get(key, "").strip()
    # xdg says relative values are invalid and must be ignored
    if value and Path(value).is_absolute():
        return Path(value)
    return None


def _override_dir(override: str | os.PathLike[str] | None, env: Mapping[str, str]) -> Path | None:
    if override is not None:
        return Path(override).expanduser().absolute()
    value = env.get(CONFIG_DIR_ENV, "").strip()
    if value:
        return Path(value).expanduser().absolute()
    return None


def resolve_config_dir(
    override: str | os.PathLike[str] | None = None,
    env: Mapping[str, str] | None = None,
) -> Path:
    env = os.environ if env is None else env

    root = _override_dir(override, env)
    if root is not None:
        return root

    base = _env_dir(env, "XDG_CONFIG_HOME")
    if base is None:
        base = _home() / ".config"
    return base / APP_NAME


def resolve_data_dir(
    override: str | os.PathLike[str] | None = None,
    env: Mapping[str, str] | None = None,
) -> Path:
    env = os.environ if env is None else env

    root = _override_dir(override, env)
    if root is not None:
        return root

    base = _env_dir(env, "XDG_DATA_HOME")
    if base is None:
        base = _home() / ".local" / "share"
    return base / APP_NAME


def resolve_layout(
    override: str | os.PathLike[str] | None = None,
    env: Mapping[str, str] | None = None,
) -> DirLayout:
    layout = DirLayout(
        config_dir=resolve_config_dir(override, env),
        data_dir=resolve_data_dir(override, env),
    )
    logger.debug("config directory located at '%s'", layout.config_dir)
    logger.debug("data directory located at '%s'", layout.data_dir)
    return layout


class Locator(Protocol):
    layout: DirLayout

    def config_document_path(self) -> Path: ...

    def hooks_dir_path(self) -> Path: ...

    def hook_script_path(self, script: str) -> Path: ...

    def ignore_file_path(self, repo_name: str) -> Path: ...

    def repo_store_path(self, repo_name: str) -> Path: ...

    def ensure_config_dir_exists(self) -> None: ...


class _LayoutPaths:
    layout: DirLayout

    def config_document_path(self) -> Path:
        return self.layout.config_file

    def hooks_dir_path(self) -> Path:
        return self.layout.hooks_dir

    def hook_script_path(self, script: str) -> Path:
        return self.layout.hooks_dir / script

    def ignore_file_path(self, repo_name: str) -> Path:
        return self.layout.ignores_dir / f"{repo_name}.ignore"

    def repo_store_path(self, repo_name: str) -> Path:
        return self.layout.repos_dir / f"{repo_name}.git"

    def required_dirs(self) -> list[Path]:
        return [
            self.layout.config_dir,
            self.layout.hooks_dir,
            self.layout.ignores_dir,
            self.layout.repos_dir,
        ]


class XdgLocator(_LayoutPaths):
    """Locator backed by the real filesystem."""

    def __init__(self, layout: DirLayout) -> None:
        self.layout = layout

    @classmethod
    def from_env(
        cls,
        override: str | os.PathLike[str] | None = None,
        env: Mapping[str, str] | None = None,
    ) -> "XdgLocator":
        return cls(resolve_layout(override, env))

    def ensure_config_dir_exists(self) -> None:
        for d in self.required_dirs():
            if d.is_dir():
                continue
            logger.warning("creating directory '%s'", d)
            try:
                d.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise LocatorIOError(d, e.strerror or str(e)) from e


class VirtualLocator(_LayoutPaths):
    """
    Locator over a layout that never touches disk.
    directory creation is only recorded, so callers can be tested without real paths.
    """

    def __init__(self, layout: DirLayout | None = None) -> None:
        self.layout = layout or DirLayout(
            config_dir=Path("/virtual/config") / APP_NAME,
            data_dir=Path("/virtual/data") / APP_NAME,
        )
        self.created: set[Path] = set()

    def ensure_config_dir_exists(self) -> None:
        self.created.update(self.required_dirs())
