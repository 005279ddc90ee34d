from __future__ import annotations

import os
from collections.abc import Mapping

from .errors import SettingsError


APP_NAME = "ricer"

CONFIG_DIR_ENV = "RICER_CONFIG_DIR"
HOOK_TIMEOUT_ENV = "RICER_HOOK_TIMEOUT"
RUN_HOOK_ENV = "RICER_RUN_HOOK"

CONFIG_FILE_NAME = "config.toml"
HOOKS_DIR_NAME = "hooks"
IGNORES_DIR_NAME = "ignores"
REPOS_DIR_NAME = "repos"

DEFAULT_HOOK_POLICY = "prompt"


def hook_timeout_s(env: Mapping[str, str] | None = None) -> int | None:
    # read when a runner is built, so a bad value never breaks importing the package
    env = os.environ if env is None else env
    raw = env.get(HOOK_TIMEOUT_ENV, "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        raise SettingsError(HOOK_TIMEOUT_ENV, raw, "expected a whole number of seconds") from None
    if value <= 0:
        raise SettingsError(HOOK_TIMEOUT_ENV, raw, "must be greater than zero")
    return value


def run_hook_policy(env: Mapping[str, str] | None = None) -> str:
    env = os.environ if env is None else env
    return env.get(RUN_HOOK_ENV, "").strip().lower() or DEFAULT_HOOK_POLICY
