"""
hooks.py

runs user hook scripts before/after a ricer command.

hooks live in <config>/hooks and are referenced by bare filename from config.toml.
with the default "prompt" policy each script is paged and the user has to accept it
before it runs. scripts run one at a time, in declared order, and a failing script
is recorded in the outcome list instead of stopping the remaining ones.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from .errors import (
    DocumentIOError,
    HookDeclinedError,
    HookExecutionError,
    HookScriptNotFoundError,
    SettingsError,
)
from .manager import ConfigManager
from .models import HookOutcome, HookPhase, HookPolicy, HookReport, HookStatus, ResolvedHook
from .settings import RUN_HOOK_ENV, hook_timeout_s, run_hook_policy
from .ui import confirm_script, page_script
from .utils_run import run_script

logger = logging.getLogger(__name__)

Pager = Callable[[Path, str], None]
Confirm = Callable[[Path, Path | None], bool]
Spawn = Callable[[Path, Path | None, int | None], tuple[int, str]]


def expand_workdir(workdir: str | None) -> Path | None:
    if not workdir:
        return None
    return Path(os.path.expandvars(os.path.expanduser(workdir)))


def _policy(value: HookPolicy | str, source: str) -> HookPolicy:
    try:
        return HookPolicy(value)
    except ValueError:
        choices = ", ".join(p.value for p in HookPolicy)
        raise SettingsError(source, str(value), f"expected one of {choices}") from None


class HookRunner:
    """
    policy and timeout_s default to $RICER_RUN_HOOK and $RICER_HOOK_TIMEOUT.
    the store behind manager is used to look scripts up and read them for paging,
    so a runner over a MemoryDocumentStore never touches the disk until spawn.
    """

    def __init__(
        self,
        manager: ConfigManager,
        *,
        pager: Pager = page_script,
        confirm: Confirm = confirm_script,
        spawn: Spawn = run_script,
        policy: HookPolicy | str | None = None,
        strict: bool = False,
        abort_on_failure: bool = False,
        timeout_s: int | None = None,
    ) -> None:
        self.manager = manager
        self.pager = pager
        self.confirm = confirm
        self.spawn = spawn
        if policy is None:
            self.policy = _policy(run_hook_policy(), RUN_HOOK_ENV)
        else:
            self.policy = _policy(policy, "policy")
        self.strict = strict
        self.abort_on_failure = abort_on_failure
        self.timeout_s = timeout_s if timeout_s is not None else hook_timeout_s()

    def run_phase(self, command: str, phase: HookPhase, cwd: Path | None = None) -> list[HookOutcome]:
        hooks = [h for h in self.manager.hooks_for(command) if h.phase == phase]
        if not hooks:
            logger.debug("no %s hooks for '%s'", phase.value, command)
            return []
        return [self._run_one(hook, cwd) for hook in hooks]

    def run_pre(self, command: str, cwd: Path | None = None) -> list[HookOutcome]:
        return self.run_phase(command, HookPhase.PRE, cwd)

    def run_post(self, command: str, cwd: Path | None = None) -> list[HookOutcome]:
        return self.run_phase(command, HookPhase.POST, cwd)

    def guard(
        self,
        command: str,
        action: Callable[[], Any],
        cwd: Path | None = None,
        *,
        run_post_on_failure: bool = True,
    ) -> HookReport:
        """
        Run pre hooks, the guarded command, then post hooks.

        Post hooks also run when the guarded command raises, unless run_post_on_failure is
        False. The exception is re-raised with the HookReport attached as its `report`
        attribute (report.error is the exception itself), so hook outcomes reach the caller
        either way.

        With abort_on_failure set on the runner, a failed pre hook stops here with
        HookExecutionError (also carrying `report`) and the guarded command is never called.
        """
        report = HookReport(pre=self.run_pre(command, cwd))

        if self.abort_on_failure:
            failed = next((o for o in report.pre if not o.ok), None)
            if failed is not None:
                err = HookExecutionError(
                    failed.hook.script_path,
                    f"pre hook did not succeed ({failed.status.value}), not running '{command}'",
                    exit_code=failed.exit_code,
                )
                report.error = err
                err.report = report
                raise err

        try:
            report.result = action()
        except Exception as e:
            report.error = e
            if run_post_on_failure:
                report.post = self.run_post(command, cwd)
                logger.info("ran %d post hook(s) for '%s' after it failed", len(report.post), command)
            e.report = report
            raise

        report.post = self.run_post(command, cwd)
        return report

    def _run_one(self, hook: ResolvedHook, cwd: Path | None) -> HookOutcome:
        path = hook.script_path
        store = self.manager.store
        if not store.exists(path):
            err = HookScriptNotFoundError(path)
            if self.strict:
                raise err
            logger.warning("%s", err)
            return HookOutcome(hook, HookStatus.NOT_FOUND, error=err)

        if self.policy == HookPolicy.NEVER:
            logger.info("skipping hook '%s' (policy: never)", path)
            return HookOutcome(hook, HookStatus.SKIPPED)

        workdir = expand_workdir(hook.workdir) or cwd

        if self.policy == HookPolicy.PROMPT:
            try:
                text = store.read_text(path)
            except DocumentIOError as e:
                err = HookExecutionError(path, f"cannot read script: {e}")
                logger.error("%s", err)
                return HookOutcome(hook, HookStatus.ERROR, error=err)

            self.pager(path, text)
            if not self.confirm(path, workdir):
                logger.info("hook '%s' declined", path)
                return HookOutcome(hook, HookStatus.SKIPPED, error=HookDeclinedError(path))

        try:
            code, out = self.spawn(path, workdir, self.timeout_s)
        except OSError as e:
            err = HookExecutionError(path, e.strerror or str(e))
            logger.error("%s", err)
            return HookOutcome(hook, HookStatus.ERROR, error=err)
        except Exception as e:
            # an injected spawn may raise anything, it is recorded like any other failure
            err = HookExecutionError(path, f"{type(e).__name__}: {e}")
            logger.exception("hook '%s' could not be run", path)
            return HookOutcome(hook, HookStatus.ERROR, error=err)

        logger.info("(%d) %s\n%s", code, path, out)
        outcome = HookOutcome(hook, HookStatus.EXECUTED, exit_code=code, output=out)
        if code != 0:
            outcome.error = HookExecutionError(path, f"exited with status {code}", exit_code=code)
        return outcome
