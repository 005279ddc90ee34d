from __future__ import annotations

from pathlib import Path
import pytest

from ricer.config_store import MemoryDocumentStore
from ricer.errors import (
    DocumentIOError,
    HookDeclinedError,
    HookExecutionError,
    HookScriptNotFoundError,
    SettingsError,
)
from ricer.hooks import HookRunner, expand_workdir
from ricer.locate import XdgLocator
from ricer.manager import ConfigManager
from ricer.models import HookPhase, HookPolicy, HookStatus

from conftest import write_script


CONFIG = """\
[hooks]
bootstrap = [
  { pre = "first.sh" },
  { pre = "missing.sh" },
  { pre = "second.sh" },
  { post = "post.sh" },
]
"""


class Recorder:
    def __init__(self, answers: list[bool] | None = None, exit_codes: dict[str, int] | None = None) -> None:
        self.answers = list(answers or [])
        self.exit_codes = exit_codes or {}
        self.paged: list[str] = []
        self.texts: list[str] = []
        self.asked: list[str] = []
        self.ran: list[tuple[str, Path | None]] = []

    def pager(self, path: Path, text: str) -> None:
        self.paged.append(path.name)
        self.texts.append(text)

    def confirm(self, path: Path, workdir: Path | None) -> bool:
        self.asked.append(path.name)
        return self.answers.pop(0) if self.answers else True

    def spawn(self, path: Path, cwd: Path | None, timeout_s: int | None) -> tuple[int, str]:
        self.ran.append((path.name, cwd))
        return self.exit_codes.get(path.name, 0), f"ran {path.name}\n"


@pytest.fixture()
def configured(manager: ConfigManager, locator: XdgLocator) -> ConfigManager:
    manager.bootstrap()
    locator.config_document_path().write_text(CONFIG, encoding="utf-8")
    for name in ("first.sh", "second.sh", "post.sh"):
        write_script(locator.hooks_dir_path(), name, "#!/bin/sh\nexit 0\n")
    return manager


def make_runner(manager: ConfigManager, rec: Recorder, **kw) -> HookRunner:
    return HookRunner(manager, pager=rec.pager, confirm=rec.confirm, spawn=rec.spawn, **kw)


def test_pre_phase_runs_in_order_and_missing_script_is_not_fatal(configured: ConfigManager, tmp_path: Path):
    rec = Recorder()
    runner = make_runner(configured, rec, policy=HookPolicy.ALWAYS)

    outcomes = runner.run_phase("bootstrap", HookPhase.PRE, cwd=tmp_path)

    assert [o.status for o in outcomes] == [HookStatus.EXECUTED, HookStatus.NOT_FOUND, HookStatus.EXECUTED]
    assert isinstance(outcomes[1].error, HookScriptNotFoundError)
    assert rec.ran == [("first.sh", tmp_path), ("second.sh", tmp_path)]
    assert rec.paged == []


def test_strict_mode_raises_on_missing_script(configured: ConfigManager):
    rec = Recorder()
    runner = make_runner(configured, rec, policy=HookPolicy.ALWAYS, strict=True)

    with pytest.raises(HookScriptNotFoundError):
        runner.run_pre("bootstrap")
    assert rec.ran == [("first.sh", None)]


def test_prompt_pages_then_asks_and_skips_declined(configured: ConfigManager):
    rec = Recorder(answers=[False, True])
    runner = make_runner(configured, rec, policy=HookPolicy.PROMPT)

    outcomes = runner.run_pre("bootstrap")

    assert rec.paged == ["first.sh", "second.sh"]
    assert rec.asked == ["first.sh", "second.sh"]
    assert [o.status for o in outcomes] == [HookStatus.SKIPPED, HookStatus.NOT_FOUND, HookStatus.EXECUTED]
    assert isinstance(outcomes[0].error, HookDeclinedError)
    assert rec.ran == [("second.sh", None)]


def test_never_policy_runs_nothing(configured: ConfigManager):
    rec = Recorder()
    runner = make_runner(configured, rec, policy="never")

    outcomes = runner.run_pre("bootstrap")
    assert [o.status for o in outcomes] == [HookStatus.SKIPPED, HookStatus.NOT_FOUND, HookStatus.SKIPPED]
    assert rec.ran == []


def test_non_zero_exit_is_recorded_and_sequence_continues(configured: ConfigManager):
    rec = Recorder(exit_codes={"first.sh": 3})
    runner = make_runner(configured, rec, policy=HookPolicy.ALWAYS)

    outcomes = runner.run_pre("bootstrap")

    assert outcomes[0].status == HookStatus.EXECUTED
    assert outcomes[0].exit_code == 3
    assert not outcomes[0].ok
    assert isinstance(outcomes[0].error, HookExecutionError)
    assert outcomes[2].ok
    assert [name for name, _ in rec.ran] == ["first.sh", "second.sh"]


def test_spawn_failure_is_execution_error(configured: ConfigManager):
    def broken_spawn(path, cwd, timeout_s):
        raise PermissionError(13, "Permission denied")

    runner = HookRunner(configured, pager=lambda p, t: None, confirm=lambda p, w: True, spawn=broken_spawn, policy="always")
    outcomes = runner.run_post("bootstrap")

    assert [o.status for o in outcomes] == [HookStatus.ERROR]
    assert isinstance(outcomes[0].error, HookExecutionError)


def test_unconfigured_command_has_no_hooks(configured: ConfigManager):
    rec = Recorder()
    runner = make_runner(configured, rec, policy=HookPolicy.ALWAYS)
    assert runner.run_pre("commit") == []
    assert runner.run_post("commit") == []


def test_guard_runs_pre_command_post(configured: ConfigManager):
    rec = Recorder()
    runner = make_runner(configured, rec, policy=HookPolicy.ALWAYS)
    calls: list[str] = []

    def command():
        calls.append("command")
        return "done"

    report = runner.guard("bootstrap", command)

    assert report.result == "done"
    assert [o.hook.script_path.name for o in report.pre] == ["first.sh", "missing.sh", "second.sh"]
    assert [o.hook.script_path.name for o in report.post] == ["post.sh"]
    assert calls == ["command"]
    assert not report.ok


def test_guard_runs_post_hooks_after_command_failure(configured: ConfigManager):
    rec = Recorder()
    runner = make_runner(configured, rec, policy=HookPolicy.ALWAYS)

    def command():
        raise DocumentIOError(Path("/x"), "boom")

    with pytest.raises(DocumentIOError):
        runner.guard("bootstrap", command)
    assert rec.ran[-1][0] == "post.sh"


def test_guard_can_skip_post_hooks_after_failure(configured: ConfigManager):
    rec = Recorder()
    runner = make_runner(configured, rec, policy=HookPolicy.ALWAYS)

    def command():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        runner.guard("bootstrap", command, run_post_on_failure=False)
    assert "post.sh" not in [name for name, _ in rec.ran]


def test_guard_abort_on_failure_skips_command(configured: ConfigManager):
    rec = Recorder()
    runner = make_runner(configured, rec, policy=HookPolicy.ALWAYS, abort_on_failure=True)
    calls: list[str] = []

    with pytest.raises(HookExecutionError):
        runner.guard("bootstrap", lambda: calls.append("command"))
    assert calls == []


def test_declined_hook_does_not_abort_guard(manager: ConfigManager, locator: XdgLocator):
    manager.bootstrap()
    locator.config_document_path().write_text('[hooks]\npush = [{ pre = "a.sh" }]\n', encoding="utf-8")
    write_script(locator.hooks_dir_path(), "a.sh", "#!/bin/sh\nexit 0\n")
    rec = Recorder(answers=[False])
    runner = make_runner(manager, rec, policy=HookPolicy.PROMPT, abort_on_failure=True)

    report = runner.guard("push", lambda: "pushed")
    assert report.result == "pushed"
    assert report.pre[0].status == HookStatus.SKIPPED


def test_workdir_overrides_cwd(manager: ConfigManager, locator: XdgLocator, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("HOOK_DIR", str(tmp_path))
    manager.bootstrap()
    locator.config_document_path().write_text(
        '[hooks]\npush = [{ pre = "a.sh", workdir = "$HOOK_DIR/sub" }]\n', encoding="utf-8"
    )
    write_script(locator.hooks_dir_path(), "a.sh", "#!/bin/sh\nexit 0\n")
    rec = Recorder()

    make_runner(manager, rec, policy=HookPolicy.ALWAYS).run_pre("push", cwd=Path("/ignored"))
    assert rec.ran == [("a.sh", tmp_path / "sub")]


def test_expand_workdir():
    assert expand_workdir(None) is None
    assert expand_workdir("") is None
    assert expand_workdir("~/x") == Path.home() / "x"


def test_scripts_really_run(manager: ConfigManager, locator: XdgLocator, tmp_path: Path):
    out = tmp_path / "out.txt"
    manager.bootstrap()
    locator.config_document_path().write_text(
        '[hooks]\nbootstrap = [{ pre = "pre_hook.sh" }, { post = "post_hook.sh" }]\n', encoding="utf-8"
    )
    write_script(locator.hooks_dir_path(), "pre_hook.sh", f'#!/bin/sh\necho "hello from pre hook" > "{out}"\n')
    post = write_script(locator.hooks_dir_path(), "post_hook.sh", f'echo "hello from post hook" >> "{out}"\nexit 2\n')
    post.chmod(0o644)

    runner = HookRunner(manager, policy=HookPolicy.ALWAYS)
    report = runner.guard("bootstrap", lambda: None, cwd=tmp_path)

    assert out.read_text(encoding="utf-8") == "hello from pre hook\nhello from post hook\n"
    assert report.pre[0].exit_code == 0
    assert report.post[0].exit_code == 2


def test_guard_attaches_report_to_command_failure(configured: ConfigManager):
    rec = Recorder(exit_codes={"post.sh": 5})
    runner = make_runner(configured, rec, policy=HookPolicy.ALWAYS)

    def command():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError) as exc:
        runner.guard("bootstrap", command)

    report = exc.value.report
    assert report.error is exc.value
    assert [o.status for o in report.pre] == [HookStatus.EXECUTED, HookStatus.NOT_FOUND, HookStatus.EXECUTED]
    assert report.post[0].exit_code == 5
    assert not report.ok


def test_guard_abort_error_carries_report(configured: ConfigManager):
    rec = Recorder()
    runner = make_runner(configured, rec, policy=HookPolicy.ALWAYS, abort_on_failure=True)

    with pytest.raises(HookExecutionError) as exc:
        runner.guard("bootstrap", lambda: None)

    assert exc.value.report.pre[1].status == HookStatus.NOT_FOUND
    assert exc.value.report.post == []


def test_raising_spawn_is_recorded_and_sequence_continues(configured: ConfigManager):
    ran: list[str] = []

    def spawn(path, cwd, timeout_s):
        ran.append(path.name)
        if path.name == "first.sh":
            raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")
        return 0, ""

    runner = HookRunner(configured, pager=lambda p, t: None, confirm=lambda p, w: True, spawn=spawn, policy="always")
    outcomes = runner.run_pre("bootstrap")

    assert [o.status for o in outcomes] == [HookStatus.ERROR, HookStatus.NOT_FOUND, HookStatus.EXECUTED]
    assert isinstance(outcomes[0].error, HookExecutionError)
    assert ran == ["first.sh", "second.sh"]


def test_binary_hook_output_does_not_stop_later_hooks(manager: ConfigManager, locator: XdgLocator):
    manager.bootstrap()
    locator.config_document_path().write_text(
        '[hooks]\npush = [{ pre = "bad.sh" }, { pre = "good.sh" }]\n', encoding="utf-8"
    )
    write_script(locator.hooks_dir_path(), "bad.sh", "#!/bin/sh\nprintf '\\377\\376'\n")
    write_script(locator.hooks_dir_path(), "good.sh", "#!/bin/sh\necho good\n")

    outcomes = HookRunner(manager, policy=HookPolicy.ALWAYS).run_pre("push")

    assert [o.status for o in outcomes] == [HookStatus.EXECUTED, HookStatus.EXECUTED]
    assert [o.exit_code for o in outcomes] == [0, 0]
    assert outcomes[1].output == "good\n"


def test_runner_over_memory_store(virtual_manager: ConfigManager, memory_store: MemoryDocumentStore):
    loc = virtual_manager.locator
    memory_store.files[loc.config_document_path()] = '[hooks]\npush = [{ pre = "a.sh" }, { pre = "gone.sh" }]\n'
    memory_store.files[loc.hook_script_path("a.sh")] = "#!/bin/sh\necho hi\n"
    rec = Recorder()

    outcomes = make_runner(virtual_manager, rec, policy=HookPolicy.PROMPT).run_pre("push")

    assert [o.status for o in outcomes] == [HookStatus.EXECUTED, HookStatus.NOT_FOUND]
    assert rec.paged == ["a.sh"]
    assert rec.texts == ["#!/bin/sh\necho hi\n"]
    assert rec.ran == [("a.sh", None)]


def test_bad_policy_is_settings_error(configured: ConfigManager, monkeypatch: pytest.MonkeyPatch):
    with pytest.raises(SettingsError):
        HookRunner(configured, policy="sometimes")

    monkeypatch.setenv("RICER_RUN_HOOK", "sometimes")
    with pytest.raises(SettingsError) as exc:
        HookRunner(configured)
    assert exc.value.name == "RICER_RUN_HOOK"


def test_policy_and_timeout_from_environment(configured: ConfigManager, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("RICER_RUN_HOOK", "never")
    monkeypatch.setenv("RICER_HOOK_TIMEOUT", "12")
    runner = HookRunner(configured)
    assert runner.policy == HookPolicy.NEVER
    assert runner.timeout_s == 12

    monkeypatch.setenv("RICER_HOOK_TIMEOUT", "later")
    with pytest.raises(SettingsError):
        HookRunner(configured)
