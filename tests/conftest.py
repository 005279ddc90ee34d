from __future__ import annotations

from pathlib import Path
import pytest

from ricer.config_store import FileDocumentStore, MemoryDocumentStore
from ricer.locate import VirtualLocator, XdgLocator
from ricer.manager import ConfigManager
from ricer.models import DirLayout


@pytest.fixture(autouse=True)
def _clean_hook_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("RICER_RUN_HOOK", raising=False)
    monkeypatch.delenv("RICER_HOOK_TIMEOUT", raising=False)


@pytest.fixture()
def layout(tmp_path: Path) -> DirLayout:
    """
    config and data roots under tmp_path, nothing created yet.
    """
    return DirLayout(config_dir=tmp_path / "config" / "ricer", data_dir=tmp_path / "data" / "ricer")


@pytest.fixture()
def locator(layout: DirLayout) -> XdgLocator:
    return XdgLocator(layout)


@pytest.fixture()
def manager(locator: XdgLocator) -> ConfigManager:
    return ConfigManager(locator, FileDocumentStore())


@pytest.fixture()
def memory_store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture()
def virtual_manager(memory_store: MemoryDocumentStore) -> ConfigManager:
    return ConfigManager(VirtualLocator(), memory_store)


def write_script(hooks_dir: Path, name: str, body: str) -> Path:
    hooks_dir.mkdir(parents=True, exist_ok=True)
    p = hooks_dir / name
    p.write_text(body, encoding="utf-8")
    p.chmod(0o755)
    return p
