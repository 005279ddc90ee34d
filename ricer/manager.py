"""
manager.py

ConfigManager ties a Locator and a DocumentStore together.
it is the only place that decides what a missing config file means (an empty document).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .config_store import DocumentStore
from .document import ConfigDocument
from .locate import Locator
from .models import BootstrapSettings, RepoEntry, ResolvedHook

logger = logging.getLogger(__name__)


class ConfigManager:
    def __init__(self, locator: Locator, store: DocumentStore) -> None:
        self.locator = locator
        self.store = store

    def load(self) -> ConfigDocument:
        path = self.locator.config_document_path()
        if not self.store.exists(path):
            logger.debug("no config document at '%s', using empty document", path)
            return ConfigDocument.empty(path)
        return self.store.read(path)

    def _save(self, doc: ConfigDocument) -> None:
        self.locator.ensure_config_dir_exists()
        self.store.write(doc, self.locator.config_document_path())

    def bootstrap(self) -> None:
        self.locator.ensure_config_dir_exists()
        path = self.locator.config_document_path()
        if self.store.exists(path):
            logger.debug("config document already present at '%s'", path)
            return
        logger.info("writing empty config document to '%s'", path)
        self.store.write(ConfigDocument.empty(path), path)

    # repositories

    def get_repository(self, name: str) -> RepoEntry | None:
        return self.load().get_repo(name)

    def list_repositories(self) -> list[RepoEntry]:
        return self.load().repos()

    def add_repository(
        self,
        name: str,
        target: str | None = None,
        *,
        branch: str | None = None,
        remote: str | None = None,
        workdir_home: bool = False,
        bootstrap: BootstrapSettings | None = None,
    ) -> RepoEntry:
        entry = RepoEntry(
            name=name,
            target=target,
            branch=branch,
            remote=remote,
            workdir_home=workdir_home,
            bootstrap=bootstrap,
        )
        doc = self.load()
        doc.add_repo(entry)
        self._save(doc)
        return entry

    def update_repository(self, entry: RepoEntry) -> None:
        doc = self.load()
        doc.update_repo(entry)
        self._save(doc)

    def remove_repository(self, name: str) -> RepoEntry:
        doc = self.load()
        old = doc.remove_repo(name)
        self._save(doc)
        return old

    def rename_repository(self, old: str, new: str) -> None:
        doc = self.load()
        doc.rename_repo(old, new)
        self._save(doc)

    # hooks

    def hooks_for(self, command: str) -> list[ResolvedHook]:
        entry = self.load().get_hook(command)
        if entry is None:
            return []
        return [
            ResolvedHook(
                phase=a.phase,
                script_path=self.locator.hook_script_path(a.script),
                workdir=a.workdir,
            )
            for a in entry.actions
        ]

    # ignore files

    def write_ignore_file(self, repo_name: str, patterns: Iterable[str]) -> None:
        path = self.locator.ignore_file_path(repo_name)
        lines = [p.rstrip("\n") for p in patterns]
        text = "".join(f"{line}\n" for line in lines)
        logger.info("writing %d ignore pattern(s) to '%s'", len(lines), path)
        self.locator.ensure_config_dir_exists()
        self.store.write_text(path, text)

    def read_ignore_file(self, repo_name: str) -> list[str]:
        path = self.locator.ignore_file_path(repo_name)
        if not self.store.exists(path):
            return []
        return self.store.read_text(path).splitlines()
