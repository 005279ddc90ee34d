"""
document.py

format-preserving view over ricer's config.toml.

the parsed tomlkit tree is kept live and every accessor reads or mutates it in place,
so comments, whitespace and key order the user wrote survive a load/save cycle.

    [repos.vim]
    target = "~"

    [hooks]
    bootstrap = [
      { pre = "check.sh" },
      { post = "vim_plug.sh", workdir = "~/.vim" },
    ]
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any

import tomlkit
from pydantic import ValidationError
from tomlkit.exceptions import TOMLKitError
from tomlkit.items import AoT, Array, InlineTable, Item, SingleKey, Table
from tomlkit.toml_document import TOMLDocument

from .errors import (
    DocumentParseError,
    DuplicateRepoError,
    InvalidEntryError,
    NotTableError,
    RepoNotFoundError,
)
from .models import BootstrapSettings, HookAction, HookEntry, HookPhase, RepoEntry

logger = logging.getLogger(__name__)

REPOS = "repos"
HOOKS = "hooks"
BOOTSTRAP = "bootstrap"

_REPO_FIELDS = ("target", "branch", "remote", "workdir_home")
_BOOTSTRAP_FIELDS = ("clone", "os", "users", "hosts")


def _plain(item: Any) -> Any:
    return item.unwrap() if hasattr(item, "unwrap") else item


def _new_table(inline: bool) -> Table | InlineTable:
    return tomlkit.inline_table() if inline else tomlkit.table()


def _repo_values(entry: RepoEntry) -> dict[str, Any]:
    # unset fields and workdir_home = false are left out of the file
    values = {}
    for key in _REPO_FIELDS:
        value = getattr(entry, key)
        if value is not None and value is not False:
            values[key] = value
    return values


def _bootstrap_values(entry: RepoEntry) -> dict[str, Any]:
    if entry.bootstrap is None:
        return {}
    return entry.bootstrap.model_dump(mode="json", exclude_none=True)


def _repo_table(entry: RepoEntry, inline: bool) -> Table | InlineTable:
    table = _new_table(inline)
    for key, value in _repo_values(entry).items():
        table.add(key, value)

    boot = _bootstrap_values(entry)
    if boot:
        sub = _new_table(inline)
        for key, value in boot.items():
            sub.add(key, value)
        table.add(BOOTSTRAP, sub)
    return table


def _sync(table: MutableMapping, keys: tuple[str, ...], values: dict[str, Any]) -> None:
    """
    make table hold exactly values for the given keys, touching only keys whose value changed.
    """
    for key in keys:
        if key not in values:
            if key in table:
                del table[key]
        elif _plain(table.get(key)) != values[key]:
            table[key] = values[key]


def _swap_dict_key(d: dict, old: str, new: str) -> None:
    entries = list(dict.items(d))
    dict.clear(d)
    for k, v in entries:
        dict.__setitem__(d, new if k == old else k, v)


def _rekey(owner: Table | InlineTable, old: str, new: str) -> list[Item]:
    """
    Rename key old to new inside owner, keeping the entry's slot and formatting.

    tomlkit only offers delete + add, which moves the entry to the end of its table.
    Here the key is swapped in the container body instead. Returns the renamed items
    (one per body slot), empty when old is not a plain (non-dotted) key of owner.
    """
    body = owner.value
    key = next((k for k, _ in body.body if k is not None and k == old and not k.is_dotted()), None)
    if key is None:
        return []

    new_key = SingleKey(new, sep=key.sep)
    idx = body._map.pop(key)
    slots = idx if isinstance(idx, tuple) else (idx,)
    for i in slots:
        body._body[i] = (new_key, body._body[i][1])
    body._map[new_key] = idx
    body._table_keys = [new_key if k == key else k for k in body._table_keys]

    _swap_dict_key(body, old, new)
    if dict.__contains__(owner, old):
        _swap_dict_key(owner, old, new)
    return [body._body[i][1] for i in slots]


class ConfigDocument:
    def __init__(self, doc: TOMLDocument | None = None, path: Path | None = None) -> None:
        self._doc = doc if doc is not None else tomlkit.document()
        self.path = path

    @classmethod
    def parse(cls, text: str, path: Path | None = None) -> "ConfigDocument":
        try:
            doc = tomlkit.parse(text)
        except TOMLKitError as e:
            raise DocumentParseError(path, getattr(e, "line", 0), getattr(e, "col", 0), str(e)) from e
        return cls(doc, path)

    @classmethod
    def empty(cls, path: Path | None = None) -> "ConfigDocument":
        return cls(None, path)

    def dumps(self) -> str:
        return self._doc.as_string()

    def __str__(self) -> str:
        return self.dumps()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConfigDocument):
            return NotImplemented
        return self._doc.unwrap() == other._doc.unwrap()

    # sections

    def _section(self, key: str, create: bool = False, super_table: bool = False) -> MutableMapping | None:
        if key not in self._doc:
            if not create:
                return None
            logger.debug("creating toml table '%s'", key)
            self._doc.add(key, tomlkit.table(is_super_table=super_table or None))

        section = self._doc[key]
        if not isinstance(section, MutableMapping):
            raise NotTableError(key)
        return section

    # repos

    def _repo_from_item(self, name: str, item: Any) -> RepoEntry:
        data = _plain(item)
        if not isinstance(data, dict):
            raise InvalidEntryError(REPOS, name, "repository entry must be a table")
        fields = {k: data[k] for k in _REPO_FIELDS if k in data}

        boot = data.get(BOOTSTRAP)
        if boot is not None and not isinstance(boot, dict):
            raise InvalidEntryError(REPOS, name, "bootstrap settings must be a table")

        try:
            bootstrap = BootstrapSettings(**{k: boot[k] for k in _BOOTSTRAP_FIELDS if k in boot}) if boot else None
            if bootstrap is not None and bootstrap.is_empty:
                bootstrap = None
            return RepoEntry(name=name, bootstrap=bootstrap, **fields)
        except ValidationError as e:
            raise InvalidEntryError(REPOS, name, str(e)) from e

    def get_repo(self, name: str) -> RepoEntry | None:
        logger.debug("get repo '%s'", name)
        repos = self._section(REPOS)
        if repos is None or name not in repos:
            return None
        return self._repo_from_item(name, repos[name])

    def repos(self) -> list[RepoEntry]:
        repos = self._section(REPOS)
        if repos is None:
            return []
        return [self._repo_from_item(str(k), v) for k, v in repos.items()]

    def add_repo(self, entry: RepoEntry) -> None:
        repos = self._section(REPOS)
        if repos is not None and entry.name in repos:
            raise DuplicateRepoError(entry.name)

        repos = self._section(REPOS, create=True, super_table=True)
        # repos = { ... } can only hold inline tables
        inline = isinstance(repos, InlineTable)

        logger.info("add repo '%s'", entry.name)
        repos[entry.name] = _repo_table(entry, inline)

    def update_repo(self, entry: RepoEntry) -> None:
        repos = self._section(REPOS)
        if repos is None or entry.name not in repos:
            raise RepoNotFoundError(entry.name)

        item = repos[entry.name]
        if not isinstance(item, MutableMapping):
            raise InvalidEntryError(REPOS, entry.name, "repository entry must be a table")

        _sync(item, _REPO_FIELDS, _repo_values(entry))

        boot = _bootstrap_values(entry)
        current = item.get(BOOTSTRAP)
        if not boot:
            if current is not None:
                del item[BOOTSTRAP]
        elif isinstance(current, MutableMapping):
            _sync(current, _BOOTSTRAP_FIELDS, boot)
        else:
            if current is not None:
                del item[BOOTSTRAP]
            sub = _new_table(isinstance(item, InlineTable))
            for key, value in boot.items():
                sub.add(key, value)
            item[BOOTSTRAP] = sub
        logger.info("update repo '%s'", entry.name)

    def remove_repo(self, name: str) -> RepoEntry:
        repos = self._section(REPOS)
        if repos is None or name not in repos:
            raise RepoNotFoundError(name)

        old = self._repo_from_item(name, repos[name])
        logger.info("remove repo '%s'", name)
        del repos[name]
        return old

    def rename_repo(self, old: str, new: str) -> None:
        repos = self._section(REPOS)
        if repos is None or old not in repos:
            raise RepoNotFoundError(old)
        if old == new:
            return
        if new in repos:
            raise DuplicateRepoError(new)

        logger.info("rename repo '%s' -> '%s'", old, new)

        # out of order [repos.*] headers leave several "repos" tables in the document body
        owners = [
            item
            for key, item in self._doc.body
            if key is not None and key == REPOS and isinstance(item, (Table, InlineTable))
        ]
        renamed = [item for owner in owners for item in _rekey(owner, old, new)]

        if not renamed:
            # dotted keys (repos.vim.target = ...) cannot be swapped in place
            item = repos[old]
            del repos[old]
            repos[new] = item
            renamed = [item]

        # parsed tables remember their header text, force it to be rebuilt from the new key
        for item in renamed:
            if isinstance(item, Table):
                item.invalidate_display_name()

    # hooks

    def commands(self) -> list[str]:
        hooks = self._section(HOOKS)
        if hooks is None:
            return []
        return [str(k) for k in hooks.keys()]

    def get_hook(self, command: str) -> HookEntry | None:
        logger.debug("get hooks for '%s'", command)
        hooks = self._section(HOOKS)
        if hooks is None or command not in hooks:
            return None

        elements = _plain(hooks[command])
        if not isinstance(elements, list):
            raise InvalidEntryError(HOOKS, command, "hook definitions must be an array")

        actions: list[HookAction] = []
        try:
            for el in elements:
                if not isinstance(el, dict):
                    raise InvalidEntryError(HOOKS, command, "hook definition must be a table")
                # pre before post when one element carries both
                for phase in (HookPhase.PRE, HookPhase.POST):
                    script = el.get(phase.value)
                    if script is None:
                        continue
                    actions.append(HookAction(phase=phase, script=script, workdir=el.get("workdir")))
        except ValidationError as e:
            raise InvalidEntryError(HOOKS, command, str(e)) from e

        return HookEntry(command=command, actions=actions)

    def add_hook_action(self, command: str, action: HookAction) -> None:
        hooks = self._section(HOOKS, create=True)
        if command not in hooks:
            arr = tomlkit.array()
            arr.multiline(True)
            hooks[command] = arr

        defs = hooks[command]
        if isinstance(defs, AoT):
            el = tomlkit.table()
        elif isinstance(defs, Array):
            el = tomlkit.inline_table()
        else:
            raise InvalidEntryError(HOOKS, command, "hook definitions must be an array")

        el.add(action.phase.value, action.script)
        if action.workdir is not None:
            el.add("workdir", action.workdir)

        logger.info("add %s hook '%s' to '%s'", action.phase.value, action.script, command)
        defs.append(el)

