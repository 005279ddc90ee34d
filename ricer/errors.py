"""
errors.py

exception hierarchy for locating, reading/writing the config document, and running hooks.
every error keeps the path or entry name it is about so the cli can print something useful.
"""

from __future__ import annotations

from pathlib import Path


class RicerError(Exception):
    pass


class SettingsError(RicerError):
    def __init__(self, name: str, value: str, reason: str) -> None:
        self.name = name
        self.value = value
        super().__init__(f"invalid value {value!r} for {name}: {reason}")


# locator


class LocatorError(RicerError):
    pass


class NoHomeError(LocatorError):
    def __init__(self) -> None:
        super().__init__("cannot determine path to home directory")


class LocatorIOError(LocatorError):
    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"failed to create '{path}': {reason}")


# document


class DocumentError(RicerError):
    pass


class DocumentParseError(DocumentError):
    def __init__(self, path: Path | None, line: int, col: int, reason: str) -> None:
        self.path = path
        self.line = line
        self.col = col
        where = str(path) if path else "<document>"
        super().__init__(f"failed to parse '{where}' at line {line}, column {col}: {reason}")


class DocumentIOError(DocumentError):
    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"i/o error on '{path}': {reason}")


class DuplicateRepoError(DocumentError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"repository '{name}' already exists")


class RepoNotFoundError(DocumentError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"repository '{name}' not found")


class InvalidEntryError(DocumentError):
    def __init__(self, section: str, key: str, reason: str) -> None:
        self.section = section
        self.key = key
        super().__init__(f"invalid entry '{key}' in '{section}': {reason}")


class NotTableError(DocumentError):
    def __init__(self, section: str) -> None:
        self.section = section
        super().__init__(f"'{section}' is not defined as a table")


# hooks


class HookError(RicerError):
    pass


class HookScriptNotFoundError(HookError):
    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"hook script '{path}' does not exist")


class HookExecutionError(HookError):
    def __init__(self, path: Path, reason: str, exit_code: int | None = None) -> None:
        self.path = path
        self.exit_code = exit_code
        super().__init__(f"hook '{path}' failed: {reason}")


class HookDeclinedError(HookError):
    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"hook '{path}' declined by user")
