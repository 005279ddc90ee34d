"""
config_store.py

load/save the config document and other small text files (ignore files).

writes go to a temp file in the target directory and are os.replace()d into place,
so a failed write never leaves a half-written config behind.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from .document import ConfigDocument
from .errors import DocumentIOError

logger = logging.getLogger(__name__)


class DocumentStore(Protocol):
    def exists(self, path: Path) -> bool: ...

    def read(self, path: Path) -> ConfigDocument: ...

    def write(self, document: ConfigDocument, path: Path) -> None: ...

    def read_text(self, path: Path) -> str: ...

    def write_text(self, path: Path, text: str) -> None: ...


def _atomic_write(path: Path, text: str) -> None:
    tmp = tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        newline="",
        dir=str(path.parent),
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    )
    try:
        with tmp:
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp.name, path)
    except BaseException:
        try:
            os.unlink(tmp.name)
        except FileNotFoundError:
            pass
        raise


class FileDocumentStore:
    def exists(self, path: Path) -> bool:
        return path.is_file()

    def read_text(self, path: Path) -> str:
        try:
            with open(path, encoding="utf-8", newline="") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentIOError(path, str(e)) from e

    def write_text(self, path: Path, text: str) -> None:
        logger.debug("write '%s'", path)
        try:
            _atomic_write(path, text)
        except OSError as e:
            raise DocumentIOError(path, e.strerror or str(e)) from e

    def read(self, path: Path) -> ConfigDocument:
        logger.debug("load config document from '%s'", path)
        return ConfigDocument.parse(self.read_text(path), path)

    def write(self, document: ConfigDocument, path: Path) -> None:
        logger.debug("save config document to '%s'", path)
        self.write_text(path, document.dumps())
        document.path = path


class MemoryDocumentStore:
    """
    in-memory store keyed by path.
    set fail_writes to simulate a full disk: writes raise and leave stored text untouched.
    """

    def __init__(self, files: dict[Path, str] | None = None) -> None:
        self.files: dict[Path, str] = dict(files or {})
        self.fail_writes = False

    def exists(self, path: Path) -> bool:
        return path in self.files

    def read_text(self, path: Path) -> str:
        try:
            return self.files[path]
        except KeyError:
            raise DocumentIOError(path, "no such file") from None

    def write_text(self, path: Path, text: str) -> None:
        if self.fail_writes:
            raise DocumentIOError(path, "no space left on device")
        self.files[path] = text

    def read(self, path: Path) -> ConfigDocument:
        return ConfigDocument.parse(self.read_text(path), path)

    def write(self, document: ConfigDocument, path: Path) -> None:
        self.write_text(path, document.dumps())
        document.path = path
