"""
ui.py

terminal capabilities used by the hook runner: page a script, ask yes/no.
"""

from __future__ import annotations

from pathlib import Path

import click


def page_script(path: Path, text: str) -> None:
    numbered = "\n".join(f"{i:>6}: {line}" for i, line in enumerate(text.splitlines(), start=1))
    click.echo_via_pager(f"hook: {path}\n\n{numbered}\n")


def confirm_script(path: Path, workdir: Path | None) -> bool:
    where = workdir if workdir is not None else Path.cwd()
    return click.confirm(f"Run '{path}' at '{where}'?", default=False)
