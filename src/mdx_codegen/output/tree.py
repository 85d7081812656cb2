"""Run-scoped output directory helpers and structure report rendering."""

from __future__ import annotations

import shutil
import uuid
from datetime import datetime
from pathlib import Path


def new_run_id(now: datetime | None = None) -> str:
    """Timestamp plus a short random suffix so concurrent runs never collide."""
    stamp = (now or datetime.now()).strftime("%Y%m%d%H%M%S")
    return f"{stamp}-{uuid.uuid4().hex[:6]}"


def run_output_dir(base: Path, run_id: str) -> Path:
    return base.with_name(f"{base.name}_{run_id}")


def prepare_output_root(root: Path) -> Path:
    """Delete ``root`` if present and recreate it empty."""
    if root.is_symlink() or root.is_file():
        root.unlink()
    elif root.exists():
        shutil.rmtree(root)
    root.mkdir(parents=True)
    return root


def list_files(root: Path) -> list[str]:
    return sorted(path.relative_to(root).as_posix() for path in root.rglob("*") if path.is_file())


def render_tree(root: Path) -> str:
    """Render ``root`` as an indented tree, directories first."""
    lines = [f"{root.name}/"]

    def walk(directory: Path, prefix: str) -> None:
        entries = sorted(directory.iterdir(), key=lambda item: (not item.is_dir(), item.name))
        for position, entry in enumerate(entries):
            last = position == len(entries) - 1
            connector = "└── " if last else "├── "
            suffix = "/" if entry.is_dir() else ""
            lines.append(f"{prefix}{connector}{entry.name}{suffix}")
            if entry.is_dir():
                walk(entry, prefix + ("    " if last else "│   "))

    walk(root, "")
    return "\n".join(lines) + "\n"
