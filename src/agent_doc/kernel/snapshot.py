"""Last-submitted copy of each document, under .agent-doc/snapshots/."""
from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Optional

from ..paths import state_dir
from ..util.fs import atomic_write_text

SNAPSHOT_DIR = "snapshots"


def path_for(doc: Path, *, root: Optional[Path] = None) -> Path:
    digest = hashlib.sha256(str(doc.resolve()).encode("utf-8")).hexdigest()
    return state_dir(root) / SNAPSHOT_DIR / f"{digest}.md"


def load(doc: Path, *, root: Optional[Path] = None) -> Optional[str]:
    p = path_for(doc, root=root)
    if not p.exists():
        return None
    return p.read_text(encoding="utf-8")


def save(doc: Path, content: str, *, root: Optional[Path] = None) -> None:
    atomic_write_text(path_for(doc, root=root), content)


def delete(doc: Path, *, root: Optional[Path] = None) -> bool:
    p = path_for(doc, root=root)
    if not p.exists():
        return False
    p.unlink()
    return True
