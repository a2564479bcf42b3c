from __future__ import annotations

import difflib
from pathlib import Path
from typing import List, Optional

from . import snapshot
from .frontmatter import read_document


def _prefixed(prefix: str, lines: List[str]) -> List[str]:
    return [prefix + (ln if ln.endswith("\n") else ln + "\n") for ln in lines]


def line_diff(previous: str, current: str) -> Optional[str]:
    """Whole-document diff with ' ', '-', '+' prefixes; None when identical."""
    old = previous.splitlines(keepends=True)
    new = current.splitlines(keepends=True)
    out: List[str] = []
    changed = False
    for tag, i1, i2, j1, j2 in difflib.SequenceMatcher(a=old, b=new, autojunk=False).get_opcodes():
        if tag == "equal":
            out.extend(_prefixed(" ", old[i1:i2]))
            continue
        changed = True
        out.extend(_prefixed("-", old[i1:i2]))
        out.extend(_prefixed("+", new[j1:j2]))
    return "".join(out) if changed else None


def compute(doc: Path, *, root: Optional[Path] = None) -> Optional[str]:
    """Diff between the last submitted snapshot and the document on disk."""
    current = read_document(doc)
    previous = snapshot.load(doc, root=root) or ""
    return line_diff(previous, current)
