"""Session registry: session id -> tmux pane, persisted in `.agent-doc/sessions.json`.

`load_registry()` / `Registry.save()` are plain read and atomic replace with
last-writer-wins. `register()` and `prune_dead()` re-read the file under an
advisory lock before writing, so concurrent registrations of different
sessions do not drop each other.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

from pydantic import ValidationError

from ..contracts.v1 import SessionEntry
from ..errors import RegistryError
from ..paths import state_dir
from ..runners.tmux import Tmux
from ..util.file_lock import locked
from ..util.fs import atomic_write_json, read_json
from ..util.time import utc_now_iso

logger = logging.getLogger(__name__)

SESSIONS_FILE = "sessions.json"
LOCK_FILE = "sessions.lock"


@dataclass
class Registry:
    path: Path
    entries: Dict[str, SessionEntry] = field(default_factory=dict)

    def lookup(self, session_id: str) -> Optional[str]:
        entry = self.entries.get(session_id)
        return entry.pane if entry is not None else None

    def session_panes(self) -> Set[str]:
        return {e.pane for e in self.entries.values() if e.pane}

    def save(self) -> None:
        atomic_write_json(self.path, {sid: e.model_dump() for sid, e in self.entries.items()})


def registry_path(root: Optional[Path] = None) -> Path:
    return state_dir(root) / SESSIONS_FILE


def _lock_path(root: Optional[Path]) -> Path:
    return state_dir(root) / LOCK_FILE


def load_registry(root: Optional[Path] = None) -> Registry:
    path = registry_path(root)
    try:
        doc = read_json(path)
    except (OSError, ValueError) as e:
        raise RegistryError(f"failed to read {path}: {e}") from e

    entries: Dict[str, SessionEntry] = {}
    for session_id, raw in doc.items():
        if not isinstance(raw, dict):
            raise RegistryError(f"malformed entry for session {session_id} in {path}")
        try:
            entries[str(session_id)] = SessionEntry.model_validate(raw)
        except ValidationError as e:
            raise RegistryError(f"malformed entry for session {session_id} in {path}: {e}") from e
    return Registry(path=path, entries=entries)


def register(session_id: str, pane_id: str, file: str = "", *, root: Optional[Path] = None) -> SessionEntry:
    """Bind `session_id` to `pane_id`, replacing any previous binding."""
    entry = SessionEntry(
        pane=pane_id,
        pid=os.getpid(),
        cwd=os.getcwd(),
        started=utc_now_iso(),
        file=file,
    )
    with locked(_lock_path(root)):
        reg = load_registry(root)
        reg.entries[session_id] = entry
        reg.save()
    logger.debug("registered %s -> %s", session_id, pane_id, extra={"session_id": session_id, "pane": pane_id})
    return entry


def lookup(session_id: str, *, root: Optional[Path] = None) -> Optional[str]:
    return load_registry(root).lookup(session_id)


def prune_dead(tmux: Tmux, *, root: Optional[Path] = None) -> Tuple[Registry, List[Tuple[str, SessionEntry]]]:
    """Drop every entry whose pane is no longer alive.

    This is the only place entries are removed. Returns the surviving registry
    and the removed (session_id, entry) pairs; the file is only rewritten when
    something was removed.
    """
    with locked(_lock_path(root)):
        reg = load_registry(root)
        dead: List[Tuple[str, SessionEntry]] = []
        for session_id, entry in list(reg.entries.items()):
            if not tmux.pane_alive(entry.pane):
                dead.append((session_id, entry))
                del reg.entries[session_id]
        if dead:
            reg.save()
    return reg, dead
