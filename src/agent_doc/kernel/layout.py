"""Arrange tmux panes to mirror an editor's split layout.

Documents are given in visual order (left-to-right or top-to-bottom); that
order is the only geometry this module knows about. Panes are gathered into
the window that already holds most of them, using join-pane/break-pane.
Panes that are not registered sessions (plain shells, tools) are never moved.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..errors import LayoutError, TmuxError
from ..runners.tmux import Tmux
from .frontmatter import resolve_session_id
from .registry import load_registry
from .routing import focus_document

logger = logging.getLogger(__name__)


class Split(str, Enum):
    HORIZONTAL = "h"
    VERTICAL = "v"

    @property
    def flag(self) -> str:
        return "-h" if self is Split.HORIZONTAL else "-v"

    @property
    def label(self) -> str:
        return "side-by-side" if self is Split.HORIZONTAL else "stacked"

    @classmethod
    def parse(cls, value: str) -> "Split":
        if (value or "").strip().lower() in ("v", "vertical"):
            return cls.VERTICAL
        return cls.HORIZONTAL


@dataclass
class LayoutResult:
    target_window: Optional[str] = None
    focused: Optional[str] = None
    joined: List[str] = field(default_factory=list)
    broken: List[str] = field(default_factory=list)


def _window_scope(tmux: Tmux, pane: Optional[str], window: Optional[str]) -> Optional[str]:
    if window:
        return window
    if pane and tmux.pane_alive(pane):
        return tmux.pane_window(pane)
    if pane:
        logger.warning("warning: pane %s is not alive, ignoring pane scope", pane)
    return None


def arrange(
    files: Sequence[Path],
    split: Split = Split.HORIZONTAL,
    *,
    tmux: Tmux,
    pane: Optional[str] = None,
    window: Optional[str] = None,
    root: Optional[Path] = None,
) -> LayoutResult:
    if not files:
        raise LayoutError("at least one file required")

    if len(files) == 1:
        return LayoutResult(focused=focus_document(files[0], tmux=tmux, root=root))

    reg = load_registry(root)
    resolved: List[Tuple[str, str]] = []  # (pane_id, file display)
    for file in files:
        session_id = resolve_session_id(file)
        pane_id = reg.lookup(session_id)
        if pane_id and tmux.pane_alive(pane_id):
            resolved.append((pane_id, str(file)))
        elif pane_id:
            logger.warning("warning: pane %s is dead for %s, skipping", pane_id, file)
        else:
            logger.warning("warning: no pane registered for %s, skipping", file)

    scope = _window_scope(tmux, pane, window)
    if scope:
        try:
            allowed = set(tmux.list_window_panes(scope))
        except TmuxError as e:
            logger.warning("warning: cannot list window %s: %s", scope, e)
            allowed = set()
        before = len(resolved)
        resolved = [(p, d) for p, d in resolved if p in allowed]
        if len(resolved) < before:
            logger.info("Filtered %d panes outside window %s", before - len(resolved), scope)

    if len(resolved) < 2:
        # Only the first document's pane may take focus; focusing some other
        # pane would be surprising when the first document is unclaimed.
        first = str(files[0])
        for pane_id, display in resolved:
            if display == first:
                tmux.select_pane(pane_id)
                return LayoutResult(focused=pane_id)
        return LayoutResult()

    seen: Set[str] = set()
    deduped: List[Tuple[str, str]] = []
    for pane_id, display in resolved:
        if pane_id not in seen:
            seen.add(pane_id)
            deduped.append((pane_id, display))
    resolved = deduped
    if len(resolved) < 2:
        raise LayoutError("all files share the same pane; nothing to arrange")

    wanted = {p for p, _ in resolved}
    window_of: Dict[str, str] = {}

    # Target window: most wanted panes, then most panes overall, so an
    # existing arrangement is kept and panes are swapped in and out of it.
    target_window = ""
    anchor = resolved[0][0]
    best_wanted = 0
    best_total = 0
    for pane_id, _ in resolved:
        win = tmux.pane_window(pane_id)
        window_of[pane_id] = win
        members = tmux.list_window_panes(win)
        wanted_count = sum(1 for p in members if p in wanted)
        total = len(members)
        if wanted_count > best_wanted or (wanted_count == best_wanted and total > best_total):
            best_wanted = wanted_count
            best_total = total
            target_window = win
            anchor = pane_id

    result = LayoutResult(target_window=target_window)

    session_panes = reg.session_panes()
    members = tmux.list_window_panes(target_window)
    remaining = len(members)
    for existing in members:
        if existing in wanted or existing not in session_panes or remaining <= 1:
            continue
        tmux.break_pane(existing)
        remaining -= 1
        result.broken.append(existing)
        logger.info("Broke out pane %s from window %s", existing, target_window)

    for pane_id, display in resolved:
        if window_of.get(pane_id) == target_window:
            continue
        tmux.join_pane(pane_id, anchor, split.flag)
        result.joined.append(pane_id)
        logger.info("Joined %s (pane %s) into window %s", display, pane_id, target_window)

    focus_pane = resolved[0][0]
    tmux.select_pane(focus_pane)
    result.focused = focus_pane
    logger.info("Layout: %d panes arranged %s", len(resolved), split.label)
    return result
