from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List, Optional, Set, Tuple

from agent_doc.errors import TmuxError
from agent_doc.runners.tmux import PaneGeometry


class FakeTmux:
    """In-memory stand-in for runners.tmux.Tmux.

    `windows` maps window id -> pane ids in order. Every mutating call is
    appended to `calls` so tests can assert on what would have been sent.
    """

    def __init__(self, windows: Optional[Dict[str, List[str]]] = None, sessions: Optional[Set[str]] = None):
        self.windows: Dict[str, List[str]] = {w: list(p) for w, p in (windows or {}).items()}
        self.sessions: Set[str] = set(sessions or ())
        self.captures: Dict[str, str] = {}
        self.geometry: Dict[str, List[PaneGeometry]] = {}
        self.current: Optional[str] = None
        self.fail_send: Set[str] = set()
        self.on_send: Optional[Callable[[str, str], None]] = None
        self.calls: List[Tuple[str, ...]] = []
        self._next = 100

    def _new_id(self, prefix: str) -> str:
        self._next += 1
        return f"{prefix}{self._next}"

    def _all_panes(self) -> List[str]:
        return [p for panes in self.windows.values() for p in panes]

    def kill(self, pane_id: str) -> None:
        for win, panes in list(self.windows.items()):
            if pane_id in panes:
                panes.remove(pane_id)
                if not panes:
                    del self.windows[win]

    def calls_named(self, name: str) -> List[Tuple[str, ...]]:
        return [c for c in self.calls if c[0] == name]

    # -- probes

    def pane_alive(self, pane_id: str) -> bool:
        return bool(pane_id) and pane_id in self._all_panes()

    def running(self) -> bool:
        return bool(self.sessions)

    def session_exists(self, name: str) -> bool:
        return name in self.sessions

    # -- creation

    def new_session(self, name: str, cwd: Path) -> str:
        self.sessions.add(name)
        pane = self._new_id("%")
        self.windows[self._new_id("@")] = [pane]
        self.calls.append(("new_session", name, pane))
        return pane

    def new_window(self, session: str, cwd: Path) -> str:
        pane = self._new_id("%")
        self.windows[self._new_id("@")] = [pane]
        self.calls.append(("new_window", session, pane))
        return pane

    def auto_start(self, session_name: str, cwd: Path) -> str:
        if not self.running() or not self.session_exists(session_name):
            return self.new_session(session_name, cwd)
        return self.new_window(session_name, cwd)

    # -- input

    def send_keys(self, pane_id: str, text: str) -> None:
        if pane_id in self.fail_send or not self.pane_alive(pane_id):
            raise TmuxError(["send-keys", "-t", pane_id], "can't find pane")
        if self.on_send is not None:
            self.on_send(pane_id, text)
        self.calls.append(("send_keys", pane_id, text))

    def send_key(self, pane_id: str, key: str) -> None:
        self.calls.append(("send_key", pane_id, key))

    # -- output

    def capture_pane(self, pane_id: str) -> str:
        if not self.pane_alive(pane_id):
            raise TmuxError(["capture-pane", "-t", pane_id], "can't find pane")
        return self.captures.get(pane_id, "")

    def display_message(self, pane_id: str, text: str, *, duration_ms: int = 3000) -> None:
        self.calls.append(("display_message", pane_id, text))

    # -- panes and windows

    def select_pane(self, pane_id: str) -> None:
        self.calls.append(("select_pane", pane_id))

    def current_pane(self) -> str:
        if not self.current:
            raise TmuxError(["display-message"], "no current client")
        return self.current

    def pane_window(self, pane_id: str) -> str:
        for win, panes in self.windows.items():
            if pane_id in panes:
                return win
        raise TmuxError(["display-message", "-t", pane_id], "can't find pane")

    def list_window_panes(self, window_id: str) -> List[str]:
        if window_id not in self.windows:
            raise TmuxError(["list-panes", "-t", window_id], "can't find window")
        return list(self.windows[window_id])

    def pane_geometry(self, window_id: str) -> List[PaneGeometry]:
        return list(self.geometry.get(window_id, []))

    def join_pane(self, src_pane: str, dst_pane: str, split_flag: str) -> None:
        dst_window = self.pane_window(dst_pane)
        self.kill(src_pane)
        panes = self.windows[dst_window]
        panes.insert(panes.index(dst_pane) + 1, src_pane)
        self.calls.append(("join_pane", src_pane, dst_pane, split_flag))

    def break_pane(self, pane_id: str) -> None:
        self.kill(pane_id)
        self.windows[self._new_id("@")] = [pane_id]
        self.calls.append(("break_pane", pane_id))
