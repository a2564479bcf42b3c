"""Stateless facade over tmux commands.

Every method is one or two `tmux` invocations. Probes (`pane_alive`,
`running`, `session_exists`) return booleans and never raise; everything
else raises TmuxError with tmux's stderr.
"""
from __future__ import annotations

import logging
import os
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from ..errors import TmuxError

logger = logging.getLogger(__name__)

# Pause between literal text and Enter so slow TUIs consume the text first.
SUBMIT_DELAY_S = 0.05


@dataclass(frozen=True)
class PaneGeometry:
    pane_id: str
    left: int
    top: int


@dataclass(frozen=True)
class Tmux:
    """Handle on a tmux server.

    `socket` selects an isolated server (`-L <socket> -f /dev/null`); the
    default targets the user's own server.
    """

    socket: Optional[str] = None
    timeout_s: float = 5.0

    def _base(self) -> List[str]:
        cmd = ["tmux"]
        if self.socket:
            cmd.extend(["-L", self.socket, "-f", "/dev/null"])
        return cmd

    def _run(self, args: List[str]) -> Tuple[int, str, str]:
        try:
            p = subprocess.run(
                [*self._base(), *args],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                timeout=self.timeout_s,
                check=False,
            )
            return int(p.returncode), (p.stdout or ""), (p.stderr or "")
        except subprocess.TimeoutExpired:
            return 124, "", "tmux timeout"
        except OSError as e:
            return 127, "", str(e)

    def _check(self, args: List[str]) -> str:
        code, out, err = self._run(args)
        if code != 0:
            raise TmuxError(args, err, code)
        return out

    # -- probes ---------------------------------------------------------------

    def pane_alive(self, pane_id: str) -> bool:
        pid = (pane_id or "").strip()
        if not pid:
            return False
        code, out, _ = self._run(["list-panes", "-a", "-F", "#{pane_id}"])
        if code != 0:
            return False
        return any(ln.strip() == pid for ln in out.splitlines())

    def running(self) -> bool:
        code, _, _ = self._run(["has-session"])
        return code == 0

    def session_exists(self, name: str) -> bool:
        code, _, _ = self._run(["has-session", "-t", name])
        return code == 0

    # -- creation -------------------------------------------------------------

    def new_session(self, name: str, cwd: Path) -> str:
        out = self._check(["new-session", "-d", "-s", name, "-c", str(cwd), "-P", "-F", "#{pane_id}"])
        return out.strip()

    def new_window(self, session: str, cwd: Path) -> str:
        out = self._check(["new-window", "-a", "-t", session, "-c", str(cwd), "-P", "-F", "#{pane_id}"])
        return out.strip()

    def auto_start(self, session_name: str, cwd: Path) -> str:
        """Create a fresh pane: a new session if missing, else a new window in it."""
        if not self.running() or not self.session_exists(session_name):
            logger.debug("creating tmux session %s", session_name)
            return self.new_session(session_name, cwd)
        logger.debug("adding window to tmux session %s", session_name)
        return self.new_window(session_name, cwd)

    # -- input ----------------------------------------------------------------

    def send_keys(self, pane_id: str, text: str) -> None:
        """Type `text` literally, then submit with a separate Enter."""
        self._check(["send-keys", "-t", pane_id, "-l", text])
        time.sleep(SUBMIT_DELAY_S)
        self._check(["send-keys", "-t", pane_id, "Enter"])

    def send_key(self, pane_id: str, key: str) -> None:
        self._check(["send-keys", "-t", pane_id, key])

    # -- output ---------------------------------------------------------------

    def capture_pane(self, pane_id: str) -> str:
        # -e keeps escape sequences; the prompt parser strips them itself.
        return self._check(["capture-pane", "-p", "-e", "-t", pane_id])

    def display_message(self, pane_id: str, text: str, *, duration_ms: int = 3000) -> None:
        code, _, err = self._run(["display-message", "-t", pane_id, "-d", str(duration_ms), text])
        if code != 0:
            logger.debug("display-message on %s failed: %s", pane_id, err.strip())

    # -- panes and windows ----------------------------------------------------

    def select_pane(self, pane_id: str) -> None:
        # select-pane alone does not bring the pane's window to the front.
        self._check(["select-window", "-t", pane_id])
        self._check(["select-pane", "-t", pane_id])

    def current_pane(self) -> str:
        env = os.environ.get("TMUX_PANE", "").strip()
        if env:
            return env
        out = self._check(["display-message", "-p", "#{pane_id}"]).strip()
        if not out:
            raise TmuxError(["display-message"], "tmux returned an empty pane id")
        return out

    def pane_window(self, pane_id: str) -> str:
        return self._check(["display-message", "-t", pane_id, "-p", "#{window_id}"]).strip()

    def list_window_panes(self, window_id: str) -> List[str]:
        out = self._check(["list-panes", "-t", window_id, "-F", "#{pane_id}"])
        return [ln.strip() for ln in out.splitlines() if ln.strip()]

    def pane_geometry(self, window_id: str) -> List[PaneGeometry]:
        out = self._check(["list-panes", "-t", window_id, "-F", "#{pane_id} #{pane_left} #{pane_top}"])
        panes: List[PaneGeometry] = []
        for ln in out.splitlines():
            parts = ln.strip().split()
            if len(parts) != 3:
                continue
            try:
                panes.append(PaneGeometry(parts[0], int(parts[1]), int(parts[2])))
            except ValueError:
                continue
        return panes

    def join_pane(self, src_pane: str, dst_pane: str, split_flag: str) -> None:
        """Move `src_pane` next to `dst_pane`; `-h` side by side, `-v` stacked."""
        self._check(["join-pane", "-s", src_pane, "-t", dst_pane, split_flag])

    def break_pane(self, pane_id: str) -> None:
        self._check(["break-pane", "-s", pane_id, "-d"])


def in_tmux() -> bool:
    return bool(os.environ.get("TMUX"))
