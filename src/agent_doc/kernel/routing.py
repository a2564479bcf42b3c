"""Bind documents to tmux panes and deliver `/agent-doc <file>` to them.

route() sends to a live registered pane, or falls through to the bootstrap
cascade: create a tmux session/window, register the new pane, and type
`agent-doc start <file>` into it. The agent needs time to boot, so the user
re-runs route() once it is ready.
"""
from __future__ import annotations

import logging
import os
import shlex
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, NoReturn, Optional, Sequence

from ..contracts.v1 import DEFAULT_TMUX_SESSION
from ..errors import AgentDocError, AutoStartDisabled, NotFoundError, TmuxError
from ..paths import state_dir
from ..runners.tmux import Tmux, in_tmux
from ..util.conv import env_flag
from ..util.fs import append_line
from .frontmatter import ensure_file_session, resolve_session_id, short_id
from .registry import load_registry, register

logger = logging.getLogger(__name__)

ROUTE_COMMAND = "/agent-doc"
NO_AUTOSTART_ENV = "AGENT_DOC_NO_AUTOSTART"
CLAIMS_LOG = "claims.log"
POSITIONS = ("left", "right", "top", "bottom")


@dataclass(frozen=True)
class RouteResult:
    pane_id: str
    # True when a new pane was created and the agent is still starting.
    started: bool = False


def agent_doc_executable() -> str:
    """Command line that re-invokes this tool inside a fresh pane."""
    argv0 = Path(sys.argv[0]) if sys.argv and sys.argv[0] else None
    if argv0 is not None and argv0.name == "agent-doc" and argv0.exists():
        return shlex.quote(str(argv0.resolve()))
    found = shutil.which("agent-doc")
    if found:
        return shlex.quote(found)
    return f"{shlex.quote(sys.executable)} -m agent_doc"


def start_command(file_path: str) -> str:
    return f"{agent_doc_executable()} start {shlex.quote(file_path)}"


def live_pane(tmux: Tmux, session_id: str, *, root: Optional[Path] = None) -> Optional[str]:
    pane_id = load_registry(root).lookup(session_id)
    if pane_id and tmux.pane_alive(pane_id):
        return pane_id
    return None


def route(
    file: Path,
    *,
    tmux: Tmux,
    session_name: str = DEFAULT_TMUX_SESSION,
    root: Optional[Path] = None,
) -> RouteResult:
    session_id = ensure_file_session(file)
    file_path = str(file)
    extra = {"session_id": session_id, "file": file_path}

    pane_id = load_registry(root).lookup(session_id)
    if pane_id and tmux.pane_alive(pane_id):
        try:
            tmux.send_keys(pane_id, f"{ROUTE_COMMAND} {file_path}")
        except TmuxError:
            # A failed send is evidence of a dead pane only if tmux agrees.
            if tmux.pane_alive(pane_id):
                raise
            logger.warning("Pane %s died while sending, auto-starting...", pane_id, extra=extra)
        else:
            logger.info("Sent %s %s -> pane %s", ROUTE_COMMAND, file_path, pane_id, extra=extra)
            return RouteResult(pane_id=pane_id)
    elif pane_id:
        logger.info("Pane %s is dead, auto-starting...", pane_id, extra=extra)
    else:
        logger.info("No pane registered for session %s, auto-starting...", short_id(session_id), extra=extra)

    if env_flag(NO_AUTOSTART_ENV):
        raise AutoStartDisabled(f"auto-start skipped ({NO_AUTOSTART_ENV} set)")
    new_pane = bootstrap(tmux, session_id, file_path, session_name=session_name, root=root)
    return RouteResult(pane_id=new_pane, started=True)


def bootstrap(
    tmux: Tmux,
    session_id: str,
    file_path: str,
    *,
    session_name: str = DEFAULT_TMUX_SESSION,
    root: Optional[Path] = None,
) -> str:
    new_pane = tmux.auto_start(session_name, Path.cwd())

    # Register before typing anything so a retry finds this pane.
    register(session_id, new_pane, file_path, root=root)
    tmux.send_keys(new_pane, start_command(file_path))

    extra = {"session_id": session_id, "pane": new_pane, "file": file_path}
    logger.info(
        "Started agent for %s in pane %s (session %s)", file_path, new_pane, short_id(session_id), extra=extra
    )
    logger.info("Wait for the agent to start, then run `agent-doc route %s` again to send the command.", file_path)
    return new_pane


def exec_agent(argv: Sequence[str]) -> NoReturn:
    """Replace this process with the agent; only returns by raising."""
    args: List[str] = [a for a in argv if a]
    if not args:
        raise AgentDocError("agent command is empty")
    try:
        os.execvp(args[0], args)
    except OSError as e:
        raise AgentDocError(f"failed to exec {args[0]}: {e}") from e
    raise AgentDocError(f"exec of {args[0]} returned")


def start(
    file: Path,
    *,
    tmux: Tmux,
    agent_command: Sequence[str] = ("claude",),
    root: Optional[Path] = None,
) -> NoReturn:
    session_id = ensure_file_session(file)
    if not in_tmux():
        raise AgentDocError("not running inside tmux; start a tmux session first")

    pane_id = tmux.current_pane()
    register(session_id, pane_id, str(file), root=root)
    logger.info("Registered session %s -> pane %s", short_id(session_id), pane_id)
    logger.info("Starting %s...", " ".join(agent_command))
    exec_agent(agent_command)


def pane_at_position(tmux: Tmux, position: str) -> str:
    """Pane at an edge of the current window: left, right, top or bottom."""
    pos = (position or "").strip().lower()
    if pos not in POSITIONS:
        raise AgentDocError(f"unknown position {position!r} (expected one of: {', '.join(POSITIONS)})")
    window = tmux.pane_window(tmux.current_pane())
    panes = tmux.pane_geometry(window)
    if not panes:
        raise NotFoundError(f"no panes found in window {window}")
    if pos == "left":
        pick = min(panes, key=lambda p: (p.left, p.top))
    elif pos == "right":
        pick = min(panes, key=lambda p: (-p.left, p.top))
    elif pos == "top":
        pick = min(panes, key=lambda p: (p.top, p.left))
    else:
        pick = min(panes, key=lambda p: (-p.top, p.left))
    return pick.pane_id


def claim(
    file: Path,
    *,
    tmux: Tmux,
    position: Optional[str] = None,
    root: Optional[Path] = None,
) -> str:
    session_id = ensure_file_session(file)
    pane_id = pane_at_position(tmux, position) if position else tmux.current_pane()
    file_str = str(file)
    register(session_id, pane_id, file_str, root=root)

    tmux.display_message(pane_id, f"Claimed {file_str} (pane {pane_id})")
    append_line(state_dir(root) / CLAIMS_LOG, f"Claimed {file_str} for pane {pane_id}")
    logger.info(
        "Claimed %s for pane %s (session %s)",
        file_str,
        pane_id,
        short_id(session_id),
        extra={"session_id": session_id, "pane": pane_id},
    )
    return pane_id


def focus_document(file: Path, *, tmux: Tmux, root: Optional[Path] = None) -> str:
    session_id = resolve_session_id(file)
    pane_id = load_registry(root).lookup(session_id)
    if not pane_id:
        raise NotFoundError(f"no pane registered for {file} (session {short_id(session_id)})")
    if not tmux.pane_alive(pane_id):
        raise NotFoundError(f"pane {pane_id} is dead for {file}")
    tmux.select_pane(pane_id)
    logger.info("Focused pane %s (%s)", pane_id, file)
    return pane_id
