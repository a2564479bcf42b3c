from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from . import __version__
from .errors import AgentDocError, NotFoundError
from .kernel import document, git, prompt, routing, submit
from .kernel.diff import compute as compute_diff
from .kernel.frontmatter import read_document, resolve_session_id
from .kernel.layout import Split, arrange
from .kernel.registry import load_registry, prune_dead
from .kernel.settings import load_config
from .runners.tmux import Tmux
from .util.obslog import setup_cli_logging

logger = logging.getLogger("agent_doc")


def _print_json(obj: Any, *, compact: bool = False) -> None:
    if compact:
        print(json.dumps(obj, ensure_ascii=False))
    else:
        print(json.dumps(obj, ensure_ascii=False, indent=2))


def _tmux() -> Tmux:
    socket = os.environ.get("AGENT_DOC_TMUX_SOCKET", "").strip()
    return Tmux(socket=socket or None)


def cmd_run(args: argparse.Namespace) -> int:
    submit.run(
        Path(args.file),
        config=load_config(),
        branch=bool(args.branch),
        agent_name=args.agent,
        model=args.model,
        dry_run=bool(args.dry_run),
        no_git=bool(args.no_git),
    )
    return 0


def cmd_init(args: argparse.Namespace) -> int:
    config = load_config()
    document.init(Path(args.file), args.title, args.agent or config.default_agent)
    return 0


def cmd_diff(args: argparse.Namespace) -> int:
    the_diff = compute_diff(Path(args.file))
    if the_diff is None:
        logger.info("No changes since last submit.")
    else:
        print(the_diff, end="")
    return 0


def cmd_reset(args: argparse.Namespace) -> int:
    document.reset(Path(args.file))
    return 0


def cmd_clean(args: argparse.Namespace) -> int:
    file = Path(args.file)
    read_document(file)
    git.squash_session(file)
    return 0


def cmd_commit(args: argparse.Namespace) -> int:
    file = Path(args.file)
    read_document(file)
    git.commit(file)
    return 0


def cmd_start(args: argparse.Namespace) -> int:
    config = load_config()
    routing.start(Path(args.file), tmux=_tmux(), agent_command=config.agent_command)
    return 0


def cmd_route(args: argparse.Namespace) -> int:
    config = load_config()
    routing.route(Path(args.file), tmux=_tmux(), session_name=config.tmux_session)
    return 0


def cmd_prompt(args: argparse.Namespace) -> int:
    config = load_config()
    tmux = _tmux()
    if args.all:
        _print_json(prompt.poll_all(tmux, footer=config.prompt_footer), compact=True)
        return 0

    if not args.file:
        raise AgentDocError("FILE required when not using --all")
    file = Path(args.file)
    session_id = resolve_session_id(file)

    if args.answer is not None:
        pane_id = load_registry().lookup(session_id)
        if not pane_id:
            raise NotFoundError(f"no pane registered for {file}")
        prompt.answer_prompt(tmux, pane_id, int(args.answer), footer=config.prompt_footer)
        return 0

    pane_id = routing.live_pane(tmux, session_id)
    info = prompt.read_prompt(tmux, pane_id, footer=config.prompt_footer) if pane_id else prompt.inactive()
    _print_json(info.to_json_dict(), compact=True)
    return 0


def cmd_claim(args: argparse.Namespace) -> int:
    routing.claim(Path(args.file), tmux=_tmux(), position=args.position)
    return 0


def cmd_focus(args: argparse.Namespace) -> int:
    routing.focus_document(Path(args.file), tmux=_tmux())
    return 0


def cmd_layout(args: argparse.Namespace) -> int:
    arrange(
        [Path(f) for f in args.files],
        Split.parse(args.split),
        tmux=_tmux(),
        pane=args.pane,
        window=args.window,
    )
    return 0


def cmd_resync(_: argparse.Namespace) -> int:
    reg, dead = prune_dead(_tmux())
    if dead:
        logger.info("Removed %d stale session(s):", len(dead))
        for session_id, entry in dead:
            logger.info("  %s (pane %s dead)", entry.file or session_id, entry.pane)
    else:
        logger.info("All %d session(s) have live panes.", len(reg.entries))

    if reg.entries:
        logger.info("\nActive sessions:")
        for session_id, entry in reg.entries.items():
            logger.info("  %s -> pane %s", entry.file or session_id, entry.pane)
    return 0


def cmd_version(_: argparse.Namespace) -> int:
    print(__version__)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="agent-doc", description="Interactive document sessions with AI agents")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_run = sub.add_parser("run", help="Run a session: diff, send to agent, append response")
    p_run.add_argument("file", help="Path to the session document")
    p_run.add_argument("-b", dest="branch", action="store_true", help="Auto-create a branch for session commits")
    p_run.add_argument("--agent", default=None, help="Agent backend to use")
    p_run.add_argument("--model", default=None, help="Model override")
    p_run.add_argument("--dry-run", action="store_true", help="Preview what would be sent without submitting")
    p_run.add_argument("--no-git", action="store_true", help="Skip git commit after submit")
    p_run.set_defaults(func=cmd_run)

    p_init = sub.add_parser("init", help="Scaffold a new session document")
    p_init.add_argument("file", help="Path for the new session document")
    p_init.add_argument("title", nargs="?", default=None, help="Session title")
    p_init.add_argument("--agent", default=None, help="Agent backend to use")
    p_init.set_defaults(func=cmd_init)

    p_diff = sub.add_parser("diff", help="Preview the diff that would be sent")
    p_diff.add_argument("file", help="Path to the session document")
    p_diff.set_defaults(func=cmd_diff)

    p_reset = sub.add_parser("reset", help="Clear the agent conversation id and delete the snapshot")
    p_reset.add_argument("file", help="Path to the session document")
    p_reset.set_defaults(func=cmd_reset)

    p_clean = sub.add_parser("clean", help="Squash session git history into one commit")
    p_clean.add_argument("file", help="Path to the session document")
    p_clean.set_defaults(func=cmd_clean)

    p_commit = sub.add_parser("commit", help="Commit a session document (git add + commit with timestamp)")
    p_commit.add_argument("file", help="Path to the session document")
    p_commit.set_defaults(func=cmd_commit)

    p_start = sub.add_parser("start", help="Start the agent in this tmux pane and register the session")
    p_start.add_argument("file", help="Path to the session document")
    p_start.set_defaults(func=cmd_start)

    p_route = sub.add_parser("route", help="Route /agent-doc to the document's tmux pane (auto-start if needed)")
    p_route.add_argument("file", help="Path to the session document")
    p_route.set_defaults(func=cmd_route)

    p_prompt = sub.add_parser("prompt", help="Detect permission prompts in a session's pane")
    p_prompt.add_argument("file", nargs="?", default=None, help="Path to the session document (omit with --all)")
    p_prompt.add_argument("--answer", type=int, default=None, help="Answer the prompt by selecting option N (1-based)")
    p_prompt.add_argument("--all", action="store_true", help="Poll all registered sessions instead of one file")
    p_prompt.set_defaults(func=cmd_prompt)

    p_claim = sub.add_parser("claim", help="Claim a document for the current tmux pane")
    p_claim.add_argument("file", help="Path to the session document")
    p_claim.add_argument(
        "--position",
        choices=list(routing.POSITIONS),
        default=None,
        help="Claim the pane at this edge of the current window instead of the current pane",
    )
    p_claim.set_defaults(func=cmd_claim)

    p_focus = sub.add_parser("focus", help="Focus the tmux pane for a session document")
    p_focus.add_argument("file", help="Path to the session document")
    p_focus.set_defaults(func=cmd_focus)

    p_layout = sub.add_parser("layout", help="Arrange tmux panes to mirror the editor split layout")
    p_layout.add_argument("files", nargs="+", help="Session documents in visual order")
    p_layout.add_argument(
        "-s", "--split", default="h", help="h (side-by-side, default) or v (stacked)"
    )
    p_layout.add_argument("--pane", default=None, help="Only arrange panes in this pane's window")
    p_layout.add_argument("--window", default=None, help="Only arrange panes already in this window")
    p_layout.set_defaults(func=cmd_layout)

    p_resync = sub.add_parser("resync", help="Drop registry entries whose tmux panes are gone")
    p_resync.set_defaults(func=cmd_resync)

    p_ver = sub.add_parser("version", help="Show version")
    p_ver.set_defaults(func=cmd_version)

    return p


def main(argv: list[str] | None = None) -> int:
    setup_cli_logging(
        level=os.environ.get("AGENT_DOC_LOG_LEVEL", "INFO"),
        fmt=os.environ.get("AGENT_DOC_LOG_FORMAT", "text"),
    )
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return int(args.func(args))
    except AgentDocError as e:
        logger.error("error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
