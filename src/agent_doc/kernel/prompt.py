"""Detect and answer interactive permission prompts in an agent's tmux pane.

A prompt is recognised by screen-scraping `capture-pane` output, e.g.:

     Do you want to proceed?
       1. Yes
     ❯ 2. Yes, and don't ask again for: tmux capture-pane:*
       3. No

     Esc to cancel · ctrl+e to explain

Parsing is two passes: strip escape sequences, then classify lines upward
from the footer marker. Nothing is cached; every call re-reads the pane.
"""
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..contracts.v1 import DEFAULT_PROMPT_FOOTER, PromptInfo, PromptOption
from ..errors import NotFoundError, PromptError, TmuxError
from ..runners.tmux import Tmux
from .registry import load_registry

logger = logging.getLogger(__name__)

ESC = "\x1b"
CURSOR_MARKERS = ("❯", ">")

NAV_DELAY_S = 0.03
CONFIRM_DELAY_S = 0.05


def strip_ansi(text: str) -> str:
    """Remove terminal escape sequences.

    ESC '[' ... starts a CSI sequence that runs up to and including the first
    ASCII letter. ESC followed by any other character is a two-character
    escape. Everything else passes through.
    """
    out: List[str] = []
    i = 0
    n = len(text)
    while i < n:
        c = text[i]
        if c != ESC:
            out.append(c)
            i += 1
            continue
        i += 1
        if i >= n:
            break
        if text[i] == "[":
            i += 1
            while i < n and not (text[i].isascii() and text[i].isalpha()):
                i += 1
            i += 1
        else:
            i += 1
    return "".join(out)


def _is_selected(line: str) -> bool:
    return line.startswith(CURSOR_MARKERS)


def parse_option_line(line: str) -> Optional[PromptOption]:
    """Parse `[❯|>] N. label`; N must be a positive integer and label non-empty."""
    s = line.strip()
    for marker in CURSOR_MARKERS:
        s = s.lstrip(marker)
    s = s.strip()

    num, dot, rest = s.partition(".")
    if not dot or not num or not (num.isascii() and num.isdigit()):
        return None
    index = int(num)
    if index <= 0:
        return None
    label = rest.strip()
    if not label:
        return None
    return PromptOption(index=index, label=label)


def inactive() -> PromptInfo:
    return PromptInfo(active=False)


def parse_prompt(content: str, *, footer: str = DEFAULT_PROMPT_FOOTER) -> PromptInfo:
    lines = [strip_ansi(ln) for ln in content.splitlines()]

    footer_idx = None
    for i in range(len(lines) - 1, -1, -1):
        if footer in lines[i]:
            footer_idx = i
            break
    if footer_idx is None:
        return inactive()

    options: List[PromptOption] = []
    selected: Optional[int] = None
    question: Optional[str] = None

    for i in range(footer_idx - 1, -1, -1):
        trimmed = lines[i].strip()
        if not trimmed:
            continue
        opt = parse_option_line(trimmed)
        if opt is not None:
            if _is_selected(trimmed):
                selected = opt.index - 1
            options.append(opt)
        elif options:
            question = trimmed
            break

    if not options:
        return inactive()

    # Collected bottom-up; the menu reads top-down.
    options.reverse()
    return PromptInfo(active=True, question=question, options=options, selected=selected)


def read_prompt(tmux: Tmux, pane_id: str, *, footer: str = DEFAULT_PROMPT_FOOTER) -> PromptInfo:
    if not tmux.pane_alive(pane_id):
        return inactive()
    return parse_prompt(tmux.capture_pane(pane_id), footer=footer)


def answer_prompt(tmux: Tmux, pane_id: str, option: int, *, footer: str = DEFAULT_PROMPT_FOOTER) -> PromptInfo:
    """Move the menu cursor to `option` (1-based) and confirm with Enter.

    Validation happens before any key is sent.
    """
    if not tmux.pane_alive(pane_id):
        raise NotFoundError(f"pane {pane_id} is not alive")

    info = parse_prompt(tmux.capture_pane(pane_id), footer=footer)
    if not info.active or not info.options:
        raise PromptError("no active prompt detected")

    count = len(info.options)
    if option < 1 or option > count:
        raise PromptError(f"option {option} out of range (1-{count})")

    current = info.selected if info.selected is not None else 0
    distance = (option - 1) - current
    key = "Down" if distance > 0 else "Up"
    for _ in range(abs(distance)):
        tmux.send_key(pane_id, key)
        time.sleep(NAV_DELAY_S)

    time.sleep(CONFIRM_DELAY_S)
    tmux.send_key(pane_id, "Enter")
    logger.info("Sent option %d to pane %s", option, pane_id, extra={"pane": pane_id})
    return info


def poll_all(
    tmux: Tmux,
    *,
    root: Optional[Path] = None,
    footer: str = DEFAULT_PROMPT_FOOTER,
) -> List[Dict[str, Any]]:
    """Prompt state for every registered session whose pane is alive."""
    results: List[Dict[str, Any]] = []
    reg = load_registry(root)
    for session_id, entry in reg.entries.items():
        if not tmux.pane_alive(entry.pane):
            continue
        try:
            info = parse_prompt(tmux.capture_pane(entry.pane), footer=footer)
        except TmuxError as e:
            # The pane may have died after the liveness check.
            logger.warning("capture failed for pane %s: %s", entry.pane, e, extra={"pane": entry.pane})
            info = inactive()
        record: Dict[str, Any] = {"session_id": session_id, "file": entry.file}
        record.update(info.to_json_dict())
        results.append(record)
    return results
