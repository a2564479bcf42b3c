from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ..errors import AgentDocError
from . import snapshot
from .frontmatter import read_document, update_fields

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled Session"
DEFAULT_AGENT = "claude"


def scaffold(title: str, agent: str) -> str:
    return f"---\nsession:\nagent: {agent}\n---\n\n# Session: {title}\n\n## User\n\n"


def init(file: Path, title: Optional[str] = None, agent: Optional[str] = None) -> None:
    if file.exists():
        raise AgentDocError(f"file already exists: {file}")
    file.parent.mkdir(parents=True, exist_ok=True)
    file.write_text(scaffold(title or DEFAULT_TITLE, agent or DEFAULT_AGENT), encoding="utf-8")
    logger.info("Created %s", file)


def reset(file: Path, *, root: Optional[Path] = None) -> None:
    """Forget the agent conversation and snapshot; the routing key stays."""
    file.write_text(update_fields(read_document(file), resume=None), encoding="utf-8")
    snapshot.delete(file, root=root)
    logger.info("Reset session for %s", file)
