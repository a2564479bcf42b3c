"""`agent-doc run`: send the document's changes to the agent and append the reply."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .. import agents
from ..contracts.v1 import Config
from . import diff, git, snapshot
from .frontmatter import parse, read_document, set_resume_id

logger = logging.getLogger(__name__)

_REPLY_RULES = (
    "Respond to the user's new content. Write your response in markdown.\n"
    "Do not include a ## Assistant heading; it will be added automatically.\n"
    "If the user asked questions inline (e.g., in blockquotes), address those too."
)


def build_prompt(the_diff: str, content: str, *, resuming: bool) -> str:
    if resuming:
        return (
            "The user edited the session document. Here is the diff since the last submit:\n\n"
            f"<diff>\n{the_diff}\n</diff>\n\n"
            "The full document is now:\n\n"
            f"<document>\n{content}\n</document>\n\n" + _REPLY_RULES
        )
    return (
        "The user is starting a session document. Here is the full document:\n\n"
        f"<document>\n{content}\n</document>\n\n" + _REPLY_RULES
    )


def run(
    file: Path,
    *,
    config: Config,
    branch: bool = False,
    agent_name: Optional[str] = None,
    model: Optional[str] = None,
    dry_run: bool = False,
    no_git: bool = False,
    root: Optional[Path] = None,
) -> Optional[str]:
    """Returns the agent's reply, or None when nothing was sent."""
    the_diff = diff.compute(file, root=root)
    if the_diff is None:
        logger.info("Nothing changed since last submit.")
        return None

    content = read_document(file)
    fm, _ = parse(content)

    name = agent_name or fm.agent or config.default_agent or "claude"
    backend = agents.resolve(name, config.agents.get(name))
    prompt = build_prompt(the_diff, content, resuming=bool(fm.resume))

    if dry_run:
        logger.info("--- Diff ---")
        print(the_diff, end="")
        logger.info("--- Prompt would be %d bytes ---", len(prompt.encode("utf-8")))
        return None

    if branch and not no_git:
        git.create_branch(file)

    logger.info("Submitting to %s...", name)
    response = backend.send(prompt, resume_id=fm.resume, fork=not fm.resume, model=model or fm.model)

    content = read_document(file)
    if response.session_id:
        content = set_resume_id(content, response.session_id)
    content += f"\n## Assistant\n\n{response.text}\n\n## User\n\n"
    file.write_text(content, encoding="utf-8")
    snapshot.save(file, content, root=root)

    if not no_git:
        git.commit(file)

    logger.info("Response appended to %s", file)
    return response.text
