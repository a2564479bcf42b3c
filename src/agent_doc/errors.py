"""Exception hierarchy for agent-doc.

Stale registry state is not an error; these cover the failures that reach
the user.
"""
from __future__ import annotations

from typing import Sequence


class AgentDocError(RuntimeError):
    """Base exception for all agent-doc failures."""


class NotFoundError(AgentDocError):
    """A document, registry entry or pane does not exist."""


class TmuxError(AgentDocError):
    """A tmux command exited non-zero."""

    def __init__(self, args: Sequence[str], stderr: str = "", code: int = 1):
        self.tmux_args = list(args)
        self.stderr = (stderr or "").strip()
        self.code = code
        action = self.tmux_args[0] if self.tmux_args else "tmux"
        detail = f": {self.stderr}" if self.stderr else ""
        super().__init__(f"tmux {action} failed (exit {code}){detail}")


class RegistryError(AgentDocError):
    """The session registry file cannot be read."""


class PromptError(AgentDocError):
    """No prompt to answer, or the requested option is out of range."""


class LayoutError(AgentDocError):
    """The requested arrangement cannot be satisfied."""


class AutoStartDisabled(AgentDocError):
    """A new tmux session/window would have been created but autostart is off."""


class FrontmatterError(AgentDocError):
    """The document's YAML frontmatter block is malformed."""


class AgentError(AgentDocError):
    """The agent backend failed or returned nothing usable."""


class GitError(AgentDocError):
    """A git command required for the operation failed."""
