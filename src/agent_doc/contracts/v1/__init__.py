from __future__ import annotations

from .config import DEFAULT_PROMPT_FOOTER, DEFAULT_TMUX_SESSION, AgentConfig, Config
from .document import Frontmatter
from .prompt import PromptInfo, PromptOption
from .session import SessionEntry

__all__ = [
    "AgentConfig",
    "Config",
    "DEFAULT_PROMPT_FOOTER",
    "DEFAULT_TMUX_SESSION",
    "Frontmatter",
    "PromptInfo",
    "PromptOption",
    "SessionEntry",
]
