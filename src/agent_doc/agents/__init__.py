from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from ..contracts.v1 import AgentConfig
from ..errors import AgentError


@dataclass(frozen=True)
class AgentResponse:
    text: str
    # agent conversation id to resume next time
    session_id: Optional[str] = None


class Agent(Protocol):
    def send(
        self,
        prompt: str,
        resume_id: Optional[str] = None,
        fork: bool = False,
        model: Optional[str] = None,
    ) -> AgentResponse: ...


def resolve(name: str, config: Optional[AgentConfig] = None) -> Agent:
    """Backend by name. A configured agent of any name uses the JSON CLI backend."""
    from .claude import Claude

    if name == "claude" and config is None:
        return Claude()
    if config is not None:
        return Claude(
            command=config.command,
            base_args=list(config.args) or None,
            result_path=config.result_path,
            session_path=config.session_path,
        )
    raise AgentError(f"unknown agent backend: {name}")


__all__ = ["Agent", "AgentResponse", "resolve"]
