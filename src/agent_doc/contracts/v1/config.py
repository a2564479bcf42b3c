from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TMUX_SESSION = "claude"
DEFAULT_PROMPT_FOOTER = "Esc to cancel"


class AgentConfig(BaseModel):
    command: str
    args: List[str] = Field(default_factory=list)
    result_path: Optional[str] = None
    session_path: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class Config(BaseModel):
    default_agent: Optional[str] = None
    agents: Dict[str, AgentConfig] = Field(default_factory=dict)
    # tmux session that the bootstrap cascade creates windows in
    tmux_session: str = DEFAULT_TMUX_SESSION
    # program `agent-doc start` hands the pane over to
    agent_command: List[str] = Field(default_factory=lambda: ["claude"])
    prompt_footer: str = DEFAULT_PROMPT_FOOTER

    model_config = ConfigDict(extra="ignore")
