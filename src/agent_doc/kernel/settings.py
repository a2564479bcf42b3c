"""User configuration for agent-doc.

Stored in ~/.config/agent-doc/config.yaml (XDG_CONFIG_HOME honoured,
AGENT_DOC_CONFIG overrides the path), e.g.:

    default_agent: claude
    tmux_session: claude
    agent_command: [claude]
    prompt_footer: "Esc to cancel"
    agents:
      claude:
        command: claude
        args: ["-p", "--output-format", "json"]
"""
from __future__ import annotations

from typing import Any, Dict, Optional

import yaml  # type: ignore
from pydantic import ValidationError

from ..contracts.v1 import Config
from ..errors import AgentDocError
from ..paths import config_path


def load_settings() -> Dict[str, Any]:
    p = config_path()
    if not p.exists():
        return {}
    try:
        doc = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise AgentDocError(f"failed to read config {p}: {e}") from e
    if not isinstance(doc, dict):
        raise AgentDocError(f"config {p} must be a mapping")
    return doc


def load_config(settings: Optional[Dict[str, Any]] = None) -> Config:
    doc = load_settings() if settings is None else settings
    try:
        return Config.model_validate(doc)
    except ValidationError as e:
        raise AgentDocError(f"invalid config {config_path()}: {e}") from e
