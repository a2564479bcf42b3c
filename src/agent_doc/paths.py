from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

STATE_DIR_NAME = ".agent-doc"


def project_root(root: Optional[Path] = None) -> Path:
    if root is not None:
        return Path(root).expanduser().resolve()
    env = os.environ.get("AGENT_DOC_ROOT", "").strip()
    if env:
        return Path(env).expanduser().resolve()
    return Path.cwd().resolve()


def state_dir(root: Optional[Path] = None) -> Path:
    return project_root(root) / STATE_DIR_NAME


def config_path() -> Path:
    env = os.environ.get("AGENT_DOC_CONFIG", "").strip()
    if env:
        return Path(env).expanduser()
    xdg = os.environ.get("XDG_CONFIG_HOME", "").strip()
    base = Path(xdg).expanduser() if xdg else Path.home() / ".config"
    return base / "agent-doc" / "config.yaml"
