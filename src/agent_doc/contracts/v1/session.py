from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class SessionEntry(BaseModel):
    """Registry record for one document session, keyed by session id."""

    # Empty only in hand-edited files; such an entry is never alive and is pruned.
    pane: str = ""
    pid: int = 0
    cwd: str = ""
    # UTC ISO-8601 with a trailing "Z".
    started: str = ""
    # Document path as given on the command line; empty for legacy entries.
    file: str = ""

    model_config = ConfigDict(extra="ignore")
