from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class Frontmatter(BaseModel):
    # routing key; minted once, never changes
    session: Optional[str] = None
    # agent conversation id passed to --resume
    resume: Optional[str] = None
    agent: Optional[str] = None
    model: Optional[str] = None
    branch: Optional[str] = None

    # Keys written by users or other tools survive a round-trip.
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)
