from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class PromptOption(BaseModel):
    # 1-based, as rendered in the menu
    index: int
    label: str

    model_config = ConfigDict(extra="forbid", frozen=True)


class PromptInfo(BaseModel):
    active: bool = False
    question: Optional[str] = None
    options: Optional[List[PromptOption]] = None
    # 0-based index into options
    selected: Optional[int] = None

    model_config = ConfigDict(extra="forbid")

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
