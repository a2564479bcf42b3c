from __future__ import annotations

import json
import logging
import os
import subprocess
from typing import Any, List, Optional

from ..errors import AgentError
from . import AgentResponse

logger = logging.getLogger(__name__)

DEFAULT_ARGS = ["-p", "--output-format", "json", "--permission-mode", "acceptEdits"]

SYSTEM_PROMPT = (
    "You are responding inside an interactive session document. "
    "The user edits the document and submits diffs to you. "
    "Respond concisely in markdown. Address inline annotations "
    "(blockquotes, comments) as well as new ## User blocks."
)


def _dig(doc: Any, path: str) -> Any:
    cur = doc
    for key in path.split("."):
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
    return cur


class Claude:
    """`claude -p --output-format json`, prompt on stdin, one JSON object on stdout."""

    def __init__(
        self,
        command: str = "claude",
        base_args: Optional[List[str]] = None,
        result_path: Optional[str] = None,
        session_path: Optional[str] = None,
    ):
        self.command = command
        self.base_args = list(base_args) if base_args else list(DEFAULT_ARGS)
        self.result_path = result_path or "result"
        self.session_path = session_path or "session_id"

    def build_args(self, resume_id: Optional[str], fork: bool, model: Optional[str]) -> List[str]:
        args = list(self.base_args)
        if resume_id:
            args += ["--resume", resume_id]
        elif fork:
            args += ["--continue", "--fork-session"]
        if model:
            args += ["--model", model]
        args += ["--append-system-prompt", SYSTEM_PROMPT]
        return args

    def send(
        self,
        prompt: str,
        resume_id: Optional[str] = None,
        fork: bool = False,
        model: Optional[str] = None,
    ) -> AgentResponse:
        env = dict(os.environ)
        # A nested claude refuses to run when it thinks it is inside another one.
        env.pop("CLAUDECODE", None)
        try:
            p = subprocess.run(
                [self.command, *self.build_args(resume_id, fork, model)],
                input=prompt,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                env=env,
                check=False,
            )
        except OSError as e:
            raise AgentError(f"failed to run {self.command}: {e}") from e

        if p.returncode != 0:
            raise AgentError(f"{self.command} command failed: {(p.stderr or '').strip()}")

        try:
            doc = json.loads(p.stdout or "")
        except json.JSONDecodeError as e:
            raise AgentError(f"{self.command} returned invalid JSON: {e}") from e

        result = _dig(doc, self.result_path)
        result = result if isinstance(result, str) else ""
        if isinstance(doc, dict) and doc.get("is_error") is True:
            raise AgentError(f"{self.command} returned an error: {result}")
        if not result:
            raise AgentError(f"empty response from {self.command}")

        session_id = _dig(doc, self.session_path)
        return AgentResponse(text=result, session_id=session_id if isinstance(session_id, str) else None)
