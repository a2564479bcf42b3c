from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml  # type: ignore
from pydantic import ValidationError

from ..contracts.v1 import Frontmatter
from ..errors import FrontmatterError, NotFoundError

logger = logging.getLogger(__name__)

DELIMITER = "---"


def _split(content: str) -> Tuple[Optional[Dict[str, Any]], str]:
    """Raw YAML mapping (None when there is no block) and body."""
    lines = content.split("\n")
    if not lines or lines[0].rstrip() != DELIMITER:
        return None, content

    end = None
    for i in range(1, len(lines)):
        if lines[i].rstrip() == DELIMITER:
            end = i
            break
    if end is None:
        raise FrontmatterError("unterminated frontmatter block")

    try:
        data = yaml.safe_load("\n".join(lines[1:end])) or {}
    except yaml.YAMLError as e:
        raise FrontmatterError(f"invalid frontmatter: {e}") from e
    if not isinstance(data, dict):
        raise FrontmatterError("frontmatter must be a mapping")
    return data, "\n".join(lines[end + 1 :])


def _validate(data: Dict[str, Any]) -> Frontmatter:
    try:
        return Frontmatter.model_validate(data)
    except ValidationError as e:
        raise FrontmatterError(f"invalid frontmatter: {e}") from e


def _dump(data: Dict[str, Any], body: str) -> str:
    text = yaml.safe_dump(data, allow_unicode=True, sort_keys=False) if data else ""
    return f"{DELIMITER}\n{text}{DELIMITER}\n{body}"


def parse(content: str) -> Tuple[Frontmatter, str]:
    """Split a document into (frontmatter, body).

    A document without a leading `---` line has empty frontmatter and the
    whole content as body.
    """
    data, body = _split(content)
    return _validate(data or {}), body


def write(fm: Frontmatter, body: str) -> str:
    """Render `fm` above `body`. Unset known fields are dropped; user keys are kept as-is."""
    data: Dict[str, Any] = {}
    for name in Frontmatter.model_fields:
        value = getattr(fm, name)
        if value is not None:
            data[name] = value
    data.update(fm.model_extra or {})
    return _dump(data, body)


def update_fields(content: str, **fields: Optional[str]) -> str:
    """Set (or, with None, remove) known keys in place, leaving every other key and its order alone."""
    data, body = _split(content)
    if data is None and all(v is None for v in fields.values()):
        return content
    data = dict(data or {})
    for key, value in fields.items():
        if value is None:
            data.pop(key, None)
        else:
            data[key] = value
    _validate(data)
    return _dump(data, body)


def ensure_session_id(content: str) -> Tuple[str, str]:
    """Return (content, session_id), minting and inserting an id only if absent."""
    fm, _ = parse(content)
    if fm.session and str(fm.session).strip():
        return content, str(fm.session).strip()
    session_id = str(uuid.uuid4())
    return update_fields(content, session=session_id), session_id


def set_resume_id(content: str, resume_id: str) -> str:
    return update_fields(content, resume=resume_id)


def read_document(path: Path) -> str:
    if not path.is_file():
        raise NotFoundError(f"file not found: {path}")
    return path.read_text(encoding="utf-8")


def resolve_session_id(path: Path) -> str:
    """Session id for lookups; a minted id is not written back (it cannot be registered yet)."""
    _, session_id = ensure_session_id(read_document(path))
    return session_id


def ensure_file_session(path: Path) -> str:
    """Session id of the document at `path`, persisting a freshly minted one."""
    content = read_document(path)
    updated, session_id = ensure_session_id(content)
    if updated != content:
        path.write_text(updated, encoding="utf-8")
        logger.info("Generated session UUID: %s", session_id, extra={"session_id": session_id})
    return session_id


def short_id(session_id: str) -> str:
    return session_id[:8]
