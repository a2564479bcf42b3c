from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional

from ..errors import GitError
from ..util.time import local_timestamp

logger = logging.getLogger(__name__)

COMMIT_PREFIX = "agent-doc:"


def _run_git(args: list[str], *, cwd: Optional[Path] = None) -> tuple[int, str, str]:
    try:
        p = subprocess.run(
            ["git", *args],
            cwd=str(cwd) if cwd else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            check=False,
        )
        return int(p.returncode), (p.stdout or "").strip(), (p.stderr or "").strip()
    except OSError as e:
        return 127, "", str(e)


def commit(file: Path) -> None:
    """Stage `file` and commit it with a timestamped message, skipping hooks."""
    code, _, err = _run_git(["add", "-f", str(file)])
    if code != 0:
        raise GitError(f"git add failed: {err}")

    # "nothing to commit" is not an error here
    code, _, err = _run_git(["commit", "-m", f"{COMMIT_PREFIX} {local_timestamp()}", "--no-verify"])
    if code != 0:
        logger.debug("git commit skipped: %s", err)


def branch_name(file: Path) -> str:
    return f"agent-doc/{file.stem or 'session'}"


def create_branch(file: Path) -> str:
    name = branch_name(file)
    code, _, _ = _run_git(["checkout", "-b", name])
    if code != 0:
        # Branch may already exist.
        code, _, err = _run_git(["checkout", name])
        if code != 0:
            raise GitError(f"failed to create or switch to branch {name}: {err}")
    return name


def squash_session(file: Path) -> bool:
    """Fold every agent-doc commit touching `file` into a single commit.

    Returns False when there was nothing to squash.
    """
    code, out, err = _run_git(["log", "--oneline", "--reverse", f"--grep={COMMIT_PREFIX}", "--", str(file)])
    if code != 0:
        raise GitError(f"git log failed: {err}")
    lines = [ln for ln in out.splitlines() if ln.strip()]
    if not lines:
        logger.info("No agent-doc commits found for %s", file)
        return False
    first_hash = lines[0].split()[0]

    code, _, err = _run_git(["reset", "--soft", f"{first_hash}~1"])
    if code != 0:
        raise GitError(f"git reset failed: {err}")

    code, _, err = _run_git(["commit", "-m", f"{COMMIT_PREFIX} squashed session for {file}", "--no-verify"])
    if code != 0:
        raise GitError(f"git commit failed during squash: {err}")
    logger.info("Squashed agent-doc commits for %s", file)
    return True
