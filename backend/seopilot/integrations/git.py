"""
Git helpers for checked-out repositories.
"""
import asyncio
import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

UNKNOWN_COMMIT = "unknown"


def _run_git(args: list[str], *, cwd: Path) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        check=True,
        text=True,
        capture_output=True,
    )


async def get_head_commit(repo_path: str | Path) -> str:
    """HEAD commit sha, or "unknown" when the directory is not a git checkout."""
    try:
        completed = await asyncio.to_thread(_run_git, ["rev-parse", "HEAD"], cwd=Path(repo_path))
    except (OSError, subprocess.CalledProcessError) as e:
        logger.debug(f"[SCAN] No git commit for {repo_path}: {e}")
        return UNKNOWN_COMMIT
    return completed.stdout.strip() or UNKNOWN_COMMIT
