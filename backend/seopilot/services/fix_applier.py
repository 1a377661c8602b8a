"""
Applies CodeFix records to a working tree.

Fixes are applied in order and independently: a fix that cannot be applied
is skipped with a warning and the batch continues.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path

from seopilot.services.profiler import is_safe_path
from seopilot.services.types import (
    CodebaseProfile,
    CodeFix,
    FixAction,
    PipelineWarning,
    WarningKind,
)

logger = logging.getLogger(__name__)


@dataclass
class FixApplyResult:
    applied: list[CodeFix] = field(default_factory=list)
    skipped: list[CodeFix] = field(default_factory=list)
    warnings: list[PipelineWarning] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "applied": [f.to_dict() for f in self.applied],
            "skipped": [f.to_dict() for f in self.skipped],
            "warnings": [w.to_dict() for w in self.warnings],
        }


class FixSkipped(Exception):
    def __init__(self, kind: WarningKind, message: str):
        self.kind = kind
        super().__init__(message)


def _read_text(path: Path) -> str:
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def _write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)


class CodeFixApplier:
    """Applies fixes under `root`. With a profile, danger zones are off limits."""

    def __init__(self, root: str | Path, profile: CodebaseProfile | None = None):
        self.root = Path(root).resolve()
        self.profile = profile

    async def apply(self, fixes: list[CodeFix]) -> FixApplyResult:
        result = FixApplyResult()
        for fix in fixes:
            try:
                await self._apply_one(fix)
            except FixSkipped as e:
                self._skip(result, fix, e.kind, str(e))
            except OSError as e:
                self._skip(result, fix, WarningKind.MUTATION_IO_ERROR, f"I/O error on {fix.file}: {e}")
            else:
                logger.info(f"[FIX] Applied {fix.file} ({fix.issue_id})")
                result.applied.append(fix)

        logger.info(
            f"[FIX] Applied {len(result.applied)} fixes, skipped {len(result.skipped)}"
        )
        return result

    async def _apply_one(self, fix: CodeFix) -> None:
        target = self._resolve(fix.file)
        action = self._action(fix)

        if action == FixAction.CREATE:
            if not fix.content:
                raise FixSkipped(WarningKind.MUTATION_INVALID, f"Create for {fix.file} has no content")
            await asyncio.to_thread(_write_text, target, fix.content)

        elif action == FixAction.MODIFY:
            if not fix.search or fix.replace is None:
                raise FixSkipped(
                    WarningKind.MUTATION_INVALID, f"Modify for {fix.file} needs search and replace"
                )
            if not await asyncio.to_thread(target.is_file):
                raise FixSkipped(WarningKind.MUTATION_TARGET_MISSING, f"File not found: {fix.file}")
            try:
                content = await asyncio.to_thread(_read_text, target)
            except UnicodeDecodeError as e:
                raise FixSkipped(WarningKind.MUTATION_IO_ERROR, f"{fix.file} is not UTF-8 text: {e}") from e
            if fix.search not in content:
                raise FixSkipped(
                    WarningKind.MUTATION_ANCHOR_NOT_FOUND, f"Search string not found in {fix.file}"
                )
            await asyncio.to_thread(_write_text, target, content.replace(fix.search, fix.replace, 1))

        elif action == FixAction.DELETE:
            await asyncio.to_thread(target.unlink, missing_ok=True)

        else:
            raise FixSkipped(WarningKind.MUTATION_INVALID, f"Unknown action '{fix.action}' for {fix.file}")

    def _resolve(self, file: str) -> Path:
        relative = Path(file)
        if not file or relative.is_absolute():
            raise FixSkipped(WarningKind.MUTATION_INVALID, f"Path must be relative to the repository: {file!r}")

        target = (self.root / relative).resolve()
        if not target.is_relative_to(self.root):
            raise FixSkipped(WarningKind.MUTATION_INVALID, f"Path escapes the repository: {file}")

        if self.profile is not None and not is_safe_path(self.profile, relative.as_posix()):
            raise FixSkipped(WarningKind.MUTATION_DANGER_ZONE, f"Refusing to touch danger zone: {file}")
        return target

    @staticmethod
    def _action(fix: CodeFix) -> FixAction | str:
        try:
            return FixAction(fix.action)
        except ValueError:
            return fix.action

    @staticmethod
    def _skip(result: FixApplyResult, fix: CodeFix, kind: WarningKind, message: str) -> None:
        logger.warning(f"[FIX] Skipped {fix.issue_id}: {message}")
        result.skipped.append(fix)
        result.warnings.append(
            PipelineWarning(kind=kind, message=message, file=fix.file, issue_id=fix.issue_id)
        )


async def apply_changes(
    root: str | Path, fixes: list[CodeFix], profile: CodebaseProfile | None = None
) -> FixApplyResult:
    return await CodeFixApplier(root, profile).apply(fixes)
