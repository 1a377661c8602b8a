"""
Scan and fix pipeline.

Wires the file reader, profiler, issue engine and fix applier together so
the API and the Celery tasks drive one entrypoint.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from seopilot.config import settings
from seopilot.integrations.filesystem import LocalFileReader
from seopilot.services.fix_applier import CodeFixApplier, FixApplyResult
from seopilot.services.frameworks import HandlerRegistry, build_default_registry
from seopilot.services.issue_engine import (
    AnalyzerConfig,
    SEOIssueEngine,
    SupplementalAnalyzer,
    summarize,
)
from seopilot.services.profiler import CodebaseProfiler, ProfilerOptions
from seopilot.services.types import CodebaseProfile, CodeFix, PipelineWarning, SEOIssue

logger = logging.getLogger(__name__)


def resolve_repo_path(repo_path: str, root: str | Path | None = None) -> Path:
    """Resolve a repository directory under REPOS_ROOT. Raises ValueError if it escapes or is missing."""
    base = Path(root or settings.REPOS_ROOT).resolve()
    target = (base / repo_path).resolve()
    if not target.is_relative_to(base):
        raise ValueError(f"Repository path escapes {base}: {repo_path}")
    if not target.is_dir():
        raise ValueError(f"Repository directory not found: {repo_path}")
    return target


@dataclass
class ScanReport:
    profile: CodebaseProfile
    issues: list[SEOIssue] = field(default_factory=list)
    warnings: list[PipelineWarning] = field(default_factory=list)

    @property
    def summary(self) -> dict:
        return summarize(self.issues)

    def to_dict(self) -> dict:
        return {
            "profile": self.profile.to_dict(),
            "issues": [i.to_dict() for i in self.issues],
            "warnings": [w.to_dict() for w in self.warnings],
            "summary": self.summary,
        }


class SEOPipeline:
    """scan(): profile + analyze. fix(): apply a batch of fixes."""

    def __init__(
        self,
        registry: HandlerRegistry | None = None,
        analyzer_config: AnalyzerConfig | None = None,
        supplemental: SupplementalAnalyzer | None = None,
        exclude_paths: list[str] | None = None,
    ):
        self.registry = registry or build_default_registry()
        self.engine = SEOIssueEngine(analyzer_config or AnalyzerConfig.from_settings(), supplemental)
        self.exclude_paths = exclude_paths if exclude_paths is not None else settings.scan_exclude_list

    async def scan(self, repo_id: str, repo_path: str | Path, commit_hash: str) -> ScanReport:
        options = ProfilerOptions(
            repo_id=repo_id,
            commit_hash=commit_hash,
            exclude_paths=list(self.exclude_paths),
        )
        profiled = await CodebaseProfiler(LocalFileReader(repo_path), self.registry, options).profile()
        analysis = await self.engine.analyze(profiled.profile)

        report = ScanReport(
            profile=profiled.profile,
            issues=analysis.issues,
            warnings=[*profiled.warnings, *analysis.warnings],
        )
        logger.info(
            f"[SCAN] {repo_id}@{commit_hash[:8]}: {len(report.issues)} issues, "
            f"score {report.summary['score']}"
        )
        return report

    async def fix(
        self, repo_path: str | Path, fixes: list[CodeFix], profile: CodebaseProfile | None = None
    ) -> FixApplyResult:
        return await CodeFixApplier(repo_path, profile).apply(fixes)
