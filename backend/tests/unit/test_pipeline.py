"""
Unit tests for the scan/fix pipeline and the scan cache.
"""
from unittest.mock import AsyncMock, patch

import pytest

from seopilot.services.issue_engine import AnalyzerConfig
from seopilot.services.pipeline import SEOPipeline, resolve_repo_path
from seopilot.services.scan_service import ScanService, report_from_scan
from seopilot.services.types import CodeFix, FixAction, FrameworkType, WarningKind

from fixtures.sample_repos import HTML_REPO, write_tree


class TestResolveRepoPath:
    def test_relative_to_root(self, repos_root, next_app_repo):
        assert resolve_repo_path("acme") == next_app_repo.resolve()

    def test_explicit_root(self, tmp_path):
        (tmp_path / "site").mkdir()

        assert resolve_repo_path("site", root=tmp_path) == (tmp_path / "site").resolve()

    @pytest.mark.parametrize("path", ["../elsewhere", "acme/../../elsewhere", "/etc"])
    def test_escape_is_rejected(self, repos_root, next_app_repo, path):
        with pytest.raises(ValueError, match="escapes"):
            resolve_repo_path(path)

    def test_missing_directory(self, repos_root):
        with pytest.raises(ValueError, match="not found"):
            resolve_repo_path("nope")


class TestSEOPipeline:
    @pytest.mark.asyncio
    async def test_scan_on_disk(self, next_app_repo, registry):
        pipeline = SEOPipeline(registry=registry, exclude_paths=[])

        report = await pipeline.scan("acme", next_app_repo, "c0ffee00")

        assert report.profile.framework == FrameworkType.NEXTJS_APP
        assert report.profile.commit_hash == "c0ffee00"
        assert {p.path for p in report.profile.pages} == {"/", "/about", "/blog/hello"}
        assert "missing-sitemap:global" in {i.id for i in report.issues}
        assert report.warnings == []
        assert report.summary["total_issues"] == len(report.issues)

    @pytest.mark.asyncio
    async def test_report_to_dict(self, html_repo):
        report = await SEOPipeline(exclude_paths=[]).scan("plain", html_repo, "c0ffee00")

        data = report.to_dict()

        assert data["profile"]["framework"] == "html"
        assert data["summary"]["score"] == report.summary["score"]
        assert all(isinstance(i["severity"], str) for i in data["issues"])

    @pytest.mark.asyncio
    async def test_configured_thresholds(self, next_app_repo):
        pipeline = SEOPipeline(analyzer_config=AnalyzerConfig(min_word_count=5), exclude_paths=[])

        report = await pipeline.scan("acme", next_app_repo, "c0ffee00")

        assert "thin-content:/about" not in {i.id for i in report.issues}

    @pytest.mark.asyncio
    async def test_supplemental_failure_is_reported(self, next_app_repo):
        supplemental = AsyncMock()
        supplemental.find_issues.side_effect = ValueError("bad reply")

        report = await SEOPipeline(supplemental=supplemental, exclude_paths=[]).scan("acme", next_app_repo, "c1")

        assert [w.kind for w in report.warnings] == [WarningKind.SUPPLEMENTAL_ANALYSIS_FAILED]

    @pytest.mark.asyncio
    async def test_fix_respects_profile(self, next_app_repo):
        pipeline = SEOPipeline(exclude_paths=[])
        report = await pipeline.scan("acme", next_app_repo, "c1")
        fixes = [
            CodeFix("missing-robots:global", "app/robots.ts", FixAction.CREATE, content="export default {};\n"),
            CodeFix("x:global", "next.config.js", FixAction.DELETE),
        ]

        result = await pipeline.fix(next_app_repo, fixes, report.profile)

        assert [f.file for f in result.applied] == ["app/robots.ts"]
        assert result.warnings[0].kind == WarningKind.MUTATION_DANGER_ZONE
        assert (next_app_repo / "app" / "robots.ts").exists()
        assert (next_app_repo / "next.config.js").exists()


class TestScanService:
    @pytest.mark.asyncio
    async def test_scan_is_cached_per_commit(self, db_session, next_app_repo):
        service = ScanService(db_session, SEOPipeline(exclude_paths=[]))

        first, first_cached = await service.scan("acme", next_app_repo, "c1")
        second, second_cached = await service.scan("acme", next_app_repo, "c1")

        assert not first_cached
        assert second_cached
        assert second.id == first.id
        assert first.framework == "nextjs-app"
        assert first.score == report_from_scan(first).summary["score"]

    @pytest.mark.asyncio
    async def test_force_rescans_in_place(self, db_session, next_app_repo):
        service = ScanService(db_session, SEOPipeline(exclude_paths=[]))
        first, _ = await service.scan("acme", next_app_repo, "c1")
        write_tree(next_app_repo, {"app/robots.ts": "export default function robots() { return {}; }\n"})

        again, cached = await service.scan("acme", next_app_repo, "c1", force=True)

        assert not cached
        assert again.id == first.id
        assert "missing-robots:global" not in {i["id"] for i in again.issues}

    @pytest.mark.asyncio
    async def test_new_commit_new_scan(self, db_session, next_app_repo):
        service = ScanService(db_session, SEOPipeline(exclude_paths=[]))

        first, _ = await service.scan("acme", next_app_repo, "c1")
        second, cached = await service.scan("acme", next_app_repo, "c2")

        assert not cached
        assert second.id != first.id
        assert (await service.get_latest("acme")).id == second.id
        assert (await service.get_by_commit("acme", "c1")).id == first.id

    @pytest.mark.asyncio
    async def test_tree_without_commit_is_always_rescanned(self, db_session, next_app_repo):
        service = ScanService(db_session, SEOPipeline(exclude_paths=[]))

        with patch("seopilot.services.scan_service.get_head_commit", new=AsyncMock(return_value="unknown")):
            first, _ = await service.scan("acme", next_app_repo)
            write_tree(next_app_repo, {"app/robots.ts": "export default function robots() { return {}; }\n"})
            again, cached = await service.scan("acme", next_app_repo)

        assert not cached
        assert again.id == first.id
        assert again.commit_hash == "unknown"
        assert "missing-robots:global" not in {i["id"] for i in again.issues}

    @pytest.mark.asyncio
    async def test_commit_defaults_to_head(self, db_session, next_app_repo):
        service = ScanService(db_session, SEOPipeline(exclude_paths=[]))

        with patch(
            "seopilot.services.scan_service.get_head_commit", new=AsyncMock(return_value="feedface")
        ) as head:
            scan, _ = await service.scan("acme", next_app_repo)

        head.assert_awaited_once_with(next_app_repo)
        assert scan.commit_hash == "feedface"

    @pytest.mark.asyncio
    async def test_stored_report_round_trips(self, db_session, tmp_path):
        repo = write_tree(tmp_path / "plain", HTML_REPO)
        service = ScanService(db_session, SEOPipeline(exclude_paths=[]))

        scan, _ = await service.scan("plain", repo, "c1")
        report = report_from_scan(scan)

        assert report.profile.framework == FrameworkType.HTML
        assert {i.id for i in report.issues} == {i["id"] for i in scan.issues}

    @pytest.mark.asyncio
    async def test_latest_for_unknown_repo(self, db_session):
        assert await ScanService(db_session).get_latest("nobody") is None
