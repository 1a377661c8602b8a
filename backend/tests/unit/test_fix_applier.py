"""
Unit tests for the code fix applier.
"""
import pytest

from seopilot.services.fix_applier import CodeFixApplier, apply_changes
from seopilot.services.types import CodeFix, FixAction, WarningKind

from fixtures.profiles import make_profile


@pytest.fixture
def repo(tmp_path):
    root = tmp_path / "site"
    (root / "app").mkdir(parents=True)
    (root / "app" / "page.tsx").write_text("export const metadata = {\n  title: 'Old',\n};\n")
    (root / "next.config.js").write_text("module.exports = {};\n")
    return root


def modify(search: str, replace: str, file: str = "app/page.tsx") -> CodeFix:
    return CodeFix(
        issue_id="missing-meta-title:/",
        file=file,
        action=FixAction.MODIFY,
        description="Update meta title",
        search=search,
        replace=replace,
    )


class TestActions:
    @pytest.mark.asyncio
    async def test_create_writes_nested_file(self, repo):
        fix = CodeFix("missing-robots:global", "public/robots.txt", FixAction.CREATE, content="User-agent: *\n")

        result = await CodeFixApplier(repo).apply([fix])

        assert result.applied == [fix]
        assert result.warnings == []
        assert (repo / "public" / "robots.txt").read_text() == "User-agent: *\n"

    @pytest.mark.asyncio
    async def test_create_overwrites(self, repo):
        fix = CodeFix("x:global", "app/page.tsx", "create", content="replaced\n")

        await apply_changes(repo, [fix])

        assert (repo / "app" / "page.tsx").read_text() == "replaced\n"

    @pytest.mark.asyncio
    async def test_modify_replaces_first_occurrence(self, repo):
        (repo / "app" / "page.tsx").write_text("Old Old")

        result = await CodeFixApplier(repo).apply([modify("Old", "New")])

        assert len(result.applied) == 1
        assert (repo / "app" / "page.tsx").read_text() == "New Old"

    @pytest.mark.asyncio
    async def test_repeat_modify_is_noop(self, repo):
        fix = modify("title: 'Old'", "title: 'New'")

        first = await CodeFixApplier(repo).apply([fix])
        after_first = (repo / "app" / "page.tsx").read_text()
        second = await CodeFixApplier(repo).apply([fix])

        assert first.applied == [fix]
        assert second.applied == []
        assert (repo / "app" / "page.tsx").read_text() == after_first
        assert second.warnings[0].kind == WarningKind.MUTATION_ANCHOR_NOT_FOUND

    @pytest.mark.asyncio
    async def test_anchor_not_found_leaves_file_unchanged(self, repo):
        before = (repo / "app" / "page.tsx").read_text()

        result = await CodeFixApplier(repo).apply([modify("not there", "anything")])

        assert result.applied == []
        assert len(result.skipped) == 1
        assert len(result.warnings) == 1
        assert result.warnings[0].kind == WarningKind.MUTATION_ANCHOR_NOT_FOUND
        assert result.warnings[0].file == "app/page.tsx"
        assert result.warnings[0].issue_id == "missing-meta-title:/"
        assert (repo / "app" / "page.tsx").read_text() == before

    @pytest.mark.asyncio
    async def test_modify_missing_file(self, repo):
        result = await CodeFixApplier(repo).apply([modify("a", "b", file="app/missing.tsx")])

        assert result.warnings[0].kind == WarningKind.MUTATION_TARGET_MISSING
        assert not (repo / "app" / "missing.tsx").exists()

    @pytest.mark.asyncio
    async def test_modify_without_search_is_invalid(self, repo):
        fix = CodeFix("x:/", "app/page.tsx", FixAction.MODIFY, replace="b")

        result = await CodeFixApplier(repo).apply([fix])

        assert result.warnings[0].kind == WarningKind.MUTATION_INVALID

    @pytest.mark.asyncio
    async def test_modify_with_empty_search_is_invalid(self, repo):
        before = (repo / "app" / "page.tsx").read_text()

        first = await CodeFixApplier(repo).apply([modify("", "HEADER\n")])
        second = await CodeFixApplier(repo).apply([modify("", "HEADER\n")])

        assert first.applied == [] and second.applied == []
        assert first.warnings[0].kind == WarningKind.MUTATION_INVALID
        assert (repo / "app" / "page.tsx").read_text() == before

    @pytest.mark.asyncio
    async def test_create_without_content_is_invalid(self, repo):
        result = await CodeFixApplier(repo).apply([CodeFix("x:/", "app/new.tsx", FixAction.CREATE)])

        assert result.warnings[0].kind == WarningKind.MUTATION_INVALID
        assert not (repo / "app" / "new.tsx").exists()

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, repo):
        fix = CodeFix("x:/", "app/page.tsx", FixAction.DELETE)

        first = await CodeFixApplier(repo).apply([fix])
        second = await CodeFixApplier(repo).apply([fix])

        assert not (repo / "app" / "page.tsx").exists()
        assert first.applied == [fix]
        assert second.applied == [fix]

    @pytest.mark.asyncio
    async def test_unknown_action(self, repo):
        fix = CodeFix("x:/", "app/page.tsx", "rename")

        result = await CodeFixApplier(repo).apply([fix])

        assert result.skipped == [fix]
        assert result.warnings[0].kind == WarningKind.MUTATION_INVALID
        assert "rename" in result.warnings[0].message


class TestSafety:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["../outside.txt", "app/../../outside.txt", "/etc/passwd", ""])
    async def test_paths_outside_repository_are_rejected(self, repo, path):
        fix = CodeFix("x:/", path, FixAction.CREATE, content="pwned")

        result = await CodeFixApplier(repo).apply([fix])

        assert result.applied == []
        assert result.warnings[0].kind == WarningKind.MUTATION_INVALID
        assert not (repo.parent / "outside.txt").exists()

    @pytest.mark.asyncio
    async def test_danger_zone_is_refused_with_profile(self, repo):
        fix = modify("{}", "{ reactStrictMode: true }", file="next.config.js")

        result = await CodeFixApplier(repo, make_profile([])).apply([fix])

        assert result.warnings[0].kind == WarningKind.MUTATION_DANGER_ZONE
        assert (repo / "next.config.js").read_text() == "module.exports = {};\n"

    @pytest.mark.asyncio
    async def test_danger_zone_allowed_without_profile(self, repo):
        fix = modify("{}", "{ reactStrictMode: true }", file="next.config.js")

        result = await CodeFixApplier(repo).apply([fix])

        assert result.applied == [fix]


class TestBatches:
    @pytest.mark.asyncio
    async def test_failures_do_not_stop_the_batch(self, repo):
        fixes = [
            modify("missing anchor", "x"),
            CodeFix("missing-robots:global", "public/robots.txt", FixAction.CREATE, content="ok"),
            CodeFix("x:/", "../escape.txt", FixAction.CREATE, content="no"),
            modify("title: 'Old'", "title: 'New'"),
        ]

        result = await CodeFixApplier(repo).apply(fixes)

        assert [f.file for f in result.applied] == ["public/robots.txt", "app/page.tsx"]
        assert len(result.skipped) == 2
        assert "title: 'New'" in (repo / "app" / "page.tsx").read_text()

    @pytest.mark.asyncio
    async def test_binary_target_does_not_stop_the_batch(self, repo):
        (repo / "public").mkdir()
        (repo / "public" / "logo.svg").write_bytes(b"\xff\xfe<svg></svg>")

        result = await CodeFixApplier(repo).apply(
            [modify("<svg>", "<svg role='img'>", file="public/logo.svg"), modify("title: 'Old'", "title: 'New'")]
        )

        assert [f.file for f in result.applied] == ["app/page.tsx"]
        assert [f.file for f in result.skipped] == ["public/logo.svg"]
        assert result.warnings[0].kind == WarningKind.MUTATION_IO_ERROR
        assert (repo / "public" / "logo.svg").read_bytes() == b"\xff\xfe<svg></svg>"
        assert "title: 'New'" in (repo / "app" / "page.tsx").read_text()

    @pytest.mark.asyncio
    async def test_result_to_dict(self, repo):
        result = await CodeFixApplier(repo).apply([modify("nope", "x")])

        data = result.to_dict()

        assert data["applied"] == []
        assert data["skipped"][0]["action"] == "modify"
        assert data["warnings"][0]["kind"] == "mutation-anchor-not-found"
