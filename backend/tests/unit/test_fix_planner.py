"""
Unit tests for the global fix planner.
"""
import pytest

from seopilot.services.fix_applier import CodeFixApplier
from seopilot.services.fix_planner import GlobalFixPlanner
from seopilot.services.types import FixAction, FrameworkType, IssueSeverity, SEOIssue, issue_id

from fixtures.profiles import make_page, make_profile


def global_issues(*types: str) -> list[SEOIssue]:
    return [
        SEOIssue(issue_id(t), t, IssueSeverity.CRITICAL, "", "", auto_fixable=True)
        for t in types
    ]


ALL_GLOBAL = global_issues("missing-sitemap", "missing-robots", "missing-schema")


@pytest.fixture
def planner(registry) -> GlobalFixPlanner:
    return GlobalFixPlanner(registry, "https://acme.dev/", "Acme")


class TestPlan:
    def test_app_router(self, planner):
        profile = make_profile([make_page("/"), make_page("/about")])

        fixes = planner.plan(profile, ALL_GLOBAL)

        assert [(f.issue_id, f.file) for f in fixes] == [
            ("missing-sitemap:global", "app/sitemap.ts"),
            ("missing-robots:global", "app/robots.ts"),
            ("missing-schema:global", "src/components/OrganizationSchema.tsx"),
            ("missing-schema:global", "src/components/WebSiteSchema.tsx"),
        ]
        assert all(f.action == FixAction.CREATE for f in fixes)
        assert "url: 'https://acme.dev/about'," in fixes[0].content
        assert fixes[0].description == "Add sitemap with 2 URLs at app/sitemap.ts"
        assert '"name": "Acme"' in fixes[2].content

    def test_only_planned_for_present_issues(self, planner):
        fixes = planner.plan(make_profile([make_page("/")]), global_issues("missing-robots"))

        assert [f.file for f in fixes] == ["app/robots.ts"]

    def test_page_issues_are_ignored(self, planner):
        page_issue = SEOIssue(issue_id("missing-schema", "/blog/x"), "missing-schema", IssueSeverity.INFO, "", "", True)

        assert planner.plan(make_profile([make_page("/")]), [page_issue]) == []

    def test_danger_zone_targets_are_skipped(self, planner):
        profile = make_profile([make_page("/")], framework=FrameworkType.ASTRO)
        profile.danger_zones.append("astro.config.mjs")

        fixes = planner.plan(profile, ALL_GLOBAL)

        assert "astro.config.mjs" not in [f.file for f in fixes]
        assert [f.file for f in fixes] == [
            "public/robots.txt",
            "src/components/OrganizationSchema.astro",
            "src/components/WebSiteSchema.astro",
        ]

    def test_html_schema_is_embedded_in_home_head(self, planner):
        profile = make_profile([make_page("/", "index.html")], framework=FrameworkType.HTML)

        fixes = planner.plan(profile, global_issues("missing-schema"))

        assert len(fixes) == 1
        fix = fixes[0]
        assert fix.action == FixAction.MODIFY
        assert fix.file == "index.html"
        assert fix.search == "</head>"
        assert fix.replace.endswith("</head>")
        assert fix.replace.count("application/ld+json") == 2

    def test_html_without_home_has_no_schema_fix(self, planner):
        profile = make_profile([make_page("/about", "about.html")], framework=FrameworkType.HTML)

        assert planner.plan(profile, global_issues("missing-schema")) == []

    @pytest.mark.asyncio
    async def test_planned_fixes_apply_cleanly(self, planner, tmp_path):
        (tmp_path / "index.html").write_text("<html><head><title>Home</title></head><body></body></html>")
        profile = make_profile([make_page("/", "index.html")], framework=FrameworkType.HTML)

        fixes = planner.plan(profile, ALL_GLOBAL)
        result = await CodeFixApplier(tmp_path, profile).apply(fixes)

        assert result.skipped == []
        assert (tmp_path / "sitemap.xml").read_text().startswith("<?xml")
        assert "Sitemap: https://acme.dev/sitemap.xml" in (tmp_path / "robots.txt").read_text()
        assert '"@type": "Organization"' in (tmp_path / "index.html").read_text()
