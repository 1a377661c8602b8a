"""
Unit tests for the codebase profiler.
"""
import pytest

from seopilot.services.profiler import (
    CodebaseProfiler,
    ProfilerOptions,
    count_words,
    extract_images,
    extract_internal_links,
    is_safe_path,
    profile_codebase,
)
from seopilot.services.types import Confidence, FrameworkType, MetaHandlingType, WarningKind

from fixtures.profiles import make_profile
from fixtures.sample_repos import FIXED_MTIME, NEXT_APP_REPO, InMemoryFileReader

OPTIONS = ProfilerOptions(repo_id="acme", commit_hash="abc123def456")


class TestExtractors:
    """Page-level extraction helpers."""

    def test_extract_images_with_and_without_alt(self):
        images = extract_images(
            '<img src="/a.png" alt="A">'
            '<img src="https://cdn.example.com/b.png">'
            '<Image src={hero} alt={altText} />'
        )

        assert [(i.src, i.alt, i.is_local) for i in images] == [
            ("/a.png", "A", True),
            ("https://cdn.example.com/b.png", None, False),
            ("hero", "altText", True),
        ]

    def test_empty_alt_is_captured_as_empty(self):
        assert extract_images('<img src="/x.png" alt="">')[0].alt == ""

    def test_internal_links_are_cleaned_and_deduplicated(self):
        links = extract_internal_links(
            '<a href="/docs#intro">Docs</a>'
            '<a href="https://example.com/">Out</a>'
            '<a href="//cdn.example.com/x">CDN</a>'
            '<Link href={"/pricing?plan=pro"}>Pricing</Link>'
            "<a href='/docs'>Docs again</a>"
            '<a href="#top">Top</a>'
        )

        assert links == ["/docs", "/pricing"]

    def test_count_words_strips_code_and_markup(self):
        content = (
            "<p>One two three</p>\n"
            "<code>ignored words here</code>\n"
            "```\nfenced code block\n```\n"
            "Use `inline code` sparingly {expression here}\n"
        )

        assert count_words(content) == 5

    def test_count_words_keeps_text_inside_multiline_component(self):
        content = "export default function Page() {\n  return <p>alpha beta gamma</p>;\n}\n"

        assert count_words(content) >= 3


class TestIsSafePath:
    def test_danger_zone_prefixes(self):
        profile = make_profile([])

        assert is_safe_path(profile, "public/robots.txt")
        assert is_safe_path(profile, "app/sitemap.ts")
        assert not is_safe_path(profile, "next.config.js")
        assert not is_safe_path(profile, "./next.config.js")
        assert not is_safe_path(profile, "src/lib/utils.ts")
        assert is_safe_path(profile, "src/library/notes.md")


class TestNextAppProfile:
    @pytest.mark.asyncio
    async def test_framework_and_pages(self, next_app_reader, registry):
        result = await profile_codebase(next_app_reader, registry, OPTIONS)
        profile = result.profile

        assert result.warnings == []
        assert profile.repo_id == "acme"
        assert profile.commit_hash == "abc123def456"
        assert profile.framework == FrameworkType.NEXTJS_APP
        assert profile.framework_version == "14.1.0"
        assert profile.detection_confidence == Confidence.HIGH
        assert [p.path for p in profile.pages] == ["/about", "/blog/hello", "/"]
        assert all(p.last_modified == FIXED_MTIME for p in profile.pages)

    @pytest.mark.asyncio
    async def test_page_facts(self, next_app_reader, registry):
        profile = (await profile_codebase(next_app_reader, registry, OPTIONS)).profile
        pages = {p.path: p for p in profile.pages}

        home = pages["/"]
        assert home.title == "Acme Widgets"
        assert home.description == "Widgets for every workshop."
        assert home.has_og_image
        assert not home.has_schema
        assert home.internal_links == ["/about", "/blog/hello"]
        assert home.word_count >= 300

        about = pages["/about"]
        assert about.title is None
        assert about.description is None
        assert about.word_count < 300

        post = pages["/blog/hello"]
        assert [(i.src, i.alt) for i in post.images] == [
            ("/images/hero.png", None),
            ("/images/team.png", "The team"),
        ]

    @pytest.mark.asyncio
    async def test_structure_and_patterns(self, next_app_reader, registry):
        profile = (await profile_codebase(next_app_reader, registry, OPTIONS)).profile

        assert profile.structure.pages_dir == "app"
        assert profile.structure.components_dir == "src/components"
        assert profile.structure.public_dir == "public"
        assert profile.structure.content_dir is None
        assert profile.structure.layout_files == ["app/layout.tsx"]
        assert "next.config.js" in profile.structure.config_files
        assert "package.json" in profile.structure.config_files

        patterns = profile.seo_patterns
        assert patterns.meta_handling == MetaHandlingType.METADATA_EXPORT
        assert patterns.existing_sitemap is None
        assert patterns.existing_robots is None
        assert patterns.has_favicon

    @pytest.mark.asyncio
    async def test_build_system_and_zones(self, next_app_reader, registry):
        profile = (await profile_codebase(next_app_reader, registry, OPTIONS)).profile

        assert profile.build_system.package_manager == "pnpm"
        assert profile.build_system.build_command == "pnpm run build"
        assert profile.build_system.dev_command == "pnpm run dev"
        assert profile.build_system.out_dir == "dist"
        assert "public" in profile.safe_zones
        assert "next.config.js" in profile.danger_zones
        assert "src/lib" in profile.danger_zones
        assert "node_modules" in profile.danger_zones

    @pytest.mark.asyncio
    async def test_node_modules_never_profiled(self, next_app_reader, registry):
        profile = (await profile_codebase(next_app_reader, registry, OPTIONS)).profile

        assert not any("node_modules" in p.file_path for p in profile.pages)

    @pytest.mark.asyncio
    async def test_custom_exclude_paths(self, next_app_reader, registry):
        options = ProfilerOptions(repo_id="acme", commit_hash="abc", exclude_paths=["app/blog/"])

        profile = (await profile_codebase(next_app_reader, registry, options)).profile

        assert "/blog/hello" not in [p.path for p in profile.pages]

    @pytest.mark.asyncio
    async def test_profile_round_trips_through_dict(self, next_app_reader, registry):
        profile = (await profile_codebase(next_app_reader, registry, OPTIONS)).profile

        restored = type(profile).from_dict(profile.to_dict())

        assert restored == profile


class TestOtherFrameworkProfiles:
    @pytest.mark.asyncio
    async def test_next_pages(self, next_pages_reader, registry):
        profile = (await profile_codebase(next_pages_reader, registry, OPTIONS)).profile
        pages = {p.path: p for p in profile.pages}

        assert profile.framework == FrameworkType.NEXTJS_PAGES
        assert profile.detection_confidence == Confidence.HIGH
        assert set(pages) == {"/", "/contact"}
        assert pages["/"].title == "Pages Home"
        assert pages["/"].description == "A pages router site."
        assert pages["/contact"].title == "Contact us"
        assert profile.seo_patterns.existing_robots == "public/robots.txt"
        assert profile.structure.layout_files == ["pages/_app.tsx"]
        assert profile.build_system.package_manager == "yarn"

    @pytest.mark.asyncio
    async def test_astro(self, astro_reader, registry):
        profile = (await profile_codebase(astro_reader, registry, OPTIONS)).profile
        pages = {p.path: p for p in profile.pages}

        assert profile.framework == FrameworkType.ASTRO
        assert profile.framework_version == "4.0.0"
        assert set(pages) == {"/", "/docs/intro"}
        assert pages["/"].title == "Astro Home"
        assert pages["/"].description == "Built with Astro"
        assert pages["/docs/intro"].title == "Introduction"
        assert pages["/docs/intro"].description is None
        assert profile.structure.pages_dir == "src/pages"
        assert profile.structure.content_dir == "src/content"
        assert "astro.config.mjs" in profile.danger_zones

    @pytest.mark.asyncio
    async def test_plain_html(self, html_reader, registry):
        profile = (await profile_codebase(html_reader, registry, OPTIONS)).profile
        pages = {p.path: p for p in profile.pages}

        assert profile.framework == FrameworkType.HTML
        assert profile.detection_confidence == Confidence.HIGH
        assert set(pages) == {"/", "/about"}
        assert pages["/"].internal_links == ["/about.html"]
        assert profile.structure.pages_dir == "."


class TestDegradedProfiling:
    @pytest.mark.asyncio
    async def test_unreadable_page_is_skipped_with_warning(self, registry):
        reader = InMemoryFileReader(NEXT_APP_REPO, unreadable={"app/about/page.tsx"})

        result = await CodebaseProfiler(reader, registry, OPTIONS).profile()

        assert "/about" not in [p.path for p in result.profile.pages]
        assert len(result.profile.pages) == 2
        assert len(result.warnings) == 1
        warning = result.warnings[0]
        assert warning.kind == WarningKind.FILE_UNREADABLE
        assert warning.file == "app/about/page.tsx"

    @pytest.mark.asyncio
    async def test_unknown_tree_is_ambiguous(self, registry):
        reader = InMemoryFileReader({"README.md": "# Notes\n", "docs/guide.html": "<title>Guide</title>"})

        result = await profile_codebase(reader, registry, OPTIONS)

        assert result.profile.framework == FrameworkType.UNKNOWN
        assert result.profile.detection_confidence == Confidence.LOW
        assert [w.kind for w in result.warnings] == [WarningKind.DETECTION_AMBIGUOUS]
        assert [p.file_path for p in result.profile.pages] == ["docs/guide.html"]

    @pytest.mark.asyncio
    async def test_reader_without_mtime_uses_scan_time(self, registry):
        reader = InMemoryFileReader({"index.html": "<title>Home</title>"})

        profile = (await profile_codebase(reader, registry, OPTIONS)).profile

        assert profile.pages[0].last_modified == profile.scanned_at

    @pytest.mark.asyncio
    async def test_empty_repository(self, registry):
        result = await profile_codebase(InMemoryFileReader({}), registry, OPTIONS)

        assert result.profile.pages == []
        assert result.profile.framework == FrameworkType.UNKNOWN
