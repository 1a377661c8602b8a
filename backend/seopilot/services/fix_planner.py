"""
Deterministic fixes for site-global issues.

Missing sitemap, robots.txt and Organization/WebSite schema can be fixed
without looking at page content, so they are planned here rather than by
the LLM fix generator.
"""

import logging

from seopilot.services.frameworks import HandlerRegistry
from seopilot.services.profiler import is_safe_path
from seopilot.services.robots import RobotsGenerator
from seopilot.services.schema_markup import OrganizationData, SchemaGenerator, WebSiteData
from seopilot.services.sitemap import SitemapGenerator
from seopilot.services.types import (
    CodebaseProfile,
    CodeFix,
    FixAction,
    FrameworkType,
    SchemaMarkup,
    SEOIssue,
    issue_id,
)

logger = logging.getLogger(__name__)

COMPONENT_EXTENSIONS = {
    FrameworkType.NEXTJS_APP: "tsx",
    FrameworkType.NEXTJS_PAGES: "tsx",
    FrameworkType.ASTRO: "astro",
}


class GlobalFixPlanner:
    def __init__(
        self,
        registry: HandlerRegistry,
        domain: str,
        site_name: str,
        robots: RobotsGenerator | None = None,
    ):
        self.registry = registry
        self.domain = domain.rstrip("/")
        self.site_name = site_name
        self.robots = robots or RobotsGenerator()

    def plan(self, profile: CodebaseProfile, issues: list[SEOIssue]) -> list[CodeFix]:
        ids = {i.id for i in issues}
        fixes: list[CodeFix] = []
        if issue_id("missing-sitemap") in ids:
            fixes += self.plan_sitemap(profile)
        if issue_id("missing-robots") in ids:
            fixes += self.plan_robots(profile)
        if issue_id("missing-schema") in ids:
            fixes += self.plan_schema(profile)

        safe = [f for f in fixes if self._is_writable(profile, f)]
        logger.info(f"[FIX] Planned {len(safe)} global fixes for {profile.repo_id}")
        return safe

    def plan_sitemap(self, profile: CodebaseProfile) -> list[CodeFix]:
        handler = self.registry.get(profile.framework)
        entries = SitemapGenerator(self.domain).generate(profile.pages)
        path = handler.get_sitemap_path()
        return [CodeFix(
            issue_id=issue_id("missing-sitemap"),
            file=path,
            action=FixAction.CREATE,
            content=handler.generate_sitemap_code(entries),
            description=f"Add sitemap with {len(entries)} URLs at {path}",
        )]

    def plan_robots(self, profile: CodebaseProfile) -> list[CodeFix]:
        path, content = self.robots.generate_for_profile(self.domain, profile, self.registry)
        return [CodeFix(
            issue_id=issue_id("missing-robots"),
            file=path,
            action=FixAction.CREATE,
            content=content,
            description=f"Add robots.txt rules at {path}",
        )]

    def plan_schema(self, profile: CodebaseProfile) -> list[CodeFix]:
        handler = self.registry.get(profile.framework)
        generator = SchemaGenerator(self.domain)
        schemas = [
            generator.organization(OrganizationData(name=self.site_name, url=self.domain)),
            generator.website(WebSiteData(name=self.site_name, url=self.domain)),
        ]

        extension = COMPONENT_EXTENSIONS.get(profile.framework)
        if extension is None:
            return self._inline_schema_fix(profile, handler.generate_schema_code, schemas)

        return [
            CodeFix(
                issue_id=issue_id("missing-schema"),
                file=f"{profile.structure.components_dir}/{schema.type}Schema.{extension}",
                action=FixAction.CREATE,
                content=handler.generate_schema_code(schema),
                description=f"Add {schema.type} schema markup component",
            )
            for schema in schemas
        ]

    def _inline_schema_fix(self, profile: CodebaseProfile, render, schemas: list[SchemaMarkup]) -> list[CodeFix]:
        home = next((p for p in profile.pages if p.path == "/"), None)
        if home is None:
            logger.info(f"[FIX] No home page to embed schema markup in for {profile.repo_id}")
            return []

        markup = "\n".join(render(schema) for schema in schemas)
        return [CodeFix(
            issue_id=issue_id("missing-schema"),
            file=home.file_path,
            action=FixAction.MODIFY,
            search="</head>",
            replace=f"{markup}\n</head>",
            description="Add Organization and WebSite schema markup to the home page head",
        )]

    @staticmethod
    def _is_writable(profile: CodebaseProfile, fix: CodeFix) -> bool:
        if is_safe_path(profile, fix.file):
            return True
        logger.info(f"[FIX] Not planning {fix.issue_id}: {fix.file} is in a danger zone")
        return False
