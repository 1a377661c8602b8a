"""
SEO issue engine.

Runs deterministic rule checks over a CodebaseProfile and optionally merges
issues from a supplemental analyzer (LLM). Issue ids are `<type>:<scope>`
so repeated scans of the same tree produce the same ids.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Protocol

from seopilot.config import settings
from seopilot.services.types import (
    CodebaseProfile,
    IssueSeverity,
    PageInfo,
    PipelineWarning,
    SEOIssue,
    WarningKind,
    issue_id,
)

logger = logging.getLogger(__name__)

RULE_ISSUE_TYPES = {
    "missing-meta-title",
    "missing-meta-description",
    "duplicate-title",
    "duplicate-description",
    "title-too-long",
    "description-too-long",
    "missing-og-image",
    "missing-sitemap",
    "missing-robots",
    "missing-schema",
    "missing-alt-text",
    "thin-content",
    "orphan-page",
}

NON_CONTENT_PATTERNS = [
    "/api/",
    "/login",
    "/signup",
    "/register",
    "/admin",
    "/dashboard",
    "/settings",
    "/profile",
    "/auth/",
    "/404",
    "/500",
]

SEVERITY_WEIGHTS = {
    IssueSeverity.CRITICAL: 10,
    IssueSeverity.WARNING: 3,
    IssueSeverity.INFO: 1,
}


class SupplementalAnalyzer(Protocol):
    async def find_issues(self, profile: CodebaseProfile) -> list[SEOIssue]: ...


@dataclass
class AnalyzerConfig:
    max_title_length: int = 60
    max_description_length: int = 155
    min_word_count: int = 300

    @classmethod
    def from_settings(cls) -> "AnalyzerConfig":
        return cls(
            max_title_length=settings.SEO_MAX_TITLE_LENGTH,
            max_description_length=settings.SEO_MAX_DESCRIPTION_LENGTH,
            min_word_count=settings.SEO_MIN_WORD_COUNT,
        )


@dataclass
class AnalysisResult:
    issues: list[SEOIssue] = field(default_factory=list)
    warnings: list[PipelineWarning] = field(default_factory=list)


def _page_issue(
    issue_type: str,
    severity: IssueSeverity,
    page: PageInfo,
    description: str,
    recommendation: str,
    auto_fixable: bool,
    scope: str | None = None,
) -> SEOIssue:
    return SEOIssue(
        id=issue_id(issue_type, scope or page.path),
        type=issue_type,
        severity=severity,
        page=page.path,
        file=page.file_path,
        description=description,
        recommendation=recommendation,
        auto_fixable=auto_fixable,
    )


def is_non_content_page(path: str) -> bool:
    return any(pattern in path for pattern in NON_CONTENT_PATTERNS)


class SEOIssueEngine:
    """Rule-based SEO checks plus an optional supplemental pass."""

    def __init__(
        self,
        config: AnalyzerConfig | None = None,
        supplemental: SupplementalAnalyzer | None = None,
    ):
        self.config = config or AnalyzerConfig()
        self.supplemental = supplemental

    def run_rules(self, profile: CodebaseProfile) -> list[SEOIssue]:
        pages = profile.pages
        issues: list[SEOIssue] = []
        issues += self.check_missing_meta(pages)
        issues += self.check_duplicate_meta(pages)
        issues += self.check_meta_length(pages)
        issues += self.check_missing_og_images(pages)
        issues += self.check_missing_sitemap(profile)
        issues += self.check_missing_robots(profile)
        issues += self.check_missing_schema(pages)
        issues += self.check_missing_alt_text(pages)
        issues += self.check_thin_content(pages)
        issues += self.check_orphan_pages(pages)
        return issues

    async def analyze(self, profile: CodebaseProfile) -> AnalysisResult:
        logger.info(f"[ANALYZE] Checking {len(profile.pages)} pages of {profile.repo_id}")
        result = AnalysisResult(issues=self.run_rules(profile))

        if self.supplemental is not None:
            try:
                extra = await self.supplemental.find_issues(profile)
            except Exception as e:
                message = f"Supplemental analysis failed, continuing with rule-based results: {e}"
                logger.warning(f"[ANALYZE] {message}")
                result.warnings.append(
                    PipelineWarning(kind=WarningKind.SUPPLEMENTAL_ANALYSIS_FAILED, message=message)
                )
            else:
                result.issues += [i for i in extra if i.type not in RULE_ISSUE_TYPES]

        result.issues = deduplicate_issues(result.issues)
        logger.info(f"[ANALYZE] Found {len(result.issues)} issues for {profile.repo_id}")
        return result

    def check_missing_meta(self, pages: list[PageInfo]) -> list[SEOIssue]:
        issues = []
        for page in pages:
            if not page.title:
                issues.append(_page_issue(
                    "missing-meta-title", IssueSeverity.CRITICAL, page,
                    f'Page "{page.path}" is missing a title tag',
                    "Add a descriptive title tag that includes relevant keywords",
                    auto_fixable=True,
                ))
            if not page.description:
                issues.append(_page_issue(
                    "missing-meta-description", IssueSeverity.CRITICAL, page,
                    f'Page "{page.path}" is missing a meta description',
                    "Add a compelling meta description (150-155 characters) that summarizes the page content",
                    auto_fixable=True,
                ))
        return issues

    def check_duplicate_meta(self, pages: list[PageInfo]) -> list[SEOIssue]:
        issues = []

        by_title: dict[str, list[PageInfo]] = defaultdict(list)
        for page in pages:
            if page.title:
                by_title[page.title].append(page)
        for title, group in by_title.items():
            if len(group) < 2:
                continue
            for page in group:
                issues.append(_page_issue(
                    "duplicate-title", IssueSeverity.WARNING, page,
                    f'Title "{title}" is used on {len(group)} pages',
                    "Each page should have a unique title that describes its specific content",
                    auto_fixable=True,
                ))

        by_description: dict[str, list[PageInfo]] = defaultdict(list)
        for page in pages:
            if page.description:
                by_description[page.description].append(page)
        for group in by_description.values():
            if len(group) < 2:
                continue
            for page in group:
                issues.append(_page_issue(
                    "duplicate-description", IssueSeverity.WARNING, page,
                    f"Meta description is duplicated across {len(group)} pages",
                    "Each page should have a unique meta description",
                    auto_fixable=True,
                ))

        return issues

    def check_meta_length(self, pages: list[PageInfo]) -> list[SEOIssue]:
        issues = []
        max_title = self.config.max_title_length
        max_desc = self.config.max_description_length
        for page in pages:
            if page.title and len(page.title) > max_title:
                issues.append(_page_issue(
                    "title-too-long", IssueSeverity.WARNING, page,
                    f"Title is {len(page.title)} characters (max {max_title})",
                    f"Shorten the title to {max_title} characters or less to prevent truncation in search results",
                    auto_fixable=True,
                ))
            if page.description and len(page.description) > max_desc:
                issues.append(_page_issue(
                    "description-too-long", IssueSeverity.INFO, page,
                    f"Meta description is {len(page.description)} characters (max {max_desc})",
                    f"Shorten the description to {max_desc} characters to prevent truncation in search results",
                    auto_fixable=True,
                ))
        return issues

    def check_missing_og_images(self, pages: list[PageInfo]) -> list[SEOIssue]:
        return [
            _page_issue(
                "missing-og-image", IssueSeverity.WARNING, page,
                f'Page "{page.path}" has no Open Graph image',
                "Add an og:image meta tag with a 1200x630 image for better social sharing",
                auto_fixable=False,
            )
            for page in pages
            if not page.has_og_image
        ]

    def check_missing_sitemap(self, profile: CodebaseProfile) -> list[SEOIssue]:
        if profile.seo_patterns.existing_sitemap:
            return []
        return [SEOIssue(
            id=issue_id("missing-sitemap"),
            type="missing-sitemap",
            severity=IssueSeverity.CRITICAL,
            description="No sitemap.xml found in the project",
            recommendation="Add a sitemap.xml to help search engines discover and index your pages",
            auto_fixable=True,
        )]

    def check_missing_robots(self, profile: CodebaseProfile) -> list[SEOIssue]:
        if profile.seo_patterns.existing_robots:
            return []
        return [SEOIssue(
            id=issue_id("missing-robots"),
            type="missing-robots",
            severity=IssueSeverity.WARNING,
            description="No robots.txt found in the project",
            recommendation="Add a robots.txt to control search engine crawling and link to your sitemap",
            auto_fixable=True,
        )]

    def check_missing_schema(self, pages: list[PageInfo]) -> list[SEOIssue]:
        issues = []
        if not any(p.has_schema and p.path == "/" for p in pages):
            issues.append(SEOIssue(
                id=issue_id("missing-schema"),
                type="missing-schema",
                severity=IssueSeverity.INFO,
                description="No Organization or WebSite schema markup found",
                recommendation="Add JSON-LD schema markup for your organization and website",
                auto_fixable=True,
            ))
        for page in pages:
            if "/blog/" in page.path and not page.has_schema:
                issues.append(_page_issue(
                    "missing-schema", IssueSeverity.INFO, page,
                    f'Blog post "{page.path}" has no Article schema',
                    "Add BlogPosting or Article schema markup for better search appearance",
                    auto_fixable=True,
                ))
        return issues

    def check_missing_alt_text(self, pages: list[PageInfo]) -> list[SEOIssue]:
        return [
            _page_issue(
                "missing-alt-text", IssueSeverity.WARNING, page,
                f'Image "{image.src}" is missing alt text',
                "Add descriptive alt text that includes relevant keywords",
                auto_fixable=False,
                scope=f"{page.path}:{image.src}",
            )
            for page in pages
            for image in page.images
            if not image.alt
        ]

    def check_thin_content(self, pages: list[PageInfo]) -> list[SEOIssue]:
        min_words = self.config.min_word_count
        return [
            _page_issue(
                "thin-content", IssueSeverity.WARNING, page,
                f"Page has only {page.word_count} words (min {min_words})",
                "Add more valuable content to improve rankings. "
                "Consider expanding with examples, explanations, or FAQs",
                auto_fixable=False,
            )
            for page in pages
            if not is_non_content_page(page.path) and page.word_count < min_words
        ]

    def check_orphan_pages(self, pages: list[PageInfo]) -> list[SEOIssue]:
        linked = {link for page in pages for link in page.internal_links if link != page.path}
        return [
            _page_issue(
                "orphan-page", IssueSeverity.INFO, page,
                f'Page "{page.path}" has no internal links pointing to it',
                "Add internal links from relevant pages to improve discoverability",
                auto_fixable=False,
            )
            for page in pages
            if page.path != "/" and page.path not in linked
        ]


def deduplicate_issues(issues: list[SEOIssue]) -> list[SEOIssue]:
    """Keep the first issue for each id; rule issues precede supplemental ones."""
    seen: dict[str, SEOIssue] = {}
    for issue in issues:
        seen.setdefault(issue.id, issue)
    return list(seen.values())


def summarize(issues: list[SEOIssue]) -> dict:
    """Counts by severity and type, plus a 0-100 health score."""
    by_severity: dict[str, int] = defaultdict(int)
    by_type: dict[str, int] = defaultdict(int)
    penalty = 0
    for issue in issues:
        by_severity[issue.severity.value] += 1
        by_type[issue.type] += 1
        penalty += SEVERITY_WEIGHTS.get(issue.severity, 1)

    return {
        "total_issues": len(issues),
        "auto_fixable": sum(1 for i in issues if i.auto_fixable),
        "by_severity": dict(by_severity),
        "by_type": dict(by_type),
        "score": max(0, 100 - penalty),
    }
