"""
Sitemap generation.

Turns profiled pages into prioritized sitemap entries and renders them as
XML or as framework-specific code through the handler registry.
"""

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import date

from seopilot.services.frameworks import HandlerRegistry
from seopilot.services.frameworks.base import SITEMAP_XMLNS, escape_xml, generate_xml_sitemap
from seopilot.services.types import CodebaseProfile, PageInfo, SitemapEntry

logger = logging.getLogger(__name__)

MAX_URLS_PER_SITEMAP = 50000


@dataclass
class SitemapConfig:
    default_change_freq: str = "weekly"
    include_last_mod: bool = True
    exclude_paths: list[str] = field(
        default_factory=lambda: ["/api/", "/admin/", "/login", "/signup", "/404", "/500"]
    )
    # regex pattern -> priority; checked before the built-in rules
    priority_overrides: dict[str, float] = field(default_factory=dict)


def localname(tag: str) -> str:
    if "}" in tag:
        return tag.rsplit("}", 1)[-1]
    return tag


def child_text(node: ET.Element, name: str) -> str | None:
    for child in node:
        if localname(child.tag) == name and child.text:
            return child.text.strip()
    return None


def parse_sitemap_xml(xml_text: str) -> list[SitemapEntry]:
    """Recover entries from a `<urlset>` document."""
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as exc:
        raise ValueError(f"Invalid sitemap XML: {exc}") from exc

    if localname(root.tag) != "urlset":
        raise ValueError(f"Unsupported sitemap root element: {localname(root.tag)}")

    entries = []
    for url_node in root:
        if localname(url_node.tag) != "url":
            continue
        loc = child_text(url_node, "loc")
        if not loc:
            continue
        entries.append(
            SitemapEntry(
                url=loc,
                last_modified=child_text(url_node, "lastmod") or "",
                change_frequency=child_text(url_node, "changefreq") or "weekly",
                priority=float(child_text(url_node, "priority") or 0.5),
            )
        )
    return entries


class SitemapGenerator:
    def __init__(self, domain: str, config: SitemapConfig | None = None):
        self.domain = domain.rstrip("/")
        self.config = config or SitemapConfig()

    def generate(self, pages: list[PageInfo]) -> list[SitemapEntry]:
        today = date.today().isoformat()
        entries = []
        for page in pages:
            if self._should_exclude(page.path):
                continue
            # Dynamic routes
            if "[" in page.path or "]" in page.path:
                continue

            last_mod = page.last_modified.date().isoformat() if self.config.include_last_mod else today
            entries.append(
                SitemapEntry(
                    url=f"{self.domain}{page.path}",
                    last_modified=last_mod,
                    change_frequency=self.get_change_frequency(page.path),
                    priority=self.get_priority(page.path),
                )
            )

        entries.sort(key=lambda e: (-e.priority, e.url))
        return entries

    def to_xml(self, entries: list[SitemapEntry]) -> str:
        return generate_xml_sitemap(entries)

    def to_sitemap_index(self, sitemap_urls: list[str]) -> str:
        today = date.today().isoformat()
        sitemaps = [
            "  <sitemap>\n"
            f"    <loc>{escape_xml(url)}</loc>\n"
            f"    <lastmod>{today}</lastmod>\n"
            "  </sitemap>"
            for url in sitemap_urls
        ]
        return (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            f'<sitemapindex xmlns="{SITEMAP_XMLNS}">\n'
            + "\n".join(sitemaps)
            + "\n</sitemapindex>"
        )

    def generate_code(
        self, entries: list[SitemapEntry], profile: CodebaseProfile, registry: HandlerRegistry
    ) -> str:
        return registry.get(profile.framework).generate_sitemap_code(entries)

    def get_sitemap_path(self, profile: CodebaseProfile, registry: HandlerRegistry) -> str:
        return registry.get(profile.framework).get_sitemap_path()

    def get_change_frequency(self, path: str) -> str:
        if "/blog/" in path:
            return "monthly"
        if path == "/":
            return "daily"
        if "/docs/" in path:
            return "weekly"
        return self.config.default_change_freq

    def get_priority(self, path: str) -> float:
        for pattern, priority in self.config.priority_overrides.items():
            if re.search(pattern, path):
                return priority

        if path == "/":
            return 1.0

        depth = len([s for s in path.split("/") if s])
        if depth == 1:
            return 0.8
        if path in ("/blog", "/blog/"):
            return 0.7
        if path.startswith("/blog/"):
            return 0.6
        if path.startswith("/docs/"):
            return 0.7 if depth == 2 else 0.6
        if depth >= 3:
            return 0.4
        return 0.5

    def split_for_large_sites(
        self, entries: list[SitemapEntry], max_per_sitemap: int = MAX_URLS_PER_SITEMAP
    ) -> list[list[SitemapEntry]]:
        return [entries[i:i + max_per_sitemap] for i in range(0, len(entries), max_per_sitemap)]

    def add_additional_urls(
        self, entries: list[SitemapEntry], additional: list[dict]
    ) -> list[SitemapEntry]:
        """Append URLs not discovered as pages. Existing URLs are left alone."""
        today = date.today().isoformat()
        existing = {e.url for e in entries}
        new_entries = [
            SitemapEntry(
                url=item["url"],
                last_modified=today,
                change_frequency=item.get("change_frequency") or self.config.default_change_freq,
                priority=item.get("priority", 0.5),
            )
            for item in additional
            if item["url"] not in existing
        ]
        return [*entries, *new_entries]

    def _should_exclude(self, path: str) -> bool:
        return any(exclude in path for exclude in self.config.exclude_paths)


def generate_sitemap_xml(pages: list[PageInfo], domain: str) -> str:
    generator = SitemapGenerator(domain)
    return generator.to_xml(generator.generate(pages))
