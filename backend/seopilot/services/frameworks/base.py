"""
Capability surface shared by all framework handlers, plus the rendering
helpers they have in common (frontmatter, XML sitemap, robots.txt, escaping).
"""

import json
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Literal, Protocol

from seopilot.services.types import BlogPost, FrameworkType, SchemaMarkup, SitemapEntry

SchemaLocation = Literal["head", "component", "layout"]

SITEMAP_XMLNS = "http://www.sitemaps.org/schemas/sitemap/0.9"


@dataclass
class ExtractedMeta:
    title: str | None = None
    description: str | None = None


@dataclass
class MetaInput:
    title: str
    description: str
    og_image: str | None = None
    canonical: str | None = None
    keywords: list[str] = field(default_factory=list)


class FrameworkHandler(Protocol):
    """Framework-specific SEO operations."""

    framework: FrameworkType

    def get_page_files(self, files: list[str]) -> list[str]: ...

    def get_layout_files(self, files: list[str]) -> list[str]: ...

    def extract_meta(self, content: str) -> ExtractedMeta | None: ...

    def generate_meta_code(self, meta: MetaInput) -> str: ...

    def generate_sitemap_code(self, pages: list[SitemapEntry]) -> str: ...

    def generate_robots_code(self, domain: str) -> str: ...

    def generate_schema_code(self, schema: SchemaMarkup) -> str: ...

    def get_sitemap_path(self) -> str: ...

    def get_robots_path(self) -> str: ...

    def get_schema_location(self) -> SchemaLocation: ...

    def get_blog_directory(self) -> str: ...

    def format_blog_post(self, post: BlogPost) -> str: ...

    def file_path_to_url_path(self, file_path: str) -> str: ...


# Routing conventions: (prefix to strip, suffixes to strip) per framework.
_ROUTE_RULES: dict[FrameworkType, list[re.Pattern]] = {
    FrameworkType.NEXTJS_APP: [re.compile(r"^(src/)?app"), re.compile(r"/page\.(tsx|jsx|js)$")],
    FrameworkType.NEXTJS_PAGES: [re.compile(r"^(src/)?pages"), re.compile(r"\.(tsx|jsx|js)$")],
    FrameworkType.ASTRO: [
        re.compile(r"^src/pages"),
        re.compile(r"\.astro$"),
        re.compile(r"\.(md|mdx)$"),
    ],
    FrameworkType.HTML: [re.compile(r"\.html?$")],
}
_DEFAULT_ROUTE_RULE = [re.compile(r"\.(tsx|jsx|js|vue|svelte)$")]


def file_path_to_url_path(file_path: str, framework: FrameworkType) -> str:
    """Map a source file to the URL path it serves, e.g. `app/blog/page.tsx` -> `/blog`."""
    path = file_path
    for pattern in _ROUTE_RULES.get(framework, _DEFAULT_ROUTE_RULE):
        path = pattern.sub("", path, count=1)

    path = re.sub(r"/index$", "", path)
    if path == "index":
        path = ""
    if not path.startswith("/"):
        path = f"/{path}"
    return path


def escape_xml(value: str) -> str:
    return (
        value.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def escape_html(value: str) -> str:
    return (
        value.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )


def escape_js_string(value: str) -> str:
    """Escape for a single-quoted JS string literal."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def to_json_ld(schema: SchemaMarkup) -> dict[str, Any]:
    return {"@context": "https://schema.org", "@type": schema.type, **schema.data}


def dump_json(data: Any, indent: int | None = 2) -> str:
    return json.dumps(data, indent=indent, ensure_ascii=False)


def _format_datetime(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


def generate_frontmatter(data: dict[str, Any]) -> str:
    """Render a YAML frontmatter block. `None` values are omitted."""
    lines = ["---"]
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, str):
            escaped = value.replace('"', '\\"')
            lines.append(f'{key}: "{escaped}"')
        elif isinstance(value, (list, tuple)):
            lines.append(f"{key}:")
            for item in value:
                escaped = str(item).replace('"', '\\"')
                lines.append(f'  - "{escaped}"')
        elif isinstance(value, datetime):
            lines.append(f"{key}: {_format_datetime(value)}")
        elif isinstance(value, date):
            lines.append(f"{key}: {value.isoformat()}")
        else:
            lines.append(f"{key}: {json.dumps(value)}")
    lines.append("---")
    return "\n".join(lines)


def blog_frontmatter_fields(post: BlogPost, date_key: str, image_key: str) -> dict[str, Any]:
    fields = {
        "title": post.title,
        "description": post.meta_description,
        date_key: post.published_at,
        "author": post.author,
        "keywords": post.keywords,
        image_key: post.featured_image.filename if post.featured_image else None,
    }
    fields.update(post.frontmatter)
    return fields


def generate_xml_sitemap(pages: list[SitemapEntry]) -> str:
    url_entries = [
        "  <url>\n"
        f"    <loc>{escape_xml(page.url)}</loc>\n"
        f"    <lastmod>{page.last_modified}</lastmod>\n"
        f"    <changefreq>{page.change_frequency}</changefreq>\n"
        f"    <priority>{page.priority:.1f}</priority>\n"
        "  </url>"
        for page in pages
    ]
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<urlset xmlns="{SITEMAP_XMLNS}">\n'
        + "\n".join(url_entries)
        + "\n</urlset>"
    )


def generate_standard_robots(domain: str, disallow_paths: list[str] | None = None) -> str:
    lines = [
        "User-agent: *",
        "Allow: /",
        *[f"Disallow: {p}" for p in disallow_paths or []],
        "",
        f"Sitemap: {domain}/sitemap.xml",
    ]
    return "\n".join(lines)
