"""
Astro handler.

Pages are `.astro`/Markdown files under `src/pages`; meta comes from the
component frontmatter or the `<head>` template.
"""

import re

from seopilot.services.frameworks.base import (
    ExtractedMeta,
    MetaInput,
    SchemaLocation,
    blog_frontmatter_fields,
    dump_json,
    file_path_to_url_path,
    generate_frontmatter,
    generate_standard_robots,
    to_json_ld,
)
from seopilot.services.types import BlogPost, FrameworkType, SchemaMarkup, SitemapEntry

PAGE_RE = re.compile(r"^src/pages/.*\.(astro|md|mdx)$")
LAYOUT_RE = re.compile(r"^src/layouts/.*\.astro$")
FRONTMATTER_RE = re.compile(r"^---\n(.*?)\n---", re.S)
FM_TITLE_RE = re.compile(r"title:\s*[\"']?([^\"'\n]+)[\"']?")
FM_DESCRIPTION_RE = re.compile(r"description:\s*[\"']?([^\"'\n]+)[\"']?")
TITLE_TAG_RE = re.compile(r"<title>([^<{]+)</title>")
DESCRIPTION_META_RE = re.compile(r"<meta\s+name=[\"']description[\"']\s+content=[\"']([^\"']+)[\"']")


def _escape_astro_string(value: str) -> str:
    return value.replace("'", "\\'").replace("\n", "\\n")


class AstroHandler:
    framework = FrameworkType.ASTRO

    def get_page_files(self, files: list[str]) -> list[str]:
        return [f for f in files if PAGE_RE.match(f)]

    def get_layout_files(self, files: list[str]) -> list[str]:
        return [f for f in files if LAYOUT_RE.match(f)]

    def extract_meta(self, content: str) -> ExtractedMeta | None:
        result = ExtractedMeta()

        if frontmatter := FRONTMATTER_RE.match(content):
            block = frontmatter.group(1)
            if title := FM_TITLE_RE.search(block):
                result.title = title.group(1).strip()
            if description := FM_DESCRIPTION_RE.search(block):
                result.description = description.group(1).strip()

        # `<title>{title}</title>` is dynamic and never matches here
        if not result.title:
            if title := TITLE_TAG_RE.search(content):
                result.title = title.group(1).strip()

        if not result.description:
            if description := DESCRIPTION_META_RE.search(content):
                result.description = description.group(1).strip()

        return result if result.title or result.description else None

    def generate_meta_code(self, meta: MetaInput) -> str:
        lines = [
            "---",
            "// SEO Meta Tags Component",
            f"const title = '{_escape_astro_string(meta.title)}';",
            f"const description = '{_escape_astro_string(meta.description)}';",
        ]
        if meta.og_image:
            lines.append(f"const ogImage = '{meta.og_image}';")
        if meta.canonical:
            lines.append(f"const canonical = '{meta.canonical}';")

        lines += [
            "---",
            "",
            "<title>{title}</title>",
            '<meta name="description" content={description} />',
        ]
        if meta.canonical:
            lines.append('<link rel="canonical" href={canonical} />')
        if meta.keywords:
            lines.append(f'<meta name="keywords" content="{", ".join(meta.keywords)}" />')

        lines += [
            "",
            "<!-- Open Graph -->",
            '<meta property="og:title" content={title} />',
            '<meta property="og:description" content={description} />',
            '<meta property="og:type" content="website" />',
        ]
        if meta.og_image:
            lines += [
                '<meta property="og:image" content={ogImage} />',
                '<meta property="og:image:width" content="1200" />',
                '<meta property="og:image:height" content="630" />',
                "",
                "<!-- Twitter -->",
                '<meta name="twitter:card" content="summary_large_image" />',
                '<meta name="twitter:title" content={title} />',
                '<meta name="twitter:description" content={description} />',
                '<meta name="twitter:image" content={ogImage} />',
            ]
        return "\n".join(lines)

    def generate_sitemap_code(self, pages: list[SitemapEntry]) -> str:
        """Render an astro.config.mjs using @astrojs/sitemap. Dynamic routes are dropped."""
        custom_pages = ",\n".join(f"    '{p.url}'" for p in pages if "[" not in p.url)
        site = re.sub(r"/[^/]*$", "", pages[0].url, count=1) if pages else ""
        site = site or "https://example.com"
        return (
            "// Add to astro.config.mjs:\n"
            "// npm install @astrojs/sitemap\n"
            "\n"
            "import { defineConfig } from 'astro/config';\n"
            "import sitemap from '@astrojs/sitemap';\n"
            "\n"
            "export default defineConfig({\n"
            f"  site: '{site}',\n"
            "  integrations: [\n"
            "    sitemap({\n"
            "      changefreq: 'weekly',\n"
            "      priority: 0.7,\n"
            "      lastmod: new Date(),\n"
            "      customPages: [\n"
            f"{custom_pages}\n"
            "      ],\n"
            "    }),\n"
            "  ],\n"
            "});\n"
        )

    def generate_robots_code(self, domain: str) -> str:
        return generate_standard_robots(domain, ["/api/", "/_astro/"])

    def generate_schema_code(self, schema: SchemaMarkup) -> str:
        return (
            "---\n"
            "// Schema.org JSON-LD Component\n"
            f"const schema = {dump_json(to_json_ld(schema))};\n"
            "---\n"
            "\n"
            '<script type="application/ld+json" set:html={JSON.stringify(schema)} />\n'
        )

    def get_sitemap_path(self) -> str:
        return "astro.config.mjs"

    def get_robots_path(self) -> str:
        return "public/robots.txt"

    def get_schema_location(self) -> SchemaLocation:
        return "head"

    def get_blog_directory(self) -> str:
        return "src/content/blog"

    def format_blog_post(self, post: BlogPost) -> str:
        frontmatter = generate_frontmatter(blog_frontmatter_fields(post, "pubDate", "heroImage"))
        return f"{frontmatter}\n\n{post.content}\n"

    def file_path_to_url_path(self, file_path: str) -> str:
        return file_path_to_url_path(file_path, self.framework)
