"""
Plain HTML handler. Also the fallback for frameworks without a dedicated handler.
"""

import re

from bs4 import BeautifulSoup

from seopilot.services.frameworks.base import (
    ExtractedMeta,
    MetaInput,
    SchemaLocation,
    dump_json,
    escape_html,
    file_path_to_url_path,
    generate_standard_robots,
    generate_xml_sitemap,
    to_json_ld,
)
from seopilot.services.types import BlogPost, FrameworkType, SchemaMarkup, SitemapEntry

LAYOUT_PATTERNS = [
    re.compile(r"layout\.html$"),
    re.compile(r"template\.html$"),
    re.compile(r"base\.html$"),
    re.compile(r"_layout\.html$"),
    re.compile(r"includes/header\.html$"),
    re.compile(r"partials/head\.html$"),
]


def markdown_to_html(markdown: str) -> str:
    """Minimal markdown conversion: headings, bold, italic, links, paragraphs."""
    html = re.sub(r"^### (.+)$", r"<h3>\1</h3>", markdown, flags=re.M)
    html = re.sub(r"^## (.+)$", r"<h2>\1</h2>", html, flags=re.M)
    html = re.sub(r"^# (.+)$", r"<h1>\1</h1>", html, flags=re.M)
    html = re.sub(r"\*\*(.+?)\*\*", r"<strong>\1</strong>", html)
    html = re.sub(r"\*(.+?)\*", r"<em>\1</em>", html)
    html = re.sub(r"\[([^\]]+)\]\(([^)]+)\)", r'<a href="\2">\1</a>', html)
    html = html.replace("\n\n", "</p><p>")
    html = re.sub(
        r"^(.+)$",
        lambda m: m.group(0) if m.group(0).startswith("<") else f"<p>{m.group(0)}</p>",
        html,
        flags=re.M,
    )
    html = html.replace("<p></p>", "")
    html = re.sub(r"<p>(<h[1-6]>)", r"\1", html)
    html = re.sub(r"(</h[1-6]>)</p>", r"\1", html)
    return html


class HTMLHandler:
    framework = FrameworkType.HTML

    def get_page_files(self, files: list[str]) -> list[str]:
        return [f for f in files if f.endswith(".html") or f.endswith(".htm")]

    def get_layout_files(self, files: list[str]) -> list[str]:
        return [f for f in files if any(p.search(f) for p in LAYOUT_PATTERNS)]

    def extract_meta(self, content: str) -> ExtractedMeta | None:
        soup = BeautifulSoup(content, "html.parser")
        result = ExtractedMeta()

        title_tag = soup.find("title")
        if title_tag and title_tag.get_text(strip=True):
            result.title = title_tag.get_text(strip=True)

        description_tag = soup.find(
            "meta", attrs={"name": lambda v: v is not None and v.lower() == "description"}
        )
        if description_tag and (description_tag.get("content") or "").strip():
            result.description = description_tag["content"].strip()

        return result if result.title or result.description else None

    def generate_meta_code(self, meta: MetaInput) -> str:
        title = escape_html(meta.title)
        description = escape_html(meta.description)
        lines = [
            "<!-- SEO Meta Tags -->",
            f"<title>{title}</title>",
            f'<meta name="description" content="{description}">',
        ]
        if meta.canonical:
            lines.append(f'<link rel="canonical" href="{meta.canonical}">')
        if meta.keywords:
            lines.append(f'<meta name="keywords" content="{", ".join(meta.keywords)}">')

        lines += [
            "",
            "<!-- Open Graph -->",
            f'<meta property="og:title" content="{title}">',
            f'<meta property="og:description" content="{description}">',
            '<meta property="og:type" content="website">',
        ]
        if meta.og_image:
            lines += [
                f'<meta property="og:image" content="{meta.og_image}">',
                '<meta property="og:image:width" content="1200">',
                '<meta property="og:image:height" content="630">',
                "",
                "<!-- Twitter -->",
                '<meta name="twitter:card" content="summary_large_image">',
                f'<meta name="twitter:title" content="{title}">',
                f'<meta name="twitter:description" content="{description}">',
                f'<meta name="twitter:image" content="{meta.og_image}">',
            ]
        return "\n".join(lines)

    def generate_sitemap_code(self, pages: list[SitemapEntry]) -> str:
        return generate_xml_sitemap(pages)

    def generate_robots_code(self, domain: str) -> str:
        return generate_standard_robots(domain)

    def generate_schema_code(self, schema: SchemaMarkup) -> str:
        return (
            "<!-- Schema.org JSON-LD -->\n"
            '<script type="application/ld+json">\n'
            f"{dump_json(to_json_ld(schema))}\n"
            "</script>"
        )

    def get_sitemap_path(self) -> str:
        return "sitemap.xml"

    def get_robots_path(self) -> str:
        return "robots.txt"

    def get_schema_location(self) -> SchemaLocation:
        return "head"

    def get_blog_directory(self) -> str:
        return "blog"

    def format_blog_post(self, post: BlogPost) -> str:
        image = post.featured_image
        meta = self.generate_meta_code(
            MetaInput(
                title=post.title,
                description=post.meta_description,
                og_image=image.filename if image else None,
                keywords=post.keywords,
            )
        )
        schema_data = {
            "headline": post.title,
            "description": post.meta_description,
            "author": {"@type": "Person", "name": post.author},
            "datePublished": post.published_at.isoformat(),
        }
        if image:
            schema_data["image"] = image.filename
        schema = self.generate_schema_code(SchemaMarkup(type="BlogPosting", data=schema_data))

        published = f"{post.published_at:%B} {post.published_at.day}, {post.published_at.year}"
        image_tag = (
            f'<img src="{image.filename}" alt="{escape_html(image.alt_text)}">' if image else ""
        )

        return (
            "<!DOCTYPE html>\n"
            '<html lang="en">\n'
            "<head>\n"
            '  <meta charset="UTF-8">\n'
            '  <meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
            f"  {meta}\n"
            f"  {schema}\n"
            "</head>\n"
            "<body>\n"
            "  <article>\n"
            "    <header>\n"
            f"      <h1>{escape_html(post.title)}</h1>\n"
            '      <p class="meta">\n'
            f"        By {escape_html(post.author)} on {published}\n"
            "      </p>\n"
            "    </header>\n"
            f"    {image_tag}\n"
            "    <main>\n"
            f"      {markdown_to_html(post.content)}\n"
            "    </main>\n"
            "  </article>\n"
            "</body>\n"
            "</html>"
        )

    def file_path_to_url_path(self, file_path: str) -> str:
        return file_path_to_url_path(file_path, self.framework)
