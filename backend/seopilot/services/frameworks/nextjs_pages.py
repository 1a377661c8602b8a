"""
Next.js Pages Router handler.

Meta tags are rendered through `next/head`; sitemap and robots are static
files in `public/`.
"""

import re

from seopilot.services.frameworks.base import (
    ExtractedMeta,
    MetaInput,
    SchemaLocation,
    blog_frontmatter_fields,
    dump_json,
    escape_html,
    file_path_to_url_path,
    generate_frontmatter,
    generate_standard_robots,
    generate_xml_sitemap,
    to_json_ld,
)
from seopilot.services.types import BlogPost, FrameworkType, SchemaMarkup, SitemapEntry

PAGES_DIR_RE = re.compile(r"^(pages|src/pages)/")
SCRIPT_EXT_RE = re.compile(r"\.(tsx|jsx|js)$")
LAYOUT_RE = re.compile(r"^(pages|src/pages)/_app\.(tsx|jsx|js)$")
SPECIAL_FILES = ("/_app.", "/_document.", "/_error.")

TITLE_RE = re.compile(r"<title>([^<]+)</title>")
TEMPLATE_TITLE_RE = re.compile(r"<title>\{[`']([^`']+)[`']\}</title>")
DESCRIPTION_RE = re.compile(r"<meta\s+name=[\"']description[\"']\s+content=[\"']([^\"']+)[\"']")
DESCRIPTION_ALT_RE = re.compile(r"<meta\s+content=[\"']([^\"']+)[\"']\s+name=[\"']description[\"']")


class NextPagesHandler:
    framework = FrameworkType.NEXTJS_PAGES

    def get_page_files(self, files: list[str]) -> list[str]:
        pages = []
        for f in files:
            if not PAGES_DIR_RE.match(f):
                continue
            if any(special in f for special in SPECIAL_FILES):
                continue
            if "/api/" in f:
                continue
            if SCRIPT_EXT_RE.search(f):
                pages.append(f)
        return pages

    def get_layout_files(self, files: list[str]) -> list[str]:
        return [f for f in files if LAYOUT_RE.match(f)]

    def extract_meta(self, content: str) -> ExtractedMeta | None:
        if "next/head" not in content:
            return None

        result = ExtractedMeta()

        if title := TITLE_RE.search(content):
            result.title = title.group(1).strip()
        if template_title := TEMPLATE_TITLE_RE.search(content):
            result.title = template_title.group(1).strip()

        if description := DESCRIPTION_RE.search(content):
            result.description = description.group(1).strip()
        elif description := DESCRIPTION_ALT_RE.search(content):
            result.description = description.group(1).strip()

        return result if result.title or result.description else None

    def generate_meta_code(self, meta: MetaInput) -> str:
        title = escape_html(meta.title)
        description = escape_html(meta.description)
        lines = [
            "import Head from 'next/head';",
            "",
            "export function PageHead() {",
            "  return (",
            "    <Head>",
            f"      <title>{title}</title>",
            f'      <meta name="description" content="{description}" />',
        ]

        if meta.canonical:
            lines.append(f'      <link rel="canonical" href="{meta.canonical}" />')
        if meta.keywords:
            lines.append(f'      <meta name="keywords" content="{", ".join(meta.keywords)}" />')

        lines += [
            f'      <meta property="og:title" content="{title}" />',
            f'      <meta property="og:description" content="{description}" />',
            '      <meta property="og:type" content="website" />',
        ]

        if meta.og_image:
            lines += [
                f'      <meta property="og:image" content="{meta.og_image}" />',
                '      <meta property="og:image:width" content="1200" />',
                '      <meta property="og:image:height" content="630" />',
                '      <meta name="twitter:card" content="summary_large_image" />',
                f'      <meta name="twitter:image" content="{meta.og_image}" />',
            ]

        lines += ["    </Head>", "  );", "}"]
        return "\n".join(lines)

    def generate_sitemap_code(self, pages: list[SitemapEntry]) -> str:
        return generate_xml_sitemap(pages)

    def generate_robots_code(self, domain: str) -> str:
        return generate_standard_robots(domain, ["/api/", "/admin/"])

    def generate_schema_code(self, schema: SchemaMarkup) -> str:
        return (
            "import Head from 'next/head';\n"
            "\n"
            "export function SchemaMarkup() {\n"
            f"  const schema = {dump_json(to_json_ld(schema))};\n"
            "\n"
            "  return (\n"
            "    <Head>\n"
            "      <script\n"
            '        type="application/ld+json"\n'
            "        dangerouslySetInnerHTML={{ __html: JSON.stringify(schema) }}\n"
            "      />\n"
            "    </Head>\n"
            "  );\n"
            "}\n"
        )

    def get_sitemap_path(self) -> str:
        return "public/sitemap.xml"

    def get_robots_path(self) -> str:
        return "public/robots.txt"

    def get_schema_location(self) -> SchemaLocation:
        return "component"

    def get_blog_directory(self) -> str:
        return "pages/blog"

    def format_blog_post(self, post: BlogPost) -> str:
        frontmatter = generate_frontmatter(blog_frontmatter_fields(post, "publishedAt", "image"))
        return (
            f"{frontmatter}\n"
            "\n"
            "import Head from 'next/head';\n"
            "\n"
            "<Head>\n"
            f"  <title>{escape_html(post.title)}</title>\n"
            f'  <meta name="description" content="{escape_html(post.meta_description)}" />\n'
            "</Head>\n"
            "\n"
            f"{post.content}\n"
        )

    def file_path_to_url_path(self, file_path: str) -> str:
        return file_path_to_url_path(file_path, self.framework)
