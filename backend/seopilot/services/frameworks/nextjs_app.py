"""
Next.js App Router (13+) handler.

Metadata lives in `export const metadata`, sitemap and robots are
`MetadataRoute` functions under `app/`.
"""

import re

from seopilot.services.frameworks.base import (
    ExtractedMeta,
    MetaInput,
    SchemaLocation,
    blog_frontmatter_fields,
    dump_json,
    escape_js_string,
    file_path_to_url_path,
    generate_frontmatter,
    to_json_ld,
)
from seopilot.services.types import BlogPost, FrameworkType, SchemaMarkup, SitemapEntry

PAGE_RE = re.compile(r"^(app|src/app)/(.+/)?page\.(tsx|jsx|js)$")
LAYOUT_RE = re.compile(r"^(app|src/app)/(.+/)?layout\.(tsx|jsx|js)$")
METADATA_RE = re.compile(r"export\s+const\s+metadata(?:\s*:\s*Metadata)?\s*=\s*\{([^}]+)\}", re.S)
TITLE_RE = re.compile(r"title\s*:\s*['\"`]([^'\"`]+)['\"`]")
DESCRIPTION_RE = re.compile(r"description\s*:\s*['\"`]([^'\"`]+)['\"`]")
GENERATE_METADATA_RE = re.compile(r"export\s+(?:async\s+)?function\s+generateMetadata")


class NextAppHandler:
    framework = FrameworkType.NEXTJS_APP

    def get_page_files(self, files: list[str]) -> list[str]:
        return [f for f in files if PAGE_RE.match(f)]

    def get_layout_files(self, files: list[str]) -> list[str]:
        return [f for f in files if LAYOUT_RE.match(f)]

    def extract_meta(self, content: str) -> ExtractedMeta | None:
        result = ExtractedMeta()

        metadata = METADATA_RE.search(content)
        if metadata:
            block = metadata.group(1)
            if title := TITLE_RE.search(block):
                result.title = title.group(1)
            if description := DESCRIPTION_RE.search(block):
                result.description = description.group(1)

        # generateMetadata is dynamic; nothing static to report
        if GENERATE_METADATA_RE.search(content) and not result.title:
            return None

        return result if result.title or result.description else None

    def generate_meta_code(self, meta: MetaInput) -> str:
        title = escape_js_string(meta.title)
        description = escape_js_string(meta.description)
        lines = [
            "import type { Metadata } from 'next';",
            "",
            "export const metadata: Metadata = {",
            f"  title: '{title}',",
            f"  description: '{description}',",
        ]

        if meta.og_image:
            lines += [
                "  openGraph: {",
                f"    title: '{title}',",
                f"    description: '{description}',",
                "    images: [",
                "      {",
                f"        url: '{escape_js_string(meta.og_image)}',",
                "        width: 1200,",
                "        height: 630,",
                f"        alt: '{title}',",
                "      },",
                "    ],",
                "  },",
                "  twitter: {",
                "    card: 'summary_large_image',",
                f"    title: '{title}',",
                f"    description: '{description}',",
                f"    images: ['{escape_js_string(meta.og_image)}'],",
                "  },",
            ]

        if meta.canonical:
            lines += ["  alternates: {", f"    canonical: '{escape_js_string(meta.canonical)}',", "  },"]

        if meta.keywords:
            keywords = ", ".join(f"'{escape_js_string(k)}'" for k in meta.keywords)
            lines.append(f"  keywords: [{keywords}],")

        lines.append("};")
        return "\n".join(lines)

    def generate_sitemap_code(self, pages: list[SitemapEntry]) -> str:
        entries = ",\n".join(
            "    {\n"
            f"      url: '{escape_js_string(page.url)}',\n"
            f"      lastModified: '{page.last_modified}',\n"
            f"      changeFrequency: '{page.change_frequency}',\n"
            f"      priority: {page.priority:g},\n"
            "    }"
            for page in pages
        )
        return (
            "import type { MetadataRoute } from 'next';\n"
            "\n"
            "export default function sitemap(): MetadataRoute.Sitemap {\n"
            "  return [\n"
            f"{entries}\n"
            "  ];\n"
            "}\n"
        )

    def generate_robots_code(self, domain: str) -> str:
        return (
            "import type { MetadataRoute } from 'next';\n"
            "\n"
            "export default function robots(): MetadataRoute.Robots {\n"
            "  return {\n"
            "    rules: {\n"
            "      userAgent: '*',\n"
            "      allow: '/',\n"
            "      disallow: ['/api/', '/admin/'],\n"
            "    },\n"
            f"    sitemap: '{domain}/sitemap.xml',\n"
            "  };\n"
            "}\n"
        )

    def generate_schema_code(self, schema: SchemaMarkup) -> str:
        json_ld = dump_json(to_json_ld(schema)).replace("\n", "\n        ")
        return (
            "export function JsonLd() {\n"
            "  return (\n"
            "    <script\n"
            '      type="application/ld+json"\n'
            "      dangerouslySetInnerHTML={{\n"
            f"        __html: JSON.stringify({json_ld})\n"
            "      }}\n"
            "    />\n"
            "  );\n"
            "}\n"
        )

    def get_sitemap_path(self) -> str:
        return "app/sitemap.ts"

    def get_robots_path(self) -> str:
        return "app/robots.ts"

    def get_schema_location(self) -> SchemaLocation:
        return "layout"

    def get_blog_directory(self) -> str:
        return "app/blog"

    def format_blog_post(self, post: BlogPost) -> str:
        frontmatter = generate_frontmatter(blog_frontmatter_fields(post, "publishedAt", "image"))
        return f"{frontmatter}\n\n{post.content}\n"

    def file_path_to_url_path(self, file_path: str) -> str:
        return file_path_to_url_path(file_path, self.framework)
