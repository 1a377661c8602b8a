"""
Codebase profiler.

Builds a CodebaseProfile in a single pass over a working tree: framework
detection, directory structure, existing SEO assets, build tooling, and
per-page SEO facts. Unreadable files are skipped and reported as warnings.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone

from seopilot.integrations.filesystem import FileReader
from seopilot.services.detector import detect_framework
from seopilot.services.frameworks import HandlerRegistry, file_path_to_url_path
from seopilot.services.frameworks.base import FrameworkHandler
from seopilot.services.types import (
    BuildSystem,
    CodebaseProfile,
    CodebaseStructure,
    Confidence,
    DetectionResult,
    FrameworkType,
    ImageInfo,
    PageInfo,
    PipelineWarning,
    SEOPatterns,
    WarningKind,
)

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDES = [
    "node_modules/",
    ".git/",
    ".next/",
    "dist/",
    "build/",
    ".cache/",
    "coverage/",
]

COMPONENT_DIRS = ["src/components", "components", "src/ui", "app/components"]
CONTENT_DIRS = ["src/content", "content", "posts", "src/posts", "_posts", "data"]
OUTPUT_DIRS = [".next", "dist", "build", "out", ".output", ".astro"]

CONFIG_FILES = [
    "next.config.js",
    "next.config.mjs",
    "next.config.ts",
    "astro.config.mjs",
    "astro.config.ts",
    "nuxt.config.ts",
    "nuxt.config.js",
    "gatsby-config.js",
    "gatsby-config.ts",
    "vite.config.js",
    "vite.config.ts",
    "svelte.config.js",
    "tailwind.config.js",
    "tailwind.config.ts",
    "tsconfig.json",
    "package.json",
]

SITEMAP_CANDIDATES = [
    "public/sitemap.xml",
    "sitemap.xml",
    "app/sitemap.ts",
    "app/sitemap.tsx",
    "src/app/sitemap.ts",
]

ROBOTS_CANDIDATES = [
    "public/robots.txt",
    "robots.txt",
    "app/robots.ts",
    "app/robots.tsx",
    "src/app/robots.ts",
]

SCHEMA_MARKERS = ("schema", "jsonld", "json-ld", "structured-data")

STATIC_PAGES_DIRS = {
    FrameworkType.ASTRO: "src/pages",
    FrameworkType.NUXT: "pages",
    FrameworkType.GATSBY: "src/pages",
    FrameworkType.REMIX: "app/routes",
    FrameworkType.SVELTEKIT: "src/routes",
}

DANGER_DIRS = ["node_modules", ".git", "src/lib", "src/utils", "lib", "utils"]

IMG_TAG_RE = re.compile(r"<img\b[^>]*>", re.I)
IMAGE_COMPONENT_RE = re.compile(r"<Image\b[^>]*>")
SRC_ATTR_RE = re.compile(r"\bsrc=[\"'{]([^\"'}]+)[\"'}]")
ALT_ATTR_RE = re.compile(r"\balt=(?:[\"']([^\"']*)[\"']|\{([^}]*)\})")
HREF_RE = re.compile(r"href=[\"']([^\"']+)[\"']", re.I)
HREF_EXPR_RE = re.compile(r"href=\{\s*[\"'`]([^\"'`]+)[\"'`]\s*\}")

CODE_TAG_RE = re.compile(r"<code[^>]*>.*?</code>", re.I | re.S)
CODE_FENCE_RE = re.compile(r"```.*?```", re.S)
INLINE_CODE_RE = re.compile(r"`[^`]+`")
TAG_RE = re.compile(r"<[^>]+>")
JSX_EXPR_RE = re.compile(r"\{[^}\n]+\}")


@dataclass
class ProfilerOptions:
    repo_id: str
    commit_hash: str
    exclude_paths: list[str] = field(default_factory=list)


@dataclass
class ProfileResult:
    profile: CodebaseProfile
    warnings: list[PipelineWarning] = field(default_factory=list)


def extract_images(content: str) -> list[ImageInfo]:
    images = []
    for tag_re in (IMG_TAG_RE, IMAGE_COMPONENT_RE):
        for tag in tag_re.finditer(content):
            src_match = SRC_ATTR_RE.search(tag.group(0))
            if not src_match:
                continue
            src = src_match.group(1)
            alt_match = ALT_ATTR_RE.search(tag.group(0))
            alt = None
            if alt_match:
                alt = alt_match.group(1) if alt_match.group(1) is not None else alt_match.group(2)
            images.append(ImageInfo(src=src, alt=alt, is_local=not src.startswith("http")))
    return images


def extract_internal_links(content: str) -> list[str]:
    """Root-relative links with query and fragment removed, first-seen order."""
    links: dict[str, None] = {}
    for pattern in (HREF_RE, HREF_EXPR_RE):
        for match in pattern.finditer(content):
            href = match.group(1)
            if not href.startswith("/") or href.startswith("//"):
                continue
            clean = href.split("#")[0].split("?")[0]
            if clean:
                links.setdefault(clean, None)
    return list(links)


def count_words(content: str) -> int:
    text = CODE_TAG_RE.sub("", content)
    text = CODE_FENCE_RE.sub("", text)
    text = INLINE_CODE_RE.sub("", text)
    text = TAG_RE.sub(" ", text)
    text = JSX_EXPR_RE.sub(" ", text)
    return len(text.split())


def has_og_image(content: str) -> bool:
    return "og:image" in content or "openGraph" in content or "opengraph-image" in content


def has_schema_markup(content: str) -> bool:
    return "application/ld+json" in content or "@context" in content or "schema.org" in content


def is_safe_path(profile: CodebaseProfile, path: str) -> bool:
    """True when an automated write may touch `path` (it is not inside a danger zone)."""
    normalized = path[2:] if path.startswith("./") else path
    for zone in profile.danger_zones:
        if normalized == zone or normalized.startswith(f"{zone.rstrip('/')}/"):
            return False
    return True


class CodebaseProfiler:
    """Builds a CodebaseProfile from a FileReader."""

    def __init__(self, reader: FileReader, registry: HandlerRegistry, options: ProfilerOptions):
        self.reader = reader
        self.registry = registry
        self.options = options
        self.warnings: list[PipelineWarning] = []

    async def profile(self) -> ProfileResult:
        logger.info(f"[SCAN] Profiling {self.options.repo_id} at {self.options.commit_hash}")
        self.warnings = []
        scanned_at = datetime.now(timezone.utc)

        all_files = await self.reader.list_files()
        files = self._filter_excluded(all_files)

        package_json = await self._read_optional("package.json")
        detection = detect_framework(files, package_json)
        if detection.confidence == Confidence.LOW:
            self._warn(
                WarningKind.DETECTION_AMBIGUOUS,
                f"Framework detection is ambiguous, assuming {detection.framework.value}",
            )

        handler = self.registry.get(detection.framework)
        structure = self._build_structure(files, detection, handler)
        seo_patterns = self._detect_seo_patterns(files, detection)
        build_system = self._detect_build_system(all_files, package_json)
        pages = await self._scan_pages(files, detection, handler, scanned_at)
        safe_zones, danger_zones = self._categorize_zones(structure)

        profile = CodebaseProfile(
            repo_id=self.options.repo_id,
            scanned_at=scanned_at,
            commit_hash=self.options.commit_hash,
            framework=detection.framework,
            framework_version=detection.version,
            detection_confidence=detection.confidence,
            structure=structure,
            seo_patterns=seo_patterns,
            build_system=build_system,
            pages=pages,
            safe_zones=safe_zones,
            danger_zones=danger_zones,
        )
        logger.info(
            f"[SCAN] {self.options.repo_id}: {detection.framework.value} "
            f"({detection.confidence.value}), {len(pages)} pages, {len(self.warnings)} warnings"
        )
        return ProfileResult(profile=profile, warnings=list(self.warnings))

    def _filter_excluded(self, files: list[str]) -> list[str]:
        patterns = [*self.options.exclude_paths, *DEFAULT_EXCLUDES]
        return [f for f in files if not any(p in f for p in patterns)]

    def _build_structure(
        self, files: list[str], detection: DetectionResult, handler: FrameworkHandler
    ) -> CodebaseStructure:
        return CodebaseStructure(
            pages_dir=self._detect_pages_dir(files, detection.framework),
            components_dir=_first_dir(files, COMPONENT_DIRS) or "components",
            public_dir=_first_dir(files, ["public", "static"]) or "public",
            content_dir=_first_dir(files, CONTENT_DIRS),
            layout_files=handler.get_layout_files(files),
            config_files=[f for f in files if f in CONFIG_FILES],
        )

    @staticmethod
    def _detect_pages_dir(files: list[str], framework: FrameworkType) -> str:
        if framework == FrameworkType.NEXTJS_APP:
            return "src/app" if _first_dir(files, ["src/app"]) else "app"
        if framework == FrameworkType.NEXTJS_PAGES:
            return "src/pages" if _first_dir(files, ["src/pages"]) else "pages"
        return STATIC_PAGES_DIRS.get(framework, ".")

    @staticmethod
    def _detect_seo_patterns(files: list[str], detection: DetectionResult) -> SEOPatterns:
        file_set = set(files)
        return SEOPatterns(
            meta_handling=detection.meta_handling,
            existing_sitemap=next((c for c in SITEMAP_CANDIDATES if c in file_set), None),
            existing_robots=next((c for c in ROBOTS_CANDIDATES if c in file_set), None),
            existing_schema=[f for f in files if any(m in f for m in SCHEMA_MARKERS)],
            has_og_images=any("og-image" in f or "opengraph-image" in f for f in files),
            has_favicon=any("favicon" in f or "icon." in f for f in files),
        )

    @staticmethod
    def _detect_build_system(files: list[str], package_json: str | None) -> BuildSystem:
        file_set = set(files)
        if "pnpm-lock.yaml" in file_set:
            package_manager = "pnpm"
        elif "yarn.lock" in file_set:
            package_manager = "yarn"
        elif "bun.lockb" in file_set:
            package_manager = "bun"
        else:
            package_manager = "npm"

        dev_script = "dev"
        if package_json:
            try:
                scripts = json.loads(package_json).get("scripts") or {}
            except (json.JSONDecodeError, AttributeError):
                scripts = {}
            if "dev" not in scripts and "start" in scripts:
                dev_script = "start"

        return BuildSystem(
            package_manager=package_manager,
            build_command=f"{package_manager} run build",
            dev_command=f"{package_manager} run {dev_script}",
            out_dir=_first_dir(files, OUTPUT_DIRS) or "dist",
        )

    async def _scan_pages(
        self,
        files: list[str],
        detection: DetectionResult,
        handler: FrameworkHandler,
        scanned_at: datetime,
    ) -> list[PageInfo]:
        pages = []
        for file_path in handler.get_page_files(files):
            content = await self._read_page(file_path)
            if content is None:
                continue

            meta = handler.extract_meta(content)
            pages.append(
                PageInfo(
                    path=file_path_to_url_path(file_path, detection.framework),
                    file_path=file_path,
                    title=meta.title if meta else None,
                    description=meta.description if meta else None,
                    has_og_image=has_og_image(content),
                    has_schema=has_schema_markup(content),
                    images=extract_images(content),
                    internal_links=extract_internal_links(content),
                    word_count=count_words(content),
                    last_modified=await self._modified_time(file_path) or scanned_at,
                )
            )
        return pages

    @staticmethod
    def _categorize_zones(structure: CodebaseStructure) -> tuple[list[str], list[str]]:
        safe_zones = [
            z for z in [structure.public_dir, structure.content_dir, "content", "posts", "blog"] if z
        ]
        danger_zones = [*structure.config_files, *DANGER_DIRS]
        return safe_zones, danger_zones

    async def _read_optional(self, path: str) -> str | None:
        try:
            return await self.reader.read_file(path)
        except (OSError, UnicodeDecodeError):
            return None

    async def _read_page(self, path: str) -> str | None:
        try:
            return await self.reader.read_file(path)
        except (OSError, UnicodeDecodeError) as e:
            self._warn(WarningKind.FILE_UNREADABLE, f"Could not read {path}: {e}", file=path)
            return None

    async def _modified_time(self, path: str) -> datetime | None:
        modified_time = getattr(self.reader, "modified_time", None)
        if modified_time is None:
            return None
        return await modified_time(path)

    def _warn(self, kind: WarningKind, message: str, file: str | None = None) -> None:
        logger.warning(f"[SCAN] {message}")
        self.warnings.append(PipelineWarning(kind=kind, message=message, file=file))


def _first_dir(files: list[str], candidates: list[str]) -> str | None:
    for directory in candidates:
        prefix = f"{directory}/"
        if any(f.startswith(prefix) for f in files):
            return directory
    return None


async def profile_codebase(
    reader: FileReader, registry: HandlerRegistry, options: ProfilerOptions
) -> ProfileResult:
    return await CodebaseProfiler(reader, registry, options).profile()
