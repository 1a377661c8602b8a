"""
Shared domain types for the scan → analyze → fix → measure pipeline.

Everything here is a plain dataclass or string enum so that profiles,
issues and fixes can be stored as JSON and rebuilt without loss.
"""

from dataclasses import dataclass, field, asdict
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any


class FrameworkType(str, Enum):
    NEXTJS_APP = "nextjs-app"
    NEXTJS_PAGES = "nextjs-pages"
    ASTRO = "astro"
    NUXT = "nuxt"
    GATSBY = "gatsby"
    REMIX = "remix"
    SVELTEKIT = "sveltekit"
    VITE_REACT = "vite-react"
    VITE_VUE = "vite-vue"
    HTML = "html"
    UNKNOWN = "unknown"


class MetaHandlingType(str, Enum):
    METADATA_EXPORT = "metadata-export"  # Next.js App Router
    NEXT_HEAD = "next-head"              # Next.js Pages Router
    ASTRO_HEAD = "astro-head"
    NUXT_USEHEAD = "nuxt-usehead"
    REACT_HELMET = "react-helmet"
    DIRECT_HTML = "direct-html"
    UNKNOWN = "unknown"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class IssueSeverity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class FixAction(str, Enum):
    CREATE = "create"
    MODIFY = "modify"
    DELETE = "delete"


class ChangeType(str, Enum):
    META_TITLE = "meta-title"
    META_DESCRIPTION = "meta-description"
    OG_TAGS = "og-tags"
    SCHEMA = "schema"
    SITEMAP = "sitemap"
    ROBOTS = "robots"
    BLOG_PUBLISHED = "blog-published"
    IMAGE_ADDED = "image-added"
    ALT_TEXT = "alt-text"
    INTERNAL_LINK = "internal-link"
    CONTENT_UPDATE = "content-update"


class WarningKind(str, Enum):
    DETECTION_AMBIGUOUS = "detection-ambiguous"
    FILE_UNREADABLE = "file-unreadable"
    MUTATION_TARGET_MISSING = "mutation-target-missing"
    MUTATION_ANCHOR_NOT_FOUND = "mutation-anchor-not-found"
    MUTATION_INVALID = "mutation-invalid"
    MUTATION_DANGER_ZONE = "mutation-danger-zone"
    MUTATION_IO_ERROR = "mutation-io-error"
    SUPPLEMENTAL_ANALYSIS_FAILED = "supplemental-analysis-failed"


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def _serialize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize(v) for v in value]
    return value


@dataclass
class PipelineWarning:
    """A unit of work that was skipped or degraded, reported instead of raised."""

    kind: WarningKind
    message: str
    file: str | None = None
    issue_id: str | None = None

    def to_dict(self) -> dict:
        return _serialize(asdict(self))

    @classmethod
    def from_dict(cls, data: dict) -> "PipelineWarning":
        return cls(
            kind=WarningKind(data["kind"]),
            message=data["message"],
            file=data.get("file"),
            issue_id=data.get("issue_id"),
        )


@dataclass
class DetectionResult:
    framework: FrameworkType
    meta_handling: MetaHandlingType
    version: str | None
    confidence: Confidence

    def to_dict(self) -> dict:
        return _serialize(asdict(self))


@dataclass
class ImageInfo:
    src: str
    alt: str | None = None
    is_local: bool = True


@dataclass
class PageInfo:
    path: str
    file_path: str
    title: str | None = None
    description: str | None = None
    has_og_image: bool = False
    has_schema: bool = False
    images: list[ImageInfo] = field(default_factory=list)
    internal_links: list[str] = field(default_factory=list)
    word_count: int = 0
    last_modified: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_dict(cls, data: dict) -> "PageInfo":
        return cls(
            path=data["path"],
            file_path=data["file_path"],
            title=data.get("title"),
            description=data.get("description"),
            has_og_image=data.get("has_og_image", False),
            has_schema=data.get("has_schema", False),
            images=[ImageInfo(**img) for img in data.get("images", [])],
            internal_links=list(data.get("internal_links", [])),
            word_count=data.get("word_count", 0),
            last_modified=_parse_datetime(data["last_modified"]),
        )


@dataclass
class CodebaseStructure:
    pages_dir: str
    components_dir: str
    public_dir: str
    content_dir: str | None = None
    layout_files: list[str] = field(default_factory=list)
    config_files: list[str] = field(default_factory=list)


@dataclass
class SEOPatterns:
    meta_handling: MetaHandlingType
    existing_sitemap: str | None = None
    existing_robots: str | None = None
    existing_schema: list[str] = field(default_factory=list)
    has_og_images: bool = False
    has_favicon: bool = False


@dataclass
class BuildSystem:
    package_manager: str = "npm"  # npm, yarn, pnpm, bun
    build_command: str = "npm run build"
    dev_command: str = "npm run dev"
    out_dir: str = "dist"


@dataclass
class CodebaseProfile:
    repo_id: str
    scanned_at: datetime
    commit_hash: str
    framework: FrameworkType
    structure: CodebaseStructure
    seo_patterns: SEOPatterns
    build_system: BuildSystem
    pages: list[PageInfo] = field(default_factory=list)
    safe_zones: list[str] = field(default_factory=list)
    danger_zones: list[str] = field(default_factory=list)
    framework_version: str | None = None
    detection_confidence: Confidence = Confidence.HIGH

    def to_dict(self) -> dict:
        return _serialize(asdict(self))

    @classmethod
    def from_dict(cls, data: dict) -> "CodebaseProfile":
        patterns = dict(data["seo_patterns"])
        patterns["meta_handling"] = MetaHandlingType(patterns["meta_handling"])
        return cls(
            repo_id=data["repo_id"],
            scanned_at=_parse_datetime(data["scanned_at"]),
            commit_hash=data["commit_hash"],
            framework=FrameworkType(data["framework"]),
            framework_version=data.get("framework_version"),
            detection_confidence=Confidence(data.get("detection_confidence", "high")),
            structure=CodebaseStructure(**data["structure"]),
            seo_patterns=SEOPatterns(**patterns),
            build_system=BuildSystem(**data["build_system"]),
            pages=[PageInfo.from_dict(p) for p in data.get("pages", [])],
            safe_zones=list(data.get("safe_zones", [])),
            danger_zones=list(data.get("danger_zones", [])),
        )

    def page_for_file(self, file_path: str) -> PageInfo | None:
        return next((p for p in self.pages if p.file_path == file_path), None)


@dataclass
class SEOIssue:
    id: str
    type: str
    severity: IssueSeverity
    description: str
    recommendation: str
    auto_fixable: bool
    page: str | None = None
    file: str | None = None

    def to_dict(self) -> dict:
        return _serialize(asdict(self))

    @classmethod
    def from_dict(cls, data: dict) -> "SEOIssue":
        return cls(
            id=data["id"],
            type=data["type"],
            severity=IssueSeverity(data["severity"]),
            description=data.get("description", ""),
            recommendation=data.get("recommendation", ""),
            auto_fixable=bool(data.get("auto_fixable", False)),
            page=data.get("page"),
            file=data.get("file"),
        )


def issue_id(issue_type: str, scope: str | None = None) -> str:
    """Build the stable `<type>:<scope>` identifier; no scope means site-global."""
    return f"{issue_type}:{scope or 'global'}"


@dataclass
class CodeFix:
    issue_id: str
    file: str
    action: FixAction | str
    description: str = ""
    search: str | None = None
    replace: str | None = None
    content: str | None = None

    def to_dict(self) -> dict:
        return _serialize(asdict(self))


@dataclass
class MeasuredImpact:
    clicks_before: float
    clicks_after: float
    measurement_period: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SitemapEntry:
    url: str
    last_modified: str  # YYYY-MM-DD
    change_frequency: str
    priority: float


@dataclass
class SchemaMarkup:
    type: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class FeaturedImage:
    filename: str
    alt_text: str = ""
    width: int = 1200
    height: int = 630


@dataclass
class BlogPost:
    title: str
    slug: str
    content: str
    meta_description: str
    author: str
    published_at: datetime
    target_keyword: str = ""
    secondary_keywords: list[str] = field(default_factory=list)
    excerpt: str = ""
    frontmatter: dict[str, Any] = field(default_factory=dict)
    file_path: str = ""
    featured_image: FeaturedImage | None = None

    @property
    def keywords(self) -> list[str]:
        return [k for k in [self.target_keyword, *self.secondary_keywords] if k]
