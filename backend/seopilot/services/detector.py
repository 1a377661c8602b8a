"""
Framework detection.

Classifies a codebase from its file list and package.json into one of the
known frameworks. Signals are checked in a fixed precedence order and the
first match wins.
"""

import json
import logging
import re

from seopilot.services.types import (
    Confidence,
    DetectionResult,
    FrameworkType,
    MetaHandlingType,
)

logger = logging.getLogger(__name__)

VERSION_PREFIX_RE = re.compile(r"^[\^~>=<]+")

APP_LAYOUT_FILES = [
    "app/layout.tsx",
    "app/layout.jsx",
    "app/layout.js",
    "src/app/layout.tsx",
    "src/app/layout.jsx",
    "src/app/layout.js",
]

PAGES_INDEX_FILES = [
    "pages/index.tsx",
    "pages/index.jsx",
    "pages/index.js",
    "src/pages/index.tsx",
    "src/pages/index.jsx",
    "src/pages/index.js",
]


class FrameworkDetector:
    """Heuristic framework detector over a file list and optional manifest."""

    def __init__(self, files: list[str], package_json: str | None = None):
        self.files = files
        self.file_set = set(files)
        self.package_json = self._parse_package_json(package_json) if package_json else None

    def detect(self) -> DetectionResult:
        deps = self._all_dependencies()

        if "next" in deps:
            return self._detect_nextjs_variant()

        if "astro" in deps or self._has_file("astro.config.mjs") or self._has_file("astro.config.ts"):
            return DetectionResult(
                FrameworkType.ASTRO, MetaHandlingType.ASTRO_HEAD,
                self._get_version("astro"), Confidence.HIGH,
            )

        if "nuxt" in deps or self._has_file("nuxt.config.ts") or self._has_file("nuxt.config.js"):
            return DetectionResult(
                FrameworkType.NUXT, MetaHandlingType.NUXT_USEHEAD,
                self._get_version("nuxt"), Confidence.HIGH,
            )

        if "gatsby" in deps:
            return DetectionResult(
                FrameworkType.GATSBY, MetaHandlingType.REACT_HELMET,
                self._get_version("gatsby"), Confidence.HIGH,
            )

        if "@remix-run/react" in deps or "@remix-run/node" in deps:
            return DetectionResult(
                FrameworkType.REMIX, MetaHandlingType.DIRECT_HTML,
                self._get_version("@remix-run/react"), Confidence.HIGH,
            )

        if "@sveltejs/kit" in deps:
            return DetectionResult(
                FrameworkType.SVELTEKIT, MetaHandlingType.DIRECT_HTML,
                self._get_version("@sveltejs/kit"), Confidence.HIGH,
            )

        if "vite" in deps and "react" in deps:
            has_helmet = "react-helmet" in deps or "react-helmet-async" in deps
            return DetectionResult(
                FrameworkType.VITE_REACT,
                MetaHandlingType.REACT_HELMET if has_helmet else MetaHandlingType.UNKNOWN,
                self._get_version("vite"),
                Confidence.MEDIUM,
            )

        if "vite" in deps and "vue" in deps:
            return DetectionResult(
                FrameworkType.VITE_VUE, MetaHandlingType.UNKNOWN,
                self._get_version("vite"), Confidence.MEDIUM,
            )

        if self._has_file("index.html") or self._has_root_html_file():
            return DetectionResult(
                FrameworkType.HTML,
                MetaHandlingType.DIRECT_HTML,
                None,
                Confidence.MEDIUM if self.package_json is not None else Confidence.HIGH,
            )

        return DetectionResult(FrameworkType.UNKNOWN, MetaHandlingType.UNKNOWN, None, Confidence.LOW)

    def _detect_nextjs_variant(self) -> DetectionResult:
        version = self._get_version("next")
        major = self._major_version(version)

        has_app_layout = any(self._has_file(f) for f in APP_LAYOUT_FILES)
        has_app_dir = self._has_dir("app") or self._has_dir("src/app")
        has_pages_dir = self._has_dir("pages") or self._has_dir("src/pages")
        has_pages_index = any(self._has_file(f) for f in PAGES_INDEX_FILES)

        # App Router wins when both routers are present
        if has_app_layout or (has_app_dir and major >= 13):
            return DetectionResult(
                FrameworkType.NEXTJS_APP,
                MetaHandlingType.METADATA_EXPORT,
                version,
                Confidence.HIGH if has_app_layout else Confidence.MEDIUM,
            )

        if has_pages_dir or has_pages_index:
            return DetectionResult(
                FrameworkType.NEXTJS_PAGES, MetaHandlingType.NEXT_HEAD, version, Confidence.HIGH,
            )

        if major >= 13:
            return DetectionResult(
                FrameworkType.NEXTJS_APP, MetaHandlingType.METADATA_EXPORT, version, Confidence.LOW,
            )

        return DetectionResult(
            FrameworkType.NEXTJS_PAGES, MetaHandlingType.NEXT_HEAD, version, Confidence.LOW,
        )

    @staticmethod
    def _parse_package_json(content: str) -> dict | None:
        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            logger.debug("[SCAN] package.json is not valid JSON, ignoring manifest")
            return None
        return data if isinstance(data, dict) else None

    def _all_dependencies(self) -> list[str]:
        if not self.package_json:
            return []
        deps = self.package_json.get("dependencies") or {}
        dev_deps = self.package_json.get("devDependencies") or {}
        return [*deps.keys(), *dev_deps.keys()]

    def _get_version(self, package: str) -> str | None:
        if not self.package_json:
            return None
        version = (self.package_json.get("dependencies") or {}).get(package) or (
            self.package_json.get("devDependencies") or {}
        ).get(package)
        if not version or not isinstance(version, str):
            return None
        return VERSION_PREFIX_RE.sub("", version)

    @staticmethod
    def _major_version(version: str | None) -> int:
        if not version:
            return 0
        match = re.match(r"\d+", version.split(".")[0])
        return int(match.group(0)) if match else 0

    def _has_file(self, path: str) -> bool:
        return path in self.file_set

    def _has_dir(self, directory: str) -> bool:
        prefix = directory if directory.endswith("/") else f"{directory}/"
        return any(f.startswith(prefix) for f in self.files)

    def _has_root_html_file(self) -> bool:
        return any(f.endswith(".html") and "/" not in f for f in self.files)


def detect_framework(files: list[str], package_json: str | None = None) -> DetectionResult:
    """Detect the framework of a codebase. Never raises."""
    return FrameworkDetector(files, package_json).detect()
