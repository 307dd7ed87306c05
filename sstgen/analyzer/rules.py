from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..models import ProjectAnalysis, ProjectType
from .snapshot import RepoSnapshot


@dataclass(frozen=True)
class FrameworkRule:
    framework: str
    type: str
    build_command: Optional[str]
    output_dir: str
    deps: Tuple[str, ...] = ()          # any of these dependency names
    files: Tuple[str, ...] = ()         # any of these root files
    all_deps: Tuple[str, ...] = ()      # every one of these dependency names
    requires_no_manifest: bool = False
    confidence: float = 0.9

    def matches(self, deps: Dict[str, str], snapshot: RepoSnapshot, has_manifest: bool) -> bool:
        if self.requires_no_manifest and has_manifest:
            return False
        if self.all_deps and all(d in deps for d in self.all_deps):
            return True
        if any(d in deps for d in self.deps):
            return True
        return snapshot.has_file(*self.files)


# Evaluated in order; the first match wins. SSR before static site
# generators before CSR, so a Gatsby or Next.js repo is never read as a
# plain React SPA.
RULES: List[FrameworkRule] = [
    FrameworkRule("Next.js", ProjectType.SSR, "npm run build", ".next",
                  deps=("next",), files=("next.config.js", "next.config.ts", "next.config.mjs"), confidence=0.95),
    FrameworkRule("Nuxt", ProjectType.SSR, "npm run build", ".output",
                  deps=("nuxt",), files=("nuxt.config.js", "nuxt.config.ts")),
    FrameworkRule("SvelteKit", ProjectType.SSR, "npm run build", ".svelte-kit",
                  deps=("@sveltejs/kit",), files=("svelte.config.js", "svelte.config.ts")),
    FrameworkRule("Remix", ProjectType.SSR, "npm run build", "build",
                  deps=("@remix-run/node",), files=("remix.config.js", "remix.config.ts")),
    FrameworkRule("Gatsby", ProjectType.STATIC, "gatsby build", "public",
                  deps=("gatsby",), files=("gatsby-config.js",)),
    FrameworkRule("11ty", ProjectType.STATIC, "npx @11ty/eleventy", "_site",
                  deps=("@11ty/eleventy",), files=(".eleventy.js", "eleventy.config.js")),
    FrameworkRule("Jekyll", ProjectType.STATIC, "bundle exec jekyll build", "_site",
                  files=("_config.yml", "Gemfile"), confidence=0.8),
    FrameworkRule("Hugo", ProjectType.STATIC, "hugo", "public",
                  files=("config.toml", "config.yaml"), requires_no_manifest=True, confidence=0.7),
    FrameworkRule("React SPA", ProjectType.CSR, "npm run build", "build",
                  all_deps=("react", "react-dom")),
    FrameworkRule("Vue SPA", ProjectType.CSR, "npm run build", "dist",
                  deps=("vue",), files=("vue.config.js",)),
    FrameworkRule("Angular", ProjectType.CSR, "ng build", "dist",
                  deps=("@angular/core",), files=("angular.json",)),
    FrameworkRule("Static HTML", ProjectType.STATIC, None, ".",
                  files=("index.html",), confidence=0.9),
]


def _dependencies(manifest: Optional[dict]) -> Dict[str, str]:
    if not manifest:
        return {}
    deps: Dict[str, str] = {}
    for key in ("dependencies", "devDependencies"):
        section = manifest.get(key) or {}
        if isinstance(section, dict):
            deps.update(section)
    return deps


def classify(snapshot: RepoSnapshot) -> ProjectAnalysis:
    """Classify a repository with the fixed rule table."""
    manifest = snapshot.manifest()
    has_manifest = manifest is not None
    deps = _dependencies(manifest)
    scripts = (manifest or {}).get("scripts")
    if not isinstance(scripts, dict):
        scripts = {}
    has_dockerfile = snapshot.has_file("Dockerfile")
    rationale: List[str] = []

    if snapshot.package_json is not None and not manifest:
        rationale.append("package.json present but empty or unparseable")

    for rule in RULES:
        if not rule.matches(deps, snapshot, has_manifest):
            continue

        build_command = rule.build_command
        output_dir = rule.output_dir
        if rule.framework == "React SPA" and ("vite" in deps or snapshot.has_file("vite.config.js", "vite.config.ts")):
            output_dir = "dist"
            rationale.append("Vite detected; build output is dist")
        if rule.framework == "Static HTML" and has_manifest and scripts.get("build"):
            build_command = "npm run build"

        rationale.append(f"Matched {rule.framework} rule ({rule.type})")
        return ProjectAnalysis(
            type=rule.type,
            framework=rule.framework,
            build_command=build_command,
            output_dir=output_dir,
            dependencies=list(deps),
            confidence=rule.confidence,
            has_dockerfile=has_dockerfile,
            rationale=rationale,
        )

    if has_manifest:
        rationale.append("No framework dependency found; treating as a generic static site")
        return ProjectAnalysis(
            type=ProjectType.STATIC,
            framework="Static Site",
            build_command="npm run build" if scripts.get("build") else None,
            output_dir=".",
            dependencies=list(deps),
            confidence=0.5,
            has_dockerfile=has_dockerfile,
            rationale=rationale,
        )

    rationale.append("No manifest and no index.html; defaulting to static HTML")
    return ProjectAnalysis(
        type=ProjectType.STATIC,
        framework="Static HTML",
        build_command=None,
        output_dir=".",
        dependencies=[],
        confidence=0.3,
        has_dockerfile=has_dockerfile,
        rationale=rationale,
    )
