from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


# Root-level files whose contents help tell frameworks apart
CONFIG_FILES = [
    "next.config.js", "next.config.ts", "next.config.mjs",
    "nuxt.config.js", "nuxt.config.ts",
    "svelte.config.js", "svelte.config.ts",
    "remix.config.js", "remix.config.ts",
    "vue.config.js", "vite.config.js", "vite.config.ts",
    "angular.json", "gatsby-config.js",
    ".eleventy.js", "eleventy.config.js",
    "_config.yml", "config.toml", "config.yaml",
]

IGNORE_DIRS = {".git", "node_modules", ".next", ".svelte-kit", ".output"}


@dataclass
class RepoSnapshot:
    """What the analyzer knows about a repository without executing it."""
    package_json: Optional[str]
    root_files: List[str]
    src_files: List[str] = field(default_factory=list)
    config_files: Dict[str, str] = field(default_factory=dict)

    def manifest(self) -> Optional[dict]:
        """Parsed package.json, ``{}`` when unparseable, None when absent."""
        if self.package_json is None:
            return None
        try:
            data = json.loads(self.package_json or "{}")
        except json.JSONDecodeError:
            logger.warning("package.json is not valid JSON; treating it as empty")
            return {}
        return data if isinstance(data, dict) else {}

    def has_file(self, *names: str) -> bool:
        return any(name in self.root_files for name in names)


def collect_remote(client, owner: str, repo: str) -> RepoSnapshot:
    """Fetch the manifest, root/src listings and known config files from GitHub."""
    package_json = client.get_file_content(owner, repo, "package.json")
    root_files = client.list_directory(owner, repo)
    src_files = client.list_directory(owner, repo, "src")

    config_files: Dict[str, str] = {}
    for name in CONFIG_FILES:
        if name in root_files:
            content = client.get_file_content(owner, repo, name)
            if content:
                config_files[name] = content

    logger.debug(f"Collected {owner}/{repo}: {len(root_files)} root entries, {len(config_files)} config files")
    return RepoSnapshot(
        package_json=package_json,
        root_files=root_files,
        src_files=src_files,
        config_files=config_files,
    )


def read_text(path: str | Path, limit_bytes: int = 1_000_000) -> str:
    p = Path(path)
    try:
        if p.stat().st_size > limit_bytes:
            return ""  # too large, skip content
    except OSError:
        return ""

    for enc in ("utf-8", "utf-8-sig", "latin-1"):
        try:
            with open(p, "r", encoding=enc, errors="ignore") as f:
                return f.read()
        except OSError:
            continue
    return ""


def _list_names(path: Path) -> List[str]:
    if not path.is_dir():
        return []
    return sorted(p.name for p in path.iterdir() if p.name not in IGNORE_DIRS)


def collect_local(app_root: str | Path) -> RepoSnapshot:
    """Build a snapshot from a local checkout."""
    root = Path(app_root)
    package_path = root / "package.json"
    package_json = read_text(package_path) if package_path.exists() else None

    root_files = _list_names(root)
    config_files = {}
    for name in CONFIG_FILES:
        if name in root_files:
            content = read_text(root / name)
            if content:
                config_files[name] = content

    return RepoSnapshot(
        package_json=package_json,
        root_files=root_files,
        src_files=_list_names(root / "src"),
        config_files=config_files,
    )
