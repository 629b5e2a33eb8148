from __future__ import annotations
import json
import os
from typing import Any, Dict, List

from .models import CASK, FORMULA, KINDS, Tool

class CatalogError(ValueError):
    pass

TOOLS: List[Tool] = [
    # Development
    Tool("AWS CLI", "awscli", FORMULA, "Development", "Amazon Web Services command-line interface"),
    Tool("Cursor", "cursor", CASK, "Development", "AI-powered code editor"),
    Tool("gvm", "gvm", FORMULA, "Development", "Go version manager"),
    Tool("Insomnia", "insomnia", CASK, "Development", "API client and design platform"),
    Tool("IntelliJ IDEA Community", "intellij-idea-ce", CASK, "Development", "Java IDE - Community Edition"),
    Tool("iTerm2", "iterm2", CASK, "Development", "Terminal emulator"),
    Tool("jenv", "jenv", FORMULA, "Development", "Java environment manager"),
    Tool("k9s", "k9s", FORMULA, "Development", "Kubernetes CLI to manage clusters"),
    Tool("kubectl", "kubectl", FORMULA, "Development", "Kubernetes command-line tool"),
    Tool("Neovim", "neovim", FORMULA, "Development", "Hyperextensible Vim-based text editor"),
    Tool("nvm", "nvm", FORMULA, "Development", "Node Version Manager"),
    Tool("OrbStack", "orbstack", CASK, "Development", "Docker Desktop alternative for macOS"),
    Tool("rbenv", "rbenv", FORMULA, "Development", "Ruby version management"),
    Tool("rustup", "rustup-init", FORMULA, "Development", "Rust toolchain installer and version manager"),
    Tool("Terraform", "terraform", FORMULA, "Development", "Infrastructure as code tool"),
    Tool("uv", "uv", FORMULA, "Development", "Python package installer and resolver"),
    Tool("Visual Studio Code", "visual-studio-code", CASK, "Development", "Code editor"),
    # Productivity
    Tool("Arc", "arc", CASK, "Productivity", "Browser designed for productivity"),
    Tool("Brave Browser", "brave-browser", CASK, "Productivity", "Privacy-focused browser"),
    Tool("Discord", "discord", CASK, "Productivity", "Voice and text chat"),
    Tool("Firefox", "firefox", CASK, "Productivity", "Web browser"),
    Tool("Google Chrome", "google-chrome", CASK, "Productivity", "Web browser"),
    Tool("Google Drive", "google-drive", CASK, "Productivity", "Cloud storage and file synchronization"),
    Tool("Microsoft Teams", "microsoft-teams", CASK, "Productivity", "Team collaboration and video conferencing"),
    Tool("Notion", "notion", CASK, "Productivity", "All-in-one workspace"),
    Tool("Slack", "slack", CASK, "Productivity", "Team collaboration platform"),
    Tool("Spotify", "spotify", CASK, "Productivity", "Music streaming service"),
    Tool("WhatsApp", "whatsapp", CASK, "Productivity", "Messaging application"),
    Tool("Zoom", "zoom", CASK, "Productivity", "Video conferencing"),
    # System & Utilities
    Tool("htop", "htop", FORMULA, "System & Utilities", "Interactive process viewer"),
    Tool("jq", "jq", FORMULA, "System & Utilities", "JSON processor"),
    Tool("Tmux", "tmux", FORMULA, "System & Utilities", "Terminal multiplexer"),
    Tool("tree", "tree", FORMULA, "System & Utilities", "Directory tree visualizer"),
    Tool("wget", "wget", FORMULA, "System & Utilities", "File download utility"),
]

def _sort_key(tool: Tool) -> str:
    return tool.name.casefold()

def tools_by_category(tools: List[Tool]) -> Dict[str, List[Tool]]:
    out: Dict[str, List[Tool]] = {}
    for t in tools:
        out.setdefault(t.category, []).append(t)
    for items in out.values():
        items.sort(key=_sort_key)
    return out

def category_names(tools: List[Tool], order: str = "name") -> List[str]:
    """
    Distinct categories. order="catalog" keeps first-seen order, anything else sorts by name.
    """
    seen: List[str] = []
    for t in tools:
        if t.category not in seen:
            seen.append(t.category)
    if order == "catalog":
        return seen
    return sorted(seen)

def validate_catalog(tools: List[Tool]) -> List[Tool]:
    kinds: Dict[str, str] = {}
    names = set()
    for t in tools:
        if t.kind not in KINDS:
            raise CatalogError(f"{t.name}: unknown kind {t.kind!r}")
        prev = kinds.setdefault(t.package, t.kind)
        if prev != t.kind:
            raise CatalogError(f"package {t.package!r} is listed as both {FORMULA} and {CASK}")
        if (t.category, t.name) in names:
            raise CatalogError(f"duplicate tool {t.name!r} in category {t.category!r}")
        names.add((t.category, t.name))
    return tools

def parse_catalog(cfg: Dict[str, Any]) -> List[Tool]:
    out: List[Tool] = []
    for it in cfg.get("tools", []) or []:
        if not isinstance(it, dict):
            continue
        name = str(it.get("name", "")).strip()
        pkg = str(it.get("package", "")).strip()
        cat = str(it.get("category", "")).strip()
        kind = str(it.get("kind", it.get("type", FORMULA))).strip().lower()
        if not name or not pkg or not cat or kind not in KINDS:
            continue
        out.append(
            Tool(
                name=name,
                package=pkg,
                kind=kind,
                category=cat,
                description=str(it.get("description", "") or "").strip(),
            )
        )
    return out

def read_json(path: str) -> Any:
    """
    Missing or blank file -> None. Broken JSON raises CatalogError.
    """
    if not os.path.exists(path):
        return None
    with open(path, "r", encoding="utf-8") as f:
        raw = f.read()
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except ValueError as e:
        raise CatalogError(f"{path}: {e}") from e

def load_catalog(path: str = "") -> List[Tool]:
    if not path:
        return list(TOOLS)
    cfg = read_json(path)
    tools = parse_catalog(cfg) if isinstance(cfg, dict) else []
    if not tools:
        return list(TOOLS)
    return validate_catalog(tools)
