"""Filetype resolution for documents opened in the bundled Qt host.

Filetypes are what ``exclude_filetypes`` is matched against, so ids stay
lower-case and stable.
"""

from __future__ import annotations

from pathlib import Path

_EXTENSION_FILETYPES: dict[str, str] = {
    ".css": "css",
    ".qss": "css",
    ".scss": "scss",
    ".sass": "sass",
    ".less": "less",
    ".styl": "stylus",
    ".html": "html",
    ".htm": "html",
    ".xhtml": "html",
    ".vue": "vue",
    ".svelte": "svelte",
    ".svg": "xml",
    ".xml": "xml",
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascriptreact",
    ".ts": "typescript",
    ".tsx": "typescriptreact",
    ".json": "json",
    ".jsonc": "jsonc",
    ".toml": "toml",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".ini": "dosini",
    ".conf": "conf",
    ".lua": "lua",
    ".py": "python",
    ".pyi": "python",
    ".md": "markdown",
    ".txt": "text",
    ".sh": "sh",
    ".bash": "sh",
    ".zsh": "zsh",
}

_FILENAME_FILETYPES: dict[str, str] = {
    "tailwind.config.js": "javascript",
    ".xresources": "xdefaults",
    ".xdefaults": "xdefaults",
    "kitty.conf": "kitty",
    "alacritty.toml": "toml",
}


def filetype_for_path(file_path: str | None, *, default: str = "") -> str:
    """Return a normalized filetype for a file path, or ``default``."""
    path_text = str(file_path or "").strip()
    if not path_text:
        return str(default or "").strip().lower()

    name = Path(path_text).name.lower()
    if name in _FILENAME_FILETYPES:
        return _FILENAME_FILETYPES[name]

    suffix = Path(path_text).suffix.lower()
    if suffix in _EXTENSION_FILETYPES:
        return _EXTENSION_FILETYPES[suffix]

    return str(default or "").strip().lower()
