from __future__ import annotations

import fnmatch

from mrlens_core.models import FileChange

NON_CODE_EXTENSIONS = {
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".svg",
    ".ico",
    ".webp",
    ".pdf",
    ".woff",
    ".woff2",
    ".ttf",
    ".otf",
    ".mp4",
    ".mp3",
    ".zip",
    ".tar",
    ".gz",
    ".jar",
    ".aar",
    ".ipa",
    ".apk",
    ".xcassets",
    ".lock",  # e.g. Podfile.lock, yarn.lock
}


def is_code_file(file_name: str) -> bool:
    return not any(file_name.lower().endswith(ext) for ext in NON_CODE_EXTENSIONS)


def is_excluded(filename: str, patterns: list[str]) -> bool:
    """Return True if filename matches any exclude pattern.

    Supports:
    - fnmatch globs on the full path: "src/generated/*.swift"
    - fnmatch globs on the basename: "*.lock", "*.pbxproj"
    - Directory names/prefixes: "Pods/", "build" (matches any file within that tree)
    """
    for pattern in patterns:
        if fnmatch.fnmatch(filename, pattern):
            return True
        if fnmatch.fnmatch(filename.rsplit("/", 1)[-1], pattern):
            return True
        prefix = pattern.rstrip("/") + "/"
        if filename.startswith(prefix) or ("/" + prefix) in filename:
            return True
    return False


def reviewable_changes(changes: list[FileChange], exclude: list[str]) -> tuple[list[FileChange], list[str]]:
    """Split changes into (kept, skipped paths) by exclude patterns and file type."""
    kept: list[FileChange] = []
    skipped: list[str] = []
    for change in changes:
        path = change.new_path or change.old_path
        if is_excluded(path, exclude) or not is_code_file(path):
            skipped.append(path)
        else:
            kept.append(change)
    return kept, skipped
