from __future__ import annotations

import logging
from pathlib import Path

from codegen_agent.services.file_service import FileService

logger = logging.getLogger(__name__)

IGNORED_DIRS = {".git", "node_modules", "__pycache__", ".venv"}


def _is_ignored(path: Path, root: Path) -> bool:
    try:
        parts = path.relative_to(root).parts
    except ValueError:
        parts = path.parts
    return any(part in IGNORED_DIRS for part in parts)


class LocalService(FileService):
    def __init__(self, work_dir: Path | None = None) -> None:
        self.work_dir = (work_dir or Path.cwd()).resolve()

    def resolve(self, path: str) -> Path:
        """Resolve path relative to work_dir."""
        p = Path(path).expanduser()
        if p.is_absolute():
            return p
        return self.work_dir / p

    def read_file(self, path: str) -> str:
        return self.resolve(path).read_text(encoding="utf-8")

    def write_file(self, path: str, content: str, create_dir: bool = True) -> None:
        p = self.resolve(path)
        if create_dir:
            p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content, encoding="utf-8")
        logger.info("Written: %s (%d lines)", p, content.count("\n") + 1)

    def list_directory(self, path: str = ".", recursive: bool = False) -> list[Path]:
        root = self.resolve(path)
        entries = root.rglob("*") if recursive else root.iterdir()
        return sorted(e for e in entries if not _is_ignored(e, root))

    def glob(self, pattern: str, base_dir: str = ".") -> list[Path]:
        root = self.resolve(base_dir)
        return sorted(
            p for p in root.glob(pattern) if p.is_file() and not _is_ignored(p, root)
        )

    def file_exists(self, path: str) -> bool:
        return self.resolve(path).exists()
