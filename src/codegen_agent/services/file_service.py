"""Abstract file service interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class FileService(ABC):
    @abstractmethod
    def resolve(self, path: str) -> Path: ...

    @abstractmethod
    def read_file(self, path: str) -> str: ...

    @abstractmethod
    def write_file(self, path: str, content: str, create_dir: bool = True) -> None: ...

    @abstractmethod
    def list_directory(self, path: str = ".", recursive: bool = False) -> list[Path]: ...

    @abstractmethod
    def glob(self, pattern: str, base_dir: str = ".") -> list[Path]: ...

    @abstractmethod
    def file_exists(self, path: str) -> bool: ...
