"""File operation tools backed by a FileService."""

from __future__ import annotations

from pydantic import BaseModel, Field

from codegen_agent.models.agent_schemas import ToolResult
from codegen_agent.services.file_service import FileService
from codegen_agent.tools import Tool, validated

DEFAULT_MAX_RESULTS = 100


class FilePathInput(BaseModel):
    filePath: str


class FileWriterInput(BaseModel):
    filePath: str
    content: str
    createDir: bool = True


class FileSearchInput(BaseModel):
    pattern: str
    baseDir: str = "."
    maxResults: int = Field(default=DEFAULT_MAX_RESULTS, ge=1)


class DirectoryListInput(BaseModel):
    dirPath: str
    recursive: bool = False


def create_file_tools(service: FileService) -> list[Tool]:
    @validated(FilePathInput)
    def file_reader(params: FilePathInput) -> ToolResult:
        path = service.resolve(params.filePath)
        if not path.is_file():
            return ToolResult.fail(f"file does not exist: {params.filePath}")
        try:
            content = service.read_file(params.filePath)
        except (OSError, UnicodeDecodeError) as e:
            return ToolResult.fail(str(e))
        return ToolResult.ok({"filePath": params.filePath, "content": content, "size": len(content)})

    @validated(FileWriterInput)
    def file_writer(params: FileWriterInput) -> ToolResult:
        try:
            service.write_file(params.filePath, params.content, create_dir=params.createDir)
        except OSError as e:
            return ToolResult.fail(str(e))
        return ToolResult.ok(
            {
                "filePath": params.filePath,
                "size": len(params.content),
                "message": f"wrote file: {params.filePath}",
            }
        )

    @validated(FilePathInput)
    def file_exists(params: FilePathInput) -> ToolResult:
        path = service.resolve(params.filePath)
        data: dict = {"filePath": params.filePath, "exists": service.file_exists(params.filePath)}
        if data["exists"]:
            try:
                stats = path.stat()
            except OSError:
                return ToolResult.ok(data)
            data.update(
                isFile=path.is_file(),
                isDirectory=path.is_dir(),
                size=stats.st_size,
                modifiedTime=stats.st_mtime,
            )
        return ToolResult.ok(data)

    @validated(FileSearchInput)
    def file_search(params: FileSearchInput) -> ToolResult:
        if not service.resolve(params.baseDir).is_dir():
            return ToolResult.fail(f"directory does not exist: {params.baseDir}")
        try:
            files = [str(p) for p in service.glob(params.pattern, params.baseDir)]
        except (OSError, ValueError, NotImplementedError) as e:
            return ToolResult.fail(str(e))
        limited = files[: params.maxResults]
        return ToolResult.ok(
            {
                "pattern": params.pattern,
                "baseDir": params.baseDir,
                "count": len(limited),
                "totalFound": len(files),
                "files": limited,
            }
        )

    @validated(DirectoryListInput)
    def directory_list(params: DirectoryListInput) -> ToolResult:
        root = service.resolve(params.dirPath)
        if not root.exists():
            return ToolResult.fail(f"directory does not exist: {params.dirPath}")
        if not root.is_dir():
            return ToolResult.fail(f"path is not a directory: {params.dirPath}")

        items = []
        for entry in service.list_directory(params.dirPath, recursive=params.recursive):
            item = {
                "name": str(entry.relative_to(root)),
                "path": str(entry),
                "type": "directory" if entry.is_dir() else "file",
            }
            if entry.is_file():
                item["size"] = entry.stat().st_size
            items.append(item)
        return ToolResult.ok({"dirPath": params.dirPath, "count": len(items), "items": items})

    return [
        Tool(
            name="file_reader",
            description="Read a text file (JSON, YAML, TS, PY, MD, ...) and return its content.",
            parameters={
                "type": "object",
                "properties": {
                    "filePath": {"type": "string", "description": "Relative or absolute file path"},
                },
                "required": ["filePath"],
            },
            execute=file_reader,
            input_model=FilePathInput,
        ),
        Tool(
            name="file_writer",
            description=(
                "Write content to a file, creating missing directories and overwriting "
                "existing files. Generated code MUST be written with this tool, "
                "not only returned in the answer."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "filePath": {"type": "string", "description": "Relative or absolute file path"},
                    "content": {"type": "string", "description": "Content to write"},
                    "createDir": {
                        "type": "boolean",
                        "description": "Create missing parent directories (default true)",
                    },
                },
                "required": ["filePath", "content"],
            },
            execute=file_writer,
            input_model=FileWriterInput,
        ),
        Tool(
            name="file_exists",
            description="Check whether a file or directory exists.",
            parameters={
                "type": "object",
                "properties": {
                    "filePath": {"type": "string", "description": "File or directory path"},
                },
                "required": ["filePath"],
            },
            execute=file_exists,
            input_model=FilePathInput,
        ),
        Tool(
            name="file_search",
            description="Find files with a glob pattern. * matches any characters, ** any directories.",
            parameters={
                "type": "object",
                "properties": {
                    "pattern": {
                        "type": "string",
                        "description": "Glob pattern, e.g. '**/*.json' or 'src/**/*.ts'",
                    },
                    "baseDir": {"type": "string", "description": "Directory to search from (default .)"},
                    "maxResults": {"type": "integer", "description": "Maximum results (default 100)"},
                },
                "required": ["pattern"],
            },
            execute=file_search,
            input_model=FileSearchInput,
        ),
        Tool(
            name="directory_list",
            description="List the files and sub-directories of a directory.",
            parameters={
                "type": "object",
                "properties": {
                    "dirPath": {"type": "string", "description": "Directory path"},
                    "recursive": {
                        "type": "boolean",
                        "description": "Include sub-directories recursively (default false)",
                    },
                },
                "required": ["dirPath"],
            },
            execute=directory_list,
            input_model=DirectoryListInput,
        ),
    ]
