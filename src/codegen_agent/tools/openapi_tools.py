"""Swagger 2.0 / OpenAPI 3.x document parsing tool."""

from __future__ import annotations

import json
import logging
import re

import yaml
from pydantic import BaseModel

from codegen_agent.models.agent_schemas import ToolResult
from codegen_agent.services.file_service import FileService
from codegen_agent.tools import Tool, validated

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "post", "put", "delete", "patch", "options", "head")


class SwaggerParserInput(BaseModel):
    filePath: str
    filterTags: list[str] | None = None
    filterPaths: list[str] | None = None


class InvalidDocumentError(ValueError):
    """Raised when a file is not a Swagger/OpenAPI document."""


def load_document(text: str, name: str = "") -> dict:
    """Parse JSON or YAML text into a Swagger/OpenAPI document dict."""
    if name.endswith(".json"):
        doc = json.loads(text)
    else:
        doc = yaml.safe_load(text)
    if not isinstance(doc, dict):
        raise InvalidDocumentError("document root must be a mapping")
    if "swagger" not in doc and "openapi" not in doc:
        raise InvalidDocumentError("missing 'swagger' or 'openapi' version field")
    if not isinstance(doc.get("paths"), dict):
        raise InvalidDocumentError("missing 'paths' section")
    return doc


def match_path(path: str, patterns: list[str]) -> bool:
    for pattern in patterns:
        regex = "^" + ".*".join(re.escape(part) for part in pattern.split("*")) + "$"
        if re.match(regex, path):
            return True
    return False


def match_tags(tags: list[str] | None, filter_tags: list[str]) -> bool:
    if not tags:
        return False
    return any(tag in filter_tags for tag in tags)


def extract_endpoints(
    doc: dict,
    filter_tags: list[str] | None = None,
    filter_paths: list[str] | None = None,
) -> list[dict]:
    endpoints = []
    for path, path_item in doc.get("paths", {}).items():
        if filter_paths and not match_path(path, filter_paths):
            continue
        if not isinstance(path_item, dict):
            continue
        shared_params = path_item.get("parameters", [])
        for method in HTTP_METHODS:
            operation = path_item.get(method)
            if not isinstance(operation, dict):
                continue
            tags = operation.get("tags") or []
            if filter_tags and not match_tags(tags, filter_tags):
                continue
            endpoints.append(
                {
                    "path": path,
                    "method": method.upper(),
                    "operationId": operation.get("operationId"),
                    "summary": operation.get("summary"),
                    "description": operation.get("description"),
                    "tags": tags,
                    "parameters": [*shared_params, *operation.get("parameters", [])],
                    "requestBody": operation.get("requestBody"),
                    "responses": operation.get("responses"),
                }
            )
    return endpoints


def extract_schemas(doc: dict) -> dict:
    components = doc.get("components") or {}
    if components.get("schemas"):
        return components["schemas"]
    if doc.get("definitions"):
        return doc["definitions"]
    return {}


def document_info(doc: dict) -> dict:
    info = doc.get("info") or {}
    servers = doc.get("servers") or [{}]
    return {
        "title": info.get("title") or "Untitled API",
        "version": info.get("version") or "unknown",
        "description": info.get("description"),
        "basePath": doc.get("basePath") or servers[0].get("url"),
    }


def create_openapi_tools(service: FileService) -> list[Tool]:
    @validated(SwaggerParserInput)
    def swagger_parser(params: SwaggerParserInput) -> ToolResult:
        path = service.resolve(params.filePath)
        if not path.is_file():
            return ToolResult.fail(f"file does not exist: {params.filePath}")
        try:
            doc = load_document(service.read_file(params.filePath), path.name)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.warning("Cannot parse %s: %s", path, e)
            return ToolResult.fail(f"cannot parse {params.filePath}: {e}")

        endpoints = extract_endpoints(doc, params.filterTags, params.filterPaths)
        schemas = extract_schemas(doc)
        logger.info(
            "Parsed %s: %d endpoints, %d schemas", path, len(endpoints), len(schemas)
        )
        return ToolResult.ok(
            {
                "info": document_info(doc),
                "endpointsCount": len(endpoints),
                "endpoints": endpoints,
                "schemasCount": len(schemas),
                "schemas": schemas,
            }
        )

    return [
        Tool(
            name="swagger_parser",
            description=(
                "Parse a Swagger 2.0 or OpenAPI 3.x document and extract its endpoints "
                "and data models (schemas)."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "filePath": {
                        "type": "string",
                        "description": "Path of the Swagger/OpenAPI document (JSON or YAML)",
                    },
                    "filterTags": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Only keep endpoints with one of these tags",
                    },
                    "filterPaths": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Only keep paths matching these patterns (* wildcard)",
                    },
                },
                "required": ["filePath"],
            },
            execute=swagger_parser,
            input_model=SwaggerParserInput,
        )
    ]
