"""Code generation tools: TypeScript types and request functions from OpenAPI data."""

from __future__ import annotations

import re
from typing import Any, Literal

from pydantic import BaseModel

from codegen_agent.models.agent_schemas import ToolResult
from codegen_agent.tools import Tool, validated

PRIMITIVE_TYPES = {
    "string": "string",
    "number": "number",
    "integer": "number",
    "boolean": "boolean",
    "null": "null",
}

METHOD_PREFIXES = {
    "GET": "get",
    "POST": "create",
    "PUT": "update",
    "DELETE": "delete",
    "PATCH": "patch",
}


class TypeGeneratorOptions(BaseModel):
    useInterface: bool = True
    addComments: bool = True
    exportTypes: bool = True
    prefix: str = ""


class TypeGeneratorInput(BaseModel):
    schemas: dict[str, Any]
    options: TypeGeneratorOptions = TypeGeneratorOptions()


class ApiGeneratorOptions(BaseModel):
    httpClient: Literal["axios", "fetch"] = "axios"
    baseURL: str = "/api"
    addComments: bool = True
    errorHandling: Literal["try-catch", "promise"] = "try-catch"
    generateTypes: bool = True


class Endpoint(BaseModel):
    path: str
    method: str
    operationId: str | None = None
    summary: str | None = None
    description: str | None = None
    parameters: list[dict[str, Any]] | None = None
    requestBody: dict[str, Any] | None = None


class ApiGeneratorInput(BaseModel):
    endpoints: list[Endpoint]
    options: ApiGeneratorOptions = ApiGeneratorOptions()


# --- types ---


def ts_type(schema: Any) -> str:
    """Map an OpenAPI schema fragment to a TypeScript type expression."""
    if not isinstance(schema, dict):
        return "unknown"
    if "$ref" in schema:
        return str(schema["$ref"]).rsplit("/", 1)[-1] or "any"
    kind = schema.get("type")
    if kind == "array":
        return f"{ts_type(schema['items'])}[]" if "items" in schema else "any[]"
    if kind == "object":
        properties = schema.get("properties")
        if properties:
            required = schema.get("required", [])
            props = [
                f"{name}{'' if name in required else '?'}: {ts_type(value)}"
                for name, value in properties.items()
            ]
            return "{ " + "; ".join(props) + " }"
        return "Record<string, any>"
    return PRIMITIVE_TYPES.get(kind, "unknown")


def _enum_literal(value: Any) -> str:
    return f'"{value}"' if isinstance(value, str) else str(value)


def generate_type(name: str, schema: dict, options: TypeGeneratorOptions) -> str:
    lines: list[str] = []
    export = "export " if options.exportTypes else ""
    keyword = "interface" if options.useInterface else "type"

    if options.addComments and schema.get("description"):
        lines += ["/**", f" * {schema['description']}", " */"]

    if schema.get("type") == "object" and schema.get("properties"):
        opener = f"{export}{keyword} {name} {{" if options.useInterface else f"{export}{keyword} {name} = {{"
        lines.append(opener)
        required = schema.get("required", [])
        for prop, prop_schema in schema["properties"].items():
            optional = "" if prop in required else "?"
            if options.addComments and isinstance(prop_schema, dict) and prop_schema.get("description"):
                lines.append(f"  /** {prop_schema['description']} */")
            lines.append(f"  {prop}{optional}: {ts_type(prop_schema)};")
        lines.append("}" if options.useInterface else "};")
    elif schema.get("enum"):
        # an enum is always a type alias, interfaces cannot express unions
        values = " | ".join(_enum_literal(v) for v in schema["enum"])
        lines.append(f"{export}type {name} = {values};")
    else:
        lines.append(f"{export}type {name} = {ts_type(schema)};")
    return "\n".join(lines)


# --- request functions ---


def _camel(text: str) -> str:
    return re.sub(r"[-_]([a-zA-Z0-9])", lambda m: m.group(1).upper(), text)


def _pascal(text: str) -> str:
    return text[:1].upper() + text[1:]


def _resource(path: str) -> str:
    parts = [p for p in path.split("/") if p and not p.startswith("{")]
    return parts[-1] if parts else ""


def function_name(endpoint: Endpoint) -> str:
    if endpoint.operationId:
        return endpoint.operationId
    prefix = METHOD_PREFIXES.get(endpoint.method.upper(), endpoint.method.lower())
    return f"{prefix}{_pascal(_camel(_resource(endpoint.path) or 'api'))}"


def _singular_resource_type(path: str) -> str:
    resource = _resource(path) or "Data"
    if resource.endswith("s"):
        resource = resource[:-1]
    return _pascal(_camel(resource))


def response_type_name(endpoint: Endpoint) -> str:
    method = endpoint.method.upper()
    if method == "DELETE":
        return "void"
    if method == "GET" and "{" not in endpoint.path:
        return f"{_pascal(function_name(endpoint))}Response"
    return _singular_resource_type(endpoint.path)


def param_type(param: dict) -> str:
    kind = (param.get("schema") or param).get("type")
    if kind in ("integer", "number"):
        return "number"
    if kind == "boolean":
        return "boolean"
    if kind == "array":
        return "any[]"
    if kind is None and "schema" not in param:
        return "any"
    return "string"


def _split_params(endpoint: Endpoint) -> dict[str, list[dict]]:
    groups: dict[str, list[dict]] = {"path": [], "query": [], "header": [], "body": []}
    for param in endpoint.parameters or []:
        # unresolved $ref parameters carry no name
        if "name" not in param:
            continue
        location = param.get("in", "query")
        if location in groups:
            groups[location].append(param)
    return groups


def _request_code(endpoint: Endpoint, options: ApiGeneratorOptions, params: dict, indent: int) -> str:
    spaces = " " * indent
    method = endpoint.method.lower()
    path = endpoint.path
    for p in params["path"]:
        path = path.replace("{" + p["name"] + "}", "${" + p["name"] + "}")
    has_query = bool(params["query"])
    has_body = endpoint.requestBody is not None or bool(params["body"])

    if options.httpClient == "axios":
        url = f"`{path}`" if params["path"] else f"'{path}'"
        args = [url]
        if method not in ("get", "delete"):
            args.append("data" if has_body else "undefined")
        if has_query:
            args.append("{ params }")
        return (
            f"{spaces}const response = await apiClient.{method}({', '.join(args)});\n"
            f"{spaces}return response.data;"
        )

    lines: list[str] = []
    query = ""
    if has_query:
        lines.append(f"{spaces}const queryParams = new URLSearchParams();")
        for p in params["query"]:
            name = p["name"]
            lines.append(
                f"{spaces}if (params?.{name} !== undefined) "
                f"queryParams.append('{name}', String(params.{name}));"
            )
        lines.append(
            f"{spaces}const queryString = queryParams.toString() ? `?${{queryParams.toString()}}` : '';"
        )
        query = "${queryString}"
    fetch_options = [f"method: '{endpoint.method.upper()}'"]
    if has_body:
        fetch_options.append("headers: { 'Content-Type': 'application/json' }")
        fetch_options.append("body: JSON.stringify(data)")
    lines.append(
        f"{spaces}const response = await fetch(`${{BASE_URL}}{path}{query}`, "
        f"{{ {', '.join(fetch_options)} }});"
    )
    lines.append(
        f"{spaces}if (!response.ok) throw new Error(`HTTP error! status: ${{response.status}}`);"
    )
    if endpoint.method.upper() == "DELETE":
        lines.append(f"{spaces}return;")
    else:
        lines.append(f"{spaces}return await response.json();")
    return "\n".join(lines)


def generate_function(endpoint: Endpoint, options: ApiGeneratorOptions) -> str:
    lines: list[str] = []
    name = function_name(endpoint)
    params = _split_params(endpoint)

    if options.addComments:
        lines.append("/**")
        if endpoint.summary:
            lines.append(f" * {endpoint.summary}")
        if endpoint.description:
            lines.append(f" * {endpoint.description}")
        lines.append(f" * @method {endpoint.method.upper()}")
        lines.append(f" * @path {endpoint.path}")
        lines.append(" */")

    signature = [f"{p['name']}: {param_type(p)}" for p in params["path"]]
    if params["query"]:
        query_types = "; ".join(f"{p['name']}?: {param_type(p)}" for p in params["query"])
        signature.append(f"params?: {{ {query_types} }}")
    if endpoint.requestBody is not None or params["body"]:
        body_type = f"{_pascal(name)}Request" if options.generateTypes else "any"
        signature.append(f"data: {body_type}")

    returns = f": Promise<{response_type_name(endpoint)}>" if options.generateTypes else ""
    lines.append(f"export async function {name}({', '.join(signature)}){returns} {{")
    if options.errorHandling == "try-catch":
        lines.append("  try {")
        lines.append(_request_code(endpoint, options, params, 4))
        lines.append("  } catch (error) {")
        lines.append("    console.error('API request failed:', error);")
        lines.append("    throw error;")
        lines.append("  }")
    else:
        lines.append(_request_code(endpoint, options, params, 2))
    lines.append("}")
    return "\n".join(lines)


def generate_client_header(options: ApiGeneratorOptions) -> str:
    if options.httpClient == "axios":
        return (
            "import axios from 'axios';\n\n"
            "const apiClient = axios.create({\n"
            f"  baseURL: '{options.baseURL}',\n"
            "  timeout: 10000,\n"
            "  headers: {\n"
            "    'Content-Type': 'application/json',\n"
            "  },\n"
            "});"
        )
    return f"const BASE_URL = '{options.baseURL}';"


def create_codegen_tools() -> list[Tool]:
    @validated(TypeGeneratorInput)
    def basic_type_generator(params: TypeGeneratorInput) -> ToolResult:
        options = params.options
        parts: list[str] = []
        if options.addComments:
            parts.append("/**\n * API type definitions\n * Generated code, do not edit by hand\n */\n")
        for schema_name, schema in params.schemas.items():
            if not isinstance(schema, dict):
                return ToolResult.fail(f"schema '{schema_name}' is not an object")
            parts.append(generate_type(options.prefix + schema_name, schema, options))
            parts.append("")
        return ToolResult.ok(
            {
                "code": "\n".join(parts),
                "typesCount": len(params.schemas),
                "options": options.model_dump(),
            }
        )

    @validated(ApiGeneratorInput)
    def basic_api_generator(params: ApiGeneratorInput) -> ToolResult:
        options = params.options
        parts = [generate_client_header(options), ""]
        for endpoint in params.endpoints:
            parts.append(generate_function(endpoint, options))
            parts.append("")
        return ToolResult.ok(
            {
                "code": "\n".join(parts),
                "endpointsCount": len(params.endpoints),
                "options": options.model_dump(),
            }
        )

    return [
        Tool(
            name="basic_type_generator",
            description="Generate TypeScript type definitions (interface or type) from Swagger schemas.",
            parameters={
                "type": "object",
                "properties": {
                    "schemas": {"type": "object", "description": "Swagger schemas object"},
                    "options": {
                        "type": "object",
                        "properties": {
                            "useInterface": {
                                "type": "boolean",
                                "description": "Use interface instead of type (default true)",
                            },
                            "addComments": {"type": "boolean", "description": "Add comments (default true)"},
                            "exportTypes": {"type": "boolean", "description": "Export types (default true)"},
                            "prefix": {"type": "string", "description": "Type name prefix, e.g. 'I'"},
                        },
                    },
                },
                "required": ["schemas"],
            },
            execute=basic_type_generator,
            input_model=TypeGeneratorInput,
        ),
        Tool(
            name="basic_api_generator",
            description="Generate TypeScript API request functions from Swagger endpoints (axios or fetch).",
            parameters={
                "type": "object",
                "properties": {
                    "endpoints": {
                        "type": "array",
                        "items": {"type": "object"},
                        "description": "Endpoint list as returned by swagger_parser",
                    },
                    "options": {
                        "type": "object",
                        "properties": {
                            "httpClient": {
                                "type": "string",
                                "enum": ["axios", "fetch"],
                                "description": "HTTP client (default axios)",
                            },
                            "baseURL": {"type": "string", "description": "API base URL"},
                            "addComments": {"type": "boolean", "description": "Add comments (default true)"},
                            "errorHandling": {
                                "type": "string",
                                "enum": ["try-catch", "promise"],
                                "description": "Error handling style (default try-catch)",
                            },
                            "generateTypes": {
                                "type": "boolean",
                                "description": "Type requests and responses (default true)",
                            },
                        },
                    },
                },
                "required": ["endpoints"],
            },
            execute=basic_api_generator,
            input_model=ApiGeneratorInput,
        ),
    ]
