"""Accumulated output of a workbook compilation and cross-sheet resolution."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from xlsx_schema_compiler.dictionary import BUILTIN_REF_TYPES
from xlsx_schema_compiler.models import (
    CompileResultResponse,
    ToolIdentity,
    XlsxError,
)
from xlsx_schema_compiler.schema import Schema, SchemaField
from xlsx_schema_compiler.utils.exceptions import (
    ErrorCode,
    SubSchemaNotFoundError,
)
from xlsx_schema_compiler.utils.logging import get_logger
from xlsx_schema_compiler.workbook import Hyperlink

logger = get_logger(__name__)

TOOL_SCHEMA_PREFIX = "tool-schema:"


@dataclass
class CacheEntry:
    """Where a worksheet's schema (or tool) can be found once resolved."""

    name: str | None
    iri: str | None = None
    tool_id: str | None = None


@dataclass(frozen=True)
class Link:
    """A reference minted for a field whose type names another schema."""

    name: str | None
    worksheet: str | None = None


class LinkCache:
    """Mints placeholder ids for reference-typed fields."""

    def __init__(self) -> None:
        self._links: dict[str, Link] = {}

    def add(self, name: str, hyperlink: Hyperlink | None = None) -> str:
        link_id = f"link_{len(self._links)}"
        worksheet = hyperlink.worksheet if hyperlink else None
        self._links[link_id] = Link(name=name, worksheet=worksheet)
        logger.debug("Link registered", link_id=link_id, name=name, worksheet=worksheet)
        return link_id

    def get(self, link_id: str | None) -> Link | None:
        if link_id is None:
            return None
        return self._links.get(link_id)

    def clear(self) -> None:
        self._links.clear()

    def __len__(self) -> int:
        return len(self._links)


class XlsxResult:
    """Schemas, tool stubs, links and errors collected across worksheets.

    Two reference caches are kept: one keyed by worksheet name (for
    hyperlink-based references) and one keyed by schema display name (for
    references written as plain names). Tool stubs are registered in the
    name cache under ``tool-schema:<name>``.
    """

    def __init__(self) -> None:
        self._schemas: list[Schema] = []
        self._tools: list[ToolIdentity] = []
        self._errors: list[XlsxError] = []
        self._tools_cache: dict[str, ToolIdentity] = {}
        self._schema_worksheet_cache: dict[str, CacheEntry] = {}
        self._schema_name_cache: dict[str, CacheEntry] = {}
        self.links = LinkCache()

    @property
    def schemas(self) -> list[Schema]:
        return self._schemas

    @property
    def tools(self) -> list[ToolIdentity]:
        return self._tools

    @property
    def errors(self) -> list[XlsxError]:
        return self._errors

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #

    def add_tool(self, worksheet: str, name: str | None, message_id: str) -> None:
        """Register a tool stub found on ``worksheet``."""
        self._tools_cache[message_id] = ToolIdentity(
            uuid=message_id, name=message_id, message_id=message_id
        )
        cache = CacheEntry(name=name, tool_id=message_id)
        self._schema_worksheet_cache[worksheet] = cache
        self._schema_name_cache[f"{TOOL_SCHEMA_PREFIX}{name}"] = cache

    def add_schema(self, worksheet: str, name: str | None, schema: Schema) -> None:
        """Register a policy schema built from ``worksheet``."""
        self._schemas.append(schema)
        cache = CacheEntry(name=name, iri=schema.iri)
        self._schema_worksheet_cache[worksheet] = cache
        if name:
            self._schema_name_cache[name] = cache

    def add_error(self, error: XlsxError, target: Any = None) -> None:
        """Record an error, optionally attached to a field, schema or condition."""
        if target is not None:
            error.target = target
        self._errors.append(error)

    def add_errors(self, errors: Iterable[XlsxError | dict[str, Any]]) -> None:
        """Record errors reported by an external collaborator."""
        for error in errors:
            if isinstance(error, XlsxError):
                self._errors.append(error)
            else:
                data = dict(error)
                data["type"] = "error"
                data.setdefault("text", data.get("message") or "Unknown error.")
                self._errors.append(XlsxError.model_validate(data))

    def add_link(self, name: str, hyperlink: Hyperlink | None = None) -> str:
        return self.links.add(name, hyperlink)

    def errors_for(self, target: Any) -> list[XlsxError]:
        """Errors attached to ``target`` (compared by identity)."""
        return [e for e in self._errors if e.target is target]

    def clear(self) -> None:
        """Drop all accumulated state so the instance can be reused."""
        self._schemas.clear()
        self._tools.clear()
        self._errors.clear()
        self._tools_cache.clear()
        self._schema_worksheet_cache.clear()
        self._schema_name_cache.clear()
        self.links.clear()

    # ------------------------------------------------------------------ #
    # Tools
    # ------------------------------------------------------------------ #

    def get_tool_ids(self) -> list[ToolIdentity]:
        return list(self._tools_cache.values())

    def update_tool(self, tool: ToolIdentity, schemas: Iterable[Any]) -> None:
        """Back-fill a tool's identity and the IRIs of the schemas it ships.

        ``schemas`` are the tool's own schemas, as mappings or objects with
        ``name`` and ``iri``. Every cached reference pointing at the tool is
        updated with the IRI of the schema sharing its name.
        """
        try:
            self._tools.append(tool)
            if tool.message_id is None:
                raise ValueError("Tool has no message id")
            self._tools_cache[tool.message_id] = ToolIdentity(
                uuid=tool.uuid, name=tool.name, message_id=tool.message_id
            )
            iris = {}
            for schema in schemas:
                name = _attr(schema, "name")
                if name is not None and name not in iris:
                    iris[name] = _attr(schema, "iri")
            for cache in (
                *self._schema_worksheet_cache.values(),
                *self._schema_name_cache.values(),
            ):
                if cache.tool_id == tool.message_id:
                    cache.iri = iris.get(cache.name)
            logger.info(
                "Tool updated",
                message_id=tool.message_id,
                schemas=len(iris),
            )
        except Exception as e:
            logger.error("Failed to update tool", error=str(e))
            error = XlsxError.from_exception("Failed to parse file.", e)
            error.code = ErrorCode.TOOL_UPDATE_FAILED.value
            self.add_error(error)

    # ------------------------------------------------------------------ #
    # Resolution
    # ------------------------------------------------------------------ #

    def _find_cache(self, link: Link) -> CacheEntry | None:
        cache = None
        if link.worksheet:
            cache = self._schema_worksheet_cache.get(link.worksheet)
        if cache is None and link.name:
            cache = self._schema_name_cache.get(
                link.name
            ) or self._schema_name_cache.get(f"{TOOL_SCHEMA_PREFIX}{link.name}")
        return cache

    def get_sub_schema(self, field: SchemaField, schema: Schema | None = None) -> str | None:
        """Resolve a reference-typed field to a schema IRI.

        Unresolvable references record a ``Sub-schema not found`` error on
        the field and resolve to None.
        """
        if field.type in BUILTIN_REF_TYPES:
            return field.type
        link = self.links.get(field.type)
        if link is not None:
            cache = self._find_cache(link)
            if cache is not None and cache.iri:
                return cache.iri

        reference = link.name if link is not None and link.name else field.type
        exc = SubSchemaNotFoundError(reference)
        self.add_error(
            XlsxError(
                code=exc.error_code.value,
                text=exc.message,
                message=exc.message,
                worksheet=schema.worksheet if schema else "",
                cell=field.name or None,
            ),
            field,
        )
        logger.warning("Sub-schema not found", reference=reference, field=field.name)
        return None

    def update_schemas(self) -> None:
        """Resolve every reference-typed field of every schema."""
        try:
            for schema in self._schemas:
                for field in schema.fields:
                    if field.is_ref:
                        field.type = self.get_sub_schema(field, schema)
                schema.update_refs(self._schemas)
        except Exception as e:
            logger.error("Failed to resolve schemas", error=str(e))
            self.add_error(XlsxError.from_exception("Failed to parse file.", e))

    # ------------------------------------------------------------------ #
    # Output
    # ------------------------------------------------------------------ #

    def to_response(self) -> CompileResultResponse:
        return CompileResultResponse(
            schemas=[s.summary() for s in self._schemas],
            tools=list(self._tools_cache.values()),
            errors=list(self._errors),
        )

    def to_json(self) -> dict[str, Any]:
        return self.to_response().to_dict()


def _attr(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)
