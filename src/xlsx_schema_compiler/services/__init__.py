"""Services for xlsx schema compilation."""

from xlsx_schema_compiler.services.compiler import ToolResolver, XlsxToJson
from xlsx_schema_compiler.services.result import XlsxResult

__all__ = ["ToolResolver", "XlsxResult", "XlsxToJson"]
