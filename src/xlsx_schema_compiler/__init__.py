"""xlsx Schema Compiler - JSON-Schema documents from policy workbooks."""

from xlsx_schema_compiler.config import ParserConfig
from xlsx_schema_compiler.services import XlsxResult, XlsxToJson

__all__ = ["ParserConfig", "XlsxResult", "XlsxToJson", "main"]
__version__ = "0.1.0"


def main(argv: list[str] | None = None) -> int:
    """Compile a workbook and print the result as JSON."""
    import argparse
    import json

    from xlsx_schema_compiler.config import settings
    from xlsx_schema_compiler.utils.logging import configure_logging

    parser = argparse.ArgumentParser(
        prog="xlsx-schema-compiler",
        description="Compile an .xlsx policy workbook into JSON-Schema documents.",
    )
    parser.add_argument("file", help="Path to the .xlsx workbook")
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    )
    parser.add_argument("--indent", type=int, default=2)
    args = parser.parse_args(argv)

    configure_logging(level=args.log_level)
    result = XlsxToJson(settings.to_parser_config()).parse_file(args.file)
    print(json.dumps(result.to_json(), indent=args.indent, ensure_ascii=False))
    return 1 if result.errors else 0
