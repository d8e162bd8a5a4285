from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from .compute.engine import evaluate_all
from .core.hashing import hash_schema
from .core.serde import json_dumps_canonical
from .formulation.migrate import migrate_with_report
from .formulation.templates import list_templates
from .io.config import EngineSettings
from .io.errors import DocumentError, IoConfigError
from .io.read import read_document, read_schema, read_values
from .io.validate import validate

# Exit codes: 0 ok, 1 rejected schema, 2 unreadable input or bad usage.
EXIT_OK = 0
EXIT_INVALID = 1
EXIT_UNREADABLE = 2


def _add_config(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--config",
        type=str,
        default=None,
        help="TOML settings file (default: ./worksheet.toml, then pyproject [tool.worksheet.engine]).",
    )


def _load_settings(config: str | None) -> EngineSettings:
    """Load settings and configure logging once per command."""
    settings = EngineSettings.load(config)
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")
    return settings


def _print_json(obj: Any) -> None:
    print(json.dumps(obj, ensure_ascii=False, indent=2))


def _fail(message: str, code: int) -> int:
    print(f"[ERROR] {message}", file=sys.stderr)
    return code


def _cmd_validate(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="worksheet validate", description="Validate a schema document.")
    p.add_argument("schema", type=str, help="Path to schema JSON.")
    _add_config(p)
    args = p.parse_args(argv)

    try:
        settings = _load_settings(args.config)
        schema = read_schema(args.schema, settings)
    except (IoConfigError, DocumentError) as e:
        return _fail(str(e), EXIT_UNREADABLE)

    result = validate(schema, settings)
    _print_json(result.to_dict())
    return EXIT_OK if result.valid else EXIT_INVALID


def _cmd_migrate(argv: list[str]) -> int:
    p = argparse.ArgumentParser(
        prog="worksheet migrate",
        description="Upgrade a legacy formulation schema; other schemas are echoed unchanged.",
    )
    p.add_argument("schema", type=str, help="Path to schema JSON.")
    p.add_argument("--out", type=str, default="", help="Write the result here instead of stdout.")
    _add_config(p)
    args = p.parse_args(argv)

    try:
        _load_settings(args.config)
        raw = read_document(args.schema)
    except (IoConfigError, DocumentError) as e:
        return _fail(str(e), EXIT_UNREADABLE)
    if not isinstance(raw, dict):
        return _fail(f"schema document {args.schema!r} must be a JSON object", EXIT_UNREADABLE)

    migrated, report = migrate_with_report(raw)
    text = json_dumps_canonical(migrated)
    if args.out:
        out = Path(args.out)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text + "\n", encoding="utf-8")
        print(f"[INFO] Wrote {out}")
    else:
        print(text)
    if report.migrated:
        print(
            f"[INFO] {report.source_layout.value} -> {report.layout.value}: "
            f"{len(report.node_ids)} nodes, {report.connection_count} connections",
            file=sys.stderr,
        )
    return EXIT_OK


def _cmd_evaluate(argv: list[str]) -> int:
    p = argparse.ArgumentParser(
        prog="worksheet evaluate", description="Render every computed field of a schema."
    )
    p.add_argument("schema", type=str, help="Path to schema JSON.")
    p.add_argument("values", type=str, help="Path to response values JSON (field id -> value).")
    _add_config(p)
    args = p.parse_args(argv)

    try:
        settings = _load_settings(args.config)
        schema = read_schema(args.schema, settings)
        values = read_values(args.values)
    except (IoConfigError, DocumentError) as e:
        return _fail(str(e), EXIT_UNREADABLE)

    result = validate(schema, settings)
    if not result.valid:
        return _fail(f"invalid schema: {result.error}", EXIT_INVALID)
    _print_json(evaluate_all(schema, values))
    return EXIT_OK


def _cmd_fingerprint(argv: list[str]) -> int:
    p = argparse.ArgumentParser(
        prog="worksheet fingerprint",
        description="SHA-256 of the canonical JSON of the (migrated) schema.",
    )
    p.add_argument("schema", type=str, help="Path to schema JSON.")
    _add_config(p)
    args = p.parse_args(argv)

    try:
        _load_settings(args.config)
        raw = read_document(args.schema)
    except (IoConfigError, DocumentError) as e:
        return _fail(str(e), EXIT_UNREADABLE)
    if not isinstance(raw, dict):
        return _fail(f"schema document {args.schema!r} must be a JSON object", EXIT_UNREADABLE)

    migrated, _ = migrate_with_report(raw)
    print(hash_schema(migrated))
    return EXIT_OK


def _cmd_templates(argv: list[str]) -> int:
    p = argparse.ArgumentParser(
        prog="worksheet templates", description="List curated formulation templates."
    )
    p.add_argument("--layout", type=str, default="", help="Only templates with this layout.")
    args = p.parse_args(argv)

    for t in list_templates():
        if args.layout and t.layout.value != args.layout:
            continue
        print(f"{t.id}\t{t.layout.value}\t{t.name}")
    return EXIT_OK


_COMMANDS = {
    "validate": _cmd_validate,
    "migrate": _cmd_migrate,
    "evaluate": _cmd_evaluate,
    "fingerprint": _cmd_fingerprint,
    "templates": _cmd_templates,
}


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="worksheet", description="Worksheet schema validation, migration and evaluation."
    )
    sub = p.add_subparsers(dest="cmd", required=True)
    for name in _COMMANDS:
        sub.add_parser(name)
    return p


def main(argv: list[str] | None = None) -> None:
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv:
        build_argparser().print_help()
        return
    cmd, rest = argv[0], argv[1:]
    handler = _COMMANDS.get(cmd)
    if handler is None:
        print(f"Unknown command: {cmd}", file=sys.stderr)
        code = EXIT_UNREADABLE
    else:
        code = handler(rest)
    raise SystemExit(code)


if __name__ == "__main__":
    main()
