"""CLI command for book ingestion with diagnostics and lint reporting."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from dotenv import load_dotenv

from folio.config import ExtractionSettings, ProcessingOptions
from folio.extraction.ingestor import BookIngestor
from folio.extraction.models import ExtractionError
from folio.extraction.registry import build_default_registry, format_from_name

logger = logging.getLogger(__name__)


def _is_supported(path: Path) -> bool:
    return format_from_name(path.name) is not None


def _collect_inputs(target: Path) -> list[Path]:
    if target.is_file():
        return [target]
    if target.is_dir():
        return sorted(path for path in target.rglob("*") if path.is_file() and _is_supported(path))
    return []


def _build_ingestor() -> BookIngestor:
    settings = ExtractionSettings.from_env()
    return BookIngestor(
        build_default_registry(settings),
        settings=settings,
        options=ProcessingOptions.from_env(),
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Extract, typeset and lint books; print a JSON report")
    parser.add_argument("--path", required=True, help="Source file or directory")
    parser.add_argument("--lint", action="store_true", help="Run the quality linter on processed chapters")
    parser.add_argument("--language", default=None, help="Override the detected book language (e.g. en)")
    parser.add_argument("--verbose", action="store_true", help="Log extraction details")
    args = parser.parse_args(argv)

    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    source_path = Path(args.path)
    files = _collect_inputs(source_path)

    try:
        ingestor = _build_ingestor()
    except ValueError as exc:
        print(json.dumps({"path": str(source_path), "error": str(exc)}, ensure_ascii=True, indent=2))
        return 1

    results: list[dict[str, object]] = []
    errors: list[dict[str, str]] = []

    for file_path in files:
        try:
            report = ingestor.ingest(file_path, language=args.language, lint=args.lint)
        except ExtractionError as exc:
            errors.append({"source_path": str(file_path), "error": str(exc)})
            continue
        entry = report.to_dict()
        entry["source_path"] = str(file_path)
        results.append(entry)

    if not files:
        logger.warning("No supported books found under %s", source_path)

    payload = {
        "path": str(source_path),
        "processed": len(results),
        "results": results,
        "errors": errors,
    }
    print(json.dumps(payload, ensure_ascii=True, indent=2))
    return 0 if not errors else 1


if __name__ == "__main__":
    raise SystemExit(main())
