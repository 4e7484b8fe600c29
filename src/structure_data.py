"""
Result Structuring Module

Shapes the output of the document driver into the JSON documents written
per PDF, checks them for obvious problems and aggregates batch statistics.
"""

import json
import logging
import re
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from parse_record import ParsedRecord

logger = logging.getLogger(__name__)

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def record_to_dict(record: ParsedRecord) -> dict:
    return asdict(record)


def record_from_dict(data: dict) -> ParsedRecord:
    """Rebuild a ParsedRecord from record_to_dict output (missing fields become "")."""
    return ParsedRecord(
        application_number=data["application_number"],
        address=data.get("address", ""),
        description=data.get("description", ""),
        information_url=data.get("information_url", ""),
        comment_url=data.get("comment_url", ""),
        scrape_date=data.get("scrape_date", ""),
        received_date=data.get("received_date", ""),
    )


def _document(pdf_path: Path, information_url: Optional[str], document_type: str,
              status: str, applications: list[dict], metadata: dict) -> dict:
    metadata["extracted_at"] = _utc_timestamp()
    return {
        "source_file": pdf_path.name,
        "information_url": information_url,
        "document_type": document_type,
        "extraction_status": status,
        "applications": applications,
        "extraction_metadata": metadata,
    }


def structure_extraction_result(
    pdf_path: str | Path,
    information_url: str,
    extraction_result: dict
) -> dict:
    """
    Build the JSON document for one PDF.

    Args:
        pdf_path: Path to the source PDF
        information_url: URL reported for the document's applications
        extraction_result: Output of extract_development_applications

    Returns:
        Dictionary with extraction_status 'success' (applications found),
        'no_data' (none found) or 'error' (the driver reported an error)
    """
    applications = [record_to_dict(r) for r in extraction_result.get("applications", [])]
    error = extraction_result.get("error")

    if error:
        status = "error"
    else:
        status = "success" if applications else "no_data"

    metadata = {
        key: extraction_result.get(key, default)
        for key, default in (
            ("page_count", 0),
            ("pages_processed", []),
            ("pages_skipped", []),
            ("record_groups_found", 0),
            ("record_groups_rejected", 0),
            ("extraction_methods", []),
        )
    }
    if error:
        metadata["error"] = error

    return _document(Path(pdf_path), information_url, extraction_result.get("document_type", "unknown"),
                     status, applications, metadata)


def error_result(pdf_path: str | Path, information_url: Optional[str], error: str,
                 traceback_text: Optional[str] = None) -> dict:
    """The JSON document for a PDF that could not be processed at all."""
    metadata = {"error": error}
    if traceback_text:
        metadata["traceback"] = traceback_text
    return _document(Path(pdf_path), information_url, "unknown", "error", [], metadata)


def validate_structured_data(data: dict) -> dict:
    """
    Check a structured result for problems worth a manual look.

    Flags missing or repeated application numbers, empty addresses or
    descriptions, received dates not in YYYY-MM-DD form and skipped pages.

    Returns:
        {"valid": bool, "issues": [str], "application_count": int}
    """
    issues = []
    applications = data.get("applications", [])

    if not data.get("source_file"):
        issues.append("Missing source_file")
    if not data.get("extraction_status"):
        issues.append("Missing extraction_status")
    elif data["extraction_status"] == "success" and not applications:
        issues.append("Status is 'success' but no applications found")

    seen = set()
    for position, app in enumerate(applications, 1):
        number = app.get("application_number")
        name = number or f"#{position}"
        if not number:
            issues.append(f"Application {name} has no application number")
        elif number in seen:
            issues.append(f"Application number {number} is not unique")
        seen.add(number)

        for field_name in ("address", "description"):
            if not app.get(field_name):
                issues.append(f"Application {name} has no {field_name}")

        received = app.get("received_date", "")
        if received and not _ISO_DATE_RE.match(received):
            issues.append(f"Application {name} has a malformed received date: {received}")

    skipped = data.get("extraction_metadata", {}).get("pages_skipped")
    if skipped:
        issues.append(f"Pages skipped: {skipped}")

    return {"valid": not issues, "issues": issues, "application_count": len(applications)}


def save_to_json(data: dict, output_path: str | Path, pretty: bool = True) -> bool:
    """
    Write a result or summary as UTF-8 JSON, creating parent directories.

    Returns:
        False (after logging) if the file could not be written
    """
    output_path = Path(output_path)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(
            json.dumps(data, indent=2 if pretty else None, ensure_ascii=False),
            encoding="utf-8",
        )
    except Exception as e:
        logger.error(f"Could not write {output_path}: {e}")
        return False
    return True


def merge_batch_results(results: list[dict]) -> dict:
    """
    Summarise a batch of structured results.

    Returns:
        {"batch_info": counts by status and document type plus application
        totals, "results": the results themselves}
    """
    batch_info = {
        "total_documents": len(results),
        "successful": 0,
        "failed": 0,
        "no_data": 0,
        "electronic_docs": 0,
        "scanned_docs": 0,
        "hybrid_docs": 0,
        "total_applications": 0,
        "rejected_record_groups": 0,
        "processed_at": _utc_timestamp(),
    }
    status_keys = {"success": "successful", "error": "failed"}

    for result in results:
        batch_info[status_keys.get(result.get("extraction_status"), "no_data")] += 1

        type_key = f"{result.get('document_type')}_docs"
        if type_key in batch_info:
            batch_info[type_key] += 1

        batch_info["total_applications"] += len(result.get("applications", []))
        batch_info["rejected_record_groups"] += result.get("extraction_metadata", {}).get("record_groups_rejected", 0)

    return {"batch_info": batch_info, "results": results}
