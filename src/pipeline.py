"""
Development Application Extraction Pipeline

Entry point for extracting development applications from council register
PDFs. A single file is processed in-process; a directory is processed with
one worker process per document. Extracted applications are written to the
SQLite store by the parent process only.
"""

import logging
import time
import traceback
from concurrent.futures import ProcessPoolExecutor, as_completed
from datetime import datetime
from pathlib import Path
from typing import Optional

from tqdm import tqdm

from config import get_config
from extract_applications import extract_development_applications
from extract_scanned import check_ocr_available, configure_ocr_binaries
from reference_data import EMPTY_CATALOGUES, ReferenceCatalogues, load_reference_catalogues
from storage import connect_database, insert_records
from structure_data import (
    error_result,
    merge_batch_results,
    record_from_dict,
    save_to_json,
    structure_extraction_result,
    validate_structured_data,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def setup_logging(log_dir: Path) -> Path:
    """
    Send log records to a timestamped file in log_dir and to stderr.

    Returns:
        Path of the log file
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"extraction_{datetime.now():%Y%m%d_%H%M%S}.log"

    logging.basicConfig(
        level=logging.INFO,
        format=LOG_FORMAT,
        handlers=[logging.FileHandler(log_file, encoding="utf-8"), logging.StreamHandler()],
    )
    # pdfminer reports every malformed object at WARNING
    logging.getLogger("pdfminer").setLevel(logging.ERROR)
    return log_file


def document_url(pdf_path: Path, base_url: Optional[str] = None) -> str:
    """URL reported for a document's applications."""
    if base_url:
        return f"{base_url.rstrip('/')}/{pdf_path.name}"
    return pdf_path.resolve().as_uri()


def find_pdf_files(input_dir: Path) -> list[Path]:
    # Case-insensitive filesystems return the same file for both patterns
    found = {p.resolve() for pattern in ("*.pdf", "*.PDF") for p in input_dir.glob(pattern)}
    return sorted(found)


def prepare_ocr() -> bool:
    """Locate Tesseract and Poppler and report whether scanned pages can be read."""
    ocr = get_config().ocr
    configure_ocr_binaries(ocr.tesseract_paths, ocr.poppler_paths)
    status = check_ocr_available()
    if status["available"]:
        logger.info("OCR available for scanned pages")
    else:
        logger.warning(f"OCR not available, scanned pages will be skipped: {status['errors']}")
    return status["available"]


def process_single_document(
    pdf_path: Path,
    information_url: Optional[str] = None,
    catalogues: ReferenceCatalogues = EMPTY_CATALOGUES
) -> dict:
    """
    Extract and structure the applications of one PDF.

    Never raises: a failure is returned as a result with
    extraction_status 'error' and the traceback in its metadata.

    Args:
        pdf_path: Path to the PDF file
        information_url: URL reported for every application (defaults to
            the file's URI)
        catalogues: Known street and suburb names

    Returns:
        Structured extraction result dictionary
    """
    started = time.time()
    pdf_path = Path(pdf_path)
    information_url = information_url or document_url(pdf_path)

    try:
        extraction = extract_development_applications(pdf_path, information_url, catalogues)
        result = structure_extraction_result(pdf_path, information_url, extraction)
    except Exception as e:
        logger.error(f"Unexpected failure on {pdf_path.name}: {e}")
        result = error_result(pdf_path, information_url, str(e), traceback.format_exc())

    result["extraction_metadata"]["processing_time"] = round(time.time() - started, 3)
    return result


def store_result(conn, result: dict) -> dict:
    """Insert a structured result's applications into the database."""
    records = [record_from_dict(app) for app in result.get("applications", [])]
    return insert_records(conn, records)


def _log_batch_summary(batch_info: dict) -> None:
    logger.info("=" * 50)
    logger.info(
        f"Batch finished: {batch_info['total_documents']} documents, "
        f"{batch_info['successful']} with applications, {batch_info['no_data']} without, "
        f"{batch_info['failed']} failed"
    )
    logger.info(
        f"Applications extracted: {batch_info['total_applications']} "
        f"(record groups rejected: {batch_info['rejected_record_groups']})"
    )
    if "inserted" in batch_info:
        logger.info(f"Database: {batch_info['inserted']} inserted, {batch_info['already_present']} already present")
    logger.info("=" * 50)


def run_pipeline(
    input_dir: str | Path,
    output_dir: str | Path,
    log_dir: Optional[str | Path] = None,
    max_workers: int = 4,
    batch_size: int = 50,
    use_dated_folder: bool = True,
    catalogues: ReferenceCatalogues = EMPTY_CATALOGUES,
    database_path: Optional[str | Path] = None,
    base_url: Optional[str] = None
) -> dict:
    """
    Extract applications from every PDF in a directory.

    Args:
        input_dir: Directory of register PDFs
        output_dir: Where per-document JSON and the batch summary go
        log_dir: Log directory (defaults to <run folder>/logs)
        max_workers: Worker processes
        batch_size: Documents between intermediate summaries
        use_dated_folder: Write into a YYYY-MM-DD_HHMMSS subfolder of output_dir
        catalogues: Known street and suburb names
        database_path: SQLite file to insert applications into (None to skip)
        base_url: URL prefix under which the documents are published

    Returns:
        Batch summary with statistics

    Output layout:
        output_dir/2025-01-11_143052/
            logs/extraction_20250111_143052.log
            logs/failed_documents.txt
            <pdf name>.json
            batch_summary.json
            batch_summary_intermediate.json
    """
    input_dir = Path(input_dir)
    run_dir = Path(output_dir)
    if use_dated_folder:
        run_dir = run_dir / f"{datetime.now():%Y-%m-%d_%H%M%S}"
    log_dir = Path(log_dir) if log_dir else run_dir / "logs"

    run_dir.mkdir(parents=True, exist_ok=True)
    setup_logging(log_dir)
    prepare_ocr()

    pdf_files = find_pdf_files(input_dir)
    logger.info(f"{len(pdf_files)} PDF files to process in {input_dir}")
    if not pdf_files:
        logger.warning(f"Nothing to do: no PDF files in {input_dir}")
        return {"batch_info": {"total_documents": 0}, "results": []}

    conn = connect_database(database_path) if database_path else None
    db_counts = {"inserted": 0, "skipped": 0}
    results = []
    failed = []

    try:
        ocr = get_config().ocr
        with ProcessPoolExecutor(
            max_workers=max_workers,
            initializer=configure_ocr_binaries,
            initargs=(ocr.tesseract_paths, ocr.poppler_paths),
        ) as executor:
            futures = {
                executor.submit(process_single_document, pdf, document_url(pdf, base_url), catalogues): pdf
                for pdf in pdf_files
            }

            with tqdm(total=len(futures), desc="Extracting applications", unit="doc") as progress:
                for future in as_completed(futures):
                    pdf_path = futures[future]
                    try:
                        result = future.result()
                    except Exception as e:
                        logger.error(f"Worker failed on {pdf_path.name}: {e}")
                        failed.append(str(pdf_path))
                        progress.update(1)
                        continue

                    results.append(result)
                    save_to_json(result, run_dir / f"{pdf_path.stem}.json")

                    status = result["extraction_status"]
                    if status == "success":
                        logger.info(f"{pdf_path.name}: {len(result['applications'])} applications")
                    else:
                        logger.warning(f"{pdf_path.name}: {status}")
                        failed.append(str(pdf_path))

                    if conn is not None:
                        counts = store_result(conn, result)
                        db_counts["inserted"] += counts["inserted"]
                        db_counts["skipped"] += counts["skipped"]

                    progress.update(1)
                    if len(results) % batch_size == 0:
                        save_to_json(merge_batch_results(results), run_dir / "batch_summary_intermediate.json")
    finally:
        if conn is not None:
            conn.close()

    summary = merge_batch_results(results)
    if database_path:
        summary["batch_info"]["database"] = str(database_path)
        summary["batch_info"]["inserted"] = db_counts["inserted"]
        summary["batch_info"]["already_present"] = db_counts["skipped"]
    save_to_json(summary, run_dir / "batch_summary.json")

    if failed:
        (log_dir / "failed_documents.txt").write_text("\n".join(failed), encoding="utf-8")

    _log_batch_summary(summary["batch_info"])
    return summary


def run_single(
    pdf_path: str | Path,
    output_path: Optional[str | Path] = None,
    information_url: Optional[str] = None,
    catalogues: ReferenceCatalogues = EMPTY_CATALOGUES,
    database_path: Optional[str | Path] = None
) -> dict:
    """
    Extract the applications of one PDF in the current process.

    The result carries a 'validation' entry in its metadata and, when a
    database is given, the inserted/skipped counts under 'database'.
    """
    prepare_ocr()
    result = process_single_document(Path(pdf_path), information_url, catalogues)
    result["extraction_metadata"]["validation"] = validate_structured_data(result)

    if database_path:
        conn = connect_database(database_path)
        try:
            result["extraction_metadata"]["database"] = store_result(conn, result)
        finally:
            conn.close()

    if output_path:
        save_to_json(result, output_path)
    return result


def build_arg_parser():
    import argparse

    parser = argparse.ArgumentParser(
        description="Extract development applications from council register PDFs",
        epilog="Output goes to a dated subfolder of the output directory "
               "(logs/, one JSON file per PDF, batch_summary.json) unless --no-dated is given.",
    )
    parser.add_argument("input", help="Register PDF, or a directory of them")
    parser.add_argument("-o", "--output", help="Output directory (default: data/output)")
    parser.add_argument("-w", "--workers", type=int, default=None, help="Worker processes for a directory")
    parser.add_argument("--single", action="store_true", help="Treat input as a single file")
    parser.add_argument("--no-dated", action="store_true", help="Write straight into the output directory")
    parser.add_argument("--url", help="Information URL of a single file, or URL prefix of a directory")
    parser.add_argument("--database", help="SQLite database file (default: data/data.sqlite)")
    parser.add_argument("--no-database", action="store_true", help="Don't write applications to the database")
    parser.add_argument("--street-names", help="Street name catalogue (default: data/streetnames.txt)")
    parser.add_argument("--suburb-names", help="Suburb name catalogue (default: data/suburbnames.txt)")
    return parser


def main(argv=None) -> int:
    args = build_arg_parser().parse_args(argv)
    config = get_config()

    input_path = Path(args.input)
    output_dir = Path(args.output) if args.output else config.paths.output_dir
    database_path = None if args.no_database else Path(args.database or config.paths.database_file)
    catalogues = load_reference_catalogues(
        args.street_names or config.paths.street_names_file,
        args.suburb_names or config.paths.suburb_names_file,
    )

    if not (args.single or input_path.is_file()):
        summary = run_pipeline(
            input_path,
            output_dir,
            max_workers=args.workers or config.extraction.default_workers,
            use_dated_folder=not args.no_dated,
            catalogues=catalogues,
            database_path=database_path,
            base_url=args.url,
        )
        batch_info = summary["batch_info"]
        print(f"\nDocuments: {batch_info['total_documents']}")
        print(f"Applications: {batch_info.get('total_applications', 0)}")
        print(f"Failed: {batch_info.get('failed', 0)}")
        return 0

    if not args.no_dated:
        output_dir = output_dir / f"{datetime.now():%Y-%m-%d_%H%M%S}"
    setup_logging(output_dir / "logs")

    output_file = output_dir / f"{input_path.stem}.json"
    result = run_single(input_path, output_file, args.url, catalogues, database_path)

    print(f"\n{input_path.name}: {result['extraction_status']} ({result['document_type']})")
    for app in result["applications"]:
        print(f"\n  {app['application_number']}")
        print(f"    Address:     {app['address']}")
        print(f"    Description: {app['description'][:100]}")
        print(f"    Received:    {app['received_date'] or 'unknown'}")
    print(f"\nResult written to {output_file}")
    return 1 if result["extraction_status"] == "error" else 0


if __name__ == "__main__":
    raise SystemExit(main())
