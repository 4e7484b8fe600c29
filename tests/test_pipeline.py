import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock


SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

import config  # noqa: E402
import pipeline  # noqa: E402
from extract_scanned import configure_ocr_binaries  # noqa: E402
from pipeline import document_url, process_single_document, run_pipeline, run_single  # noqa: E402


class TestConfig(unittest.TestCase):
    def tearDown(self):
        config.reset_config()

    def test_environment_overrides(self):
        with tempfile.TemporaryDirectory() as td:
            env = {"DA_DATA_DIR": td, "DA_DATABASE": str(Path(td) / "council.sqlite")}
            with mock.patch.dict(os.environ, env):
                config.reset_config()
                paths = config.get_config().paths

        self.assertEqual(paths.data_dir, Path(td))
        self.assertEqual(paths.street_names_file, Path(td) / "streetnames.txt")
        self.assertEqual(paths.database_file, Path(td) / "council.sqlite")

    def test_singleton(self):
        self.assertIs(config.get_config(), config.get_config())
        self.assertEqual(config.get_config().extraction.max_pages_per_document, 500)


class TestPipeline(unittest.TestCase):
    def test_document_url(self):
        pdf_path = Path("/data/register.pdf")
        self.assertEqual(document_url(pdf_path, "https://www.berri.sa.gov.au/docs/"),
                         "https://www.berri.sa.gov.au/docs/register.pdf")
        self.assertTrue(document_url(pdf_path).startswith("file://"))

    def test_missing_document_gives_error_result(self):
        with tempfile.TemporaryDirectory() as td:
            result = process_single_document(Path(td) / "missing.pdf", "https://example.org/missing.pdf")

        self.assertEqual(result["extraction_status"], "error")
        self.assertEqual(result["applications"], [])
        self.assertIn("processing_time", result["extraction_metadata"])

    def test_run_single_writes_json(self):
        with tempfile.TemporaryDirectory() as td:
            output_file = Path(td) / "out" / "missing.json"
            result = run_single(Path(td) / "missing.pdf", output_file)

            self.assertTrue(output_file.exists())
        self.assertIn("validation", result["extraction_metadata"])

    def test_workers_locate_ocr_binaries(self):
        with tempfile.TemporaryDirectory() as td:
            input_dir = Path(td) / "in"
            input_dir.mkdir()
            (input_dir / "broken.pdf").write_bytes(b"not a pdf")

            with mock.patch("pipeline.ProcessPoolExecutor", wraps=pipeline.ProcessPoolExecutor) as executor:
                summary = run_pipeline(input_dir, Path(td) / "out", max_workers=1, use_dated_folder=False)

            self.assertTrue((Path(td) / "out" / "broken.json").exists())

        kwargs = executor.call_args.kwargs
        self.assertIs(kwargs["initializer"], configure_ocr_binaries)
        self.assertEqual(kwargs["initargs"][0], config.get_config().ocr.tesseract_paths)
        self.assertEqual(summary["batch_info"]["failed"], 1)


if __name__ == "__main__":
    unittest.main()
