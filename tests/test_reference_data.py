import sys
import tempfile
import unittest
from pathlib import Path


SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from reference_data import (  # noqa: E402
    ReferenceCatalogues,
    load_reference_catalogues,
    load_street_names,
    load_suburb_names,
)


class TestReferenceData(unittest.TestCase):
    def test_load_catalogues(self):
        with tempfile.TemporaryDirectory() as td:
            street_path = Path(td) / "streetnames.txt"
            suburb_path = Path(td) / "suburbnames.txt"
            street_path.write_text(
                "Rosslyn Road,Wallaroo\nROSSLYN ROAD , KADINA\n\nSMITH STREET,BERRI\n",
                encoding="utf-8",
            )
            suburb_path.write_text("BERRI,Berri\nHD MOOROOK,Moorook\n", encoding="utf-8")

            catalogues = load_reference_catalogues(street_path, suburb_path)

        self.assertEqual(catalogues.street_names["ROSSLYN ROAD"], ("WALLAROO", "KADINA"))
        self.assertEqual(catalogues.street_names["SMITH STREET"], ("BERRI",))
        self.assertEqual(catalogues.suburb_names["BERRI"], "BERRI")
        self.assertEqual(catalogues.canonical_suburb("hd moorook"), "MOOROOK")
        self.assertEqual(catalogues.canonical_suburb("LOXTON"), "LOXTON")

    def test_street_name_matching(self):
        with tempfile.TemporaryDirectory() as td:
            street_path = Path(td) / "streetnames.txt"
            street_path.write_text("ROSSLYN ROAD,WALLAROO\nSMITH STREET,BERRI\n", encoding="utf-8")
            street_names = load_street_names(street_path)

        catalogues = load_reference_catalogues(None, None)
        self.assertIsNone(catalogues.match_street_name("ROSSLYN ROAD"))

        catalogues = ReferenceCatalogues(street_names=street_names)
        self.assertEqual(catalogues.match_street_name("ROSLYN ROAD"), "ROSSLYN ROAD")
        self.assertEqual(catalogues.match_street_name("smith street"), "SMITH STREET")
        self.assertIsNone(catalogues.match_street_name("ROSSLYN WINGS ROAD"))

    def test_malformed_line_is_skipped(self):
        with tempfile.TemporaryDirectory() as td:
            suburb_path = Path(td) / "suburbnames.txt"
            suburb_path.write_text("BERRI\nLOXTON,LOXTON\n", encoding="utf-8")
            with self.assertLogs("reference_data", level="WARNING"):
                suburb_names = load_suburb_names(suburb_path)

        self.assertEqual(suburb_names, {"LOXTON": "LOXTON"})

    def test_missing_file_gives_empty_catalogue(self):
        with tempfile.TemporaryDirectory() as td:
            with self.assertLogs("reference_data", level="WARNING"):
                self.assertEqual(load_street_names(Path(td) / "streetnames.txt"), {})


if __name__ == "__main__":
    unittest.main()
