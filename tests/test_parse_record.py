import sys
import unittest
from pathlib import Path


SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from common import COMMENT_URL, NO_DESCRIPTION  # noqa: E402
from geometry import TextFragment  # noqa: E402
from parse_record import parse_received_date, parse_record, split_merged_address  # noqa: E402
from reference_data import ReferenceCatalogues  # noqa: E402
from segment_records import RecordGroup  # noqa: E402


INFO_URL = "https://www.berri.sa.gov.au/register.pdf"


def _frag(text: str, x: float, y: float, width: float = 100, height: float = 10) -> TextFragment:
    return TextFragment(x, y, width, height, text)


def _group(fragments: list[TextFragment]) -> RecordGroup:
    return RecordGroup(start_fragment=fragments[0], fragments=fragments)


def _basic_record(number: str = "DA123/2020") -> list[TextFragment]:
    return [
        _frag("Application No", 0, 0),
        _frag(number, 120, 0, 80),
        _frag("Property Street", 0, 20),
        _frag("SMITH STREET", 150, 20, 80),
        _frag("Property Suburb", 0, 40),
        _frag("BERRI", 150, 40, 50),
    ]


class TestParseRecord(unittest.TestCase):
    def test_minimal_record(self):
        record = parse_record(_group(_basic_record()), INFO_URL, scrape_date="2020-06-01")

        self.assertIsNotNone(record)
        self.assertEqual(record.application_number, "DA123/2020")
        self.assertEqual(record.address, "SMITH STREET, BERRI")
        self.assertEqual(record.description, NO_DESCRIPTION)
        self.assertEqual(record.information_url, INFO_URL)
        self.assertEqual(record.comment_url, COMMENT_URL)
        self.assertEqual(record.scrape_date, "2020-06-01")
        self.assertEqual(record.received_date, "")

    def test_scrape_date_defaults_to_today(self):
        record = parse_record(_group(_basic_record()), INFO_URL)
        self.assertRegex(record.scrape_date, r"^\d{4}-\d{2}-\d{2}$")

    def test_slash_misreadings_in_application_number(self):
        record = parse_record(_group(_basic_record("DA5l2020")), INFO_URL, scrape_date="2020-06-01")
        self.assertEqual(record.application_number, "DA5/2020")

    def test_full_record(self):
        fragments = [
            _frag("Application No", 0, 0),
            _frag("DA123/2020", 120, 0, 80),
            _frag("Application Date", 300, 0),
            _frag("1/06/2020", 420, 0, 60),
            _frag("Applicants Name", 0, 20),
            _frag("J CITIZEN", 150, 20, 60),
            _frag("Property House No", 0, 40),
            _frag("12A", 150, 40, 20),
            _frag("Planning Conditions", 300, 40),
            _frag("Lot", 0, 55, 20),
            _frag("Property Street", 0, 70),
            _frag("SMITH STREET", 150, 70, 80),
            _frag("Property Suburb", 0, 90),
            _frag("BERRI", 150, 90, 50),
            _frag("Title", 0, 105, 30),
            _frag("Application Received", 0, 120),
            _frag("5/03/2020", 150, 120, 60),
            _frag("Planning Approval", 300, 120),
            _frag("Development Description", 0, 140, 150),
            _frag("Relevant Authority", 300, 140),
            _frag("DWELLING AND GARAGE", 0, 155, 140),
            _frag("Private Certifier Name", 0, 175, 150),
        ]
        record = parse_record(_group(fragments), INFO_URL, scrape_date="2020-06-01")

        self.assertEqual(record.application_number, "DA123/2020")
        self.assertEqual(record.address, "12A SMITH STREET, BERRI")
        self.assertEqual(record.description, "DWELLING AND GARAGE")
        self.assertEqual(record.received_date, "2020-03-05")

    def test_record_without_street_is_rejected(self):
        fragments = [f for f in _basic_record() if f.text not in ("Property Street", "SMITH STREET")]
        with self.assertLogs("parse_record", level="INFO") as captured:
            self.assertIsNone(parse_record(_group(fragments), INFO_URL))
        self.assertIn("no street name", captured.output[0])
        self.assertIn("[Application No]", captured.output[0])

    def test_record_with_zero_suburb_is_rejected(self):
        fragments = _basic_record()
        fragments[-1] = _frag("0", 150, 40, 10)
        self.assertIsNone(parse_record(_group(fragments), INFO_URL))

    def test_record_without_application_number_is_rejected(self):
        fragments = _basic_record()[2:]
        self.assertIsNone(parse_record(_group(fragments), INFO_URL))

    def test_suburb_catalogue_is_applied(self):
        catalogues = ReferenceCatalogues(suburb_names={"BERRI": "Berri"})
        record = parse_record(_group(_basic_record()), INFO_URL, catalogues, scrape_date="2020-06-01")
        self.assertEqual(record.address, "SMITH STREET, Berri")


class TestSplitMergedAddress(unittest.TestCase):
    def test_single_address(self):
        self.assertEqual(split_merged_address("12", "SMITH STREET", "BERRI"), "12 SMITH STREET, BERRI")
        self.assertEqual(split_merged_address("", "SMITH STREET", "HD MOOROOK"), "SMITH STREET, MOOROOK")

    def test_one_separator_per_field(self):
        self.assertEqual(
            split_merged_address("35ü4", "RAILWAY TCEüSCHOOL TERRACE", "PASKEVILLEüPASKEVILLE"),
            "35 RAILWAY TCE, PASKEVILLE",
        )

    def test_second_address_used_when_only_it_has_a_house_number(self):
        self.assertEqual(
            split_merged_address("LOT 5ü12", "RAILWAY TCEüSCHOOL TERRACE", "PASKEVILLEüKADINA"),
            "12 SCHOOL TERRACE, KADINA",
        )

    def test_street_without_separator_is_shared(self):
        self.assertEqual(split_merged_address("7ü9", "SMITH STREET", "BERRI"), "7 SMITH STREET, BERRI")

    def test_middle_token_with_one_space(self):
        self.assertEqual(
            split_merged_address("3ü5", "OLIVEüTUCKER PARADEüROAD", "WALLAROOüWALLAROO"),
            "3 OLIVE PARADE, WALLAROO",
        )
        self.assertEqual(
            split_merged_address("Aü5", "OLIVEüTUCKER PARADEüROAD", "WALLAROOüWALLAROO"),
            "5 TUCKER ROAD, WALLAROO",
        )

    def test_ambiguous_middle_token_falls_back_without_catalogue_match(self):
        catalogues = ReferenceCatalogues(street_names={"ROSSLYN ROAD": ("WALLAROO",)})
        self.assertEqual(
            split_merged_address("79ü4", "ROSSLYNüSWIFT WINGS ROADüSTREET", "WALLAROOüWALLAROO", catalogues),
            "79 ROSSLYN ROAD, WALLAROO",
        )

    def test_ambiguous_middle_token_resolved_by_catalogue(self):
        catalogues = ReferenceCatalogues(street_names={"SWIFT STREET": ("WALLAROO",)})
        self.assertEqual(
            split_merged_address("79ü4", "ROSSLYNüSWIFT WINGS ROADüSTREET", "WALLAROOüWALLAROO", catalogues),
            "79 ROSSLYN WINGS ROAD, WALLAROO",
        )


class TestParseReceivedDate(unittest.TestCase):
    def test_valid_dates(self):
        self.assertEqual(parse_received_date("5/03/2020"), "2020-03-05")
        self.assertEqual(parse_received_date(" 15/12/2019 "), "2019-12-15")

    def test_invalid_dates(self):
        self.assertEqual(parse_received_date(None), "")
        self.assertEqual(parse_received_date(""), "")
        self.assertEqual(parse_received_date("5/3/2020"), "")
        self.assertEqual(parse_received_date("31/02/2020"), "")
        self.assertEqual(parse_received_date("5/03/2020 Fees"), "")


if __name__ == "__main__":
    unittest.main()
