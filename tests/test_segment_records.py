import sys
import unittest
from pathlib import Path


SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from geometry import TextFragment  # noqa: E402
from segment_records import get_row_top, segment_page  # noqa: E402


def _frag(text: str, x: float, y: float, width: float = 100, height: float = 10) -> TextFragment:
    return TextFragment(x, y, width, height, text)


def _record(y: float, number: str) -> list[TextFragment]:
    return [
        _frag("Application No", 0, y),
        _frag(number, 120, y, 80),
        _frag("Property Street", 0, y + 20),
        _frag("SMITH STREET", 150, y + 20, 80),
        _frag("Property Suburb", 0, y + 40),
        _frag("BERRI", 150, y + 40, 50),
    ]


class TestSegmentPage(unittest.TestCase):
    def test_two_records_on_one_page(self):
        first = _record(0, "DA1/2020")
        second = _record(100, "DA2/2020")
        groups = segment_page(second + first)

        self.assertEqual(len(groups), 2)
        self.assertEqual(groups[0].start_fragment, first[0])
        self.assertEqual(groups[1].start_fragment, second[0])
        self.assertCountEqual(groups[0].fragments, first)
        self.assertCountEqual(groups[1].fragments, second)

    def test_value_slightly_above_label_stays_with_its_record(self):
        first = _record(0, "DA1/2020")
        second = _record(100, "DA2/2020")
        raised_value = _frag("DA2/2020", 120, 97, 80)
        second[1] = raised_value
        groups = segment_page(first + second)

        self.assertIn(raised_value, groups[1].fragments)
        self.assertNotIn(raised_value, groups[0].fragments)

    def test_page_without_anchors(self):
        fragments = [_frag("Development Register", 0, 0, 200), _frag("Page 1", 0, 20, 40)]
        self.assertEqual(segment_page(fragments), [])

    def test_fragments_above_first_record_are_dropped(self):
        header = _frag("Development Register", 0, 0, 200)
        record = _record(50, "DA1/2020")
        groups = segment_page([header] + record)

        self.assertEqual(len(groups), 1)
        self.assertNotIn(header, groups[0].fragments)


class TestRowTop(unittest.TestCase):
    def test_row_top_ignores_tall_fragments(self):
        label = _frag("Application No", 0, 100)
        raised = _frag("DA1/2020", 120, 97, 80)
        tall = _frag("|", 250, 0, 5, 200)
        self.assertEqual(get_row_top([label, raised, tall], label), 97)


if __name__ == "__main__":
    unittest.main()
