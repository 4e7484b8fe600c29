import sys
import unittest
from pathlib import Path


SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from geometry import TextFragment  # noqa: E402
from locate_labels import (  # noqa: E402
    find_application_anchors,
    find_label,
    has_literal_label,
    right_neighbor,
)


def _frag(text: str, x: float, y: float, width: float = 100, height: float = 10) -> TextFragment:
    return TextFragment(x, y, width, height, text)


class TestRightNeighbor(unittest.TestCase):
    def test_neighbor_is_not_symmetric(self):
        a = _frag("Property", 0, 0, 50)
        b = _frag("Street", 60, 0, 50)
        fragments = [a, b]
        self.assertIs(right_neighbor(fragments, a), b)
        self.assertIsNone(right_neighbor(fragments, b))

    def test_gap_of_thirty_points_or_more_is_rejected(self):
        a = _frag("Property", 0, 0, 50)
        far = _frag("Street", 80, 0, 50)
        self.assertIsNone(right_neighbor([a, far], a))

        near = _frag("Street", 79, 0, 50)
        self.assertIs(right_neighbor([a, near], a), near)

    def test_closest_candidate_wins(self):
        a = _frag("Property", 0, 0, 50)
        closer = _frag("Street", 55, 0, 40)
        further = _frag("Suburb", 70, 0, 40)
        self.assertIs(right_neighbor([a, further, closer], a), closer)

    def test_tall_shadow_fragment_is_not_a_neighbor(self):
        a = _frag("Property", 0, 0, 50)
        shadow = _frag("Street", 60, -20, 50, 50)
        self.assertIsNone(right_neighbor([a, shadow], a))

    def test_fragment_starting_inside_origin_is_not_a_neighbor(self):
        a = _frag("Property", 0, 0, 50)
        inside = _frag("Street", 45, 0, 50)
        self.assertIsNone(right_neighbor([a, inside], a))


class TestFindLabel(unittest.TestCase):
    def test_label_split_over_fragments(self):
        first = _frag("Property", 0, 0, 50)
        second = _frag("Street", 55, 0, 40)
        fragments = [first, second]
        self.assertIs(find_label(fragments, "Property Street"), first)
        self.assertIs(find_label(fragments, "Property Street", prefer_rightmost=True), second)

    def test_exact_match_takes_precedence_over_fuzzy_match(self):
        misread = _frag("Application N0", 0, 0)
        exact = _frag("Application No", 0, 50)
        self.assertIs(find_label([misread, exact], "Application No"), exact)

    def test_fuzzy_match_within_two_edits(self):
        misread = _frag("Propery Stret", 0, 0)
        self.assertIs(find_label([misread], "Property Street"), misread)

    def test_no_match_beyond_two_edits(self):
        self.assertIsNone(find_label([_frag("Property Suburb", 0, 0)], "Property Street"))

    def test_match_ignores_case_and_punctuation(self):
        label = _frag("PROPERTY-STREET,", 0, 0)
        self.assertIs(find_label([label], "Property Street"), label)

    def test_missing_label(self):
        self.assertIsNone(find_label([_frag("Lot", 0, 0, 20)], "Title"))
        self.assertIsNone(find_label([], "Title"))


class TestApplicationAnchors(unittest.TestCase):
    def test_misread_anchors_end_at_no(self):
        first = _frag("Application N0", 0, 100)
        second = _frag("Application", 0, 0, 60)
        no = _frag("N°", 65, 0, 15)
        value = _frag("DA1/2020", 120, 0, 60)
        anchors = find_application_anchors([first, value, no, second])
        self.assertEqual(anchors, [no, first])

    def test_other_application_labels_are_not_anchors(self):
        fragments = [
            _frag("Application Date", 0, 0),
            _frag("Application Received", 0, 20),
            _frag("Applicants Name", 0, 40),
        ]
        self.assertEqual(find_application_anchors(fragments), [])


class TestHasLiteralLabel(unittest.TestCase):
    def test_single_fragment(self):
        self.assertTrue(has_literal_label([_frag("Application Received", 0, 0)], "Application Received"))

    def test_split_over_fragments(self):
        fragments = [_frag("Application", 0, 0, 60), _frag("received", 65, 0, 45)]
        self.assertTrue(has_literal_label(fragments, "Application received"))
        self.assertFalse(has_literal_label(fragments, "Application Received"))


if __name__ == "__main__":
    unittest.main()
