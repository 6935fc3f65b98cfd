from __future__ import annotations

import json
import sys
import unittest
from pathlib import Path as FilePath

TESTS_DIR = FilePath(__file__).resolve().parent
PROJECT_ROOT = TESTS_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from epsdiagram.canvas import BLACK, Color
from epsdiagram.errors import DiagramModelError
from epsdiagram.geometry import ClosePath, CubicTo, LineTo, MoveTo, Path, QuadTo
from epsdiagram.model import Diagram, ShapeKind, load_diagram, parse_color, parse_path


def _source(**overrides) -> str:
    data = {"width": 100, "height": 50, "cell_width": 10, "cell_height": 14}
    data.update(overrides)
    return json.dumps(data)


class LoadDiagramTests(unittest.TestCase):
    def test_full_model(self) -> None:
        diagram = load_diagram(
            _source(
                shapes=[
                    {
                        "kind": "storage",
                        "closed": True,
                        "dashed": True,
                        "shadow": False,
                        "fill": "#ff0000",
                        "stroke": [0, 0, 255],
                        "path": [["M", 0, 0], ["L", 1, 0], ["Q", 2, 0, 2, 1], ["C", 2, 2, 1, 3, 0, 3], ["Z"]],
                    },
                    {"path": [["m", 5, 5], ["l", 6, 6]]},
                ],
                texts=[{"text": "Hi", "x": 3, "y": 4.5, "color": "white", "font_size": 14}],
            )
        )
        self.assertEqual((diagram.width, diagram.height), (100.0, 50.0))
        self.assertEqual(diagram.minimum_cell_dimension, 10.0)

        storage, plain = diagram.shapes
        self.assertIs(storage.kind, ShapeKind.STORAGE)
        self.assertTrue(storage.closed)
        self.assertTrue(storage.dashed)
        self.assertFalse(storage.drops_shadow)
        self.assertEqual(storage.fill_color, Color(255, 0, 0))
        self.assertEqual(storage.stroke_color, Color(0, 0, 255))
        self.assertEqual(
            storage.path,
            Path(
                [
                    MoveTo(0.0, 0.0),
                    LineTo(1.0, 0.0),
                    QuadTo(2.0, 0.0, 2.0, 1.0),
                    CubicTo(2.0, 2.0, 1.0, 3.0, 0.0, 3.0),
                    ClosePath(),
                ]
            ),
        )

        self.assertIs(plain.kind, ShapeKind.ORDINARY)
        self.assertFalse(plain.closed)
        self.assertFalse(plain.dashed)
        self.assertTrue(plain.drops_shadow)
        self.assertIsNone(plain.fill_color)
        self.assertEqual(plain.stroke_color, BLACK)
        self.assertEqual(len(plain.path), 2)

        (text,) = diagram.texts
        self.assertEqual((text.text, text.x, text.y, text.font_size), ("Hi", 3.0, 4.5, 14))
        self.assertEqual(text.color, Color(255, 255, 255))

    def test_lists_default_to_empty(self) -> None:
        diagram = load_diagram(_source())
        self.assertEqual(diagram.shapes, [])
        self.assertEqual(diagram.texts, [])

    def test_invalid_json(self) -> None:
        with self.assertRaises(DiagramModelError) as ctx:
            load_diagram("{not json")
        self.assertIn("line 1", str(ctx.exception))
        self.assertIsInstance(ctx.exception, ValueError)

    def test_missing_metrics(self) -> None:
        with self.assertRaisesRegex(DiagramModelError, "cell_height"):
            load_diagram(json.dumps({"width": 1, "height": 1, "cell_width": 1}))

    def test_cell_size_must_be_positive(self) -> None:
        with self.assertRaises(DiagramModelError):
            load_diagram(_source(cell_width=0))

    def test_non_finite_metrics_are_rejected(self) -> None:
        with self.assertRaisesRegex(DiagramModelError, r"diagram\.width: expected a finite number"):
            load_diagram(_source(width=float("inf")))
        with self.assertRaisesRegex(DiagramModelError, "cell_height"):
            load_diagram('{"width": 1, "height": 1, "cell_width": 1, "cell_height": -Infinity}')

    def test_non_finite_path_coordinates_are_rejected(self) -> None:
        source = _source(shapes=[{"path": [["M", float("nan"), 0], ["L", 1, 1]]}])
        self.assertIn("NaN", source)
        with self.assertRaisesRegex(DiagramModelError, r"shapes\[0\]\.path\[0\]: M takes 2 finite numbers"):
            load_diagram(source)

    def test_non_finite_text_position_is_rejected(self) -> None:
        with self.assertRaisesRegex(DiagramModelError, r"texts\[0\]\.x"):
            load_diagram(_source(texts=[{"text": "a", "x": float("inf"), "y": 0}]))

    def test_unknown_kind(self) -> None:
        with self.assertRaisesRegex(DiagramModelError, r"shapes\[0\]: unknown kind"):
            load_diagram(_source(shapes=[{"kind": "cloud"}]))

    def test_flags_must_be_booleans(self) -> None:
        with self.assertRaisesRegex(DiagramModelError, "dashed"):
            load_diagram(_source(shapes=[{"dashed": "yes"}]))

    def test_text_requires_string(self) -> None:
        with self.assertRaisesRegex(DiagramModelError, r"texts\[0\]\.text"):
            load_diagram(_source(texts=[{"x": 1, "y": 2}]))


class DiagramTests(unittest.TestCase):
    def test_cell_size_is_checked_on_construction(self) -> None:
        with self.assertRaisesRegex(DiagramModelError, "cell_width and cell_height must be > 0"):
            Diagram(width=20.0, height=10.0, cell_width=0.0, cell_height=10.0)
        with self.assertRaises(DiagramModelError):
            Diagram(width=20.0, height=10.0, cell_width=10.0, cell_height=-1.0)

    def test_negative_size_is_rejected(self) -> None:
        with self.assertRaisesRegex(DiagramModelError, "width and height must be >= 0"):
            Diagram(width=-1.0, height=10.0, cell_width=10.0, cell_height=10.0)

    def test_non_finite_size_is_rejected(self) -> None:
        with self.assertRaisesRegex(DiagramModelError, "diagram height must be finite"):
            Diagram(width=1.0, height=float("inf"), cell_width=1.0, cell_height=1.0)

    def test_zero_size_is_allowed(self) -> None:
        diagram = Diagram(width=0.0, height=0.0, cell_width=1.0, cell_height=2.0)
        self.assertEqual(diagram.minimum_cell_dimension, 1.0)


class ParsePathTests(unittest.TestCase):
    def test_unknown_command(self) -> None:
        with self.assertRaisesRegex(DiagramModelError, "unknown path command"):
            parse_path([["A", 1, 1, 0, 0, 1, 2, 2]])

    def test_wrong_arity(self) -> None:
        with self.assertRaisesRegex(DiagramModelError, "Q takes 4 finite numbers"):
            parse_path([["Q", 1, 2]])

    def test_non_numeric_arguments(self) -> None:
        with self.assertRaises(DiagramModelError):
            parse_path([["L", "1", 2]])
        with self.assertRaises(DiagramModelError):
            parse_path([["L", True, 2]])

    def test_empty_path(self) -> None:
        self.assertTrue(parse_path([]).is_empty)


class ParseColorTests(unittest.TestCase):
    def test_css_strings(self) -> None:
        self.assertEqual(parse_color("#f80"), Color(255, 136, 0))
        self.assertEqual(parse_color("rgb(10, 20, 30)"), Color(10, 20, 30))
        self.assertEqual(parse_color("black"), Color(0, 0, 0))

    def test_alpha_is_dropped(self) -> None:
        self.assertEqual(parse_color("#11223344"), Color(0x11, 0x22, 0x33))

    def test_rgb_list(self) -> None:
        self.assertEqual(parse_color([1, 2, 3]), Color(1, 2, 3))

    def test_invalid_colors(self) -> None:
        for bad in ("not-a-color", [1, 2], [0, 0, 256], 7, [0.5, 0, 0]):
            with self.subTest(bad=bad):
                with self.assertRaises(DiagramModelError):
                    parse_color(bad)


if __name__ == "__main__":
    unittest.main()
