"""Tests for selection, export, OCR plumbing, the chart view and the CLI."""

import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from types import SimpleNamespace
from unittest import mock

# Add parent to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

# Check for optional dependencies
try:
    import cv2
    HAS_CV2 = True
except ImportError:
    HAS_CV2 = False

try:
    import matplotlib
    matplotlib.use("Agg")
    HAS_MATPLOTLIB = True
except ImportError:
    HAS_MATPLOTLIB = False

RAW_TEXT = (
    "{'time_series': [{'timestamp': '2024-01-01T00:00:00Z', 'value': 1.5} "
    "{'timestamp': '2024-01-01T02:00:00Z', 'value': 4.0}]"
)


def make_records(*hours, values=None):
    from ts_extractor.decoder import TimeSeriesRecord

    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    values = values or [float(h) for h in hours]
    return [
        TimeSeriesRecord(timestamp=base + timedelta(hours=h), value=v)
        for h, v in zip(hours, values)
    ]


class TestSelection(unittest.TestCase):
    """Tests for nearest-point selection."""

    def test_closer_to_second_record(self):
        """A query between T1 and T2 but nearer T2 selects T2."""
        from ts_extractor.selection import find_closest_record

        records = make_records(0, 2, 4)
        query = datetime(2024, 1, 1, 1, 30, tzinfo=timezone.utc)

        self.assertIs(find_closest_record(records, query), records[1])

    def test_tie_goes_to_first(self):
        """Equal distances resolve to the earlier record in sequence order."""
        from ts_extractor.selection import find_closest_record

        records = make_records(0, 2)
        query = datetime(2024, 1, 1, 1, 0, tzinfo=timezone.utc)

        self.assertIs(find_closest_record(records, query), records[0])

    def test_unsorted_records(self):
        """Selection does not assume chronological order."""
        from ts_extractor.selection import find_closest_record

        records = make_records(4, 0, 2)
        query = datetime(2024, 1, 1, 0, 10, tzinfo=timezone.utc)

        self.assertIs(find_closest_record(records, query), records[1])

    def test_empty_and_naive(self):
        """No records gives None; naive query times are treated as UTC."""
        from ts_extractor.selection import find_closest_record

        self.assertIsNone(find_closest_record([], datetime(2024, 1, 1)))

        records = make_records(0, 3)
        self.assertIs(find_closest_record(records, datetime(2024, 1, 1, 2)), records[1])

    def test_tooltip_text(self):
        """Tooltip shows a medium date, short time and two decimals."""
        from ts_extractor.selection import format_tooltip

        record = make_records(13, values=[1.5])[0]

        self.assertEqual(
            format_tooltip(record),
            "Timestamp: Jan 1, 2024 1:00 PM\nValue: 1.50"
        )

    def test_timestamp_hours_not_padded(self):
        """Midnight and noon read 12:xx; single-digit hours have no zero."""
        from ts_extractor.selection import format_timestamp

        self.assertEqual(
            format_timestamp(datetime(2024, 3, 9, 0, 5, tzinfo=timezone.utc)),
            "Mar 9, 2024 12:05 AM"
        )
        self.assertEqual(
            format_timestamp(datetime(2024, 12, 25, 12, 0, tzinfo=timezone.utc)),
            "Dec 25, 2024 12:00 PM"
        )
        self.assertEqual(
            format_timestamp(datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc)),
            "Jan 1, 2024 9:30 AM"
        )


class TestExporter(unittest.TestCase):
    """Tests for record export."""

    def test_dataframe(self):
        """DataFrame keeps extraction order and both columns."""
        from ts_extractor.exporter import RecordExporter

        exporter = RecordExporter(make_records(2, 0, 1))
        df = exporter.dataframe

        self.assertEqual(len(df), 3)
        self.assertEqual(list(df.columns), ["timestamp", "value"])
        self.assertEqual(df["value"].tolist(), [2.0, 0.0, 1.0])

    def test_to_dict_and_csv(self):
        """Dict and CSV use canonical timestamp strings."""
        from ts_extractor.exporter import RecordExporter

        exporter = RecordExporter(make_records(0, 1, values=[1.5, 2.0]))

        self.assertEqual(exporter.to_dict(), {
            "timestamp": ["2024-01-01T00:00:00Z", "2024-01-01T01:00:00Z"],
            "value": [1.5, 2.0],
        })

        with tempfile.TemporaryDirectory() as tmp:
            path = exporter.to_csv(Path(tmp) / "series.csv")
            lines = path.read_text().splitlines()

        self.assertEqual(lines[0], "timestamp,value")
        self.assertEqual(lines[1], "2024-01-01T00:00:00Z,1.5")


@unittest.skipUnless(HAS_CV2, "OpenCV (cv2) not installed")
class TestOcrEngine(unittest.TestCase):
    """Tests for image loading and OCR result grouping."""

    def setUp(self):
        from ts_extractor.config import AppConfig

        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.config = AppConfig(ASSETS_DIR=Path(self.tmp.name), PREPROCESS=False)

    def test_group_lines(self):
        """Words are grouped per line, in reading order, skipping empties."""
        from ts_extractor.ocr import group_lines

        data = {
            "text": ["", "{'time_series':", "[{'value':", "1.5}]", "  "],
            "conf": [-1, 91.0, 88.5, 90.0, 95.0],
            "block_num": [1, 1, 1, 1, 1],
            "par_num": [1, 1, 1, 1, 1],
            "line_num": [0, 1, 2, 2, 2],
        }

        self.assertEqual(group_lines(data), ["{'time_series':", "[{'value': 1.5}]"])

    def test_load_bundled_image(self):
        """Images are resolved by logical name."""
        from PIL import Image
        from ts_extractor.ocr import OcrEngine

        Image.new("RGB", (40, 20), color=(255, 255, 255)).save(
            Path(self.tmp.name) / "time_series_report.png"
        )

        image = OcrEngine(self.config).load_image("time_series_report")

        self.assertEqual(image.shape, (20, 40, 3))

    def test_bundled_report_ships_with_package(self):
        """The default config resolves the packaged sample report."""
        from ts_extractor.config import AppConfig, get_assets_path
        from ts_extractor.ocr import OcrEngine

        config = AppConfig()
        self.assertEqual(config.ASSETS_DIR, get_assets_path())
        self.assertTrue((get_assets_path() / "time_series_report.png").is_file())

        image = OcrEngine(config).load_image(config.IMAGE_NAME)

        self.assertEqual(image.ndim, 3)
        self.assertGreater(image.shape[1], image.shape[0])

    def test_missing_and_corrupt_images(self):
        """Missing or unreadable files raise ImageLoadError."""
        from ts_extractor.errors import ImageLoadError
        from ts_extractor.ocr import OcrEngine

        engine = OcrEngine(self.config)
        with self.assertRaises(ImageLoadError):
            engine.load_image("time_series_report")

        (Path(self.tmp.name) / "broken.png").write_bytes(b"not an image")
        with self.assertRaises(ImageLoadError):
            engine.load_image("broken")

    def test_recognize_without_pytesseract(self):
        """Missing pytesseract is reported as an OCR error."""
        import numpy as np
        from ts_extractor.errors import OcrError
        from ts_extractor.ocr import OcrEngine

        engine = OcrEngine(self.config)
        with mock.patch("ts_extractor.ocr.pytesseract", None):
            with self.assertRaises(OcrError):
                engine.recognize(np.zeros((10, 10, 3), dtype=np.uint8))

    def test_read_text_joins_lines(self):
        """read_text joins recognized lines with spaces."""
        from ts_extractor.ocr import OcrEngine

        engine = OcrEngine(self.config)
        with mock.patch.object(engine, "load_image", return_value=None), \
                mock.patch.object(engine, "recognize", return_value=["{'a':", "1}"]):
            self.assertEqual(engine.read_text("time_series_report"), "{'a': 1}")


class StaticEngine:
    def __init__(self, text=RAW_TEXT):
        self.text = text

    def read_text(self, image_name):
        return self.text


@unittest.skipUnless(HAS_MATPLOTLIB, "matplotlib not installed")
class TestChartView(unittest.TestCase):
    """Tests for the chart window, driven without a display."""

    def setUp(self):
        from ts_extractor.chart import ChartView

        self.view = ChartView(engine=StaticEngine(), quiet=True)
        self.addCleanup(self.view.close)

    def load(self):
        self.view.extractor.extract_text().result(5)
        return self.view.process_pending()

    def test_updates_applied_on_ui_context(self):
        """Nothing is drawn until queued updates are processed."""
        self.view.extractor.extract_text().result(5)
        self.assertEqual(len(self.view.line.get_xdata()), 0)

        applied = self.view.process_pending()

        self.assertGreaterEqual(applied, 2)
        self.assertEqual(list(self.view.line.get_ydata()), [1.5, 4.0])
        self.assertIn('"time_series"', self.view.json_text.get_text())

    def test_press_and_drag_select_nearest(self):
        """Press selects, dragging updates, release stops tracking."""
        import matplotlib.dates as mdates

        self.load()
        ax = self.view.chart_ax

        def event(hour, minute=0):
            when = datetime(2024, 1, 1, hour, minute, tzinfo=timezone.utc)
            return SimpleNamespace(inaxes=ax, xdata=mdates.date2num(when))

        self.view._on_press(event(0, 20))
        self.assertEqual(self.view.extractor.selected.value, 1.5)
        self.assertTrue(self.view.tooltip.get_visible())
        self.assertIn("Value: 1.50", self.view.tooltip.get_text())

        self.view._on_motion(event(1, 50))
        self.assertEqual(self.view.extractor.selected.value, 4.0)

        self.view._on_release(None)
        self.view._on_motion(event(0, 0))
        self.assertEqual(self.view.extractor.selected.value, 4.0)

    def test_events_outside_chart_ignored(self):
        """Clicks outside the chart axes do not select anything."""
        self.load()

        self.view._on_press(SimpleNamespace(inaxes=self.view.json_ax, xdata=0.5))

        self.assertIsNone(self.view.extractor.selected)
        self.assertFalse(self.view.tooltip.get_visible())


class TestCli(unittest.TestCase):
    """Tests for the command-line entry point."""

    def run_cli(self, *argv):
        from ts_extractor import cli

        with mock.patch.object(sys, "argv", ["ts-extract", *argv]):
            with self.assertRaises(SystemExit) as ctx:
                cli.main()
        return ctx.exception.code

    def test_text_mode_exports_csv(self):
        """Saved OCR text can be processed and exported without a window."""
        with tempfile.TemporaryDirectory() as tmp:
            text_path = Path(tmp) / "ocr.txt"
            text_path.write_text(RAW_TEXT, encoding="utf-8")
            csv_path = Path(tmp) / "series.csv"

            code = self.run_cli("--text", str(text_path), "--no-chart", "-q", "--csv", str(csv_path))

            self.assertEqual(code, 0)
            self.assertEqual(len(csv_path.read_text().splitlines()), 3)

    def test_text_mode_parse_error_exit_code(self):
        """A JSON failure exits with status 1."""
        with tempfile.TemporaryDirectory() as tmp:
            text_path = Path(tmp) / "ocr.txt"
            text_path.write_text('{"readings": [1, 2}', encoding="utf-8")

            code = self.run_cli("--text", str(text_path), "--no-chart", "-q")

        self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()
