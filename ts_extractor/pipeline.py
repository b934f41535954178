"""End-to-end extraction: OCR, JSON repair, decoding and observable state."""

import sys
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Optional

from .config import AppConfig, config as default_config
from .decoder import TimeSeriesRecord, decode_entries, format_json, to_records
from .errors import (
    DecodeError,
    ErrorKind,
    ExtractionInProgressError,
    ImageLoadError,
    OcrError,
)
from .extractor import extract_time_series
from .normalizer import normalize
from .selection import find_closest_record


@dataclass
class ExtractionResult:
    """Outcome of one extraction run."""
    records: list[TimeSeriesRecord] = field(default_factory=list)
    extracted_json: str = ""
    raw_text: str = ""
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    dropped: int = 0  # entries lost to invalid timestamps

    @property
    def succeeded(self) -> bool:
        return self.error_kind is None


@dataclass(frozen=True)
class ExtractorState:
    """Snapshot of the fields a view binds to."""
    extracted_json: str = ""
    time_series: tuple = ()
    selected: Optional[TimeSeriesRecord] = None
    in_flight: bool = False


def process_text(
    raw_text: str,
    pairing: str = "positional",
    quiet: bool = False
) -> ExtractionResult:
    """Turn raw OCR text into records.

    Args:
        raw_text: Text as returned by the OCR engine
        pairing: Timestamp/value pairing mode passed to the extractor
        quiet: If True, suppress progress and error messages

    Returns:
        ExtractionResult; on a JSON failure the records are empty and
        extracted_json holds the error text
    """
    def log(msg):
        if not quiet:
            print(msg)

    normalized = normalize(raw_text)
    canonical = extract_time_series(normalized, pairing=pairing)

    extracted_json, error = format_json(canonical)
    if error is not None:
        if not quiet:
            print(f"JSON Parsing Error: {error}", file=sys.stderr)
        return ExtractionResult(
            extracted_json=extracted_json,
            raw_text=raw_text,
            error=error,
            error_kind=ErrorKind.JSON_PARSE,
        )

    try:
        entries = decode_entries(extracted_json)
    except DecodeError as e:
        if not quiet:
            print(str(e), file=sys.stderr)
        return ExtractionResult(
            extracted_json=extracted_json,
            raw_text=raw_text,
            error=str(e),
            error_kind=ErrorKind.DECODE,
        )

    records = to_records(entries)
    log(f"  Decoded {len(records)} of {len(entries)} entries")

    return ExtractionResult(
        records=records,
        extracted_json=extracted_json,
        raw_text=raw_text,
        dropped=len(entries) - len(records),
    )


def _call_now(fn: Callable[[], None]) -> None:
    fn()


class TextExtractor:
    """Runs extractions in the background and owns the view state.

    Only one extraction may be outstanding; a second request is rejected
    with ExtractionInProgressError. State changes are handed to
    ``dispatch`` so a UI can apply them on its own thread; subscribers are
    called from there with a fresh ExtractorState.

    Usage:
        with TextExtractor() as extractor:
            result = extractor.extract_text().result()
    """

    def __init__(
        self,
        engine=None,
        dispatch: Optional[Callable[[Callable[[], None]], None]] = None,
        config: Optional[AppConfig] = None,
        pairing: str = "positional",
        quiet: bool = False
    ):
        """Initialize the coordinator.

        Args:
            engine: Object with read_text(image_name) -> str (default: OcrEngine)
            dispatch: Schedules a callable on the UI context (default: call now)
            config: Application configuration
            pairing: Timestamp/value pairing mode
            quiet: If True, suppress progress messages
        """
        self.config = config or default_config
        if engine is None:
            from .ocr import OcrEngine
            engine = OcrEngine(self.config)
        self.engine = engine
        self.pairing = pairing
        self.quiet = quiet

        self._dispatch = dispatch or _call_now
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ocr")
        self._lock = threading.Lock()
        self._busy = False
        self._state = ExtractorState()
        self._subscribers: list[Callable[[ExtractorState], None]] = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self):
        """Wait for a running extraction and stop the worker."""
        self._executor.shutdown(wait=True)

    # -- observable state -------------------------------------------------

    @property
    def state(self) -> ExtractorState:
        with self._lock:
            return self._state

    @property
    def extracted_json(self) -> str:
        return self.state.extracted_json

    @property
    def time_series(self) -> tuple:
        return self.state.time_series

    @property
    def selected(self) -> Optional[TimeSeriesRecord]:
        return self.state.selected

    @property
    def in_flight(self) -> bool:
        with self._lock:
            return self._busy

    def subscribe(self, callback: Callable[[ExtractorState], None]) -> Callable[[], None]:
        """Register a state listener.

        Returns:
            Function that removes the listener
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _update(self, **changes):
        with self._lock:
            self._state = replace(self._state, **changes)
            snapshot = self._state
            subscribers = list(self._subscribers)
        for callback in subscribers:
            callback(snapshot)

    def select(self, record: Optional[TimeSeriesRecord]):
        """Mark a record as selected (None clears the selection)."""
        self._update(selected=record)

    def select_nearest(self, when: datetime) -> Optional[TimeSeriesRecord]:
        """Select the record closest in time to ``when``.

        The current selection is kept when there are no records.
        """
        record = find_closest_record(self.time_series, when)
        if record is not None:
            self.select(record)
        return record

    # -- extraction -------------------------------------------------------

    def extract_text(self, image_name: Optional[str] = None) -> Future:
        """Start OCR on a bundled image in the background.

        Args:
            image_name: Logical asset name (default: config.IMAGE_NAME)

        Returns:
            Future resolving to an ExtractionResult

        Raises:
            ExtractionInProgressError: If an extraction is already running
        """
        with self._lock:
            if self._busy:
                raise ExtractionInProgressError("An extraction is already in progress")
            self._busy = True

        self._dispatch(lambda: self._update(in_flight=True))
        try:
            return self._executor.submit(self._run, image_name or self.config.IMAGE_NAME)
        except RuntimeError:
            # executor already shut down
            with self._lock:
                self._busy = False
            self._dispatch(lambda: self._update(in_flight=False))
            raise

    def _run(self, image_name: str) -> ExtractionResult:
        result = None
        try:
            result = self._extract(image_name)
            return result
        finally:
            # final update is queued before a new request is accepted
            try:
                if result is None:
                    self._dispatch(lambda: self._update(in_flight=False))
                else:
                    self._dispatch(lambda: self._apply(result))
            finally:
                with self._lock:
                    self._busy = False

    def _extract(self, image_name: str) -> ExtractionResult:
        if not self.quiet:
            print(f"Running OCR on '{image_name}'...")

        try:
            raw_text = self.engine.read_text(image_name)
        except ImageLoadError as e:
            return ExtractionResult(error=str(e), error_kind=ErrorKind.IMAGE_LOAD)
        except OcrError as e:
            print(str(e), file=sys.stderr)
            return ExtractionResult(error=str(e), error_kind=ErrorKind.OCR)

        return process_text(raw_text, pairing=self.pairing, quiet=self.quiet)

    def apply_result(self, result: ExtractionResult):
        """Publish a result produced outside the worker (e.g. from saved text)."""
        self._dispatch(lambda: self._apply(result))

    def _apply(self, result: ExtractionResult):
        if result.error_kind in (ErrorKind.IMAGE_LOAD, ErrorKind.OCR):
            self._update(in_flight=False)
            return

        self._update(
            extracted_json=result.extracted_json,
            time_series=tuple(result.records),
            selected=None,
            in_flight=False,
        )
