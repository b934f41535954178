"""Interactive time-series chart with nearest-point tooltips."""

import queue
import sys
from typing import Callable, Optional

import matplotlib.dates as mdates
import matplotlib.pyplot as plt
from matplotlib.widgets import Button

from .config import AppConfig, config as default_config
from .errors import ExtractionInProgressError
from .pipeline import ExtractorState, TextExtractor
from .selection import format_tooltip

# Lines of JSON shown in the text panel before truncating
MAX_JSON_LINES = 18


class ChartView:
    """Window showing the extracted JSON, an extract button and the chart.

    The view owns the UI context: extractor updates are queued by
    ``dispatch`` and only applied from ``process_pending``, which runs on
    the figure's timer in the GUI thread.
    """

    def __init__(
        self,
        extractor: Optional[TextExtractor] = None,
        engine=None,
        config: Optional[AppConfig] = None,
        pairing: str = "positional",
        quiet: bool = False
    ):
        """Initialize chart view.

        Args:
            extractor: Existing coordinator (default: one bound to this view)
            engine: OCR engine for the default coordinator
            config: Application configuration
            pairing: Pairing mode for the default coordinator
            quiet: If True, suppress progress messages
        """
        self.config = config or default_config
        self._pending: queue.Queue = queue.Queue()
        self._dragging = False
        self._state = ExtractorState()

        if extractor is None:
            extractor = TextExtractor(
                engine=engine,
                dispatch=self.dispatch,
                config=self.config,
                pairing=pairing,
                quiet=quiet,
            )
        self.extractor = extractor

        self._create_figure()

        self._unsubscribe = self.extractor.subscribe(self._on_state)
        self._on_state(self.extractor.state)

    def _create_figure(self):
        self.fig = plt.figure(figsize=self.config.FIGURE_SIZE)
        grid = self.fig.add_gridspec(3, 1, height_ratios=[2.2, 0.35, 3], hspace=0.45)

        # JSON panel
        self.json_ax = self.fig.add_subplot(grid[0])
        self.json_ax.set_axis_off()
        self.json_ax.set_title("Extracted JSON Data:", loc="left", fontweight="bold")
        self.json_text = self.json_ax.text(
            0.0, 1.0, "",
            transform=self.json_ax.transAxes,
            va="top", ha="left",
            family="monospace", fontsize=7,
            color=self.config.JSON_TEXT_COLOR,
        )

        # Extract button
        self.button_ax = self.fig.add_subplot(grid[1])
        self.button = Button(self.button_ax, "Extract & Visualize JSON")
        self.button.on_clicked(self._on_extract_clicked)

        # Chart
        self.chart_ax = self.fig.add_subplot(grid[2])
        self.chart_ax.set_title("Time-Series Data Visualization", fontweight="bold")
        self.chart_ax.grid(True, alpha=0.3)
        self.chart_ax.xaxis_date()
        self.chart_ax.xaxis.set_major_formatter(mdates.DateFormatter("%b %d\n%H:%M"))
        (self.line,) = self.chart_ax.plot(
            [], [], marker="o", color=self.config.LINE_COLOR, linewidth=1.5
        )
        self.tooltip = self.chart_ax.annotate(
            "", xy=(0, 0), xytext=(12, 12), textcoords="offset points",
            bbox=dict(boxstyle="round", fc="white", alpha=0.9),
            fontsize=8,
        )
        self.tooltip.set_visible(False)

        canvas = self.fig.canvas
        canvas.mpl_connect("button_press_event", self._on_press)
        canvas.mpl_connect("motion_notify_event", self._on_motion)
        canvas.mpl_connect("button_release_event", self._on_release)

        self._timer = canvas.new_timer(interval=self.config.UI_POLL_INTERVAL)
        self._timer.add_callback(self.process_pending)
        self._timer.start()

    # -- UI context -------------------------------------------------------

    def dispatch(self, fn: Callable[[], None]):
        """Queue a state change for the GUI thread (safe from any thread)."""
        self._pending.put(fn)

    def process_pending(self) -> int:
        """Apply queued state changes.

        Returns:
            Number of changes applied
        """
        applied = 0
        while True:
            try:
                fn = self._pending.get_nowait()
            except queue.Empty:
                break
            fn()
            applied += 1
        return applied

    # -- rendering --------------------------------------------------------

    def _on_state(self, state: ExtractorState):
        self._state = state
        self._render()

    def _render(self):
        state = self._state

        lines = state.extracted_json.splitlines()
        if len(lines) > MAX_JSON_LINES:
            lines = lines[:MAX_JSON_LINES] + ["..."]
        self.json_text.set_text("\n".join(lines))

        self.button.label.set_text(
            "Extracting..." if state.in_flight else "Extract & Visualize JSON"
        )

        records = state.time_series
        if records:
            x = mdates.date2num([r.timestamp for r in records])
            y = [r.value for r in records]
        else:
            x, y = [], []
        self.line.set_data(x, y)
        self.chart_ax.relim()
        self.chart_ax.autoscale_view()

        selected = state.selected
        if selected is not None:
            self.tooltip.xy = (mdates.date2num(selected.timestamp), selected.value)
            self.tooltip.set_text(format_tooltip(selected, self.config.TOOLTIP_DECIMALS))
            self.tooltip.set_visible(True)
        else:
            self.tooltip.set_visible(False)

        self.fig.canvas.draw_idle()

    # -- interaction ------------------------------------------------------

    def _on_extract_clicked(self, _event):
        try:
            self.extractor.extract_text()
        except ExtractionInProgressError as e:
            print(str(e), file=sys.stderr)

    def select_at(self, xdata: float):
        """Select the record nearest to a chart x coordinate."""
        when = mdates.num2date(xdata)
        return self.extractor.select_nearest(when)

    def _on_press(self, event):
        if event.inaxes is not self.chart_ax or event.xdata is None:
            return
        self._dragging = True
        self.select_at(event.xdata)

    def _on_motion(self, event):
        if not self._dragging:
            return
        if event.inaxes is not self.chart_ax or event.xdata is None:
            return
        self.select_at(event.xdata)

    def _on_release(self, _event):
        self._dragging = False

    def show(self):
        """Show the window and block until it is closed."""
        plt.show()

    def close(self):
        """Stop the timer, detach from the extractor and close the figure."""
        self._timer.stop()
        self._unsubscribe()
        self.extractor.close()
        plt.close(self.fig)
