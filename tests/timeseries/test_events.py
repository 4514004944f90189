"""
Tests for event log loading and window subsetting.
"""

from datetime import datetime

import pytest
import polars as pl

from netts.common.exceptions import DataFormatError, ValidationError
from netts.timeseries.events import EventLog, compute_node_spans, window_events


class TestEventLog:
    """Test EventLog construction."""

    def setup_method(self):
        """Set up test fixtures."""
        self.df = pl.DataFrame({
            "from": ["A", "A", "B"],
            "to": ["B", "B", "C"],
            "w": [1, 1, 2],
            "t": [1, 5, 20],
            "extra": ["x", "y", "z"],
        })

    def test_columns_are_normalized(self):
        """Test the first four columns are renamed and extras dropped."""
        log = EventLog(self.df)

        assert log.frame.columns == ["source", "target", "weight", "timestamp"]
        assert log.n_events == 3
        assert len(log) == 3

    def test_time_range(self):
        """Test min and max timestamps."""
        log = EventLog(self.df)

        assert log.min_time == 1
        assert log.max_time == 20

    def test_wrapping_an_event_log(self):
        """Test an EventLog can be passed where events are expected."""
        log = EventLog(self.df)
        wrapped = EventLog(log)

        assert wrapped.frame is log.frame

    def test_window_is_half_open(self):
        """Test window subsets include the start and exclude the end."""
        log = EventLog(self.df)

        assert len(log.window(1, 5)) == 1
        assert len(log.window(1, 6)) == 2
        assert len(log.window(5, 20)) == 1
        assert log.window(21, 30).is_empty()

    def test_too_few_columns(self):
        """Test logs with fewer than four columns are rejected."""
        with pytest.raises(ValidationError, match="four columns"):
            EventLog(self.df.select(["from", "to", "w"]))

    def test_invalid_input_type(self):
        """Test unsupported input types are rejected."""
        with pytest.raises(DataFormatError, match="Invalid event log type"):
            EventLog([("A", "B", 1, 1)])

    def test_negative_weights_rejected(self):
        """Test validation runs on load."""
        with pytest.raises(ValidationError, match="negative"):
            EventLog(self.df.with_columns(pl.Series("w", [1, -1, 2])))


class TestEventLogFromCsv:
    """Test loading event logs from CSV files."""

    def test_csv_with_string_timestamps(self, tmp_path):
        """Test ISO timestamps in a CSV are parsed to datetimes."""
        path = tmp_path / "events.csv"
        path.write_text(
            "a,b,weight,time\n"
            "A,B,1,2024-01-01T00:00:00\n"
            "B,C,2,2024-01-05T12:00:00\n"
        )
        log = EventLog(str(path))

        assert log.frame["timestamp"].dtype.is_temporal()
        assert log.min_time == datetime(2024, 1, 1)
        assert log.max_time == datetime(2024, 1, 5, 12)

    def test_missing_file(self, tmp_path):
        """Test a missing file raises DataFormatError."""
        with pytest.raises(DataFormatError, match="not found"):
            EventLog(tmp_path / "missing.csv")

    def test_unparseable_timestamps(self, tmp_path):
        """Test timestamps that are not dates raise DataFormatError."""
        path = tmp_path / "events.csv"
        path.write_text("a,b,weight,time\nA,B,1,yesterday\n")

        with pytest.raises(DataFormatError, match="timestamp"):
            EventLog(path)


class TestNodeSpans:
    """Test per-node observation spans."""

    def test_spans_cover_both_endpoint_columns(self):
        """Test first and last appearance over source and target."""
        frame = EventLog(pl.DataFrame({
            "s": ["A", "B", "C"],
            "t": ["B", "C", "A"],
            "w": [1.0, 1.0, 1.0],
            "ts": [1, 4, 9],
        })).frame
        spans = compute_node_spans(frame)

        assert spans.rows() == [("A", 1, 9), ("B", 1, 4), ("C", 4, 9)]

    def test_spans_are_cached(self):
        """Test node spans are computed once."""
        log = EventLog(pl.DataFrame({"s": ["A"], "t": ["B"], "w": [1], "ts": [0]}))

        assert log.node_spans() is log.node_spans()

    def test_window_events_function(self):
        """Test the module-level window filter."""
        frame = EventLog(pl.DataFrame({
            "s": ["A", "B"], "t": ["B", "C"], "w": [1, 1], "ts": [0, 10]
        })).frame

        assert window_events(frame, 0, 10)["timestamp"].to_list() == [0]
