"""
Tests for settings, logging and performance tracking.
"""
import json
import logging
import pytest
from pydantic import ValidationError
from chartsense.core import config
from chartsense.core.config import Settings, get_settings, reload_settings
from chartsense.core.logging import JSONFormatter, TextFormatter, configure_logging
from chartsense.core.performance import PerformanceMonitor, track_performance


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("LOG_LEVEL", "LOG_FORMAT", "MAX_RECOMMENDATIONS", "CHART_WIDTH"):
        monkeypatch.delenv(name, raising=False)
    # Keep a stray .env file from leaking into the tests
    monkeypatch.setattr(config, "load_dotenv", lambda: None)
    yield
    config._settings = None


@pytest.fixture
def clean_metrics():
    PerformanceMonitor.clear_metrics()
    yield
    PerformanceMonitor.clear_metrics()


@pytest.mark.unit
def test_settings_defaults():
    """Test default settings values."""
    settings = Settings()

    assert settings.log_level == "INFO"
    assert settings.log_format == "text"
    assert settings.classification_sample_size == 100
    assert settings.histogram_bins == 10
    assert settings.max_recommendations == 10
    assert settings.max_per_chart_type == 3
    assert settings.dimensions == {"width": 800, "height": 500}


@pytest.mark.unit
def test_settings_from_env(clean_env, monkeypatch):
    """Test loading settings from environment variables."""
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("LOG_FORMAT", "JSON")
    monkeypatch.setenv("MAX_RECOMMENDATIONS", "5")
    monkeypatch.setenv("CHART_WIDTH", "1200")

    settings = reload_settings()

    assert settings.log_level == "DEBUG"
    assert settings.log_format == "json"
    assert settings.max_recommendations == 5
    assert settings.dimensions["width"] == 1200
    assert get_settings() is settings


@pytest.mark.unit
@pytest.mark.parametrize("overrides", [
    {"log_level": "VERBOSE"},
    {"log_format": "xml"},
    {"max_recommendations": 0},
    {"histogram_bins": 0},
])
def test_settings_validation(overrides):
    """Test that out-of-range or unknown settings are rejected."""
    with pytest.raises(ValidationError):
        Settings(**overrides)


@pytest.mark.unit
def test_json_formatter_includes_run_id_and_extras():
    """Test JSON log output carries run_id and extra fields."""
    record = logging.LogRecord("chartsense.test", logging.INFO, __file__, 10, "analyzed %s rows", (12,), None)
    record.run_id = "run-7"
    record.metric = "analyze_table"

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "analyzed 12 rows"
    assert payload["level"] == "INFO"
    assert payload["run_id"] == "run-7"
    assert payload["metric"] == "analyze_table"


@pytest.mark.unit
def test_text_formatter_defaults_run_id():
    """Test text log output falls back to the system run_id."""
    record = logging.LogRecord("chartsense.test", logging.WARNING, __file__, 10, "hello", (), None)

    line = TextFormatter().format(record)

    assert "[system]" in line
    assert "WARNING" in line
    assert line.endswith("hello")


@pytest.mark.unit
def test_configure_logging_sets_level_and_formatter():
    """Test configure_logging installs one handler with the chosen formatter."""
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        configure_logging(Settings(log_level="WARNING", log_format="json"))

        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
    finally:
        root.handlers = saved_handlers
        root.setLevel(saved_level)


@pytest.mark.unit
def test_track_performance_records_success(clean_metrics):
    """Test that successful calls are recorded."""
    @track_performance("unit_op")
    def op(x, run_id=None):
        return x * 2

    assert op(3, run_id="r1") == 6
    assert op(4) == 8

    stats = PerformanceMonitor.get_stats("unit_op")
    assert stats["count"] == 2
    assert stats["min"] <= stats["p50"] <= stats["max"]


@pytest.mark.unit
def test_track_performance_records_failure_and_reraises(clean_metrics):
    """Test that failing calls are recorded and the error propagates."""
    @track_performance("failing_op")
    def op():
        raise ValueError("boom")

    with pytest.raises(ValueError):
        op()

    assert PerformanceMonitor.get_stats("failing_op")["count"] == 1


@pytest.mark.unit
def test_performance_monitor_bounds_samples(clean_metrics):
    """Test that only the most recent samples are kept per metric."""
    for i in range(1200):
        PerformanceMonitor.record_metric("bounded", float(i))

    stats = PerformanceMonitor.get_stats("bounded")

    assert stats["count"] == 1000
    assert stats["min"] == 200.0
    assert PerformanceMonitor.get_stats("missing") is None
    assert "bounded" in PerformanceMonitor.get_all_metrics()
