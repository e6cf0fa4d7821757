import io
import logging

from expense_tracker.config import Settings, load_settings
from expense_tracker.logging_setup import configure_logging, get_logger


def test_defaults():
    assert load_settings({}) == Settings()
    assert load_settings({}).hide_from_charts is True


def test_reads_environment_variables():
    settings = load_settings(
        {
            "EXPENSE_TRACKER_LOG_LEVEL": "debug",
            "EXPENSE_TRACKER_ROLLING_WINDOW_DAYS": "7",
            "EXPENSE_TRACKER_PAGE_SIZE": "50",
            "EXPENSE_TRACKER_HIDE_FROM_CHARTS": "no",
        }
    )
    assert settings == Settings(
        log_level="DEBUG", rolling_window_days=7, page_size=50, hide_from_charts=False
    )


def test_invalid_values_fall_back_to_defaults():
    settings = load_settings(
        {
            "EXPENSE_TRACKER_ROLLING_WINDOW_DAYS": "a week",
            "EXPENSE_TRACKER_PAGE_SIZE": "-5",
            "EXPENSE_TRACKER_HIDE_FROM_CHARTS": "maybe",
        }
    )
    assert settings.rolling_window_days == 30
    assert settings.page_size == 20
    assert settings.hide_from_charts is True


def test_load_settings_uses_process_environment(monkeypatch):
    monkeypatch.setenv("EXPENSE_TRACKER_PAGE_SIZE", "5")
    assert load_settings().page_size == 5


def test_library_logging_is_silent_until_configured():
    get_logger("expense_tracker.test")
    handlers = logging.getLogger("expense_tracker").handlers
    assert handlers and all(isinstance(h, logging.NullHandler) for h in handlers)


def test_configure_logging_once(monkeypatch):
    monkeypatch.setenv("EXPENSE_TRACKER_LOG_LEVEL", "WARNING")
    stream = io.StringIO()
    configure_logging(stream=stream)
    configure_logging("DEBUG", stream=io.StringIO())

    pkg = logging.getLogger("expense_tracker")
    assert pkg.level == logging.WARNING
    assert len(pkg.handlers) == 1

    log = get_logger("expense_tracker.test")
    log.info("hidden")
    log.warning("shown")
    assert "shown" in stream.getvalue()
    assert "hidden" not in stream.getvalue()


def test_configure_logging_format_override():
    stream = io.StringIO()
    configure_logging("INFO", fmt="%(levelname)s|%(name)s|%(message)s", stream=stream)
    get_logger("expense_tracker.ingest").info("imported 3 transactions")
    assert stream.getvalue() == "INFO|expense_tracker.ingest|imported 3 transactions\n"
