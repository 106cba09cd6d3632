import io
import logging

from bank_statements.logging_setup import configure_logging, get_logger


def test_library_logger_is_silent_until_configured():
    get_logger("bank_statements.test")
    handlers = logging.getLogger("bank_statements").handlers
    assert handlers
    assert all(isinstance(h, logging.NullHandler) for h in handlers)


def test_configure_logging_attaches_one_stream_handler():
    stream = io.StringIO()
    configure_logging("WARNING", stream=stream, fmt="%(name)s %(levelname)s %(message)s")
    configure_logging("DEBUG", stream=io.StringIO())  # already configured: no-op

    logger = get_logger("bank_statements.merge")
    logger.info("hidden")
    logger.warning("kept %d", 1)

    assert stream.getvalue() == "bank_statements.merge WARNING kept 1\n"
    pkg = logging.getLogger("bank_statements")
    assert len(pkg.handlers) == 1
    assert pkg.propagate is False


def test_verbose_forces_debug(monkeypatch):
    monkeypatch.setenv("BANK_STATEMENTS_LOG_LEVEL", "ERROR")
    configure_logging(verbose=True, stream=io.StringIO())
    assert logging.getLogger("bank_statements").level == logging.DEBUG


def test_level_falls_back_to_environment(monkeypatch):
    monkeypatch.setenv("BANK_STATEMENTS_LOG_LEVEL", "error")
    configure_logging(stream=io.StringIO())
    assert logging.getLogger("bank_statements").level == logging.ERROR
