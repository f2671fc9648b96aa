import logging

from incident_desk.core.logging_config import ContextFilter, LogContext, StructuredFormatter, setup_logging


def test_setup_logging_quiets_the_driver():
    setup_logging("DEBUG")

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("pymysql").level == logging.WARNING
    logging.getLogger().setLevel(logging.INFO)


def test_formatter_prefixes_request_context():
    formatter = StructuredFormatter(fmt="%(message)s")
    record = logging.LogRecord("incident_desk", logging.INFO, __file__, 1, "listed", None, None)
    record.method = "GET"
    record.path = "/incidencias"

    assert formatter.format(record) == "[method=GET | path=/incidencias] listed"


def test_log_context_is_restored():
    record = logging.LogRecord("incident_desk", logging.INFO, __file__, 1, "x", None, None)
    with LogContext(procedure="sp_getAllIncidencias"):
        ContextFilter().filter(record)
    assert record.procedure == "sp_getAllIncidencias"

    later = logging.LogRecord("incident_desk", logging.INFO, __file__, 1, "y", None, None)
    ContextFilter().filter(later)
    assert not hasattr(later, "procedure")
