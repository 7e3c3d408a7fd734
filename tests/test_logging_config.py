import logging

import pytest

from match_patrol.utils.logging_config import PerformanceMonitor, RequestIdFilter, get_logger


class TestLoggingHelpers:

    def test_get_logger_namespaces_names(self):
        assert get_logger("services.upstream").name == "match_patrol.services.upstream"
        assert get_logger("match_patrol.main").name == "match_patrol.main"

    def test_request_id_filter_fills_missing_id(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        assert RequestIdFilter().filter(record) is True
        assert record.request_id == "-"

        record.request_id = "abc"
        RequestIdFilter().filter(record)
        assert record.request_id == "abc"


class TestPerformanceMonitor:

    def test_slow_operation_warns(self, caplog):
        logger = get_logger("tests.performance")
        with caplog.at_level(logging.WARNING, logger="match_patrol"):
            with PerformanceMonitor("slow_op", logger, threshold_ms=-1) as monitor:
                pass

        assert monitor.elapsed_ms is not None
        assert any("slow_op took" in r.getMessage() for r in caplog.records)

    def test_exception_is_logged_and_propagated(self, caplog):
        logger = get_logger("tests.performance")
        with caplog.at_level(logging.WARNING, logger="match_patrol"):
            with pytest.raises(RuntimeError):
                with PerformanceMonitor("failing_op", logger):
                    raise RuntimeError("boom")

        assert any("failing_op raised RuntimeError" in r.getMessage() for r in caplog.records)
