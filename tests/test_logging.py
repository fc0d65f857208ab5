import json
import logging

from brollmix.core.logging import JobContext, JobContextFilter, StructuredFormatter, current_job_id, current_stage


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord("brollmix.test", logging.INFO, __file__, 1, msg, None, None)


def test_structured_formatter_includes_job_context() -> None:
    with JobContext(job_id="abc12345", stage="cutting"):
        line = StructuredFormatter().format(_record())

    data = json.loads(line)
    assert data["message"] == "hello"
    assert data["level"] == "INFO"
    assert data["job_id"] == "abc12345"
    assert data["stage"] == "cutting"


def test_job_context_resets_on_exit() -> None:
    with JobContext(job_id="outer"):
        with JobContext(stage="inner"):
            assert current_job_id.get() == "outer"
            assert current_stage.get() == "inner"
        assert current_stage.get() is None
    assert current_job_id.get() is None


def test_filter_stamps_job_id_for_plain_format() -> None:
    record = _record()
    JobContextFilter().filter(record)
    assert record.job_id == "-"

    with JobContext(job_id="abc12345"):
        JobContextFilter().filter(record)
    assert record.job_id == "abc12345"
