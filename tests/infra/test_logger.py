"""
Tests for infra/pipeline/logger.py

Key behaviors to verify:
1. Lazy initialization - no files created until first log
2. Single append-only file per stage
3. JSON formatting with keyword fields
4. No log_dir means nothing is written
"""

import json

from infra.pipeline.logger import PipelineLogger, create_logger


class TestPipelineLoggerLazyInit:

    def test_no_file_created_on_init(self, tmp_path):
        log_dir = tmp_path / "logs"
        logger = PipelineLogger(scan_id="scan-1", stage="detect", log_dir=log_dir)

        assert not log_dir.exists()
        assert logger.log_file is None

    def test_file_created_on_first_log(self, tmp_path):
        log_dir = tmp_path / "logs"
        logger = PipelineLogger(scan_id="scan-1", stage="detect", log_dir=log_dir)

        logger.info("First message")

        assert logger.log_file == log_dir / "detect.jsonl"
        assert logger.log_file.exists()
        logger.close()

    def test_close_without_logging_creates_nothing(self, tmp_path):
        log_dir = tmp_path / "logs"
        PipelineLogger(scan_id="scan-1", stage="detect", log_dir=log_dir).close()
        assert not log_dir.exists()

    def test_no_log_dir_writes_nothing(self, tmp_path):
        logger = PipelineLogger(scan_id="scan-1", stage="detect")
        logger.info("goes nowhere", books_found=3)
        logger.close()

        assert logger.log_file is None
        assert list(tmp_path.iterdir()) == []


class TestPipelineLoggerSingleFile:

    def test_multiple_loggers_append_to_same_file(self, log_dir):
        logger1 = PipelineLogger(scan_id="scan-1", stage="scan", log_dir=log_dir)
        logger1.info("message from logger 1")
        logger1.close()

        logger2 = PipelineLogger(scan_id="scan-2", stage="scan", log_dir=log_dir)
        logger2.info("message from logger 2")
        logger2.close()

        log_files = list(log_dir.glob("*.jsonl"))
        assert len(log_files) == 1

        lines = log_files[0].read_text().splitlines()
        assert len(lines) == 2
        assert "message from logger 1" in lines[0]
        assert "message from logger 2" in lines[1]

    def test_child_shares_file(self, log_dir):
        parent = PipelineLogger(scan_id="scan-1", stage="scan", log_dir=log_dir)
        child = parent.child("validate")

        parent.info("parent")
        child.info("child")
        parent.close()
        child.close()

        entries = [json.loads(line) for line in (log_dir / "scan.jsonl").read_text().splitlines()]
        assert [e["stage"] for e in entries] == ["scan", "validate"]


class TestPipelineLoggerJsonFormat:

    def test_log_entry_has_required_fields(self, log_dir):
        logger = PipelineLogger(scan_id="scan-1", stage="detect", log_dir=log_dir)
        logger.info("test message")
        logger.close()

        with open(logger.log_file) as f:
            entry = json.loads(f.readline())

        assert "timestamp" in entry
        assert entry["level"] == "INFO"
        assert entry["message"] == "test message"
        assert entry["scan_id"] == "scan-1"
        assert entry["stage"] == "detect"

    def test_custom_fields_in_log_entry(self, log_dir):
        logger = PipelineLogger(scan_id="scan-1", stage="detect", log_dir=log_dir)
        logger.info("section done", section=3, books_found=7, model="google/gemini-2.0-flash-001")
        logger.close()

        with open(logger.log_file) as f:
            entry = json.loads(f.readline())

        assert entry["section"] == 3
        assert entry["books_found"] == 7
        assert entry["model"] == "google/gemini-2.0-flash-001"

    def test_reserved_field_names_dropped(self, log_dir):
        logger = PipelineLogger(scan_id="scan-1", stage="detect", log_dir=log_dir)
        logger.info("still logged", filename="x.jpg", lineno=4, books_found=1)
        logger.close()

        with open(logger.log_file) as f:
            entry = json.loads(f.readline())

        assert entry["message"] == "still logged"
        assert entry["books_found"] == 1

    def test_progress_fields(self, log_dir):
        logger = PipelineLogger(scan_id="scan-1", stage="scan", log_dir=log_dir)
        logger.progress("sections", current=3, total=12)
        logger.close()

        with open(logger.log_file) as f:
            entry = json.loads(f.readline())

        assert entry["progress"] == {"current": 3, "total": 12, "percent": 25.0}

    def test_exception_info_serialized(self, log_dir):
        logger = PipelineLogger(scan_id="scan-1", stage="queue", log_dir=log_dir)
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            logger.error("job failed", exc_info=True)
        logger.close()

        with open(logger.log_file) as f:
            entry = json.loads(f.readline())

        assert "RuntimeError: boom" in entry["exception"]


class TestPipelineLoggerLevels:

    def test_level_filtering(self, log_dir):
        logger = PipelineLogger(scan_id="scan-1", stage="detect", log_dir=log_dir, level="WARNING")

        logger.debug("should not appear")
        logger.info("should not appear")
        logger.warning("should appear")
        logger.error("should appear")
        logger.close()

        entries = [json.loads(line) for line in logger.log_file.read_text().splitlines()]
        assert [e["level"] for e in entries] == ["WARNING", "ERROR"]


def test_create_logger_returns_pipeline_logger(log_dir):
    logger = create_logger(scan_id="scan-1", stage="detect", log_dir=log_dir)
    assert isinstance(logger, PipelineLogger)
    assert logger.stage == "detect"
