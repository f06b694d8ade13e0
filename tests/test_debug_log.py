from __future__ import annotations

import json

from parley.kernel.debug_log import DebugLogWriter


def _records(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def test_records_are_jsonl(tmp_path):
    writer = DebugLogWriter(logs_dir=tmp_path / "logs", enabled=True, redaction="none")

    writer.info("session", "started", vendor="ollama")
    writer.error("coordinator", "generation failed", error="boom")

    records = _records(writer.active_log_file)
    assert [record["level"] for record in records] == ["info", "error"]
    assert records[0]["component"] == "session"
    assert records[0]["data"] == {"vendor": "ollama"}
    assert isinstance(records[1]["ts_ms"], int)


def test_disabled_writer_writes_nothing(tmp_path):
    writer = DebugLogWriter(logs_dir=tmp_path / "logs", enabled=False)

    writer.info("session", "started")

    assert not (tmp_path / "logs").exists()


def test_rotation_respects_size_and_max_files(tmp_path):
    writer = DebugLogWriter(
        logs_dir=tmp_path / "logs",
        enabled=True,
        max_file_bytes=256,
        max_files=2,
        redaction="none",
    )

    for idx in range(40):
        writer.info("session", "rotation-{0}".format(idx), blob="x" * 80)

    assert writer.active_log_file.stat().st_size <= 256
    assert len(writer.rotated_files()) == 2
    assert not (tmp_path / "logs" / "debug.log.jsonl.3").exists()


def test_secrets_are_redacted_by_default(tmp_path):
    writer = DebugLogWriter(logs_dir=tmp_path / "logs", enabled=True)

    writer.warn("references", "fetch with token=abc123", api_key="k-1", header="Bearer xyz", nested={"password": "p"})

    record = _records(writer.active_log_file)[0]
    assert "abc123" not in record["message"]
    assert record["data"]["api_key"] == "***REDACTED***"
    assert "xyz" not in record["data"]["header"]
    assert record["data"]["nested"]["password"] == "***REDACTED***"


def test_write_failure_is_counted_not_raised(tmp_path):
    blocked = tmp_path / "not-a-dir"
    blocked.write_text("file", encoding="utf-8")
    writer = DebugLogWriter(logs_dir=blocked, enabled=True)

    writer.info("session", "should not raise")

    assert writer.write_errors >= 1
