import json
import logging
import math
import stat
from pathlib import Path

import pytest

from stations.common.fs import read_json, write_json_atomic
from stations.common.logging import JsonLineFormatter, build_logger, log_event
from stations.common.time_utils import generate_run_id, utc_timestamp_iso


def test_generate_run_id_prefix():
    assert generate_run_id().startswith("run-")
    assert generate_run_id("mac").startswith("mac-")


def test_utc_timestamp_iso_is_utc():
    assert utc_timestamp_iso().endswith("+00:00")


def test_write_json_atomic_leaves_no_temp_files(tmp_path: Path):
    path = tmp_path / "out" / "stations.json"
    write_json_atomic(path, [{"coordinates": [None, 1.0]}])

    assert [p.name for p in path.parent.iterdir()] == ["stations.json"]
    assert read_json(path) == [{"coordinates": [None, 1.0]}]
    assert stat.S_IMODE(path.stat().st_mode) == 0o644


def test_write_json_atomic_keeps_existing_file_mode(tmp_path: Path):
    path = tmp_path / "stations.json"
    path.write_text("[]", encoding="utf-8")
    path.chmod(0o640)

    write_json_atomic(path, [1])

    assert stat.S_IMODE(path.stat().st_mode) == 0o640


def test_write_json_atomic_rejects_nan_and_keeps_previous_file(tmp_path: Path):
    path = tmp_path / "stations.json"
    write_json_atomic(path, [])

    with pytest.raises(ValueError):
        write_json_atomic(path, [{"coordinates": [math.nan, 1.0]}])

    assert [p.name for p in tmp_path.iterdir()] == ["stations.json"]
    assert read_json(path) == []


def test_json_formatter_emits_stable_fields():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello %s", ("there",), None)
    record.stage = "regen"
    record.rows_in = 3

    payload = json.loads(JsonLineFormatter().format(record))

    assert payload["message"] == "hello there"
    assert payload["stage"] == "regen"
    assert payload["rows_in"] == 3
    assert payload["error_code"] is None


def test_build_logger_writes_jsonl_file(tmp_path: Path):
    logger = build_logger("run-log", data_dir=tmp_path)
    log_event(logger, "stage start", run_id="run-log", stage="regen", event="COMMAND_START")
    for handler in logger.handlers:
        handler.flush()

    lines = (tmp_path / "run_meta" / "run-log.log.jsonl").read_text(encoding="utf-8").splitlines()
    assert json.loads(lines[-1])["event"] == "COMMAND_START"
