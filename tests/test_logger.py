import json

import pytest

from flatmatte.pipeline import PipelineLogger


def test_stage_logging_requires_started_image(logger):
    with pytest.raises(RuntimeError):
        logger.log_s2(method="border_flood_fill")


def test_save_appends_json_lines(logger):
    for name in ("a.png", "b.png"):
        logger.start_image(name)
        logger.log_s1(method="supplied", background_rgb=(1, 2, 3))
        logger.save_image_log()

    lines = logger.log_file.read_text().splitlines()
    records = [json.loads(line) for line in lines]

    assert [r["image"] for r in records] == ["a.png", "b.png"]
    assert records[0]["stages"][0]["stage"] == "s1_background_estimation"
    assert records[0]["stages"][0]["background_rgb"] == [1, 2, 3]
    assert logger.current_image is None


def test_finish_image_does_not_write(tmp_path):
    logger = PipelineLogger(log_file=tmp_path / "nested" / "debug.log")
    logger.start_image("buffer")
    record = logger.finish_image()

    assert record["image"] == "buffer"
    assert logger.logs == [record]
    assert not logger.log_file.parent.exists()


def test_save_without_image_is_noop(logger):
    logger.save_image_log()
    assert not logger.log_file.exists()


def test_debug_mode_echoes_stage_payload(tmp_path, capsys):
    logger = PipelineLogger(log_file=tmp_path / "debug.log", debug_mode=True)
    logger.start_image("x")
    logger.log_s4(promoted=3)
    assert "[s4_transition_refinement]" in capsys.readouterr().out
