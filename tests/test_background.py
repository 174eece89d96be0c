import numpy as np

from flatmatte.pipeline import RGB, MattingConfig
from flatmatte.pipeline.stages.s1_background import (
    dominant_bucket_centroid,
    estimate_background_color,
    sample_blocks,
)


def test_uniform_image(canvas, logger):
    image = canvas(20, 20, color=(30, 60, 90))
    assert estimate_background_color(image, MattingConfig(), logger) == RGB(30, 60, 90)


def test_returns_bucket_centroid_not_first_sample(canvas, logger):
    image = canvas(20, 20, color=(251, 251, 251), rects=[((15, 15, 20, 20), (255, 255, 255))])
    # 75 samples of 251 and 25 of 255 share one bucket
    assert estimate_background_color(image, MattingConfig(), logger) == RGB(252, 252, 252)


def test_object_in_one_corner_is_outvoted(canvas, logger):
    image = canvas(20, 20, rects=[((0, 0, 5, 5), (0, 0, 0))])
    assert estimate_background_color(image, MattingConfig(), logger) == RGB(255, 255, 255)


def test_edge_midpoints_change_the_vote(canvas, logger):
    gray = (128, 128, 128)
    image = canvas(
        20,
        20,
        rects=[((0, 0, 5, 5), gray), ((0, 15, 5, 20), gray), ((15, 0, 20, 5), gray)],
    )

    corners_only = MattingConfig(sample_edge_midpoints=False)
    with_midpoints = MattingConfig(sample_edge_midpoints=True)

    assert estimate_background_color(image, corners_only, logger) == RGB(*gray)
    assert estimate_background_color(image, with_midpoints, logger) == RGB(255, 255, 255)


def test_ties_go_to_first_bucket(canvas, logger):
    image = canvas(20, 20, color=(200, 0, 0), rects=[((10, 0, 20, 20), (0, 0, 200))])
    assert estimate_background_color(image, MattingConfig(), logger) == RGB(200, 0, 0)


def test_empty_image_defaults_to_white(logger):
    image = np.zeros((0, 0, 4), dtype=np.uint8)
    assert estimate_background_color(image, MattingConfig(), logger) == RGB(255, 255, 255)


def test_blocks_are_clipped_to_small_images(canvas):
    samples = sample_blocks(canvas(2, 3), block_size=5)
    assert samples.shape == (4 * 6, 3)


def test_dominant_bucket_centroid_empty():
    assert dominant_bucket_centroid(np.empty((0, 3), dtype=np.uint8)) is None


def test_estimation_is_logged(canvas, logger):
    logger.start_image("test")
    estimate_background_color(canvas(10, 10), MattingConfig(), logger)
    stage = logger.current_image["stages"][0]
    assert stage["stage"] == "s1_background_estimation"
    assert stage["background_rgb"] == (255, 255, 255)


def test_standalone_without_logger(canvas):
    image = canvas(12, 12, color=(10, 200, 40))
    assert estimate_background_color(image) == RGB(10, 200, 40)


def test_standalone_closes_its_own_record(canvas, logger):
    estimate_background_color(canvas(10, 10), MattingConfig(), logger)

    assert logger.current_image is None
    record = logger.logs[-1]
    assert record["image"] == "<background>"
    assert record["stages"][0]["stage"] == "s1_background_estimation"
    assert not logger.log_file.exists()
