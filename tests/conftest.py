import numpy as np
import pytest

from flatmatte.pipeline import MattingConfig, MattingPipeline, PipelineLogger

WHITE = (255, 255, 255)
BLACK = (0, 0, 0)


@pytest.fixture
def logger(tmp_path):
    return PipelineLogger(log_file=tmp_path / "logs" / "debug.log")


@pytest.fixture
def make_pipeline(logger):
    def factory(**overrides):
        return MattingPipeline(config=MattingConfig(**overrides), logger=logger)

    return factory


@pytest.fixture
def canvas():
    """Factory for solid RGBA images with optional filled rectangles"""

    def factory(height, width, color=WHITE, rects=()):
        image = np.empty((height, width, 4), dtype=np.uint8)
        image[..., :3] = color
        image[..., 3] = 255
        for (top, left, bottom, right), fill in rects:
            image[top:bottom, left:right, :3] = fill
        return image

    return factory
