import queue

import pytest

from tests.helpers.fake_frames import make_uniform_frame


@pytest.fixture
def line_config(make_config):
    """Accumulating config with a 10 px horizontal line and N=3."""
    return make_config(LINE_START=(0, 0), LINE_END=(10, 0), FRAME_COUNT=3)


@pytest.fixture
def red_frame():
    """20x10 frame, every pixel pure red 100."""
    return make_uniform_frame(width=20, height=10, rgb=(100, 0, 0))


# made for processor tests
@pytest.fixture
def processor_queues():
    return queue.Queue(), queue.Queue()
