import time

import numpy as np


class FakeVideoCapture:
    """Stands in for cv2.VideoCapture: yields ``frames`` then fails every read."""

    def __init__(self, frames=3, width=20, height=10, rgb=(0, 0, 100), opened=True, delay=0.0):
        self.remaining = frames
        self.image = np.zeros((height, width, 3), dtype=np.uint8)
        self.image[:, :] = rgb
        self.opened = opened
        self.delay = delay
        self.props = {}
        self.released = False

    def isOpened(self):
        return self.opened

    def set(self, prop, value):
        self.props[prop] = value
        return True

    def read(self):
        if self.delay:
            time.sleep(self.delay)
        if self.remaining <= 0:
            return False, None
        self.remaining -= 1
        return True, self.image.copy()

    def release(self):
        self.released = True
