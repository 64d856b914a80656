# Output - 64x32 display (array of pixels that are either on or off (0 || 1)).
import numpy as np

from chip8emu.config import HEIGHT, WIDTH


class Framebuffer:
    """The 64x32 bit grid. Sprites are XOR-ed in; pixels past an edge are
    clipped, or wrapped to the opposite edge when `wrap` is set."""

    def __init__(self, wrap=False):
        self.wrap = wrap
        self.pixels = np.zeros((HEIGHT, WIDTH), dtype=np.uint8)
        self.dirty = True

    def clear(self):
        if self.pixels.any():
            self.pixels[:] = 0
            self.dirty = True

    def paint(self, x, y, rows):
        """XOR an 8-pixel-wide sprite onto the grid with its top-left at (x, y).

        Returns True when any pixel went from set to unset.
        """
        x %= WIDTH
        y %= HEIGHT
        rows = np.array(list(bytes(rows)), dtype=np.uint8).reshape(-1, 1)
        sprite = np.unpackbits(rows, axis=1)

        if self.wrap:
            ys = (y + np.arange(sprite.shape[0])) % HEIGHT
            xs = (x + np.arange(8)) % WIDTH
        else:
            sprite = sprite[:HEIGHT - y, :WIDTH - x]
            ys = y + np.arange(sprite.shape[0])
            xs = x + np.arange(sprite.shape[1])

        area = np.ix_(ys, xs)
        before = self.pixels[area]
        collision = bool(np.any(before & sprite))
        self.pixels[area] = before ^ sprite
        if sprite.any():
            self.dirty = True
        return collision

    def __getitem__(self, pos):
        x, y = pos
        return int(self.pixels[y, x])

    def lit(self):
        return int(self.pixels.sum())
