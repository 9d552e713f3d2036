"""Synthetic binarized images for the tests."""

import numpy as np

from dm_reader.extraction.pixel_buffer import PixelBuffer, DARK_VAL, LIGHT_VAL


def checkerboard(rows: int = 10, cols: int = 10) -> np.ndarray:
    """Bit matrix with a dark top-left module."""
    r, c = np.indices((rows, cols))
    return ((r + c) % 2 == 0).astype(np.uint8)


def data_matrix_like(rows: int = 8, cols: int = 12, seed: int = 7) -> np.ndarray:
    """
    Random bits framed like a Data Matrix symbol.

    Solid left column and bottom row, alternating top row and right column.
    """
    rng = np.random.RandomState(seed)
    bits = rng.randint(0, 2, (rows, cols)).astype(np.uint8)
    bits[:, 0] = 1
    bits[-1, :] = 1
    bits[0, :] = (np.arange(cols) % 2 == 0)
    bits[:, -1] = ((rows - 1 - np.arange(rows)) % 2 == 0)
    return bits


def render(bits: np.ndarray, module_w: int = 12, module_h: int = None, quiet: int = 2) -> np.ndarray:
    """Gray image (0/255) of a bit matrix with a light quiet zone ``quiet`` modules wide."""
    module_h = module_h or module_w
    image = np.where(bits.astype(bool), DARK_VAL, LIGHT_VAL).astype(np.uint8)
    image = np.repeat(np.repeat(image, module_h, axis=0), module_w, axis=1)
    return np.pad(image, ((quiet * module_h, quiet * module_h), (quiet * module_w, quiet * module_w)),
                  constant_values=LIGHT_VAL)


def buffer_of(bits: np.ndarray, module_w: int = 12, module_h: int = None, quiet: int = 2) -> PixelBuffer:
    return PixelBuffer(render(bits, module_w, module_h, quiet))


def stripes(width: int, count: int = 10, height: int = 40) -> PixelBuffer:
    """Vertical dark/light stripes ``width`` pixels wide, dark first."""
    columns = (np.arange(width * count) // width) % 2 == 0
    return PixelBuffer.from_bits(np.tile(columns, (height, 1)))


def blank(width: int = 64, height: int = 48) -> PixelBuffer:
    return PixelBuffer(np.full((height, width), LIGHT_VAL, dtype=np.uint8))


def flip_pixels(image: np.ndarray, rows: int, cols: int, module: int = 12, quiet: int = 2) -> np.ndarray:
    """
    Flip one interior pixel of every module of a ``render`` output.

    Flips sit 4 to 7 pixels into the module and never share a scanline within
    four modules of each other, so no split run lands near the module length.
    """
    image = image.copy()
    for r in range(rows):
        for c in range(cols):
            y = (quiet + r) * module + 4 + c % 4
            x = (quiet + c) * module + 4 + r % 4
            image[y, x] = LIGHT_VAL if image[y, x] == DARK_VAL else DARK_VAL
    return image


def render_pitch(bits: np.ndarray, widths, module_h: int = 12, quiet: int = 24) -> np.ndarray:
    """Like ``render`` but with a per-column module width; ``quiet`` is in pixels."""
    image = np.where(bits.astype(bool), DARK_VAL, LIGHT_VAL).astype(np.uint8)
    image = np.repeat(np.repeat(image, module_h, axis=0), widths, axis=1)
    return np.pad(image, quiet, constant_values=LIGHT_VAL)
