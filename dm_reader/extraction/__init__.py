from .pixel_buffer import PixelBuffer, PixelCount, Axis, Polarity, DARK_VAL, LIGHT_VAL
from .binarizer import Binarizer
