from io import BytesIO
from typing import List, Optional
import numpy as np
from PIL import Image
from asciiframes import PixelBuffer, DecodeError


def gray_buffer(values) -> PixelBuffer:
    """A buffer from a 2D list of gray levels (0-255)."""
    return PixelBuffer.from_array(np.array(values, dtype=np.uint8))


def solid_buffer(width: int, height: int, level: int = 128) -> PixelBuffer:
    return PixelBuffer.from_array(np.full((height, width), level, dtype=np.uint8))


def random_buffer(width: int, height: int, seed: int = 0) -> PixelBuffer:
    rng = np.random.default_rng(seed)
    return PixelBuffer.from_array(rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8))


def fake_frames(count: int, delay: float = 0.1, fail_at: Optional[int] = None, width: int = 8, height: int = 6):
    """Stand-in for a decoder: yields ``count`` frames of rising brightness, or raises DecodeError at ``fail_at``."""
    for index in range(count):
        if index == fail_at:
            raise DecodeError(f'corrupt frame {index}')
        yield solid_buffer(width, height, level=int(255 * index / max(count - 1, 1))), delay


def gif_bytes(levels: List[int], duration: int = 100, size=(8, 8)) -> bytes:
    frames = [Image.new('RGB', size, (v, v, v)) for v in levels]
    out = BytesIO()
    frames[0].save(out, format='GIF', save_all=True, append_images=frames[1:], duration=duration, loop=0)
    return out.getvalue()


def png_bytes(image: Image.Image) -> bytes:
    out = BytesIO()
    image.save(out, format='PNG')
    return out.getvalue()
