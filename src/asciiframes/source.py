from __future__ import annotations
from typing import Any, Iterable, Iterator, NamedTuple, Optional, Union
from io import BytesIO
from os import PathLike
from pathlib import Path
import numpy as np
from PIL import Image
from .typealiases import SomeSortOfPath, Size, DecodeError, UnsupportedFormat


__all__ = ['PixelBuffer', 'Frame', 'FrameSource', 'ImageSource', 'DirectorySource', 'BufferSource', 'open_source']


# Exceptions Pillow raises for malformed or truncated input.
PIL_DECODE_ERRORS = (OSError, SyntaxError, EOFError)


class PixelBuffer:
    """An immutable 8-bit RGBA raster. ``pixels`` is a read-only ``numpy.uint8`` array of shape (height, width, 4),
    top row first."""

    __slots__ = ('pixels',)

    def __init__(self, pixels: np.ndarray) -> None:
        if pixels.dtype != np.uint8 or pixels.ndim != 3 or pixels.shape[2] != 4:
            raise UnsupportedFormat(
                f'Expected a uint8 RGBA array, got {pixels.dtype} with shape {pixels.shape}.')
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise UnsupportedFormat('The pixel buffer has no pixels.')
        if pixels.flags.writeable:
            pixels = pixels.copy()
            pixels.setflags(write=False)
        self.pixels = pixels

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def size(self) -> Size:
        return self.width, self.height

    def __repr__(self) -> str:
        return f'PixelBuffer({self.width}x{self.height})'

    @classmethod
    def from_array(cls, array: Any) -> PixelBuffer:
        """Normalize a gray (h, w), RGB (h, w, 3) or RGBA (h, w, 4) ``uint8`` array."""
        array = np.asarray(array)
        if array.dtype != np.uint8:
            raise UnsupportedFormat(f'Pixel data must be 8-bit, got {array.dtype}.')
        if array.ndim == 2:
            array = array[:, :, np.newaxis]
        if array.ndim != 3:
            raise UnsupportedFormat(f'Cannot interpret an array of shape {array.shape} as pixels.')
        channels = array.shape[2]
        if channels == 1:
            rgba = np.concatenate([array, array, array, np.full_like(array, 255)], axis=2)
        elif channels == 3:
            rgba = np.concatenate([array, np.full_like(array[:, :, :1], 255)], axis=2)
        elif channels == 4:
            rgba = array
        else:
            raise UnsupportedFormat(f'Cannot interpret {channels} channels as pixels.')
        return cls(np.ascontiguousarray(rgba))

    @classmethod
    def from_image(cls, image: Image.Image) -> PixelBuffer:
        """Normalize the current frame of a Pillow image to RGBA."""
        try:
            image.load()
        except PIL_DECODE_ERRORS as e:
            raise DecodeError(f'Could not decode image data: {e}') from e
        try:
            rgba = image if image.mode == 'RGBA' else image.convert('RGBA')
        except ValueError as e:
            raise UnsupportedFormat(f'Pixel mode \'{image.mode}\' cannot be converted to RGBA.') from e
        return cls(np.asarray(rgba, dtype=np.uint8))


class Frame(NamedTuple):
    """A decoded frame and the time it stays on screen, in seconds. A delay of 0 means the source does not
    define one (still images, frame directories)."""
    buffer: PixelBuffer
    delay: float = 0.0


class FrameSource:
    """A lazy, finite, forward-only sequence of frames. Iterating a second time does not restart the source:
    callers that need several passes buffer the frames themselves.

    Subclasses implement ``_generate``. ``__next__`` returns a :class:`Frame`, raises ``StopIteration`` at the end of
    the stream, or raises :class:`DecodeError` / :class:`UnsupportedFormat`.
    """

    def __init__(self) -> None:
        self._frames: Optional[Iterator[Frame]] = None

    def __iter__(self) -> FrameSource:
        return self

    def __next__(self) -> Frame:
        if self._frames is None:
            self._frames = self._generate()
        return next(self._frames)

    def _generate(self) -> Iterator[Frame]:
        raise NotImplementedError


class ImageSource(FrameSource):
    """Frames of a still or multi-frame image (GIF, APNG, WebP...) decoded with Pillow.

    :param source: A path, raw bytes, a binary file object or an already opened ``PIL.Image.Image``.
    """

    def __init__(self, source: Union[SomeSortOfPath, bytes, Any]) -> None:
        super().__init__()
        if isinstance(source, (str, PathLike)) and not Path(source).exists():
            raise FileNotFoundError(f'The file path \'{source}\' does not exist.')
        self.source = source

    def _open(self) -> Image.Image:
        source = self.source
        if isinstance(source, Image.Image):
            return source
        if isinstance(source, (bytes, bytearray)):
            source = BytesIO(source)
        elif isinstance(source, PathLike):
            source = str(source)
        try:
            return Image.open(source)
        except PIL_DECODE_ERRORS as e:
            raise DecodeError(f'Could not identify image data: {e}') from e

    def _generate(self) -> Iterator[Frame]:
        image = self._open()
        try:
            index = 0
            while True:
                try:
                    image.seek(index)
                except EOFError:
                    break
                except PIL_DECODE_ERRORS + (ValueError,) as e:
                    raise DecodeError(f'Could not seek to frame {index}: {e}') from e
                delay = (image.info.get('duration') or 0) / 1000
                yield Frame(PixelBuffer.from_image(image), float(delay))
                index += 1
        finally:
            if image is not self.source:
                image.close()


class DirectorySource(FrameSource):
    """One frame per image file found under ``path``, in sorted path order. Files carry no timing."""

    def __init__(self, path: SomeSortOfPath) -> None:
        super().__init__()
        self.path = Path(path)
        if not self.path.is_dir():
            raise NotADirectoryError(f'The path \'{self.path}\' is not a directory.')

    def _generate(self) -> Iterator[Frame]:
        entries = sorted(p for p in self.path.rglob('*') if p.is_file())
        if not entries:
            raise DecodeError(f'No image files found in \'{self.path}\'.')
        for entry in entries:
            try:
                image = Image.open(entry)
            except PIL_DECODE_ERRORS as e:
                raise DecodeError(f'Could not decode \'{entry}\': {e}') from e
            with image:
                yield Frame(PixelBuffer.from_image(image))


class BufferSource(FrameSource):
    """Frames that were decoded elsewhere. Items may be :class:`Frame` objects, ``(PixelBuffer, delay)`` pairs,
    bare pixel buffers, Pillow images or numpy arrays. Exceptions raised by the wrapped iterable propagate
    unchanged, which is how a fake decoder reports a :class:`DecodeError`."""

    def __init__(self, frames: Iterable[Any]) -> None:
        super().__init__()
        self.frames = frames

    def _generate(self) -> Iterator[Frame]:
        for item in self.frames:
            yield as_frame(item)


def as_frame(item: Any) -> Frame:
    if isinstance(item, Frame):
        return item
    if isinstance(item, tuple) and len(item) == 2:
        return Frame(as_frame(item[0]).buffer, float(item[1] or 0.0))
    if isinstance(item, PixelBuffer):
        return Frame(item)
    if isinstance(item, Image.Image):
        return Frame(PixelBuffer.from_image(item))
    if isinstance(item, np.ndarray):
        return Frame(PixelBuffer.from_array(item))
    raise TypeError(f'Cannot use {type(item).__name__} as a frame.')


def open_source(source: Any) -> FrameSource:
    """Wrap whatever the caller passed in the matching :class:`FrameSource`."""
    if isinstance(source, FrameSource):
        return source
    if isinstance(source, (PixelBuffer, np.ndarray, Frame)):
        return BufferSource([source])
    if isinstance(source, (Image.Image, bytes, bytearray)) or hasattr(source, 'read'):
        return ImageSource(source)
    if isinstance(source, (str, PathLike)):
        if Path(source).is_dir():
            return DirectorySource(source)
        return ImageSource(source)
    if isinstance(source, Iterable):
        return BufferSource(source)
    raise TypeError(f'Cannot read frames from {type(source).__name__}.')
