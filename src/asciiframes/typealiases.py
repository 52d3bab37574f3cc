from typing import Union, Tuple
from os import PathLike
from pathlib import Path

SomeSortOfPath = Union[str, PathLike, Path]
Number = Union[int, float]
RGB = Tuple[int, int, int]
Size = Tuple[int, int]


class AsciiFramesException(Exception):
    pass


class DecodeError(AsciiFramesException):
    """The source bytes could not be parsed as an image or animation."""


class UnsupportedFormat(AsciiFramesException):
    """The source decoded, but its pixel layout cannot be normalized to 8-bit RGBA."""


class InvalidLayout(AsciiFramesException, ValueError):
    pass


class EmptyRamp(AsciiFramesException, ValueError):
    pass


class InvalidOptions(AsciiFramesException, ValueError):
    pass


class AnimationFailed(AsciiFramesException):
    """Wraps the error raised while pulling or rendering the frame at ``frame_index``."""

    def __init__(self, frame_index: int, cause: BaseException) -> None:
        super().__init__(f'Animation failed at frame {frame_index}: {cause}')
        self.frame_index = frame_index
        self.cause = cause
