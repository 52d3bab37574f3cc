from typing import Any, Union, Callable
from math import floor
from pathlib import Path
from .typealiases import SomeSortOfPath, Number


def round_half_up(value: Number) -> int:
    """Round to the nearest integer, halves away from zero for positive values. The built-in ``round`` rounds
    halves to even, which makes layout and quantization depend on the parity of the result."""
    return int(floor(value + 0.5))


def conditional_print(quiet: bool) -> Callable:
    """Return a conditional print function."""
    def _print(*values: Any, end: str = '\n'):
        if not quiet:
            print(*values, end=end)
    return _print


def safe_path(path: SomeSortOfPath, ext: str = None, as_path_obj: bool = False) -> Union[str, Path]:
    """Return whatever path is available by incrementing a suffix number in the filename. If the
    passed input path doesn't exist, return it. When ``ext`` is given, the candidate uses that extension."""
    if not isinstance(path, Path):
        path = Path(path)
    if ext is not None:
        path = path.with_suffix(f'.{ext}')
    if not path.exists():
        return path if as_path_obj else str(path)
    if ext is None:
        ext = path.suffix[1:]

    index = -1
    parent = path.parent
    stem = path.stem
    while -index <= len(stem) and stem[index].isdigit():
        index -= 1

    try:
        k = int(stem[index + 1:]) + 1
        stem = stem[:index + 1]
    except ValueError:
        k = 2

    while (parent / f'{stem}{k}.{ext}').exists():
        k += 1

    resp = parent / f'{stem}{k}.{ext}'
    return resp if as_path_obj else str(resp)
