from __future__ import annotations
from bisect import bisect_right
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from math import ceil
from pathlib import Path
from typing import Any, Iterator, List, NamedTuple, Optional, Tuple
from ..core import CoreRenderer, RenderOptions, RenderOutput
from ..grid import Grid
from ..layout import LayoutPolicy
from ..source import PixelBuffer, open_source
from ..typealiases import SomeSortOfPath, Size, AsciiFramesException, AnimationFailed, DecodeError, InvalidOptions


__all__ = ['AnimationState', 'AnimationResult', 'Animator', 'animate', 'stream', 'export_frames']


# Slack when counting target-rate slots, so 10 frames of 0.1s at 10 fps give 10 slots and not 11.
SLOT_EPSILON = 1e-9


class AnimationState(Enum):
    INITIALIZING = 'initializing'
    STREAMING = 'streaming'
    DRAINING = 'draining'
    DONE = 'done'
    FAILED = 'failed'


@dataclass(frozen=True)
class AnimationResult:
    """Every emitted frame of one ``animate`` call, in presentation order. Timestamps strictly increase."""

    frames: Tuple[RenderOutput, ...]
    fps: Optional[float] = None

    def __len__(self) -> int:
        return len(self.frames)

    def __iter__(self) -> Iterator[RenderOutput]:
        return iter(self.frames)

    def __getitem__(self, index: int) -> RenderOutput:
        return self.frames[index]

    @property
    def target_size(self) -> Optional[Size]:
        return self.frames[0].target_size if self.frames else None

    @property
    def timestamps(self) -> List[float]:
        return [frame.timestamp for frame in self.frames]

    @property
    def total_duration(self) -> float:
        if not self.frames:
            return 0.0
        last = self.frames[-1]
        return last.timestamp + last.duration

    def frame_at(self, elapsed: float) -> Optional[Grid]:
        """The grid on screen ``elapsed`` seconds into playback, looping when ``elapsed`` passes the end."""
        if not self.frames:
            return None
        total = self.total_duration
        if len(self.frames) == 1 or total <= 0:
            return self.frames[0].grid
        index = bisect_right(self.timestamps, elapsed % total) - 1
        return self.frames[max(index, 0)].grid


class _Job(NamedTuple):
    """A source frame to render once and emit at each of ``emits`` (timestamp, duration) pairs."""
    index: int
    buffer: PixelBuffer
    emits: List[Tuple[float, float]]


class Animator:
    """**Drive the per-frame pipeline over a whole animation.**

    The grid size is resolved from the first frame and reused for every later frame, even if later frames have a
    different pixel size. ``state`` moves from INITIALIZING to STREAMING once the first frame is decoded, to DRAINING
    when the source runs out, and to DONE after the last output is produced; any failure moves it to FAILED.

    Nothing is decoded until the caller iterates. An Animator can be iterated once; to stop early, stop iterating.

    :param source: Anything :func:`asciiframes.source.open_source` accepts.
    :param layout: The layout policy, applied to the first frame.
    :param options: The :class:`RenderOptions`. Defaults to ``RenderOptions()``.
    :param target_fps: Resample the sequence onto a uniform grid of this rate, duplicating or dropping source frames
        by nearest start time. Defaults to None, one output per source frame at its own timing.
    :param workers: Number of threads rendering frames. Output order never depends on it. Defaults to 1.
    :param fallback_fps: Rate assumed for frames without a delay of their own (still images, frame directories).
        Defaults to 12.
    """

    def __init__(
            self, source: Any, layout: LayoutPolicy, options: Optional[RenderOptions] = None,
            target_fps: Optional[float] = None, workers: int = 1, fallback_fps: float = 12.0) -> None:

        self.core = CoreRenderer(layout, options)
        if target_fps is not None and not target_fps > 0:
            raise InvalidOptions(f'target_fps must be positive, got {target_fps!r}.')
        if not fallback_fps > 0:
            raise InvalidOptions(f'fallback_fps must be positive, got {fallback_fps!r}.')
        if workers < 1:
            raise InvalidOptions(f'workers must be at least 1, got {workers!r}.')
        self.frames = open_source(source)
        self.target_fps = target_fps
        self.fallback_fps = fallback_fps
        self.workers = workers
        self.state = AnimationState.INITIALIZING

    def __iter__(self) -> Iterator[RenderOutput]:
        return self.stream()

    def stream(self) -> Iterator[RenderOutput]:
        """Yield each :class:`RenderOutput` as soon as it and all earlier outputs are ready."""
        try:
            yield from self._render(self._jobs())
        except AnimationFailed:
            self.state = AnimationState.FAILED
            raise
        self.state = AnimationState.DONE

    def _delay(self, delay: float) -> float:
        return delay if delay > 0 else 1.0 / self.fallback_fps

    def _pull(self, index: int) -> Optional[Tuple[PixelBuffer, float]]:
        try:
            frame = next(self.frames)
        except StopIteration:
            return None
        except Exception as e:
            raise AnimationFailed(index, e) from e
        return frame.buffer, self._delay(frame.delay)

    def _frames(self) -> Iterator[Tuple[int, PixelBuffer, float, float]]:
        """Yield (index, buffer, start, delay) for every source frame."""
        first = self._pull(0)
        if first is None:
            raise AnimationFailed(0, DecodeError('The source contains no frames.'))
        buffer, delay = first
        try:
            self.core.resolve(buffer)
        except AsciiFramesException as e:
            raise AnimationFailed(0, e) from e
        self.state = AnimationState.STREAMING

        index, start = 0, 0.0
        while True:
            yield index, buffer, start, delay
            index, start = index + 1, start + delay
            pulled = self._pull(index)
            if pulled is None:
                self.state = AnimationState.DRAINING
                return
            buffer, delay = pulled

    def _jobs(self) -> Iterator[_Job]:
        if self.target_fps is None:
            for index, buffer, start, delay in self._frames():
                yield _Job(index, buffer, [(start, delay)])
            return

        fps = self.target_fps
        period = 1.0 / fps
        slot = 0
        previous = None
        end = 0.0
        for index, buffer, start, delay in self._frames():
            if previous is not None:
                # The previous frame owns every slot closer to its start than to this one, ties included.
                midpoint = (previous[2] + start) / 2
                emits = []
                while slot / fps <= midpoint:
                    emits.append((slot / fps, period))
                    slot += 1
                yield _Job(previous[0], previous[1], emits)
            previous = (index, buffer, start)
            end = start + delay

        slot_count = ceil(end * fps - SLOT_EPSILON)
        emits = [(k / fps, period) for k in range(slot, slot_count)]
        yield _Job(previous[0], previous[1], emits)

    def _outputs(self, job: _Job, grid: Grid) -> Iterator[RenderOutput]:
        for timestamp, duration in job.emits:
            yield RenderOutput(grid, job.buffer.size, grid.size, timestamp, duration, job.index)

    def _render_one(self, job: _Job) -> Grid:
        try:
            return self.core.render_grid(job.buffer)
        except AsciiFramesException as e:
            raise AnimationFailed(job.index, e) from e

    def _render(self, jobs: Iterator[_Job]) -> Iterator[RenderOutput]:
        jobs = (job for job in jobs if job.emits)
        if self.workers == 1:
            for job in jobs:
                yield from self._outputs(job, self._render_one(job))
            return

        # Frames finish in any order; hold them until every earlier frame has been emitted.
        executor = ThreadPoolExecutor(max_workers=self.workers)
        pending = deque()
        failure = None
        try:
            while True:
                try:
                    job = next(jobs)
                except StopIteration:
                    break
                except AnimationFailed as e:
                    # Frames submitted before the decode failure are still emitted first.
                    failure = e
                    break
                pending.append((job, executor.submit(self._render_one, job)))
                while pending and (len(pending) > 2 * self.workers or pending[0][1].done()):
                    job, future = pending.popleft()
                    yield from self._outputs(job, future.result())
            while pending:
                job, future = pending.popleft()
                yield from self._outputs(job, future.result())
            if failure is not None:
                raise failure
        finally:
            executor.shutdown(wait=True, cancel_futures=True)


def stream(
        source: Any, layout: LayoutPolicy, options: Optional[RenderOptions] = None, target_fps: Optional[float] = None,
        workers: int = 1, fallback_fps: float = 12.0) -> Iterator[RenderOutput]:

    """**Render an animation lazily, one output at a time.**

    Meant for previews: frames already yielded stay with the caller even if a later frame fails, in which case
    iteration raises :class:`AnimationFailed`. Settings are validated immediately; decoding starts on the first
    ``next()``.

        >>> for output in stream('foo.gif', FixedColumns(80)):
        ...     print(output.grid.text())
        [Prints every frame]

    Parameters are those of :class:`Animator`.
    """

    return Animator(source, layout, options, target_fps, workers, fallback_fps).stream()


def animate(
        source: Any, layout: LayoutPolicy, options: Optional[RenderOptions] = None, target_fps: Optional[float] = None,
        workers: int = 1, fallback_fps: float = 12.0) -> AnimationResult:

    """**Render every frame of an animation.**

    All or nothing: if any frame fails to decode or render, :class:`AnimationFailed` is raised with the index of
    the source frame and nothing is returned.

        >>> result = animate('foo.gif', FixedColumns(80))
        >>> len(result), result.timestamps[:3]
        (24, [0.0, 0.1, 0.2])

        >>> len(animate('foo.gif', FixedColumns(80), target_fps=20))
        48

    :param source: Anything :func:`asciiframes.source.open_source` accepts.
    :param layout: The layout policy, applied to the first frame.
    :param options: The :class:`RenderOptions`. Defaults to ``RenderOptions()``.
    :param target_fps: Output frame rate. With it, the result holds ``ceil(duration * target_fps)`` frames at
        multiples of ``1 / target_fps``. Defaults to None, keeping the source timing.
    :param workers: Number of rendering threads. Defaults to 1.
    :param fallback_fps: Rate assumed for frames that carry no delay. Defaults to 12.
    :return: The :class:`AnimationResult`.
    """

    animator = Animator(source, layout, options, target_fps, workers, fallback_fps)
    return AnimationResult(tuple(animator.stream()), target_fps)


def export_frames(result: AnimationResult, out_dir: SomeSortOfPath) -> List[str]:
    """Write each frame's glyphs to ``out_dir/frame_0000.txt``, ``frame_0001.txt``... and return the paths."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    paths = []
    for k, output in enumerate(result):
        path = out_dir / f'frame_{k:04d}.txt'
        path.write_text(output.grid.text() + '\n', encoding='utf-8')
        paths.append(str(path))
    return paths
