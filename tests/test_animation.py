import tempfile
import unittest
from pathlib import Path

from PIL import Image

from asciiframes import (
    animate, stream, export_frames, Animator, AnimationState, AnimationFailed, BufferSource, FixedColumns,
    FixedDimensions, RenderOptions, DecodeError, EmptyRamp, InvalidOptions)
from helpers import fake_frames, gif_bytes, png_bytes, random_buffer, solid_buffer


class AnimateTests(unittest.TestCase):
    def test_source_timing_is_kept(self):
        result = animate(fake_frames(10, delay=0.1), FixedColumns(8))
        self.assertEqual(len(result), 10)
        for i, output in enumerate(result):
            self.assertAlmostEqual(output.timestamp, i * 0.1)
            self.assertAlmostEqual(output.duration, 0.1)
            self.assertEqual(output.source_index, i)
        self.assertAlmostEqual(result.total_duration, 1.0)

    def test_state_moves_to_done(self):
        animator = Animator(fake_frames(3), FixedColumns(8))
        self.assertEqual(animator.state, AnimationState.INITIALIZING)
        outputs = list(animator)
        self.assertEqual(len(outputs), 3)
        self.assertEqual(animator.state, AnimationState.DONE)

    def test_retime_up_duplicates_frames(self):
        result = animate(fake_frames(10, delay=0.1), FixedColumns(8), target_fps=20)
        self.assertEqual(len(result), 20)
        for k, output in enumerate(result):
            self.assertAlmostEqual(output.timestamp, k / 20)
            self.assertAlmostEqual(output.duration, 1 / 20)
        self.assertEqual([output.source_index for output in result][:4], [0, 0, 1, 1])

    def test_retime_down_drops_frames(self):
        result = animate(fake_frames(10, delay=0.1), FixedColumns(8), target_fps=5)
        self.assertEqual(len(result), 5)
        indexes = [output.source_index for output in result]
        self.assertEqual(indexes, sorted(indexes))
        self.assertEqual(indexes[0], 0)
        timestamps = result.timestamps
        self.assertTrue(all(a < b for a, b in zip(timestamps, timestamps[1:])))

    def test_retime_slot_count_rounds_up(self):
        result = animate(fake_frames(3, delay=0.1), FixedColumns(8), target_fps=4)
        self.assertEqual(len(result), 2)
        self.assertEqual([output.source_index for output in result], [0, 2])

    def test_retime_same_rate_is_one_to_one(self):
        result = animate(fake_frames(10, delay=0.1), FixedColumns(8), target_fps=10)
        self.assertEqual([output.source_index for output in result], list(range(10)))

    def test_grid_size_fixed_by_first_frame(self):
        frames = [(solid_buffer(100, 50), 0.1), (solid_buffer(30, 90), 0.1), (solid_buffer(7, 7), 0.1)]
        result = animate(BufferSource(frames), FixedColumns(10))
        self.assertEqual({output.target_size for output in result}, {(10, 3)})
        self.assertEqual([output.source_size for output in result], [(100, 50), (30, 90), (7, 7)])
        self.assertEqual(result.target_size, (10, 3))

    def test_zero_delays_use_fallback_rate(self):
        frames = [solid_buffer(4, 4), solid_buffer(4, 4), solid_buffer(4, 4)]
        result = animate(frames, FixedColumns(4))
        for k, output in enumerate(result):
            self.assertAlmostEqual(output.timestamp, k / 12)
        result = animate(frames, FixedColumns(4), fallback_fps=4)
        self.assertAlmostEqual(result.total_duration, 0.75)

    def test_still_image(self):
        result = animate(png_bytes(Image.new('RGB', (10, 10))), FixedColumns(5))
        self.assertEqual(len(result), 1)
        self.assertEqual(result[0].timestamp, 0.0)

    def test_gif(self):
        result = animate(gif_bytes([0, 255, 0], duration=50), FixedDimensions(2, 1), RenderOptions(glyph_ramp='.@'))
        self.assertEqual([output.lines() for output in result], [['..'], ['@@'], ['..']])
        self.assertAlmostEqual(result.timestamps[2], 0.1)

    def test_workers_do_not_change_output(self):
        frames = [(random_buffer(40, 30, seed=i), 0.05 * (i % 3 + 1)) for i in range(12)]
        options = RenderOptions(color_mode='truecolor')
        single = animate(BufferSource(frames), FixedColumns(12), options)
        threaded = animate(BufferSource(frames), FixedColumns(12), options, workers=3)
        self.assertEqual(single, threaded)
        retimed = animate(BufferSource(frames), FixedColumns(12), options, target_fps=15, workers=4)
        self.assertEqual(retimed, animate(BufferSource(frames), FixedColumns(12), options, target_fps=15))

    def test_frame_at_loops(self):
        result = animate(fake_frames(10, delay=0.1), FixedColumns(8))
        self.assertIs(result.frame_at(0.0), result[0].grid)
        self.assertIs(result.frame_at(0.25), result[2].grid)
        self.assertIs(result.frame_at(1.25), result[2].grid)
        self.assertIs(result.frame_at(0.95), result[9].grid)


class FailureTests(unittest.TestCase):
    def test_decode_failure_names_the_frame(self):
        with self.assertRaises(AnimationFailed) as ctx:
            animate(fake_frames(6, fail_at=3), FixedColumns(8))
        self.assertEqual(ctx.exception.frame_index, 3)
        self.assertIsInstance(ctx.exception.cause, DecodeError)

    def test_decode_failure_with_workers(self):
        with self.assertRaises(AnimationFailed) as ctx:
            animate(fake_frames(6, fail_at=4), FixedColumns(8), workers=2)
        self.assertEqual(ctx.exception.frame_index, 4)

    def test_stream_keeps_earlier_frames(self):
        animator = Animator(fake_frames(6, fail_at=3), FixedColumns(8))
        received = []
        with self.assertRaises(AnimationFailed):
            for output in animator:
                received.append(output)
        self.assertEqual([output.source_index for output in received], [0, 1, 2])
        self.assertEqual(animator.state, AnimationState.FAILED)

    def test_empty_source(self):
        with self.assertRaises(AnimationFailed) as ctx:
            animate(BufferSource([]), FixedColumns(8))
        self.assertEqual(ctx.exception.frame_index, 0)
        self.assertIsInstance(ctx.exception.cause, DecodeError)

    def test_settings_fail_before_decoding(self):
        with self.assertRaises(EmptyRamp):
            stream(fake_frames(3), FixedColumns(8), RenderOptions(glyph_ramp='#'))
        with self.assertRaises(InvalidOptions):
            animate(fake_frames(3), FixedColumns(8), target_fps=0)
        with self.assertRaises(InvalidOptions):
            animate(fake_frames(3), FixedColumns(8), workers=0)


class ExportTests(unittest.TestCase):
    def test_export_frames(self):
        result = animate(fake_frames(3), FixedColumns(8), RenderOptions(glyph_ramp='.@'))
        with tempfile.TemporaryDirectory() as tmp:
            paths = export_frames(result, Path(tmp) / 'frames')
            self.assertEqual([Path(p).name for p in paths], ['frame_0000.txt', 'frame_0001.txt', 'frame_0002.txt'])
            self.assertEqual(Path(paths[2]).read_text(encoding='utf-8'), result[2].grid.text() + '\n')


if __name__ == '__main__':
    unittest.main()
