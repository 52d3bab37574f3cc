import io
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

from PIL import Image

from asciiframes import FitWithin, FixedColumns, FixedDimensions, FixedRows, Palette, render, RenderOptions
from asciiframes.cli import build_parser, layout_from_args, options_from_args, ansi_lines, main
from asciiframes.quantize import BLOCKS
from helpers import gif_bytes


class ParserTests(unittest.TestCase):
    def test_layout_flags(self):
        parser = build_parser()
        self.assertEqual(layout_from_args(parser.parse_args(['preview', 'a.png'])), FixedColumns(100))
        self.assertEqual(layout_from_args(parser.parse_args(['convert', 'a.png', '--width', '60'])), FixedColumns(60))
        self.assertEqual(layout_from_args(parser.parse_args(['preview', 'a.png', '--height', '20'])), FixedRows(20))
        self.assertEqual(layout_from_args(parser.parse_args(['preview', 'a.png', '--fit', '80x24'])), FitWithin(80, 24))
        self.assertEqual(
            layout_from_args(parser.parse_args(['animate', 'a.gif', '-o', 'out', '--size', '40X10'])),
            FixedDimensions(40, 10))

    def test_size_flags_are_exclusive(self):
        with redirect_stderr(io.StringIO()), self.assertRaises(SystemExit):
            build_parser().parse_args(['preview', 'a.png', '--height', '20', '--fit', '80x24'])

    def test_bad_dimensions(self):
        with redirect_stderr(io.StringIO()), self.assertRaises(SystemExit):
            build_parser().parse_args(['preview', 'a.png', '--fit', '80by24'])

    def test_options(self):
        args = build_parser().parse_args(
            ['convert', 'a.png', '--ramp', 'blocks', '--color', 'palette16', '--gamma', '2.2', '--dither',
             '--sobel', '0.3'])
        options = options_from_args(args)
        self.assertEqual(options.glyph_ramp, BLOCKS)
        self.assertEqual(options.color_mode, Palette(16))
        self.assertEqual(options.gamma, 2.2)
        self.assertTrue(options.dither)
        self.assertEqual(options.edges.threshold, 0.3)

    def test_literal_ramp(self):
        args = build_parser().parse_args(['convert', 'a.png', '--ramp', ' .oO'])
        self.assertEqual(options_from_args(args).glyph_ramp, ' .oO')


class AnsiTests(unittest.TestCase):
    def test_monochrome_is_plain(self):
        grid = render(Image.new('L', (4, 4), 255), FixedDimensions(2, 1), RenderOptions(glyph_ramp='.@')).grid
        self.assertEqual(ansi_lines(grid), ['@@'])

    def test_truecolor_escape(self):
        image = Image.new('RGB', (4, 4), (10, 20, 30))
        grid = render(image, FixedDimensions(2, 1), RenderOptions(color_mode='truecolor')).grid
        line = ansi_lines(grid)[0]
        self.assertTrue(line.startswith('\033[38;2;10;20;30m'))
        self.assertEqual(line.count('\033[38;2;'), 1)
        self.assertTrue(line.endswith('\033[0m'))

    def test_palette_escape(self):
        grid = render(Image.new('RGB', (4, 4), (255, 0, 0)), FixedDimensions(2, 1),
                      RenderOptions(color_mode='palette256')).grid
        self.assertTrue(ansi_lines(grid)[0].startswith('\033[38;5;9m'))


class MainTests(unittest.TestCase):
    def test_convert(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'pic.png'
            Image.new('L', (30, 30), 255).save(path)
            out = io.StringIO()
            with redirect_stdout(out):
                self.assertEqual(main(['convert', str(path), '--width', '6', '--ramp', '.@']), 0)
            self.assertIn('pic.txt', out.getvalue())
            self.assertEqual((Path(tmp) / 'pic.txt').read_text(encoding='utf-8'), '@@@@@@\n@@@@@@\n@@@@@@\n')

    def test_quiet(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'pic.png'
            Image.new('L', (30, 30)).save(path)
            out = io.StringIO()
            with redirect_stdout(out):
                main(['convert', str(path), '-q', '-o', str(Path(tmp) / 'custom.txt')])
            self.assertEqual(out.getvalue(), '')
            self.assertTrue((Path(tmp) / 'custom.txt').exists())

    def test_animate(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'anim.gif'
            path.write_bytes(gif_bytes([0, 128, 255], duration=100))
            out_dir = Path(tmp) / 'frames'
            args = ['animate', str(path), '-o', str(out_dir), '--width', '4', '--fps', '20', '--workers', '2', '-q']
            self.assertEqual(main(args), 0)
            self.assertEqual(len(list(out_dir.glob('frame_*.txt'))), 6)
            with self.assertWarns(RuntimeWarning):
                main(args)

    def test_preview_still_image(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'pic.png'
            Image.new('L', (20, 20), 255).save(path)
            out = io.StringIO()
            with redirect_stdout(out):
                self.assertEqual(main(['preview', str(path), '--width', '4', '--ramp', '.@']), 0)
            self.assertEqual(out.getvalue(), '@@@@\n@@@@\n')

    def test_missing_input(self):
        err = io.StringIO()
        with redirect_stderr(err):
            self.assertEqual(main(['convert', '/nonexistent/pic.png']), 1)
        self.assertIn('asciiframes:', err.getvalue())

    def test_corrupt_input(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'broken.gif'
            path.write_bytes(b'GIF89a not really')
            err = io.StringIO()
            with redirect_stderr(err):
                self.assertEqual(main(['animate', str(path), '-o', str(Path(tmp) / 'out'), '-q']), 1)
            self.assertIn('frame 0', err.getvalue())


if __name__ == '__main__':
    unittest.main()
