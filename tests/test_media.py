import tempfile
import unittest
from pathlib import Path
from unittest import mock

from PIL import Image

from gomarket.ascii_video_widget import ASCIIVideoPlayer, load_frames_dir
from gomarket.media import (
    image_mime_type,
    image_to_ascii,
    is_remote,
    load_image_part,
    pil_to_ascii,
    prepare_video_frames,
    save_image_bytes,
    verify_image,
    video_to_ascii_frames,
)


class TestImages(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)
        self.png = self.dir / "red.png"
        Image.new("RGB", (20, 10), "white").save(self.png)
        self.not_image = self.dir / "notes.txt"
        self.not_image.write_text("hello")

    def tearDown(self):
        self.tmp.cleanup()

    def test_verify_image(self):
        self.assertTrue(verify_image(str(self.png)))
        self.assertFalse(verify_image(str(self.not_image)))
        self.assertFalse(verify_image(str(self.dir / "missing.png")))

    def test_mime_type_comes_from_content(self):
        disguised = self.dir / "photo.jpg"
        disguised.write_bytes(self.png.read_bytes())
        self.assertEqual(image_mime_type(str(disguised)), "image/png")

    def test_load_image_part(self):
        part = load_image_part(str(self.png))
        self.assertEqual(part["inline_data"]["mime_type"], "image/png")
        self.assertTrue(part["inline_data"]["data"])

    def test_ascii_dimensions(self):
        text = pil_to_ascii(Image.new("L", (40, 40), 255), width=20)
        rows = text.split("\n")
        self.assertEqual(len(rows), 10)
        self.assertTrue(all(len(r) == 20 for r in rows))

    def test_image_to_ascii_skips_remote_and_invalid(self):
        self.assertIsNotNone(image_to_ascii(str(self.png), 10))
        self.assertIsNone(image_to_ascii("https://example.com/a.png"))
        self.assertIsNone(image_to_ascii(None))
        self.assertIsNone(image_to_ascii(str(self.not_image)))
        self.assertTrue(is_remote("http://x"))
        self.assertFalse(is_remote("/tmp/x.png"))

    def test_save_image_bytes(self):
        path = save_image_bytes(b"data", "image/png", self.dir / "media", "edited_1")
        self.assertEqual(path.suffix, ".png")
        self.assertEqual(path.read_bytes(), b"data")

    def test_unreadable_video_gives_no_frames(self):
        self.assertEqual(video_to_ascii_frames(str(self.not_image)), [])


class TestPrepareVideoFrames(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)
        self.video = self.dir / "promo.mp4"
        self.video.write_bytes(b"not really a video")

    def tearDown(self):
        self.tmp.cleanup()

    def test_cached_frames_are_reused(self):
        frames_dir = self.dir / "promo_frames"
        frames_dir.mkdir()
        (frames_dir / "frame_0000.txt").write_text("A")
        with mock.patch("gomarket.media.video_to_ascii_frames") as convert:
            self.assertEqual(prepare_video_frames(str(self.video)), frames_dir)
        convert.assert_not_called()

    def test_failed_conversion_is_not_retried(self):
        with mock.patch("gomarket.media.video_to_ascii_frames", return_value=[]) as convert:
            self.assertIsNone(prepare_video_frames(str(self.video)))
            self.assertIsNone(prepare_video_frames(str(self.video)))
        self.assertEqual(convert.call_count, 1)

    def test_converts_on_first_use(self):
        with mock.patch("gomarket.media.video_to_ascii_frames", return_value=["A"]) as convert:
            frames_dir = prepare_video_frames(str(self.video), fps=3, width=20)
        self.assertEqual(frames_dir, self.dir / "promo_frames")
        convert.assert_called_once_with(str(self.video), fps=3, width=20, output_dir=str(frames_dir))


class TestFramesDir(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_load_frames_and_fps(self):
        (self.dir / "frame_0001.txt").write_text("B")
        (self.dir / "frame_0000.txt").write_text("A")
        (self.dir / "metadata.txt").write_text("total_frames=2\nfps=4\n")
        frames, fps = load_frames_dir(self.dir)
        self.assertEqual(frames, ["A", "B"])
        self.assertEqual(fps, 4)

    def test_missing_dir(self):
        self.assertEqual(load_frames_dir(self.dir / "nope"), ([], None))

    def test_player_reads_frames_dir(self):
        (self.dir / "frame_0000.txt").write_text("A")
        (self.dir / "metadata.txt").write_text("fps=3\n")
        player = ASCIIVideoPlayer(frames_dir=str(self.dir), autoplay=False)
        self.assertEqual(player.total_frames, 1)
        self.assertEqual(player.fps, 3)


if __name__ == "__main__":
    unittest.main()
