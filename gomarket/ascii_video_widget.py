"""
ASCII Video Player Widget for Textual
Plays a listing's promo video as ASCII frames
"""
import logging
from pathlib import Path
from typing import List, Optional

from textual.app import ComposeResult
from textual.reactive import reactive
from textual.widget import Widget
from textual.widgets import Static

logger = logging.getLogger("gomarket.ascii_video")


def load_frames_dir(frames_dir: Path):
    """Read frame_*.txt files and the fps from metadata.txt, if present."""
    if not frames_dir.exists():
        return [], None
    frames = [p.read_text() for p in sorted(frames_dir.glob("frame_*.txt"))]
    fps = None
    metadata_file = frames_dir / "metadata.txt"
    if metadata_file.exists():
        metadata = {}
        for line in metadata_file.read_text().split("\n"):
            if "=" in line:
                key, value = line.split("=", 1)
                metadata[key] = value
        if "fps" in metadata:
            fps = int(metadata["fps"])
    return frames, fps


class ASCIIVideoPlayer(Widget):
    """Widget that plays ASCII video by cycling through frames."""

    DEFAULT_CSS = """
    ASCIIVideoPlayer {
        height: auto;
        layout: vertical;
    }
    """

    current_frame = reactive(0)
    is_playing = reactive(False)

    def __init__(
        self,
        frames: Optional[List[str]] = None,
        fps: int = 2,
        frames_dir: Optional[str] = None,
        autoplay: bool = True,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.fps = max(1, fps)
        self.frames: List[str] = list(frames or [])
        if frames_dir and not self.frames:
            self.frames, stored_fps = load_frames_dir(Path(frames_dir))
            if stored_fps:
                self.fps = stored_fps
        self.autoplay = autoplay
        self.update_timer = None

    @property
    def total_frames(self) -> int:
        return len(self.frames)

    def compose(self) -> ComposeResult:
        initial_text = self.frames[0] if self.frames else "No video frames"
        yield Static(initial_text, id="video-frame")
        yield Static(self._status_text(0), id="video-controls", classes="video-controls")

    def _status_text(self, frame_num: int) -> str:
        if not self.frames:
            return ""
        status = "▶" if self.is_playing else "⏸"
        return f"{status} Frame {frame_num + 1}/{self.total_frames} | Click to pause/play"

    def watch_current_frame(self, frame_num: int) -> None:
        if not self.frames or frame_num >= len(self.frames) or not self.is_mounted:
            return
        self.query_one("#video-frame", Static).update(self.frames[frame_num])
        self.query_one("#video-controls", Static).update(self._status_text(frame_num))

    def on_mount(self) -> None:
        logger.debug("video mounted with %d frames", self.total_frames)
        if self.total_frames > 1 and self.autoplay:
            self.play()

    def play(self) -> None:
        if self.total_frames == 0:
            return
        self.is_playing = True
        if self.update_timer is None:
            self.update_timer = self.set_interval(1.0 / self.fps, self.next_frame)
        else:
            self.update_timer.resume()

    def pause(self) -> None:
        self.is_playing = False
        if self.update_timer is not None:
            self.update_timer.pause()
        if self.is_mounted:
            self.query_one("#video-controls", Static).update(self._status_text(self.current_frame))

    def next_frame(self) -> None:
        if self.total_frames:
            self.current_frame = (self.current_frame + 1) % self.total_frames

    def reset(self) -> None:
        self.current_frame = 0

    def on_click(self) -> None:
        if self.is_playing:
            self.pause()
        else:
            self.play()
