"""
Media helpers: image checks, ASCII previews and promo video frames.

Images are shown in the terminal as ASCII art rendered with Pillow; videos are
sampled with OpenCV and converted frame by frame the same way.
"""
import base64
import logging
import mimetypes
from pathlib import Path
from typing import Dict, List, Optional, Set

import cv2
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger("gomarket.media")

# dark to light
ASCII_RAMP = "@%#*+=-:. "
# terminal cells are about twice as tall as they are wide
CELL_ASPECT = 0.5

# videos that produced no frames this session
_failed_videos: Set[str] = set()

_FORMAT_MIME = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "GIF": "image/gif",
    "WEBP": "image/webp",
    "BMP": "image/bmp",
}


def is_remote(path: str) -> bool:
    return path.startswith(("http://", "https://"))


def verify_image(path: str) -> bool:
    """True when the file is an image Pillow can read."""
    try:
        with Image.open(path) as img:
            img.verify()
        return True
    except (OSError, UnidentifiedImageError, SyntaxError):
        logger.debug("not an image: %s", path)
        return False


def image_mime_type(path: str) -> str:
    try:
        with Image.open(path) as img:
            fmt = img.format
    except (OSError, UnidentifiedImageError):
        fmt = None
    if fmt in _FORMAT_MIME:
        return _FORMAT_MIME[fmt]
    guessed, _ = mimetypes.guess_type(path)
    return guessed or "application/octet-stream"


def load_image_part(path: str) -> Dict[str, Dict[str, str]]:
    """Inline-data part for a generate content request."""
    data = Path(path).read_bytes()
    return {
        "inline_data": {
            "mime_type": image_mime_type(path),
            "data": base64.b64encode(data).decode("ascii"),
        }
    }


def save_image_bytes(data: bytes, mime_type: str, target_dir: Path, stem: str) -> Path:
    """Write generated image bytes under target_dir and return the path."""
    ext = mimetypes.guess_extension(mime_type) or ".png"
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / f"{stem}{ext}"
    path.write_bytes(data)
    return path


def pil_to_ascii(img: Image.Image, width: int = 40) -> str:
    gray = img.convert("L")
    w, h = gray.size
    if w == 0 or h == 0:
        return ""
    height = max(1, int(h / w * width * CELL_ASPECT))
    gray = gray.resize((width, height))
    pixels = list(gray.getdata())
    scale = (len(ASCII_RAMP) - 1) / 255
    rows = []
    for y in range(height):
        row = pixels[y * width:(y + 1) * width]
        rows.append("".join(ASCII_RAMP[int(p * scale)] for p in row))
    return "\n".join(rows)


def image_to_ascii(path: Optional[str], width: int = 40) -> Optional[str]:
    """ASCII preview of a local image, or None when it cannot be shown."""
    if not path or is_remote(path):
        return None
    try:
        with Image.open(path) as img:
            return pil_to_ascii(img, width)
    except (OSError, UnidentifiedImageError):
        logger.warning("could not render image %s", path)
        return None


def video_to_ascii_frames(
    video_path: str,
    fps: int = 2,
    width: int = 60,
    max_seconds: Optional[int] = 8,
    output_dir: Optional[str] = None,
) -> List[str]:
    """
    Sample a video and convert each sampled frame to ASCII.

    Args:
        video_path: Path to the input video file
        fps: Frames per second to keep
        width: Width in characters of each frame
        max_seconds: Stop after this many seconds of video (None = all)
        output_dir: When given, also write frame_NNNN.txt files and metadata.txt
    """
    video = cv2.VideoCapture(video_path)
    if not video.isOpened():
        logger.error("could not open video %s", video_path)
        return []

    video_fps = video.get(cv2.CAP_PROP_FPS) or 24
    frame_interval = max(1, int(video_fps / fps))
    max_frames = int(max_seconds * fps) if max_seconds else None

    frames: List[str] = []
    frame_count = 0
    try:
        while True:
            ret, frame = video.read()
            if not ret:
                break
            if max_frames and len(frames) >= max_frames:
                break
            if frame_count % frame_interval == 0:
                rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
                frames.append(pil_to_ascii(Image.fromarray(rgb), width))
            frame_count += 1
    finally:
        video.release()

    logger.debug("converted %d frames from %s", len(frames), video_path)

    if output_dir:
        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)
        for i, text in enumerate(frames):
            (out / f"frame_{i:04d}.txt").write_text(text)
        (out / "metadata.txt").write_text(f"total_frames={len(frames)}\nfps={fps}\n")
    return frames


def frames_dir_for(video_path: str) -> Path:
    video = Path(video_path)
    return video.with_name(video.stem + "_frames")


def prepare_video_frames(video_path: str, fps: int = 2, width: int = 48) -> Optional[Path]:
    """
    Return the frames directory for a local video, converting it on first use.

    Frames are cached beside the video. A video that yields no frames is
    remembered and not converted again; None is returned for it.
    """
    key = str(Path(video_path).resolve())
    if key in _failed_videos:
        return None
    frames_dir = frames_dir_for(video_path)
    if any(frames_dir.glob("frame_*.txt")):
        return frames_dir
    if video_to_ascii_frames(video_path, fps=fps, width=width, output_dir=str(frames_dir)):
        return frames_dir
    logger.warning("no frames from %s, not retrying", video_path)
    _failed_videos.add(key)
    return None
