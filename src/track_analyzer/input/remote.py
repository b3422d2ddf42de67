"""Remote audio fetching with scoped temporary storage."""

import logging
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import yt_dlp

from ..core.errors import AudioLoadError

logger = logging.getLogger(__name__)

URL_PREFIXES = ("http://", "https://", "http:\\", "https:\\", "www.")
AUDIO_SUFFIXES = {".wav", ".mp3", ".m4a", ".webm", ".ogg", ".opus", ".aac", ".flac", ".mp4"}


def is_url(path: str) -> bool:
    """Check whether an input string points at a remote resource."""
    return str(path).startswith(URL_PREFIXES)


def normalize_url(url: str) -> str:
    """Turn Windows path separators mangled into a URL back into slashes."""
    if url.startswith(("http:\\", "https:\\")):
        return url.replace(":\\", "://", 1).replace("\\", "/")
    return url.replace("\\", "/")


def download_audio(url: str, output_dir: Path) -> Path:
    """
    Download audio from a URL into ``output_dir`` using yt-dlp.

    Direct file links go through yt-dlp's generic extractor; streaming pages
    (YouTube, SoundCloud, ...) through their own extractors.

    Returns:
        Path to the downloaded audio file

    Raises:
        AudioLoadError: If the download fails or produces no audio file
    """
    ydl_opts = {
        "format": "bestaudio/best",
        "outtmpl": str(output_dir / "%(title)s.%(ext)s"),
        "quiet": True,
        "no_warnings": True,
    }

    logger.info("Downloading audio from %s", url)
    try:
        with yt_dlp.YoutubeDL(ydl_opts) as ydl:
            ydl.extract_info(url, download=True)
    except Exception as e:
        raise AudioLoadError(f"Failed to download audio from '{url}': {e}") from e

    audio_files = sorted(
        f for f in output_dir.glob("*.*") if f.suffix.lower() in AUDIO_SUFFIXES
    )
    if not audio_files:
        raise AudioLoadError(f"Download from '{url}' produced no audio file")

    logger.debug("Downloaded %s (%d bytes)", audio_files[0].name, audio_files[0].stat().st_size)
    return audio_files[0]


@contextmanager
def fetched_audio(url: str, keep: bool = False) -> Iterator[Path]:
    """Download ``url`` into a fresh temporary directory and yield the file.

    The file is fully written and closed before it is yielded. The directory
    is removed on every exit path unless ``keep`` is set.
    """
    temp_dir = Path(tempfile.mkdtemp(prefix="track_analyzer_"))
    try:
        yield download_audio(normalize_url(url), temp_dir)
    finally:
        if keep:
            logger.info("Keeping downloaded audio in %s", temp_dir)
        else:
            shutil.rmtree(temp_dir, ignore_errors=True)
            logger.debug("Temporary directory cleaned up: %s", temp_dir)
