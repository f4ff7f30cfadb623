"""File name and media type helpers for downloaded assets."""

import re
from pathlib import PurePosixPath
from urllib.parse import unquote, urlparse

_UNSAFE_CHARS_PATTERN = re.compile(r'[/\\?%*:|"<>]')
_IMAGE_PATTERN = re.compile(r"\.(png|jpe?g|gif|webp|bmp|svg)$", re.IGNORECASE)
_VIDEO_PATTERN = re.compile(r"\.(mp4|webm|mov|m4v)$", re.IGNORECASE)
_AUDIO_PATTERN = re.compile(r"\.(mp3|ogg|wav|m4a|aac|flac)$", re.IGNORECASE)
_GIF_PATTERN = re.compile(r"\.gif$", re.IGNORECASE)


def sanitize_filename(name: str) -> str:
    """Replace characters that are unsafe in file names with dashes."""
    cleaned = _UNSAFE_CHARS_PATTERN.sub("-", name.strip())
    return cleaned or "file"


def url_basename(url: str) -> str:
    """Return the last path segment of a URL, ignoring query and fragment."""
    path = unquote(urlparse(url).path)
    return PurePosixPath(path).name


def _path_of(url_or_name: str) -> str:
    if "://" in url_or_name:
        return urlparse(url_or_name).path
    return url_or_name


def looks_like_image_file(url_or_name: str) -> bool:
    return bool(_IMAGE_PATTERN.search(_path_of(url_or_name)))


def looks_like_gif_file(url_or_name: str) -> bool:
    return bool(_GIF_PATTERN.search(_path_of(url_or_name)))


def looks_like_video_file(url_or_name: str) -> bool:
    return bool(_VIDEO_PATTERN.search(_path_of(url_or_name)))


def looks_like_audio_file(url_or_name: str) -> bool:
    return bool(_AUDIO_PATTERN.search(_path_of(url_or_name)))
