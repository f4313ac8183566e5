"""
Resolves user input (watch URL, manifest URL, local file, or bare video ID) to
manifest text.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from urllib.parse import urlparse

import aiofiles

from hlsgrab.exceptions import UnsupportedSourceError
from hlsgrab.media.manifest_parser import decode_manifest
from hlsgrab.models.config import DEFAULT_MANIFEST_URL_TEMPLATE

from .fetcher import FragmentFetcher

log = logging.getLogger(__name__)

_WATCH_URL_RE = re.compile(r"redgifs\.com/(?:watch|ifr)/(?P<id>[A-Za-z0-9]+)")
_VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_GENERIC_PLAYLIST_NAMES = {"hd", "sd", "index", "playlist", "master", "prog_index"}


@dataclass(frozen=True)
class ManifestDocument:
    """Manifest text plus what is needed to name and resolve its fragments."""

    video_id: str
    text: str
    base_url: str | None = None


def video_id_from_manifest_url(url: str) -> str:
    """
    Derives a video identifier from a manifest URL, e.g.
    `.../gifs/someclip/hd.m3u8` -> `someclip`.
    """
    path = PurePosixPath(urlparse(url).path)
    if path.stem.lower() in _GENERIC_PLAYLIST_NAMES and path.parent.name:
        return path.parent.name
    return path.stem or "video"


class ManifestSource:
    """Turns a download source into a ManifestDocument."""

    def __init__(
        self,
        fetcher: FragmentFetcher,
        url_template: str = DEFAULT_MANIFEST_URL_TEMPLATE,
    ):
        self.fetcher = fetcher
        self.url_template = url_template

    def manifest_url_for(self, video_id: str) -> str:
        return self.url_template.format(id=video_id)

    async def load(self, source: str) -> ManifestDocument:
        """
        Loads the manifest for `source`.

        Raises:
            UnsupportedSourceError: If the source cannot be interpreted.
            FetchError: If downloading the manifest failed.
            ParseError: If the manifest is not valid UTF-8.
        """
        source = source.strip()

        if source.startswith(("http://", "https://")):
            if match := _WATCH_URL_RE.search(source):
                return await self._load_url(
                    self.manifest_url_for(match.group("id")), match.group("id")
                )
            return await self._load_url(source, video_id_from_manifest_url(source))

        path = Path(source)
        if path.is_file():
            log.debug(f"Reading manifest from file: {path}")
            async with aiofiles.open(path, "rb") as f:
                data = await f.read()
            return ManifestDocument(
                video_id=path.stem, text=decode_manifest(data, str(path))
            )

        if _VIDEO_ID_RE.match(source):
            return await self._load_url(self.manifest_url_for(source), source)

        raise UnsupportedSourceError(
            f"'{source}' is not a URL, a manifest file, or a video ID."
        )

    async def _load_url(self, url: str, video_id: str) -> ManifestDocument:
        log.debug(f"Fetching manifest for '{video_id}': {url}")
        text = await self.fetcher.fetch_text(url)
        return ManifestDocument(video_id=video_id, text=text, base_url=url)
