"""
Metadata lookups for platforms whose audio cannot be downloaded.

Each lookup resolves a share link to title/artist/thumbnail using the
platform's public oEmbed or catalog endpoint.
"""

import re
from typing import Awaitable, Callable, NamedTuple, Optional
from urllib.parse import parse_qs, urlparse

import httpx
from loguru import logger

from ..models import SourcePlatform
from .exceptions import MetadataLookupError

SPOTIFY_OEMBED_URL = "https://open.spotify.com/oembed"
ITUNES_LOOKUP_URL = "https://itunes.apple.com/lookup"
DEEZER_TRACK_URL = "https://api.deezer.com/track/{track_id}"


class LookupResult(NamedTuple):
    title: Optional[str]
    artist: Optional[str]
    thumbnail_url: Optional[str]


Lookup = Callable[[httpx.AsyncClient, str], Awaitable[LookupResult]]


async def _get_json(http: httpx.AsyncClient, url: str, /, **params) -> dict:
    try:
        res = await http.get(url, params=params or None)
        res.raise_for_status()
        data = res.json()
    except (httpx.HTTPError, ValueError) as e:
        raise MetadataLookupError(f"Lookup request failed: {e}") from e
    if not isinstance(data, dict):
        raise MetadataLookupError("Lookup returned an unexpected payload")
    return data


def _text(value) -> Optional[str]:
    """String fields only; anything else in a lookup payload counts as missing."""
    return value if isinstance(value, str) and value else None


async def lookup_spotify(http: httpx.AsyncClient, url: str) -> LookupResult:
    """Spotify oEmbed. Returns the track title; the artist is not exposed."""
    data = await _get_json(http, SPOTIFY_OEMBED_URL, url=url)
    title = _text(data.get("title"))
    if not title:
        raise MetadataLookupError("Spotify oEmbed response has no title")
    return LookupResult(
        title=title,
        artist=_text(data.get("author_name")),
        thumbnail_url=_text(data.get("thumbnail_url")),
    )


def apple_music_track_id(url: str) -> Optional[str]:
    """Extract the song id from an Apple Music link.

    Album links carry the song in ``?i=<id>``; song links end with it.
    """
    parsed = urlparse(url)
    song_ids = parse_qs(parsed.query).get("i")
    if song_ids and song_ids[0].isdigit():
        return song_ids[0]
    last = parsed.path.rstrip("/").rsplit("/", 1)[-1]
    return last if last.isdigit() else None


async def lookup_apple_music(http: httpx.AsyncClient, url: str) -> LookupResult:
    track_id = apple_music_track_id(url)
    if track_id is None:
        raise MetadataLookupError(f"No song id in Apple Music URL: {url}")
    data = await _get_json(http, ITUNES_LOOKUP_URL, id=track_id)
    results = data.get("results") or []
    if not isinstance(results, list):
        raise MetadataLookupError("iTunes lookup returned an unexpected payload")
    if not results:
        raise MetadataLookupError(f"iTunes lookup found nothing for id {track_id}")
    item = results[0]
    if not isinstance(item, dict):
        raise MetadataLookupError(f"iTunes lookup returned an unexpected result for id {track_id}")
    artwork = _text(item.get("artworkUrl100"))
    if artwork:
        artwork = artwork.replace("100x100bb", "600x600bb")
    return LookupResult(
        title=_text(item.get("trackName")) or _text(item.get("collectionName")),
        artist=_text(item.get("artistName")),
        thumbnail_url=artwork,
    )


def deezer_track_id(url: str) -> Optional[str]:
    match = re.search(r"/track/(\d+)", urlparse(url).path)
    return match.group(1) if match else None


async def lookup_deezer(http: httpx.AsyncClient, url: str) -> LookupResult:
    track_id = deezer_track_id(url)
    if track_id is None:
        raise MetadataLookupError(f"No track id in Deezer URL: {url}")
    data = await _get_json(http, DEEZER_TRACK_URL.format(track_id=track_id))
    if "error" in data:
        raise MetadataLookupError(f"Deezer API error: {data['error']}")
    album = data.get("album") or {}
    artist = data.get("artist") or {}
    if not isinstance(album, dict) or not isinstance(artist, dict):
        raise MetadataLookupError(f"Deezer returned an unexpected payload for track {track_id}")
    return LookupResult(
        title=_text(data.get("title")),
        artist=_text(artist.get("name")),
        thumbnail_url=_text(album.get("cover_big")) or _text(album.get("cover_medium")),
    )


LOOKUPS: dict[SourcePlatform, Lookup] = {
    SourcePlatform.SPOTIFY: lookup_spotify,
    SourcePlatform.APPLE_MUSIC: lookup_apple_music,
    SourcePlatform.DEEZER: lookup_deezer,
}


async def lookup_metadata(
    http: httpx.AsyncClient, platform: SourcePlatform, url: str
) -> LookupResult:
    """Run the platform's lookup.

    Raises:
        MetadataLookupError: No lookup exists for the platform, or it failed
    """
    lookup = LOOKUPS.get(platform)
    if lookup is None:
        raise MetadataLookupError(f"No metadata lookup for platform {platform.value}")
    result = await lookup(http, url)
    logger.debug(f"{platform.value} lookup: {result.artist} - {result.title}")
    return result
