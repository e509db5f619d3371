"""
JSON-file track store.

Each track lives in its own directory ``<library>/tracks/<id>.info/`` holding
``metadata.json`` plus any downloaded audio and cover art. All records are
loaded into memory on open; every upsert is written through to disk.
"""

import json
import os
import secrets
import shutil
from pathlib import Path
from typing import Optional, Protocol

from loguru import logger

from trackdrop.domain.library.models import Track, now_ms

LIBRARY_META_VERSION = 1


class TrackStore(Protocol):
    """Key-value record store keyed by track id."""

    def get(self, track_id: str) -> Optional[Track]: ...

    def upsert(self, track: Track) -> Track: ...

    def delete(self, track_id: str) -> None: ...


def _to_base36(value: int) -> str:
    digits = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    if value == 0:
        return "0"
    out = []
    while value:
        value, rem = divmod(value, 36)
        out.append(digits[rem])
    return "".join(reversed(out))


class LibraryStore:
    """Durable track store backed by one metadata.json per track."""

    def __init__(self, library_path: Path) -> None:
        self.library_path = Path(library_path)
        self.tracks_path = self.library_path / "tracks"
        self._cache: dict[str, Track] = {}

    def open(self) -> "LibraryStore":
        """Create the library layout if needed and load all records."""
        self.tracks_path.mkdir(parents=True, exist_ok=True)

        meta_path = self.library_path / "metadata.json"
        if not meta_path.exists():
            meta_path.write_text(
                json.dumps({"version": LIBRARY_META_VERSION, "name": "My Library"}, indent=2),
                encoding="utf-8",
            )

        self._cache.clear()
        for entry in self.tracks_path.iterdir():
            if not (entry.is_dir() and entry.name.endswith(".info")):
                continue
            meta_file = entry / "metadata.json"
            try:
                data = json.loads(meta_file.read_text(encoding="utf-8"))
                track = Track.from_dict(data)
            except (OSError, ValueError, TypeError) as e:
                logger.warning(f"Skipping unreadable track record {meta_file}: {e}")
                continue
            self._cache[track.id] = track

        logger.debug(f"Loaded {len(self._cache)} tracks from {self.tracks_path}")
        return self

    def new_id(self) -> str:
        """Generate a new opaque track id."""
        return _to_base36(now_ms()) + secrets.token_hex(3).upper()

    def track_dir(self, track_id: str) -> Path:
        return self.tracks_path / f"{track_id}.info"

    def get(self, track_id: str) -> Optional[Track]:
        return self._cache.get(track_id)

    def get_all(self) -> list[Track]:
        """All tracks that are not soft-deleted."""
        return [t for t in self._cache.values() if not t.is_deleted]

    def upsert(self, track: Track) -> Track:
        """Persist ``track`` and return the stored copy (with fresh modifiedAt)."""
        track = track._replace(modified_at=now_ms())
        track_dir = self.track_dir(track.id)
        track_dir.mkdir(parents=True, exist_ok=True)

        # Write to a temp file first so a crash never leaves half a record
        meta_path = track_dir / "metadata.json"
        tmp_path = track_dir / "metadata.json.tmp"
        tmp_path.write_text(json.dumps(track.to_dict(), indent=2), encoding="utf-8")
        os.replace(tmp_path, meta_path)

        self._cache[track.id] = track
        return track

    def update(self, track_id: str, **changes) -> Optional[Track]:
        """Apply field changes to an existing track. Returns None if missing."""
        track = self._cache.get(track_id)
        if track is None:
            return None
        return self.upsert(track._replace(**changes))

    def soft_delete(self, track_id: str) -> None:
        self.update(track_id, is_deleted=True)

    def delete(self, track_id: str) -> None:
        """Remove a track record and everything in its directory."""
        self._cache.pop(track_id, None)
        track_dir = self.track_dir(track_id)
        if track_dir.exists():
            shutil.rmtree(track_dir)

    def search(self, query: str) -> list[Track]:
        q = query.lower()
        fields = ("title", "artist_name", "album_title", "genre", "mood")
        return [
            t
            for t in self.get_all()
            if any(q in (getattr(t, f) or "").lower() for f in fields)
        ]
