"""Tests for the JSON-file track store."""

import json
import re

from trackdrop.core.library_store import LibraryStore
from trackdrop.domain.library.models import Track


class TestLibraryStore:
    """Persistence of track records."""

    def test_open_creates_layout(self, tmp_path) -> None:
        """Opening an empty directory creates tracks/ and metadata.json."""
        store = LibraryStore(tmp_path / "lib").open()

        assert (tmp_path / "lib" / "tracks").is_dir()
        meta = json.loads((tmp_path / "lib" / "metadata.json").read_text())
        assert meta["version"] == 1

    def test_new_id_format(self, store) -> None:
        """Ids are upper-case base36 time plus six hex characters."""
        track_id = store.new_id()
        assert re.fullmatch(r"[0-9A-Z]+[0-9A-F]{6}", track_id)
        assert store.new_id() != track_id

    def test_upsert_writes_camelcase_record(self, store) -> None:
        """The on-disk record uses camelCase keys."""
        store.upsert(Track(id="T1", title="Song", artist_name="Artist", import_status="ready"))

        data = json.loads((store.track_dir("T1") / "metadata.json").read_text())
        assert data["id"] == "T1"
        assert data["artistName"] == "Artist"
        assert data["importStatus"] == "ready"
        assert data["hasAudio"] is False
        assert data["filePath"] == ""
        assert data["modifiedAt"] > 0

    def test_reopen_loads_records(self, tmp_path) -> None:
        """Records survive a reopen."""
        store = LibraryStore(tmp_path / "lib").open()
        store.upsert(
            Track(
                id="T1",
                title="Song",
                platform_links=({"platform": "spotify", "url": "https://x"},),
            )
        )

        reopened = LibraryStore(tmp_path / "lib").open()

        track = reopened.get("T1")
        assert track.title == "Song"
        assert track.platform_links == ({"platform": "spotify", "url": "https://x"},)

    def test_corrupt_record_skipped(self, tmp_path) -> None:
        """An unreadable metadata.json is skipped, the rest still load."""
        store = LibraryStore(tmp_path / "lib").open()
        store.upsert(Track(id="GOOD"))
        bad_dir = store.track_dir("BAD")
        bad_dir.mkdir()
        (bad_dir / "metadata.json").write_text("{not json")

        reopened = LibraryStore(tmp_path / "lib").open()

        assert reopened.get("GOOD") is not None
        assert reopened.get("BAD") is None

    def test_update(self, store) -> None:
        """update() changes only the given fields."""
        store.upsert(Track(id="T1", title="Song", genre="pop"))

        updated = store.update("T1", genre="rock")

        assert updated.genre == "rock"
        assert store.get("T1").title == "Song"

    def test_update_missing(self, store) -> None:
        """update() of an unknown id returns None."""
        assert store.update("NOPE", genre="rock") is None

    def test_delete_removes_directory(self, store) -> None:
        """delete() drops the record and its files."""
        store.upsert(Track(id="T1"))
        (store.track_dir("T1") / "audio.m4a").write_bytes(b"x")

        store.delete("T1")

        assert store.get("T1") is None
        assert not store.track_dir("T1").exists()

    def test_soft_delete_hides_track(self, store) -> None:
        """Soft-deleted tracks stay readable but leave get_all()."""
        store.upsert(Track(id="T1"))

        store.soft_delete("T1")

        assert store.get("T1").is_deleted is True
        assert store.get_all() == []

    def test_search(self, store) -> None:
        """search() matches title, artist and tags case-insensitively."""
        store.upsert(Track(id="T1", title="Hallelujah", artist_name="Jeff Buckley"))
        store.upsert(Track(id="T2", title="Other", genre="Rock"))

        assert [t.id for t in store.search("buckley")] == ["T1"]
        assert [t.id for t in store.search("rock")] == ["T2"]
