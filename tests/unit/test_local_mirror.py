# tests/unit/test_local_mirror.py
# Client-side JSON mirror used when the API is unreachable

import json

import pytest

from sendlink.client.local_mirror import LocalMirror
from sendlink.middleware.error_handler import InvalidIndexError, NotFoundError


@pytest.fixture
def mirror_path(tmp_path):
    return str(tmp_path / "mirror" / "boards.json")


def test_missing_or_corrupt_file_starts_empty(mirror_path, tmp_path, clock):
    assert LocalMirror(mirror_path, clock=clock).data == {"boards": {}, "shareMap": {}}

    corrupt = tmp_path / "corrupt.json"
    corrupt.write_text("{not json", encoding="utf-8")
    assert LocalMirror(str(corrupt), clock=clock).data == {"boards": {}, "shareMap": {}}


def test_boards_survive_reload(mirror_path, clock):
    mirror = LocalMirror(mirror_path, clock=clock)
    mirror.put_board("b1", {"text": "offline notes"})

    reloaded = LocalMirror(mirror_path, clock=clock)
    board = reloaded.get_board("b1")

    assert board["text"] == "offline notes"
    assert board["id"] == "b1"
    assert board["createdAt"] == "2026-01-01T12:00:00.000Z"

    with open(mirror_path, encoding="utf-8") as f:
        assert set(json.load(f)) == {"boards", "shareMap"}


def test_returned_boards_are_copies(mirror_path, clock):
    mirror = LocalMirror(mirror_path, clock=clock)
    board = mirror.put_board("b1", {"text": "a"})

    board["media"].append({"id": "sneaky"})

    assert mirror.get_board("b1")["media"] == []


def test_append_and_delete_media(mirror_path, clock):
    mirror = LocalMirror(mirror_path, clock=clock)

    mirror.append_media("b1", {"id": "m1"})
    board = mirror.append_media("b1", {"id": "m2"})
    assert [m["id"] for m in board["media"]] == ["m1", "m2"]

    board = mirror.delete_media_at("b1", 0)
    assert [m["id"] for m in board["media"]] == ["m2"]

    with pytest.raises(InvalidIndexError):
        mirror.delete_media_at("b1", 5)
    with pytest.raises(NotFoundError):
        mirror.delete_media_at("ghost", 0)


def test_share_map_respects_expiry(mirror_path, clock):
    mirror = LocalMirror(mirror_path, clock=clock)
    entry = mirror.put_share("my-link", "b1", 60)
    assert entry["expiresAt"] == "2026-01-01T12:01:00.000Z"
    assert entry["accessCount"] == 0

    resolved = mirror.resolve_share("my-link")
    assert resolved == {
        "slug": "my-link",
        "boardId": "b1",
        "createdAt": "2026-01-01T12:00:00.000Z",
        "expiresAt": "2026-01-01T12:01:00.000Z",
        "accessCount": 1,
    }
    assert mirror.resolve_share("my-link")["accessCount"] == 2
    assert not mirror.is_share_expired("my-link")

    clock.advance(60)
    assert mirror.resolve_share("my-link") is None
    assert mirror.is_share_expired("my-link")
    assert not mirror.is_share_expired("unknown")
    assert mirror.resolve_share("unknown") is None
