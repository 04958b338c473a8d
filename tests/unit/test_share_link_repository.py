# tests/unit/test_share_link_repository.py
# Share link lifecycle against an on-disk SQLite database

from datetime import timedelta

import pytest

import sendlink.repositories.share_link_repository as share_module
from sendlink.constants import (
    DEFAULT_SHARE_EXPIRY_SECONDS,
    GENERATED_SLUG_LENGTH,
    MAX_SHARE_EXPIRY_SECONDS,
)
from sendlink.middleware.error_handler import (
    ExpiryTooLongError,
    InvalidSlugError,
    SlugConflictError,
    StorageError,
    ValidationError,
)
from sendlink.repositories.share_link_repository import generate_slug, validate_slug


def test_generated_slug_shape():
    slug = generate_slug()
    assert len(slug) == GENERATED_SLUG_LENGTH
    validate_slug(slug)


@pytest.mark.parametrize("slug", ["abc", "my-board-2026", "a" * 50])
def test_valid_custom_slugs(slug):
    validate_slug(slug)


@pytest.mark.parametrize(
    "slug, fragment",
    [
        ("ab", "between 3 and 50"),
        ("a" * 51, "between 3 and 50"),
        ("Upper", "lowercase letters"),
        ("with space", "lowercase letters"),
        ("under_score", "lowercase letters"),
        ("abc\n", "lowercase letters"),
    ],
)
def test_invalid_custom_slugs(slug, fragment):
    with pytest.raises(InvalidSlugError) as exc_info:
        validate_slug(slug)
    assert fragment in exc_info.value.message


@pytest.mark.asyncio
async def test_create_with_defaults(share_repo, clock):
    link = await share_repo.create("board1")

    assert len(link["slug"]) == GENERATED_SLUG_LENGTH
    assert link["board_id"] == "board1"
    assert link["created_at"] == clock()
    assert link["expires_at"] == clock() + timedelta(seconds=DEFAULT_SHARE_EXPIRY_SECONDS)
    assert link["access_count"] == 0


@pytest.mark.asyncio
async def test_create_requires_board_id(share_repo):
    with pytest.raises(ValidationError):
        await share_repo.create("")


@pytest.mark.asyncio
async def test_create_rejects_bad_expiry(share_repo):
    with pytest.raises(ExpiryTooLongError) as exc_info:
        await share_repo.create("board1", expiry_seconds=MAX_SHARE_EXPIRY_SECONDS + 1)
    assert exc_info.value.message == "Maximum expiry time is 30 days"

    with pytest.raises(ValidationError):
        await share_repo.create("board1", expiry_seconds=0)

    # the upper bound itself is allowed
    link = await share_repo.create("board1", expiry_seconds=MAX_SHARE_EXPIRY_SECONDS)
    assert link["slug"]


@pytest.mark.asyncio
async def test_custom_slug_conflicts_while_active(share_repo):
    await share_repo.create("board1", custom_slug="team-notes")

    with pytest.raises(SlugConflictError) as exc_info:
        await share_repo.create("board2", custom_slug="team-notes")
    assert exc_info.value.status_code == 409

    resolved = await share_repo.resolve("team-notes")
    assert resolved["board_id"] == "board1"


@pytest.mark.asyncio
async def test_expired_slug_can_be_reused(share_repo, clock):
    await share_repo.create("board1", custom_slug="short-lived", expiry_seconds=60)

    clock.advance(61)
    link = await share_repo.create("board2", custom_slug="short-lived")

    assert link["board_id"] == "board2"
    assert (await share_repo.resolve("short-lived"))["board_id"] == "board2"


@pytest.mark.asyncio
async def test_resolve_counts_each_access(share_repo):
    await share_repo.create("board1", custom_slug="counted")

    first = await share_repo.resolve("counted")
    second = await share_repo.resolve("counted")

    assert first["access_count"] == 1
    assert second["access_count"] == 2


@pytest.mark.asyncio
async def test_resolve_unknown_or_expired(share_repo, clock):
    assert await share_repo.resolve("missing") is None

    await share_repo.create("board1", custom_slug="fleeting", expiry_seconds=10)
    assert await share_repo.resolve("fleeting") is not None

    clock.advance(10)
    # expiry is exclusive: at expires_at the link is already gone
    assert await share_repo.resolve("fleeting") is None


@pytest.mark.asyncio
async def test_sweep_removes_only_expired(share_repo, clock):
    await share_repo.create("board1", custom_slug="old-one", expiry_seconds=60)
    await share_repo.create("board2", custom_slug="new-one", expiry_seconds=3600)

    clock.advance(120)
    removed = await share_repo.sweep_expired()

    assert removed == 1
    assert await share_repo.resolve("new-one") is not None
    assert await share_repo.sweep_expired() == 0


@pytest.mark.asyncio
async def test_generated_slug_retries_on_collision(share_repo, monkeypatch):
    await share_repo.create("board1", custom_slug="taken1")

    candidates = iter(["taken1", "fresh1"])
    monkeypatch.setattr(share_module, "generate_slug", lambda: next(candidates))

    link = await share_repo.create("board2")
    assert link["slug"] == "fresh1"


@pytest.mark.asyncio
async def test_generated_slug_gives_up_after_attempts(share_repo, monkeypatch):
    await share_repo.create("board1", custom_slug="always")
    monkeypatch.setattr(share_module, "generate_slug", lambda: "always")

    with pytest.raises(StorageError):
        await share_repo.create("board2")


@pytest.mark.asyncio
async def test_is_expired_tells_expired_from_unknown(share_repo, clock):
    await share_repo.create("board1", custom_slug="ageing", expiry_seconds=30)

    assert not await share_repo.is_expired("ageing")
    assert not await share_repo.is_expired("never-made")

    clock.advance(30)
    assert await share_repo.is_expired("ageing")

    clock.advance(1)
    assert await share_repo.sweep_expired() == 1
    assert not await share_repo.is_expired("ageing")
