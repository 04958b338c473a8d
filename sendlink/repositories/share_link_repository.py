# sendlink/repositories/share_link_repository.py
# Repository for share links: slug -> board mapping with absolute expiry

from __future__ import annotations

import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from sqlalchemy import and_, delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sendlink.constants import (
    DEFAULT_SHARE_EXPIRY_SECONDS,
    GENERATED_SLUG_LENGTH,
    MAX_SHARE_EXPIRY_SECONDS,
    SLUG_ALPHABET,
    SLUG_GENERATION_ATTEMPTS,
    SLUG_MAX_LENGTH,
    SLUG_MIN_LENGTH,
    SLUG_PATTERN,
)
from sendlink.db.base import session_scope
from sendlink.middleware.error_handler import (
    ExpiryTooLongError,
    InvalidSlugError,
    SlugConflictError,
    StorageError,
    ValidationError,
)
from sendlink.models.share_link_table import shared_links
from sendlink.utils.boards import Clock, utcnow
from sendlink.utils.logger import log_exception, log_info

_SLUG_RE = re.compile(SLUG_PATTERN)


def generate_slug(length: int = GENERATED_SLUG_LENGTH) -> str:
    """Generate a lowercase alphanumeric slug."""
    return ''.join(secrets.choice(SLUG_ALPHABET) for _ in range(length))


def validate_slug(slug: str) -> None:
    if not _SLUG_RE.fullmatch(slug):
        raise InvalidSlugError("Custom slug can only contain lowercase letters, numbers, and hyphens")
    if len(slug) < SLUG_MIN_LENGTH or len(slug) > SLUG_MAX_LENGTH:
        raise InvalidSlugError(
            f"Custom slug must be between {SLUG_MIN_LENGTH} and {SLUG_MAX_LENGTH} characters"
        )


def validate_expiry(expiry_seconds: int) -> None:
    if expiry_seconds > MAX_SHARE_EXPIRY_SECONDS:
        raise ExpiryTooLongError(MAX_SHARE_EXPIRY_SECONDS)
    if expiry_seconds <= 0:
        raise ValidationError("Expiry must be a positive number of seconds")


def _aware(moment: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def _row_to_dict(row: Any) -> Dict[str, Any]:
    return {
        "slug": row.slug,
        "board_id": row.board_id,
        "created_at": _aware(row.created_at),
        "expires_at": _aware(row.expires_at),
        "access_count": row.access_count,
    }


class ShareLinkRepository:
    """
    Share link persistence.

    Lifecycle: active until expires_at, then expired (reads filter it out),
    then purged by sweep_expired(). Slug uniqueness is enforced by the table's
    unique constraint, so check-then-insert cannot race.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], clock: Clock = utcnow):
        self.session_factory = session_factory
        self._clock = clock

    async def create(
        self,
        board_id: str,
        custom_slug: Optional[str] = None,
        expiry_seconds: int = DEFAULT_SHARE_EXPIRY_SECONDS,
    ) -> Dict[str, Any]:
        if not board_id:
            raise ValidationError("Board ID is required")
        if custom_slug:
            validate_slug(custom_slug)
        validate_expiry(expiry_seconds)

        attempts = 1 if custom_slug else SLUG_GENERATION_ATTEMPTS
        for _ in range(attempts):
            slug = custom_slug or generate_slug()
            row = await self._insert(slug, board_id, expiry_seconds)
            if row is not None:
                log_info(f"ShareLinkRepository: created slug={slug} board={board_id} expiry={expiry_seconds}s")
                return row

        if custom_slug:
            raise SlugConflictError(custom_slug)
        raise StorageError("Could not allocate a unique share slug")

    async def _insert(self, slug: str, board_id: str, expiry_seconds: int) -> Optional[Dict[str, Any]]:
        """Insert in one transaction; None when the slug is held by an active link."""
        now = self._clock()
        expires_at = now + timedelta(seconds=expiry_seconds)
        async with session_scope(self.session_factory) as session:
            try:
                # An expired link gives its slug up to the new one
                await session.execute(
                    delete(shared_links).where(
                        and_(shared_links.c.slug == slug, shared_links.c.expires_at <= now)
                    )
                )
                await session.execute(
                    shared_links.insert().values(
                        slug=slug,
                        board_id=board_id,
                        created_at=now,
                        expires_at=expires_at,
                        access_count=0,
                    )
                )
                await session.commit()
            except IntegrityError:
                await session.rollback()
                log_info(f"ShareLinkRepository: slug already taken slug={slug}")
                return None
        return {
            "slug": slug,
            "board_id": board_id,
            "created_at": now,
            "expires_at": expires_at,
            "access_count": 0,
        }

    async def resolve(self, slug: str) -> Optional[Dict[str, Any]]:
        """Return the active link for `slug` and count the access, or None."""
        now = self._clock()
        async with session_scope(self.session_factory) as session:
            result = await session.execute(
                select(shared_links).where(
                    and_(shared_links.c.slug == slug, shared_links.c.expires_at > now)
                )
            )
            row = result.fetchone()
            if row is None:
                return None
            link = _row_to_dict(row)

            try:
                await session.execute(
                    update(shared_links)
                    .where(shared_links.c.slug == slug)
                    .values(access_count=shared_links.c.access_count + 1)
                )
                await session.commit()
                link["access_count"] += 1
            except SQLAlchemyError as e:
                await session.rollback()
                log_exception(e, f"ShareLinkRepository.resolve access count slug={slug}")
        return link

    async def is_expired(self, slug: str) -> bool:
        """True when a row for `slug` is past its expiry but still stored."""
        now = self._clock()
        async with session_scope(self.session_factory) as session:
            result = await session.execute(
                select(shared_links.c.id).where(
                    and_(shared_links.c.slug == slug, shared_links.c.expires_at <= now)
                )
            )
            return result.first() is not None

    async def sweep_expired(self) -> int:
        """Delete links whose expiry has passed; returns how many were removed."""
        now = self._clock()
        async with session_scope(self.session_factory) as session:
            result = await session.execute(
                delete(shared_links).where(shared_links.c.expires_at < now)
            )
            await session.commit()
        removed = result.rowcount or 0
        log_info(f"Cleaned up {removed} expired links")
        return removed
