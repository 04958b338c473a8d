# sendlink/client/sync_client.py
# Client façade: talk to the HTTP API, degrade once to the local mirror

from __future__ import annotations

import base64
import logging
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from sendlink.client.local_mirror import LocalMirror
from sendlink.constants import DEFAULT_SHARE_EXPIRY_SECONDS, MAX_UPLOAD_BYTES, UNKNOWN_FILE_NAME
from sendlink.middleware.error_handler import PayloadTooLargeError
from sendlink.storage.blob import guess_content_type
from sendlink.utils.boards import generate_board_id, generate_media_id, to_iso, utcnow

logger = logging.getLogger(__name__)


class ClientMode(Enum):
    """Client states. REMOTE -> LOCAL_FALLBACK is the only transition."""
    REMOTE = "remote"
    LOCAL_FALLBACK = "local-fallback"


class RemoteUnavailable(Exception):
    """The API could not be reached or answered with a non-success status."""


class BoardSyncClient:
    """
    Board operations against the API with a one-way local fallback.

    Any transport error or non-success response switches the client to
    LOCAL_FALLBACK for the rest of its life; the failed mutation is replayed on
    the mirror and no further network calls are made. A 404 for a board or a
    share slug is an answer, not a failure.
    """

    def __init__(
        self,
        base_url: str,
        mirror: LocalMirror,
        http_client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
        api_prefix: str = "/api",
    ):
        self.base_url = base_url.rstrip("/")
        self.mirror = mirror
        self.api_prefix = api_prefix
        self.http = http_client or httpx.Client(base_url=self.base_url, timeout=timeout)
        self.mode = ClientMode.REMOTE
        self.current_board_id: Optional[str] = None
        self.fallback_reason: Optional[str] = None

    def __enter__(self) -> "BoardSyncClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.http.close()

    @property
    def is_remote(self) -> bool:
        return self.mode is ClientMode.REMOTE

    def _degrade(self, reason: str) -> None:
        if self.mode is ClientMode.REMOTE:
            logger.warning(f"API unavailable, switching to local mirror: {reason}")
            self.mode = ClientMode.LOCAL_FALLBACK
            self.fallback_reason = reason

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self.api_prefix}{path}"
        try:
            return self.http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise RemoteUnavailable(f"{method} {url}: {type(e).__name__}: {e}") from e

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            return response.json()
        except ValueError as e:
            raise RemoteUnavailable(f"{response.request.method} {response.request.url}: invalid JSON body") from e

    def _call(self, method: str, path: str, allow_404: bool = False, **kwargs: Any) -> Optional[Dict[str, Any]]:
        response = self._request(method, path, **kwargs)
        if allow_404 and response.status_code == 404:
            return None
        if response.is_error:
            raise RemoteUnavailable(f"{method} {self.api_prefix}{path} -> {response.status_code}")
        return self._json(response)

    def _require_board(self) -> str:
        if not self.current_board_id:
            raise RuntimeError("No board is open; call create_board() or open_board() first")
        return self.current_board_id

    # --- boards ---

    def create_board(self) -> Dict[str, Any]:
        """Start a new board under a fresh random ID and make it current."""
        board_id = generate_board_id()
        self.current_board_id = board_id
        if self.is_remote:
            try:
                return self._call("PUT", f"/boards/{board_id}", json={"text": "", "media": []})
            except RemoteUnavailable as e:
                self._degrade(str(e))
        return self.mirror.put_board(board_id, {})

    def open_board(self, board_id: str) -> Dict[str, Any]:
        """Load a board; a missing board is replaced by a brand-new one."""
        if self.is_remote:
            try:
                board = self._call("GET", f"/boards/{board_id}", allow_404=True)
            except RemoteUnavailable as e:
                self._degrade(str(e))
            else:
                if board is None:
                    return self.create_board()
                self.current_board_id = board_id
                return board

        board = self.mirror.get_board(board_id)
        if board is None:
            return self.create_board()
        self.current_board_id = board_id
        return board

    def save_text(self, text: str) -> Dict[str, Any]:
        board_id = self._require_board()
        if self.is_remote:
            try:
                return self._call("PUT", f"/boards/{board_id}", json={"text": text})
            except RemoteUnavailable as e:
                self._degrade(str(e))
        return self.mirror.put_board(board_id, {"text": text})

    # --- media ---

    def upload_file(self, data: bytes, name: Optional[str] = None, content_type: Optional[str] = None) -> Dict[str, Any]:
        """Attach a file to the current board and return the updated board."""
        board_id = self._require_board()
        name = name or UNKNOWN_FILE_NAME
        content_type = guess_content_type(name, content_type)
        if self.is_remote:
            try:
                result = self._call(
                    "POST",
                    "/media/upload",
                    files={"file": (name, data, content_type)},
                    data={"boardId": board_id},
                )
                return result["board"]
            except RemoteUnavailable as e:
                self._degrade(str(e))

        if len(data) > MAX_UPLOAD_BYTES:
            raise PayloadTooLargeError(MAX_UPLOAD_BYTES)
        encoded = base64.b64encode(data).decode("ascii")
        media_item = {
            "id": generate_media_id(),
            "url": f"data:{content_type};base64,{encoded}",
            "name": name,
            "type": content_type,
            "size": len(data),
            "uploadedAt": to_iso(utcnow()),
            "isMock": True,
        }
        return self.mirror.append_media(board_id, media_item)

    def delete_media(self, index: int) -> Dict[str, Any]:
        board_id = self._require_board()
        if self.is_remote:
            try:
                return self._call("DELETE", f"/boards/{board_id}", params={"mediaIndex": index})
            except RemoteUnavailable as e:
                self._degrade(str(e))
        return self.mirror.delete_media_at(board_id, index)

    # --- share links ---

    def create_share_link(
        self,
        custom_slug: Optional[str] = None,
        expiry_seconds: int = DEFAULT_SHARE_EXPIRY_SECONDS,
    ) -> Dict[str, Any]:
        """Return {slug, boardId, expiresAt, url} for the current board."""
        board_id = self._require_board()
        if self.is_remote:
            try:
                result = self._call(
                    "POST",
                    "/share/create",
                    json={"boardId": board_id, "customSlug": custom_slug, "expirySeconds": expiry_seconds},
                )
                return {
                    "slug": result["slug"],
                    "boardId": result["boardId"],
                    "expiresAt": result["expiresAt"],
                    "url": result["url"],
                }
            except RemoteUnavailable as e:
                self._degrade(str(e))

        # No uniqueness authority offline: the board ID doubles as the slug
        slug = custom_slug or board_id
        entry = self.mirror.put_share(slug, board_id, expiry_seconds)
        return {
            "slug": slug,
            "boardId": board_id,
            "expiresAt": entry["expiresAt"],
            "url": f"{self.base_url}/share/{slug}",
        }

    def open_share(self, slug: str) -> Dict[str, Any]:
        """
        Open the board a share link points at and make it current.

        An expired link starts a new board. An unknown slug is taken to be a
        board ID, so plain board links work through the same path.
        """
        board_id: Optional[str] = slug
        if self.is_remote:
            try:
                response = self._request("GET", f"/share/{slug}")
                if response.status_code == 404:
                    try:
                        error = response.json().get("error", {})
                    except ValueError:
                        error = {}
                    if error.get("code") == "SHARE_EXPIRED":
                        board_id = None
                elif response.is_error:
                    raise RemoteUnavailable(f"GET {self.api_prefix}/share/{slug} -> {response.status_code}")
                else:
                    board_id = self._json(response)["boardId"]
            except RemoteUnavailable as e:
                self._degrade(str(e))

        if not self.is_remote:
            if self.mirror.is_share_expired(slug):
                board_id = None
            else:
                link = self.mirror.resolve_share(slug)
                board_id = link["boardId"] if link else slug

        if board_id is None:
            logger.info(f"Share link {slug} has expired, starting a new board")
            return self.create_board()
        return self.open_board(board_id)

    def resolve_share(self, slug: str) -> Optional[Dict[str, Any]]:
        """Map a slug to its share record, or None when unknown or expired."""
        if self.is_remote:
            try:
                return self._call("GET", f"/share/{slug}", allow_404=True)
            except RemoteUnavailable as e:
                self._degrade(str(e))
        return self.mirror.resolve_share(slug)
