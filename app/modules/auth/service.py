import hashlib
import time
import logging
from supabase import Client
from fastapi import HTTPException
from typing import Dict, Any, Optional, Tuple

logger = logging.getLogger(__name__)


class _TokenCache:
    """Short-lived map of token digest -> user payload; saves an Auth round trip per request burst."""

    def __init__(self, ttl_seconds: float = 60, max_size: int = 500):
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._entries: Dict[str, Tuple[Dict[str, Any], float]] = {}

    @staticmethod
    def digest(token: str) -> str:
        return hashlib.sha256(token.encode()).hexdigest()

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        user_data, expires_at = entry
        if time.monotonic() >= expires_at:
            self._entries.pop(key, None)
            return None
        return user_data

    def put(self, key: str, user_data: Dict[str, Any]) -> None:
        now = time.monotonic()
        self._entries.pop(key, None)
        if len(self._entries) >= self.max_size:
            self._purge_expired(now)
        while self._entries and len(self._entries) >= self.max_size:
            # dicts keep insertion order, so the first key is the oldest entry
            self._entries.pop(next(iter(self._entries)))
        self._entries[key] = (user_data, now + self.ttl_seconds)

    def _purge_expired(self, now: float) -> None:
        expired = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
        for k in expired:
            del self._entries[k]

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()


_token_cache = _TokenCache()


def clear_auth_cache() -> None:
    _token_cache.clear()


def _user_payload(user) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "user_metadata": user.user_metadata or {},
        "app_metadata": user.app_metadata or {},
    }


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Resolve a bearer token to the Supabase Auth user. Any failure is a 401."""
        key = _TokenCache.digest(token)
        cached = _token_cache.get(key)
        if cached is not None:
            return cached

        try:
            response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            logger.warning(f"Token verification failed: {e}")
            message = str(e).lower()
            if "jwt" in message or "expired" in message or "invalid" in message:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")

        if not response or not response.user:
            raise HTTPException(status_code=401, detail="Invalid or expired token")

        user_data = _user_payload(response.user)
        _token_cache.put(key, user_data)
        return user_data

    @staticmethod
    def resolve_tenant_id(user_data: Dict[str, Any]) -> Optional[str]:
        """Active tenant for the user; app_metadata wins over user-editable user_metadata."""
        app_metadata = user_data.get("app_metadata") or {}
        user_metadata = user_data.get("user_metadata") or {}
        tenant_id = app_metadata.get("tenant_id") or user_metadata.get("tenant_id")
        return str(tenant_id) if tenant_id else None
