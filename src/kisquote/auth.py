"""Credential holders used to sign quotation requests."""

from abc import ABC, abstractmethod
from datetime import UTC, datetime


class AuthProvider(ABC):
    """Read-only view of the credentials a request needs.

    Token issuance and refresh live outside this package; implementations
    only report what they currently hold.
    """

    @abstractmethod
    def get_token(self) -> str | None: ...

    @abstractmethod
    def get_appkey(self) -> str: ...

    @abstractmethod
    def get_appsecret(self) -> str: ...


class Auth(AuthProvider):
    """In-memory credentials with an optional, externally supplied token."""

    def __init__(
        self,
        appkey: str,
        appsecret: str,
        token: str | None = None,
        expires_at: datetime | None = None,
    ) -> None:
        self._appkey = appkey
        self._appsecret = appsecret
        self._token = token
        self._expires_at = expires_at

    def set_token(self, token: str, expires_at: datetime | None = None) -> None:
        self._token = token
        self._expires_at = expires_at

    def clear_token(self) -> None:
        self._token = None
        self._expires_at = None

    def get_token(self) -> str | None:
        if self._token is None:
            return None
        if self._expires_at is not None and datetime.now(UTC) >= self._expires_at:
            return None
        return self._token

    def get_appkey(self) -> str:
        return self._appkey

    def get_appsecret(self) -> str:
        return self._appsecret

    def __repr__(self) -> str:
        state = "set" if self.get_token() else "missing"
        return f"Auth(appkey={self._appkey[:4]}..., token={state})"
