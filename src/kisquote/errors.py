"""Error types raised by the quotation client."""


class KisError(Exception):
    """Base class for every failure surfaced by kisquote."""


class AuthUnavailableError(KisError):
    """No access token was available when the request was dispatched."""

    def __init__(self, what: str = "token") -> None:
        super().__init__(f"Authentication not initialized: missing {what}")
        self.what = what


class UrlBuildError(KisError):
    """Parameter values could not be encoded into a request URL."""


class TransportError(KisError):
    """Connection, TLS, timeout or I/O failure talking to the KIS host."""


class HttpStatusError(KisError):
    def __init__(self, status_code: int, body: str, url: str) -> None:
        super().__init__(f"HTTP {status_code} from {url}: {body[:200]}")
        self.status_code = status_code
        self.body = body
        self.url = url


class DecodeError(KisError):
    """Response body was not JSON or did not match the expected schema."""


class ApiError(KisError):
    """KIS accepted the request but reported failure in the response envelope."""

    def __init__(self, rt_cd: str, msg_cd: str, msg1: str) -> None:
        super().__init__(f"KIS error {msg_cd} (rt_cd={rt_cd}): {msg1}")
        self.rt_cd = rt_cd
        self.msg_cd = msg_cd
        self.msg1 = msg1


class ConfigError(KisError):
    """The saved config or a KIS_* override holds an invalid value."""
