"""HTTP client for the Excel Analytics API.

All state lives in an explicit ``ApiSession`` that callers create at login
(or registration) and pass to every operation; ``logout`` tears it down.

    session = login("http://localhost:5000/api", "ana@example.com", "secret")
    payload = upload_file(session, "sales.xlsx")
    report = analyze(session, payload)
    logout(session)
"""
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = os.getenv("EXCEL_ANALYTICS_API_URL", "http://localhost:5000/api")
DEFAULT_TIMEOUT = 30


class ApiError(Exception):
    """Non-2xx answer from the API"""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class SessionClosedError(Exception):
    """Operation attempted on a session after logout"""


@dataclass
class ApiSession:
    base_url: str = DEFAULT_BASE_URL
    token: Optional[str] = None
    user: Optional[Dict[str, Any]] = None
    timeout: float = DEFAULT_TIMEOUT
    http: requests.Session = field(default_factory=requests.Session)
    closed: bool = False

    @property
    def authenticated(self) -> bool:
        return self.token is not None and not self.closed

    def url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        logout(self)


def _request(session: ApiSession, method: str, path: str, **kwargs) -> Any:
    if session.closed:
        raise SessionClosedError("Session has been logged out")
    response = session.http.request(
        method,
        session.url(path),
        headers=session.headers(),
        timeout=session.timeout,
        **kwargs,
    )
    if not response.ok:
        try:
            body = response.json()
            message = body.get("message") or body.get("detail") or response.text
        except ValueError:
            message = response.text
        logger.warning(f"{method} {path} failed with {response.status_code}: {message}")
        raise ApiError(response.status_code, str(message))
    return response.json()


def _start_session(base_url: str, path: str, body: Dict[str, Any], http: Optional[requests.Session] = None) -> ApiSession:
    session = ApiSession(base_url=base_url, http=http or requests.Session())
    try:
        data = _request(session, "POST", path, json=body)
    except Exception:
        session.http.close()
        raise
    session.token = data["token"]
    session.user = data.get("user")
    return session


def login(base_url: str, email: str, password: str, http: Optional[requests.Session] = None) -> ApiSession:
    """Open an authenticated session"""
    return _start_session(base_url, "/auth/login", {"email": email, "password": password}, http)


def register(base_url: str, name: str, email: str, password: str, http: Optional[requests.Session] = None) -> ApiSession:
    """Create an account and open a session for it"""
    return _start_session(base_url, "/auth/register", {"name": name, "email": email, "password": password}, http)


def anonymous(base_url: str = DEFAULT_BASE_URL, http: Optional[requests.Session] = None) -> ApiSession:
    """Session without credentials, for the /simple endpoints"""
    return ApiSession(base_url=base_url, http=http or requests.Session())


def logout(session: ApiSession) -> None:
    """Drop credentials and close the underlying HTTP session"""
    if session.closed:
        return
    session.token = None
    session.user = None
    session.http.close()
    session.closed = True


def upload_file(session: ApiSession, path: str) -> Dict[str, Any]:
    """
    Upload a spreadsheet

    Authenticated sessions use the persisted upload; anonymous sessions
    use /upload/simple.
    """
    endpoint = "/upload" if session.token else "/upload/simple"
    with open(path, "rb") as fh:
        files = {"file": (os.path.basename(path), fh)}
        return _request(session, "POST", endpoint, files=files)


def history(session: ApiSession) -> List[Dict[str, Any]]:
    """Previous uploads of the session's user, newest first"""
    return _request(session, "GET", "/upload/history")


def analyze(session: ApiSession, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Request the insight report for an upload payload"""
    endpoint = "/ai/analyze" if session.token else "/ai/analyze-simple"
    body = {
        "columns": payload.get("columns"),
        "data": payload.get("data"),
        "rowCount": payload.get("rowCount"),
    }
    return _request(session, "POST", endpoint, json=body)


def current_user(session: ApiSession) -> Dict[str, Any]:
    return _request(session, "GET", "/auth/me")
