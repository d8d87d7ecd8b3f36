from __future__ import annotations
import logging
import requests
from typing import List, Dict, Any, Iterable, Optional
from devtasker.core.config import REQUEST_TIMEOUT
from devtasker.core.exceptions import PBError, NotFoundError, UnauthorizedError, UnavailableError

logger = logging.getLogger(__name__)

PER_PAGE = 200


def build_filter(filters: Optional[Dict[str, Any]]) -> str:
    """{"project": "abc", "status": "done"} -> 'project = "abc" && status = "done"'"""
    parts = []
    for key, value in (filters or {}).items():
        if isinstance(value, bool):
            parts.append(f"{key} = {str(value).lower()}")
        elif isinstance(value, (int, float)):
            parts.append(f"{key} = {value}")
        else:
            escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
            parts.append(f'{key} = "{escaped}"')
    return " && ".join(parts)


def _error_for(r: requests.Response, action: str) -> PBError:
    try:
        detail = r.json().get("message") or r.text
    except ValueError:
        detail = r.text
    msg = f"{action} failed: {r.status_code} {detail}"
    if r.status_code == 404:
        return NotFoundError(msg, r.status_code)
    if r.status_code in (401, 403):
        return UnauthorizedError(msg, r.status_code)
    return UnavailableError(msg, r.status_code)


class PocketBaseClient:
    """Document and identity collaborator backed by the PocketBase REST API."""

    def __init__(self, base_url: str, timeout: float = REQUEST_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.token: Optional[str] = ""
        self.user_id: Optional[str] = ""
        self.record: Dict[str, Any] = {}

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token and self.user_id)

    def _request(self, method: str, path: str, action: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            r = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise UnavailableError(f"{action} failed: {e}") from e
        if not r.ok:
            raise _error_for(r, action)
        return r

    # ---------- auth ----------
    def _set_auth(self, data: Dict[str, Any]):
        self.token = data.get("token")
        self.record = data.get("record", {}) or {}
        self.user_id = self.record.get("id")
        if not self.token or not self.user_id:
            raise UnauthorizedError("Missing token or user id in auth response")
        self.session.headers.update({"Authorization": f"Bearer {self.token}"})

    def login(self, identity: str, password: str) -> bool:
        r = self._request("POST", "/api/collections/users/auth-with-password", "Login",
                          json={"identity": identity, "password": password})
        self._set_auth(r.json())
        logger.info("Signed in as %s", self.user_id)
        return True

    def register(self, email: str, password: str, name: str = "") -> Dict[str, Any]:
        payload = {"email": email, "password": password, "passwordConfirm": password, "name": name}
        r = self._request("POST", "/api/collections/users/records", "Register", json=payload)
        return r.json()

    def refresh(self) -> bool:
        """Re-validate the current token and reload the auth record."""
        if not self.token:
            raise UnauthorizedError("No token to refresh")
        r = self._request("POST", "/api/collections/users/auth-refresh", "Auth refresh")
        self._set_auth(r.json())
        return True

    def logout(self):
        self.token = ""
        self.user_id = ""
        self.record = {}
        self.session.headers.pop("Authorization", None)

    # ---------- records ----------
    def query(self, collection: str, filters: Optional[Dict[str, Any]] = None,
              sort: Optional[str] = None) -> List[Dict[str, Any]]:
        """All records of `collection` matching `filters`, following pagination."""
        params: Dict[str, Any] = {"perPage": PER_PAGE}
        filt = build_filter(filters)
        if filt:
            params["filter"] = filt
        if sort:
            params["sort"] = sort
        items: List[Dict[str, Any]] = []
        page = 1
        while True:
            params["page"] = page
            r = self._request("GET", f"/api/collections/{collection}/records", f"Query {collection}",
                              params=params)
            data = r.json()
            items.extend(data.get("items", []))
            if page >= int(data.get("totalPages") or 1):
                return items
            page += 1

    def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        try:
            r = self._request("GET", f"/api/collections/{collection}/records/{record_id}",
                              f"Get {collection}/{record_id}")
        except NotFoundError:
            return None
        return r.json()

    def add(self, collection: str, doc: Dict[str, Any]) -> str:
        r = self._request("POST", f"/api/collections/{collection}/records", f"Create {collection}",
                          json=doc)
        return r.json()["id"]

    def update(self, collection: str, record_id: str, partial: Dict[str, Any]) -> Dict[str, Any]:
        r = self._request("PATCH", f"/api/collections/{collection}/records/{record_id}",
                          f"Update {collection}/{record_id}", json=partial)
        return r.json()

    def delete(self, collection: str, record_id: str):
        self._request("DELETE", f"/api/collections/{collection}/records/{record_id}",
                      f"Delete {collection}/{record_id}")

    def batch_delete(self, deletes: Iterable[tuple]):
        """Atomically delete (collection, id) pairs in one /api/batch transaction."""
        requests_ = [
            {"method": "DELETE", "url": f"/api/collections/{collection}/records/{record_id}"}
            for collection, record_id in deletes
        ]
        if not requests_:
            return
        self._request("POST", "/api/batch", "Batch delete", json={"requests": requests_})
