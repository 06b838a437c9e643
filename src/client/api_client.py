"""Python client for the TaskMaster REST API.

Covers the same calls the single-page client makes: register, login, task
CRUD and the admin user screens. Every call uses a fixed timeout.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from config import CLIENT_BASE_URL, CLIENT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Raised for any non-2xx response."""

    def __init__(self, status_code: int, message: str, errors: Optional[List[dict]] = None):
        self.status_code = status_code
        self.message = message
        self.errors = errors or []
        super().__init__(f"{status_code}: {message}")


class TaskMasterClient:
    """Thin wrapper around httpx that keeps the bearer token between calls."""

    def __init__(
        self,
        base_url: str = CLIENT_BASE_URL,
        token: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        """Initialize TaskMasterClient.

        Args:
            base_url: API root including the version prefix, e.g.
                ``http://localhost:5000/api/v1``.
            token: Bearer token from a previous login, if any.
            http_client: Pre-built httpx client. When given, paths are sent
                relative to base_url on that client (useful with a test client).
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.user: Optional[Dict[str, Any]] = None
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=CLIENT_TIMEOUT_SECONDS)

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> "TaskMasterClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, json: Optional[dict] = None) -> Any:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            response = self._http.request(
                method,
                f"{self.base_url}{path}",
                json=json,
                headers=headers,
                timeout=CLIENT_TIMEOUT_SECONDS,
            )
        except httpx.TimeoutException as e:
            raise ApiError(0, "Request timed out") from e
        except httpx.HTTPError as e:
            raise ApiError(0, f"Request failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if response.is_success:
            return body

        errors = body.get("errors", []) if isinstance(body, dict) else []
        if isinstance(body, dict) and "error" in body:
            message = body["error"]
        elif errors:
            message = errors[0].get("msg", "Validation failed")
        else:
            message = response.reason_phrase or "Request failed"
        logger.debug("%s %s failed with %d: %s", method, path, response.status_code, message)
        raise ApiError(response.status_code, message, errors)

    # --- Auth ---

    def register(self, username: str, email: str, password: str) -> Dict[str, Any]:
        body = self._request(
            "POST",
            "/auth/register",
            json={"username": username, "email": email, "password": password},
        )
        return body["user"]

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """Log in and keep the returned token for later calls."""
        body = self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.token = body["token"]
        self.user = body["user"]
        return self.user

    def logout(self) -> None:
        self.token = None
        self.user = None

    def me(self) -> Dict[str, Any]:
        return self._request("GET", "/auth/me")["user"]

    # --- Tasks ---

    def list_tasks(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/tasks")

    def get_task(self, task_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/tasks/{task_id}")

    def create_task(
        self,
        title: str,
        description: Optional[str] = None,
        due_date: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"title": title}
        if description is not None:
            payload["description"] = description
        if due_date is not None:
            payload["due_date"] = due_date
        return self._request("POST", "/tasks", json=payload)

    def update_task(self, task_id: int, **changes: Any) -> Dict[str, Any]:
        return self._request("PUT", f"/tasks/{task_id}", json=changes)

    def toggle_task(self, task: Dict[str, Any]) -> Dict[str, Any]:
        return self.update_task(task["id"], completed=not task["completed"])

    def delete_task(self, task_id: int) -> str:
        return self._request("DELETE", f"/tasks/{task_id}")["message"]

    # --- Admin ---

    def list_users(self) -> Dict[str, Any]:
        return self._request("GET", "/users")

    def update_user(self, user_id: int, **changes: Any) -> Dict[str, Any]:
        return self._request("PUT", f"/users/{user_id}", json=changes)["user"]

    def delete_user(self, user_id: int) -> str:
        return self._request("DELETE", f"/users/{user_id}")["message"]
