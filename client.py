"""Python client for the Local Explorer API.

The logged-in state lives in an explicit :class:`Session` owned by the
client instance, never in module globals::

    client = ExplorerClient("http://localhost:8000")
    client.login("visitor@example.com", "demo123")
    places = client.list_places(category="Hotel")
"""
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel

import booking_rules
from schemas import details_adapter


class ApiError(Exception):
    """Error response from the API."""

    def __init__(self, status_code: int, message: str, payload: Optional[Dict[str, Any]] = None):
        self.status_code = status_code
        self.message = message
        self.payload = payload or {}
        super().__init__(f"{status_code}: {message}")

    @property
    def field(self) -> Optional[str]:
        return self.payload.get("field")


class Session(BaseModel):
    token: Optional[str] = None
    user: Optional[Dict[str, Any]] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def role(self) -> Optional[str]:
        return self.user.get("role") if self.user else None

    def clear(self) -> None:
        self.token = None
        self.user = None


class ExplorerClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        http: Optional[httpx.Client] = None,
        session: Optional[Session] = None,
    ):
        self.http = http or httpx.Client(base_url=base_url, timeout=10.0)
        self.session = session or Session()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self.session.token:
            headers["Authorization"] = f"Bearer {self.session.token}"
        response = self.http.request(method, f"/api{path}", headers=headers, **kwargs)
        if response.is_error:
            try:
                payload = response.json()
            except ValueError:
                payload = {}
            if not isinstance(payload, dict):
                payload = {}
            message = payload.get("detail") if isinstance(payload.get("detail"), str) else None
            raise ApiError(response.status_code, message or f"HTTP error {response.status_code}", payload)
        return response.json()

    # Auth

    def signup(self, email: str, password: str, username: str, role: str = "visitor") -> Dict:
        data = self._request(
            "POST", "/auth/signup", json={"email": email, "password": password, "username": username, "role": role}
        )
        self.session = Session(token=data["token"], user=data["user"])
        return data["user"]

    def login(self, email: str, password: str) -> Dict:
        data = self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.session = Session(token=data["token"], user=data["user"])
        return data["user"]

    def logout(self) -> None:
        try:
            if self.session.is_authenticated:
                self._request("POST", "/auth/logout")
        finally:
            self.session.clear()

    def me(self) -> Dict:
        user = self._request("GET", "/auth/me")["user"]
        self.session.user = user
        return user

    # Places

    def list_places(self, category: Optional[str] = None, search: Optional[str] = None) -> List[Dict]:
        params = {k: v for k, v in (("category", category), ("search", search)) if v}
        return self._request("GET", "/places", params=params)

    def get_place(self, place_id: str) -> Dict:
        return self._request("GET", f"/places/{place_id}")

    def create_place(self, **fields) -> Dict:
        return self._request("POST", "/places", json=fields)

    def update_place(self, place_id: str, **fields) -> Dict:
        return self._request("PUT", f"/places/{place_id}", json=fields)

    def delete_place(self, place_id: str) -> Dict:
        return self._request("DELETE", f"/places/{place_id}")

    # Reviews

    def add_review(self, place_id: str, rating: int, comment: str) -> Dict:
        return self._request("POST", f"/places/{place_id}/reviews", json={"rating": rating, "comment": comment})

    def delete_review(self, place_id: str, review_id: str) -> Dict:
        return self._request("DELETE", f"/places/{place_id}/reviews/{review_id}")

    # Bookings

    def list_bookings(self) -> List[Dict]:
        return self._request("GET", "/bookings")

    def get_booking(self, booking_id: str) -> Dict:
        return self._request("GET", f"/bookings/{booking_id}")

    def create_booking(self, place_id: str, details: Dict[str, Any], price: float = 0) -> Dict:
        """Validate ``details`` locally, then book ``place_id``.

        Local rule violations raise ValidationFailed before any request is sent.
        """
        parsed = details_adapter.validate_python(details)
        booking_rules.validate_details(parsed, booking_rules.today())
        body = {"place_id": place_id, "price": price, "details": parsed.model_dump(mode="json")}
        return self._request("POST", "/bookings", json=body)

    def update_booking(self, booking_id: str, **fields) -> Dict:
        return self._request("PUT", f"/bookings/{booking_id}", json=fields)

    def set_booking_status(self, booking_id: str, status: str) -> Dict:
        return self.update_booking(booking_id, status=status)

    def delete_booking(self, booking_id: str) -> Dict:
        return self._request("DELETE", f"/bookings/{booking_id}")
