"""
API client that keeps a full snapshot of orders for the board and list views

Every mutation is followed by a full refetch of the order list; there is no
incremental patching and no optimistic update.
"""

from typing import Optional
import logging
import httpx

from app.board.views import OrderFilter, filter_orders, is_due_soon, kanban_columns

logger = logging.getLogger(__name__)

class ApiError(Exception):
    """Non-2xx response from the order API"""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")

class OrderBoardClient:
    """Holds the signed-in user's token and the latest order snapshot"""

    def __init__(self, http: Optional[httpx.Client] = None, base_url: str = "http://localhost:5000"):
        self.http = http or httpx.Client(base_url=base_url)
        self.token: Optional[str] = None
        self.user: Optional[dict] = None
        self.orders: list[dict] = []

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def _request(self, method: str, path: str, **kwargs):
        response = self.http.request(method, path, headers=self._headers(), **kwargs)
        if response.status_code >= 400:
            try:
                message = response.json().get("error", response.text)
            except ValueError:
                message = response.text
            raise ApiError(response.status_code, message)
        return response.json()

    def _authenticate(self, path: str, payload: dict) -> dict:
        data = self._request("POST", path, json=payload)
        self.token = data["token"]
        self.user = data["user"]
        return self.user

    def register(self, email: str, password: str, name: str) -> dict:
        return self._authenticate("/api/auth/register", {"email": email, "password": password, "name": name})

    def login(self, email: str, password: str) -> dict:
        return self._authenticate("/api/auth/login", {"email": email, "password": password})

    def logout(self):
        self.token = None
        self.user = None
        self.orders = []

    def refresh(self) -> list[dict]:
        """Replace the snapshot with the server's current order list"""
        self.orders = self._request("GET", "/api/orders")
        logger.debug(f"Fetched {len(self.orders)} orders")
        return self.orders

    def get_order(self, order_id: int) -> dict:
        """Order detail with comments and history (not cached)"""
        return self._request("GET", f"/api/orders/{order_id}")

    def create_order(self, **fields) -> dict:
        order = self._request("POST", "/api/orders", json=fields)
        self.refresh()
        return order

    def update_order(self, order_id: int, **fields) -> dict:
        order = self._request("PUT", f"/api/orders/{order_id}", json=fields)
        self.refresh()
        return order

    def change_status(self, order_id: int, status: str) -> dict:
        return self.update_order(order_id, status=status)

    def delete_order(self, order_id: int) -> dict:
        result = self._request("DELETE", f"/api/orders/{order_id}")
        self.refresh()
        return result

    def add_comment(self, order_id: int, text: str) -> dict:
        comment = self._request("POST", f"/api/orders/{order_id}/comments", json={"comment": text})
        self.refresh()
        return comment

    def kanban(self) -> dict[str, list[dict]]:
        """Snapshot grouped into status columns, each order flagged with due_soon"""
        columns = kanban_columns(self.orders)
        return {
            status: [dict(order, due_soon=is_due_soon(order["due_date"])) for order in bucket]
            for status, bucket in columns.items()
        }

    def filtered(self, order_filter: Optional[OrderFilter] = None) -> list[dict]:
        """Snapshot filtered locally; never goes back to the server"""
        return filter_orders(self.orders, order_filter or OrderFilter())
