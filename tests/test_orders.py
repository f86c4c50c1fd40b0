"""
Unit tests for order management functionality
Covers CRUD, comments and the audit history
"""

import asyncio
import pytest
from datetime import date, timedelta

from app.models.comment import Comment
from app.models.order_history import OrderHistory
from app.schemas.order import OrderUpdate
from app.services.order_service import OrderService
from app.utils.error_handler import DatabaseError

def days_from_today(days: int) -> str:
    return (date.today() + timedelta(days=days)).isoformat()

@pytest.fixture
def create_order(client, auth_headers):
    """Create an order through the API and return its JSON"""
    def _create(**overrides):
        order_data = {"patient_name": "John Doe", "due_date": days_from_today(5)}
        order_data.update(overrides)
        response = client.post("/api/orders", json=order_data, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _create

def history_for(client, headers, order_id):
    response = client.get(f"/api/orders/{order_id}", headers=headers)
    assert response.status_code == 200
    return response.json()["history"]

class TestCreateOrder:
    """Test cases for order creation"""

    def test_create_order_defaults(self, client, auth_headers, create_order):
        """No status or type gives Open / Stock and one status history entry"""
        due = days_from_today(2)
        order = create_order(patient_name="Jane Smith", due_date=due)

        assert order["patient_name"] == "Jane Smith"
        assert order["due_date"] == due
        assert order["status"] == "Open"
        assert order["order_type"] == "Stock"
        assert order["patient_rx"] is None
        assert order["created_by"] is not None

        history = history_for(client, auth_headers, order["id"])
        assert len(history) == 1
        assert history[0]["field_name"] == "status"
        assert history[0]["old_value"] is None
        assert history[0]["new_value"] == "Open"
        assert history[0]["user_name"] == "Pat Pharmacist"

    def test_create_order_with_all_fields(self, client, auth_headers, create_order):
        order = create_order(
            patient_name="Alice Johnson",
            patient_rx="Amoxicillin 500mg, 21 caps",
            status="Order Placed",
            order_type="Special",
        )

        assert order["patient_rx"] == "Amoxicillin 500mg, 21 caps"
        assert order["status"] == "Order Placed"
        assert order["order_type"] == "Special"

        history = history_for(client, auth_headers, order["id"])
        assert [(h["field_name"], h["old_value"], h["new_value"]) for h in history] == [
            ("status", None, "Order Placed")
        ]

    @pytest.mark.parametrize("order_type", ["Bogus", "stock", "", 5, True])
    def test_invalid_order_type_becomes_stock(self, create_order, order_type):
        order = create_order(order_type=order_type)
        assert order["order_type"] == "Stock"

    @pytest.mark.parametrize("payload", [
        {"due_date": "2030-01-01"},
        {"patient_name": "No Date"},
        {"patient_name": "", "due_date": "2030-01-01"},
        {"patient_name": "Empty Date", "due_date": ""},
        {},
    ])
    def test_missing_required_fields(self, client, auth_headers, payload):
        response = client.post("/api/orders", json=payload, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Patient name and due date are required"

    def test_invalid_status_rejected(self, client, auth_headers):
        response = client.post("/api/orders", json={
            "patient_name": "Bob", "due_date": "2030-01-01", "status": "Lost"
        }, headers=auth_headers)
        assert response.status_code == 400

    def test_unparseable_due_date_rejected(self, client, auth_headers):
        response = client.post("/api/orders", json={
            "patient_name": "Bob", "due_date": "next tuesday"
        }, headers=auth_headers)
        assert response.status_code == 400

    def test_due_date_kept_verbatim(self, create_order):
        order = create_order(due_date="2030-01-01T00:00:00.000Z")
        assert order["due_date"] == "2030-01-01T00:00:00.000Z"

class TestReadOrders:
    """Test cases for listing and fetching orders"""

    def test_list_orders_newest_first_with_comments(self, client, auth_headers, create_order):
        first = create_order(patient_name="First")
        second = create_order(patient_name="Second")
        client.post(f"/api/orders/{first['id']}/comments", json={"comment": "older"}, headers=auth_headers)
        client.post(f"/api/orders/{first['id']}/comments", json={"comment": "newer"}, headers=auth_headers)

        response = client.get("/api/orders", headers=auth_headers)
        assert response.status_code == 200

        orders = response.json()
        assert [o["id"] for o in orders] == [second["id"], first["id"]]
        assert orders[0]["comments"] == []
        assert [c["comment"] for c in orders[1]["comments"]] == ["newer", "older"]
        assert orders[1]["comments"][0]["user_name"] == "Pat Pharmacist"
        assert orders[1]["created_by_name"] == "Pat Pharmacist"
        assert "history" not in orders[1]

    def test_list_orders_empty(self, client, auth_headers):
        response = client.get("/api/orders", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == []

    def test_get_order_success(self, client, auth_headers, create_order):
        order = create_order(patient_name="Carol Davis")

        response = client.get(f"/api/orders/{order['id']}", headers=auth_headers)
        assert response.status_code == 200

        data = response.json()
        assert data["patient_name"] == "Carol Davis"
        assert data["comments"] == []
        assert len(data["history"]) == 1

    def test_get_nonexistent_order_fails(self, client, auth_headers):
        response = client.get("/api/orders/99999", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "Order not found"

class TestUpdateOrder:
    """Test cases for partial updates and their history"""

    def test_update_only_due_date(self, client, auth_headers, create_order):
        order = create_order(patient_rx="Metformin", order_type="Purchase")
        new_due = days_from_today(10)

        response = client.put(f"/api/orders/{order['id']}", json={"due_date": new_due}, headers=auth_headers)
        assert response.status_code == 200

        updated = response.json()
        assert updated["due_date"] == new_due
        for field in ("patient_name", "patient_rx", "status", "order_type"):
            assert updated[field] == order[field]

        history = history_for(client, auth_headers, order["id"])
        assert len(history) == 2
        assert history[0]["field_name"] == "due_date"
        assert history[0]["old_value"] == order["due_date"]
        assert history[0]["new_value"] == new_due

    def test_same_status_adds_no_history(self, client, auth_headers, create_order):
        order = create_order()

        response = client.put(f"/api/orders/{order['id']}", json={"status": "Open"}, headers=auth_headers)
        assert response.status_code == 200
        assert len(history_for(client, auth_headers, order["id"])) == 1

    def test_empty_body_changes_nothing(self, client, auth_headers, create_order):
        order = create_order()

        response = client.put(f"/api/orders/{order['id']}", json={}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == order
        assert len(history_for(client, auth_headers, order["id"])) == 1

    def test_status_change_is_audited(self, client, auth_headers, create_order):
        order = create_order()

        response = client.put(f"/api/orders/{order['id']}", json={"status": "In Progress"}, headers=auth_headers)
        assert response.json()["status"] == "In Progress"

        latest = history_for(client, auth_headers, order["id"])[0]
        assert (latest["field_name"], latest["old_value"], latest["new_value"]) == ("status", "Open", "In Progress")

    def test_multiple_fields_one_entry_each(self, client, auth_headers, create_order):
        order = create_order()

        client.put(f"/api/orders/{order['id']}", json={
            "patient_name": "John Q. Doe",
            "status": "Ready for Pickup",
            "order_type": "Special",
        }, headers=auth_headers)

        history = history_for(client, auth_headers, order["id"])
        assert sorted(h["field_name"] for h in history[:3]) == ["order_type", "patient_name", "status"]
        assert len(history) == 4

    def test_empty_patient_name_keeps_current(self, client, auth_headers, create_order):
        order = create_order(patient_name="Keep Me")

        response = client.put(f"/api/orders/{order['id']}", json={"patient_name": "", "due_date": None}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["patient_name"] == "Keep Me"
        assert response.json()["due_date"] == order["due_date"]
        assert len(history_for(client, auth_headers, order["id"])) == 1

    def test_patient_rx_can_be_cleared(self, client, auth_headers, create_order):
        order = create_order(patient_rx="Lisinopril 10mg")

        response = client.put(f"/api/orders/{order['id']}", json={"patient_rx": None}, headers=auth_headers)
        assert response.json()["patient_rx"] is None

        latest = history_for(client, auth_headers, order["id"])[0]
        assert (latest["field_name"], latest["old_value"], latest["new_value"]) == ("patient_rx", "Lisinopril 10mg", None)

    def test_invalid_order_type_keeps_previous(self, client, auth_headers, create_order):
        order = create_order(order_type="Purchase")

        response = client.put(f"/api/orders/{order['id']}", json={"order_type": "Express"}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["order_type"] == "Purchase"
        assert len(history_for(client, auth_headers, order["id"])) == 1

    @pytest.mark.parametrize("order_type", [5, True, ["Stock"]])
    def test_non_string_order_type_keeps_previous(self, client, auth_headers, create_order, order_type):
        order = create_order(order_type="Special")

        response = client.put(f"/api/orders/{order['id']}", json={"order_type": order_type}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["order_type"] == "Special"
        assert len(history_for(client, auth_headers, order["id"])) == 1

    def test_zero_name_and_due_date_keep_current(self, client, auth_headers, create_order):
        """0 and false count as not provided for patient_name and due_date"""
        order = create_order(patient_name="Zero Test")

        for payload in ({"patient_name": 0, "due_date": 0}, {"patient_name": False, "due_date": 0.0}):
            response = client.put(f"/api/orders/{order['id']}", json=payload, headers=auth_headers)
            assert response.status_code == 200
            assert response.json()["patient_name"] == "Zero Test"
            assert response.json()["due_date"] == order["due_date"]

        assert len(history_for(client, auth_headers, order["id"])) == 1

    def test_non_string_patient_name_rejected(self, client, auth_headers, create_order):
        order = create_order()

        response = client.put(f"/api/orders/{order['id']}", json={"patient_name": 42}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Patient name must be a string"

    def test_failed_history_insert_rolls_back_update(self, client, auth_headers, create_order, db_session):
        """Field writes and history rows commit together or not at all"""
        order = create_order()
        unknown_actor = 424242  # violates order_history.user_id foreign key

        with pytest.raises(DatabaseError):
            asyncio.run(OrderService(db_session).update_order(
                unknown_actor, order["id"], OrderUpdate(status="Delivered", patient_name="Rolled Back")
            ))

        current = client.get(f"/api/orders/{order['id']}", headers=auth_headers).json()
        assert current["status"] == "Open"
        assert current["patient_name"] == order["patient_name"]
        assert len(current["history"]) == 1
        assert db_session.query(OrderHistory).filter(OrderHistory.order_id == order["id"]).count() == 1

    def test_invalid_status_rejected_without_changes(self, client, auth_headers, create_order):
        order = create_order()

        response = client.put(f"/api/orders/{order['id']}", json={
            "patient_name": "Changed", "status": "Shipped"
        }, headers=auth_headers)
        assert response.status_code == 400

        current = client.get(f"/api/orders/{order['id']}", headers=auth_headers).json()
        assert current["patient_name"] == order["patient_name"]
        assert len(current["history"]) == 1

    def test_history_records_acting_user(self, client, auth_headers, create_order, register_user):
        order = create_order()
        other = register_user(email="tech@example.com", name="Tara Tech")
        other_headers = {"Authorization": f"Bearer {other['token']}"}

        client.put(f"/api/orders/{order['id']}", json={"status": "Delivered"}, headers=other_headers)

        latest = history_for(client, auth_headers, order["id"])[0]
        assert latest["user_id"] == other["user"]["id"]
        assert latest["user_name"] == "Tara Tech"

    def test_update_nonexistent_order(self, client, auth_headers):
        response = client.put("/api/orders/99999", json={"status": "Delivered"}, headers=auth_headers)
        assert response.status_code == 404

class TestDeleteOrder:
    """Test cases for deleting orders"""

    def test_delete_cascades(self, client, auth_headers, create_order, db_session):
        order = create_order()
        client.post(f"/api/orders/{order['id']}/comments", json={"comment": "call patient"}, headers=auth_headers)
        client.put(f"/api/orders/{order['id']}", json={"status": "In Progress"}, headers=auth_headers)

        response = client.delete(f"/api/orders/{order['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"message": "Order deleted successfully"}

        assert db_session.query(Comment).filter(Comment.order_id == order["id"]).count() == 0
        assert db_session.query(OrderHistory).filter(OrderHistory.order_id == order["id"]).count() == 0

        get_response = client.get(f"/api/orders/{order['id']}", headers=auth_headers)
        assert get_response.status_code == 404

    def test_delete_leaves_other_orders(self, client, auth_headers, create_order):
        keep = create_order(patient_name="Keep")
        drop = create_order(patient_name="Drop")

        client.delete(f"/api/orders/{drop['id']}", headers=auth_headers)

        orders = client.get("/api/orders", headers=auth_headers).json()
        assert [o["id"] for o in orders] == [keep["id"]]

    def test_delete_nonexistent_order(self, client, auth_headers):
        response = client.delete("/api/orders/99999", headers=auth_headers)
        assert response.status_code == 404

class TestComments:
    """Test cases for order comments"""

    def test_add_comment(self, client, auth_headers, create_order):
        order = create_order()

        response = client.post(f"/api/orders/{order['id']}/comments", json={"comment": "Insurance approved"}, headers=auth_headers)
        assert response.status_code == 201

        comment = response.json()
        assert comment["comment"] == "Insurance approved"
        assert comment["order_id"] == order["id"]
        assert comment["user_name"] == "Pat Pharmacist"

    def test_empty_comment_rejected(self, client, auth_headers, create_order):
        order = create_order()

        response = client.post(f"/api/orders/{order['id']}/comments", json={"comment": ""}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Comment is required"

    def test_comment_on_missing_order(self, client, auth_headers):
        response = client.post("/api/orders/99999/comments", json={"comment": "hello"}, headers=auth_headers)
        assert response.status_code == 404

    def test_comment_does_not_touch_history(self, client, auth_headers, create_order):
        order = create_order()
        client.post(f"/api/orders/{order['id']}/comments", json={"comment": "note"}, headers=auth_headers)
        assert len(history_for(client, auth_headers, order["id"])) == 1
