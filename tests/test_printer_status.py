"""
Printer status reconciliation against a mocked gateway.
"""

from datetime import datetime
from unittest.mock import MagicMock, call, patch

import pytest
import requests

from munchclub_admin.core.database import db
from munchclub_admin.core.errors import NotFound, UpstreamUnavailable
from munchclub_admin.core.models import Order
from munchclub_admin.modules.printer.service import (
    PrinterGatewayService, parse_estimated_delivery, refresh_printer_status
)

from conftest import PRINTER_GATEWAY_URL, add_order, add_user

GET = "munchclub_admin.modules.printer.service.requests.get"


def gateway_response(status=None, tracking=None, delivery=None, status_code=200, reason="OK"):
    response = MagicMock()
    response.status_code = status_code
    response.reason = reason
    order_status = {}
    if status is not None:
        order_status["status"] = status
    if tracking is not None:
        order_status["trackingNumber"] = tracking
    if delivery is not None:
        order_status["estimatedDelivery"] = delivery
    response.json.return_value = {"orderStatus": order_status}
    return response


def reload(order_id):
    db.session.expire_all()
    return db.session.get(Order, order_id)


def test_no_printer_orders_makes_no_calls(ctx):
    order = add_order(add_user())

    with patch(GET) as mock_get:
        result = refresh_printer_status(order.id)

    mock_get.assert_not_called()
    assert result["success"] is True
    assert result["printerStatuses"] == []
    assert result["latestStatus"] == "no_printer_orders"
    assert result["persisted"] is False


def test_one_call_per_printer_order_in_order(ctx):
    order = add_order(add_user(), printer_order_ids=["P1", "P2", "P3"])

    with patch(GET, return_value=gateway_response("RECEIVED")) as mock_get:
        result = refresh_printer_status(order.id)

    assert mock_get.call_count == 3
    called_ids = [c.kwargs["params"]["printerOrderId"] for c in mock_get.call_args_list]
    assert called_ids == ["P1", "P2", "P3"]
    assert mock_get.call_args_list[0] == call(
        f"{PRINTER_GATEWAY_URL}/checkOrderStatus",
        params={"printerOrderId": "P1"},
        headers={"Content-Type": "application/json"},
        timeout=10.0,
    )
    assert [entry["printerOrderId"] for entry in result["printerStatuses"]] == ["P1", "P2", "P3"]


def test_first_success_is_persisted(ctx):
    order = add_order(add_user(), printer_order_ids=["P1", "P2"])

    responses = [
        gateway_response("SHIPPED", tracking="TRK1", delivery="2024-05-01T00:00:00Z"),
        gateway_response("PRINTED"),
    ]
    with patch(GET, side_effect=responses):
        result = refresh_printer_status(order.id)

    assert result["latestStatus"] == "SHIPPED"
    assert result["persisted"] is True
    assert result["printerStatuses"] == [
        {"printerOrderId": "P1", "status": "SHIPPED", "trackingNumber": "TRK1",
         "estimatedDelivery": "2024-05-01T00:00:00Z"},
        {"printerOrderId": "P2", "status": "PRINTED", "trackingNumber": None,
         "estimatedDelivery": None},
    ]

    stored = reload(order.id)
    assert stored.printer_status == "SHIPPED"
    assert stored.tracking_number == "TRK1"
    assert stored.estimated_delivery == datetime(2024, 5, 1)
    assert stored.printer_updated_at is not None


def test_first_error_leaves_cache_unchanged(ctx):
    order = add_order(add_user(), printer_order_ids=["P1", "P2"],
                      printer_status="PRINTED", tracking_number="OLD")

    responses = [requests.ConnectionError("connection refused"), gateway_response("SHIPPED")]
    with patch(GET, side_effect=responses):
        result = refresh_printer_status(order.id)

    assert result["persisted"] is False
    assert result["latestStatus"] == "error"
    assert result["printerStatuses"][0] == {
        "printerOrderId": "P1", "status": "error", "error": "connection refused",
    }
    assert result["printerStatuses"][1]["status"] == "SHIPPED"

    stored = reload(order.id)
    assert stored.printer_status == "PRINTED"
    assert stored.tracking_number == "OLD"
    assert stored.printer_updated_at is None


def test_http_error_is_captured_per_item(ctx):
    order = add_order(add_user(), printer_order_ids=["P1"])

    with patch(GET, return_value=gateway_response(status_code=500, reason="Internal Server Error")):
        result = refresh_printer_status(order.id)

    assert result["printerStatuses"] == [
        {"printerOrderId": "P1", "status": "error", "error": "HTTP 500: Internal Server Error"},
    ]
    assert result["persisted"] is False


def test_missing_fields_default_and_clear_cache(ctx):
    order = add_order(add_user(), printer_order_ids=["P1"],
                      tracking_number="OLD", estimated_delivery=datetime(2024, 1, 1))

    with patch(GET, return_value=gateway_response()):
        result = refresh_printer_status(order.id)

    assert result["latestStatus"] == "unknown"
    stored = reload(order.id)
    assert stored.printer_status == "unknown"
    assert stored.tracking_number is None
    assert stored.estimated_delivery is None


def test_projection_keeps_default_printer_status(client, ctx):
    order = add_order(add_user(), printer_order_ids=["P1"])

    with patch(GET, return_value=gateway_response("SHIPPED")):
        response = client.get(f"/api/admin/orders/{order.id}/printer-status")
    assert response.status_code == 200
    assert response.get_json()["latestStatus"] == "SHIPPED"

    detail = client.get(f"/api/admin/orders/{order.id}").get_json()
    assert detail["printerStatus"] == "PENDING"


def test_unknown_order(ctx):
    with pytest.raises(NotFound):
        refresh_printer_status("000000000000000000000000")


def test_printer_status_endpoint_404(client):
    with patch(GET) as mock_get:
        response = client.get("/api/admin/orders/000000000000000000000000/printer-status")
    assert response.status_code == 404
    mock_get.assert_not_called()


def test_gateway_client_raises_on_invalid_json(ctx):
    response = gateway_response()
    response.json.side_effect = ValueError("no json")
    gateway = PrinterGatewayService(base_url=PRINTER_GATEWAY_URL, timeout=5)

    with patch(GET, return_value=response):
        with pytest.raises(UpstreamUnavailable):
            gateway.get_order_status("P1")


@pytest.mark.parametrize("value, expected", [
    (None, None),
    ("", None),
    ("2024-05-01", datetime(2024, 5, 1)),
    ("2024-05-01T10:30:00Z", datetime(2024, 5, 1, 10, 30)),
    ("2024-05-01T12:30:00+02:00", datetime(2024, 5, 1, 10, 30)),
    ("next tuesday", None),
])
def test_parse_estimated_delivery(value, expected):
    assert parse_estimated_delivery(value) == expected


def test_first_success_wins_over_later_failure(ctx):
    order = add_order(add_user(), printer_order_ids=["P1", "P2"])

    responses = [
        gateway_response("shipped", tracking="TRK1"),
        gateway_response(status_code=500, reason="Internal Server Error"),
    ]
    with patch(GET, side_effect=responses) as mock_get:
        result = refresh_printer_status(order.id)

    assert mock_get.call_count == 2
    assert result["latestStatus"] == "shipped"
    assert result["printerStatuses"] == [
        {"printerOrderId": "P1", "status": "shipped", "trackingNumber": "TRK1", "estimatedDelivery": None},
        {"printerOrderId": "P2", "status": "error", "error": "HTTP 500: Internal Server Error"},
    ]

    stored = reload(order.id)
    assert stored.printer_status == "shipped"
    assert stored.tracking_number == "TRK1"


@pytest.mark.parametrize("order_status", ["shipped", ["SHIPPED"], 42])
def test_gateway_client_rejects_non_object_order_status(ctx, order_status):
    response = gateway_response()
    response.json.return_value = {"orderStatus": order_status}
    gateway = PrinterGatewayService(base_url=PRINTER_GATEWAY_URL, timeout=5)

    with patch(GET, return_value=response):
        with pytest.raises(UpstreamUnavailable):
            gateway.get_order_status("P1")


def test_malformed_payload_is_captured_and_loop_continues(ctx):
    order = add_order(add_user(), printer_order_ids=["P1", "P2"], printer_status="PRINTED")

    malformed = gateway_response()
    malformed.json.return_value = {"orderStatus": "shipped"}
    with patch(GET, side_effect=[malformed, gateway_response("SHIPPED")]) as mock_get:
        result = refresh_printer_status(order.id)

    assert mock_get.call_count == 2
    assert result["printerStatuses"] == [
        {"printerOrderId": "P1", "status": "error", "error": "Unexpected response from printer gateway"},
        {"printerOrderId": "P2", "status": "SHIPPED", "trackingNumber": None, "estimatedDelivery": None},
    ]
    assert result["persisted"] is False
    assert reload(order.id).printer_status == "PRINTED"
