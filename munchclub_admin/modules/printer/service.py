# munchclub_admin/modules/printer/service.py
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ...core.database import db, get_config_value, utcnow
from ...core.errors import InvalidArgument, NotFound, PersistenceError, UpstreamUnavailable
from ...core.logging_service import LoggingService, db_log
from ...core.models import Order

logger = logging.getLogger(__name__)

STATUS_UNKNOWN = 'unknown'
STATUS_ERROR = 'error'
NO_PRINTER_ORDERS = 'no_printer_orders'


@dataclass
class PrinterStatusSnapshot:
    """Result of one gateway poll; never stored as its own record"""
    printer_order_id: str
    status: str
    tracking_number: Optional[str] = None
    estimated_delivery: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.status == STATUS_ERROR

    def to_dict(self) -> Dict[str, Any]:
        if self.is_error:
            return {
                'printerOrderId': self.printer_order_id,
                'status': self.status,
                'error': self.error,
            }
        return {
            'printerOrderId': self.printer_order_id,
            'status': self.status,
            'trackingNumber': self.tracking_number,
            'estimatedDelivery': self.estimated_delivery,
        }


class PrinterGatewayService:
    """Client for the print-on-demand gateway's order status endpoint"""

    def __init__(self, base_url: str = None, timeout: float = 10.0):
        self.base_url = (base_url or '').rstrip('/')
        self.timeout = timeout

    def get_order_status(self, printer_order_id: str) -> Dict[str, Any]:
        """
        Fetch the raw orderStatus payload for one printer order.

        Raises UpstreamUnavailable on network errors, non-2xx answers and
        bodies that are not a JSON object.
        """
        if not self.base_url:
            raise UpstreamUnavailable('Printer gateway URL not configured')

        url = f"{self.base_url}/checkOrderStatus"

        try:
            response = requests.get(
                url,
                params={'printerOrderId': printer_order_id},
                headers={'Content-Type': 'application/json'},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise UpstreamUnavailable(str(e) or type(e).__name__) from e

        LoggingService.log_api_call('printer', url, 'GET', response.status_code,
                                    {'printerOrderId': printer_order_id})

        if not 200 <= response.status_code < 300:
            raise UpstreamUnavailable(f"HTTP {response.status_code}: {response.reason}")

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamUnavailable('Invalid JSON from printer gateway') from e

        if not isinstance(payload, dict):
            raise UpstreamUnavailable('Unexpected response from printer gateway')

        order_status = payload.get('orderStatus') or {}
        if not isinstance(order_status, dict):
            raise UpstreamUnavailable('Unexpected response from printer gateway')

        return order_status

    def check_status(self, printer_order_id: str) -> PrinterStatusSnapshot:
        """Poll one printer order; failures come back as an error snapshot"""
        try:
            order_status = self.get_order_status(printer_order_id)
        except UpstreamUnavailable as e:
            logger.error(f"Error checking status for printer order {printer_order_id}: {e.message}")
            return PrinterStatusSnapshot(printer_order_id, STATUS_ERROR, error=e.message)

        return PrinterStatusSnapshot(
            printer_order_id,
            order_status.get('status') or STATUS_UNKNOWN,
            tracking_number=order_status.get('trackingNumber'),
            estimated_delivery=order_status.get('estimatedDelivery'),
        )

    def check_all(self, printer_order_ids: List[str]) -> List[PrinterStatusSnapshot]:
        """Poll every printer order one after another, in the given order"""
        return [self.check_status(printer_order_id) for printer_order_id in printer_order_ids]


def get_printer_gateway() -> PrinterGatewayService:
    """Gateway configured on the app, or one built from config"""
    ext = current_app.extensions.get('munchclub_admin')
    if ext is not None and ext.printer_gateway is not None:
        return ext.printer_gateway
    return PrinterGatewayService(
        base_url=get_config_value('PRINTER_GATEWAY_URL'),
        timeout=float(get_config_value('PRINTER_API_TIMEOUT', 10)),
    )


def parse_estimated_delivery(value) -> Optional[datetime]:
    """ISO date/datetime string to a naive UTC datetime; None when absent or unparseable"""
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.warning(f"Unparseable estimated delivery date: {value!r}")
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _persist_snapshot(order: Order, snapshot: PrinterStatusSnapshot):
    try:
        order.printer_status = snapshot.status
        order.tracking_number = snapshot.tracking_number
        order.estimated_delivery = parse_estimated_delivery(snapshot.estimated_delivery)
        order.printer_updated_at = utcnow()
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to store printer status for order {order.id}: {e}")
        db_log('error', 'printer', f'Failed to store printer status for order {order.id}', {'error': str(e)})
        raise PersistenceError('Failed to refresh printer status') from e


def refresh_printer_status(order_id: str, gateway: PrinterGatewayService = None) -> Dict[str, Any]:
    """
    Poll the gateway for every printer order of an order and cache the result.

    The first snapshot in printer-order-id order is the one persisted, and
    only when it is not an error; otherwise the cached fields are left as
    they were. The response says whether anything was persisted.
    """
    if not order_id or not isinstance(order_id, str):
        raise InvalidArgument('Invalid order ID')

    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFound('Order not found')

    printer_order_ids = list(order.printer_order_ids or [])
    if not printer_order_ids:
        return {
            'success': True,
            'printerStatuses': [],
            'latestStatus': NO_PRINTER_ORDERS,
            'persisted': False,
            'message': 'No printer orders found for this order',
        }

    gateway = gateway or get_printer_gateway()
    snapshots = gateway.check_all(printer_order_ids)

    latest = snapshots[0] if snapshots else None
    persisted = False
    if latest is not None and not latest.is_error:
        _persist_snapshot(order, latest)
        persisted = True
    elif latest is not None:
        db_log('warning', 'printer',
               f"Printer status for order {order_id} not updated: first poll failed",
               {'printerOrderId': latest.printer_order_id, 'error': latest.error})

    return {
        'success': True,
        'printerStatuses': [snapshot.to_dict() for snapshot in snapshots],
        'latestStatus': latest.status if latest is not None else STATUS_UNKNOWN,
        'persisted': persisted,
    }
