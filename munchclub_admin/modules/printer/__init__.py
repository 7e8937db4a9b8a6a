"""
Printer Gateway Module
======================

Client for the print-on-demand fulfillment gateway and the reconciliation
that mirrors its order status onto local orders. No blueprint of its own:
the orders module exposes /orders/<id>/printer-status.
"""

from .service import (
    PrinterGatewayService, PrinterStatusSnapshot, get_printer_gateway, refresh_printer_status
)

__all__ = ['PrinterGatewayService', 'PrinterStatusSnapshot', 'get_printer_gateway', 'refresh_printer_status']
