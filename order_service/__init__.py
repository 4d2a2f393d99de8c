"""Order management service: customers, orders, line items and reports over HTTP."""

__version__ = "1.0.0"
