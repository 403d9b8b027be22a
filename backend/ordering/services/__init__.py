"""Services module.

This module provides the service layer architecture:
- exceptions: Custom service exceptions
- orders: Order ID allocation and order creation services
- external: Third-party API integrations (product ordering API)
"""
