"""Store back-office API: customers, products, orders and sales reports."""

__version__ = "1.0.0"
