"""Flask and MongoDB backend for a stationery shop: staff login, supply list orders and order search."""

__version__ = "0.1.0"