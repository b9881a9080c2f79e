"""
wms-sync: pending-order synchronization from a WMS into a local store.

Pulls heterogeneous pending-order rows from the warehouse system, normalizes
them against per-attribute alias lists, and merges them atomically into
the destination ``WmsOrders`` table on a fixed interval.
"""

__version__ = "0.1.0"
