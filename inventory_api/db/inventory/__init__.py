"""
Per-user inventory.

Models:
- Item (catalog entry, deduplicated by name)
- InventoryRecord (quantity a user holds of an item, never below zero)
"""
