from .tenancy import Home, Membership
from .inventory import Location, Category, Box, Item, ItemInstance, Photo
from .audit import AuditRecord

__all__ = [
    'Home', 'Membership',
    'Location', 'Category', 'Box', 'Item', 'ItemInstance', 'Photo',
    'AuditRecord',
]
