from cafedesk.models.gallery import GalleryCategory, GalleryImage
from cafedesk.models.invoice import Invoice, Payment
from cafedesk.models.menu import MenuItem
from cafedesk.models.notification import AdminNotification, NotificationType
from cafedesk.models.order import (
    NEXT_STATUS,
    SETTLEMENT_MODES,
    TERMINAL_STATUSES,
    Order,
    OrderItem,
    OrderSource,
    OrderStatus,
    PaymentMode,
)
from cafedesk.models.settings import CafeSettings
from cafedesk.models.staff import AdminSession, AdminUser, Employee, PrincipalKind, Role, SessionStatus
from cafedesk.models.table import CafeTable, TableStatus

__all__ = [
    "AdminNotification",
    "AdminSession",
    "AdminUser",
    "CafeSettings",
    "CafeTable",
    "Employee",
    "GalleryCategory",
    "GalleryImage",
    "Invoice",
    "MenuItem",
    "NEXT_STATUS",
    "NotificationType",
    "Order",
    "OrderItem",
    "OrderSource",
    "OrderStatus",
    "Payment",
    "PaymentMode",
    "PrincipalKind",
    "Role",
    "SETTLEMENT_MODES",
    "SessionStatus",
    "TERMINAL_STATUSES",
    "TableStatus",
]
