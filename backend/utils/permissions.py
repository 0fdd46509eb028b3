# utils/permissions.py
import enum

from models.users import Role


class Permission(str, enum.Enum):
    # Products
    VIEW_PRODUCTS = "VIEW_PRODUCTS"
    CREATE_PRODUCTS = "CREATE_PRODUCTS"
    UPDATE_PRODUCTS = "UPDATE_PRODUCTS"
    DELETE_PRODUCTS = "DELETE_PRODUCTS"

    # Locations
    VIEW_LOCATIONS = "VIEW_LOCATIONS"
    CREATE_LOCATIONS = "CREATE_LOCATIONS"
    UPDATE_LOCATIONS = "UPDATE_LOCATIONS"
    DELETE_LOCATIONS = "DELETE_LOCATIONS"

    # Vendors
    VIEW_VENDORS = "VIEW_VENDORS"
    CREATE_VENDORS = "CREATE_VENDORS"
    UPDATE_VENDORS = "UPDATE_VENDORS"
    DELETE_VENDORS = "DELETE_VENDORS"

    # Receipts
    VIEW_RECEIPTS = "VIEW_RECEIPTS"
    CREATE_RECEIPTS = "CREATE_RECEIPTS"
    VALIDATE_RECEIPTS = "VALIDATE_RECEIPTS"

    # Deliveries
    VIEW_DELIVERIES = "VIEW_DELIVERIES"
    CREATE_DELIVERIES = "CREATE_DELIVERIES"
    VALIDATE_DELIVERIES = "VALIDATE_DELIVERIES"

    # Stock operations
    TRANSFER_STOCK = "TRANSFER_STOCK"
    ADJUST_STOCK = "ADJUST_STOCK"
    VIEW_MOVE_HISTORY = "VIEW_MOVE_HISTORY"

    # Dashboard & reports
    VIEW_DASHBOARD = "VIEW_DASHBOARD"
    VIEW_REPORTS = "VIEW_REPORTS"

    # Users
    MANAGE_USERS = "MANAGE_USERS"
    VIEW_USERS = "VIEW_USERS"

    # Settings
    MANAGE_SETTINGS = "MANAGE_SETTINGS"

    # Audit
    VIEW_AUDIT = "VIEW_AUDIT"


ROLE_PERMISSIONS = {
    # Full system access
    Role.ADMIN.value: frozenset(Permission),

    # Operations and reporting, no user or settings management.
    # Locations are view only.
    Role.INVENTORY_MANAGER.value: frozenset({
        Permission.VIEW_PRODUCTS,
        Permission.CREATE_PRODUCTS,
        Permission.UPDATE_PRODUCTS,
        Permission.DELETE_PRODUCTS,
        Permission.VIEW_LOCATIONS,
        Permission.VIEW_VENDORS,
        Permission.CREATE_VENDORS,
        Permission.UPDATE_VENDORS,
        Permission.DELETE_VENDORS,
        Permission.VIEW_RECEIPTS,
        Permission.CREATE_RECEIPTS,
        Permission.VALIDATE_RECEIPTS,
        Permission.VIEW_DELIVERIES,
        Permission.CREATE_DELIVERIES,
        Permission.VALIDATE_DELIVERIES,
        Permission.TRANSFER_STOCK,
        Permission.ADJUST_STOCK,
        Permission.VIEW_MOVE_HISTORY,
        Permission.VIEW_DASHBOARD,
        Permission.VIEW_REPORTS,
        Permission.VIEW_USERS,
        Permission.VIEW_AUDIT,
    }),

    # Execution level: drafts only, nothing is validated by staff
    Role.STAFF.value: frozenset({
        Permission.VIEW_PRODUCTS,
        Permission.VIEW_LOCATIONS,
        Permission.VIEW_VENDORS,
        Permission.VIEW_RECEIPTS,
        Permission.CREATE_RECEIPTS,
        Permission.VIEW_DELIVERIES,
        Permission.CREATE_DELIVERIES,
        Permission.VIEW_MOVE_HISTORY,
        Permission.VIEW_DASHBOARD,
        Permission.VIEW_REPORTS,
    }),
}


def has_permission(role, permission: Permission) -> bool:
    return permission in ROLE_PERMISSIONS.get((role or "").upper(), frozenset())
