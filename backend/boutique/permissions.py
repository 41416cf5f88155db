"""
Role Permission Definitions

Centralized role -> permission table. Module keys gate whole areas of the
back office (clients, purchasing, data management); capability keys gate
individual operations.

DESIGN PRINCIPLES:
- Admin has every permission
- Manager runs the shop but cannot delete products
- Vendeur (seller) only sells: dashboard, product list and orders
"""

from boutique.models import UserRole


# =============================================================================
# PERMISSION KEYS
# =============================================================================

MODULE_CLIENTS = "clients"
MODULE_PURCHASING = "approvisionnement"
MODULE_SETTINGS = "settings"

MODULES = (
    "dashboard",
    "inventory",
    MODULE_CLIENTS,
    "suppliers",
    "productList",
    "orders",
    MODULE_PURCHASING,
    "reports",
    MODULE_SETTINGS,
)

CAN_ADD_PRODUCTS = "canAddProducts"
CAN_DELETE_PRODUCTS = "canDeleteProducts"
CAN_EDIT_PRODUCTS = "canEditProducts"
CAN_MANAGE_SUPPLIERS = "canManageSuppliers"
CAN_MANAGE_USERS = "canManageUsers"
CAN_SEE_FINANCIALS = "canSeeFinancials"

CAPABILITIES = (
    CAN_ADD_PRODUCTS,
    CAN_DELETE_PRODUCTS,
    CAN_EDIT_PRODUCTS,
    CAN_MANAGE_SUPPLIERS,
    CAN_MANAGE_USERS,
    CAN_SEE_FINANCIALS,
)

ALL_PERMISSIONS = MODULES + CAPABILITIES


# =============================================================================
# ROLE MAPPINGS
# =============================================================================

ROLE_PERMISSIONS = {
    UserRole.ADMIN: frozenset(ALL_PERMISSIONS),
    UserRole.MANAGER: frozenset(ALL_PERMISSIONS) - {CAN_DELETE_PRODUCTS},
    UserRole.SELLER: frozenset({"dashboard", "productList", "orders"}),
}
