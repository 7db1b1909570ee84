# ---------- constants.py ----------
"""Project-wide constants and default settings."""
from typing import Dict, List

MEDICINE_CATEGORIES: List[str] = [
    "Pain Relief",
    "Antibiotic",
    "Cardiovascular",
    "Diabetes",
    "Respiratory",
    "Gastrointestinal",
    "Vitamins & Supplements",
    "Dermatology",
    "Other",
]

EXPENSE_CATEGORIES: List[str] = [
    "Utilities",
    "Rent",
    "Salaries",
    "Office Supplies",
    "Maintenance",
    "Marketing",
    "Other",
]

SALE_PAYMENT_METHODS: List[str] = ["Cash", "Card", "Insurance"]
EXPENSE_PAYMENT_METHODS: List[str] = ["Cash", "Bank Transfer", "Credit Card", "Cheque"]
CASH_FLOW_TYPES: List[str] = ["Cash In", "Cash Out"]
GENDERS: List[str] = ["Male", "Female", "Other"]

# Stock status labels
STOCK_LOW = "Low Stock"
STOCK_MEDIUM = "Medium"
STOCK_IN = "In Stock"

EXPIRY_EXPIRED = "Expired"
EXPIRY_SOON = "Expiring Soon"
EXPIRY_OK = "OK"
EXPIRY_UNKNOWN = "Unknown"

DEFAULT_TAX_RATE: float = 0.08

# Roles
ROLE_ADMIN = "admin"
ROLE_PHARMACIST = "pharmacist"
ROLE_CASHIER = "cashier"
ROLE_SUPPLIER = "supplier"
ROLES: List[str] = [ROLE_ADMIN, ROLE_PHARMACIST, ROLE_CASHIER, ROLE_SUPPLIER]

# Sidebar menu labels (keep in sync across app and sidebar)
MENU_DASHBOARD = "\U0001F4CA Dashboard"
MENU_INVENTORY = "\U0001F4E6 Inventory"
MENU_SALES = "\U0001F6D2 Sales"
MENU_CUSTOMERS = "\U0001F465 Customers"
MENU_PRESCRIPTIONS = "\U0001F4C4 Prescriptions"
MENU_SUPPLIERS = "\U0001F69A Suppliers"
MENU_PURCHASES = "\U0001F6CD️ Purchases"
MENU_EXPENSES = "\U0001F9FE Expenses"
MENU_REPORTS = "\U0001F4C8 Reports"
MENU_SETTINGS = "⚙️ Settings"
MENU_USER_MANAGEMENT = "\U0001F9D1‍\U0001F4BB User Management"

# Which roles may open each page, in menu order
PAGE_ROLES: Dict[str, List[str]] = {
    MENU_DASHBOARD: [ROLE_ADMIN, ROLE_PHARMACIST, ROLE_CASHIER, ROLE_SUPPLIER],
    MENU_INVENTORY: [ROLE_ADMIN, ROLE_PHARMACIST],
    MENU_SALES: [ROLE_ADMIN, ROLE_PHARMACIST, ROLE_CASHIER],
    MENU_CUSTOMERS: [ROLE_ADMIN, ROLE_PHARMACIST, ROLE_CASHIER],
    MENU_PRESCRIPTIONS: [ROLE_ADMIN, ROLE_PHARMACIST],
    MENU_SUPPLIERS: [ROLE_ADMIN, ROLE_PHARMACIST],
    MENU_PURCHASES: [ROLE_ADMIN, ROLE_PHARMACIST],
    MENU_EXPENSES: [ROLE_ADMIN],
    MENU_REPORTS: [ROLE_ADMIN, ROLE_PHARMACIST],
    MENU_SETTINGS: [ROLE_ADMIN],
    MENU_USER_MANAGEMENT: [ROLE_ADMIN],
}

# Settings stored in the settings table, with their defaults.
# The type of each default is used to coerce stored values.
DEFAULT_SETTINGS: Dict[str, object] = {
    "pharmacy_name": "PharmaCare Pharmacy",
    "pharmacy_address": "123 Medical Street, Healthcare City, HC 12345",
    "pharmacy_phone": "+1 (555) 123-4567",
    "pharmacy_email": "info@pharmacare.com",
    "license_number": "PH-2024-001",
    "currency": "USD",
    "tax_rate": DEFAULT_TAX_RATE,
    "discount_limit": 10.0,  # percent of subtotal
    "low_stock_alert": True,
    "expiry_alert": True,
    "expiry_alert_days": 30,
    "invoice_prefix": "INV",
    "receipt_prefix": "REC",
    "sale_prefix": "SAL",
    "print_footer": "Thank you for choosing PharmaCare!",
    "session_timeout": 30,
}

CURRENCIES: List[str] = ["USD", "EUR", "GBP", "CAD", "AUD"]
