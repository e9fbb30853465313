"""
Centralized income and expense categories for finance transactions.
Keys are stored on transactions; labels are for display only.
"""

# Transaction Categories - Income
INCOME_CATEGORIES = {
    "sales": "Sales",
    "service": "Service Income",
    "production": "Production Income",
    "commission": "Commission",
    "interest": "Interest Income",
    "refund": "Refund",
    "other": "Other Income",
}

# Transaction Categories - Expenses
EXPENSE_CATEGORIES = {
    # Production
    "raw_material": "Raw Material",
    "packaging": "Packaging",
    "production_cost": "Production Cost",
    # Personnel
    "salary": "Salary",
    "advance": "Advance",
    "bonus": "Bonus",
    "ssk": "Social Security",
    # Operations
    "rent": "Rent",
    "utility": "Utilities",
    "communication": "Communication",
    "transport": "Transport",
    "maintenance": "Maintenance",
    # Other
    "marketing": "Marketing",
    "tax": "Tax",
    "insurance": "Insurance",
    "legal": "Legal & Consulting",
    "office": "Office",
    "other": "Other Expense",
}

# Grouping used by the admin expense form
EXPENSE_CATEGORY_GROUPS = [
    ("production", "Production", ["raw_material", "packaging", "production_cost"]),
    ("personnel", "Personnel", ["salary", "advance", "bonus", "ssk"]),
    (
        "operations",
        "Operations",
        ["rent", "utility", "communication", "transport", "maintenance"],
    ),
    ("other", "Other", ["marketing", "tax", "insurance", "legal", "office", "other"]),
]


def get_categories_for_type(transaction_type: str) -> dict[str, str]:
    """Return the category table for a transaction type ('income' or 'expense')."""
    if transaction_type == "income":
        return INCOME_CATEGORIES
    if transaction_type == "expense":
        return EXPENSE_CATEGORIES
    return {}


def get_category_label(transaction_type: str, key: str | None) -> str:
    if not key:
        return ""
    return get_categories_for_type(transaction_type).get(key, key)
