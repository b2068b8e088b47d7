# Per-endpoint page size limits
class PaginationLimits:
    SAVINGS_LEDGER = {"min": 1, "max": 100, "default": 50}
    SALES_HISTORY = {"min": 1, "max": 200, "default": 50}
    INVENTORY_LOGS = {"min": 1, "max": 200, "default": 100}
    DEBT_PAYMENTS = {"min": 1, "max": 200, "default": 100}
    CUSTOMER_LIST = {"min": 1, "max": 500, "default": 200}
