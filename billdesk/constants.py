APP_NAME = "BillDesk"

DATA_DIR = "data"
DB_FILE_NAME = "billdesk.db"

TABLE_SCHEMA_VERSION = "schema_version"
SCHEMA_VERSION = "1.1.0"

DEFAULT_USERNAME = "owner"

# fallback low-stock threshold when a product has no min_stock_level
LOW_STOCK_DEFAULT = 5

# series -> (table, column, prefix template, width)
# {ym} = YYYYMM, {ymd} = YYYYMMDD
NUMBER_SERIES = {
    "invoice":         ("invoices",          "number", "INV-{ym}-",  3),
    "quotation":       ("quotations",        "number", "QT-{ym}-",   3),
    "challan":         ("delivery_challans", "number", "DC-{ym}-",   3),
    "pos":             ("invoices",          "number", "POS-{ymd}-", 4),
    "purchase":        ("purchases",         "number", "PUR-",       4),
    "sales_return":    ("returns",           "number", "SR-",        4),
    "purchase_return": ("returns",           "number", "PR-",        4),
    "payment_in":      ("payments",          "number", "REC-",       4),
    "payment_out":     ("payments",          "number", "PAY-",       4),
}

PAYMENT_MODES = ("Cash", "UPI", "Bank Transfer", "Cheque")
# modes that must carry a transaction / cheque number
REFERENCED_PAYMENT_MODES = ("Bank Transfer", "Cheque")
