APP_NAME = "Bakery Distribution Back Office"

DATA_DIR = "data"
DB_FILE_NAME = "bakery.db"

LOG_DIR = "logs"
LOG_FILE_NAME = "ledger.log"

TABLE_SCHEMA_VERSION = "schema_version"
SCHEMA_VERSION = "1.0.0"

# Bill.payment_status values (stored verbatim)
STATUS_UNPAID = "N/A"
STATUS_PARTIAL = "Partial"
STATUS_PAID = "OK"

MONEY_PLACES = 2
EPS = 1e-9
