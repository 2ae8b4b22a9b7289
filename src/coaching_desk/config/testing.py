import os

SECRET_KEY = "test-secret"

MONGO_CONFIG = {
    "uri": os.getenv("MONGODB_URI", "mongodb://localhost:27017"),
    "database": os.getenv("MONGO_DB_NAME", "student_management_test"),
    "server_selection_timeout_ms": 1000,
    "connect_timeout_ms": 1000,
    "socket_timeout_ms": 5000,
    "max_pool_size": 2,
    "min_pool_size": 0,
}

MONGO_USE_TRANSACTIONS = False

SESSION_COOKIE_SECURE = False

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
