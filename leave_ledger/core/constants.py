"""
Service-wide constants
"""
SERVICE_NAME = "leave-ledger-backend"
DEFAULT_VERSION = "1.0.0"
