"""Reserved record keys and the running schema version."""

DATABASE_SCHEMA_VERSION = 1
MAX_SCHEMA_VERSION = 255
DATABASE_SCHEMA_VERSION_KEY = "database-schema-version"

ACCOUNTS_INDEXATION_KEY = "wallet-accounts"
ACCOUNT_INDEXATION_KEY = "wallet-account-"
ACCOUNT_MANAGER_INDEXATION_KEY = "wallet-account-manager"
SECRET_MANAGER_KEY = "secret-manager"


def account_key(index: int) -> str:
    """Record key of the account with the given index."""
    return f"{ACCOUNT_INDEXATION_KEY}{index}"
