"""Project configuration settings.

Constants shared by the vault core, the CLI and the helper scripts.
"""

from pathlib import Path
import os

# Security / crypto
DEFAULT_ITERATIONS = 100_000
MIN_ITERATIONS = 10_000
SALT_LENGTH = 32
KEY_LENGTH = 32  # AES-256
NONCE_LENGTH = 12  # GCM recommended nonce size
AUTH_TAG_LENGTH = 16  # GCM tag length
BCRYPT_ROUNDS = 12

# Blob format
BLOB_MAGIC = b'LKBX'
BLOB_VERSION = 1

# Blob store keys
STORAGE_KEYS = {
	'hash': 'master_password_hash',
	'salt': 'master_password_salt',
	'blob': 'encrypted_passwords',
	'initialized': 'app_initialized',
}
PENDING_PREFIX = 'pending_'
PENDING_COMMIT_KEY = 'pending_commit'
INITIALIZED_VALUE = b'true'

# Vault
DEFAULT_VAULT_PATH = Path(os.environ.get("VAULT_PATH", "vault_data"))

# Master password policy
MASTER_PASSWORD_MIN_LENGTH = 8
SPECIAL_CHARS = "!@#$%^&*()_+-=[]{}|;:,.<>?"

# Password generator
GENERATOR_DEFAULT_LENGTH = 16
GENERATOR_MIN_LENGTH = 8
GENERATOR_MAX_LENGTH = 128

# Dashboard
RECENT_DAYS = 30
WEAK_SCORE_THRESHOLD = 40

# Logging
LOG_LEVEL = "WARNING"

# Backup
BACKUP_PREFIX = "vault_"

__all__ = [
	'DEFAULT_ITERATIONS','MIN_ITERATIONS','SALT_LENGTH','KEY_LENGTH','NONCE_LENGTH','AUTH_TAG_LENGTH','BCRYPT_ROUNDS',
	'BLOB_MAGIC','BLOB_VERSION','STORAGE_KEYS','PENDING_PREFIX','PENDING_COMMIT_KEY','INITIALIZED_VALUE',
	'DEFAULT_VAULT_PATH','MASTER_PASSWORD_MIN_LENGTH','SPECIAL_CHARS',
	'GENERATOR_DEFAULT_LENGTH','GENERATOR_MIN_LENGTH','GENERATOR_MAX_LENGTH',
	'RECENT_DAYS','WEAK_SCORE_THRESHOLD','LOG_LEVEL','BACKUP_PREFIX'
]
