"""Error taxonomy surfaced by the vault core to its callers."""
from __future__ import annotations
from typing import Dict


class VaultError(Exception): ...

class ValidationError(VaultError):
	"""Weak master password or malformed credential entry.

	`fields` maps a field name to a human readable problem when the error
	comes from entry validation.
	"""
	def __init__(self, message: str, fields: Dict[str, str] | None = None):
		super().__init__(message)
		self.fields = dict(fields or {})

class VaultStateError(VaultError): ...
class NotInitializedError(VaultStateError): ...
class AlreadyInitializedError(VaultStateError): ...
class NotAuthenticatedError(VaultStateError): ...

class InvalidCredentialsError(VaultError): ...
class DecryptionError(VaultError): ...
class PersistenceError(VaultError): ...
class NotFoundError(VaultError): ...
