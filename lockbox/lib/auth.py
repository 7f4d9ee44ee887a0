"""Authentication helpers (hash & verify the master password).

The verification hash is bcrypt over a SHA-256 pre-hash of the password so
passwords longer than bcrypt's 72 byte limit are neither truncated nor
rejected. bcrypt salts every hash, so the hash never shares material with
the key derivation salt.
"""
from __future__ import annotations
import base64, hashlib
import bcrypt
from config.settings import BCRYPT_ROUNDS

class AuthError(Exception):
	pass

def _prehash(password: str) -> bytes:
	return base64.b64encode(hashlib.sha256(password.encode('utf-8')).digest())

def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> bytes:
	if not password:
		raise AuthError('Empty password')
	return bcrypt.hashpw(_prehash(password), bcrypt.gensalt(rounds=rounds))

def verify_password(password: str, hashed: bytes | None) -> bool:
	"""Constant-time check; False on mismatch, AuthError on missing/malformed hash."""
	if not hashed:
		raise AuthError('No stored master password hash')
	if not password:
		return False
	try:
		candidate = _prehash(password)
	except UnicodeEncodeError:
		return False
	try:
		return bcrypt.checkpw(candidate, hashed)
	except ValueError as e:
		raise AuthError('Malformed stored master password hash') from e
