"""Cryptographic utilities (key derivation, AEAD, password strength)."""
from __future__ import annotations
import secrets, string
from typing import Tuple
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.backends import default_backend
from config.settings import (
	DEFAULT_ITERATIONS, MIN_ITERATIONS, SALT_LENGTH, KEY_LENGTH, NONCE_LENGTH, AUTH_TAG_LENGTH,
	MASTER_PASSWORD_MIN_LENGTH, SPECIAL_CHARS,
	GENERATOR_DEFAULT_LENGTH, GENERATOR_MIN_LENGTH, GENERATOR_MAX_LENGTH
)
from .errors import ValidationError

class CryptoError(Exception):
	pass

class VaultCrypto:
	def __init__(self, iterations: int = DEFAULT_ITERATIONS):
		if iterations < MIN_ITERATIONS:
			raise CryptoError(f"KDF iterations must be at least {MIN_ITERATIONS}")
		self.iterations = iterations
		self._backend = default_backend()

	def generate_salt(self) -> bytes:
		return secrets.token_bytes(SALT_LENGTH)

	def derive_key(self, password: str, salt: bytes) -> bytes:
		"""PBKDF2-HMAC-SHA256 over the master password; same inputs, same key."""
		if not password:
			raise CryptoError("Password empty")
		if not salt:
			raise CryptoError("Salt empty")
		kdf = PBKDF2HMAC(algorithm=hashes.SHA256(), length=KEY_LENGTH, salt=bytes(salt), iterations=self.iterations, backend=self._backend)
		return kdf.derive(password.encode('utf-8'))

	def encrypt(self, data: bytes, key: bytes, aad: bytes = b'') -> bytes:
		"""AES-256-GCM. Output layout: nonce + ciphertext + tag."""
		if len(key) != KEY_LENGTH: raise CryptoError("Bad key length")
		nonce = secrets.token_bytes(NONCE_LENGTH)
		enc = Cipher(algorithms.AES(bytes(key)), modes.GCM(nonce), backend=self._backend).encryptor()
		if aad:
			enc.authenticate_additional_data(aad)
		ct = enc.update(data) + enc.finalize()
		return nonce + ct + enc.tag

	def decrypt(self, blob: bytes, key: bytes, aad: bytes = b'') -> bytes:
		if len(key) != KEY_LENGTH: raise CryptoError("Bad key length")
		if len(blob) < NONCE_LENGTH + AUTH_TAG_LENGTH: raise CryptoError("Ciphertext too short")
		nonce = blob[:NONCE_LENGTH]; tag = blob[-AUTH_TAG_LENGTH:]; ct = blob[NONCE_LENGTH:-AUTH_TAG_LENGTH]
		dec = Cipher(algorithms.AES(bytes(key)), modes.GCM(nonce, tag), backend=self._backend).decryptor()
		if aad:
			dec.authenticate_additional_data(aad)
		try:
			return dec.update(ct) + dec.finalize()
		except InvalidTag as e:
			raise CryptoError("Decrypt failed: authentication tag mismatch") from e

def wipe(buf: bytearray | None) -> None:
	"""Overwrite a mutable key buffer in place."""
	if buf is None:
		return
	for i in range(len(buf)):
		buf[i] = 0

def validate_master_password(password: str) -> None:
	"""Raise ValidationError unless the password meets the master password policy."""
	if not password or len(password) < MASTER_PASSWORD_MIN_LENGTH:
		raise ValidationError(f'Master password must be at least {MASTER_PASSWORD_MIN_LENGTH} characters long')
	try:
		password.encode('utf-8')
	except UnicodeEncodeError as e:
		raise ValidationError('Master password contains characters that cannot be encoded') from e
	if not any(c.isupper() for c in password):
		raise ValidationError('Master password must contain at least one uppercase letter')
	if not any(c.islower() for c in password):
		raise ValidationError('Master password must contain at least one lowercase letter')
	if not any(c.isdigit() for c in password):
		raise ValidationError('Master password must contain at least one number')
	if all(c.isalnum() for c in password):
		raise ValidationError('Master password must contain at least one special character')

def _sequential_runs(password: str) -> int:
	p = password.lower(); n = 0
	for a, b, c in zip(p, p[1:], p[2:]):
		same_kind = (a.isdigit() and b.isdigit() and c.isdigit()) or not (a.isdigit() or b.isdigit() or c.isdigit())
		if same_kind and ord(b) == ord(a) + 1 and ord(c) == ord(a) + 2:
			n += 1
	return n

def _repeated_runs(password: str) -> int:
	return sum(1 for a, b, c in zip(password, password[1:], password[2:]) if a == b == c)

def strength_label(score: int) -> str:
	if score >= 80: return 'Very Strong'
	if score >= 60: return 'Strong'
	if score >= 40: return 'Medium'
	if score >= 20: return 'Weak'
	return 'Very Weak'

def check_password_strength(password: str) -> Tuple[int, str]:
	"""Score a password 0-100 and return (score, label)."""
	if not password:
		return 0, strength_label(0)
	L = len(password)
	score = min(30, L * 2)
	sets = [any(c.islower() for c in password), any(c.isupper() for c in password), any(c.isdigit() for c in password), any(not c.isalnum() for c in password)]
	score += sum(sets) * 10
	score += min(30, int(len(set(password)) / L * 30))
	score -= min(20, _sequential_runs(password) * 2)
	score -= min(20, _repeated_runs(password) * 2)
	score = max(0, min(100, score))
	return score, strength_label(score)

def generate_password(length: int = GENERATOR_DEFAULT_LENGTH, upper: bool = True, lower: bool = True, digits: bool = True, symbols: bool = True) -> str:
	"""Random password with at least one character from every selected class."""
	if not GENERATOR_MIN_LENGTH <= length <= GENERATOR_MAX_LENGTH:
		raise ValidationError(f'Length must be between {GENERATOR_MIN_LENGTH} and {GENERATOR_MAX_LENGTH}')
	classes = [s for s, on in ((string.ascii_uppercase, upper), (string.ascii_lowercase, lower), (string.digits, digits), (SPECIAL_CHARS, symbols)) if on]
	if not classes:
		classes = [string.ascii_lowercase]
	pool = ''.join(classes)
	chars = [secrets.choice(s) for s in classes]
	chars += [secrets.choice(pool) for _ in range(length - len(chars))]
	secrets.SystemRandom().shuffle(chars)
	return ''.join(chars)
