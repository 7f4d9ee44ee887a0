"""Vault session state machine.

`VaultStore` owns the derived key and the decrypted credential list for one
authenticated session and is the only path through which credentials are
changed. Every mutation builds the new collection aside, encrypts and
persists it, and adopts it only once the store accepted the write.

States:
	UNINITIALIZED -> (setup) -> AUTHENTICATED <-> (logout/login) LOGGED_OUT
	any state -> (reset) -> UNINITIALIZED

A master password change is written through staged keys and a commit marker
(see `recover`) so the stored hash, salt and blob always belong together.
"""
from __future__ import annotations
import csv, enum, io, json, logging
from dataclasses import fields, replace
from typing import Callable, Dict, List, Optional
from config.settings import (
	DEFAULT_ITERATIONS, BCRYPT_ROUNDS, STORAGE_KEYS, PENDING_PREFIX, PENDING_COMMIT_KEY, INITIALIZED_VALUE,
	RECENT_DAYS, WEAK_SCORE_THRESHOLD
)
from . import models
from .auth import AuthError, hash_password, verify_password
from .codec import VaultCodec
from .crypto import VaultCrypto, validate_master_password, check_password_strength, wipe
from .errors import (
	VaultStateError, NotInitializedError, AlreadyInitializedError, NotAuthenticatedError,
	InvalidCredentialsError, DecryptionError, PersistenceError
)
from .models import Credential
from .storage import BlobStore

log = logging.getLogger(__name__)

HASH, SALT, BLOB, INITIALIZED = (STORAGE_KEYS[k] for k in ('hash', 'salt', 'blob', 'initialized'))
STAGED = {k: PENDING_PREFIX + k for k in (HASH, SALT, BLOB)}

class VaultState(enum.Enum):
	UNINITIALIZED = 'uninitialized'
	LOGGED_OUT = 'logged_out'
	AUTHENTICATED = 'authenticated'

def no_breach_check(password: str) -> bool:
	"""Local-only build: nothing is ever reported as breached."""
	return False

class VaultStore:
	def __init__(self, store: BlobStore, iterations: int = DEFAULT_ITERATIONS, bcrypt_rounds: int = BCRYPT_ROUNDS,
			breach_checker: Callable[[str], bool] = no_breach_check):
		self.store = store
		self.crypto = VaultCrypto(iterations)
		self.codec = VaultCodec(self.crypto)
		self.bcrypt_rounds = bcrypt_rounds
		self.breach_checker = breach_checker
		self._key: Optional[bytearray] = None
		self._entries: List[Credential] = []
		self.recover()
		initialized = self._read(INITIALIZED) == INITIALIZED_VALUE
		self.state = VaultState.LOGGED_OUT if initialized else VaultState.UNINITIALIZED

	# --- lifecycle ---

	def __enter__(self) -> 'VaultStore':
		return self

	def __exit__(self, *exc) -> None:
		self.close()

	def close(self) -> None:
		if self.state is VaultState.AUTHENTICATED:
			self.logout()

	@property
	def is_initialized(self) -> bool:
		return self.state is not VaultState.UNINITIALIZED

	@property
	def is_authenticated(self) -> bool:
		return self.state is VaultState.AUTHENTICATED

	# --- store access ---

	def _read(self, key: str) -> Optional[bytes]:
		try:
			return self.store.get(key)
		except OSError as e:
			log.error('Failed to read %s from vault store', key)
			raise PersistenceError(f'Failed to read {key}') from e

	def _write(self, key: str, value: bytes) -> None:
		try:
			ok = self.store.set(key, value)
		except OSError as e:
			log.error('Failed to write %s to vault store', key)
			raise PersistenceError(f'Failed to write {key}') from e
		if ok is False:
			log.error('Vault store rejected write of %s', key)
			raise PersistenceError(f'Failed to write {key}')

	def _delete(self, key: str) -> None:
		try:
			ok = self.store.remove(key)
		except OSError as e:
			raise PersistenceError(f'Failed to remove {key}') from e
		if ok is False:
			raise PersistenceError(f'Failed to remove {key}')

	def _discard(self, keys) -> None:
		"""Remove partially written keys after a failed write; leftovers are logged."""
		for key in keys:
			try:
				self._delete(key)
			except PersistenceError:
				log.warning('Could not clean up %s after failed write', key)

	def recover(self) -> bool:
		"""Finish or discard an interrupted master password change.

		With the commit marker present the staged hash/salt/blob are copied
		over the live keys; without it they are dropped. Returns True when a
		committed change was rolled forward.
		"""
		if self._read(PENDING_COMMIT_KEY) is None:
			for staged in STAGED.values():
				if self._read(staged) is not None:
					log.warning('Discarding uncommitted staged %s', staged)
					self._delete(staged)
			return False
		for live, staged in STAGED.items():
			value = self._read(staged)
			if value is not None:
				self._write(live, value)
		for staged in STAGED.values():
			self._delete(staged)
		self._delete(PENDING_COMMIT_KEY)
		log.info('Rolled forward committed master password change')
		return True

	# --- session ---

	def _require_auth(self) -> None:
		if self.state is not VaultState.AUTHENTICATED:
			raise NotAuthenticatedError('Vault is locked')

	def _clear(self) -> None:
		wipe(self._key)
		self._key = None
		self._entries.clear()
		self._entries = []

	def setup(self, password: str) -> None:
		if self.state is not VaultState.UNINITIALIZED:
			raise AlreadyInitializedError('Vault is already set up')
		validate_master_password(password)
		salt = self.crypto.generate_salt()
		hashed = hash_password(password, rounds=self.bcrypt_rounds)
		key = bytearray(self.crypto.derive_key(password, salt))
		written = []
		try:
			self._delete(BLOB)
			for k, v in ((SALT, salt), (HASH, hashed), (INITIALIZED, INITIALIZED_VALUE)):
				self._write(k, v)
				written.append(k)
		except PersistenceError:
			self._discard(reversed(written))
			wipe(key)
			raise
		self._key = key
		self._entries = []
		self.state = VaultState.AUTHENTICATED
		log.info('Vault initialised')

	def _check_password(self, password: str) -> bool:
		hashed = self._read(HASH)
		if not hashed:
			raise NotInitializedError('Vault has no master password')
		try:
			return verify_password(password, hashed)
		except AuthError:
			log.warning('Stored master password hash is unreadable')
			return False

	def login(self, password: str) -> None:
		if self.state is VaultState.UNINITIALIZED:
			raise NotInitializedError('Vault has not been set up')
		if self.state is VaultState.AUTHENTICATED:
			raise VaultStateError('Already logged in')
		self.recover()
		salt = self._read(SALT)
		if not salt:
			raise NotInitializedError('Vault has no key salt')
		if not self._check_password(password):
			log.warning('Login failed')
			raise InvalidCredentialsError('Invalid master password')
		key = bytearray(self.crypto.derive_key(password, salt))
		blob = self._read(BLOB)
		try:
			entries = self.codec.decrypt(blob, key) if blob is not None else []
		except DecryptionError:
			wipe(key)
			log.error('Stored vault could not be decrypted with a verified password')
			raise
		self._key = key
		self._entries = entries
		self.state = VaultState.AUTHENTICATED
		log.info('Vault unlocked (%d entries)', len(entries))

	def logout(self) -> None:
		self._require_auth()
		self._clear()
		self.state = VaultState.LOGGED_OUT
		log.info('Vault locked')

	def change_master_password(self, current: str, new: str) -> None:
		self._require_auth()
		if not self._check_password(current):
			log.warning('Master password change refused')
			raise InvalidCredentialsError('Current master password is incorrect')
		validate_master_password(new)
		salt = self.crypto.generate_salt()
		hashed = hash_password(new, rounds=self.bcrypt_rounds)
		key = bytearray(self.crypto.derive_key(new, salt))
		blob = self.codec.encrypt(self._entries, key)
		try:
			self.recover()
		except PersistenceError:
			wipe(key)
			raise
		try:
			for live, value in ((HASH, hashed), (SALT, salt), (BLOB, blob)):
				self._write(STAGED[live], value)
			self._write(PENDING_COMMIT_KEY, b'1')
		except PersistenceError:
			self._discard([PENDING_COMMIT_KEY, *STAGED.values()])
			wipe(key)
			log.error('Master password change aborted; previous password still valid')
			raise
		wipe(self._key)
		self._key = key
		try:
			self.recover()
		except PersistenceError:
			# committed: the next recover() finishes copying the staged values
			log.warning('Master password change committed but not yet applied')
		log.info('Master password changed')

	def reset(self) -> None:
		try:
			for key in (INITIALIZED, PENDING_COMMIT_KEY, *STAGED.values(), HASH, SALT, BLOB):
				self._delete(key)
		finally:
			self._clear()
			self.state = VaultState.UNINITIALIZED
			log.info('Vault reset')

	# --- credentials ---

	def _persist(self, entries: List[Credential]) -> None:
		self.recover()
		self._write(BLOB, self.codec.encrypt(entries, self._key))
		self._entries = entries

	def add_credential(self, **values) -> Credential:
		self._require_auth()
		entries, cred = models.add_credential(self._entries, **values)
		self._persist(entries)
		log.info('Added credential %s', cred.id)
		return replace(cred)

	def update_credential(self, cred_id: str, **changes) -> Credential:
		self._require_auth()
		entries, cred = models.update_credential(self._entries, cred_id, **changes)
		self._persist(entries)
		log.info('Updated credential %s', cred_id)
		return replace(cred)

	def delete_credential(self, cred_id: str) -> None:
		self._require_auth()
		self._persist(models.delete_credential(self._entries, cred_id))
		log.info('Deleted credential %s', cred_id)

	def get_by_id(self, cred_id: str) -> Credential:
		self._require_auth()
		return replace(models.get_credential(self._entries, cred_id))

	def list(self) -> List[Credential]:
		self._require_auth()
		return [replace(c) for c in self._entries]

	def search(self, term: str = '', sort: str = 'updated', descending: bool = True) -> List[Credential]:
		self._require_auth()
		found = models.search_credentials(self._entries, term)
		return [replace(c) for c in models.sort_credentials(found, sort, descending)]

	def stats(self) -> Dict[str, int]:
		self._require_auth()
		weak = [c for c in self._entries if check_password_strength(c.password)[0] < WEAK_SCORE_THRESHOLD]
		return {
			'total': len(self._entries),
			'recent': len(models.recent_credentials(self._entries, RECENT_DAYS)),
			'weak': len(weak),
		}

	def export_json(self) -> str:
		"""Plaintext export of every credential. The caller owns the output."""
		self._require_auth()
		log.warning('Exporting %d credentials as plaintext', len(self._entries))
		return json.dumps([c.to_dict() for c in self._entries], indent=2)

	def export_csv(self) -> str:
		"""Plaintext CSV export, one row per credential with a header row."""
		self._require_auth()
		log.warning('Exporting %d credentials as plaintext CSV', len(self._entries))
		out = io.StringIO()
		writer = csv.DictWriter(out, fieldnames=[f.name for f in fields(Credential)])
		writer.writeheader()
		writer.writerows(c.to_dict() for c in self._entries)
		return out.getvalue()

	def check_breach(self, password: str) -> bool:
		return bool(self.breach_checker(password))
