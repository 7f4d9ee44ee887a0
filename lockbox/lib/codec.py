"""Encrypted vault blob codec.

Blob layout (v1):
	[4-byte magic][1-byte version][12-byte nonce][ciphertext][16-byte GCM tag]

The magic and version are bound as associated data, so editing the header
fails authentication just like editing the ciphertext. The plaintext is
canonical JSON: {"credentials": [...], "version": 1}.
"""
from __future__ import annotations
import json, logging
from typing import List, Iterable
from config.settings import BLOB_MAGIC, BLOB_VERSION
from .crypto import VaultCrypto, CryptoError
from .errors import DecryptionError, ValidationError
from .models import Credential, validate_entry

log = logging.getLogger(__name__)

HEADER = BLOB_MAGIC + bytes([BLOB_VERSION])

class VaultCodec:
	def __init__(self, crypto: VaultCrypto | None = None):
		self.crypto = crypto or VaultCrypto()

	def serialize(self, collection: Iterable[Credential]) -> bytes:
		payload = {"version": BLOB_VERSION, "credentials": [c.to_dict() for c in collection]}
		return json.dumps(payload, sort_keys=True, separators=(',', ':')).encode('utf-8')

	def deserialize(self, raw: bytes) -> List[Credential]:
		try:
			payload = json.loads(raw.decode('utf-8'))
			if not isinstance(payload, dict) or payload.get('version') != BLOB_VERSION:
				raise DecryptionError('Unexpected vault payload structure')
			items = payload['credentials']
			if not isinstance(items, list):
				raise DecryptionError('Unexpected vault payload structure')
			creds = [Credential.from_dict(i) for i in items]
			for c in creds:
				validate_entry(c)
		except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError, AttributeError, ValidationError) as e:
			raise DecryptionError('Vault payload is not a valid credential collection') from e
		if len({c.id for c in creds}) != len(creds):
			raise DecryptionError('Vault payload contains duplicate ids')
		return creds

	def encrypt(self, collection: Iterable[Credential], key: bytes) -> bytes:
		return HEADER + self.crypto.encrypt(self.serialize(collection), key, aad=HEADER)

	def decrypt(self, blob: bytes, key: bytes) -> List[Credential]:
		if not blob or len(blob) < len(HEADER):
			raise DecryptionError('Vault blob is truncated')
		if blob[:len(BLOB_MAGIC)] != BLOB_MAGIC:
			raise DecryptionError('Not a vault blob')
		version = blob[len(BLOB_MAGIC)]
		if version != BLOB_VERSION:
			raise DecryptionError(f'Unsupported vault blob version {version}')
		try:
			raw = self.crypto.decrypt(blob[len(HEADER):], key, aad=HEADER)
		except CryptoError as e:
			log.debug('Vault blob failed authentication')
			raise DecryptionError('Unable to decrypt vault') from e
		return self.deserialize(raw)
