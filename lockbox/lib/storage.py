"""Opaque key/value blob stores used to persist the vault.

A store only needs `get`, `set` and `remove`. `set` must not destroy the
previous value if the write fails; `FileBlobStore` writes a temp file and
renames it over the target.
"""
from __future__ import annotations
import os, re, shutil, logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Protocol
from config.settings import DEFAULT_VAULT_PATH, BACKUP_PREFIX

log = logging.getLogger(__name__)

KEY_RE = re.compile(r'^[a-z0-9_]+$')

class BlobStore(Protocol):
	def get(self, key: str) -> Optional[bytes]: ...
	def set(self, key: str, value: bytes) -> Optional[bool]: ...
	def remove(self, key: str) -> Optional[bool]: ...

def resolve_vault_path() -> Path:
	# Resolve dynamically to honor environment overrides in tests
	env_path = os.environ.get('VAULT_PATH')
	return Path(env_path) if env_path else DEFAULT_VAULT_PATH

class MemoryBlobStore:
	def __init__(self, initial: Dict[str, bytes] | None = None):
		self.data: Dict[str, bytes] = dict(initial or {})

	def get(self, key: str) -> Optional[bytes]:
		return self.data.get(key)

	def set(self, key: str, value: bytes) -> bool:
		self.data[key] = bytes(value)
		return True

	def remove(self, key: str) -> bool:
		self.data.pop(key, None)
		return True

class FileBlobStore:
	"""One file per key inside a vault directory."""

	def __init__(self, path: Path | str | None = None):
		self.path = Path(path) if path is not None else resolve_vault_path()

	def _file(self, key: str) -> Path:
		if not KEY_RE.match(key):
			raise ValueError(f'Invalid store key: {key!r}')
		return self.path / f'{key}.bin'

	def exists(self) -> bool:
		return self.path.is_dir() and any(self.path.glob('*.bin'))

	def get(self, key: str) -> Optional[bytes]:
		f = self._file(key)
		if not f.exists():
			return None
		return f.read_bytes()

	def set(self, key: str, value: bytes) -> bool:
		self.path.mkdir(parents=True, exist_ok=True)
		target = self._file(key)
		tmp = target.with_suffix('.tmp')
		try:
			with open(tmp, 'wb') as fh:
				fh.write(value)
				fh.flush()
				os.fsync(fh.fileno())
			os.replace(tmp, target)
		except OSError:
			tmp.unlink(missing_ok=True)
			raise
		return True

	def remove(self, key: str) -> bool:
		self._file(key).unlink(missing_ok=True)
		return True

	def backup(self, dest: Path) -> Path:
		"""Copy the vault directory into a timestamped folder under `dest`."""
		if not self.exists():
			raise FileNotFoundError(f'No vault at {self.path}')
		dest.mkdir(parents=True, exist_ok=True)
		stamp = datetime.now().strftime('%Y%m%d_%H%M%S_%f')
		target = dest / f'{BACKUP_PREFIX}{stamp}'
		shutil.copytree(self.path, target, ignore=shutil.ignore_patterns('*.tmp'))
		log.info('Vault backed up to %s', target)
		return target
