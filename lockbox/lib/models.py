"""Credential model and the pure collection operations behind the vault.

Nothing here touches storage or keys: every function takes a list of
credentials and returns a new list, leaving the input untouched, so the
vault can persist the result before adopting it.
"""
from __future__ import annotations
import uuid
from dataclasses import dataclass, asdict, fields, replace
from datetime import datetime, timedelta
from typing import Dict, List, Any
from urllib.parse import urlparse
from .errors import ValidationError, NotFoundError

EDITABLE_FIELDS = ('title', 'url', 'username', 'email', 'password', 'notes')
SORT_KEYS = {
	'title': lambda c: c.title.lower(),
	'created': lambda c: c.created_at,
	'updated': lambda c: c.updated_at,
}

def _now() -> str:
	return datetime.now().isoformat()

@dataclass
class Credential:
	id: str
	title: str
	password: str
	url: str = ''
	username: str = ''
	email: str = ''
	notes: str = ''
	created_at: str = ''
	updated_at: str = ''

	def to_dict(self) -> Dict[str, Any]:
		return asdict(self)

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> 'Credential':
		"""Strict constructor: unknown keys or non-string values raise TypeError."""
		known = {f.name for f in fields(cls)}
		extra = set(data) - known
		if extra:
			raise TypeError(f"Unknown credential fields: {sorted(extra)}")
		cred = cls(**data)
		for f in fields(cls):
			if not isinstance(getattr(cred, f.name), str):
				raise TypeError(f"Field {f.name} must be a string")
		return cred

	def matches(self, term: str) -> bool:
		t = term.lower()
		return any(t in (v or '').lower() for v in (self.title, self.username, self.email, self.url, self.notes))

def is_valid_url(url: str) -> bool:
	try:
		parsed = urlparse(url)
	except ValueError:
		return False
	return bool(parsed.scheme and parsed.netloc)

def validate_entry(cred: Credential) -> None:
	errors: Dict[str, str] = {}
	if not cred.title or not cred.title.strip():
		errors['title'] = 'Title is required'
	if not cred.password or not cred.password.strip():
		errors['password'] = 'Password is required'
	if cred.url and not is_valid_url(cred.url):
		errors['url'] = 'Please enter a valid URL'
	if errors:
		raise ValidationError('Invalid credential: ' + ', '.join(sorted(errors)), errors)

def _check_fields(changes: Dict[str, Any]) -> None:
	bad = [k for k in changes if k not in EDITABLE_FIELDS]
	if bad:
		raise ValidationError(f"Cannot set fields: {', '.join(sorted(bad))}", {k: 'Not editable' for k in bad})
	for k, v in changes.items():
		if v is not None and not isinstance(v, str):
			raise ValidationError(f"Field {k} must be text", {k: 'Must be text'})

def _index_of(collection: List[Credential], cred_id: str) -> int:
	for i, c in enumerate(collection):
		if c.id == cred_id:
			return i
	raise NotFoundError(f'Credential {cred_id} not found')

def add_credential(collection: List[Credential], **values) -> tuple[List[Credential], Credential]:
	_check_fields(values)
	now = _now()
	cred = Credential(id=uuid.uuid4().hex, title=values.get('title') or '', password=values.get('password') or '', created_at=now, updated_at=now,
		**{k: values.get(k) or '' for k in ('url', 'username', 'email', 'notes')})
	validate_entry(cred)
	while any(c.id == cred.id for c in collection):
		cred.id = uuid.uuid4().hex
	return [*collection, cred], cred

def update_credential(collection: List[Credential], cred_id: str, **changes) -> tuple[List[Credential], Credential]:
	_check_fields(changes)
	idx = _index_of(collection, cred_id)
	updated = replace(collection[idx], **{k: v or '' for k, v in changes.items()}, updated_at=_now())
	validate_entry(updated)
	result = list(collection)
	result[idx] = updated
	return result, updated

def delete_credential(collection: List[Credential], cred_id: str) -> List[Credential]:
	idx = _index_of(collection, cred_id)
	return collection[:idx] + collection[idx + 1:]

def get_credential(collection: List[Credential], cred_id: str) -> Credential:
	return collection[_index_of(collection, cred_id)]

def search_credentials(collection: List[Credential], term: str) -> List[Credential]:
	if not term:
		return list(collection)
	return [c for c in collection if c.matches(term)]

def sort_credentials(collection: List[Credential], by: str = 'updated', descending: bool = True) -> List[Credential]:
	if by not in SORT_KEYS:
		raise ValidationError(f"Unknown sort key: {by}")
	return sorted(collection, key=SORT_KEYS[by], reverse=descending)

def recent_credentials(collection: List[Credential], days: int) -> List[Credential]:
	cutoff = (datetime.now() - timedelta(days=days)).isoformat()
	return [c for c in collection if c.updated_at >= cutoff]
