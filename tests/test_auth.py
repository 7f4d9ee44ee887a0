import pytest
from lockbox.lib.auth import AuthError, hash_password, verify_password

def test_hash_and_verify():
	h = hash_password('Abcd1234!', rounds=4)
	assert isinstance(h, bytes)
	assert b'Abcd1234!' not in h
	assert verify_password('Abcd1234!', h)
	assert not verify_password('abcd1234!', h)

def test_hash_is_salted():
	assert hash_password('same', rounds=4) != hash_password('same', rounds=4)

def test_long_passwords_are_not_truncated():
	base = 'x' * 100
	h = hash_password(base + 'A', rounds=4)
	assert verify_password(base + 'A', h)
	assert not verify_password(base + 'B', h)

def test_empty_password_rejected():
	with pytest.raises(AuthError):
		hash_password('')
	assert not verify_password('', hash_password('pw', rounds=4))

def test_missing_or_malformed_hash():
	with pytest.raises(AuthError):
		verify_password('pw', None)
	with pytest.raises(AuthError):
		verify_password('pw', b'not-a-bcrypt-hash')

def test_unencodable_password_is_a_mismatch():
	h = hash_password('Abcd1234!', rounds=4)
	assert not verify_password('Abcd1234!\udcff', h)
