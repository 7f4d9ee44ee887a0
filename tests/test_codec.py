import json
import pytest
from lockbox.lib.codec import VaultCodec, HEADER
from lockbox.lib.crypto import VaultCrypto
from lockbox.lib.errors import DecryptionError
from lockbox.lib.models import Credential, add_credential


@pytest.fixture
def codec():
    return VaultCodec(VaultCrypto(iterations=10_000))


@pytest.fixture
def key(codec):
    return codec.crypto.derive_key('Abcd1234!', codec.crypto.generate_salt())


def sample():
    entries, _ = add_credential([], title='Gmail', password='x', username='me', url='https://mail.google.com')
    entries, _ = add_credential(entries, title='Bank', password='p@ss', notes='pin 0000\nline two')
    return entries


def test_round_trip(codec, key):
    entries = sample()
    assert codec.decrypt(codec.encrypt(entries, key), key) == entries


def test_round_trip_empty(codec, key):
    assert codec.decrypt(codec.encrypt([], key), key) == []


def test_ciphertext_is_not_deterministic(codec, key):
    entries = sample()
    a, b = codec.encrypt(entries, key), codec.encrypt(entries, key)
    assert a != b
    assert a.startswith(HEADER) and b'Gmail' not in a


def test_wrong_key_rejected(codec, key):
    other = codec.crypto.derive_key('Abcd1234!', codec.crypto.generate_salt())
    with pytest.raises(DecryptionError):
        codec.decrypt(codec.encrypt(sample(), key), other)


@pytest.mark.parametrize('mangle', [
    lambda b: b[:3],
    lambda b: b[:len(HEADER) + 10],
    lambda b: b'XXXX' + b[4:],
    lambda b: b[:4] + bytes([9]) + b[5:],
    lambda b: b[:-1] + bytes([b[-1] ^ 1]),
    lambda b: b[:20] + bytes([b[20] ^ 1]) + b[21:],
    lambda b: b'',
])
def test_corrupt_blob_rejected(codec, key, mangle):
    with pytest.raises(DecryptionError):
        codec.decrypt(mangle(codec.encrypt(sample(), key)), key)


@pytest.mark.parametrize('plaintext', [
    b'not json',
    b'\xff\xfe',
    json.dumps([1, 2]).encode(),
    json.dumps({'version': 1}).encode(),
    json.dumps({'version': 2, 'credentials': []}).encode(),
    json.dumps({'version': 1, 'credentials': {}}).encode(),
    json.dumps({'version': 1, 'credentials': [{'id': 'a', 'title': 'T'}]}).encode(),
    json.dumps({'version': 1, 'credentials': [{'id': 'a', 'title': '', 'password': 'p'}]}).encode(),
    json.dumps({'version': 1, 'credentials': [{'id': 'a', 'title': 'T', 'password': 1}]}).encode(),
    json.dumps({'version': 1, 'credentials': [{'id': 'a', 'title': 'T', 'password': 'p', 'extra': 'x'}]}).encode(),
    json.dumps({'version': 1, 'credentials': [{'id': 'a', 'title': 'T', 'password': 'p'}] * 2}).encode(),
])
def test_authentic_but_malformed_plaintext_rejected(codec, key, plaintext):
    blob = HEADER + codec.crypto.encrypt(plaintext, key, aad=HEADER)
    with pytest.raises(DecryptionError):
        codec.decrypt(blob, key)


def test_serialize_is_canonical(codec):
    entries = sample()
    assert codec.serialize(entries) == codec.serialize([Credential.from_dict(e.to_dict()) for e in entries])
