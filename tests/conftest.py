import pytest
from lockbox.lib.storage import MemoryBlobStore
from lockbox.lib.vault import VaultStore

FAST = dict(iterations=10_000, bcrypt_rounds=4)
MASTER = 'Abcd1234!'


class FlakyStore(MemoryBlobStore):
    """Memory store whose writes to selected keys raise OSError."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail_keys = set()
        self.fail_removes = False

    def set(self, key, value):
        if key in self.fail_keys:
            raise OSError(f'disk full writing {key}')
        return super().set(key, value)

    def remove(self, key):
        if self.fail_removes:
            raise OSError('read-only store')
        return super().remove(key)


@pytest.fixture
def store():
    return FlakyStore()


@pytest.fixture
def make_vault(store):
    def _make(s=None, **kw):
        return VaultStore(s if s is not None else store, **{**FAST, **kw})
    return _make


@pytest.fixture
def vault(make_vault):
    v = make_vault()
    v.setup(MASTER)
    return v
