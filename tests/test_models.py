import pytest
from lockbox.lib import models
from lockbox.lib.errors import ValidationError, NotFoundError


def test_add_generates_id_and_timestamps():
    entries, cred = models.add_credential([], title='Gmail', password='x')
    assert entries == [cred]
    assert cred.id and cred.created_at == cred.updated_at
    assert cred.url == '' and cred.notes == ''


def test_add_does_not_mutate_input():
    base = []
    models.add_credential(base, title='Gmail', password='x')
    assert base == []


def test_ids_are_unique():
    entries = []
    for i in range(20):
        entries, _ = models.add_credential(entries, title=f't{i}', password='x')
    assert len({c.id for c in entries}) == 20


@pytest.mark.parametrize('values,field', [
    (dict(title='', password='x'), 'title'),
    (dict(title='   ', password='x'), 'title'),
    (dict(title='T', password=''), 'password'),
    (dict(title='T'), 'password'),
    (dict(title='T', password='x', url='not a url'), 'url'),
])
def test_add_validation(values, field):
    with pytest.raises(ValidationError) as exc:
        models.add_credential([], **values)
    assert field in exc.value.fields


def test_add_rejects_unknown_fields():
    with pytest.raises(ValidationError):
        models.add_credential([], title='T', password='x', id='mine')


def test_update_keeps_created_and_id():
    entries, cred = models.add_credential([], title='Gmail', password='x')
    entries2, upd = models.update_credential(entries, cred.id, username='bob')
    assert upd.id == cred.id and upd.created_at == cred.created_at
    assert upd.updated_at >= cred.updated_at
    assert upd.username == 'bob' and entries[0].username == ''
    assert entries2 == [upd]


def test_update_validation_and_missing():
    entries, cred = models.add_credential([], title='Gmail', password='x')
    with pytest.raises(ValidationError):
        models.update_credential(entries, cred.id, title='')
    with pytest.raises(ValidationError):
        models.update_credential(entries, cred.id, created_at='yesterday')
    with pytest.raises(NotFoundError):
        models.update_credential(entries, 'nope', title='x')


def test_delete():
    entries, a = models.add_credential([], title='A', password='x')
    entries, b = models.add_credential(entries, title='B', password='x')
    assert models.delete_credential(entries, a.id) == [b]
    with pytest.raises(NotFoundError):
        models.delete_credential(entries, 'nope')


def test_search_and_sort():
    entries, _ = models.add_credential([], title='github', password='x', username='octo')
    entries, _ = models.add_credential(entries, title='Bank', password='x', notes='savings account')
    entries, _ = models.add_credential(entries, title='Mail', password='x', email='me@example.com')
    assert [c.title for c in models.search_credentials(entries, 'OCTO')] == ['github']
    assert [c.title for c in models.search_credentials(entries, 'savings')] == ['Bank']
    assert [c.title for c in models.search_credentials(entries, 'example')] == ['Mail']
    assert len(models.search_credentials(entries, '')) == 3
    assert [c.title for c in models.sort_credentials(entries, 'title', descending=False)] == ['Bank', 'github', 'Mail']
    with pytest.raises(ValidationError):
        models.sort_credentials(entries, 'password')


def test_recent():
    entries, old = models.add_credential([], title='Old', password='x')
    entries, _ = models.update_credential(entries, old.id)
    entries[0].updated_at = '2000-01-01T00:00:00'
    entries, _ = models.add_credential(entries, title='New', password='x')
    assert [c.title for c in models.recent_credentials(entries, 30)] == ['New']


def test_email_is_free_text():
    entries, cred = models.add_credential([], title='Work', password='x', email='alice (work account)')
    assert cred.email == 'alice (work account)'
    _, upd = models.update_credential(entries, cred.id, email='shared inbox, ask IT')
    assert upd.email == 'shared inbox, ask IT'
