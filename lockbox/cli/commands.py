"""CLI commands implemented with click.

Every command opens the vault in the directory named by VAULT_PATH, unlocks
it with the master password, runs, and locks it again on exit.
"""
from __future__ import annotations
import logging, click
from contextlib import contextmanager
from pathlib import Path
from config.settings import LOG_LEVEL, GENERATOR_DEFAULT_LENGTH
from lockbox.lib.crypto import check_password_strength, generate_password
from lockbox.lib.errors import VaultError, NotInitializedError
from lockbox.lib.storage import FileBlobStore
from lockbox.lib.vault import VaultStore

def _open_vault() -> VaultStore:
	try:
		return VaultStore(FileBlobStore())
	except VaultError as e:
		raise click.ClickException(str(e)) from e

@contextmanager
def _session(password: str):
	vault = _open_vault()
	try:
		vault.login(password)
		yield vault
	except NotInitializedError as e:
		raise click.ClickException(f'{e}. Run `lockbox init` first.') from e
	except VaultError as e:
		raise click.ClickException(str(e)) from e
	finally:
		vault.close()

@click.group()
@click.option('--verbose', is_flag=True, help='Enable debug logging.')
def cli(verbose):
	"""lockbox: local encrypted password manager"""
	logging.basicConfig(level=logging.DEBUG if verbose else LOG_LEVEL, format='%(levelname)s %(name)s: %(message)s')

@cli.command()
@click.option('--password', prompt='Master password', hide_input=True, confirmation_prompt=True)
@click.option('--force', is_flag=True, help='Erase an existing vault first.')
def init(password, force):
	"""Set up a new vault protected by a master password."""
	vault = _open_vault()
	try:
		if force:
			vault.reset()
		vault.setup(password)
		click.echo('Vault created.')
	except VaultError as e:
		raise click.ClickException(str(e)) from e
	finally:
		vault.close()

@cli.command()
@click.option('--password', prompt='Master password', hide_input=True)
@click.option('--title', prompt=True)
@click.option('--username', default='')
@click.option('--email', default='')
@click.option('--url', default='')
@click.option('--notes', default='')
@click.option('--generate', is_flag=True, help='Generate the secret instead of prompting.')
def add(password, title, username, email, url, notes, generate):
	"""Add a credential."""
	secret = generate_password() if generate else click.prompt('Secret', hide_input=True)
	with _session(password) as vault:
		cred = vault.add_credential(title=title, username=username, email=email, url=url, notes=notes, password=secret)
		click.echo(f'Added {cred.id}.')

@cli.command('list')
@click.option('--password', prompt='Master password', hide_input=True)
@click.option('--search', 'term', default='', help='Filter by title, username, email, url or notes.')
@click.option('--sort', type=click.Choice(['title', 'created', 'updated']), default='updated')
@click.option('--asc', is_flag=True, help='Ascending order.')
def list_entries(password, term, sort, asc):
	with _session(password) as vault:
		items = vault.search(term, sort=sort, descending=not asc)
		if not items:
			click.echo('No credentials.')
		for c in items:
			who = c.username or c.email
			click.echo(f"{c.id}: {c.title}" + (f" [{who}]" if who else ''))

@cli.command('show')
@click.argument('cred_id')
@click.option('--password', prompt='Master password', hide_input=True)
@click.option('--reveal', is_flag=True, help='Print the secret in clear.')
def show_entry(cred_id, password, reveal):
	"""Show a credential by ID."""
	with _session(password) as vault:
		c = vault.get_by_id(cred_id)
		secret = c.password if reveal else '********'
		click.echo(f"ID: {c.id}\nTitle: {c.title}\nUsername: {c.username or '-'}\nEmail: {c.email or '-'}\nURL: {c.url or '-'}\nPassword: {secret}\nCreated: {c.created_at}\nUpdated: {c.updated_at}\n---\n{c.notes}")

@cli.command('edit')
@click.argument('cred_id')
@click.option('--password', prompt='Master password', hide_input=True)
@click.option('--title')
@click.option('--username')
@click.option('--email')
@click.option('--url')
@click.option('--notes')
@click.option('--secret', help='New password for the credential.')
def edit_entry(cred_id, password, title, username, email, url, notes, secret):
	"""Change fields of a credential; omitted fields are kept."""
	changes = {k: v for k, v in dict(title=title, username=username, email=email, url=url, notes=notes, password=secret).items() if v is not None}
	if not changes:
		raise click.UsageError('Nothing to change.')
	with _session(password) as vault:
		vault.update_credential(cred_id, **changes)
		click.echo(f'Updated {cred_id}.')

@cli.command('delete')
@click.argument('cred_id')
@click.option('--password', prompt='Master password', hide_input=True)
@click.option('--yes', is_flag=True, help='Do not ask for confirmation.')
def delete_entry(cred_id, password, yes):
	with _session(password) as vault:
		title = vault.get_by_id(cred_id).title
		if not yes:
			click.confirm(f'Delete {title}?', abort=True)
		vault.delete_credential(cred_id)
		click.echo(f'Deleted {cred_id}.')

@cli.command('change-password')
@click.option('--password', prompt='Current master password', hide_input=True)
@click.option('--new-password', prompt='New master password', hide_input=True, confirmation_prompt=True)
def change_password(password, new_password):
	with _session(password) as vault:
		vault.change_master_password(password, new_password)
		click.echo('Master password changed.')

@cli.command()
@click.confirmation_option(prompt='Erase the vault and every stored credential?')
def reset():
	"""Erase the vault."""
	vault = _open_vault()
	try:
		vault.reset()
	except VaultError as e:
		raise click.ClickException(str(e)) from e
	click.echo('Vault erased.')

@cli.command()
@click.option('--password', prompt='Master password', hide_input=True)
@click.option('--output', type=click.Path(dir_okay=False, path_type=Path), help='Write to a file instead of stdout.')
@click.option('--format', 'fmt', type=click.Choice(['json', 'csv']), default='json', show_default=True)
def export(password, output, fmt):
	"""Export all credentials as UNENCRYPTED JSON or CSV."""
	with _session(password) as vault:
		data = vault.export_csv() if fmt == 'csv' else vault.export_json()
	if output:
		try:
			output.write_text(data, encoding='utf-8', newline='')
		except OSError as e:
			raise click.ClickException(f'Cannot write {output}: {e.strerror or e}') from e
		click.echo(f'Exported to {output} (unencrypted).', err=True)
	else:
		click.echo(data)

@cli.command()
@click.option('--password', prompt='Master password', hide_input=True)
def stats(password):
	with _session(password) as vault:
		s = vault.stats()
	click.echo(f"Total: {s['total']}\nUpdated recently: {s['recent']}\nWeak passwords: {s['weak']}")

@cli.command()
@click.option('--length', default=GENERATOR_DEFAULT_LENGTH, show_default=True)
@click.option('--no-upper', is_flag=True)
@click.option('--no-lower', is_flag=True)
@click.option('--no-digits', is_flag=True)
@click.option('--no-symbols', is_flag=True)
def generate(length, no_upper, no_lower, no_digits, no_symbols):
	"""Print a random password."""
	try:
		pw = generate_password(length, upper=not no_upper, lower=not no_lower, digits=not no_digits, symbols=not no_symbols)
	except VaultError as e:
		raise click.BadParameter(str(e), param_hint='--length') from e
	click.echo(pw)

@cli.command('pw-strength')
@click.argument('password')
def pw_strength_cmd(password):
	score, label = check_password_strength(password)
	click.echo(f"Score: {score} -> {label}")
