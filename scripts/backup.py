"""Simple backup utility script.

Usage (from repo root):
  python -m scripts.backup --dest backups/
"""
from __future__ import annotations
from pathlib import Path
import click
from lockbox.lib.storage import FileBlobStore

@click.command()
@click.option('--dest', type=click.Path(file_okay=False, path_type=Path), default=Path('backups'), help='Destination directory for backups.')
def main(dest: Path):
	store = FileBlobStore()
	if not store.exists():
		click.echo(f"No vault at {store.path}; nothing to backup.")
		raise SystemExit(1)
	target = store.backup(dest)
	click.echo(f"Backup written: {target}")

if __name__ == '__main__':  # pragma: no cover
	main()
