from click.testing import CliRunner
from lockbox.cli.commands import cli
from scripts.backup import main as backup_main

def test_cli_help():
	r = CliRunner().invoke(cli, ['--help'])
	assert r.exit_code == 0
	assert 'init' in r.output and 'change-password' in r.output

def test_generate_and_strength():
	runner = CliRunner()
	g = runner.invoke(cli, ['generate', '--length', '24'])
	assert g.exit_code == 0 and len(g.output.strip()) == 24
	bad = runner.invoke(cli, ['generate', '--length', '3'])
	assert bad.exit_code != 0
	s = runner.invoke(cli, ['pw-strength', 'Tr0ub4dor&3xQ'])
	assert 'Very Strong' in s.output

def test_backup_script(monkeypatch, tmp_path):
	monkeypatch.setenv('VAULT_PATH', str(tmp_path / 'vault'))
	runner = CliRunner()
	empty = runner.invoke(backup_main, ['--dest', str(tmp_path / 'bk')])
	assert empty.exit_code == 1 and 'nothing to backup' in empty.output
	runner.invoke(cli, ['init'], input='Abcd1234!\nAbcd1234!\n')
	r = runner.invoke(backup_main, ['--dest', str(tmp_path / 'bk')])
	assert r.exit_code == 0 and 'Backup written' in r.output
	assert list((tmp_path / 'bk').glob('vault_*/master_password_hash.bin'))
