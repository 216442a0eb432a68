"""Integration tests for config command."""

from click.testing import CliRunner

from slit.cli.main import cli
from slit.core.config import Config


class TestConfigCommand:
    """Tests for slit config command."""

    def test_config_set_local(self, repo, monkeypatch):
        """Test setting a local config value."""
        runner = CliRunner()
        monkeypatch.chdir(repo.work_tree)

        result = runner.invoke(cli, ['config', 'set', 'stack.namelength', '12'])
        assert result.exit_code == 0, result.output
        assert 'Set repository config: stack.namelength = 12' in result.output

        result = runner.invoke(cli, ['config', 'get', 'stack.namelength'])
        assert result.output.strip() == '12'
        assert repo.config.get_int('stack', 'namelength', 30) == 12

    def test_config_get_nonexistent(self, repo, monkeypatch):
        """Test getting a nonexistent config value."""
        runner = CliRunner()
        monkeypatch.chdir(repo.work_tree)

        result = runner.invoke(cli, ['config', 'get', 'nonexistent.key'])
        assert result.exit_code == 1
        assert 'config key not found: nonexistent.key' in result.output

    def test_key_without_section_is_core(self, repo, monkeypatch):
        runner = CliRunner()
        monkeypatch.chdir(repo.work_tree)

        runner.invoke(cli, ['config', 'set', 'editor', 'nano'])
        assert repo.config.get('core', 'editor') == 'nano'

    def test_environment_override(self, repo, monkeypatch):
        runner = CliRunner()
        monkeypatch.chdir(repo.work_tree)
        monkeypatch.setenv('SLIT_USER_NAME', 'From Env')

        runner.invoke(cli, ['config', 'set', 'user.name', 'From File'])
        result = runner.invoke(cli, ['config', 'get', 'user.name'])
        assert result.output.strip() == 'From Env'

    def test_config_global(self, tmp_path, monkeypatch):
        """Test global config outside any repository."""
        runner = CliRunner()
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(cli, ['config', 'set', '--global', 'user.name', 'Global User'])
        assert result.exit_code == 0, result.output
        assert 'Global User' in Config.GLOBAL_CONFIG_PATH.read_text()

        result = runner.invoke(cli, ['config', 'get', 'user.name'])
        assert result.output.strip() == 'Global User'

    def test_local_requires_repository(self, tmp_path, monkeypatch):
        runner = CliRunner()
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(cli, ['config', 'set', 'user.name', 'Nobody'])
        assert result.exit_code == 1
        assert 'not a slit repository' in result.output
