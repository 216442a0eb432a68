"""Integration tests for the slit command line."""

import pytest
from click.testing import CliRunner

from slit.cli.main import cli
from slit.stack.stack import Stack
from tests.conftest import write_script


@pytest.fixture
def runner():
    """Create a CLI runner."""
    return CliRunner()


@pytest.fixture
def in_stack(foo_stack, monkeypatch):
    """Run commands from the work tree of the p0..p5 stack."""
    monkeypatch.chdir(foo_stack.repo.work_tree)
    return foo_stack


def applied(stack):
    return Stack.load(stack.repo).state.applied


class TestInit:
    """Test slit init."""

    def test_init_records_existing_files(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / 'hello.txt').write_text('hello\n')

        result = runner.invoke(cli, ['init'])

        assert result.exit_code == 0, result.output
        assert 'Recorded 1 file(s)' in result.output
        assert 'Initialized stack on branch main' in result.output
        assert (tmp_path / '.slit' / 'refs' / 'stacks' / 'main').is_file()

    def test_init_twice(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        runner.invoke(cli, ['init'])
        result = runner.invoke(cli, ['init'])
        assert result.exit_code == 1
        assert 'already has a stack' in result.output

    def test_outside_repository(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(cli, ['pop'])
        assert result.exit_code == 1
        assert 'not a slit repository' in result.output


class TestSquashCommand:
    """Test slit squash."""

    def test_squash_with_message(self, runner, in_stack):
        result = runner.invoke(cli, ['squash', '-m', 'wee woo', 'p1', 'p2'])
        assert result.exit_code == 0, result.output
        assert 'Squashed p1, p2 into wee-woo' in result.output
        assert '> p5' in result.output
        assert applied(in_stack) == ['p0', 'wee-woo', 'p3', 'p4', 'p5']

    def test_command_prefix(self, runner, in_stack):
        result = runner.invoke(cli, ['sq', '-n', 'joined', '-m', 'joined', 'p1', 'p2'])
        assert result.exit_code == 0, result.output
        assert 'joined' in applied(in_stack)

    def test_conflict_exits_3(self, runner, in_stack):
        result = runner.invoke(cli, ['squash', '-n', 'q4', '-m', 'q4', 'p5', 'p4'])
        assert result.exit_code == 3
        assert 'merge conflict in foo.txt' in result.output
        assert 'slit resolved' in result.output

        result = runner.invoke(cli, ['undo', '--hard'])
        assert result.exit_code == 0, result.output
        assert applied(in_stack) == ['p0', 'p1', 'p2', 'p3', 'p4', 'p5']

    def test_too_few_patches_exits_2(self, runner, in_stack):
        result = runner.invoke(cli, ['squash', '-m', 'x', 'p1'])
        assert result.exit_code == 2
        assert 'need at least two patches' in result.output

    def test_too_few_patches_without_identity_exits_2(self, runner, in_stack, monkeypatch):
        monkeypatch.delenv('SLIT_AUTHOR_NAME')
        monkeypatch.delenv('SLIT_AUTHOR_EMAIL')
        result = runner.invoke(cli, ['squash', '-m', 'x', 'p1'])
        assert result.exit_code == 2
        assert 'need at least two patches' in result.output

    def test_displaced_patch_conflict_exits_3(self, runner, stack, monkeypatch):
        stack.new_patch('p0', 'p0\n', {'foo.txt': b'a\n'})
        stack.new_patch('u', 'u\n', {'foo.txt': b'c\n'})
        stack.pop()
        stack.new_patch('p1', 'p1\n', {'foo.txt': b'b\n'})
        monkeypatch.chdir(stack.repo.work_tree)

        result = runner.invoke(cli, ['squash', '-n', 'sq', '-m', 'sq', 'p0', 'u'])

        assert result.exit_code == 3
        assert 'Squashed p0, u into sq' in result.output
        assert 'merge conflict in foo.txt' in result.output
        assert applied(stack) == ['sq']

    def test_unknown_patch_exits_1(self, runner, in_stack):
        result = runner.invoke(cli, ['squash', '-m', 'x', 'p1', 'nope'])
        assert result.exit_code == 1
        assert 'patch `nope` does not exist' in result.output

    def test_bad_author_exits_1(self, runner, in_stack):
        result = runner.invoke(cli, ['squash', '-m', 'x', '--author', 'nobody', 'p1', 'p2'])
        assert result.exit_code == 1
        assert 'invalid identity' in result.output

    def test_author_option(self, runner, in_stack):
        result = runner.invoke(cli, ['squash', '-m', 'x', '--author', 'Some One <one@example.com>',
                                     'p1', 'p2'])
        assert result.exit_code == 0, result.output
        state = Stack.load(in_stack.repo).state
        assert str(state.get('x').author) == 'Some One <one@example.com>'

    def test_failing_editor_exits_2(self, runner, in_stack):
        result = runner.invoke(cli, ['squash', 'p1', 'p2'])
        assert result.exit_code == 2
        assert 'editor `false` failed' in result.output
        assert applied(in_stack) == ['p0', 'p1', 'p2', 'p3', 'p4', 'p5']

    def test_configured_editor(self, runner, in_stack, tmp_path, monkeypatch):
        monkeypatch.delenv('SLIT_EDITOR')
        editor = write_script(tmp_path / 'editor', 'echo "From config" > "$1"\n')
        runner.invoke(cli, ['config', 'set', 'core.editor', editor])

        result = runner.invoke(cli, ['squash', 'p1', 'p2'])
        assert result.exit_code == 0, result.output
        assert 'from-config' in applied(in_stack)

    def test_message_from_stdin(self, runner, in_stack):
        result = runner.invoke(cli, ['squash', '-f', '-', 'p1', 'p2'], input='Piped in\n')
        assert result.exit_code == 0, result.output
        assert 'piped-in' in applied(in_stack)

    def test_template_to_stdout(self, runner, in_stack):
        result = runner.invoke(cli, ['squash', '--save-template', '-', 'p1', 'p2'])
        assert result.exit_code == 0, result.output
        assert '# Commit message from patch #1: p1' in result.output
        assert applied(in_stack) == ['p0', 'p1', 'p2', 'p3', 'p4', 'p5']

    def test_template_with_author_needs_no_identity(self, runner, in_stack, monkeypatch):
        monkeypatch.delenv('SLIT_AUTHOR_NAME')
        monkeypatch.delenv('SLIT_AUTHOR_EMAIL')
        result = runner.invoke(cli, ['squash', '--save-template', '-', '--author', 'Some One <one@example.com>',
                                     'p1', 'p2'])
        assert result.exit_code == 0, result.output
        assert '# Author: Some One <one@example.com>' in result.output

    def test_template_to_file(self, runner, in_stack, tmp_path):
        path = tmp_path / 'msg'
        result = runner.invoke(cli, ['squash', '--save-template', str(path), 'p1', 'p2'])
        assert result.exit_code == 0, result.output
        assert 'Template saved' in result.output
        assert path.read_text().startswith('# Commit message from patch #1: p1\np1\n')

    def test_no_patches_is_usage_error(self, runner, in_stack):
        result = runner.invoke(cli, ['squash'])
        assert result.exit_code == 2


class TestCommandResolution:
    """Test abbreviated command names."""

    def test_ambiguous_prefix(self, runner, in_stack):
        result = runner.invoke(cli, ['re', '-n', '1'])
        assert result.exit_code == 2
        assert 'ambiguous command `re`: redo, resolved' in result.output

    def test_unknown_command(self, runner, in_stack):
        result = runner.invoke(cli, ['frobnicate'])
        assert result.exit_code == 2

    def test_help_lists_commands(self, runner):
        result = runner.invoke(cli, ['--help'])
        assert result.exit_code == 0
        assert 'squash' in result.output
        assert 'undo' in result.output


class TestStackCommands:
    """Test undo, redo, push, pop and log."""

    def test_undo_redo(self, runner, in_stack):
        result = runner.invoke(cli, ['undo', '-n', '2'])
        assert result.exit_code == 0, result.output
        assert applied(in_stack) == ['p0', 'p1', 'p2', 'p3']

        result = runner.invoke(cli, ['redo'])
        assert result.exit_code == 0, result.output
        assert applied(in_stack) == ['p0', 'p1', 'p2', 'p3', 'p4']

    def test_redo_without_undo_exits_2(self, runner, in_stack):
        result = runner.invoke(cli, ['redo'])
        assert result.exit_code == 2
        assert 'there is no undo to redo' in result.output

    def test_undo_too_far_exits_2(self, runner, in_stack):
        result = runner.invoke(cli, ['undo', '-n', '10'])
        assert result.exit_code == 2
        assert 'not enough undo information available' in result.output

    def test_push_pop(self, runner, in_stack):
        result = runner.invoke(cli, ['pop', '-n', '2'])
        assert result.exit_code == 0, result.output
        assert 'Popped p5' in result.output
        assert '- p5' in result.output

        result = runner.invoke(cli, ['push', '--all'])
        assert result.exit_code == 0, result.output
        assert 'Pushed 2 patch(es)' in result.output

    def test_push_conflict_then_resolved(self, runner, in_stack):
        runner.invoke(cli, ['pop', '-n', '2'])
        result = runner.invoke(cli, ['push', 'p5'])
        assert result.exit_code == 3
        assert 'merge conflict in foo.txt' in result.output

        result = runner.invoke(cli, ['pop'])
        assert result.exit_code == 2
        assert 'resolve outstanding conflicts first' in result.output

        (in_stack.repo.work_tree / 'foo.txt').write_text('resolved\n')
        result = runner.invoke(cli, ['resolved'])
        assert result.exit_code == 0, result.output
        assert 'Resolved p5' in result.output
        assert applied(in_stack) == ['p0', 'p1', 'p2', 'p3', 'p5']

    def test_log(self, runner, in_stack):
        result = runner.invoke(cli, ['log', '-n', '2'])
        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert len(lines) == 2
        assert lines[0].split()[0] == '6'
        assert lines[0].endswith('new p5')
        assert lines[1].endswith('new p4')
