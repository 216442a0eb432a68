"""Unit tests for message assembly, editing and hooks."""

import pytest

from slit.core.objects import Identity
from slit.errors import CommandError, GeneralError
from slit.stack.message import (
    append_trailers,
    build_squash_buffer,
    hooks_dir,
    read_message_file,
    run_commit_msg_hook,
    run_editor,
    strip_comments,
)
from tests.conftest import write_script

CO = ('Co-authored-by', 'Other Contributor <another@example.com>')


class TestStripComments:
    """Test cleanup of edited messages."""

    def test_removes_comment_lines_and_collapses_blanks(self):
        text = "# header\n\nHello\n\n\nworld  \n# trailing comment\n\n"
        assert strip_comments(text) == "Hello\n\nworld\n"

    def test_only_comments_is_empty(self):
        assert strip_comments("# nothing\n#\n\n") == ''

    def test_indented_hash_is_kept(self):
        assert strip_comments("Subject\n\n  # not a comment\n") == "Subject\n\n  # not a comment\n"


class TestAppendTrailers:
    """Test trailer placement."""

    def test_separates_from_body_with_blank_line(self):
        assert append_trailers("Subject\n", [CO]) == (
            "Subject\n\nCo-authored-by: Other Contributor <another@example.com>\n"
        )

    def test_joins_existing_trailer_block(self):
        message = "Subject\n\nBody text\n\nSigned-off-by: A U Thor <author@example.com>\n"
        assert append_trailers(message, [CO]) == (
            "Subject\n\nBody text\n\n"
            "Signed-off-by: A U Thor <author@example.com>\n"
            "Co-authored-by: Other Contributor <another@example.com>\n"
        )

    def test_subject_is_never_a_trailer_block(self):
        assert append_trailers("Fix: the parser\n", [CO]) == (
            "Fix: the parser\n\nCo-authored-by: Other Contributor <another@example.com>\n"
        )

    def test_existing_trailer_not_repeated(self):
        message = "Subject\n\nCo-authored-by: Other Contributor <another@example.com>\n"
        assert append_trailers(message, [CO, CO]) == message

    def test_no_trailers(self):
        assert append_trailers("Subject\n\n\n", []) == "Subject\n"


def test_squash_buffer():
    author = Identity('A U Thor', 'author@example.com')
    buffer = build_squash_buffer(
        [('p1', 'First\n\nbody\n'), ('p2', 'Second\n')],
        [CO],
        author,
        None,
    )
    assert buffer.startswith(
        "# Commit message from patch #1: p1\nFirst\n\nbody\n\n"
        "# Commit message from patch #2: p2\nSecond\n\n"
        "Co-authored-by: Other Contributor <another@example.com>\n"
    )
    assert "# Author: A U Thor <author@example.com>" in buffer
    assert strip_comments(buffer) == (
        "First\n\nbody\n\nSecond\n\n"
        "Co-authored-by: Other Contributor <another@example.com>\n"
    )


def test_squash_buffer_names_explicit_patch():
    buffer = build_squash_buffer([('a', 'A\n'), ('b', 'B\n')], [], Identity('X', 'x@y'), 'q1')
    assert "# Patch:  q1" in buffer


class TestEditor:
    """Test running the editor on a buffer."""

    def test_edited_content_is_returned(self, repo, tmp_path):
        editor = write_script(tmp_path / 'editor', 'echo "edited" > "$1"\n')
        assert run_editor(repo, "original\n", editor) == "edited\n"
        assert not (repo.slit_dir / 'SQUASH_MSG').exists()

    def test_noop_editor_keeps_buffer(self, repo):
        assert run_editor(repo, "original\n", 'true') == "original\n"

    def test_failing_editor(self, repo):
        with pytest.raises(CommandError, match="editor `false` failed"):
            run_editor(repo, "original\n", 'false')
        assert not (repo.slit_dir / 'SQUASH_MSG').exists()


def test_read_message_file(tmp_path):
    path = tmp_path / 'msg'
    path.write_text("from file\n")
    assert read_message_file(str(path)) == "from file\n"
    with pytest.raises(GeneralError, match="cannot read message file"):
        read_message_file(str(tmp_path / 'missing'))


class TestCommitMsgHook:
    """Test the commit-msg hook."""

    def test_no_hook(self, repo):
        assert run_commit_msg_hook(repo, "msg\n") == "msg\n"

    def test_hook_can_rewrite_message(self, repo):
        write_script(repo.hooks_dir / 'commit-msg', 'echo "Hooked: yes" >> "$1"\n')
        assert run_commit_msg_hook(repo, "msg\n") == "msg\nHooked: yes\n"

    def test_failing_hook(self, repo):
        write_script(repo.hooks_dir / 'commit-msg', 'exit 1\n')
        with pytest.raises(CommandError, match="commit-msg hook failed"):
            run_commit_msg_hook(repo, "msg\n")

    def test_non_executable_hook_is_skipped(self, repo):
        (repo.hooks_dir / 'commit-msg').write_text("#!/bin/sh\nexit 1\n")
        assert run_commit_msg_hook(repo, "msg\n") == "msg\n"

    def test_hookspath_config(self, repo):
        repo.config.set('core', 'hookspath', 'myhooks')
        assert hooks_dir(repo) == repo.work_tree / 'myhooks'
        (repo.work_tree / 'myhooks').mkdir()
        write_script(repo.work_tree / 'myhooks' / 'commit-msg', 'exit 3\n')
        with pytest.raises(CommandError, match="exit status 3"):
            run_commit_msg_hook(repo, "msg\n")
