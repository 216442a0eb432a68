"""Unit tests for command prefix resolution."""

from slit.cli.resolve import Ambiguous, NotFound, Unique, resolve

COMMANDS = ['init', 'config', 'squash', 'undo', 'redo', 'push', 'pop', 'resolved', 'log']


def test_exact_name():
    assert resolve('push', COMMANDS) == Unique('push')


def test_unique_prefix():
    assert resolve('sq', COMMANDS) == Unique('squash')
    assert resolve('res', COMMANDS) == Unique('resolved')


def test_ambiguous_prefix():
    assert resolve('re', COMMANDS) == Ambiguous('re', ('redo', 'resolved'))
    assert resolve('p', COMMANDS) == Ambiguous('p', ('pop', 'push'))


def test_exact_match_wins_over_longer_names():
    assert resolve('log', ['log', 'logout']) == Unique('log')


def test_not_found():
    assert resolve('frobnicate', COMMANDS) == NotFound('frobnicate')
    assert resolve('', COMMANDS) == NotFound('')
