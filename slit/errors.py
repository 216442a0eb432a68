"""Error types for Slit.

Every failure a command can report derives from ``SlitError`` and carries
the process exit code the CLI uses for it:

- ``GeneralError`` (1): malformed input, detected before anything changes
- ``CommandError`` (2): the request does not make sense for the current
  stack (too few patches, name collisions, empty messages, dirty trees)
- ``StackConflict`` (3): the command stopped with the stack Conflicted
"""


class SlitError(Exception):
    """Base class for errors reported to the user."""

    exit_code = 1


class GeneralError(SlitError):
    """Bad input shape: invalid names, unknown patches or commands."""

    exit_code = 1


class NotFound(GeneralError):
    """A patch, ref or object lookup failed."""


class ObjectError(GeneralError):
    """The object database is missing an object or holds a corrupt one."""


class CommandError(SlitError):
    """Semantically invalid request given the current state."""

    exit_code = 2


class DirtyWorkingTree(CommandError):
    """The work tree has local changes or unresolved conflict markers."""


class StackConflict(SlitError):
    """An operation halted with merge conflicts left in the work tree."""

    exit_code = 3

    def __init__(self, message: str, paths=None):
        super().__init__(message)
        self.paths = list(paths or [])
