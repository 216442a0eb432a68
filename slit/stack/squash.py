"""Squash several patches into one."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple, Union

import click

from slit.core.objects import Identity
from slit.errors import CommandError
from slit.stack.message import (
    Trailer,
    append_trailers,
    build_squash_buffer,
    hooks_dir,
    read_message_file,
    run_commit_msg_hook,
    run_editor,
    strip_comments,
)
from slit.stack.patch import make_patch_name, validate_patch_name
from slit.stack.planner import plan_reorder, reapply

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Inline:
    """Message given on the command line."""
    text: str


@dataclass(frozen=True)
class File:
    """Message read from a file ('-' for stdin)."""
    path: str


@dataclass(frozen=True)
class Template:
    """Write the editor buffer to a file instead of squashing."""
    path: str


@dataclass(frozen=True)
class EditorInvocation:
    """Compose the message in the user's editor."""


MessageSource = Union[Inline, File, Template, EditorInvocation]


def select_message_source(
    message: Optional[str] = None,
    file: Optional[str] = None,
    save_template: Optional[str] = None,
) -> MessageSource:
    """Pick the message source, in order inline, file, template, editor."""
    if message is not None:
        return Inline(message)
    if file is not None:
        return File(file)
    if save_template is not None:
        return Template(save_template)
    return EditorInvocation()


@dataclass
class SquashRequest:
    """
    What to squash and how to describe the result.

    ``targets`` are pushed, and their changes combined, in the given order.
    """
    targets: List[str]
    explicit_name: Optional[str] = None
    message_source: MessageSource = field(default_factory=EditorInvocation)
    author_override: Optional[Identity] = None
    edit: bool = False
    signoff: bool = False
    no_verify: bool = False


@dataclass
class SquashContext:
    """
    Identities and settings a squash runs with.

    Identities not given up front are read from ``repo`` configuration the
    first time they are needed.
    """
    default_identity: Optional[Identity] = None
    committer: Optional[Identity] = None
    editor: str = 'vi'
    name_length: int = 30
    hooks_dir: Optional[Path] = None
    repo: Any = field(default=None, repr=False)

    @classmethod
    def from_repo(cls, repo) -> 'SquashContext':
        """Build the context from repository configuration."""
        return cls(
            repo=repo,
            editor=repo.config.get_editor(),
            name_length=repo.config.get_int('stack', 'namelength', 30),
            hooks_dir=hooks_dir(repo),
        )

    def identity(self) -> Identity:
        """The configured user identity."""
        if self.default_identity is None:
            self.default_identity = self.repo.config.get_user_identity()
        return self.default_identity

    def committer_identity(self) -> Identity:
        return self.committer or self.identity()


@dataclass
class SquashResult:
    """
    Outcome of a squash.

    ``patch_name`` is set once the squashed patch exists. ``conflicts``
    lists paths left with markers, either by gathering the targets (no
    squashed patch) or by pushing displaced patches back. ``template_path``
    is set when only a template was written.
    """
    patch_name: Optional[str] = None
    conflicts: List[str] = field(default_factory=list)
    template_path: Optional[str] = None

    @property
    def conflicted(self) -> bool:
        return bool(self.conflicts)


def resolve_authorship(
    authors: Sequence[Identity],
    default: Optional[Identity],
    override: Optional[Identity] = None,
) -> Tuple[Identity, List[Trailer]]:
    """
    Author and co-author trailers for a squashed patch.

    An override is used as is. A single distinct author is kept. Several
    distinct authors give way to ``default``, with a ``Co-authored-by``
    trailer for each of them except ``default``, in first-seen order.
    """
    if override is not None:
        return override, []

    distinct = list(dict.fromkeys(authors))
    if len(distinct) == 1:
        return distinct[0], []

    return default, [('Co-authored-by', str(identity)) for identity in distinct if identity != default]


def _compose_message(
    repo,
    request: SquashRequest,
    context: SquashContext,
    messages: Sequence[Tuple[str, str]],
    trailers: Sequence[Trailer],
    author: Identity,
) -> str:
    source = request.message_source
    text = None
    if isinstance(source, Inline):
        text = source.text
    elif isinstance(source, File):
        text = read_message_file(source.path)

    if text is not None and not request.edit:
        message = append_trailers(text, trailers) if text.strip() else ''
    else:
        if text is not None:
            buffer = append_trailers(text, trailers)
        else:
            buffer = build_squash_buffer(messages, trailers, author, request.explicit_name)
        message = strip_comments(run_editor(repo, buffer, context.editor))

    if not message.strip():
        raise CommandError("aborting due to empty patch description")

    if not request.no_verify:
        message = run_commit_msg_hook(repo, message, context.hooks_dir)
        if not message.strip():
            raise CommandError("aborting due to empty patch description")

    return message


def squash(stack, request: SquashRequest, context: SquashContext) -> SquashResult:
    """
    Combine two or more patches into one.

    The targets are gathered at the slot of the lowest applied target (or
    on top of the stack when none is applied), pushed in request order and
    replaced by a single patch holding their combined changes. Patches that
    were popped out of the way are pushed back afterwards. When no target
    was applied the squashed patch is left unapplied, first in line to be
    pushed.

    Args:
        stack: Stack of the current branch
        request: What to squash
        context: Identities and settings

    Returns:
        SquashResult

    Raises:
        CommandError: On a failed precondition, an empty message or a
            failing editor or hook; the stack is left unchanged
        NotFound: If a target does not exist
    """
    stack.check_ready()
    state = stack.state

    targets = list(dict.fromkeys(request.targets))
    patches = [state.get(name) for name in targets]

    if request.explicit_name is not None:
        validate_patch_name(request.explicit_name)
        if state.collides(request.explicit_name) and request.explicit_name not in targets:
            raise CommandError(f"patch name `{request.explicit_name}` already taken")

    if len(targets) < 2:
        raise CommandError("need at least two patches")

    authors = [patch.author for patch in patches]
    default = None
    if request.author_override is None and len(set(authors)) > 1:
        default = context.identity()
    author, trailers = resolve_authorship(authors, default, request.author_override)
    if request.signoff:
        trailers.append(('Signed-off-by', str(context.committer_identity())))
    messages = [(patch.name, patch.message) for patch in patches]

    if isinstance(request.message_source, Template):
        buffer = build_squash_buffer(messages, trailers, author, request.explicit_name)
        if request.message_source.path == '-':
            click.echo(buffer, nl=False)
        else:
            Path(request.message_source.path).write_text(buffer)
        return SquashResult(template_path=request.message_source.path)

    log_message = f"squash {' '.join(targets)}"
    committer = context.committer_identity()
    trans = stack.transaction('squash', committer)
    try:
        plan = plan_reorder(trans.state, targets)
        trans.pop_from(plan.site)
        site_base = trans.top

        if not trans.push_patches(plan.push_order):
            return SquashResult(conflicts=trans.execute(log_message))

        message = _compose_message(stack.repo, request, context, messages, trailers, author)
        name = request.explicit_name or make_patch_name(
            message,
            context.name_length,
            disallow=[other for other in state.all_names if other not in targets],
        )

        commit_id = stack.repo.create_commit(
            trans.top_tree, site_base, author, message, committer=committer
        )
        trans.replace_applied(plan.site, plan.site + len(targets), name, commit_id)
        if not plan.to_pop:
            trans.pop_from(plan.site)
    except Exception:
        trans.rollback()
        raise

    logger.debug("squashed %s into %s (%s)", targets, name, commit_id[:7])
    reapply(trans, plan.displaced)
    return SquashResult(patch_name=name, conflicts=trans.execute(log_message))
