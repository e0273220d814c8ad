# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import collections.abc
import logging

import changelog.index as ci
import changelog.model as cm


logger = logging.getLogger(__name__)


class TraversalContext:
    '''
    state of a single classification pass over a commit range.

    Holds the (read-only) commit index, and the set of commits already represented in the
    changelog, as well as the set of link-definitions to render as footer. Both sets only grow.
    '''
    def __init__(
        self,
        index: ci.CommitIndex,
        project_url: str,
        user_url: str = 'https://github.com',
        maintainers: collections.abc.Iterable[str] = (),
    ):
        self.index = index
        self.project_url = project_url.rstrip('/')
        self.user_url = user_url.rstrip('/')
        self.maintainers = frozenset(maintainers)

        self._seen: set[cm.CommitRef] = set()
        self._footer_lines: set[str] = set()

    def try_mark_seen(self, ref: cm.CommitRef) -> bool:
        '''
        marks the given commit as seen. returns whether this call newly marked it.
        '''
        if ref in self._seen:
            return False
        self._seen.add(ref)
        return True

    def mark_seen(self, ref: cm.CommitRef):
        self.try_mark_seen(ref)

    def was_already_seen(self, ref: cm.CommitRef) -> bool:
        '''
        check-and-set: returns whether the given commit was seen before; marks it as seen in
        any case.
        '''
        return not self.try_mark_seen(ref)

    def is_seen(self, ref: cm.CommitRef) -> bool:
        return ref in self._seen

    def add_footer_line(self, line: str):
        self._footer_lines.add(line)

    def render_footer(self) -> list[str]:
        return sorted(self._footer_lines)

    def is_maintainer(self, user: str) -> bool:
        return user in self.maintainers

    def pull_request_link(self, number: str) -> str:
        return f'[#{number}]: {self.project_url}/issues/{number}'

    def user_link(self, user: str) -> str:
        return f'[@{user}]: {self.user_url}/{user}'


def pull_request_ref(
    ctx: TraversalContext,
    merge_message: cm.RecognisedPullRequest,
) -> cm.PullRequestRef:
    if ctx.is_maintainer(merge_message.user):
        credited_user = ''
    else:
        credited_user = merge_message.user

    return cm.PullRequestRef(
        number=merge_message.number,
        credited_user=credited_user,
    )


def format_ordinary_commit(record: cm.OrdinaryRecord) -> str:
    return f'     - {record.message}'


def format_pull_request(
    pull_request: cm.PullRequestRef,
    message: str,
) -> str:
    line = f'- [#{pull_request.number}][] {message}'
    if pull_request.is_credited:
        line += f' <3 [@{pull_request.credited_user}][]'
    return line


def format_plain_merge(record: cm.MergeRecord) -> str:
    return f'- {record.message}'


def classify_merge(
    ctx: TraversalContext,
    ref: cm.CommitRef,
    merge_record: cm.MergeRecord,
) -> str | None:
    branch_parent = merge_record.branch_parent

    if not (branch_record := ctx.index.ordinary_commit(branch_parent)):
        logger.debug(f'{ref=}: merged branch did not touch meaningful paths - dropping')
        return None

    merge_message = cm.parse_merge_message(merge_record.message)

    if isinstance(merge_message, cm.PlainMessage):
        logger.debug(f'{ref=}: not a pull-request merge - passing through message')
        return format_plain_merge(merge_record)

    if ctx.is_seen(branch_parent):
        # first occurrence in traversal wins
        logger.warning(
            f'{ref=}: merged commit {branch_parent} was already represented by an earlier merge '
            f'- skipping #{merge_message.number}'
        )
        return None

    pull_request = pull_request_ref(ctx=ctx, merge_message=merge_message)

    ctx.add_footer_line(ctx.pull_request_link(pull_request.number))
    if pull_request.is_credited:
        ctx.add_footer_line(ctx.user_link(pull_request.credited_user))

    ctx.mark_seen(branch_parent)

    return format_pull_request(
        pull_request=pull_request,
        message=branch_record.message,
    )


def classify_commit(
    ctx: TraversalContext,
    ref: cm.CommitRef,
) -> str | None:
    '''
    returns the changelog-line for the given commit, or `None` if it is not to be included.
    '''
    index = ctx.index

    if index.is_tagged(ref):
        logger.debug(f'{ref=}: tagged - skipping')
        return None

    if ctx.was_already_seen(ref):
        logger.debug(f'{ref=}: already represented - skipping')
        return None

    if (ordinary_record := index.ordinary_commit(ref)):
        return format_ordinary_commit(ordinary_record)

    if (merge_record := index.merge(ref)):
        return classify_merge(
            ctx=ctx,
            ref=ref,
            merge_record=merge_record,
        )

    logger.debug(f'{ref=}: neither ordinary nor merge commit - skipping')
    return None


def iter_classified(ctx: TraversalContext):
    '''
    yields one result per commit in range (in traversal order); results are either a
    changelog-line, or `None`
    '''
    for ref in ctx.index.commits:
        yield classify_commit(ctx=ctx, ref=ref)
