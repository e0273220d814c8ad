# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

'''
Commit Index

Builds the lookup structures the classification pass works on from raw query results:

- the commits in range, in (newest-first) topological order
- commits pointed to by annotated tags (over the whole history)
- two-parent merge commits in range (not path-filtered)
- single-parent commits in range touching at least one meaningful path

Merges are intentionally not path-filtered: a path-limited history walk may omit merge commits
which are still relevant (their merged branch touched meaningful paths). Reconciliation happens
during classification (see `changelog.engine`).
'''

import collections.abc
import dataclasses
import logging
import re
import typing

import changelog.model as cm


logger = logging.getLogger(__name__)


class RepositoryQuery(typing.Protocol):
    def resolve_object(self, label: str) -> cm.CommitRef: ...

    def list_commits_in_range(self, lower: str, upper: str) -> list[cm.CommitRef]: ...

    def list_tag_targets(self) -> set[cm.CommitRef]: ...

    def list_merge_commits(self, lower: str, upper: str) -> list[str]: ...

    def list_ordinary_commits(
        self,
        lower: str,
        upper: str,
        paths: collections.abc.Iterable[str],
    ) -> list[str]: ...


_merge_line_pattern = re.compile(
    r'(?P<sha>[0-9a-f]{40})\t(?P<parents>[0-9a-f]{40}(?: [0-9a-f]{40})*)(?:\t(?P<message>.*))?'
)
_ordinary_line_pattern = re.compile(
    r'(?P<sha>[0-9a-f]{40})\t(?P<parent>[0-9a-f]{40})(?:\t(?P<message>.*))?'
)


def parse_merge_line(line: str) -> tuple[cm.CommitRef, cm.MergeRecord | None]:
    '''
    parses a line of tab-separated fields `<sha>`, `<parent1> <parent2>` and `<message>`

    returns a tuple of commit-digest and MergeRecord. The MergeRecord is `None` for merges with
    more than two parents (those are not considered for changelogs).

    @raises MalformedQueryOutput if line does not have the expected shape
    '''
    if not (match := _merge_line_pattern.fullmatch(line)):
        raise cm.MalformedQueryOutput(f'unexpected merge-commit line: {line!r}')

    sha = match.group('sha')
    parents = match.group('parents').split()
    message = match.group('message') or ''

    if len(parents) < 2:
        raise cm.MalformedQueryOutput(f'merge-commit w/ less than two parents: {line!r}')

    if len(parents) > 2:
        logger.debug(f'ignoring {sha=} with {len(parents)} parents')
        return sha, None

    trunk_parent, branch_parent = parents

    return sha, cm.MergeRecord(
        trunk_parent=trunk_parent,
        branch_parent=branch_parent,
        message=message,
    )


def parse_ordinary_line(line: str) -> tuple[cm.CommitRef, cm.OrdinaryRecord]:
    '''
    parses a line of tab-separated fields `<sha>`, `<parent>` and `<message>`

    @raises MalformedQueryOutput if line does not have the expected shape
    '''
    if not (match := _ordinary_line_pattern.fullmatch(line)):
        raise cm.MalformedQueryOutput(f'unexpected commit line: {line!r}')

    return match.group('sha'), cm.OrdinaryRecord(
        parent=match.group('parent'),
        message=match.group('message') or '',
    )


def _non_empty_lines(lines: collections.abc.Iterable[str]):
    for line in lines:
        if not line.strip():
            continue
        yield line.rstrip('\r\n')


@dataclasses.dataclass(frozen=True)
class CommitIndex:
    commits: tuple[cm.CommitRef, ...]
    tags: frozenset[cm.CommitRef]
    merges: collections.abc.Mapping[cm.CommitRef, cm.MergeRecord]
    ordinary: collections.abc.Mapping[cm.CommitRef, cm.OrdinaryRecord]

    def is_tagged(self, ref: cm.CommitRef) -> bool:
        return ref in self.tags

    def merge(self, ref: cm.CommitRef) -> cm.MergeRecord | None:
        return self.merges.get(ref)

    def ordinary_commit(self, ref: cm.CommitRef) -> cm.OrdinaryRecord | None:
        return self.ordinary.get(ref)


def build_commit_index(
    query: RepositoryQuery,
    lower: cm.CommitRef,
    upper: cm.CommitRef,
    meaningful_paths: collections.abc.Iterable[str],
) -> CommitIndex:
    '''
    queries the repository once and returns the (read-only) index for the given range.

    `lower` and `upper` are expected to be commit-digests (see `RepositoryQuery.resolve_object`).
    '''
    cm.commit_ref(lower)
    cm.commit_ref(upper)
    meaningful_paths = tuple(meaningful_paths)

    commits = []
    for ref in _non_empty_lines(query.list_commits_in_range(lower, upper)):
        if not cm.is_commit_ref(ref):
            raise cm.MalformedQueryOutput(f'unexpected commit-digest: {ref!r}')
        commits.append(ref)

    tags = frozenset(query.list_tag_targets())
    for ref in tags:
        if not cm.is_commit_ref(ref):
            raise cm.MalformedQueryOutput(f'unexpected tag-target: {ref!r}')

    merges = {}
    for line in _non_empty_lines(query.list_merge_commits(lower, upper)):
        sha, merge_record = parse_merge_line(line)
        if merge_record:
            merges[sha] = merge_record

    ordinary = {}
    if meaningful_paths:
        for line in _non_empty_lines(
            query.list_ordinary_commits(lower, upper, meaningful_paths),
        ):
            sha, ordinary_record = parse_ordinary_line(line)
            ordinary[sha] = ordinary_record
    else:
        logger.warning('no meaningful paths configured - no commit will be considered')

    logger.info(
        f'indexed {len(commits)} commits ({len(merges)} merges, {len(ordinary)} ordinary) '
        f'and {len(tags)} tagged commits'
    )

    return CommitIndex(
        commits=tuple(commits),
        tags=tags,
        merges=merges,
        ordinary=ordinary,
    )
