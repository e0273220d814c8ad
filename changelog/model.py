# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import dataclasses
import re


class ChangelogError(RuntimeError):
    pass


class InvalidReference(ChangelogError, ValueError):
    '''
    raised if a label does not resolve to a (single) valid commit-digest
    '''
    pass


class MalformedQueryOutput(ChangelogError, ValueError):
    '''
    raised if a line returned from the repository query layer does not have the expected shape
    '''
    pass


class ConfigError(ChangelogError, ValueError):
    pass


CommitRef = str

_commit_ref_pattern = re.compile(r'[0-9a-f]{40}')


def is_commit_ref(value: str) -> bool:
    if not isinstance(value, str):
        return False
    return bool(_commit_ref_pattern.fullmatch(value))


def commit_ref(value: str) -> CommitRef:
    '''
    returns the passed value if it is a valid (full) commit-digest

    @raises InvalidReference otherwise
    '''
    if not is_commit_ref(value):
        raise InvalidReference(f'not a valid commit-digest: {value!r}')
    return value


@dataclasses.dataclass(frozen=True)
class MergeRecord:
    trunk_parent: CommitRef
    branch_parent: CommitRef
    message: str


@dataclasses.dataclass(frozen=True)
class OrdinaryRecord:
    parent: CommitRef
    message: str


@dataclasses.dataclass(frozen=True)
class PullRequestRef:
    number: str
    credited_user: str = '' # empty for maintainers

    @property
    def is_credited(self) -> bool:
        return bool(self.credited_user)


@dataclasses.dataclass(frozen=True)
class RecognisedPullRequest:
    number: str
    user: str


@dataclasses.dataclass(frozen=True)
class PlainMessage:
    message: str


MergeMessage = RecognisedPullRequest | PlainMessage

r'''
matches messages created by GitHub when merging a pull request, e.g.:

    Merge pull request #42 from alice/feature-x

the user-segment must neither contain whitespace nor a slash; the branch-segment must not
contain whitespace. Only matches at the start of the message.
'''
_pull_request_message_pattern = re.compile(
    r'Merge pull request #(?P<number>\d+) from (?P<user>[^\s/]+)/\S+'
)


def parse_merge_message(message: str) -> MergeMessage:
    if (match := _pull_request_message_pattern.match(message)):
        return RecognisedPullRequest(
            number=match.group('number'),
            user=match.group('user'),
        )

    return PlainMessage(message=message)
