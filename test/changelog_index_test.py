# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import pytest

import changelog.index as ci
import changelog.model as cm


def sha(n: int) -> str:
    return f'{n:040x}'


class FakeQuery:
    def __init__(
        self,
        commits=(),
        tag_targets=(),
        merge_lines=(),
        ordinary_lines=(),
    ):
        self.commits = list(commits)
        self.tag_targets = set(tag_targets)
        self.merge_lines = list(merge_lines)
        self.ordinary_lines = list(ordinary_lines)
        self.requested_paths = None

    def resolve_object(self, label):
        return label

    def list_commits_in_range(self, lower, upper):
        return self.commits

    def list_tag_targets(self):
        return self.tag_targets

    def list_merge_commits(self, lower, upper):
        return self.merge_lines

    def list_ordinary_commits(self, lower, upper, paths):
        self.requested_paths = tuple(paths)
        return self.ordinary_lines


def test_parse_merge_line():
    ref, record = ci.parse_merge_line(
        f'{sha(3)}\t{sha(1)} {sha(2)}\tMerge pull request #42 from alice/feature-x'
    )

    assert ref == sha(3)
    assert record == cm.MergeRecord(
        trunk_parent=sha(1),
        branch_parent=sha(2),
        message='Merge pull request #42 from alice/feature-x',
    )


def test_parse_merge_line_with_empty_message():
    ref, record = ci.parse_merge_line(f'{sha(3)}\t{sha(1)} {sha(2)}\t')

    assert ref == sha(3)
    assert record.message == ''


def test_parse_octopus_merge_line():
    ref, record = ci.parse_merge_line(f'{sha(4)}\t{sha(1)} {sha(2)} {sha(3)}\tMerge branches')

    assert ref == sha(4)
    assert record is None


def test_parse_merge_line_with_digest_in_message():
    ref, record = ci.parse_merge_line(
        f'{sha(3)}\t{sha(1)} {sha(2)}\t{sha(0xdead)} reapplied'
    )

    assert ref == sha(3)
    assert record == cm.MergeRecord(
        trunk_parent=sha(1),
        branch_parent=sha(2),
        message=f'{sha(0xdead)} reapplied',
    )


def test_parse_ordinary_line_with_tab_in_message():
    ref, record = ci.parse_ordinary_line(f'{sha(2)}\t{sha(1)}\tFix\tcrash')

    assert ref == sha(2)
    assert record.message == 'Fix\tcrash'


@pytest.mark.parametrize('line', [
    '',
    'not a merge',
    f'{sha(3)}\t{sha(1)}\tMerge with just one parent',
    f'{sha(3)[:12]}\t{sha(1)} {sha(2)}\tabbreviated digest',
    f'{sha(3)}\t\t{sha(1)} {sha(2)}\tdouble tab',
    f'{sha(3)}\t{sha(1)}  {sha(2)}\tdouble space',
    f'{sha(0xabc).upper()}\t{sha(1)} {sha(2)}\tupper case',
    f'{sha(3)} {sha(1)} {sha(2)} space-separated',
])
def test_parse_malformed_merge_line(line):
    with pytest.raises(cm.MalformedQueryOutput):
        ci.parse_merge_line(line)


def test_parse_ordinary_line():
    ref, record = ci.parse_ordinary_line(f'{sha(2)}\t{sha(1)}\tFix crash on launch')

    assert ref == sha(2)
    assert record == cm.OrdinaryRecord(parent=sha(1), message='Fix crash on launch')


@pytest.mark.parametrize('line', [
    f'{sha(2)}',
    f'{sha(2)}\tFix crash on launch',
    f'{sha(2)} {sha(1)} Fix crash on launch',
    'garbage',
])
def test_parse_malformed_ordinary_line(line):
    with pytest.raises(cm.MalformedQueryOutput):
        ci.parse_ordinary_line(line)


def test_build_commit_index():
    query = FakeQuery(
        commits=[sha(4), sha(3), sha(2), sha(1)],
        tag_targets=[sha(1)],
        merge_lines=[
            f'{sha(4)}\t{sha(2)} {sha(3)}\tMerge pull request #1 from alice/x',
            f'{sha(5)}\t{sha(2)} {sha(3)} {sha(1)}\toctopus',
            '',
        ],
        ordinary_lines=[
            f'{sha(3)}\t{sha(2)}\tAdd widget',
        ],
    )

    index = ci.build_commit_index(
        query=query,
        lower=sha(0),
        upper=sha(4),
        meaningful_paths=['lib', 'bin'],
    )

    assert index.commits == (sha(4), sha(3), sha(2), sha(1))
    assert index.is_tagged(sha(1))
    assert not index.is_tagged(sha(2))
    assert set(index.merges) == {sha(4)} # octopus-merges are not indexed
    assert index.merge(sha(4)).branch_parent == sha(3)
    assert index.ordinary_commit(sha(3)).message == 'Add widget'
    assert index.ordinary_commit(sha(2)) is None
    assert query.requested_paths == ('lib', 'bin')


def test_build_commit_index_rejects_malformed_commits():
    query = FakeQuery(commits=[sha(1), 'HEAD'])

    with pytest.raises(cm.MalformedQueryOutput):
        ci.build_commit_index(
            query=query,
            lower=sha(0),
            upper=sha(1),
            meaningful_paths=['lib'],
        )


def test_build_commit_index_rejects_malformed_merge_lines():
    query = FakeQuery(
        commits=[sha(1)],
        merge_lines=['this is not a merge line'],
    )

    with pytest.raises(cm.MalformedQueryOutput):
        ci.build_commit_index(
            query=query,
            lower=sha(0),
            upper=sha(1),
            meaningful_paths=['lib'],
        )


def test_build_commit_index_rejects_invalid_bounds():
    with pytest.raises(cm.InvalidReference):
        ci.build_commit_index(
            query=FakeQuery(),
            lower='v1.0.0',
            upper=sha(1),
            meaningful_paths=['lib'],
        )


def test_build_commit_index_without_meaningful_paths():
    query = FakeQuery(
        commits=[sha(2)],
        ordinary_lines=[f'{sha(2)}\t{sha(1)}\tAdd widget'],
    )

    index = ci.build_commit_index(
        query=query,
        lower=sha(1),
        upper=sha(2),
        meaningful_paths=(),
    )

    assert not index.ordinary
    assert query.requested_paths is None
