# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import collections.abc
import logging

import git
import git.exc

import changelog.model as cm
import version

logger = logging.getLogger(__name__)


def _lines(output: str) -> list[str]:
    return [line for line in output.splitlines() if line.strip()]


class GitHelper:
    '''
    read-only queries against a local git-repository, as needed for drafting changelogs.

    Output of history-queries is returned as raw lines (see `changelog.index` for parsing).
    Failing git-commands are propagated as `git.exc.GitCommandError`.
    '''
    def __init__(
        self,
        repo,
    ):
        if repo is None:
            raise ValueError(repo)
        if isinstance(repo, str):
            repo = git.Repo(repo, search_parent_directories=True)
        if not isinstance(repo, git.Repo):
            raise ValueError(repo)

        self.repo = repo

    @property
    def repo_path(self) -> str:
        return self.repo.working_tree_dir

    def resolve_object(self, label: str) -> cm.CommitRef:
        '''
        resolves the given label (tag, branch, commit-ish) to the digest of the commit it
        points to.

        @raises InvalidReference if label cannot be resolved to exactly one commit
        '''
        if not label:
            raise cm.InvalidReference(f'not a valid reference: {label!r}')

        try:
            sha = self.repo.git.rev_parse('--verify', '--quiet', f'{label}^{{commit}}')
        except git.exc.GitCommandError as e:
            raise cm.InvalidReference(f'cannot resolve {label!r} to a commit') from e

        sha = sha.strip()
        if not cm.is_commit_ref(sha):
            raise cm.InvalidReference(f'{label!r} resolved to unexpected value {sha!r}')

        logger.debug(f'resolved {label=} to {sha}')
        return sha

    def list_commits_in_range(self, lower: str, upper: str) -> list[cm.CommitRef]:
        '''
        returns commits reachable from upper, but not from lower (newest first, children
        always before their parents)
        '''
        return _lines(self.repo.git.rev_list('--topo-order', f'{lower}..{upper}'))

    def list_tag_targets(self) -> set[cm.CommitRef]:
        '''
        returns digests of commits pointed to by annotated tags (whole history)
        '''
        targets = set()

        raw = self.repo.git.for_each_ref(
            '--format=%(*objecttype) %(*objectname)',
            'refs/tags',
        )
        for line in _lines(raw):
            object_type, _, object_name = line.strip().partition(' ')
            if object_type == 'commit':
                targets.add(object_name)
            elif object_type == 'tag':
                # tag pointing to another (annotated) tag
                targets.add(self.resolve_object(object_name))
            # lightweight tags yield empty lines; tags pointing to trees/blobs are not relevant

        return targets

    def list_merge_commits(self, lower: str, upper: str) -> list[str]:
        '''
        returns lines of tab-separated `<sha>`, `<parent>...` and `<message>` for merge commits
        in range
        '''
        return _lines(self.repo.git.log(
            '--merges',
            '--format=%H%x09%P%x09%s',
            f'{lower}..{upper}',
        ))

    def list_ordinary_commits(
        self,
        lower: str,
        upper: str,
        paths: collections.abc.Iterable[str],
    ) -> list[str]:
        '''
        returns lines of tab-separated `<sha>`, `<parent>` and `<message>` for single-parent
        commits in range touching at least one of the given paths
        '''
        return _lines(self.repo.git.log(
            '--no-merges',
            '--min-parents=1',
            '--format=%H%x09%P%x09%s',
            f'{lower}..{upper}',
            '--',
            *paths,
        ))

    def current_branch(self) -> str | None:
        if self.repo.head.is_detached:
            return None
        return self.repo.active_branch.name

    def latest_release_tag(self) -> str | None:
        '''
        returns the name of the greatest tag that is a final (relaxed) semver version, or `None`
        if there is no such tag
        '''
        release_tags = [
            tag.name for tag in self.repo.tags
            if (parsed := version.parse_to_semver(tag.name, invalid_semver_ok=True))
            and version.is_final(parsed)
        ]
        return version.greatest_version(release_tags)
