# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import itertools
import os

import git
import pytest


class RepoBuilder:
    '''
    creates commits, merges and tags in a throw-away git-repository using the git-cli
    '''
    def __init__(self, repo: git.Repo):
        self.repo = repo
        self._counter = itertools.count()

    @property
    def head(self) -> str:
        return self.repo.head.commit.hexsha

    def commit(self, message: str, path: str='lib/file.txt') -> str:
        file_path = os.path.join(self.repo.working_tree_dir, path)
        os.makedirs(os.path.dirname(file_path), exist_ok=True)
        with open(file_path, 'a') as f:
            f.write(f'{next(self._counter)}\n')

        self.repo.git.add(path)
        self.repo.git.commit('-m', message)
        return self.head

    def branch(self, name: str, start_point: str | None=None):
        if start_point:
            self.repo.git.checkout('-b', name, start_point)
        else:
            self.repo.git.checkout('-b', name)

    def checkout(self, name: str):
        self.repo.git.checkout(name)

    def merge(self, branch: str, message: str) -> str:
        self.repo.git.merge('--no-ff', '--no-edit', '-m', message, branch)
        return self.head

    def tag(self, name: str, message: str | None=None, ref: str='HEAD'):
        if message:
            self.repo.git.tag('-a', name, '-m', message, ref)
        else:
            self.repo.git.tag(name, ref)


@pytest.fixture
def git_repo(tmp_path):
    repo = git.Repo.init(tmp_path, initial_branch='master')

    with repo.config_writer() as cfg:
        cfg.set_value('user', 'name', 'Changelog Test')
        cfg.set_value('user', 'email', 'changelog-test@example.org')
        cfg.set_value('commit', 'gpgsign', 'false')
        cfg.set_value('tag', 'gpgsign', 'false')

    return repo


@pytest.fixture
def repo_builder(git_repo) -> RepoBuilder:
    return RepoBuilder(git_repo)


@pytest.fixture
def release_history(repo_builder) -> RepoBuilder:
    '''
    creates the following history (newest first):

    - merge of branch `docs` (only touching `assets`), not a pull-request
    - merge of pull-request #42 (from alice/feature-x), adding a widget
    - "Fix crash on launch"
    - initial commit, tagged as `v1.0.0` (annotated)
    '''
    builder = repo_builder

    builder.commit('initial commit')
    builder.tag('v1.0.0', message='release v1.0.0')

    builder.commit('Fix crash on launch', path='lib/launch.txt')

    builder.branch('feature-x')
    builder.commit('Add widget', path='lib/widget.txt')
    builder.checkout('master')
    builder.merge('feature-x', message='Merge pull request #42 from alice/feature-x')

    builder.branch('docs')
    builder.commit('Update logo', path='assets/logo.txt')
    builder.checkout('master')
    builder.merge('docs', message="Merge branch 'docs'")

    return builder
