# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

'''
Changelog configuration.

Configuration is assembled from the following sources (later ones override earlier ones, values
that are `None` or empty do not override):

- built-in defaults
- `.changelog.yaml` in root of repository worktree (if present)
- environment variables (`CHANGELOG_PROJECT_URL`, `CHANGELOG_RELEASE_BRANCH`)
- explicitly passed configuration file (`--cfg-file`)
'''

import dataclasses
import logging
import os

import dacite
import yaml

import changelog.model as cm
import version


logger = logging.getLogger(__name__)

CFG_FILE_NAME = '.changelog.yaml'
NEXT_RELEASE_ENV_VAR = 'NEXT_RELEASE'
UNRELEASED = 'UNRELEASED'


@dataclasses.dataclass(frozen=True)
class ChangelogCfg:
    project_url: str | None = None
    user_url: str | None = None
    meaningful_paths: tuple[str, ...] = ()
    maintainers: tuple[str, ...] = ()
    release_branch: str | None = None


DEFAULT_CFG = ChangelogCfg(
    project_url='https://github.com/gardener/changelog-drafter',
    user_url='https://github.com',
    meaningful_paths=(
        'bin',
        'doc',
        'lib',
        'src',
        'test',
    ),
    maintainers=(),
    release_branch='master',
)


def merge_cfgs(left: ChangelogCfg, right: ChangelogCfg | None) -> ChangelogCfg:
    if not right:
        return left

    def none_or_empty(v):
        return v is None or (not isinstance(v, bool) and not v)

    overrides = {
        field.name: value
        for field in dataclasses.fields(right)
        if not none_or_empty(value := getattr(right, field.name))
    }
    return dataclasses.replace(left, **overrides)


def cfg_from_dict(raw: dict, source: str='') -> ChangelogCfg:
    if raw is None:
        return ChangelogCfg()
    if not isinstance(raw, dict):
        raise cm.ConfigError(f'{source}: expected a mapping, found {type(raw).__name__}')

    # allow yaml-style keys (e.g. meaningful-paths)
    raw = {str(k).replace('-', '_'): v for k, v in raw.items()}

    for key in ('meaningful_paths', 'maintainers'):
        if isinstance(raw.get(key), str):
            raw[key] = [raw[key]]

    try:
        return dacite.from_dict(
            data_class=ChangelogCfg,
            data=raw,
            config=dacite.Config(
                cast=[tuple],
                strict=True,
            ),
        )
    except (dacite.DaciteError, TypeError) as e:
        raise cm.ConfigError(f'{source}: invalid configuration: {e}') from e


def cfg_from_file(path: str) -> ChangelogCfg:
    try:
        with open(path) as f:
            raw = yaml.safe_load(f)
    except OSError as e:
        raise cm.ConfigError(f'cannot read configuration from {path}: {e}') from e
    except yaml.YAMLError as e:
        raise cm.ConfigError(f'{path}: not valid YAML: {e}') from e

    logger.info(f'read configuration from {path}')
    return cfg_from_dict(raw, source=path)


def _cfg_from_repo(repo_path: str | None) -> ChangelogCfg | None:
    if not repo_path:
        return None

    cfg_file_path = os.path.join(repo_path, CFG_FILE_NAME)
    if not os.path.isfile(cfg_file_path):
        return None

    return cfg_from_file(cfg_file_path)


def _cfg_from_env(env=None) -> ChangelogCfg:
    if env is None:
        env = os.environ

    return ChangelogCfg(
        project_url=env.get('CHANGELOG_PROJECT_URL'),
        release_branch=env.get('CHANGELOG_RELEASE_BRANCH'),
    )


def load_cfg(
    repo_path: str | None=None,
    cfg_file: str | None=None,
    env=None,
) -> ChangelogCfg:
    cfg = DEFAULT_CFG

    additional_cfgs = (
        _cfg_from_repo(repo_path),
        _cfg_from_env(env),
        cfg_from_file(cfg_file) if cfg_file else None,
    )

    for additional_cfg in additional_cfgs:
        cfg = merge_cfgs(cfg, additional_cfg)

    return cfg


def next_release_label(
    previous_release: str | None,
    explicit_label: str | None=None,
    env=None,
) -> str:
    '''
    determines the release-label to render into the changelog's header
    '''
    if explicit_label:
        return explicit_label

    if env is None:
        env = os.environ
    if (label := env.get(NEXT_RELEASE_ENV_VAR)):
        return label

    if not previous_release:
        return UNRELEASED

    try:
        return version.next_patch_version(previous_release)
    except ValueError:
        logger.warning(f'cannot derive next release from {previous_release=}')
        return UNRELEASED
