# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import logging
import re
import typing

from typing import (
    Iterable,
)

import semver

logger = logging.getLogger(__name__)

Version = semver.VersionInfo | str

# major.minor[.patch][-prerelease][+build], w/ leading zeroes tolerated
_relaxed_version_pattern = re.compile(
    r'(?P<major>\d+)\.(?P<minor>\d+)(?:\.(?P<patch>\d+))?(?P<suffix>[-+].*)?'
)


def is_final(
    version: Version,
) -> bool:
    version = parse_to_semver(version=version)
    return not version.build and not version.prerelease


def parse_to_semver(
    version: Version,
    invalid_semver_ok: bool=False,
) -> semver.VersionInfo | None:
    '''
    parses the given version into a semver.VersionInfo object.

    Different from strict semver, the following deviations are accepted:

    - `v` prefix
    - missing patch-level (`1.2` is parsed as `1.2.0`)
    - leading zeroes

    @param invalid_semver_ok: return `None` instead of raising `ValueError` for invalid versions
    '''
    if isinstance(version, semver.VersionInfo):
        return version

    try:
        semver_version, _ = _parse_to_semver_and_prefix(version)
    except ValueError:
        if not invalid_semver_ok:
            raise
        logger.debug(f'ignoring invalid version {version=}')
        return None

    return semver_version


def _parse_to_semver_and_prefix(version: str) -> tuple[semver.VersionInfo, str | None]:
    if not version:
        raise ValueError(f'not a valid (semver) version: `{version}`')

    if version.startswith('v'):
        prefix = 'v'
        relaxed_version = version[1:]
    else:
        prefix = None
        relaxed_version = version

    try:
        return semver.VersionInfo.parse(relaxed_version), prefix
    except ValueError:
        pass

    if not (match := _relaxed_version_pattern.fullmatch(relaxed_version)):
        raise ValueError(f'not a valid (semver) version: `{version}`')

    major, minor, patch, suffix = match.group('major', 'minor', 'patch', 'suffix')
    normalised = f'{int(major)}.{int(minor)}.{int(patch or 0)}{suffix or ""}'

    try:
        return semver.VersionInfo.parse(normalised), prefix
    except ValueError as e:
        raise ValueError(f'not a valid (semver) version: `{version}`') from e


def next_patch_version(version: str) -> str:
    '''
    returns the next patch-version of the given version (keeping a `v`-prefix, if present).
    prerelease- and build-suffixes are dropped.

    @raises ValueError if version is not a valid (relaxed) semver version
    '''
    parsed_version, prefix = _parse_to_semver_and_prefix(version)
    if parsed_version.prerelease or parsed_version.build:
        next_version = parsed_version.replace(prerelease=None, build=None)
    else:
        next_version = parsed_version.bump_patch()

    if prefix:
        return prefix + str(next_version)

    return str(next_version)


T = typing.TypeVar('T', semver.VersionInfo, str)


def greatest_version(versions: Iterable[T]) -> T | None:
    '''
    returns the greatest of the passed (relaxed semver) versions, or `None` if there are none.

    @raises ValueError if any of the versions is not a valid (relaxed) semver version
    '''
    return max(versions, key=parse_to_semver, default=None)
