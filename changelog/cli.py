#! /usr/bin/env python3
# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import argparse
import logging
import os
import sys

import git.exc

import changelog.cfg
import changelog.draft
import changelog.log
import changelog.model as cm
import gitutil


def parse_args(argv=None) -> argparse.Namespace:
    ''' Parses CLI for drafting changelogs '''
    parser = argparse.ArgumentParser(
        description='''\
            Drafts a changelog (markdown) from commits since the given release. Pull-request
            merges are rendered with references to the pull-request and its author; commits
            are only considered if they touch meaningful paths.
        ''',
    )
    parser.add_argument(
        'release_label',
        nargs='?',
        default=None,
        help='previous release (tag or other commit-ish); defaults to greatest release tag',
    )
    parser.add_argument(
        '--upper',
        default='HEAD',
        help='upper bound of commit-range (defaults to HEAD)',
    )
    parser.add_argument(
        '--repo-path',
        default=os.getcwd(),
        help='path to git-repository (defaults to current working directory)',
    )
    parser.add_argument(
        '--cfg-file',
        default=None,
        help=f'configuration file (YAML); overrides {changelog.cfg.CFG_FILE_NAME} from repository',
    )
    parser.add_argument(
        '--next-release',
        default=None,
        help=f'release-label for header (defaults to ${changelog.cfg.NEXT_RELEASE_ENV_VAR}, or '
        'next patch-version of previous release)',
    )
    parser.add_argument(
        '--outfile', '-o',
        default='-',
        help='output file to write to (`-` for stdout, which is the default)',
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        default=False,
    )

    return parser.parse_args(argv)


def _diagnostic(e: Exception) -> str:
    if not (lines := str(e).strip().splitlines()):
        return type(e).__name__
    return lines[0]


def _write(text: str, outfile: str):
    if outfile == '-':
        sys.stdout.write(text)
        sys.stdout.flush()
        return

    with open(outfile, 'w') as f:
        f.write(text)


def main(argv=None):
    args = parse_args(argv)

    changelog.log.configure_default_logging(
        stdout_level=logging.DEBUG if args.verbose else logging.INFO,
    )

    try:
        git_helper = gitutil.GitHelper(repo=args.repo_path)
        cfg = changelog.cfg.load_cfg(
            repo_path=git_helper.repo_path,
            cfg_file=args.cfg_file,
        )
        markdown = changelog.draft.draft_changelog(
            git_helper=git_helper,
            cfg=cfg,
            release_label=args.release_label,
            upper=args.upper,
            next_release=args.next_release,
        )
        _write(markdown, outfile=args.outfile)
    except (cm.ChangelogError, git.exc.GitError, OSError) as e:
        print(f'✗ {_diagnostic(e)}', file=sys.stderr)
        sys.exit(1)

    sys.exit(0)


if __name__ == '__main__':
    main()
