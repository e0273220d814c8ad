# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import logging

import changelog.cfg
import changelog.engine as ce
import changelog.index as ci
import changelog.markdown
import changelog.model as cm
import gitutil

logger = logging.getLogger(__name__)


def warn_on_unexpected_branch(
    git_helper: gitutil.GitHelper,
    release_branch: str | None,
):
    if not release_branch:
        return

    current_branch = git_helper.current_branch()
    if current_branch != release_branch:
        logger.warning(
            f'drafting changelog on {current_branch or "detached HEAD"}, but releases are '
            f'created from {release_branch}'
        )


def draft_changelog_lines(
    query: ci.RepositoryQuery,
    cfg: changelog.cfg.ChangelogCfg,
    lower: str,
    upper: str='HEAD',
) -> tuple[list[str | None], list[str]]:
    '''
    classifies all commits between `lower` and `upper`.

    returns a tuple of per-commit results (changelog-line or `None`, in traversal order), and
    footer lines (sorted, w/o duplicates)
    '''
    lower_ref = query.resolve_object(lower)
    upper_ref = query.resolve_object(upper)
    logger.info(f'drafting changelog for {lower}..{upper} ({lower_ref:.8}..{upper_ref:.8})')

    index = ci.build_commit_index(
        query=query,
        lower=lower_ref,
        upper=upper_ref,
        meaningful_paths=cfg.meaningful_paths,
    )

    ctx = ce.TraversalContext(
        index=index,
        project_url=cfg.project_url,
        user_url=cfg.user_url,
        maintainers=cfg.maintainers,
    )

    results = list(ce.iter_classified(ctx=ctx))
    logger.info(
        f'{sum(1 for r in results if r is not None)} changelog-lines from {len(results)} commits'
    )

    return results, ctx.render_footer()


def draft_changelog(
    git_helper: gitutil.GitHelper,
    cfg: changelog.cfg.ChangelogCfg,
    release_label: str | None=None,
    upper: str='HEAD',
    next_release: str | None=None,
) -> str:
    '''
    drafts a changelog (as markdown) for changes since the given release.

    :param release_label: label of previous release (lower bound); defaults to greatest release
        tag
    :param upper: upper bound (defaults to HEAD)
    :param next_release: label to render into header; see `changelog.cfg.next_release_label`

    @raises InvalidReference if no previous release could be determined, or bounds cannot be
        resolved
    '''
    warn_on_unexpected_branch(
        git_helper=git_helper,
        release_branch=cfg.release_branch,
    )

    if not release_label:
        if not (release_label := git_helper.latest_release_tag()):
            raise cm.InvalidReference(
                'no release tag found - pass the previous release explicitly'
            )
        logger.info(f'using latest release tag {release_label}')

    results, footer_lines = draft_changelog_lines(
        query=git_helper,
        cfg=cfg,
        lower=release_label,
        upper=upper,
    )

    return changelog.markdown.render_changelog(
        release_label=changelog.cfg.next_release_label(
            previous_release=release_label,
            explicit_label=next_release,
        ),
        results=results,
        footer_lines=footer_lines,
    )
