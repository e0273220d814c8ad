'''
Changelog Drafter

Drafts a changelog (markdown) from the commit history between a previous release and the current
HEAD (or any other upper bound).

Every commit in range is classified:

- commits pointed to by annotated tags are never included
- single-parent commits touching meaningful paths are rendered as plain list-items
- merges of pull-requests (recognised by GitHub's default merge-message) are rendered with a
  reference to the pull-request, and a credit to its author (unless a maintainer). The merged
  commit is not rendered again.
- other merges are passed through if the merged branch touched meaningful paths

Pull-request and user references are collected as (sorted, deduplicated) link-definitions and
rendered as footer.
'''
