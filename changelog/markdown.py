# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import collections.abc
import functools
import os

import mako.template

own_dir = os.path.abspath(os.path.dirname(__file__))
resources_dir = os.path.join(own_dir, 'resources')


@functools.cache
def _template(name: str) -> mako.template.Template:
    return mako.template.Template(
        filename=os.path.join(resources_dir, name),
    )


def render_header(release_label: str) -> str:
    return _template('header.mako').render(
        release_label=release_label,
    ).strip()


def render_footer(footer_lines: collections.abc.Iterable[str]) -> str:
    return _template('footer.mako').render(
        footer_lines=tuple(footer_lines),
    ).strip()


def render_body(results: collections.abc.Iterable[str | None]) -> str:
    '''
    returns changelog-lines (in the order they were passed), omitting empty results
    '''
    return '\n'.join(line for line in results if line is not None)


def render_changelog(
    release_label: str,
    results: collections.abc.Iterable[str | None],
    footer_lines: collections.abc.Iterable[str],
) -> str:
    parts = (
        render_header(release_label=release_label),
        render_body(results=results),
        render_footer(footer_lines=footer_lines),
    )

    return '\n\n'.join(part for part in parts if part) + '\n'
