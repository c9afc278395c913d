from __future__ import annotations

import pathspec


def should_exclude(
    exclude: pathspec.PathSpec | None,
    include: pathspec.PathSpec | None,
    name: str,
) -> bool:
    """Decide whether ``name`` is filtered out.

    An exclude set wins outright and the include set is then never consulted;
    callers reject configurations that carry both for the same axis.
    """
    if exclude is not None:
        return exclude.match_file(name)
    if include is not None:
        return not include.match_file(name)
    return False
