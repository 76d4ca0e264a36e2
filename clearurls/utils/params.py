from __future__ import annotations

from collections.abc import Iterable, Mapping

from clearurls.utils.patterns import Pattern, matches


def remove_matching_fields(
    fields: Mapping[str, str], rules: Iterable[Pattern]
) -> dict[str, str]:
    """Return a copy of ``fields`` without every field a rule matches.

    Rules are anchored field patterns; the first rule that matches a name
    removes it.
    """
    rules = tuple(rules)
    kept = dict(fields)
    for name in list(kept):
        for rule in rules:
            if matches(rule, name):
                del kept[name]
                break
    return kept
