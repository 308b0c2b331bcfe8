"""
Command name resolution with fuzzy matching.

Scoring (case-insensitive):
- prefix match:       2 + len(token) / len(key)                      -> (2, 3]
- subsequence match:  0.5 * len(token) / span + 0.5 * len(token) / len(key)
                      where span is the tightest window holding the match -> (0, 1)
- anything else:      0

Keys scoring above ACCEPT_THRESHOLD are candidates, ordered by score
descending then name ascending. Candidates within AMBIGUITY_MARGIN of the
best score are contenders; a single contender wins unless the token is
shorter than MIN_FUZZY_LENGTH, in which case the user has to confirm.
"""

from __future__ import annotations

from typing import Iterable

from xa_cli.core.datamodels import Match, MatchKind

ACCEPT_THRESHOLD = 0.25
AMBIGUITY_MARGIN = 0.25
MIN_FUZZY_LENGTH = 2


def _subsequence_span(token: str, key: str) -> int | None:
    """Length of the shortest window of key containing token as a subsequence."""
    best: int | None = None
    for start, ch in enumerate(key):
        if ch != token[0]:
            continue
        pos = start
        for tc in token[1:]:
            pos = key.find(tc, pos + 1)
            if pos < 0:
                break
        else:
            span = pos - start + 1
            if best is None or span < best:
                best = span
            continue
        # No later start can complete the match either
        break
    return best


def score(token: str, key: str) -> float:
    """Fuzzy score of token against key; 0 means no match."""
    if not token or not key:
        return 0.0
    t = token.casefold()
    k = key.casefold()
    if k.startswith(t):
        return 2.0 + len(t) / len(k)
    span = _subsequence_span(t, k)
    if span is None:
        return 0.0
    return 0.5 * len(t) / span + 0.5 * len(t) / len(k)


def rank(token: str, keys: Iterable[str]) -> list[tuple[str, float]]:
    """Keys above the acceptance threshold, best first, ties by name."""
    scored = [(key, score(token, key)) for key in keys]
    accepted = [(key, s) for key, s in scored if s > ACCEPT_THRESHOLD]
    return sorted(accepted, key=lambda item: (-item[1], item[0]))


def resolve(token: str, keys: Iterable[str]) -> Match:
    """Resolve a typed command token against the registered names.

    Args:
        token: What the user typed (e.g. "trans")
        keys: Registered command names

    Returns:
        Match describing an exact hit, a fuzzy hit, an ambiguity, or no match.
    """
    keys = list(keys)
    if token in keys:
        return Match(MatchKind.EXACT, key=token)

    ranked = rank(token, keys)
    if not ranked:
        return Match(MatchKind.NO_MATCH)

    best = ranked[0][1]
    contenders = [key for key, s in ranked if best - s < AMBIGUITY_MARGIN]

    if len(contenders) == 1 and len(token) >= MIN_FUZZY_LENGTH:
        return Match(MatchKind.FUZZY, key=contenders[0], candidates=contenders)
    return Match(MatchKind.AMBIGUOUS, candidates=contenders)
