def score_match(value: str, candidate: str) -> int:
    """Rank how closely candidate matches value, case-insensitively.

    0 = identical, 1 = one is a prefix of the other,
    2 = one contains the other, 3 = unrelated.
    """
    v = value.lower()
    c = candidate.lower()

    if c == v:
        return 0
    if c.startswith(v) or v.startswith(c):
        return 1
    if v in c or c in v:
        return 2
    return 3
