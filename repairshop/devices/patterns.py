"""Unlock pattern helpers (3x3 grid, dots numbered 0-8)"""

GRID_SIZE = 9


def parse_pattern(value):
    """
    Parse a comma separated pattern such as ``"0,4,8"`` into a list of ints.

    Raises ValueError for empty patterns, indices outside 0-8 or repeated dots.
    """
    if value is None or not str(value).strip():
        raise ValueError("Pattern cannot be empty")
    try:
        dots = [int(part) for part in str(value).split(',')]
    except ValueError:
        raise ValueError("Pattern must be comma separated numbers")
    for dot in dots:
        if dot < 0 or dot >= GRID_SIZE:
            raise ValueError(f"Pattern dot {dot} is outside the 0-8 grid")
    if len(set(dots)) != len(dots):
        raise ValueError("Pattern cannot repeat a dot")
    return dots


def format_pattern(dots):
    return ','.join(str(dot) for dot in dots)
