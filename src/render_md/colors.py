"""Terminal escape constants shared by the renderer and the background adapter."""

RESET = "\033[0m"

# Resets a syntax highlighter may emit inside a single code line.
# // [LAW:one-source-of-truth] The background adapter rewrites exactly these two.
FULL_RESET = RESET
BG_RESET = "\033[49m"


def bg_truecolor(r: int, g: int, b: int) -> str:
    """Raw 24-bit background introducer (no reset)."""
    return "\033[48;2;{};{};{}m".format(r, g, b)
