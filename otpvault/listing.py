"""
otpvault - Listing Module

Plain-text tables for the terminal and the HTTP page.

Column order is the compatibility contract:
- codes:   account, issuer, expiration, code
- entries: account, issuer
- qr:      account, issuer, file
"""

from typing import Iterable, List, Sequence

MIN_WIDTH = 8
PADDING = 2

CODES_HEADER = ("account", "issuer", "expiration", "code")
ENTRIES_HEADER = ("account", "issuer")
QR_HEADER = ("account", "issuer", "file")


def render_table(header: Sequence[str], rows: Iterable[Sequence[str]]) -> str:
    """
    Align columns with spaces.

    Every column but the last is as wide as its widest cell plus PADDING,
    and at least MIN_WIDTH.
    """
    lines: List[List[str]] = [list(header)] + [[str(c) for c in row] for row in rows]
    widths = [MIN_WIDTH] * (len(header) - 1)
    for cells in lines:
        for i, cell in enumerate(cells[:-1]):
            widths[i] = max(widths[i], len(cell) + PADDING)

    out = []
    for cells in lines:
        aligned = [cell.ljust(widths[i]) for i, cell in enumerate(cells[:-1])]
        out.append("".join(aligned) + cells[-1])
    return "\n".join(out) + "\n"


def code_rows(results) -> List[List[str]]:
    """Rows for CodeResults; a failed record shows its error as the code."""
    rows = []
    for r in results:
        if r.ok:
            rows.append([r.account, r.issuer, f"{r.timecode.seconds_remaining}s", r.timecode.code])
        else:
            rows.append([r.account, r.issuer, "-", f"error: {r.error}"])
    return rows


def qr_rows(results) -> List[List[str]]:
    rows = []
    for r in results:
        rows.append([r.account, r.issuer, r.path if r.ok else f"error: {r.error}"])
    return rows
