"""Exact bitmap comparison."""

from __future__ import annotations

from filtercheck.models.bitmap import Bitmap


def compare_bitmaps(expected: Bitmap, actual: Bitmap) -> bool:
    """Return True iff both bitmaps have the same size and identical bytes.

    No tolerance is applied, so anti-aliasing differences between engine
    versions count as mismatches.
    """
    if expected.width != actual.width or expected.height != actual.height:
        return False
    return expected.data == actual.data
