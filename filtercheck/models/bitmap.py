"""Region and bitmap value types used by the screenshot oracle."""

from __future__ import annotations

import base64
import io
from dataclasses import dataclass
from typing import Optional

from PIL import Image

# Channel order of every Bitmap buffer
MODE = "RGBA"


@dataclass(frozen=True)
class Region:
    """Bounding box of an element in page coordinates."""
    x: int
    y: int
    width: int
    height: int

    @classmethod
    def from_rect(cls, rect: dict) -> "Region":
        return cls(
            x=round(rect["x"]),
            y=round(rect["y"]),
            width=round(rect["width"]),
            height=round(rect["height"]),
        )


@dataclass(frozen=True)
class Bitmap:
    width: int
    height: int
    data: bytes

    @classmethod
    def from_image(cls, image: Image.Image) -> "Bitmap":
        if image.mode != MODE:
            image = image.convert(MODE)
        return cls(width=image.width, height=image.height, data=image.tobytes())

    @classmethod
    def from_screenshot(cls, payload: bytes | str, region: Optional[Region] = None) -> "Bitmap":
        """Decode a PNG screenshot, given raw or base64-encoded.

        With a region (in screenshot coordinates) only that part is kept. The
        result is always region-sized; parts outside the screenshot are zero.
        """
        if isinstance(payload, str):
            payload = base64.b64decode(payload)
        with Image.open(io.BytesIO(payload)) as image:
            if region is not None:
                image = image.crop((region.x, region.y,
                                    region.x + region.width, region.y + region.height))
            return cls.from_image(image)

    def to_image(self) -> Image.Image:
        return Image.frombytes(MODE, (self.width, self.height), self.data)

    def __repr__(self) -> str:
        return f"Bitmap({self.width}x{self.height})"
