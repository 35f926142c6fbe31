"""Rectangle splitting and frame compositing.

A frame is built by carving the terminal rectangle into regions and pasting
pre-rendered text blocks into a shared ``FrameBuffer``. Later pastes win, so
overlays are composited simply by pasting them last.
"""

from __future__ import annotations

from dataclasses import dataclass

from .ansi import RESET, pad_ansi_line, slice_ansi_line


@dataclass(frozen=True)
class Rect:
    """Half-open cell rectangle ``[x, x + width) x [y, y + height)``."""

    x: int
    y: int
    width: int
    height: int

    def contains(self, col: int, row: int) -> bool:
        return self.x <= col < self.x + self.width and self.y <= row < self.y + self.height

    @property
    def empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def centered(self, width: int, height: int) -> Rect:
        """Return a ``width`` x ``height`` rectangle centered inside this one."""
        width = max(0, min(width, self.width))
        height = max(0, min(height, self.height))
        return Rect(
            self.x + (self.width - width) // 2,
            self.y + (self.height - height) // 2,
            width,
            height,
        )


EMPTY_RECT = Rect(0, 0, 0, 0)


@dataclass(frozen=True)
class Fixed:
    """Size the first region to exactly ``cells`` rows or columns."""

    cells: int

    def resolve(self, total: int) -> int:
        return max(0, min(total, self.cells))


@dataclass(frozen=True)
class Percent:
    """Size the first region to ``value`` percent of the available span."""

    value: float

    def resolve(self, total: int) -> int:
        return max(0, min(total, int(total * self.value / 100.0)))


def split_vertical(rect: Rect, size: Fixed | Percent) -> tuple[Rect, Rect]:
    """Split into top and bottom regions; ``size`` sizes the top one."""
    top_height = size.resolve(rect.height)
    top = Rect(rect.x, rect.y, rect.width, top_height)
    bottom = Rect(rect.x, rect.y + top_height, rect.width, rect.height - top_height)
    return top, bottom


def split_horizontal(rect: Rect, size: Fixed | Percent) -> tuple[Rect, Rect]:
    """Split into left and right regions; ``size`` sizes the left one."""
    left_width = size.resolve(rect.width)
    left = Rect(rect.x, rect.y, left_width, rect.height)
    right = Rect(rect.x + left_width, rect.y, rect.width - left_width, rect.height)
    return left, right


def block_height(content: str) -> int:
    if not content:
        return 0
    return len(content.split("\n"))


class FrameBuffer:
    """Row-oriented frame of styled text lines."""

    def __init__(self, width: int, height: int) -> None:
        if width < 0 or height < 0:
            raise ValueError(f"invalid frame size {width}x{height}")
        self.width = width
        self.height = height
        self._rows = [" " * width for _ in range(height)]

    def set_content_rect(self, content: str, rect: Rect) -> None:
        """Paste ``content`` into ``rect``, clipping and padding each line."""
        x = max(0, rect.x)
        width = min(rect.width - (x - rect.x), self.width - x)
        if width <= 0 or rect.height <= 0:
            return
        lines = content.replace("\r", "").split("\n") if content else []
        for offset in range(rect.height):
            row = rect.y + offset
            if row < 0 or row >= self.height:
                continue
            line = lines[offset] if offset < len(lines) else ""
            current = self._rows[row]
            prefix = slice_ansi_line(current, 0, x)
            suffix = slice_ansi_line(current, x + width, self.width - x - width)
            self._rows[row] = "".join(
                (
                    prefix,
                    RESET if "\x1b" in prefix else "",
                    pad_ansi_line(line, width),
                    suffix,
                )
            )

    def render(self) -> str:
        """Flatten the frame into one text blob with ``\\n`` line endings."""
        return "\n".join(self._rows).replace("\r", "")
