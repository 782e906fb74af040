"""Terminal rendering of the QR image."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from rich.text import Text

from qrcation.encoder import code_modules

if TYPE_CHECKING:
    from PIL import Image

HALF_BLOCK = "▀"
DARK = "black"
LIGHT = "white"
DARK_THRESHOLD = 128
TOO_SMALL = "Window too small"


def code_dots(width: int, height: int) -> int:
    """Side of the largest square of half-block dots in width x height cells."""
    return max(0, min(width, height * 2))


def center_message(message: str, width: int, height: int) -> str:
    line = message[:width] if width > 0 else ""
    pad = max(0, (width - len(line)) // 2)
    centered = (" " * pad + line).ljust(width)
    top_pad = max(0, (height - 1) // 2)
    lines = [" " * width for _ in range(top_pad)]
    lines.append(centered)
    lines.extend([" " * width for _ in range(max(0, height - len(lines)))])
    return "\n".join(lines[:height])


def _style(top_dark: bool, bottom_dark: bool) -> str:
    return f"{DARK if top_dark else LIGHT} on {DARK if bottom_dark else LIGHT}"


def render_code_text(
    image: Optional["Image.Image"],
    width: int,
    height: int,
    *,
    placeholder: str = "",
    too_small: str = TOO_SMALL,
) -> Text:
    """Draw ``image`` centered in a width x height cell area.

    Each cell holds two vertical dots: the upper one as foreground of a
    half block, the lower one as its background. Modules are drawn whole,
    each as the same square of dots, and ``too_small`` is shown instead
    when the area has fewer dots than the code has modules.
    """
    if image is None:
        return Text(center_message(placeholder, width, height))
    dots = code_dots(width, height)
    modules = code_modules(image)
    if modules < 1 or dots < modules:
        return Text(center_message(too_small, width, height))
    from PIL import Image as PILImage

    side = modules * (dots // modules)
    grid = image.convert("L").resize((modules, modules), PILImage.Resampling.NEAREST)
    pixels = grid.resize((side, side), PILImage.Resampling.NEAREST).load()
    rows = (side + 1) // 2
    left = " " * max(0, (width - side) // 2)
    top = max(0, (height - rows) // 2)

    text = Text("\n" * top)
    for row in range(rows):
        text.append(left)
        run_style: Optional[str] = None
        run_len = 0
        for x in range(side):
            top_dark = pixels[x, 2 * row] < DARK_THRESHOLD
            bottom_y = 2 * row + 1
            bottom_dark = bottom_y < side and pixels[x, bottom_y] < DARK_THRESHOLD
            style = _style(top_dark, bottom_dark)
            if style == run_style:
                run_len += 1
                continue
            if run_style is not None:
                text.append(HALF_BLOCK * run_len, style=run_style)
            run_style = style
            run_len = 1
        if run_style is not None:
            text.append(HALF_BLOCK * run_len, style=run_style)
        if row < rows - 1:
            text.append("\n")
    return text
