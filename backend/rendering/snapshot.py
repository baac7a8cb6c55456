"""
MatplotlibSurface — paints the same primitives as CommandCanvas onto a
matplotlib figure so the current canvas can be exported as a PNG.
"""

import base64
import io
import logging

from matplotlib import colors as mcolors
from matplotlib.figure import Figure
from matplotlib.patches import Circle, Rectangle

from rendering.surface import DrawingSurface, GRID_SIZE

logger = logging.getLogger(__name__)

DPI = 100


def _rgba(color: str, alpha: float = 1.0):
    # "#rrggbbaa" carries its own alpha
    if isinstance(color, str) and color.startswith("#") and len(color) == 9:
        return mcolors.to_rgba(color[:7], int(color[7:], 16) / 255.0)
    return mcolors.to_rgba(color, alpha)


def _font_size(font: str) -> float:
    for part in font.split():
        if part.endswith("px"):
            try:
                return float(part[:-2]) * 0.75
            except ValueError:
                break
    return 10.0


class MatplotlibSurface(DrawingSurface):

    def __init__(self, width: int = 700, height: int = 500):
        super().__init__(width, height)
        # never registered with pyplot
        self.fig = Figure(figsize=(width / DPI, height / DPI), dpi=DPI)
        self.ax = self.fig.add_axes([0, 0, 1, 1])
        self._setup_axes()

    def _setup_axes(self):
        self.ax.set_xlim(0, self.width)
        self.ax.set_ylim(self.height, 0)  # canvas y axis points down
        self.ax.set_aspect("equal")
        self.ax.axis("off")

    def clear(self):
        self.ax.clear()
        self._setup_axes()

    def draw_grid(self, size: int = GRID_SIZE):
        for x in range(size, self.width, size):
            self.ax.plot([x, x], [0, self.height], color=self.colors["grid"], linewidth=1, zorder=0)
        for y in range(size, self.height, size):
            self.ax.plot([0, self.width], [y, y], color=self.colors["grid"], linewidth=1, zorder=0)

    def draw_point(self, x, y, color=None, radius=8, filled=True):
        color = color or self.colors["point"]
        self.ax.add_patch(Circle((x, y), radius, fill=filled, facecolor=_rgba(color) if filled else "none",
                                 edgecolor=_rgba(color), linewidth=2, zorder=3))

    def draw_line(self, x1, y1, x2, y2, color=None, width=2, dashed=False):
        self.ax.plot([x1, x2], [y1, y2], color=_rgba(color or self.colors["line"]), linewidth=width,
                     linestyle="--" if dashed else "-", zorder=2)

    def draw_rect(self, x, y, width, height, color, alpha=0.2):
        self.ax.add_patch(Rectangle((x, y), width, height, facecolor=_rgba(color, alpha),
                                    edgecolor=_rgba(color), linewidth=2, zorder=1))

    def draw_text(self, text, x, y, color=None, font="14px Poppins"):
        self.ax.text(x, y, str(text), color=_rgba(color or self.colors["text"]),
                     fontsize=_font_size(font), fontweight="bold" if "bold" in font else "normal", zorder=5)

    def draw_centroid(self, x, y, color, label=""):
        self.ax.add_patch(Circle((x, y), 15, fill=False, edgecolor=_rgba(color), linewidth=3, zorder=4))
        self.ax.add_patch(Circle((x, y), 8, facecolor=_rgba(color), edgecolor="none", zorder=4))
        self.ax.plot([x - 5, x + 5], [y, y], color="white", linewidth=2, zorder=4)
        self.ax.plot([x, x], [y - 5, y + 5], color="white", linewidth=2, zorder=4)
        if label:
            self.draw_text(label, x + 20, y + 5, self.colors["text"], "12px Poppins")

    def to_png(self) -> bytes:
        buf = io.BytesIO()
        self.fig.savefig(buf, format="png", dpi=DPI)
        data = buf.getvalue()
        logger.debug(f"Rendered {self.width}x{self.height} snapshot: {len(data)} bytes")
        return data

    def to_base64(self) -> str:
        return base64.b64encode(self.to_png()).decode("ascii")
