"""
Drawing surfaces consumed by BaseAlgorithm.visualize().

A surface only knows how to paint primitives in canvas pixel coordinates
(origin top-left, y down); it never holds algorithm state.

- DrawingSurface: primitive API plus composites built on top of it.
- CommandCanvas: records every primitive as a JSON-serializable command that
  the browser replays on its <canvas>.
"""

from typing import Any, Dict, List, Optional, Sequence

COLORS = {
    "point": "#4f46e5",
    "line": "#ef4444",
    "cluster": ["#ef4444", "#3b82f6", "#10b981", "#f59e0b", "#8b5cf6"],
    "centroid": "#1e293b",
    "grid": "#e2e8f0",
    "text": "#64748b",
    "highlight": "#fbbf24",
    "mean": "#10b981",
    "boundary": "#8b5cf6",
    "classes": ["#ef4444", "#3b82f6"],
}

GRID_SIZE = 50


class DrawingSurface:
    colors = COLORS

    def __init__(self, width: int = 700, height: int = 500):
        self.width = width
        self.height = height

    # ---- primitives ----
    def clear(self): raise NotImplementedError
    def draw_grid(self, size: int = GRID_SIZE): raise NotImplementedError
    def draw_point(self, x, y, color=None, radius=8, filled=True): raise NotImplementedError
    def draw_line(self, x1, y1, x2, y2, color=None, width=2, dashed=False): raise NotImplementedError
    def draw_rect(self, x, y, width, height, color, alpha=0.2): raise NotImplementedError
    def draw_text(self, text, x, y, color=None, font="14px Poppins"): raise NotImplementedError
    def draw_centroid(self, x, y, color, label=""): raise NotImplementedError
    def pulse_point(self, x, y, color=None): pass

    # ---- composites ----
    def draw_points(self, points, colors: Optional[Sequence[str]] = None, radius: int = 8):
        for i, p in enumerate(points):
            self.draw_point(p.x, p.y, colors[i] if colors else self.colors["point"], radius)

    def draw_regression_line(self, slope: float, intercept: float, color: Optional[str] = None):
        self.draw_line(0, intercept, self.width, slope * self.width + intercept,
                       color or self.colors["line"], 3)

    def draw_cluster_connections(self, points, centroids, assignments):
        palette = self.colors["cluster"]
        for p, a in zip(points, assignments):
            if a < 0 or a >= len(centroids):
                continue
            cx, cy = centroids[a]
            # trailing "40" is the alpha byte
            self.draw_line(p.x, p.y, cx, cy, palette[a % len(palette)] + "40", 1, True)

    def draw_decision_boundary(self, feature: str, threshold: float, bounds, color: Optional[str] = None):
        color = color or self.colors["boundary"]
        if feature == "x":
            self.draw_line(threshold, bounds.min_y, threshold, bounds.max_y, color, 2, True)
        else:
            self.draw_line(bounds.min_x, threshold, bounds.max_x, threshold, color, 2, True)


class CommandCanvas(DrawingSurface):
    """Records draw calls; ``commands`` is what the browser client replays."""

    def __init__(self, width: int = 700, height: int = 500):
        super().__init__(width, height)
        self.commands: List[Dict[str, Any]] = []

    def _emit(self, op: str, **args):
        cmd = {"op": op}
        cmd.update({k: (float(v) if isinstance(v, (int, float)) and not isinstance(v, bool) else v)
                    for k, v in args.items()})
        self.commands.append(cmd)

    def clear(self):
        self.commands = []
        self._emit("clear", width=self.width, height=self.height)

    def draw_grid(self, size: int = GRID_SIZE):
        self._emit("grid", size=size, color=self.colors["grid"])

    def draw_point(self, x, y, color=None, radius=8, filled=True):
        self._emit("point", x=x, y=y, color=color or self.colors["point"], radius=radius, filled=filled)

    def draw_line(self, x1, y1, x2, y2, color=None, width=2, dashed=False):
        self._emit("line", x1=x1, y1=y1, x2=x2, y2=y2, color=color or self.colors["line"],
                   width=width, dashed=dashed)

    def draw_rect(self, x, y, width, height, color, alpha=0.2):
        self._emit("rect", x=x, y=y, width=width, height=height, color=color, alpha=alpha)

    def draw_text(self, text, x, y, color=None, font="14px Poppins"):
        self._emit("text", text=str(text), x=x, y=y, color=color or self.colors["text"], font=font)

    def draw_centroid(self, x, y, color, label=""):
        self._emit("centroid", x=x, y=y, color=color, label=label)

    def pulse_point(self, x, y, color=None):
        self._emit("pulse", x=x, y=y, color=color or self.colors["highlight"])

    def ops(self) -> List[str]:
        return [c["op"] for c in self.commands]

    def to_list(self) -> List[Dict[str, Any]]:
        return list(self.commands)
