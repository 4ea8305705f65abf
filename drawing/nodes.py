from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator

# node names
GROUP = "group"
SHAPE = "shape"
SHAPE_EXTRA = "shape-extra"
ANCHOR = "anchor"
LABEL = "label"
CONNECTOR = "connector"


@dataclass
class DrawStyle:
    line_colour: str = "#ffff80"
    stroke_width: float = 2.0
    font_size: float = 10.0
    font_family: str = "Verdana"
    text_padding: float = 3.0
    anchor_radius: float = 3.0
    tag_opacity: float = 0.2

    def label_box_size(self, text: str) -> tuple[float, float]:
        """Rough width/height of a label; no font metrics available here."""
        lines = text.splitlines() or [""]
        width = max(len(line) for line in lines) * self.font_size * 0.6
        height = len(lines) * self.font_size * 1.2
        return width + 2 * self.text_padding, height + 2 * self.text_padding


@dataclass
class ShapeNode:
    """
    Backend neutral description of something to draw.

    primitive is one of: group, circle, ellipse, rect, line, arc, text.
    """

    name: str
    primitive: str
    attrs: dict[str, Any] = field(default_factory=dict)
    style: dict[str, Any] = field(default_factory=dict)
    children: list[ShapeNode] = field(default_factory=list)
    id: str | None = None
    visible: bool = True

    def walk(self) -> Iterator[ShapeNode]:
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, name: str) -> list[ShapeNode]:
        return [c for c in self.children if c.name == name]

    def find_one(self, name: str) -> ShapeNode | None:
        found = self.find(name)
        return found[0] if found else None

    def find_by_id(self, node_id: str) -> ShapeNode | None:
        for n in self.walk():
            if n.id == node_id:
                return n
        return None

    def replace_children(self, name: str, nodes: list[ShapeNode]) -> None:
        """Swap all children called name for nodes, keeping their slot."""
        out: list[ShapeNode] = []
        inserted = False
        for c in self.children:
            if c.name == name:
                if not inserted:
                    out.extend(nodes)
                    inserted = True
                continue
            out.append(c)
        if not inserted:
            out.extend(nodes)
        self.children = out
