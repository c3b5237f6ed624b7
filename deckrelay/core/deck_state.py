"""Deck State — in-memory presentation model mutated by the deck engine.

Invariants:
    - Slide and shape indexes are 0-based positions; ids are stable across moves
    - Ids are never reused within one DeckState
    - Table cells are a rectangular rows x columns grid of strings
    - Out-of-range lookups raise ToolValidationError naming the offending argument

Design Decisions:
    - Pure dataclasses, no IO (ADR: ExMA functional core); the engine adds the async shell
    - Single writer by construction: only DeckEngine holds a reference in production
"""

import copy
from dataclasses import dataclass, field

from deckrelay.core.domain_types import ShapeKind
from deckrelay.core.errors import ToolValidationError


SLIDE_LAYOUTS = (
    "Blank",
    "Title Slide",
    "Title and Content",
    "Section Header",
    "Title Only",
)


@dataclass
class Shape:
    id: str
    name: str
    kind: ShapeKind
    left: float
    top: float
    width: float
    height: float
    text: str | None = None
    cells: list[list[str]] | None = None

    def describe(self, index: int) -> dict:
        return {
            "index": index,
            "id": self.id,
            "name": self.name,
            "type": self.kind.value,
            "text": self.text,
        }


@dataclass
class Slide:
    id: str
    shapes: list[Shape] = field(default_factory=list)
    background_color: str | None = None
    layout: str = "Blank"

    def describe(self) -> list[dict]:
        return [shape.describe(i) for i, shape in enumerate(self.shapes)]


@dataclass
class DeckState:
    """The whole presentation — pure dataclass, no IO."""

    title: str = "Untitled Presentation"
    slides: list[Slide] = field(default_factory=list)
    selected_slide_ids: list[str] = field(default_factory=list)
    _next_id: int = 256

    def new_id(self) -> str:
        self._next_id += 1
        return str(self._next_id)

    def add_slide(self, layout: str = "Blank") -> Slide:
        slide = Slide(id=self.new_id(), layout=layout)
        self.slides.append(slide)
        return slide

    def slide_at(self, index: object, field_name: str = "index") -> Slide:
        position = _check_index(index, len(self.slides), field_name, "slide")
        return self.slides[position]

    def shape_at(
        self, slide: Slide, index: object, field_name: str = "shapeIndex",
    ) -> Shape:
        position = _check_index(index, len(slide.shapes), field_name, "shape")
        return slide.shapes[position]

    def clone_slide(self, slide: Slide) -> Slide:
        """Deep copy with fresh ids for the slide and each shape."""
        duplicate = copy.deepcopy(slide)
        duplicate.id = self.new_id()
        for shape in duplicate.shapes:
            shape.id = self.new_id()
        return duplicate


def _check_index(index: object, size: int, field_name: str, noun: str) -> int:
    # bool is an int subclass; True must not address slide 1
    if isinstance(index, bool) or not isinstance(index, int):
        raise ToolValidationError(
            f"{field_name} must be an integer", field=field_name,
        )
    if index < 0 or index >= size:
        upper = f"0–{size - 1}" if size else f"no {noun}s"
        raise ToolValidationError(
            f"{field_name} {index} is out of range ({upper})", field=field_name,
        )
    return index


def new_deck(title: str = "Untitled Presentation") -> DeckState:
    """A deck with one title slide, as a freshly opened presentation has."""
    deck = DeckState(title=title)
    slide = deck.add_slide(layout="Title Slide")
    slide.shapes.append(Shape(
        id=deck.new_id(), name="Title 1", kind=ShapeKind.TITLE,
        left=50, top=40, width=860, height=80, text="",
    ))
    deck.selected_slide_ids = [slide.id]
    return deck
