"""Slide Handlers — presentation- and slide-level operations (11 methods).

Invariants:
    - Every handler takes the raw args dict and returns a JSON-serializable dict
    - Argument problems raise ToolValidationError before any mutation happens
    - Handlers do no IO of their own; serialization is the queue's job

Design Decisions:
    - Handlers hold the DeckState they mutate, instantiated once by DeckEngine
    - Split slides vs shapes for locality (ADR: ExMA no god objects)
"""

from deckrelay.core.deck_state import DeckState, SLIDE_LAYOUTS
from deckrelay.core.domain_types import ShapeKind
from deckrelay.core.errors import ToolValidationError
from deckrelay.core.tool_args import require_int, require_str


class SlideHandlers:
    """Read, add, remove, reorder and restyle slides."""

    def __init__(self, state: DeckState):
        self.state = state

    async def get_presentation_info(self, args: dict) -> dict:
        return {"title": self.state.title, "slideCount": len(self.state.slides)}

    async def list_slides(self, args: dict) -> dict:
        return {
            "slides": [
                {"index": i, "id": slide.id}
                for i, slide in enumerate(self.state.slides)
            ],
        }

    async def get_slide(self, args: dict) -> dict:
        index = require_int(args, "index")
        slide = self.state.slide_at(index)
        return {"index": index, "shapes": slide.describe()}

    async def get_selected_slide(self, args: dict) -> dict:
        selected = [
            slide for slide in self.state.slides
            if slide.id in self.state.selected_slide_ids
        ]
        if not selected:
            return {"selectedSlides": []}
        first = selected[0]
        return {
            "selectedSlideIds": [slide.id for slide in selected],
            "firstSlide": {"id": first.id, "shapes": first.describe()},
        }

    async def add_slide(self, args: dict) -> dict:
        self.state.add_slide()
        count = len(self.state.slides)
        return {"success": True, "newSlideCount": count, "newSlideIndex": count - 1}

    async def delete_slide(self, args: dict) -> dict:
        slide = self.state.slide_at(require_int(args, "index"))
        self.state.slides.remove(slide)
        if slide.id in self.state.selected_slide_ids:
            self.state.selected_slide_ids.remove(slide.id)
        return {"success": True, "remainingSlides": len(self.state.slides)}

    async def move_slide(self, args: dict) -> dict:
        from_index = require_int(args, "fromIndex")
        to_index = require_int(args, "toIndex")
        slide = self.state.slide_at(from_index, "fromIndex")
        self.state.slide_at(to_index, "toIndex")
        self.state.slides.pop(from_index)
        self.state.slides.insert(to_index, slide)
        return {"success": True, "movedFrom": from_index, "movedTo": to_index}

    async def duplicate_slide(self, args: dict) -> dict:
        index = require_int(args, "index")
        duplicate = self.state.clone_slide(self.state.slide_at(index))
        self.state.slides.append(duplicate)
        return {"success": True, "duplicatedSlideIndex": index}

    async def set_slide_title(self, args: dict) -> dict:
        index = require_int(args, "index")
        title = require_str(args, "title")
        slide = self.state.slide_at(index)
        if not slide.shapes:
            raise ToolValidationError(
                f"Slide {index} has no shapes to set as title.", field="index",
            )
        # Title placeholder first, otherwise the first shape
        target = next(
            (s for s in slide.shapes if s.kind == ShapeKind.TITLE), slide.shapes[0],
        )
        target.text = title
        return {"success": True}

    async def apply_background_color(self, args: dict) -> dict:
        slide = self.state.slide_at(require_int(args, "index"))
        color = require_str(args, "color")
        if not _is_hex_color(color):
            raise ToolValidationError(
                f"color must be a hex string like '#FF5733', got '{color}'",
                field="color",
            )
        slide.background_color = color.upper()
        return {"success": True}

    async def set_layout(self, args: dict) -> dict:
        slide = self.state.slide_at(require_int(args, "index"))
        layout_index = require_int(args, "layoutIndex")
        if not 0 <= layout_index < len(SLIDE_LAYOUTS):
            raise ToolValidationError(
                f"layoutIndex {layout_index} is out of range "
                f"(0–{len(SLIDE_LAYOUTS) - 1}). Available layouts: {len(SLIDE_LAYOUTS)}",
                field="layoutIndex",
            )
        slide.layout = SLIDE_LAYOUTS[layout_index]
        return {"success": True, "layout": slide.layout}


def _is_hex_color(value: str) -> bool:
    digits = value[1:]
    return (
        value.startswith("#")
        and len(digits) in (3, 6)
        and all(c in "0123456789abcdefABCDEF" for c in digits)
    )
