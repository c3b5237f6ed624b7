"""Shape Handlers — text boxes, tables, and shape geometry (7 methods).

Invariants:
    - Shapes are addressed by (slideIndex, shapeIndex); add_* tools address the slide as `index`
    - set_table_data only targets Table shapes, one cell per call
    - Position defaults match the add-in: text box 50/50/400x100, table 50/100/500x200

Design Decisions:
    - One cell per set_table_data call mirrors the embed's tool schema: a 15-cell table
      arrives as 15 tool calls in the same tick, which is exactly what the queue serializes
"""

from deckrelay.core.deck_state import DeckState, Shape
from deckrelay.core.domain_types import ShapeKind
from deckrelay.core.errors import ToolValidationError
from deckrelay.core.tool_args import optional_number, require_int, require_str


class ShapeHandlers:
    """Create, edit, move and delete shapes on a slide."""

    def __init__(self, state: DeckState):
        self.state = state

    async def get_shapes(self, args: dict) -> dict:
        index = require_int(args, "index")
        slide = self.state.slide_at(index)
        return {
            "slideIndex": index,
            "shapes": [
                {k: v for k, v in shape.items() if k != "text"}
                for shape in slide.describe()
            ],
        }

    async def add_text_box(self, args: dict) -> dict:
        slide = self.state.slide_at(require_int(args, "index"))
        text = require_str(args, "text")
        shape = Shape(
            id=self.state.new_id(),
            name=f"TextBox {len(slide.shapes) + 1}",
            kind=ShapeKind.TEXT_BOX,
            left=optional_number(args, "left", 50),
            top=optional_number(args, "top", 50),
            width=optional_number(args, "width", 400),
            height=optional_number(args, "height", 100),
            text=text,
        )
        slide.shapes.append(shape)
        return {"success": True, "shapeIndex": len(slide.shapes) - 1, "shapeId": shape.id}

    async def set_shape_text(self, args: dict) -> dict:
        slide = self.state.slide_at(require_int(args, "slideIndex"), "slideIndex")
        shape = self.state.shape_at(slide, require_int(args, "shapeIndex"))
        text = require_str(args, "text")
        if shape.kind == ShapeKind.TABLE:
            raise ToolValidationError(
                "Table shapes have no text frame; use set_table_data.", field="shapeIndex",
            )
        shape.text = text
        return {"success": True}

    async def delete_shape(self, args: dict) -> dict:
        slide = self.state.slide_at(require_int(args, "slideIndex"), "slideIndex")
        shape = self.state.shape_at(slide, require_int(args, "shapeIndex"))
        slide.shapes.remove(shape)
        return {"success": True}

    async def add_table(self, args: dict) -> dict:
        slide = self.state.slide_at(require_int(args, "index"))
        rows = require_int(args, "rows")
        columns = require_int(args, "columns")
        if rows < 1 or columns < 1:
            raise ToolValidationError(
                "rows and columns must be at least 1", field="rows" if rows < 1 else "columns",
            )
        shape = Shape(
            id=self.state.new_id(),
            name=f"Table {len(slide.shapes) + 1}",
            kind=ShapeKind.TABLE,
            left=optional_number(args, "left", 50),
            top=optional_number(args, "top", 100),
            width=optional_number(args, "width", 500),
            height=optional_number(args, "height", 200),
            cells=[["" for _ in range(columns)] for _ in range(rows)],
        )
        slide.shapes.append(shape)
        return {"success": True, "shapeIndex": len(slide.shapes) - 1}

    async def set_table_data(self, args: dict) -> dict:
        slide = self.state.slide_at(require_int(args, "slideIndex"), "slideIndex")
        shape = self.state.shape_at(slide, require_int(args, "shapeIndex"))
        row = require_int(args, "row")
        column = require_int(args, "column")
        text = require_str(args, "text")
        if shape.kind != ShapeKind.TABLE or shape.cells is None:
            raise ToolValidationError(
                f"Shape {args['shapeIndex']} is not a table", field="shapeIndex",
            )
        if not 0 <= row < len(shape.cells):
            raise ToolValidationError(f"row {row} is out of range", field="row")
        if not 0 <= column < len(shape.cells[row]):
            raise ToolValidationError(f"column {column} is out of range", field="column")
        shape.cells[row][column] = text
        return {"success": True}

    async def set_shape_position(self, args: dict) -> dict:
        slide = self.state.slide_at(require_int(args, "slideIndex"), "slideIndex")
        shape = self.state.shape_at(slide, require_int(args, "shapeIndex"))
        # Validate every field before touching the shape
        updates = {
            key: optional_number(args, key)
            for key in ("left", "top", "width", "height")
        }
        for key, value in updates.items():
            if value is not None:
                setattr(shape, key, value)
        return {
            "success": True,
            "left": shape.left,
            "top": shape.top,
            "width": shape.width,
            "height": shape.height,
        }
