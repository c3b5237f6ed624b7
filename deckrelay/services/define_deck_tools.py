"""Define Deck Tools — schemas registered with the chat embed on READY.

Invariants:
    - Every schema is {name, description, parameters} with a JSON Schema object
    - Every name here has a matching DeckEngine operation (checked by OperationRegistry)
    - Indexes are documented as 0-based in every description

Design Decisions:
    - Tool schemas in a dedicated file: explicit, no auto-discovery (ADR: ExMA anti-pattern)
    - Split into read vs write lists so the registry can expose either subset
"""


def _index(description: str) -> dict:
    return {"type": "number", "description": description}


_SLIDE_INDEX = _index("0-based index of the slide.")
_SHAPE_INDEX = _index("0-based index of the shape on the slide.")


TOOLS_READ = [
    {
        "name": "get_presentation_info",
        "description": "Get high-level information about the current presentation: its title and total slide count.",
        "parameters": {"type": "object", "properties": {}},
    },
    {
        "name": "list_slides",
        "description": "List all slides in the presentation. Returns each slide's index (0-based) and ID.",
        "parameters": {"type": "object", "properties": {}},
    },
    {
        "name": "get_slide",
        "description": "Get the contents of a specific slide by its 0-based index. Returns all shapes with their names, IDs, types, and text content.",
        "parameters": {
            "type": "object",
            "properties": {"index": _index("0-based index of the slide to read.")},
            "required": ["index"],
        },
    },
    {
        "name": "get_selected_slide",
        "description": "Get the currently selected slide(s). Returns shapes and text on the first selected slide.",
        "parameters": {"type": "object", "properties": {}},
    },
    {
        "name": "get_shapes",
        "description": "Get all shapes on a slide with their names, IDs, and types.",
        "parameters": {
            "type": "object",
            "properties": {"index": _SLIDE_INDEX},
            "required": ["index"],
        },
    },
]


TOOLS_WRITE = [
    {
        "name": "add_slide",
        "description": "Add a new blank slide at the end of the presentation.",
        "parameters": {"type": "object", "properties": {}},
    },
    {
        "name": "delete_slide",
        "description": "Delete a slide at the given 0-based index. This operation is permanent.",
        "parameters": {
            "type": "object",
            "properties": {"index": _index("0-based index of the slide to delete.")},
            "required": ["index"],
        },
    },
    {
        "name": "move_slide",
        "description": "Move a slide to a new 0-based position in the presentation.",
        "parameters": {
            "type": "object",
            "properties": {
                "fromIndex": _index("0-based index of the slide to move."),
                "toIndex": _index("0-based destination index."),
            },
            "required": ["fromIndex", "toIndex"],
        },
    },
    {
        "name": "duplicate_slide",
        "description": "Duplicate a slide by its 0-based index. The duplicate is inserted after the existing slides.",
        "parameters": {
            "type": "object",
            "properties": {"index": _index("0-based index of the slide to duplicate.")},
            "required": ["index"],
        },
    },
    {
        "name": "set_slide_title",
        "description": "Set the title text of a slide. Uses the title placeholder, or the first shape if there is none.",
        "parameters": {
            "type": "object",
            "properties": {
                "index": _SLIDE_INDEX,
                "title": {"type": "string", "description": "The title text to set."},
            },
            "required": ["index", "title"],
        },
    },
    {
        "name": "add_text_box",
        "description": "Add a text box to a slide at the specified position and size (in points).",
        "parameters": {
            "type": "object",
            "properties": {
                "index": _SLIDE_INDEX,
                "text": {"type": "string", "description": "Text content for the text box."},
                "left": _index("Horizontal position from the left edge in points. Default: 50."),
                "top": _index("Vertical position from the top edge in points. Default: 50."),
                "width": _index("Width of the text box in points. Default: 400."),
                "height": _index("Height of the text box in points. Default: 100."),
            },
            "required": ["index", "text"],
        },
    },
    {
        "name": "set_shape_text",
        "description": "Set the text content of a shape on a slide, identified by its 0-based shape index.",
        "parameters": {
            "type": "object",
            "properties": {
                "slideIndex": _SLIDE_INDEX,
                "shapeIndex": _SHAPE_INDEX,
                "text": {"type": "string", "description": "Text to set on the shape."},
            },
            "required": ["slideIndex", "shapeIndex", "text"],
        },
    },
    {
        "name": "delete_shape",
        "description": "Delete a shape from a slide by its 0-based shape index.",
        "parameters": {
            "type": "object",
            "properties": {"slideIndex": _SLIDE_INDEX, "shapeIndex": _SHAPE_INDEX},
            "required": ["slideIndex", "shapeIndex"],
        },
    },
    {
        "name": "add_table",
        "description": "Add a table to a slide with the specified number of rows and columns.",
        "parameters": {
            "type": "object",
            "properties": {
                "index": _SLIDE_INDEX,
                "rows": _index("Number of rows in the table."),
                "columns": _index("Number of columns in the table."),
                "left": _index("Horizontal position in points. Default: 50."),
                "top": _index("Vertical position in points. Default: 100."),
                "width": _index("Width of the table in points. Default: 500."),
                "height": _index("Height of the table in points. Default: 200."),
            },
            "required": ["index", "rows", "columns"],
        },
    },
    {
        "name": "set_table_data",
        "description": "Set the text content of a specific table cell on a slide. The table is identified by its shape index.",
        "parameters": {
            "type": "object",
            "properties": {
                "slideIndex": _SLIDE_INDEX,
                "shapeIndex": _index("0-based index of the table shape on the slide."),
                "row": _index("0-based row index."),
                "column": _index("0-based column index."),
                "text": {"type": "string", "description": "Text to set in the cell."},
            },
            "required": ["slideIndex", "shapeIndex", "row", "column", "text"],
        },
    },
    {
        "name": "apply_background_color",
        "description": "Apply a solid background color to a slide.",
        "parameters": {
            "type": "object",
            "properties": {
                "index": _SLIDE_INDEX,
                "color": {"type": "string", "description": "Hex color string, e.g. '#FF5733' or '#FFFFFF'."},
            },
            "required": ["index", "color"],
        },
    },
    {
        "name": "set_shape_position",
        "description": "Move and/or resize a shape by setting its left, top, width, and/or height (in points). Supply only the properties you want to change.",
        "parameters": {
            "type": "object",
            "properties": {
                "slideIndex": _SLIDE_INDEX,
                "shapeIndex": _SHAPE_INDEX,
                "left": _index("Distance from the left edge of the slide in points."),
                "top": _index("Distance from the top edge of the slide in points."),
                "width": _index("Width of the shape in points."),
                "height": _index("Height of the shape in points."),
            },
            "required": ["slideIndex", "shapeIndex"],
        },
    },
    {
        "name": "set_layout",
        "description": "Apply a slide layout by its 0-based index: 0 Blank, 1 Title Slide, 2 Title and Content, 3 Section Header, 4 Title Only.",
        "parameters": {
            "type": "object",
            "properties": {
                "index": _SLIDE_INDEX,
                "layoutIndex": _index("0-based index of the layout."),
            },
            "required": ["index", "layoutIndex"],
        },
    },
]


ALL_TOOLS: list[dict] = [
    *TOOLS_READ,     # 5 tools
    *TOOLS_WRITE,    # 13 tools
]
