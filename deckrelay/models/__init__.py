"""ORM Models — SQLAlchemy declarative models.

Design Decisions:
    - All models imported here so Base.metadata is complete before create_all / autogenerate
"""

from deckrelay.models.tool_call import ToolCall  # noqa: F401
