from .events import SessionEvents
from .session import BoundNode, EditorSession

__all__ = ["BoundNode", "EditorSession", "SessionEvents"]
