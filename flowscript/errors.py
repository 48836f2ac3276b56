"""Exception types shared by the compiler, the editor session and the server."""


class FlowScriptError(Exception):
    """Base class for every error raised by flowscript itself."""


class MissingStartNode(FlowScriptError):
    """Raised by the linearizer when the graph has no ``start`` node."""

    def __init__(self, message: str = "graph has no start node") -> None:
        super().__init__(message)


class InvalidDocument(FlowScriptError, ValueError):
    """Raised when an imported graph document fails structural validation."""


class EmptyScriptName(FlowScriptError, ValueError):
    """Raised when a save is requested without a script name."""

    def __init__(self, message: str = "script name must not be empty") -> None:
        super().__init__(message)


class UnknownNode(FlowScriptError, KeyError):
    def __str__(self) -> str:
        return f"node '{self.args[0]}' not found"


class UnknownEdge(FlowScriptError, KeyError):
    def __str__(self) -> str:
        return f"edge '{self.args[0]}' not found"


class UnknownSession(FlowScriptError, KeyError):
    def __str__(self) -> str:
        return f"session '{self.args[0]}' not found"


class ScriptRunnerUnavailable(FlowScriptError):
    """Raised when a run is requested but no execution service is configured."""


class InvalidParams(FlowScriptError, ValueError):
    """Raised when an editor update carries a bad node kind, param value or position."""
