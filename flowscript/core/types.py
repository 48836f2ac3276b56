from enum import Enum


class NodeKind(str, Enum):
    START = "start"
    NAVIGATE = "navigate"
    CLICK = "click"
    TYPE = "type"
    SELECT = "select"
    WAIT = "wait"
    SCREENSHOT = "screenshot"
    EXTRACT = "extract"
    CONDITION = "condition"
    CODE = "code"
    END = "end"


class WaitMode(str, Enum):
    ELEMENT = "element"
    TIME = "time"


# Palette metadata only; never consulted by the compiler.
NODE_COLORS = {
    NodeKind.START: "#4CAF50",
    NodeKind.NAVIGATE: "#2196F3",
    NodeKind.CLICK: "#FF9800",
    NodeKind.TYPE: "#9C27B0",
    NodeKind.SELECT: "#00BCD4",
    NodeKind.WAIT: "#607D8B",
    NodeKind.SCREENSHOT: "#E91E63",
    NodeKind.EXTRACT: "#673AB7",
    NodeKind.CONDITION: "#FF5722",
    NodeKind.CODE: "#795548",
    NodeKind.END: "#F44336",
}

NODE_DESCRIPTIONS = {
    NodeKind.START: "Start the Selenium script",
    NodeKind.NAVIGATE: "Navigate to a URL",
    NodeKind.CLICK: "Click on an element",
    NodeKind.TYPE: "Type text into an input",
    NodeKind.SELECT: "Select from a dropdown",
    NodeKind.WAIT: "Wait for an element or time",
    NodeKind.SCREENSHOT: "Take a screenshot",
    NodeKind.EXTRACT: "Extract data from the page",
    NodeKind.CONDITION: "Conditional branching",
    NodeKind.CODE: "Custom Python code",
    NodeKind.END: "End the Selenium script",
}
