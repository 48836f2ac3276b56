"""
Node Code Templates
===================
A NodeTemplate renders one node into a Python Selenium fragment:

  emit_inline(node, writer)
      Writes the statements for this node at the writer's current indent.
      Templates see a single node only: no I/O, no look-ups into the graph.

Every ``NodeKind`` has exactly one registered template; the registry is
checked for completeness at import time, so adding a kind without a template
fails loudly instead of silently dropping steps.

Quoting
-------
``url``, ``selector`` and ``value`` are substituted verbatim between single
quotes.  Nothing is escaped: a parameter containing ``'`` yields a broken
literal in the generated script.  Unset string parameters render as ``''``.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from flowscript.core.graph import (
    CodeParams,
    ConditionParams,
    ExtractParams,
    Node,
    SelectParams,
    TypeParams,
    WaitParams,
)
from flowscript.core.types import NodeKind, WaitMode

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MILLIS = 10000
DEFAULT_WAIT_MILLIS = 0


# ── Code writer ───────────────────────────────────────────────────────────────

class CodeWriter:
    """Simple indented string accumulator."""

    def __init__(self, indent: int = 0):
        self._lines: List[str] = []
        self._indent = indent

    def writeln(self, line: str = "") -> "CodeWriter":
        if line:
            self._lines.append("    " * self._indent + line)
        else:
            self._lines.append("")
        return self

    def blank(self) -> "CodeWriter":
        return self.writeln()

    def comment(self, text: str) -> "CodeWriter":
        return self.writeln(f"# {text}")

    def push(self) -> "CodeWriter":
        self._indent += 1
        return self

    def pop(self) -> "CodeWriter":
        self._indent = max(0, self._indent - 1)
        return self

    def extend(self, lines: List[str]) -> "CodeWriter":
        for line in lines:
            self.writeln(line)
        return self

    def lines(self) -> List[str]:
        return self._lines

    def result(self) -> str:
        return "\n".join(self._lines)


def _text(value: Optional[str]) -> str:
    return "" if value is None else value


def _locate(selector: Optional[str]) -> str:
    return f"driver.find_element(By.CSS_SELECTOR, '{_text(selector)}')"


# ── Base template ─────────────────────────────────────────────────────────────

class NodeTemplate:
    def emit_inline(self, node: Node, writer: CodeWriter) -> None:
        raise NotImplementedError(f"{type(self).__name__} has no emitter")


# ── Markers ───────────────────────────────────────────────────────────────────

class CommentTemplate(NodeTemplate):
    """Emits a fixed comment line (start / end markers)."""

    def __init__(self, text: str):
        self.text = text

    def emit_inline(self, node: Node, writer: CodeWriter) -> None:
        writer.comment(self.text)


# ── Browser actions ───────────────────────────────────────────────────────────

class NavigateTemplate(NodeTemplate):
    def emit_inline(self, node: Node, writer: CodeWriter) -> None:
        writer.writeln(f"driver.get('{_text(node.params.url)}')")


class ClickTemplate(NodeTemplate):
    def emit_inline(self, node: Node, writer: CodeWriter) -> None:
        writer.writeln(f"{_locate(node.params.selector)}.click()")


class TypeTemplate(NodeTemplate):
    def emit_inline(self, node: Node, writer: CodeWriter) -> None:
        params: TypeParams = node.params
        writer.writeln(
            f"{_locate(params.selector)}.send_keys('{_text(params.value)}')"
        )


class SelectTemplate(NodeTemplate):
    """Drop-down choice by visible option text."""

    def emit_inline(self, node: Node, writer: CodeWriter) -> None:
        params: SelectParams = node.params
        writer.blank()
        writer.writeln(f"select_element = {_locate(params.selector)}")
        writer.writeln(
            f"Select(select_element).select_by_visible_text('{_text(params.value)}')"
        )


class WaitTemplate(NodeTemplate):
    """
    ``time`` mode sleeps for ``waitMillis``; any other mode (``element`` is the
    default) waits up to ``timeoutMillis`` for the selector to be present.
    """

    def emit_inline(self, node: Node, writer: CodeWriter) -> None:
        params: WaitParams = node.params
        if params.wait_mode == WaitMode.TIME.value:
            millis = params.wait_millis if params.wait_millis is not None else DEFAULT_WAIT_MILLIS
            writer.writeln(f"time.sleep({millis} / 1000)")
            return

        timeout = params.timeout_millis or DEFAULT_TIMEOUT_MILLIS
        writer.writeln(
            f"WebDriverWait(driver, {timeout} / 1000).until("
            f"EC.presence_of_element_located((By.CSS_SELECTOR, '{_text(params.selector)}')))"
        )


class ScreenshotTemplate(NodeTemplate):
    def emit_inline(self, node: Node, writer: CodeWriter) -> None:
        writer.writeln("driver.get_screenshot_as_base64()")


class ExtractTemplate(NodeTemplate):
    def emit_inline(self, node: Node, writer: CodeWriter) -> None:
        params: ExtractParams = node.params
        writer.blank()
        writer.writeln(f"element = {_locate(params.selector)}")
        writer.writeln("extracted_value = element.text")
        writer.writeln("print('Extracted value:', extracted_value)")


class ConditionTemplate(NodeTemplate):
    """
    Visibility probe with placeholder continuations.  Both outcomes are
    comments only; the script carries on with the next step either way.
    """

    def emit_inline(self, node: Node, writer: CodeWriter) -> None:
        params: ConditionParams = node.params
        writer.blank()
        writer.writeln("try:")
        writer.push()
        writer.writeln(f"element = {_locate(params.selector)}")
        writer.writeln("is_displayed = element.is_displayed()")
        writer.writeln("if is_displayed:")
        writer.push()
        writer.comment('Continue with "true" path')
        writer.writeln("pass")
        writer.pop()
        writer.writeln("else:")
        writer.push()
        writer.comment('Continue with "false" path')
        writer.writeln("pass")
        writer.pop()
        writer.pop()
        writer.writeln("except Exception:")
        writer.push()
        writer.comment('Continue with "false" path')
        writer.writeln("pass")
        writer.pop()


class CodeTemplate(NodeTemplate):
    """User-supplied statements, copied line for line."""

    def emit_inline(self, node: Node, writer: CodeWriter) -> None:
        params: CodeParams = node.params
        if not params.code:
            writer.comment("Custom code")
            return
        writer.extend(params.code.splitlines())


# ── Registry ──────────────────────────────────────────────────────────────────

TEMPLATE_REGISTRY: Dict[NodeKind, NodeTemplate] = {
    NodeKind.START:      CommentTemplate("Start the Selenium script"),
    NodeKind.NAVIGATE:   NavigateTemplate(),
    NodeKind.CLICK:      ClickTemplate(),
    NodeKind.TYPE:       TypeTemplate(),
    NodeKind.SELECT:     SelectTemplate(),
    NodeKind.WAIT:       WaitTemplate(),
    NodeKind.SCREENSHOT: ScreenshotTemplate(),
    NodeKind.EXTRACT:    ExtractTemplate(),
    NodeKind.CONDITION:  ConditionTemplate(),
    NodeKind.CODE:       CodeTemplate(),
    NodeKind.END:        CommentTemplate("End of Selenium script"),
}

_missing = set(NodeKind) - set(TEMPLATE_REGISTRY)
if _missing:
    raise RuntimeError(
        "no template registered for: " + ", ".join(sorted(k.value for k in _missing))
    )


def get_template(kind: NodeKind) -> NodeTemplate:
    return TEMPLATE_REGISTRY[kind]


def emit_node(node: Node) -> str:
    """Render one node as a newline-terminated fragment at indent 0."""
    writer = CodeWriter()
    get_template(node.kind).emit_inline(node, writer)
    fragment = writer.result() + "\n"
    logger.debug(f"emit: '{node.id}' ({node.kind.value}) -> {len(writer.lines())} line(s)")
    return fragment


__all__ = [
    "CodeWriter",
    "DEFAULT_TIMEOUT_MILLIS",
    "NodeTemplate",
    "TEMPLATE_REGISTRY",
    "emit_node",
    "get_template",
]
