"""
Script Assembler
================
Wraps the per-node fragments in the fixed Selenium boilerplate:

    preamble   imports, run_test(), driver construction
    body       one fragment per ordered node, inside the try block
    epilogue   success report, except → failure report, finally → driver.quit()

The driver is always released in ``finally`` when it was created, whichever
step raised.

Headless toggle
---------------
The preamble always contains ``HEADLESS_DIRECTIVE`` as live code.  For a
headed run the first occurrence of that exact text is rewritten into a
comment; nothing else in the output changes.  The toggle is plain text
substitution, so the directive line must stay byte-identical to the constant.
"""

from __future__ import annotations

from typing import List, Sequence

from flowscript.core.graph import Node

from .templates import CodeWriter, emit_node

HEADLESS_DIRECTIVE = "options.add_argument('--headless')"
DISABLED_HEADLESS_DIRECTIVE = f"# {HEADLESS_DIRECTIVE}"

# run_test() + try:
BODY_INDENT = 2


# ── Fixed sections ────────────────────────────────────────────────────────────

def _preamble() -> List[str]:
    w = CodeWriter(indent=0)
    w.comment("Generated Selenium script")
    w.blank()
    w.comment("Setup")
    w.writeln("import time")
    w.blank()
    w.writeln("from selenium import webdriver")
    w.writeln("from selenium.webdriver.common.by import By")
    w.writeln("from selenium.webdriver.support import expected_conditions as EC")
    w.writeln("from selenium.webdriver.support.ui import Select, WebDriverWait")
    w.blank()
    w.blank()
    w.writeln("def run_test():")
    w.push()
    w.writeln("driver = None")
    w.blank()
    w.writeln("try:")
    w.push()
    w.comment("Set up Chrome options")
    w.writeln("options = webdriver.ChromeOptions()")
    w.writeln(HEADLESS_DIRECTIVE)
    w.blank()
    w.comment("Build the driver")
    w.writeln("driver = webdriver.Chrome(options=options)")
    w.blank()
    w.comment("Set implicit wait")
    w.writeln("driver.implicitly_wait(10)")
    w.blank()
    w.comment("Test script begins")
    return w.lines()


def _epilogue() -> List[str]:
    w = CodeWriter(indent=BODY_INDENT)
    w.blank()
    w.comment("Test script ends")
    w.blank()
    w.writeln("print('Test completed successfully')")
    w.writeln("return {'success': True}")
    w.pop()
    w.writeln("except Exception as error:")
    w.push()
    w.writeln("print(f'Test failed: {error}')")
    w.writeln("return {'success': False, 'error': str(error)}")
    w.pop()
    w.writeln("finally:")
    w.push()
    w.comment("Cleanup")
    w.writeln("if driver is not None:")
    w.push()
    w.writeln("driver.quit()")
    w.pop()
    w.pop()
    w.pop()
    w.blank()
    w.blank()
    w.writeln("if __name__ == '__main__':")
    w.push()
    w.writeln("run_test()")
    return w.lines()


def _body(ordered_nodes: Sequence[Node]) -> List[str]:
    w = CodeWriter(indent=BODY_INDENT)
    for node in ordered_nodes:
        # Fragments are newline-terminated; the terminator is not a line.
        w.extend(emit_node(node)[:-1].split("\n"))
    return w.lines()


# ── Public API ────────────────────────────────────────────────────────────────

def apply_headless(script: str, headless: bool) -> str:
    if headless:
        return script
    return script.replace(HEADLESS_DIRECTIVE, DISABLED_HEADLESS_DIRECTIVE, 1)


def assemble(ordered_nodes: Sequence[Node], headless: bool = True) -> str:
    """Concatenate preamble, node fragments and epilogue into a script."""
    lines: List[str] = []
    for section in (_preamble(), _body(ordered_nodes), _epilogue()):
        lines.extend(section)
    return apply_headless("\n".join(lines) + "\n", headless)


__all__ = [
    "BODY_INDENT",
    "DISABLED_HEADLESS_DIRECTIVE",
    "HEADLESS_DIRECTIVE",
    "apply_headless",
    "assemble",
]
