"""Core acquisition modules.

WHY: The core package holds the engine proper: data shapes, the caption
track directory, the fallback selector, retry envelope, secondary backend,
and the response assembler. The HTTP server and CLI are thin shells over it.

HOW: ir.py defines the data structures, errors.py the failure taxonomy,
directory.py/fetcher.py/selector.py the primary path, secondary.py the
library-backed path, retry.py/engine.py the orchestration, and assembler.py
the stable response row.

RULES:
- IR dataclasses and the response row are the contracts; change with care
- Core modules never import from server/ or cli
"""
