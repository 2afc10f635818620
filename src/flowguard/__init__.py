"""
FlowGuard - heuristic program-flow analysis for Solidity smart contracts.

This package provides:
- Per-function behavioral summaries recovered from the solc AST
- Flow heuristics (unchecked arithmetic, parameter validation, call/write ordering)
- A rule table that turns summaries into vulnerability findings
- JSON, text and HTML reports, a CLI and a REST API
"""

from .analyzers import ProgramFlowAnalyzer
from .reporting import ReportGenerator

__version__ = "1.0.0"
__all__ = [
    'ProgramFlowAnalyzer',
    'ReportGenerator',
]
