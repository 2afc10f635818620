"""
FlowGuard Analyzers Package

- Syntax providers: solc (py-solc-x) and pre-built AST JSON
- Contract extractor and function summarizer
- Flow heuristics engine
- Vulnerability rule table
- Program-flow analyzer: per-file orchestration
"""

from .contract_extractor import ContractExtractor
from .flow_heuristics import FlowHeuristicsEngine
from .function_summarizer import FunctionSummarizer
from .program_flow_analyzer import ProgramFlowAnalyzer
from .rules import DEFAULT_RULES, Rule, RuleEvaluator
from .syntax_provider import JsonAstProvider, SolcSyntaxProvider

__all__ = [
    'ContractExtractor',
    'FlowHeuristicsEngine',
    'FunctionSummarizer',
    'ProgramFlowAnalyzer',
    'DEFAULT_RULES',
    'Rule',
    'RuleEvaluator',
    'JsonAstProvider',
    'SolcSyntaxProvider',
]
