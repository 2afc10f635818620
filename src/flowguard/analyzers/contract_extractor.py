"""Contract extraction from a solc AST."""
import logging
from typing import Any, Dict, List, Optional

from ..config import DEFAULT_RULE_CONFIG, RuleConfig
from ..models import ContractSummary, StateVariable
from .function_summarizer import FunctionSummarizer, type_string_of
from .source_text import SourceText

logger = logging.getLogger(__name__)


class ContractExtractor:
    """Builds one ContractSummary skeleton (no findings yet) per ContractDefinition."""

    def __init__(self, config: RuleConfig = DEFAULT_RULE_CONFIG, summarizer: Optional[FunctionSummarizer] = None):
        self.config = config
        self.summarizer = summarizer or FunctionSummarizer(config)

    def extract(self, ast: Dict[str, Any], source: SourceText) -> List[ContractSummary]:
        nodes = ast.get('nodes') if isinstance(ast, dict) else None
        if not isinstance(nodes, list):
            logger.warning("AST has no top-level node list; treating file as empty")
            return []

        return [
            self.extract_contract(node, source)
            for node in nodes
            if isinstance(node, dict) and node.get('nodeType') == 'ContractDefinition'
        ]

    def extract_contract(self, contract_node: Dict[str, Any], source: SourceText) -> ContractSummary:
        children = [node for node in contract_node.get('nodes') or [] if isinstance(node, dict)]

        state_variables = tuple(
            self._state_variable(node)
            for node in children
            if node.get('nodeType') == 'VariableDeclaration' and node.get('stateVariable')
        )
        owner_variables = [var.name for var in state_variables if var.is_owner_like]

        functions = tuple(
            self.summarizer.summarize(node, source, owner_variables)
            for node in children
            if node.get('nodeType') == 'FunctionDefinition'
            and node.get('implemented', True)
            and node.get('kind') != 'constructor'
        )

        name = contract_node.get('name') or 'anonymous'
        logger.debug(f"Extracted contract {name}: {len(state_variables)} state variables, {len(functions)} functions")
        return ContractSummary(name=name, state_variables=state_variables, functions=functions)

    def _state_variable(self, node: Dict[str, Any]) -> StateVariable:
        name = node.get('name', '') or ''
        lowered = name.lower()
        return StateVariable(
            name=name,
            type_string=type_string_of(node),
            is_owner_like=any(keyword in lowered for keyword in self.config.owner_keywords),
        )
