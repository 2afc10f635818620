"""Per-function behavioral summaries."""
import logging
import re
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple

from ..config import DEFAULT_RULE_CONFIG, RuleConfig
from ..models import (
    AccessControlEvidence,
    FunctionSummary,
    OperationKind,
    Parameter,
    SensitiveOperation,
    SourceSpan,
)
from .flow_heuristics import STATE_WRITE_PATTERN, FlowHeuristicsEngine, mask_comments
from .source_text import SourceText

logger = logging.getLogger(__name__)

SENSITIVE_SIGNATURES: Tuple[Tuple['re.Pattern', OperationKind, str], ...] = (
    (re.compile(r'\.transfer\s*\('), OperationKind.ETHER_TRANSFER, 'uses .transfer()'),
    (re.compile(r'\.send\s*\('), OperationKind.ETHER_TRANSFER, 'uses .send()'),
    (re.compile(r'\.call\{[^}]*value', re.DOTALL), OperationKind.EXTERNAL_CALL, 'uses low-level call with value'),
    (re.compile(r'\.call\.value'), OperationKind.EXTERNAL_CALL, 'uses .call.value()'),
    (re.compile(r'\.delegatecall\s*\('), OperationKind.DELEGATECALL, 'uses delegatecall'),
    (re.compile(r'selfdestruct\s*\('), OperationKind.SELFDESTRUCT, 'can destroy contract'),
)


def extract_sensitive_operations(body: str) -> FrozenSet[SensitiveOperation]:
    return frozenset(
        SensitiveOperation(kind, detail)
        for pattern, kind, detail in SENSITIVE_SIGNATURES
        if pattern.search(body)
    )


def function_name(node: Dict[str, Any]) -> str:
    # fallback/receive functions have an empty name
    return node.get('name') or node.get('kind') or 'anonymous'


def type_string_of(node: Dict[str, Any]) -> str:
    type_string = (node.get('typeDescriptions') or {}).get('typeString')
    if type_string:
        return type_string
    return (node.get('typeName') or {}).get('name', '') or ''


def _walk(node: Any) -> Iterator[Dict[str, Any]]:
    if isinstance(node, dict):
        yield node
        for value in node.values():
            yield from _walk(value)
    elif isinstance(node, list):
        for item in node:
            yield from _walk(item)


class FunctionSummarizer:
    def __init__(self, config: RuleConfig = DEFAULT_RULE_CONFIG, engine: Optional[FlowHeuristicsEngine] = None):
        self.config = config
        self.engine = engine or FlowHeuristicsEngine(config)
        self._owner_guards = [
            re.compile(rf'require\s*\([^)]*{re.escape(keyword)}[^)]*\)', re.IGNORECASE)
            for keyword in config.owner_keywords
        ]

    def summarize(
        self,
        node: Dict[str, Any],
        source: SourceText,
        owner_variables: Iterable[str] = ()
    ) -> FunctionSummary:
        """Build the summary of one FunctionDefinition node.

        Args:
            node: solc AST FunctionDefinition
            source: The file's source text
            owner_variables: Owner-like state variable names of the contract

        Returns:
            FunctionSummary with flow facts attached
        """
        name = function_name(node)
        visibility = node.get('visibility', '') or ''
        mutability = node.get('stateMutability', '') or ''
        span = SourceSpan.parse(node.get('src'))
        if span.is_approximate:
            logger.warning(f"Function {name} has no usable src; locations will be approximate")

        body_offset, raw_body = self._body_slice(node, span, source)
        body = mask_comments(raw_body)
        parameters = self._parameters(node)

        modifiers = {
            modifier['modifierName'].get('name')
            for modifier in node.get('modifiers') or []
            if isinstance(modifier, dict) and isinstance(modifier.get('modifierName'), dict)
        }
        uses_known_modifier = bool(modifiers & self.config.access_control_modifiers)
        has_owner_guard = any(guard.search(body) for guard in self._owner_guards)

        mutates_state = (
            mutability not in self.config.read_only_mutabilities
            and STATE_WRITE_PATTERN.search(body) is not None
        )

        flow = self.engine.analyze(
            body,
            parameters,
            unchecked_spans=self._unchecked_spans(node, body_offset, source)
        )

        return FunctionSummary(
            name=name,
            kind=node.get('kind', 'function') or 'function',
            visibility=visibility,
            mutability=mutability,
            is_entry_point=visibility in self.config.entry_visibilities,
            span=span,
            body_offset=body_offset,
            body=body,
            parameters=parameters,
            sensitive_ops=extract_sensitive_operations(body),
            mutates_state=mutates_state,
            has_access_control=uses_known_modifier or has_owner_guard,
            access_control=AccessControlEvidence(
                uses_known_modifier=uses_known_modifier,
                has_owner_guard_expression=has_owner_guard,
                owner_variable_names=frozenset(owner_variables),
            ),
            flow=flow,
        )

    @staticmethod
    def _body_slice(node: Dict[str, Any], span: SourceSpan, source: SourceText) -> Tuple[int, str]:
        body_node = node.get('body')
        if isinstance(body_node, dict):
            body_span = SourceSpan.parse(body_node.get('src'))
            if not body_span.is_approximate:
                return body_span.start, source.slice(body_span.start, body_span.length)
        if span.is_approximate:
            return 0, ''
        snippet = source.slice(span.start, span.length)
        brace = snippet.find('{')
        if brace < 0:
            return span.end, ''
        return source.advance(span.start, snippet, brace), snippet[brace:]

    @staticmethod
    def _parameters(node: Dict[str, Any]) -> Tuple[Parameter, ...]:
        parameter_list = (node.get('parameters') or {}).get('parameters') or []
        return tuple(
            Parameter(
                name=param.get('name', '') or '',
                type_string=type_string_of(param),
                span=SourceSpan.parse(param.get('src')) if param.get('src') else None,
            )
            for param in parameter_list
            if isinstance(param, dict)
        )

    @staticmethod
    def _unchecked_spans(
        node: Dict[str, Any],
        body_offset: int,
        source: SourceText
    ) -> List[Tuple[int, int]]:
        spans = []
        for child in _walk(node.get('body')):
            if child.get('nodeType') != 'UncheckedBlock':
                continue
            span = SourceSpan.parse(child.get('src'))
            if span.is_approximate or span.start < body_offset:
                continue
            spans.append((
                source.char_offset(body_offset, span.start),
                source.char_offset(body_offset, span.end),
            ))
        return spans
