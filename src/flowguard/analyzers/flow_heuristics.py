"""Flow heuristics over a function body.

Recovers three independent signals from the body text without building a
control-flow graph:

- arithmetic mutations and whether they sit inside ``unchecked { ... }``
- per-parameter validation evidence
- whether an external call textually precedes a state write

All offsets are relative to the body text handed to the engine.
"""
import logging
import re
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..config import DEFAULT_RULE_CONFIG, RuleConfig
from ..models import ArithmeticOperation, FlowFacts, Parameter, ParameterFlow

logger = logging.getLogger(__name__)

# String literals are matched so that '//' inside them is left alone.
_COMMENT_OR_STRING = re.compile(
    r'"(?:\\.|[^"\\\n])*"|\'(?:\\.|[^\'\\\n])*\'|//[^\n]*|/\*.*?\*/',
    re.DOTALL
)

UNCHECKED_OPENER = re.compile(r'\bunchecked\s*\{')

_LVALUE = r'[A-Za-z_$][\w$]*(?:\s*(?:\.\s*[A-Za-z_$][\w$]*|\[[^\[\]\n;]*\]))*'
ARITHMETIC_PATTERN = re.compile(
    # compound assignment: x += y
    rf'{_LVALUE}\s*[+\-*/%]=\s*[^;{{}}]+'
    # binary +/- feeding an assignment: x = a + b
    rf'|{_LVALUE}\s*=(?![=>])\s*[^;{{}}]*?[\w$)\]]\s*[+\-](?![+\-=])\s*[^;{{}}]+'
    # increment / decrement
    rf'|{_LVALUE}\s*(?:\+\+|--)|(?:\+\+|--)\s*{_LVALUE}'
)

EXTERNAL_CALL_PATTERN = re.compile(
    r'\.\s*(?:call|delegatecall)\s*[({.]|\.\s*(?:transfer|send)\s*\('
)
STATE_WRITE_PATTERN = re.compile(
    r'\+\+|--|(?:<<|>>|[+\-*/%|&^])=|(?<![=!<>+\-*/%|&^])=(?![=>])'
)

_RELATIONAL = r'(?:==|!=|<=|>=|(?<![<=])<(?![<=])|(?<![=>])>(?![>=]))'

# {p} is replaced with the escaped parameter name.
VALIDATION_SHAPES: Tuple[Tuple[str, str], ...] = (
    ('non_zero_address',
     r'\b{p}\b\s*!=\s*address\s*\(\s*0\s*\)|address\s*\(\s*0\s*\)\s*!=\s*\b{p}\b'),
    ('non_zero_address_hex',
     r'\b{p}\b\s*!=\s*0x0+\b|\b0x0+\s*!=\s*\b{p}\b'),
    ('greater_than_zero',
     r'\b{p}\b\s*>\s*0\b|\b0\s*<\s*\b{p}\b'),
    ('comparison',
     r'\b{p}\b\s*' + _RELATIONAL + r'|' + _RELATIONAL + r'\s*\b{p}\b'),
    ('less_than_length',
     r'\b{p}\b\s*<=?\s*[\w$.\[\]()]*\.length\b'),
)


def mask_comments(text: str) -> str:
    """Blank out comments with spaces, keeping offsets and newlines intact."""
    def _blank(match: 're.Match') -> str:
        token = match.group(0)
        if token.startswith('/'):
            return re.sub(r'[^\n]', ' ', token)
        return token
    return _COMMENT_OR_STRING.sub(_blank, text)


def unchecked_openers(body: str) -> List[Tuple[int, int]]:
    return [(m.start(), m.end()) for m in UNCHECKED_OPENER.finditer(body)]


def inside_unchecked_by_braces(body: str, offset: int, openers: Sequence[Tuple[int, int]]) -> bool:
    """Bracket-balance containment test.

    A token is inside an unchecked block when, in the text from the first
    unchecked opener up to the token, the openers outnumber the ``}`` closers.
    Unrelated braces nested inside an unchecked block skew the count.
    """
    opened = sum(1 for _, end in openers if end <= offset)
    if not opened:
        return False
    closed = body.count('}', openers[0][0], offset)
    return opened > closed


def inside_spans(offset: int, spans: Iterable[Tuple[int, int]]) -> bool:
    return any(start <= offset < end for start, end in spans)


def parameter_flow(body: str, name: str) -> ParameterFlow:
    if not name:
        return ParameterFlow(is_referenced=False, has_validation_evidence=False)
    escaped = re.escape(name)
    reference = re.search(rf'\b{escaped}\b', body)
    if reference is None:
        return ParameterFlow(is_referenced=False, has_validation_evidence=False)
    validated = any(
        re.search(shape.replace('{p}', escaped), body)
        for _, shape in VALIDATION_SHAPES
    )
    return ParameterFlow(
        is_referenced=True,
        has_validation_evidence=validated,
        first_reference=reference.start()
    )


class FlowHeuristicsEngine:
    """Computes ``FlowFacts`` for a function body."""

    def __init__(self, config: RuleConfig = DEFAULT_RULE_CONFIG):
        self.config = config

    def analyze(
        self,
        body: str,
        parameters: Sequence[Parameter] = (),
        unchecked_spans: Optional[Sequence[Tuple[int, int]]] = None
    ) -> FlowFacts:
        """
        Args:
            body: Comment-masked function body text
            parameters: The function's parameters
            unchecked_spans: Body-relative ``(start, end)`` spans of
                UncheckedBlock nodes, when the AST provides them

        Returns:
            FlowFacts for the body
        """
        openers = unchecked_openers(body)
        use_ast = bool(unchecked_spans) and self.config.prefer_ast_unchecked_spans
        if openers and not use_ast:
            logger.debug("No UncheckedBlock spans available; using brace balance for containment")

        arithmetic_ops = tuple(self._arithmetic_ops(body, openers, unchecked_spans if use_ast else None))
        call_offsets = [m.start() for m in EXTERNAL_CALL_PATTERN.finditer(body)]
        write_offsets = [m.start() for m in STATE_WRITE_PATTERN.finditer(body)]
        per_parameter: Dict[str, ParameterFlow] = {
            param.name: parameter_flow(body, param.name)
            for param in parameters
            if param.name
        }

        return FlowFacts(
            has_unchecked_block=bool(openers) or bool(unchecked_spans),
            unchecked_has_arithmetic=any(op.inside_unchecked for op in arithmetic_ops),
            arithmetic_ops=arithmetic_ops,
            external_call_precedes_state_write=self.call_precedes_write(call_offsets, write_offsets),
            first_external_call=min(call_offsets) if call_offsets else None,
            per_parameter=per_parameter,
        )

    @staticmethod
    def call_precedes_write(call_offsets: Sequence[int], write_offsets: Sequence[int]) -> bool:
        # Pairwise existential test; no per-variable or per-path tracking.
        return bool(call_offsets) and bool(write_offsets) and min(call_offsets) < max(write_offsets)

    @staticmethod
    def _arithmetic_ops(
        body: str,
        openers: Sequence[Tuple[int, int]],
        spans: Optional[Sequence[Tuple[int, int]]]
    ) -> Iterable[ArithmeticOperation]:
        for match in ARITHMETIC_PATTERN.finditer(body):
            offset = match.start()
            if spans:
                inside = inside_spans(offset, spans)
            else:
                inside = inside_unchecked_by_braces(body, offset, openers)
            yield ArithmeticOperation(
                text=' '.join(match.group(0).split()),
                offset=offset,
                inside_unchecked=inside
            )
