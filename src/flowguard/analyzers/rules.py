"""Vulnerability rule table.

Each rule is an independent function of a FunctionSummary; the evaluator
runs them in table order and deduplicates on (line, category).
"""
from dataclasses import dataclass, replace
from typing import Callable, Iterable, Iterator, List, Optional, Sequence

from ..models import (
    VALUE_FLOW_KINDS,
    ContractSummary,
    Finding,
    FindingCategory,
    FunctionSummary,
    Location,
    OperationKind,
    Severity,
)
from .source_text import SourceText


@dataclass(frozen=True)
class Rule:
    category: FindingCategory
    severity: Severity
    title: str
    description: str
    remediation: str
    check: Callable[['Rule', FunctionSummary, SourceText], Iterable[Finding]]

    def evaluate(self, fn: FunctionSummary, source: SourceText) -> List[Finding]:
        if not fn.is_entry_point:
            return []
        return list(self.check(self, fn, source))

    def finding(
        self,
        fn: FunctionSummary,
        location: Location,
        message: Optional[str] = None,
        detail: Optional[str] = None,
        severity: Optional[Severity] = None,
        remediation: Optional[str] = None
    ) -> Finding:
        return Finding(
            category=self.category,
            severity=severity or self.severity,
            title=self.title,
            message=message or self.description,
            function_name=fn.name,
            location=location,
            detail=detail,
            remediation=remediation or self.remediation,
        )


def function_location(fn: FunctionSummary, source: SourceText) -> Location:
    return source.location(fn.span.start, approximate=fn.span.is_approximate)


def body_location(fn: FunctionSummary, source: SourceText, offset: Optional[int]) -> Location:
    if offset is None:
        return function_location(fn, source)
    return source.location(source.advance(fn.body_offset, fn.body, offset))


def _unrestricted_entry_point(rule: Rule, fn: FunctionSummary, source: SourceText) -> Iterator[Finding]:
    if (fn.mutates_state or fn.sensitive_ops) and not fn.has_access_control:
        yield rule.finding(fn, function_location(fn, source))


def _unguarded_value_flow(rule: Rule, fn: FunctionSummary, source: SourceText) -> Iterator[Finding]:
    if fn.has_operation(*VALUE_FLOW_KINDS) and not fn.has_access_control:
        details = sorted(op.detail for op in fn.sensitive_ops if op.kind in VALUE_FLOW_KINDS)
        yield rule.finding(fn, function_location(fn, source), detail=', '.join(details))


def _delegatecall_risk(rule: Rule, fn: FunctionSummary, source: SourceText) -> Iterator[Finding]:
    # Flagged even behind access control.
    if fn.has_operation(OperationKind.DELEGATECALL):
        yield rule.finding(fn, function_location(fn, source))


def _unchecked_arithmetic(rule: Rule, fn: FunctionSummary, source: SourceText) -> Iterator[Finding]:
    if not fn.flow.unchecked_has_arithmetic:
        return
    ops = fn.flow.unchecked_ops
    listed = ', '.join(f'`{op.text}`' for op in ops)
    yield rule.finding(
        fn,
        body_location(fn, source, ops[0].offset),
        message=f"{rule.description} Operations: {listed}.",
        detail='; '.join(op.text for op in ops),
    )


def _missing_input_validation(rule: Rule, fn: FunctionSummary, source: SourceText) -> Iterator[Finding]:
    for param in fn.parameters:
        flow = fn.flow.per_parameter.get(param.name)
        if flow is None or not flow.is_referenced or flow.has_validation_evidence:
            continue
        type_string = param.type_string.lower()
        location = body_location(fn, source, flow.first_reference)
        if 'address' in type_string:
            yield rule.finding(
                fn,
                location,
                message=f"Address parameter `{param.name}` is used without a zero-address check.",
                detail=f"{param.name}: missing zero-address check",
                severity=Severity.MEDIUM,
                remediation=f"Add `require({param.name} != address(0))` before using it.",
            )
        elif 'int' in type_string and fn.mutates_state:
            yield rule.finding(
                fn,
                location,
                message=f"Numeric parameter `{param.name}` influences state without any bounds check.",
                detail=f"{param.name}: missing bounds check",
                severity=Severity.LOW,
                remediation=f"Validate `{param.name}` against the expected range before use.",
            )


def _reentrancy_ordering(rule: Rule, fn: FunctionSummary, source: SourceText) -> Iterator[Finding]:
    # Reported regardless of access control.
    if fn.flow.external_call_precedes_state_write and fn.has_operation(*VALUE_FLOW_KINDS):
        yield rule.finding(fn, body_location(fn, source, fn.flow.first_external_call))


DEFAULT_RULES: Sequence[Rule] = (
    Rule(
        category=FindingCategory.UNRESTRICTED_ENTRY_POINT,
        severity=Severity.HIGH,
        title='Unrestricted State-Changing Entry Point',
        description=(
            'A public/external function that modifies contract state or performs a sensitive '
            'action lacks access control, allowing any user to call it.'
        ),
        remediation=(
            'Implement `onlyOwner` or role-based modifiers, or add `require` checks to '
            'validate `msg.sender`.'
        ),
        check=_unrestricted_entry_point,
    ),
    Rule(
        category=FindingCategory.UNGUARDED_VALUE_FLOW,
        severity=Severity.CRITICAL,
        title='Unguarded Ether/Token Flow',
        description=(
            "This function moves funds but does not verify the caller's authorization, "
            'creating a risk of fund theft.'
        ),
        remediation='Ensure all fund-transferring functions are protected with strong access control.',
        check=_unguarded_value_flow,
    ),
    Rule(
        category=FindingCategory.DELEGATECALL_RISK,
        severity=Severity.HIGH,
        title='Delegatecall Usage',
        description=(
            "This function uses delegatecall, which runs foreign code against this contract's "
            'storage and balance.'
        ),
        remediation='Only delegatecall into trusted, immutable implementations and never to caller-supplied targets.',
        check=_delegatecall_risk,
    ),
    Rule(
        category=FindingCategory.UNCHECKED_ARITHMETIC,
        severity=Severity.MEDIUM,
        title='Arithmetic in Unchecked Block',
        description='Arithmetic inside an `unchecked` block skips overflow/underflow checks.',
        remediation='Keep only provably bounded arithmetic inside `unchecked`, or add explicit bounds checks.',
        check=_unchecked_arithmetic,
    ),
    Rule(
        category=FindingCategory.MISSING_INPUT_VALIDATION,
        severity=Severity.MEDIUM,
        title='Missing Input Validation',
        description='A parameter is used without validation.',
        remediation='Validate parameters with `require` before using them.',
        check=_missing_input_validation,
    ),
    Rule(
        category=FindingCategory.REENTRANCY_ORDERING,
        severity=Severity.HIGH,
        title='External Call Before State Update',
        description=(
            'An external call that can move value happens before a state write, so a '
            're-entrant caller can observe stale state.'
        ),
        remediation=(
            'Follow checks-effects-interactions: update state before the external call, '
            'or add a reentrancy guard.'
        ),
        check=_reentrancy_ordering,
    ),
)


def deduplicate(findings: Iterable[Finding]) -> List[Finding]:
    """Keep the first finding per (line, category)."""
    seen = set()
    unique = []
    for finding in findings:
        if finding.dedup_key in seen:
            continue
        seen.add(finding.dedup_key)
        unique.append(finding)
    return unique


class RuleEvaluator:
    def __init__(self, rules: Sequence[Rule] = DEFAULT_RULES):
        self.rules = tuple(rules)

    def evaluate(self, fn: FunctionSummary, source: SourceText) -> List[Finding]:
        return deduplicate(
            finding
            for rule in self.rules
            for finding in rule.evaluate(fn, source)
        )

    def evaluate_contract(self, contract: ContractSummary, source: SourceText) -> ContractSummary:
        findings = [
            finding
            for fn in contract.functions
            for finding in self.evaluate(fn, source)
        ]
        return replace(contract, findings=tuple(findings))
