"""
FlowGuard Models Package

Value types produced by the analysis pipeline:
- Contract and function summaries recovered from the AST
- Flow facts computed by the heuristics engine
- Findings, per-file errors and the aggregate report
"""
from collections import Counter
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple


@dataclass(frozen=True)
class SourceSpan:
    """Byte range of an AST node, as in solc's ``src`` attribute."""
    start: int
    length: int
    file_id: int = 0
    is_approximate: bool = False

    @property
    def end(self) -> int:
        return self.start + self.length

    @classmethod
    def parse(cls, src: Optional[str]) -> 'SourceSpan':
        """Parse ``"start:length:file"``; missing or malformed input yields an
        approximate zero-length span at offset 0."""
        if not src or not isinstance(src, str):
            return cls(0, 0, 0, is_approximate=True)
        parts = src.split(':')
        try:
            start = int(parts[0])
            length = int(parts[1]) if len(parts) > 1 else 0
            file_id = int(parts[2]) if len(parts) > 2 else 0
        except ValueError:
            return cls(0, 0, 0, is_approximate=True)
        if start < 0 or length < 0:
            return cls(0, 0, 0, is_approximate=True)
        return cls(start, length, file_id)


@dataclass(frozen=True)
class StateVariable:
    name: str
    type_string: str
    is_owner_like: bool


@dataclass(frozen=True)
class Parameter:
    name: str
    type_string: str
    span: Optional[SourceSpan] = None


class OperationKind(Enum):
    ETHER_TRANSFER = "ETHER_TRANSFER"
    EXTERNAL_CALL = "EXTERNAL_CALL"
    DELEGATECALL = "DELEGATECALL"
    SELFDESTRUCT = "SELFDESTRUCT"


VALUE_FLOW_KINDS = frozenset({OperationKind.ETHER_TRANSFER, OperationKind.EXTERNAL_CALL})


@dataclass(frozen=True)
class SensitiveOperation:
    kind: OperationKind
    detail: str


@dataclass(frozen=True)
class ArithmeticOperation:
    """An arithmetic mutation token; ``offset`` is relative to the function body."""
    text: str
    offset: int
    inside_unchecked: bool


@dataclass(frozen=True)
class ParameterFlow:
    is_referenced: bool
    has_validation_evidence: bool
    first_reference: Optional[int] = None


@dataclass(frozen=True)
class FlowFacts:
    has_unchecked_block: bool = False
    unchecked_has_arithmetic: bool = False
    arithmetic_ops: Tuple[ArithmeticOperation, ...] = ()
    external_call_precedes_state_write: bool = False
    first_external_call: Optional[int] = None
    per_parameter: Dict[str, ParameterFlow] = field(default_factory=dict)

    @property
    def unchecked_ops(self) -> Tuple[ArithmeticOperation, ...]:
        return tuple(op for op in self.arithmetic_ops if op.inside_unchecked)


@dataclass(frozen=True)
class AccessControlEvidence:
    uses_known_modifier: bool = False
    has_owner_guard_expression: bool = False
    owner_variable_names: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class FunctionSummary:
    """Behavioral summary of one function.

    ``body`` is the comment-masked body slice; ``body_offset`` is its byte
    offset in the file so that body-relative offsets can be mapped back to
    source locations.
    """
    name: str
    kind: str
    visibility: str
    mutability: str
    is_entry_point: bool
    span: SourceSpan
    body_offset: int
    body: str
    parameters: Tuple[Parameter, ...] = ()
    sensitive_ops: FrozenSet[SensitiveOperation] = frozenset()
    mutates_state: bool = False
    has_access_control: bool = False
    access_control: AccessControlEvidence = field(default_factory=AccessControlEvidence)
    flow: FlowFacts = field(default_factory=FlowFacts)

    def has_operation(self, *kinds: OperationKind) -> bool:
        return any(op.kind in kinds for op in self.sensitive_ops)


class Severity(Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    INFORMATIONAL = "Informational"


class FindingCategory(Enum):
    UNRESTRICTED_ENTRY_POINT = "UNRESTRICTED_ENTRY_POINT"
    UNGUARDED_VALUE_FLOW = "UNGUARDED_VALUE_FLOW"
    DELEGATECALL_RISK = "DELEGATECALL_RISK"
    UNCHECKED_ARITHMETIC = "UNCHECKED_ARITHMETIC"
    MISSING_INPUT_VALIDATION = "MISSING_INPUT_VALIDATION"
    REENTRANCY_ORDERING = "REENTRANCY_ORDERING"


@dataclass(frozen=True)
class Location:
    line: int
    column: int
    code: str
    approximate: bool = False


@dataclass(frozen=True)
class Finding:
    category: FindingCategory
    severity: Severity
    title: str
    message: str
    function_name: str
    location: Location
    detail: Optional[str] = None
    remediation: Optional[str] = None

    @property
    def dedup_key(self) -> Tuple[int, FindingCategory]:
        return (self.location.line, self.category)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.category.value,
            'severity': self.severity.value,
            'title': self.title,
            'description': self.message,
            'function': self.function_name,
            'line': self.location.line,
            'column': self.location.column,
            'code': self.location.code,
            'location_approximate': self.location.approximate,
            'detail': self.detail,
            'remediation': self.remediation,
        }


@dataclass(frozen=True)
class ContractSummary:
    name: str
    state_variables: Tuple[StateVariable, ...] = ()
    functions: Tuple[FunctionSummary, ...] = ()
    findings: Tuple[Finding, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'state_variables': [asdict(var) for var in self.state_variables],
            'functions': [
                {
                    'name': fn.name,
                    'visibility': fn.visibility,
                    'mutability': fn.mutability,
                    'entry_point': fn.is_entry_point,
                    'mutates_state': fn.mutates_state,
                    'has_access_control': fn.has_access_control,
                    'sensitive_operations': [
                        {'type': op.kind.value, 'detail': op.detail}
                        for op in sorted(fn.sensitive_ops, key=lambda op: (op.kind.value, op.detail))
                    ],
                }
                for fn in self.functions
            ],
            'vulnerabilities': [finding.to_dict() for finding in self.findings],
        }


class FileErrorKind(Enum):
    SOURCE_UNAVAILABLE = "SourceUnavailable"
    PARSE_FAILURE = "ParseFailure"


@dataclass(frozen=True)
class FileError:
    path: str
    kind: FileErrorKind
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {'path': self.path, 'kind': self.kind.value, 'message': self.message}


@dataclass(frozen=True)
class FileReport:
    path: str
    contracts: Tuple[ContractSummary, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {'path': self.path, 'contracts': [c.to_dict() for c in self.contracts]}


@dataclass
class AnalysisReport:
    """Partial-success result of a batch run: file reports plus per-file errors."""
    files: List[FileReport] = field(default_factory=list)
    errors: List[FileError] = field(default_factory=list)

    @property
    def findings(self) -> List[Finding]:
        return [
            finding
            for file_report in self.files
            for contract in file_report.contracts
            for finding in contract.findings
        ]

    def severity_counts(self) -> Dict[str, int]:
        counts = Counter(finding.severity for finding in self.findings)
        return {severity.value.lower(): counts.get(severity, 0) for severity in Severity}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'files': [file_report.to_dict() for file_report in self.files],
            'errors': [error.to_dict() for error in self.errors],
            'severity_counts': self.severity_counts(),
            'total_findings': len(self.findings),
        }


__all__ = [
    'SourceSpan', 'StateVariable', 'Parameter', 'OperationKind', 'VALUE_FLOW_KINDS',
    'SensitiveOperation', 'ArithmeticOperation', 'ParameterFlow', 'FlowFacts',
    'AccessControlEvidence', 'FunctionSummary', 'Severity', 'FindingCategory',
    'Location', 'Finding', 'ContractSummary', 'FileErrorKind', 'FileError',
    'FileReport', 'AnalysisReport',
]
