"""Tests for the vulnerability rule table."""

import pytest

from flowguard.analyzers.function_summarizer import FunctionSummarizer
from flowguard.analyzers.rules import DEFAULT_RULES, RuleEvaluator, deduplicate
from flowguard.analyzers.source_text import SourceText
from flowguard.models import Finding, FindingCategory, Location, Severity

from helpers import function_node, wrap

C = FindingCategory


def evaluate(function_text, name, node_hook=None, **kwargs):
    source = wrap(function_text, state='    uint256 public total;\n    mapping(address => address) owners;\n')
    node = function_node(source, function_text, name, **kwargs)
    if node_hook:
        node_hook(node)
    text = SourceText(source)
    fn = FunctionSummarizer().summarize(node, text)
    return RuleEvaluator().evaluate(fn, text)


def by_category(findings):
    return {finding.category: finding for finding in findings}


class TestRules:
    def test_unrestricted_state_change(self):
        findings = evaluate(
            'function set(uint256 amount) public {\n        total = amount;\n    }',
            'set', params=[('amount', 'uint256')],
        )
        found = by_category(findings)
        assert set(found) == {C.UNRESTRICTED_ENTRY_POINT, C.MISSING_INPUT_VALIDATION}
        unrestricted = found[C.UNRESTRICTED_ENTRY_POINT]
        assert unrestricted.severity is Severity.HIGH
        assert (unrestricted.location.line, unrestricted.location.column) == (7, 5)
        assert unrestricted.location.code.startswith('function set(uint256 amount)')
        missing = found[C.MISSING_INPUT_VALIDATION]
        assert missing.severity is Severity.LOW
        assert missing.location.line == 8
        assert missing.message == 'Numeric parameter `amount` influences state without any bounds check.'

    def test_unguarded_value_flow(self):
        findings = evaluate(
            'function pay(address payable to) public {\n        to.transfer(1);\n    }',
            'pay', params=[('to', 'address payable')],
        )
        found = by_category(findings)
        assert set(found) == {C.UNRESTRICTED_ENTRY_POINT, C.UNGUARDED_VALUE_FLOW, C.MISSING_INPUT_VALIDATION}
        assert found[C.UNGUARDED_VALUE_FLOW].severity is Severity.CRITICAL
        assert found[C.UNGUARDED_VALUE_FLOW].detail == 'uses .transfer()'
        missing = found[C.MISSING_INPUT_VALIDATION]
        assert missing.severity is Severity.MEDIUM
        assert missing.message == 'Address parameter `to` is used without a zero-address check.'

    def test_delegatecall_flagged_behind_access_control(self):
        findings = evaluate(
            'function exec(address impl, bytes calldata data) external onlyOwner {\n'
            '        require(impl != address(0));\n'
            '        (bool ok,) = impl.delegatecall(data);\n'
            '        require(ok);\n'
            '    }',
            'exec', visibility='external', modifiers=['onlyOwner'],
            params=[('impl', 'address'), ('data', 'bytes')],
        )
        assert [(f.category, f.severity) for f in findings] == [(C.DELEGATECALL_RISK, Severity.HIGH)]

    def test_unchecked_arithmetic(self):
        findings = evaluate(
            'function add(uint256 amount) public {\n'
            '        require(amount > 0);\n'
            '        unchecked { total += amount; }\n'
            '    }',
            'add', params=[('amount', 'uint256')],
        )
        found = by_category(findings)
        assert set(found) == {C.UNRESTRICTED_ENTRY_POINT, C.UNCHECKED_ARITHMETIC}
        unchecked = found[C.UNCHECKED_ARITHMETIC]
        assert unchecked.severity is Severity.MEDIUM
        assert unchecked.detail == 'total += amount'
        assert '`total += amount`' in unchecked.message
        assert unchecked.location.line == 9

    def test_numeric_parameter_without_state_change_is_ignored(self):
        findings = evaluate(
            'function quote(uint256 amount) public returns (uint256) {\n        return amount * 2;\n    }',
            'quote', params=[('amount', 'uint256')],
        )
        assert findings == []

    def test_reentrancy_reported_behind_access_control(self):
        findings = evaluate(
            'function withdraw(uint256 amount) external onlyOwner {\n'
            '        (bool ok,) = msg.sender.call{value: amount}("");\n'
            '        require(ok);\n'
            '        total -= amount;\n'
            '    }',
            'withdraw', visibility='external', modifiers=['onlyOwner'], params=[('amount', 'uint256')],
        )
        found = by_category(findings)
        assert C.UNRESTRICTED_ENTRY_POINT not in found
        assert C.UNGUARDED_VALUE_FLOW not in found
        reentrancy = found[C.REENTRANCY_ORDERING]
        assert reentrancy.severity is Severity.HIGH
        assert reentrancy.location.line == 8
        assert 'msg.sender.call' in reentrancy.location.code

    def test_owner_require_guard_removes_value_flow_but_keeps_reentrancy(self):
        body = (
            '        (bool ok,) = msg.sender.call{value: amount}("");\n'
            '        total -= amount;\n'
            '    }'
        )
        header = 'function withdraw(uint256 amount) external {\n'
        guard = '        require(msg.sender == owner);\n'
        kwargs = {'visibility': 'external', 'params': [('amount', 'uint256')]}

        unguarded = evaluate(header + body, 'withdraw', **kwargs)
        guarded = evaluate(header + guard + body, 'withdraw', **kwargs)

        assert sorted(f.category.value for f in unguarded) == [
            'MISSING_INPUT_VALIDATION',
            'REENTRANCY_ORDERING',
            'UNGUARDED_VALUE_FLOW',
            'UNRESTRICTED_ENTRY_POINT',
        ]
        assert sorted(f.category.value for f in guarded) == [
            'MISSING_INPUT_VALIDATION',
            'REENTRANCY_ORDERING',
        ]

    @pytest.mark.parametrize('text, kwargs', [
        ('function _pay(address payable to) internal {\n        to.transfer(1);\n    }',
         {'visibility': 'internal', 'params': [('to', 'address payable')]}),
        ('function _pay(address payable to) private {\n        to.transfer(1);\n    }',
         {'visibility': 'private', 'params': [('to', 'address payable')]}),
        ('function peek() public view returns (uint256) {\n        return total;\n    }',
         {'mutability': 'view'}),
    ])
    def test_functions_without_findings(self, text, kwargs):
        name = text.split('(')[0].split()[-1]
        assert evaluate(text, name, **kwargs) == []

    def test_missing_function_src_gives_approximate_location(self):
        findings = evaluate(
            'function set(uint256 amount) public {\n        total = amount;\n    }',
            'set', params=[('amount', 'uint256')],
            node_hook=lambda node: node.pop('src'),
        )
        found = by_category(findings)
        assert found[C.UNRESTRICTED_ENTRY_POINT].location.approximate
        assert found[C.UNRESTRICTED_ENTRY_POINT].location.line == 1
        assert not found[C.MISSING_INPUT_VALIDATION].location.approximate
        assert found[C.MISSING_INPUT_VALIDATION].location.line == 8

    def test_rule_table_order(self):
        assert [rule.category for rule in DEFAULT_RULES] == [
            C.UNRESTRICTED_ENTRY_POINT,
            C.UNGUARDED_VALUE_FLOW,
            C.DELEGATECALL_RISK,
            C.UNCHECKED_ARITHMETIC,
            C.MISSING_INPUT_VALIDATION,
            C.REENTRANCY_ORDERING,
        ]


class TestDeduplication:
    def _finding(self, line, category, message='m'):
        return Finding(category, Severity.LOW, 't', message, 'f', Location(line, 1, ''))

    def test_first_occurrence_wins(self):
        findings = [
            self._finding(3, C.MISSING_INPUT_VALIDATION, 'first'),
            self._finding(3, C.MISSING_INPUT_VALIDATION, 'second'),
            self._finding(3, C.UNRESTRICTED_ENTRY_POINT),
            self._finding(4, C.MISSING_INPUT_VALIDATION),
        ]
        unique = deduplicate(findings)
        assert [(f.location.line, f.category) for f in unique] == [
            (3, C.MISSING_INPUT_VALIDATION),
            (3, C.UNRESTRICTED_ENTRY_POINT),
            (4, C.MISSING_INPUT_VALIDATION),
        ]
        assert unique[0].message == 'first'

    def test_parameters_first_used_on_one_line_collapse(self):
        findings = evaluate(
            'function link(address a, address b) public {\n        owners[a] = b;\n    }',
            'link', params=[('a', 'address'), ('b', 'address')],
        )
        missing = [f for f in findings if f.category is C.MISSING_INPUT_VALIDATION]
        assert len(missing) == 1
        assert missing[0].detail == 'a: missing zero-address check'
        keys = [f.dedup_key for f in findings]
        assert len(keys) == len(set(keys))
