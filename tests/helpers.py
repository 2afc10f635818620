"""Builders for solc-style AST nodes over inline Solidity sources."""
from typing import Any, Dict, Iterable, List, Sequence, Tuple


def src(source: str, text: str, start: int = 0) -> str:
    offset = source.index(text, start)
    return f"{len(source[:offset].encode('utf-8'))}:{len(text.encode('utf-8'))}:0"


def function_node(
    source: str,
    text: str,
    name: str,
    visibility: str = 'public',
    mutability: str = 'nonpayable',
    modifiers: Iterable[str] = (),
    params: Sequence[Tuple[str, str]] = (),
    kind: str = 'function',
    unchecked_blocks: Iterable[str] = (),
    implemented: bool = True,
) -> Dict[str, Any]:
    offset = source.index(text)
    node: Dict[str, Any] = {
        'nodeType': 'FunctionDefinition',
        'name': name,
        'kind': kind,
        'visibility': visibility,
        'stateMutability': mutability,
        'implemented': implemented,
        'src': src(source, text),
        'modifiers': [{'nodeType': 'ModifierInvocation', 'modifierName': {'name': m}} for m in modifiers],
        'parameters': {
            'parameters': [
                {'nodeType': 'VariableDeclaration', 'name': p_name, 'typeDescriptions': {'typeString': p_type}}
                for p_name, p_type in params
            ]
        },
    }
    if implemented and '{' in text:
        body_text = text[text.index('{'):]
        statements: List[Dict[str, Any]] = [
            {'nodeType': 'UncheckedBlock', 'src': src(source, block, offset)}
            for block in unchecked_blocks
        ]
        node['body'] = {'nodeType': 'Block', 'src': src(source, body_text, offset), 'statements': statements}
    return node


def state_variable(name: str, type_string: str) -> Dict[str, Any]:
    return {
        'nodeType': 'VariableDeclaration',
        'stateVariable': True,
        'name': name,
        'typeDescriptions': {'typeString': type_string},
    }


def contract_node(name: str, nodes: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    return {'nodeType': 'ContractDefinition', 'name': name, 'contractKind': 'contract', 'nodes': list(nodes)}


def source_unit(*contracts: Dict[str, Any]) -> Dict[str, Any]:
    return {'nodeType': 'SourceUnit', 'nodes': [{'nodeType': 'PragmaDirective'}, *contracts]}


def single_function_unit(source: str, text: str, name: str, state: Sequence[Dict[str, Any]] = (), **kwargs) -> Dict[str, Any]:
    """AST for a one-contract file holding a single function."""
    return source_unit(contract_node('Target', [*state, function_node(source, text, name, **kwargs)]))


def wrap(function_text: str, state: str = '    uint256 public total;\n') -> str:
    return f"pragma solidity ^0.8.0;\n\ncontract Target {{\n{state}\n    {function_text}\n}}\n"
