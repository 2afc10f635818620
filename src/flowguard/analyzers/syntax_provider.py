"""Syntax providers: turn one Solidity file into a solc JSON AST."""
import json
import logging
import os
from typing import Any, Dict, List, Optional, Sequence

import solcx
from solcx.exceptions import SolcError, SolcNotInstalled

from ..utils.error_handling import ParseFailureError

logger = logging.getLogger(__name__)


class SolcSyntaxProvider:
    """Compiles a single file with py-solc-x and returns its AST.

    Imports are resolved against the file's directory and the working
    directory; extra ``remappings`` are passed to solc unchanged.
    """

    def __init__(
        self,
        solc_version: Optional[str] = None,
        auto_install: bool = False,
        remappings: Sequence[str] = ()
    ):
        self.solc_version = solc_version
        self.auto_install = auto_install
        self.remappings = list(remappings)
        self._version_ready = False

    def _ensure_version(self) -> None:
        if self._version_ready or not self.solc_version:
            return
        if self.auto_install and self.solc_version not in {str(v) for v in solcx.get_installed_solc_versions()}:
            logger.info(f"Installing solc {self.solc_version}")
            solcx.install_solc(self.solc_version)
        self._version_ready = True

    def _allow_paths(self, path: str) -> List[str]:
        cwd = os.getcwd()
        candidates = [os.path.dirname(os.path.abspath(path)), cwd, os.path.join(cwd, 'node_modules')]
        return [candidate for candidate in candidates if os.path.isdir(candidate)]

    def parse(self, path: str, source: str) -> Dict[str, Any]:
        """Compile ``source`` (the content of ``path``) and return the SourceUnit AST.

        Raises:
            ParseFailureError: solc reported errors or returned no AST
        """
        key = os.path.basename(path)
        input_json: Dict[str, Any] = {
            'language': 'Solidity',
            'sources': {key: {'content': source}},
            'settings': {
                'outputSelection': {'*': {'': ['ast']}},
            },
        }
        if self.remappings:
            input_json['settings']['remappings'] = self.remappings

        try:
            self._ensure_version()
            output = solcx.compile_standard(
                input_json,
                base_path=os.path.dirname(os.path.abspath(path)),
                allow_paths=self._allow_paths(path),
                solc_version=self.solc_version,
            )
        except SolcError as e:
            raise ParseFailureError(path, self._format_solc_error(e))
        except SolcNotInstalled as e:
            raise ParseFailureError(path, f"solc is not installed: {e}")

        fatal = [err for err in output.get('errors', []) if err.get('severity') == 'error']
        if fatal:
            raise ParseFailureError(
                path,
                '\n'.join(err.get('formattedMessage', err.get('message', '')) for err in fatal)
            )

        source_ast = output.get('sources', {}).get(key)
        if not source_ast or not source_ast.get('ast'):
            raise ParseFailureError(path, 'AST not returned by solc.')
        return source_ast['ast']

    @staticmethod
    def _format_solc_error(error: SolcError) -> str:
        errors: List[Dict[str, Any]] = []
        stdout = getattr(error, 'stdout_data', None)
        if stdout:
            try:
                errors = json.loads(stdout).get('errors', [])
            except ValueError:
                logger.debug("solc stdout is not JSON; using the raw error message")
        messages = [
            err.get('formattedMessage', err.get('message', ''))
            for err in errors
            if isinstance(err, dict) and err.get('severity') == 'error'
        ]
        if messages:
            return '\n'.join(messages)
        return getattr(error, 'message', None) or str(error)


class JsonAstProvider:
    """Loads a pre-built AST stored next to the source as ``<file>.ast.json``.

    Both a bare SourceUnit and a full standard-JSON compiler output are accepted.
    """

    suffix = '.ast.json'

    def parse(self, path: str, source: str) -> Dict[str, Any]:
        ast_path = path + self.suffix
        try:
            with open(ast_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except OSError as e:
            raise ParseFailureError(path, f"AST file not available: {e}")
        except json.JSONDecodeError as e:
            raise ParseFailureError(path, f"Invalid AST JSON in {ast_path}: {e}")

        if isinstance(data, dict) and 'sources' in data:
            for entry in data['sources'].values():
                if isinstance(entry, dict) and entry.get('ast'):
                    return entry['ast']
            raise ParseFailureError(path, f"No AST found in {ast_path}")
        if not isinstance(data, dict):
            raise ParseFailureError(path, f"Unexpected AST document in {ast_path}")
        return data
