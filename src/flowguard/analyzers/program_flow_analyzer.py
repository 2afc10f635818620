"""
Program-flow static analysis of Solidity contracts.

Builds an approximate control/data-flow summary for every public or external
function and flags dangerous flows: unprotected state mutations, unrestricted
ether transfers, delegatecall, unchecked arithmetic, unvalidated parameters
and external calls made before state updates. Contracts are never deployed
or executed.

Files are analyzed independently; a file that cannot be read or parsed is
recorded as an error and the rest of the batch continues.
"""
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union

from ..config import RuleConfig, Settings
from ..models import AnalysisReport, ContractSummary, FileError, FileErrorKind, FileReport
from ..utils.error_handling import FlowGuardError, ParseFailureError, SourceUnavailableError
from ..utils.file_collector import collect_solidity_files
from .base_analyzer import BaseAnalyzer
from .contract_extractor import ContractExtractor
from .function_summarizer import FunctionSummarizer
from .flow_heuristics import FlowHeuristicsEngine
from .rules import DEFAULT_RULES, Rule, RuleEvaluator
from .source_text import SourceText
from .syntax_provider import SolcSyntaxProvider


class SyntaxProvider(Protocol):
    def parse(self, path: str, source: str) -> Dict[str, Any]:
        ...


class ProgramFlowAnalyzer(BaseAnalyzer):
    def __init__(
        self,
        provider: Optional[SyntaxProvider] = None,
        rule_config: Optional[RuleConfig] = None,
        rules: Sequence[Rule] = DEFAULT_RULES,
        settings: Optional[Settings] = None
    ):
        super().__init__(settings)
        self.rule_config = rule_config or self.config.rules
        self.provider = provider or SolcSyntaxProvider(
            solc_version=self.config.SOLC_VERSION,
            auto_install=self.config.AUTO_INSTALL_SOLC,
        )
        engine = FlowHeuristicsEngine(self.rule_config)
        self.extractor = ContractExtractor(self.rule_config, FunctionSummarizer(self.rule_config, engine))
        self.evaluator = RuleEvaluator(rules)

    def analyze(self, contract_path: str, **kwargs) -> AnalysisReport:
        return self.analyze_paths([contract_path], **kwargs)

    def analyze_source(self, source: str, ast: Dict[str, Any], path: str = '<memory>') -> List[ContractSummary]:
        """Run extraction and rules over an already-parsed file.

        Args:
            source: Raw source text of the file
            ast: solc SourceUnit AST of the same file
            path: Name used in log messages

        Returns:
            One ContractSummary per ContractDefinition, in document order
        """
        text = SourceText(source)
        contracts = [
            self.evaluator.evaluate_contract(contract, text)
            for contract in self.extractor.extract(ast, text)
        ]
        if not contracts:
            self.logger.info(f"No contracts defined in {path}")
        return contracts

    def analyze_file(self, path: str) -> FileReport:
        """Read, parse and analyze one file.

        Raises:
            SourceUnavailableError: the file is missing, too large or unreadable
            ParseFailureError: the syntax provider failed
        """
        problem = self.validate_contract(path)
        if problem:
            raise SourceUnavailableError(path, problem)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                source = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise SourceUnavailableError(path, str(e))

        try:
            ast = self.provider.parse(path, source)
        except FlowGuardError:
            raise
        except Exception as e:
            raise ParseFailureError(path, str(e)) from e

        return FileReport(path=path, contracts=tuple(self.analyze_source(source, ast, path)))

    def _analyze_isolated(self, path: str) -> Union[FileReport, FileError]:
        try:
            report = self.analyze_file(path)
        except SourceUnavailableError as e:
            self.logger.error(f"Failed to analyze {path}: {e.message}")
            return FileError(path, FileErrorKind.SOURCE_UNAVAILABLE, e.message)
        except ParseFailureError as e:
            self.logger.error(f"Failed to analyze {path}: {e.message}")
            return FileError(path, FileErrorKind.PARSE_FAILURE, e.message)
        except Exception as e:
            # Unexpected AST shape; the rest of the batch still runs
            self.logger.exception(f"Unexpected error while analyzing {path}: {e}")
            return FileError(path, FileErrorKind.PARSE_FAILURE, str(e))
        findings = sum(len(contract.findings) for contract in report.contracts)
        self.logger.info(f"Analyzed {path}: {len(report.contracts)} contract(s), {findings} finding(s)")
        return report

    def analyze_paths(
        self,
        paths: Sequence[str],
        max_workers: Optional[int] = None,
        sort: Optional[bool] = None
    ) -> AnalysisReport:
        """Analyze files and directories, returning a partial-success report.

        Args:
            paths: Files or directories; directories are searched recursively
            max_workers: Worker threads; defaults to FLOWGUARD_MAX_WORKERS
            sort: Sort directory entries; defaults to FLOWGUARD_SORT_PATHS

        Returns:
            AnalysisReport with file reports in discovery order and per-file errors
        """
        workers = max_workers or self.config.MAX_WORKERS
        sort = self.config.SORT_PATHS if sort is None else sort

        report = AnalysisReport()
        files: List[str] = []
        for target in paths:
            if not os.path.exists(target):
                self.logger.error(f"Path not found: {target}")
                report.errors.append(FileError(target, FileErrorKind.SOURCE_UNAVAILABLE, 'path does not exist'))
                continue
            files.extend(collect_solidity_files([target], sort=sort))

        if workers > 1 and len(files) > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                results = list(executor.map(self._analyze_isolated, files))
        else:
            results = [self._analyze_isolated(path) for path in files]

        for result in results:
            if isinstance(result, FileError):
                report.errors.append(result)
            else:
                report.files.append(result)
        return report
