"""Base analyzer class for all contract analysis modules."""
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from ..models import Finding, Severity

if TYPE_CHECKING:
    from ..config import Settings

# Lazy import to avoid circular imports
setup_logger = None
config = None

def _lazy_imports():
    """Lazy import modules to prevent circular imports."""
    global setup_logger, config
    if setup_logger is None:
        from ..utils.logger import setup_logger as _setup_logger
        setup_logger = _setup_logger
    if config is None:
        from ..config import settings as _config
        config = _config
    return setup_logger, config

class BaseAnalyzer(ABC):
    """Base class for all contract analyzers."""

    def __init__(self, settings: Optional['Settings'] = None):
        """Initialize the analyzer with a logger and configuration."""
        _setup_logger, _config = _lazy_imports()
        self.config = settings or _config
        self.logger = _setup_logger(
            f"analyzer.{self.__class__.__name__}",
            log_level=self.config.LOG_LEVEL,
            log_file=self.config.LOG_FILE,
        )

    @abstractmethod
    def analyze(self, contract_path: str, **kwargs) -> Any:
        """Analyze a smart contract.

        Args:
            contract_path: Path to the contract file or directory
            **kwargs: Additional analysis parameters

        Returns:
            Analysis results
        """
        pass

    def validate_contract(self, contract_path: str) -> Optional[str]:
        """Check that a contract file is suitable for analysis.

        Args:
            contract_path: Path to the contract file

        Returns:
            None when the file is usable, otherwise the reason it is not
        """
        path = Path(contract_path)

        if not path.exists():
            return "file does not exist"

        if path.is_file() and path.stat().st_size > self.config.MAX_CONTRACT_SIZE * 1024:  # Convert KB to bytes
            return f"file exceeds maximum allowed size of {self.config.MAX_CONTRACT_SIZE} KB"

        return None

    def format_findings(self, findings: List[Finding]) -> Dict[str, Any]:
        """Format analysis findings into a standardized format.

        Args:
            findings: List of findings

        Returns:
            Formatted findings dictionary
        """
        return {
            'severity_counts': self._count_severities(findings),
            'findings': [finding.to_dict() for finding in findings],
            'summary': self._generate_summary(findings)
        }

    def _count_severities(self, findings: List[Finding]) -> Dict[str, int]:
        """Count findings by severity."""
        severities = {severity.value.lower(): 0 for severity in Severity}
        for finding in findings:
            severities[finding.severity.value.lower()] += 1
        return severities

    def _generate_summary(self, findings: List[Finding]) -> str:
        """Generate a human-readable summary of findings."""
        counts = self._count_severities(findings)
        total = sum(counts.values())

        if total == 0:
            return "No obvious control-flow vulnerabilities detected."

        summary = ["Security issues found:"]
        for severity, count in counts.items():
            if count > 0:
                summary.append(f"- {severity.title()}: {count}")

        return "\n".join(summary)
