"""REST API exposing the program-flow analyzer."""
import logging
import os
import tempfile
from typing import Any, Dict, Optional

from fastapi import FastAPI
from pydantic import BaseModel

from .analyzers import ProgramFlowAnalyzer
from .models import FileErrorKind
from .utils.error_handling import (
    ParseFailureError,
    SourceUnavailableError,
    ValidationError,
    handle_exceptions,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="FlowGuard API",
              description="Heuristic program-flow analysis for Solidity smart contracts",
              version="1.0.0")

_analyzer: Optional[ProgramFlowAnalyzer] = None


def get_analyzer() -> ProgramFlowAnalyzer:
    # Built on first request
    global _analyzer
    if _analyzer is None:
        _analyzer = ProgramFlowAnalyzer()
    return _analyzer


class ContractAnalysisRequest(BaseModel):
    source_code: str
    filename: str = 'Contract.sol'

    model_config = {
        "json_schema_extra": {
            "example": {
                "source_code": "contract Vault { function withdraw(uint a) external { payable(msg.sender).transfer(a); } }",
                "filename": "Vault.sol"
            }
        }
    }


@app.get('/health')
def health() -> Dict[str, str]:
    return {'status': 'ok'}


@app.post('/analyze',
          summary="Analyze Solidity source",
          description="Compiles the submitted source and returns program-flow findings")
@handle_exceptions(raise_http_exception=True)
def analyze_contract(request: ContractAnalysisRequest) -> Dict[str, Any]:
    if not request.source_code.strip():
        raise ValidationError("Source code must not be empty", field='source_code', value='')
    filename = os.path.basename(request.filename) or 'Contract.sol'
    if not filename.endswith('.sol'):
        raise ValidationError("Filename must end with .sol", field='filename', value=request.filename)

    logger.info(f"Analyzing submitted contract {filename}")
    analyzer = get_analyzer()
    with tempfile.TemporaryDirectory() as temp_dir:
        path = os.path.join(temp_dir, filename)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(request.source_code)
        report = analyzer.analyze_paths([path], max_workers=1)

    for error in report.errors:
        if error.kind is FileErrorKind.PARSE_FAILURE:
            raise ParseFailureError(filename, error.message)
        raise SourceUnavailableError(filename, error.message)

    contracts = [contract for file_report in report.files for contract in file_report.contracts]
    response = {
        'filename': filename,
        'contracts': [contract.to_dict() for contract in contracts],
    }
    response.update(analyzer.format_findings(report.findings))
    return response
