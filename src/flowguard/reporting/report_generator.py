"""Report Generator for the FlowGuard output layer.

Generates JSON, plain-text and HTML reports from an AnalysisReport.
"""

import json
import os
from datetime import datetime
from typing import Any, Dict, Optional

import jinja2

from ..config import DEFAULT_TEMPLATES_DIR
from ..models import AnalysisReport


class ReportGenerator:
    def __init__(self, templates_dir: str = DEFAULT_TEMPLATES_DIR):
        """Initialize the report generator with Jinja2 templates."""
        self.loader = jinja2.FileSystemLoader(templates_dir)
        self.environment = jinja2.Environment(
            loader=self.loader,
            autoescape=jinja2.select_autoescape(['html']),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.report_template = self.environment.get_template('analysis_report.html')
        self.text_template = self.environment.get_template('analysis_report.txt')

    def _context(self, report: AnalysisReport) -> Dict[str, Any]:
        data = report.to_dict()
        data['timestamp'] = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
        return data

    @staticmethod
    def _write(content: str, output_path: Optional[str]) -> None:
        if output_path:
            directory = os.path.dirname(output_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(content)

    def generate_json_report(
        self,
        report: AnalysisReport,
        output_path: Optional[str] = None,
        include_timestamp: bool = True
    ) -> str:
        """Generate a JSON report; without the timestamp the output is deterministic."""
        data = report.to_dict()
        if include_timestamp:
            data = {'timestamp': datetime.now().isoformat(), **data}
        json_content = json.dumps(data, indent=2)
        self._write(json_content, output_path)
        return json_content

    def generate_text_report(self, report: AnalysisReport, output_path: Optional[str] = None) -> str:
        """Generate the console report."""
        text_content = self.text_template.render(self._context(report))
        self._write(text_content, output_path)
        return text_content

    def generate_html_report(self, report: AnalysisReport, output_path: Optional[str] = None) -> str:
        """Generate an HTML report."""
        html_content = self.report_template.render(self._context(report))
        self._write(html_content, output_path)
        return html_content

    def generate(self, report: AnalysisReport, fmt: str = 'text', output_path: Optional[str] = None) -> str:
        renderers = {
            'json': self.generate_json_report,
            'text': self.generate_text_report,
            'html': self.generate_html_report,
        }
        if fmt not in renderers:
            raise ValueError(f"Unsupported report format: {fmt}. Supported: {sorted(renderers)}")
        return renderers[fmt](report, output_path)
