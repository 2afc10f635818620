"""Report rendering for analysis results."""

from .report_generator import ReportGenerator

__all__ = ['ReportGenerator']
