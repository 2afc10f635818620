"""Command-line entry point: ``flowguard [paths ...]``.

If no paths are given the ``contracts/`` directory is scanned. Paths can be
files or directories; directories are searched recursively for ``.sol`` files.
"""
import argparse
import sys
from dataclasses import replace
from typing import List, Optional

from .analyzers import JsonAstProvider, ProgramFlowAnalyzer, SolcSyntaxProvider
from .config import settings
from .reporting import ReportGenerator
from .utils.error_handling import FlowGuardError
from .utils.file_collector import collect_solidity_files

EXIT_CLEAN = 0
EXIT_NO_FILES = 1
EXIT_FINDINGS = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='flowguard',
        description='Heuristic program-flow analysis of Solidity smart contracts.'
    )
    parser.add_argument('paths', nargs='*', default=['contracts'],
                        help='Solidity files or directories (default: contracts/)')
    parser.add_argument('--format', choices=['text', 'json', 'html'], default='text',
                        help='Report format (default: text)')
    parser.add_argument('--output', help='Write the report to this file instead of stdout')
    parser.add_argument('--workers', type=int, help='Number of files analyzed in parallel')
    parser.add_argument('--sort', action='store_true', default=None,
                        help='Sort directory entries instead of using filesystem order')
    parser.add_argument('--solc-version', help='solc version to compile with (py-solc-x)')
    parser.add_argument('--ast-json', action='store_true',
                        help='Read pre-built ASTs from <file>.ast.json instead of running solc')
    parser.add_argument('--log-level', help='Logging level (default: FLOWGUARD_LOG_LEVEL or INFO)')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    run_settings = settings
    if args.log_level:
        run_settings = replace(run_settings, LOG_LEVEL=args.log_level.upper())
    if args.solc_version:
        run_settings = replace(run_settings, SOLC_VERSION=args.solc_version)
    sort = run_settings.SORT_PATHS if args.sort is None else args.sort

    files = collect_solidity_files(args.paths, sort=sort)
    if not files:
        print("No Solidity files found for analysis.", file=sys.stderr)
        return EXIT_NO_FILES

    if args.ast_json:
        provider = JsonAstProvider()
    else:
        provider = SolcSyntaxProvider(
            solc_version=run_settings.SOLC_VERSION,
            auto_install=run_settings.AUTO_INSTALL_SOLC,
        )

    try:
        analyzer = ProgramFlowAnalyzer(provider=provider, settings=run_settings)
        report = analyzer.analyze_paths(files, max_workers=args.workers, sort=sort)
        content = ReportGenerator(run_settings.TEMPLATES_DIR).generate(report, args.format, args.output)
    except FlowGuardError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_FINDINGS

    if not args.output:
        print(content)

    for error in report.errors:
        print(f"Failed to analyze {error.path}: {error.message}", file=sys.stderr)

    if report.findings or (report.errors and not report.files):
        return EXIT_FINDINGS
    return EXIT_CLEAN


if __name__ == '__main__':
    sys.exit(main())
