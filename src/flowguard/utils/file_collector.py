"""Solidity file discovery."""
import logging
import os
from typing import Iterable, List

logger = logging.getLogger(__name__)

SOLIDITY_EXTENSION = '.sol'


def collect_solidity_files(paths: Iterable[str], sort: bool = False) -> List[str]:
    """Expand files and directories into a list of Solidity files.

    Directories are walked recursively in directory-entry order unless
    ``sort`` is set. Paths that do not exist are skipped.
    """
    results: List[str] = []
    for target in paths:
        if not os.path.exists(target):
            logger.warning(f"Skipping missing path: {target}")
            continue
        if os.path.isdir(target):
            entries = os.listdir(target)
            if sort:
                entries = sorted(entries)
            results.extend(
                collect_solidity_files([os.path.join(target, entry) for entry in entries], sort=sort)
            )
        elif os.path.isfile(target) and target.endswith(SOLIDITY_EXTENSION):
            results.append(target)
    return results
