"""
Wrappers around the SRA Toolkit binaries. Each call returns a ToolResult
instead of raising, so callers decide whether a failure skips a run.
"""

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

from loguru import logger


@dataclass(frozen=True)
class ToolResult:
    command: List[str]
    returncode: int
    stdout: str = ''
    stderr: str = ''

    @property
    def ok(self):
        return self.returncode == 0

    def diagnostic(self):
        """Short description of a failure for log lines"""
        detail = (self.stderr or self.stdout).strip()
        if detail:
            return f"exit status {self.returncode}: {detail.splitlines()[-1]}"
        return f"exit status {self.returncode}"


def run_tool(cmd: List[str], step_name: str) -> ToolResult:
    """Run an external command with stdin closed and its output captured"""
    cmd = [str(part) for part in cmd]
    logger.debug(f"Running {step_name} command: {' '.join(cmd)}")
    try:
        process = subprocess.run(
            cmd,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as e:
        return ToolResult(cmd, 127, stderr=str(e))

    if process.stdout:
        logger.debug(f"{step_name} STDOUT:\n{process.stdout.strip()}")
    if process.stderr:
        logger.debug(f"{step_name} STDERR:\n{process.stderr.strip()}")
    return ToolResult(cmd, process.returncode, process.stdout, process.stderr)


class SraToolkit:
    """prefetch / fasterq-dump invoked as subprocesses"""

    def __init__(self, prefetch='prefetch', fasterq_dump='fasterq-dump'):
        self.prefetch_bin = prefetch
        self.fasterq_dump_bin = fasterq_dump

    def prefetch(self, run_id: str, output_dir: Union[str, Path]) -> ToolResult:
        cmd = [self.prefetch_bin, '--output-directory', output_dir, run_id]
        return run_tool(cmd, 'prefetch')

    def fasterq_dump(self, archive: Union[str, Path], output_dir: Union[str, Path],
                     split_files: bool = False) -> ToolResult:
        cmd = [self.fasterq_dump_bin]
        if split_files:
            cmd.append('--split-files')
        cmd += [archive, '-O', output_dir]
        return run_tool(cmd, 'fasterq-dump')
