import re
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from importlib import metadata
from io import StringIO
from pathlib import Path
from unittest import mock

from loguru import logger

import sra_reads
from fakes import FakeRunInfoClient, FakeToolkit, runinfo_line
from sra_reads import cli
from sra_reads.config import Layout
from sra_reads.log import setup_logging

LOG_LINE = re.compile(r"^\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\] \[(INFO|WARNING|ERROR)\] (.*)$")


class TestCli(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.addCleanup(logger.remove)
        self.workdir = Path(self.tmp.name)
        self.input_file = self.workdir / 'species.txt'
        self.input_file.write_text("Mouse,SRR111,SRR222\n")

    def exit_status(self, argv):
        with redirect_stdout(StringIO()), redirect_stderr(StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                cli.main(argv)
        return ctx.exception.code

    def test_no_arguments(self):
        self.assertEqual(self.exit_status([]), 1)

    def test_unknown_flag(self):
        self.assertNotEqual(self.exit_status(['-i', str(self.input_file), '--bogus']), 0)

    def test_invalid_layout(self):
        self.assertNotEqual(self.exit_status(['-i', str(self.input_file), '-l', 'triple']), 0)

    def test_invalid_chunk_size(self):
        self.assertNotEqual(self.exit_status(['-i', str(self.input_file), '-c', '0']), 0)

    def test_missing_input_file(self):
        self.assertEqual(self.exit_status(['-i', str(self.workdir / 'absent.txt')]), 1)

    @mock.patch('sra_reads.cli.check_dependencies', return_value=False)
    def test_missing_tools(self, check):
        self.assertEqual(self.exit_status(['-i', str(self.input_file), '-o', str(self.workdir)]), 1)

    @mock.patch('sra_reads.cli.check_dependencies', return_value=True)
    def test_mixed_accessions(self, check):
        self.input_file.write_text("Mouse,SRR111,SRX222\n")
        self.assertEqual(self.exit_status(['-i', str(self.input_file), '-o', str(self.workdir)]), 1)

    def test_defaults(self):
        args = cli.build_parser().parse_args(['-i', 'species.txt'])
        config = cli.config_from_args(args)
        self.assertEqual(config.chunk_size, 350)
        self.assertEqual(config.sleep_secs, 1)
        self.assertIsNone(config.forced_layout)
        self.assertEqual(config.unknown_layout, 'single')
        self.assertFalse(config.cleanup)

    def test_layout_is_case_insensitive(self):
        args = cli.build_parser().parse_args(['-i', 'species.txt', '--layout', 'paired'])
        self.assertIs(cli.config_from_args(args).forced_layout, Layout.PAIRED)

    def test_run_with_forced_layout(self):
        args = cli.build_parser().parse_args([
            '-i', str(self.input_file), '-o', str(self.workdir / 'out'),
            '-l', 'paired', '-w', '0',
        ])
        client = FakeRunInfoClient({'SRR111': [runinfo_line('SRR111', 'SRX1', 'SINGLE')]})
        toolkit = FakeToolkit()
        summaries = cli.run(args, toolkit=toolkit, runinfo_client=client)

        self.assertEqual(client.queries, [])
        self.assertEqual(summaries[0].converted, ['SRR111', 'SRR222'])
        self.assertEqual(sorted(p.name for p in (self.workdir / 'out').glob('*.fastq')), [
            'Mouse_SRR111_1.fastq', 'Mouse_SRR111_2.fastq',
            'Mouse_SRR222_1.fastq', 'Mouse_SRR222_2.fastq',
        ])


class TestSetupLogging(unittest.TestCase):
    def setUp(self):
        self.addCleanup(logger.remove)

    def log_lines(self, verbose=False):
        stdout, stderr = StringIO(), StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            setup_logging(verbose=verbose, colorize=False)
            logger.debug('details')
            logger.info('hello')
            logger.warning('careful')
            logger.error('boom')
        return stdout.getvalue().splitlines(), stderr.getvalue().splitlines()

    def test_format_and_streams(self):
        out_lines, err_lines = self.log_lines()

        parsed_out = [LOG_LINE.match(line).groups() for line in out_lines]
        parsed_err = [LOG_LINE.match(line).groups() for line in err_lines]
        self.assertEqual(parsed_out, [('INFO', 'hello'), ('WARNING', 'careful')])
        self.assertEqual(parsed_err, [('ERROR', 'boom')])

    def test_no_color_codes_when_disabled(self):
        out_lines, err_lines = self.log_lines()
        self.assertFalse(any('\x1b[' in line for line in out_lines + err_lines))

    def test_verbose_shows_debug(self):
        out_lines, _ = self.log_lines(verbose=True)
        self.assertEqual(out_lines[0].split('] ', 2)[1:], ['[DEBUG', 'details'])


class TestVersion(unittest.TestCase):
    def test_single_version_source(self):
        try:
            installed = metadata.version('sra-reads')
        except metadata.PackageNotFoundError:
            self.skipTest('sra-reads is not installed')
        self.assertEqual(installed, sra_reads.__version__)


if __name__ == '__main__':
    unittest.main()
