"""Tests for the command-line entry point."""

import json

import pytest

from migrate import create_argument_parser, main


@pytest.fixture
def cli_args(source_dir, target_dir, work_root):
    """Positional arguments plus a work dir inside tmp_path."""
    return [str(source_dir), str(target_dir), 'de', '--work-dir', str(work_root)]


class TestArgumentParser:

    def test_positionals_and_flags(self):
        args = create_argument_parser().parse_args(
            ['wiki', 'out', 'pt_BR', '--clean-target', '--dry-run', '--no-verify', '-vv']
        )

        assert (args.source_dir, args.target_dir, args.language) == ('wiki', 'out', 'pt_BR')
        assert args.clean_target and args.dry_run and args.no_verify
        assert args.verbose == 2


class TestMain:
    """Test exit codes and console output of a run."""

    def test_missing_arguments_prints_usage(self, capsys):
        assert main([]) == 1
        assert 'usage: jspwiki-migrate' in capsys.readouterr().out

    def test_successful_run(self, cli_args, source_dir, target_dir, write_page, capsys):
        write_page(source_dir, 'Main', '!!! Hello\n\nWorld')

        assert main(cli_args) == 0

        out = capsys.readouterr().out
        assert f'Source directory: {source_dir}' in out
        assert f'Target directory: {target_dir}' in out
        assert 'Processing page: Main' in out
        assert 'Successfully converted JSPWiki to Markdown for language: de' in out
        assert out.rstrip().endswith('Conversion process completed.')
        assert (target_dir / 'Main.md').read_text(encoding='utf-8') == '## Hello\n\nWorld\n'

    def test_relative_directories_are_printed_absolute(
        self, tmp_path, source_dir, target_dir, write_page, monkeypatch, capsys
    ):
        write_page(source_dir, 'Main', 'text')
        monkeypatch.chdir(tmp_path)

        assert main([source_dir.name, target_dir.name, 'de', '--work-dir', 'work']) == 0

        out = capsys.readouterr().out
        assert f'Source directory: {tmp_path / source_dir.name}' in out
        assert f'Target directory: {tmp_path / target_dir.name}' in out
        assert (target_dir / 'Main.md').exists()

    def test_uninstantiable_parser_is_configuration_error(self, cli_args, capsys):
        assert main(cli_args + ['--parser', 'converters.base_converter:Renderer']) == 2
        assert 'Cannot create Renderer' in capsys.readouterr().err

    def test_failed_pages_do_not_change_exit_code(self, cli_args, source_dir, write_page):
        write_page(source_dir, 'Bad', b'\xff\xfe')

        assert main(cli_args) == 0

    def test_report_file(self, cli_args, source_dir, tmp_path, write_page):
        write_page(source_dir, 'Main', 'text')
        report = tmp_path / 'report.json'

        assert main(cli_args + ['--report', str(report)]) == 0

        data = json.loads(report.read_text(encoding='utf-8'))
        assert data['summary']['total'] == 1
        assert data['summary']['language'] == 'de'

    def test_unknown_dialect(self, cli_args, capsys):
        assert main(cli_args + ['--target-dialect', 'creole']) == 2
        assert 'Error processing' in capsys.readouterr().err

    def test_invalid_language(self, source_dir, target_dir, work_root, capsys):
        assert main([str(source_dir), str(target_dir), 'German', '--work-dir', str(work_root)]) == 2
        assert 'Error processing' in capsys.readouterr().err

    def test_missing_source(self, tmp_path, target_dir, work_root, capsys):
        assert main([str(tmp_path / 'nowhere'), str(target_dir), 'de', '--work-dir', str(work_root)]) == 2
        assert 'Source directory does not exist' in capsys.readouterr().err

    def test_missing_config_file(self, cli_args, tmp_path, capsys):
        assert main(cli_args + ['--config', str(tmp_path / 'missing.yaml')]) == 2
        assert 'Error processing' in capsys.readouterr().err

    def test_config_file_values_are_used(self, cli_args, source_dir, target_dir, tmp_path, write_page):
        write_page(source_dir, 'Main', 'text')
        config = tmp_path / 'config.yaml'
        config.write_text('migration:\n  dry_run: true\n', encoding='utf-8')

        assert main(cli_args + ['--config', str(config)]) == 0
        assert not (target_dir / 'Main.md').exists()
