"""End-to-end tests for the migration runner."""

import json

import pytest

from errors import ErrorKind, MigrationError
from logger import engine_logger
from orchestrator import MigrationRunner, RunnerState
from providers import FileSystemPageStore, ProviderRegistry


class UnreadablePageStore(FileSystemPageStore):
    """Page store whose listing always fails."""

    def list_all_pages(self):
        raise OSError('permission denied')


class TestMigrationRunner:
    """Test whole runs over a temporary JSPWiki tree."""

    def test_empty_source(self, run_config, capsys):
        runner = MigrationRunner(run_config)

        report = runner.run()

        assert report.summary() == (0, 0, 0)
        assert runner.state is RunnerState.DONE
        assert capsys.readouterr().out.count('MIGRATION REPORT') == 1

    def test_one_valid_and_one_failing_page(self, run_config, source_dir, target_dir, write_page, capsys):
        write_page(source_dir, 'Good Page', '__fine__')
        write_page(source_dir, 'Bad Page', b'\xff\xfe not utf-8')

        report = MigrationRunner(run_config).run()

        assert report.total == 2
        assert report.failed == 1
        assert report.success == 1
        assert report.total == report.success + report.failed
        assert (target_dir / 'Good+Page.md').read_text(encoding='utf-8') == '**fine**\n'
        assert not (target_dir / 'Bad+Page.md').exists()
        assert report.failures[0].page_name == 'Bad Page'
        assert report.failures[0].error_kind is ErrorKind.TRANSLATION

        out = capsys.readouterr().out
        assert 'Processing page: Bad Page' in out
        assert 'Processing page: Good Page' in out

    def test_plain_prose_round_trips(self, run_config, source_dir, target_dir, write_page):
        prose = "Plain words make plain pages.\nNothing here needs translating.\n\nA second paragraph."
        write_page(source_dir, 'Prose', prose)

        MigrationRunner(run_config).run()

        assert (target_dir / 'Prose.md').read_text(encoding='utf-8').split() == prose.split()

    def test_attachments_are_copied(self, run_config, source_dir, target_dir, write_page, write_attachment):
        write_page(source_dir, 'Main', '[diagram.png]')
        write_attachment(source_dir, 'Main', 'diagram.png', b'\x89PNG image bytes')
        write_attachment(source_dir, 'Main', 'manual.pdf', b'%PDF-1.4')

        report = MigrationRunner(run_config).run()

        assert report.summary() == (1, 1, 0)
        assert report.attachments_copied == 2
        assert (target_dir / 'Main-att' / 'diagram.png-dir' / '1.png').read_bytes() == b'\x89PNG image bytes'
        assert (target_dir / 'Main-att' / 'manual.pdf-dir' / '1.pdf').read_bytes() == b'%PDF-1.4'
        assert (target_dir / 'Main.md').read_text(encoding='utf-8') == '![diagram.png](diagram.png)\n'

    def test_unopenable_attachment_fails_only_its_page(
        self, run_config, source_dir, target_dir, write_page, write_attachment
    ):
        write_page(source_dir, 'A', 'page a')
        write_page(source_dir, 'B', 'page b')
        write_attachment(source_dir, 'A', 'one.txt', b'one')
        (source_dir / 'A-att' / 'two.txt-dir' / '1.txt').mkdir(parents=True)
        write_attachment(source_dir, 'A', 'zzz.txt', b'zzz')
        write_attachment(source_dir, 'B', 'b.txt', b'b')

        report = MigrationRunner(run_config).run()

        assert report.summary() == (2, 1, 1)
        assert report.failures[0].page_name == 'A'
        assert report.failures[0].error_kind is ErrorKind.RESOURCE
        assert (target_dir / 'A-att' / 'one.txt-dir' / '1.txt').read_bytes() == b'one'
        assert not (target_dir / 'A-att' / 'two.txt-dir').exists()
        assert not (target_dir / 'A-att' / 'zzz.txt-dir').exists()
        assert (target_dir / 'B-att' / 'b.txt-dir' / '1.txt').read_bytes() == b'b'

    def test_post_processors_are_applied(self, run_config, source_dir, target_dir, write_page):
        write_page(source_dir, 'Main', 'hello')

        MigrationRunner(run_config, post_processors=[str.upper]).run()

        assert (target_dir / 'Main.md').read_text(encoding='utf-8') == 'HELLO\n'

    def test_missing_source_aborts(self, run_config, tmp_path):
        run_config['migration']['source_directory'] = str(tmp_path / 'missing')
        runner = MigrationRunner(run_config)

        with pytest.raises(MigrationError) as exc_info:
            runner.run()

        assert exc_info.value.kind is ErrorKind.CONFIGURATION
        assert runner.state is RunnerState.ABORTED

    def test_unloadable_parser_aborts(self, run_config):
        run_config['engine']['parser_override'] = 'no_such_module_for_parsers.Renderer'

        with pytest.raises(MigrationError) as exc_info:
            MigrationRunner(run_config).run()

        assert exc_info.value.is_fatal

    def test_uninstantiable_parser_aborts_and_detaches_engine_logs(self, run_config):
        run_config['engine']['parser_override'] = 'converters.base_converter:Renderer'
        runner = MigrationRunner(run_config)

        with pytest.raises(MigrationError) as exc_info:
            runner.run()

        assert exc_info.value.kind is ErrorKind.CONFIGURATION
        assert 'Renderer' in exc_info.value.message
        assert runner.state is RunnerState.ABORTED
        assert engine_logger(runner.source_config).handlers == []
        assert engine_logger(runner.target_config).handlers == []

    def test_unreadable_store_yields_zero_pages(self, run_config, source_dir, write_page):
        write_page(source_dir, 'Main', 'text')
        providers = ProviderRegistry(page_store_class=UnreadablePageStore)

        report = MigrationRunner(run_config, providers=providers).run()

        assert report.summary() == (0, 0, 0)

    def test_existing_target_content_is_kept(self, run_config, source_dir, target_dir, write_page):
        target_dir.mkdir()
        (target_dir / 'Keep.md').write_text('kept', encoding='utf-8')
        write_page(source_dir, 'Main', 'text')

        MigrationRunner(run_config).run()

        assert (target_dir / 'Keep.md').read_text(encoding='utf-8') == 'kept'
        assert (target_dir / 'Main.md').exists()

    def test_clean_target_deletes_existing_content(self, run_config, source_dir, target_dir, write_page):
        (target_dir / 'stale-att').mkdir(parents=True)
        (target_dir / 'Stale.md').write_text('stale', encoding='utf-8')
        write_page(source_dir, 'Main', 'text')
        run_config['migration']['clean_target'] = True

        MigrationRunner(run_config).run()

        assert sorted(p.name for p in target_dir.iterdir()) == ['Main.md']

    def test_clean_target_refuses_to_delete_source(self, run_config, source_dir):
        run_config['migration']['target_directory'] = str(source_dir.parent)
        run_config['migration']['clean_target'] = True

        with pytest.raises(MigrationError) as exc_info:
            MigrationRunner(run_config).run()

        assert exc_info.value.kind is ErrorKind.CONFIGURATION
        assert source_dir.exists()

    def test_dry_run_writes_nothing(self, run_config, source_dir, target_dir, write_page, write_attachment):
        write_page(source_dir, 'Main', 'text')
        write_attachment(source_dir, 'Main', 'a.txt', b'a')
        run_config['migration']['dry_run'] = True

        report = MigrationRunner(run_config).run()

        assert report.summary() == (1, 1, 0)
        assert not target_dir.exists()

    def test_engine_logs_and_json_report(self, run_config, source_dir, work_root, tmp_path, write_page):
        write_page(source_dir, 'Main', 'text')
        report_path = tmp_path / 'report.json'
        run_config['migration']['report_path'] = str(report_path)

        MigrationRunner(run_config).run()

        assert (work_root / 'wiki-jspwiki.log').exists()
        assert (work_root / 'wiki-markdown.log').exists()
        assert (work_root / 'workDir-jspwiki').is_dir()
        assert json.loads(report_path.read_text(encoding='utf-8'))['summary']['total'] == 1

    def test_markdown_to_jspwiki(self, run_config, source_dir, target_dir, write_page):
        write_page(source_dir, 'Main', '# Title\n\nSome **bold** text.\n', extension='.md')
        run_config['migration']['source_dialect'] = 'markdown'
        run_config['migration']['target_dialect'] = 'jspwiki'

        report = MigrationRunner(run_config).run()

        assert report.summary() == (1, 1, 0)
        assert (target_dir / 'Main.txt').read_text(encoding='utf-8') == '!!! Title\n\nSome __bold__ text.\n'
