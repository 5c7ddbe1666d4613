# === FILE: reader_crawl/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для краулера ReaderCrawl через командную строку.

Рабочий цикл:
  seed URL      Загрузить стартовую страницу и извлечь ссылки её домена
  links         Показать извлечённые ссылки (индекс, отметка выбора)
  select        Выбрать ссылки по индексам, шаблону или все сразу
  crawl         Обойти выбранные ссылки
  retry         Повторить только ссылки со статусом error
  status        Статистика текущей сессии
  reset         Сбросить сессию

Результаты:
  results       Список сохранённых страниц
  show URL      Показать содержимое сохранённой страницы
  delete URL    Удалить сохранённую страницу
  clear-results Удалить все сохранённые страницы
  export        Сохранить страницы в json/md/txt/html

Настройки:
  concurrency [N]  Показать или задать число параллельных запросов (1-10)
  config           Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования

Пример:
  reader-crawl seed https://example.com/docs && reader-crawl select --all && reader-crawl crawl
"""
import sys
from pathlib import Path
from typing import Optional

import click

from reader_crawl import __version__
from reader_crawl.config import MAX_CONCURRENCY, MIN_CONCURRENCY, load_config
from reader_crawl.engine import Engine
from reader_crawl.errors import CrawlerError
from reader_crawl.logger import DEFAULT_FORMAT, init_logging
from reader_crawl.models import CrawlSummary
from reader_crawl.report import EXPORT_FORMATS

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


class ProgressReporter:
    """Колбэк прогресса: открывает click.progressbar при первом окне волны."""

    def __init__(self, label: str) -> None:
        self.label = label
        self._bar = None
        self._shown = 0

    def __call__(self, done: int, total: int) -> None:
        if self._bar is None:
            self._bar = click.progressbar(length=total, label=self.label, show_pos=True)
        self._bar.update(done - self._shown)
        self._shown = done

    def close(self) -> None:
        if self._bar is not None:
            self._bar.render_finish()
            self._bar = None
            self._shown = 0


def _engine(ctx, label: str = 'Crawling') -> Engine:
    reporter = ProgressReporter(label)
    ctx.obj['progress'] = reporter
    return Engine(ctx.obj['config'], on_progress=reporter)


def _echo_summary(title: str, summary: CrawlSummary) -> None:
    color = 'red' if summary.failed else 'green'
    click.secho(
        f'{title}: {summary.succeeded} succeeded, {summary.failed} failed'
        + (f' ({summary.skipped} already completed)' if summary.skipped else ''),
        fg=color,
    )


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='ReaderCrawl, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='WARNING', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stdout, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд ReaderCrawl CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('seed', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.pass_context
def seed(ctx, url):
    """Загрузить стартовую страницу и извлечь ссылки того же домена."""
    engine = _engine(ctx)
    try:
        count = engine.seed(url)
    except CrawlerError as e:
        print_error(f'Ошибка при загрузке стартовой страницы: {e}')
    click.secho(f'Initial page fetched: {count} links extracted', fg='green')


@cli.command('links', context_settings=CONTEXT_SETTINGS)
@click.option('--selected', 'only_selected', is_flag=True, help='Только выбранные ссылки')
@click.pass_context
def links(ctx, only_selected):
    """Показать извлечённые ссылки."""
    try:
        candidates = _engine(ctx).links()
    except CrawlerError as e:
        print_error(f'Ошибка чтения сессии: {e}')
    if not candidates:
        click.echo('No extracted URLs.')
        return
    for index, candidate in enumerate(candidates):
        if only_selected and not candidate.selected:
            continue
        mark = 'x' if candidate.selected else ' '
        click.echo(f'[{mark}] {index:>4}  {candidate.url}  {candidate.text}')


@cli.command('select', context_settings=CONTEXT_SETTINGS)
@click.argument('indexes', nargs=-1, type=int)
@click.option('--all', 'select_all', is_flag=True, help='Выбрать все ссылки')
@click.option('--none', 'select_none', is_flag=True, help='Снять выбор со всех ссылок')
@click.option('--match', 'match', default=None, help='Выбрать ссылки, содержащие подстроку')
@click.pass_context
def select(ctx, indexes, select_all, select_none, match):
    """Переключить выбор ссылок по индексам, шаблону или для всех сразу."""
    if select_all and select_none:
        print_error('Опции --all и --none взаимоисключающие')
    flag = True if select_all else (False if select_none else None)
    try:
        selected = _engine(ctx).select(indexes, select_all=flag, match=match)
    except CrawlerError as e:
        print_error(f'Ошибка выбора: {e}')
    click.echo(f'{len(selected)} URLs selected')


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def crawl(ctx):
    """Обойти выбранные ссылки."""
    engine = _engine(ctx, 'Crawling')
    try:
        summary = engine.crawl()
    except CrawlerError as e:
        print_error(f'Ошибка при обходе: {e}')
    finally:
        ctx.obj['progress'].close()
    _echo_summary('Crawl finished', summary)


@cli.command('retry', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def retry(ctx):
    """Повторить только ссылки со статусом error."""
    engine = _engine(ctx, 'Retrying')
    try:
        summary = engine.retry()
    except CrawlerError as e:
        print_error(f'Ошибка при повторе: {e}')
    finally:
        ctx.obj['progress'].close()
    if summary.total == 0:
        click.echo('No URLs need to be retried.')
        return
    _echo_summary('Retry finished', summary)


@cli.command('status', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def status(ctx):
    """Статистика текущей сессии."""
    try:
        session = _engine(ctx).load_session()
    except CrawlerError as e:
        print_error(f'Ошибка чтения сессии: {e}')
    stats = session.state.snapshot_stats()
    click.echo(f'Seed:      {session.seed_url or "-"}')
    click.echo(f'Links:     {len(session.frontier)} ({len(session.frontier.selected())} selected)')
    click.echo(f'Total:     {stats.total}')
    click.echo(f'Completed: {stats.completed}')
    click.echo(f'Pending:   {stats.pending}')
    click.echo(f'Fetching:  {stats.fetching}')
    click.echo(f'Error:     {stats.error}')
    click.echo(f'Progress:  {session.progress}%')


@cli.command('reset', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def reset(ctx):
    """Сбросить текущую сессию (сохранённые результаты не трогаются)."""
    try:
        _engine(ctx).reset()
    except CrawlerError as e:
        print_error(f'Ошибка сброса: {e}')
    click.echo('Crawl session reset.')


@cli.command('concurrency', context_settings=CONTEXT_SETTINGS)
@click.argument('value', required=False, type=click.IntRange(MIN_CONCURRENCY, MAX_CONCURRENCY))
@click.pass_context
def concurrency(ctx, value: Optional[int]):
    """Показать или задать число параллельных запросов."""
    engine = _engine(ctx)
    try:
        current = engine.get_concurrency() if value is None else engine.set_concurrency(value)
    except CrawlerError as e:
        print_error(f'Ошибка настроек: {e}')
    click.echo(f'Max concurrent requests: {current}')


@cli.command('results', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def results(ctx):
    """Список сохранённых страниц."""
    try:
        entries = _engine(ctx).results()
    except CrawlerError as e:
        print_error(f'Ошибка чтения результатов: {e}')
    if not entries:
        click.echo('No stored pages.')
        return
    for entry in entries:
        click.echo(f'{entry.url}  ({len(entry.content or "")} chars)')


@cli.command('show', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.pass_context
def show(ctx, url):
    """Показать содержимое сохранённой страницы."""
    try:
        entry = _engine(ctx).result(url)
    except CrawlerError as e:
        print_error(f'Ошибка чтения результатов: {e}')
    if entry is None:
        print_error(f'Страница не найдена: {url}')
    click.echo(entry.content or '')


@cli.command('delete', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.pass_context
def delete(ctx, url):
    """Удалить сохранённую страницу."""
    try:
        removed = _engine(ctx).delete_result(url)
    except CrawlerError as e:
        print_error(f'Ошибка удаления: {e}')
    if not removed:
        print_error(f'Страница не найдена: {url}')
    click.echo(f'Deleted {url}')


@cli.command('clear-results', context_settings=CONTEXT_SETTINGS)
@click.confirmation_option(prompt='Delete all stored pages?')
@click.pass_context
def clear_results(ctx):
    """Удалить все сохранённые страницы."""
    try:
        count = _engine(ctx).clear_results()
    except CrawlerError as e:
        print_error(f'Ошибка удаления: {e}')
    click.echo(f'Deleted {count} pages')


@cli.command('export', context_settings=CONTEXT_SETTINGS)
@click.option(
    '--format', '-f', 'fmt',
    default=None,
    type=click.Choice(EXPORT_FORMATS),
    help='Формат экспорта (по умолчанию download_format из конфига)'
)
@click.option(
    '--output', '-o', 'output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Файл для сохранения (default: crawled_data.<format>)'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Папка с Jinja2-шаблоном pages.html.j2 (только для html)'
)
@click.pass_context
def export(ctx, fmt, output, template_dir):
    """Сохранить сохранённые страницы в файл."""
    try:
        saved = _engine(ctx).export(fmt, output, template_dir)
    except CrawlerError as e:
        print_error(f'Ошибка экспорта: {e}')
    click.echo(f'Exported to {saved}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
