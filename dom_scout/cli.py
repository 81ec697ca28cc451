#!/usr/bin/env python3
"""
Точка входа для запуска сканера DomScout через командную строку.

URL читаются со стандартного ввода (по одному на строку), отчёты печатаются
в stdout, логи в stderr.

Опции:
  -c,  --concurrency INT   Число параллельных воркеров (default: 5)
  -rl, --rate-limit INT    Базовая задержка между запросами, мс (default: 1000)
  -v,  --verbose[=BOOL]    Печатать ошибки и страницы без находок
  -r,  --retry-after[=BOOL] Учитывать заголовок Retry-After при HTTP 429
  --config PATH            YAML/JSON-конфиг (флаги имеют приоритет)
  --timeout SEC            Таймаут на одну попытку запроса
  --attempts INT           Максимум попыток на URL
  --proxy URL              Адрес прокси-сервиса
  --parser NAME            Бэкенд разбора HTML (html5lib | html.parser | lxml)
  --input FILE             Читать URL из файла вместо stdin
  --log-level LEVEL        Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH          Файл для логов (только stderr, если не указан)
  --log-format FORMAT      Формат логирования

Пример:
  cat urls.txt | dom-scout -c 10 -rl 500 -v
"""
import asyncio
import sys
from pathlib import Path

import click

from dom_scout import __version__
from dom_scout.config import load_config
from dom_scout.logger import init_logging
from dom_scout.pipeline import start_scan

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])


class OptionalBool(click.ParamType):
    """Булево значение флага: `-v`, `-v=false`, `--verbose=true`, `-v 0`."""

    name = 'boolean'

    def convert(self, value, param, ctx):
        if isinstance(value, str):
            # click оставляет '=' в значении короткой опции: -v=false -> '=false'
            value = value[1:] if value.startswith('=') else value
        return click.BOOL.convert(value, param, ctx)


OPTIONAL_BOOL = OptionalBool()


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.command(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', message='DomScout, version %(version)s')
@click.option('-c', '--concurrency', 'concurrency', type=int, default=None,
              help='Число параллельных воркеров [5]')
@click.option('-rl', '--rate-limit', 'rate_limit_ms', type=int, default=None,
              help='Базовая задержка между запросами в миллисекундах [1000]')
@click.option('-v', '--verbose', 'verbose', type=OPTIONAL_BOOL, is_flag=False, flag_value=True, default=None,
              help='Печатать ошибки и страницы без находок (-v, -v=false)')
@click.option('-r', '--retry-after', 'honor_retry_after', type=OPTIONAL_BOOL, is_flag=False, flag_value=True,
              default=None,
              help='Учитывать заголовок Retry-After при HTTP 429')
@click.option(
    '--config', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option('--timeout', 'request_timeout', type=float, default=None,
              help='Таймаут на одну попытку запроса (секунд) [30]')
@click.option('--attempts', 'max_attempts', type=int, default=None,
              help='Максимум попыток на один URL [5]')
@click.option('--proxy', 'proxy_endpoint', default=None,
              help='Адрес прокси-сервиса (целевой URL передаётся параметром url)')
@click.option('--parser', 'html_parser', type=click.Choice(['html5lib', 'html.parser', 'lxml']), default=None,
              help='Бэкенд разбора HTML [html5lib]')
@click.option('--input', 'input_file', type=click.File('r', encoding='utf-8'), default='-',
              show_default=True, help='Файл со списком URL')
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (только stderr, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Строка формата для логов'
)
def cli(config_path, input_file, log_level, log_file, log_format, **overrides):
    """Сканирует inline-скрипты страниц на признаки DOM XSS."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path).with_overrides(**overrides)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')

    stats = asyncio.run(start_scan(cfg, input_file, sys.stdout))

    if stats.input_error is not None:
        print_error(f'Error reading input: {stats.input_error}')


if __name__ == "__main__":
    cli()
