# cli.py

"""
Запуск ReaderCrawl из корня репозитория без установки пакета.

Пример запуска:
    python cli.py seed https://example.com/docs
    python cli.py select --all
    python cli.py crawl
"""
from reader_crawl.cli import cli

if __name__ == "__main__":
    cli()
