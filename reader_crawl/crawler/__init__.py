"""reader_crawl.crawler: link extraction, fetching, state and wave scheduling."""
