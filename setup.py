# setup.py
from setuptools import setup, find_packages

setup(
    name="reader_crawl",
    version="0.1.0",
    description="Same-domain crawler driven by a reader/markdown rendering proxy",
    packages=find_packages(exclude=("tests", "tests.*")),
    package_data={"reader_crawl.report": ["templates/*.j2"]},
    include_package_data=True,
    install_requires=[
        "aiohttp>=3.9",
        "yarl>=1.9",
        "beautifulsoup4>=4.12",
        "pydantic>=2.5",
        "PyYAML>=6.0",
        "click>=8.1",
        "Jinja2>=3.1",
        "aiosqlite>=0.19",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "reader-crawl=reader_crawl.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
