# File: tests/conftest.py
from pathlib import Path

import pytest

from qrawler.crawler.fetcher import PageContent
from qrawler.storage.context import CrawlContext
from qrawler.utils.config import Config, ConfigManager


@pytest.fixture()
def make_config(tmp_path: Path):
    """
    Return a factory building a validated Config whose files all live under tmp_path.
    """
    def _make(**crawler_overrides) -> Config:
        crawler = {'stats_interval': 0}
        crawler.update(crawler_overrides)
        return ConfigManager.from_dict({
            'crawler': crawler,
            'storage': {
                'content_directory': str(tmp_path / 'content'),
                'checkpoint_file': str(tmp_path / 'qrawler_states.json'),
                'history_file': str(tmp_path / 'qrawler.log'),
            },
            'logging': {'level': 'DEBUG', 'file': str(tmp_path / 'logs' / 'crawler.log')},
        })
    return _make


@pytest.fixture()
def context(make_config):
    """Open a CrawlContext for the default test config and close it afterwards."""
    ctx = CrawlContext.open(make_config().storage)
    yield ctx
    ctx.close()


@pytest.fixture()
def sample_page() -> PageContent:
    html = (
        b'<html><head><title>Sample</title></head><body>'
        b'<p>Hello <b>world</b></p>'
        b'<!-- hidden comment -->'
        b'<a href="/a">A</a>'
        b'<a href="b#part">B</a>'
        b'<a href="javascript:void(0)">JS</a>'
        b'<a href="/a">A again</a>'
        b'<a name="anchor-without-href">no link</a>'
        b'</body></html>'
    )
    return PageContent(url="https://example.com/dir/index.html", body=html)
