"""
Website smoke tester: crawls every internal page reachable from a start URL
and validates every link it finds (internal pages and external links).
"""
from sitecheck.core import SiteCrawler, crawl
from sitecheck.links import LinkValidator
from sitecheck.models import BrokenLink, CrawlOptions, CrawlReport, LinkVerdict, PageResult

__version__ = "1.0.0"
__all__ = [
    "crawl",
    "SiteCrawler",
    "LinkValidator",
    "CrawlOptions",
    "CrawlReport",
    "PageResult",
    "BrokenLink",
    "LinkVerdict",
]
