import logging

import trafilatura
from bs4 import BeautifulSoup

from app.services.extraction.base import BaseExtractor, ExtractedContent
from app.services.extraction.text_processor import text_processor

logger = logging.getLogger("ragcrawler.extraction.readability")


def body_html(document: str) -> str:
    """Inner HTML of <body>, or the input when there is no body."""
    body = BeautifulSoup(document, "lxml").body
    if body is None:
        return document
    return body.decode_contents().strip()


class ReadabilityExtractor(BaseExtractor):
    """Readability-style main-content extraction backed by trafilatura.

    trafilatura scores the document's blocks and drops navigation, footers
    and other boilerplate. It returns nothing for pages with too little
    article text, in which case the pipeline falls back to the heuristic
    extractor.
    """

    name = "readability"

    def extract(self, html: str, base_url: str) -> ExtractedContent | None:
        if not html:
            return None

        document = trafilatura.extract(
            html,
            url=base_url,
            output_format="html",
            include_comments=False,
            include_tables=True,
            include_links=True,
        )
        if not document:
            logger.debug("No main content found by trafilatura for %s", base_url)
            return None

        # trafilatura wraps its html output in a full document
        content_html = body_html(document)
        text = text_processor.html_to_text(content_html)
        if not text:
            logger.debug("Empty main content for %s", base_url)
            return None

        metadata = trafilatura.extract_metadata(html, default_url=base_url)
        title = ""
        excerpt = ""
        if metadata is not None:
            title = (metadata.title or "").strip()
            excerpt = (metadata.description or "").strip()

        return ExtractedContent(
            title=title,
            content_html=content_html,
            text_content=text,
            excerpt=excerpt or text_processor.make_excerpt(text),
        )
