"""Simple-index rewriting.

Download links in an upstream index page point at the upstream file host.
Rewriting replaces that base URL with the mirror's own packages URL so pip
downloads through the mirror. The transform is a literal string
substitution, not HTML parsing: anything that is not the exact upstream base
passes through unchanged.
"""

from apps.mirror.constants import DEFAULT_UPSTREAM_FILES_URL


def rewrite_index(
    html: str,
    mirror_base_url: str,
    upstream_base_url: str = DEFAULT_UPSTREAM_FILES_URL,
) -> str:
    """Replace every occurrence of upstream_base_url with mirror_base_url."""
    if not upstream_base_url:
        return html
    return html.replace(upstream_base_url, mirror_base_url)


class IndexRewriter:
    """Index rewriter bound to a fixed upstream and mirror base URL."""

    def __init__(self, mirror_base_url: str, upstream_base_url: str = DEFAULT_UPSTREAM_FILES_URL):
        self.mirror_base_url = mirror_base_url
        self.upstream_base_url = upstream_base_url

    def rewrite(self, html: str) -> str:
        return rewrite_index(html, self.mirror_base_url, self.upstream_base_url)
