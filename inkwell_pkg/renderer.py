import logging

import requests

from .exceptions import RenderFetchError


class Renderer:
    """Produces the HTML of a page from its site-relative URL."""

    def render(self, url):
        raise NotImplementedError


class HttpRenderer(Renderer):
    """
    Fetches rendered pages from a running application over HTTP.

    ``base_url`` is the application's root, e.g. ``http://localhost:5000``.
    Any transport or HTTP error is raised as RenderFetchError.
    """

    def __init__(self, base_url, timeout=30, session=None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logging.getLogger('Inkwell.Renderer')

    def url_for(self, url):
        if url.startswith(('http://', 'https://')):
            return url
        return f"{self.base_url}/{url.lstrip('/')}"

    def render(self, url):
        target = self.url_for(url)
        try:
            response = self.session.get(target, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise RenderFetchError(f"HTTP error fetching {target}: {e}", url=url, status_code=status)
        except requests.exceptions.Timeout as e:
            raise RenderFetchError(f"Timed out fetching {target}: {e}", url=url)
        except requests.exceptions.RequestException as e:
            raise RenderFetchError(f"Failed to fetch {target}: {e}", url=url)

        self.logger.debug(f"Fetched {target} ({len(response.content)} bytes)")
        return response.text

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
