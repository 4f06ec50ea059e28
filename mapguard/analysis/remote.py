"""Remote probe: the sourceRoot URL must serve the mapped sources."""

import logging
from typing import Optional
from urllib.parse import urljoin

import httpx

from ..core.document import SourceMapDocument
from ..core.errors import UnreachableOriginUrl
from .checks import CheckResult, is_synthetic_source

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


def probe_url(doc: SourceMapDocument) -> Optional[str]:
    """URL of the first non-synthetic source under sourceRoot."""
    if not doc.source_root:
        return None
    for source in doc.sources:
        if not is_synthetic_source(source):
            return urljoin(doc.source_root, source)
    return doc.source_root


def check_remote_origin(doc: SourceMapDocument, client: Optional[httpx.Client] = None,
                        timeout: float = DEFAULT_TIMEOUT) -> CheckResult:
    """HEAD the first source under sourceRoot and expect a 2xx answer."""
    url = probe_url(doc)
    if url is None:
        return CheckResult.failed(
            "remote", UnreachableOriginUrl.kind,
            f"No sourceRoot to probe in {doc.path}",
            path=doc.path,
        )

    logger.info(f"Probing {url}...")
    owns_client = client is None
    if owns_client:
        client = httpx.Client(timeout=timeout, follow_redirects=True)

    try:
        response = client.head(url)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        return CheckResult.failed(
            "remote", UnreachableOriginUrl.kind,
            f"{url} answered with status {e.response.status_code}",
            path=doc.path, url=url, status=e.response.status_code,
        )
    except httpx.HTTPError as e:
        return CheckResult.failed(
            "remote", UnreachableOriginUrl.kind,
            f"Could not reach {url}: {e}",
            path=doc.path, url=url,
        )
    finally:
        if owns_client:
            client.close()

    logger.debug(f"{url} answered with status {response.status_code}")
    return CheckResult.passed("remote")
