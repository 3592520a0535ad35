# =============================================================================
# lib/csv_source.py - Stock CSV Sources
# =============================================================================
# Gets the raw text of a stock CSV, either from a URL (Supabase Storage public
# link, Google Sheets export, ...) or from uploaded bytes.
# =============================================================================

import logging

import httpx

from app.exceptions import CsvFetchError

logger = logging.getLogger(__name__)

# utf-8-sig also strips the BOM Excel writes; cp874 covers Thai Windows exports
ENCODINGS_TO_TRY = ["utf-8-sig", "cp874", "latin-1"]


def decode_csv_bytes(content: bytes) -> str:
    """
    Decode CSV bytes by trying common encodings in order.

    latin-1 accepts any byte sequence, so this always returns text.
    """
    for encoding in ENCODINGS_TO_TRY:
        try:
            text = content.decode(encoding)
            logger.debug(f"Decoded CSV as {encoding}")
            return text
        except UnicodeDecodeError:
            continue
    return content.decode("latin-1", errors="replace")


def fetch_csv_text(
    url: str,
    client: httpx.Client | None = None,
    timeout: float = 30.0,
) -> str:
    """
    Download a CSV file and return its decoded text.

    Args:
        url: HTTP(S) URL of the CSV
        client: Shared httpx client (a short-lived one is created if None)
        timeout: Request timeout in seconds

    Returns:
        CSV text

    Raises:
        CsvFetchError: If the URL is unreachable or answers with a non-2xx status
    """
    logger.info(f"Fetching CSV from: {url}")

    try:
        if client is None:
            with httpx.Client(timeout=timeout, follow_redirects=True) as own_client:
                response = own_client.get(url)
        else:
            response = client.get(url, timeout=timeout, follow_redirects=True)
    except httpx.HTTPError as e:
        raise CsvFetchError(url, str(e))

    if not response.is_success:
        reason = response.reason_phrase or f"HTTP {response.status_code}"
        raise CsvFetchError(url, reason)

    text = decode_csv_bytes(response.content)
    logger.info(f"CSV fetched, length: {len(text)}")
    return text
