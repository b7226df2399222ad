"""Last-Modified / If-Modified-Since support for public portfolio pages."""
from datetime import datetime, UTC
from email.utils import formatdate, parsedate_to_datetime

from fastapi import Request, Response


# Public pages may be cached anywhere but must be revalidated on every use, so an
# edit shows up on the next request.
PUBLIC_CACHE_HEADERS = {
    "Cache-Control": "public, no-cache",
}


def _as_utc(dt: datetime) -> datetime:
    # SQLite hands back naive values
    return dt.replace(tzinfo=UTC) if dt.tzinfo is None else dt


def format_http_date(dt: datetime) -> str:
    """Format a datetime as an RFC 7231 date, e.g. "Thu, 15 Jan 2026 10:30:00 GMT"."""
    return formatdate(_as_utc(dt).timestamp(), usegmt=True)


def parse_http_date(date_str: str) -> datetime | None:
    """Parse an RFC 7231 date. Returns None for anything unparseable."""
    try:
        return _as_utc(parsedate_to_datetime(date_str))
    except (ValueError, TypeError):
        return None


def last_modified_headers(updated_at: datetime) -> dict[str, str]:
    """Headers sent with every public page response, full or 304."""
    return {"Last-Modified": format_http_date(updated_at), **PUBLIC_CACHE_HEADERS}


def check_not_modified(request: Request, updated_at: datetime) -> Response | None:
    """
    Answer a conditional GET.

    Returns a 304 response when the client's If-Modified-Since is at or after
    updated_at (compared at whole-second precision, the resolution of HTTP
    dates). Returns None when the page must be rendered: no header, an
    unparseable header, or a page modified since.
    """
    header = request.headers.get("if-modified-since")
    client_date = parse_http_date(header) if header else None
    if client_date is None:
        return None

    if _as_utc(updated_at).replace(microsecond=0) > client_date.replace(microsecond=0):
        return None
    return Response(status_code=304, headers=last_modified_headers(updated_at))
