"""Turn remote asset links into paths the raster backend can stream."""

from __future__ import annotations

from raster2tile.errors import InputError

VSICURL_PREFIX = "/vsicurl/"

REQUESTER_PAYS_BUCKETS = frozenset(
    {
        "sentinel-s2-l2a",
        "usgs-landsat",
        "sentinel-s1-l1c",
        "sentinel-s2-l1c",
        "copernicus-dem-30m",
        "copernicus-dem-90m",
    }
)

# Buckets that must be addressed through a regional endpoint.
REGIONAL_BUCKETS = {"sentinel-cogs": "s3.us-west-2.amazonaws.com"}


def s3_to_https(href: str) -> str:
    """Rewrite an s3://bucket/key URL as a public HTTPS URL."""
    remainder = href[len("s3://") :]
    bucket, _, key = remainder.partition("/")
    if not bucket or not key:
        raise InputError(f"Invalid S3 URL: {href}")
    if bucket in REQUESTER_PAYS_BUCKETS:
        raise InputError(
            f"Bucket '{bucket}' requires requester-pays credentials and cannot be streamed."
        )
    host = REGIONAL_BUCKETS.get(bucket)
    if host:
        return f"https://{bucket}.{host}/{key}"
    return f"https://{bucket}.s3.amazonaws.com/{key}"


def remote_asset_path(href: str) -> str:
    """Return a /vsicurl/ path for an HTTP(S) or S3 asset link."""
    url = href.strip()
    if url.startswith(VSICURL_PREFIX):
        url = url[len(VSICURL_PREFIX) :]
    if not url:
        raise InputError("Remote asset URL is empty.")
    if url.startswith("s3://"):
        url = s3_to_https(url)
    elif not url.startswith(("http://", "https://")):
        raise InputError(f"Unsupported remote URL scheme: {href}")
    return f"{VSICURL_PREFIX}{url}"
