"""URL slug derivation for event titles."""

import re


_DISALLOWED_CHARS = re.compile(r"[^a-z0-9\s-]")
_SEPARATOR_RUNS = re.compile(r"[\s_-]+")


def generate_slug(title: str) -> str:
    """
    Derive a URL-safe slug from an event title.

    The result only contains ``[a-z0-9-]``, never starts or ends with a hyphen and never has two
    hyphens in a row. A title without any letter or digit yields an empty string, which callers
    must reject.

    >>> generate_slug("Next.js   Meetup!!")
    'nextjs-meetup'
    """
    slug = _DISALLOWED_CHARS.sub("", title.lower().strip())
    slug = _SEPARATOR_RUNS.sub("-", slug)
    return slug.strip("-")
