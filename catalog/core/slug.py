import re

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """
    Lowercase, collapse every run of non [a-z0-9] characters into one hyphen
    and strip leading/trailing hyphens.

    slugify("Red & Blue  Jacket!") == "red-blue-jacket"
    """
    return _NON_ALNUM.sub("-", (name or "").lower()).strip("-")
