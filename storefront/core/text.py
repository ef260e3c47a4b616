import re
import unicodedata
from uuid import uuid4


def slugify(value: str) -> str:
    ascii_name = (
        unicodedata.normalize("NFKD", " ".join(str(value).split()).lower())
        .encode("ascii", "ignore")
        .decode("ascii")
    )
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_name).strip("-")
    return slug or uuid4().hex
