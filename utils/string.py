import random
import re
import string
import time
import unicodedata


def round_to_2_decimal_place(value):
    """
    Round a float to 2 decimal places.
    """
    return round(float(value), 2)


def clean_text(text, max_length: int = None):
    """
    Clean and normalize text.

    - Normalizes Unicode (NFKC)
    - Replaces non-breaking spaces
    - Collapses multiple spaces to single space
    - Trims whitespace
    - Optionally truncates to max_length
    """
    if text is None:
        return ""
    if not isinstance(text, str):
        text = str(text)
    # Normalize Unicode and replace non-breaking spaces with normal spaces
    text = unicodedata.normalize("NFKC", text).replace("\xa0", " ").strip()
    # Replace multiple spaces with a single space
    text = re.sub(r"\s+", " ", text).strip()
    # Truncate if max_length specified
    if max_length and len(text) > max_length:
        text = text[:max_length]
    return text


def clean_text_alphanumeric(text):
    """
    Clean text and remove special characters (except comma and hyphen).
    Courier address fields reject most punctuation.
    """
    if text is None:
        return ""
    # Normalize Unicode and replace non-breaking spaces with normal spaces
    text = unicodedata.normalize("NFKC", str(text)).replace("\xa0", " ").strip()
    # Replace all special characters except comma and hyphen with a space
    text = re.sub(r"[^a-zA-Z0-9\s,-]", " ", text)
    # Replace multiple spaces with a single space
    return re.sub(r"\s+", " ", text).strip()


def generate_reference(prefix: str, suffix_length: int = 4) -> str:
    """
    Build a temporary reference like MB1718000000123K7QZ: prefix, epoch
    milliseconds and a random upper-case alphanumeric suffix.
    """
    suffix = "".join(
        random.choices(string.ascii_uppercase + string.digits, k=suffix_length)
    )
    return "%s%d%s" % (prefix, int(time.time() * 1000), suffix)
