"""Input sanitizing for identifiers received from RevenueCat."""

import re
from typing import Optional

# Characters allowed in the local part of an address, per the storefront's rules
_LOCAL_PART_INVALID = re.compile(r"[^a-zA-Z0-9!#$%&'*+/=?^_`{|}~.\-]")
_DOMAIN_LABEL_INVALID = re.compile(r"[^a-z0-9\-]")


def sanitize_email(email: Optional[str]) -> str:
    """Strip characters that cannot appear in an email address.

    Returns an empty string when the value cannot be an address at all
    (no ``@``, empty local part, or a domain without a dot). The local part
    keeps its case; the domain is lowercased.

    Examples:
        >>> sanitize_email("  Jane.Doe@Example.COM ")
        'Jane.Doe@example.com'

        >>> sanitize_email("$RCAnonymousID:abc")
        ''
    """
    if not email:
        return ""

    email = email.strip()
    if email.count("@") != 1:
        return ""

    local, domain = email.split("@")
    local = _LOCAL_PART_INVALID.sub("", local)
    if not local:
        return ""

    labels = []
    for label in domain.lower().strip(".").split("."):
        label = _DOMAIN_LABEL_INVALID.sub("", label).strip("-")
        if label:
            labels.append(label)

    if len(labels) < 2:
        return ""

    return f"{local}@{'.'.join(labels)}"
