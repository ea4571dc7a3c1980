"""
Distinguished Name Helpers
==========================

Decomposition of directory distinguished names and the extractors that turn
them into something presentable.

A DN is a comma separated path, innermost component first:

    CN=Doe\\, John,OU=Users,DC=example,DC=com

A comma that belongs to a value is escaped with a backslash and must never be
treated as a separator. Components are returned verbatim (prefix and escapes
intact) so that joining them with "," gives back the original string.

Every report (comparison, access, reach, empty groups) renders groups through
this module; nothing else splits DNs.
"""

import re
from enum import Enum

from ..errors import MalformedInputError


# A comma not directly preceded by a backslash
_SEPARATOR = re.compile(r"(?<!\\),")

# \X -> X for the characters the directory escapes inside a value
_ESCAPED_CHAR = re.compile(r'\\([#,+="<>;\\])')

# Reserved container that is never presented as a group or user name
BUILTIN_CONTAINER = "CN=Builtin"


class ComponentType(Enum):
    """Types of DN components, keyed by their prefix."""
    RELATIVE_NAME = "CN="
    ORGANIZATIONAL_UNIT = "OU="
    DOMAIN_LABEL = "DC="
    OTHER = ""

    @classmethod
    def of(cls, component: str) -> "ComponentType":
        """Classify a raw component by its (case-insensitive) prefix."""
        prefix = component[:3].upper()
        for component_type in (cls.RELATIVE_NAME, cls.ORGANIZATIONAL_UNIT, cls.DOMAIN_LABEL):
            if prefix == component_type.value:
                return component_type
        return cls.OTHER


def _as_text(dn) -> str:
    if isinstance(dn, str):
        return dn
    if isinstance(dn, (bytes, bytearray)):
        # ldap3 hands back raw attribute values as bytes
        return bytes(dn).decode("utf-8")
    raise MalformedInputError(dn)


def decompose(dn) -> list[str]:
    """Split a DN into its raw components.

    Args:
        dn: Distinguished name (str, or UTF-8 bytes as returned by ldap3)

    Returns:
        Components in source order, prefixes and escapes untouched.
        An empty DN gives an empty list.

    Raises:
        MalformedInputError: If dn is not string-like
    """
    text = _as_text(dn)
    if not text:
        return []
    return _SEPARATOR.split(text)


def components_of_type(dn, component_type: ComponentType) -> list[str]:
    """Return the raw components of one type, in source order."""
    return [c for c in decompose(dn) if ComponentType.of(c) is component_type]


def unescape_value(value: str) -> str:
    """Reverse the directory's backslash escaping of a single value."""
    return _ESCAPED_CHAR.sub(r"\1", value)


def extract_domain(dn) -> str:
    """Build the dotted domain from the DC= components of a DN.

    "CN=x,OU=y,DC=example,DC=com" -> "example.com"
    """
    labels = components_of_type(dn, ComponentType.DOMAIN_LABEL)
    return ".".join(label[3:] for label in labels)


def extract_group_name(dn) -> str:
    """Return the unescaped relative name of a DN.

    The built-in container (CN=Builtin) is skipped. When a DN holds several
    CN= components the leaf one wins.

    "CN=Sales\\, EMEA,OU=Groups,DC=example,DC=com" -> "Sales, EMEA"
    """
    for component in components_of_type(dn, ComponentType.RELATIVE_NAME):
        if component.lower() == BUILTIN_CONTAINER.lower():
            continue
        return unescape_value(component[3:])
    return ""


def extract_parent_path(dn) -> str:
    """Return the DN without its CN= components.

    "CN=G,OU=Groups,DC=example,DC=com" -> "OU=Groups,DC=example,DC=com"
    """
    return ",".join(
        c for c in decompose(dn) if ComponentType.of(c) is not ComponentType.RELATIVE_NAME
    )


def is_distinguished_name(value) -> bool:
    """Check whether a string looks like a DN rather than a bare name.

    True when every component carries a typed prefix (CN=, OU=, DC=).
    """
    components = decompose(value)
    if not components:
        return False
    return all(ComponentType.of(c) is not ComponentType.OTHER for c in components)
