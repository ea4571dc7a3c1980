"""
Password Generation
===================

Random passwords for accounts created or reset outside memberscope (for
example after an access review). Nothing here touches the directory.
"""

import secrets
import string
from typing import Optional

from .config import PasswordConfig


def generate_password(
    length: Optional[int] = None,
    config: Optional[PasswordConfig] = None
) -> str:
    """Generate a random password.

    Args:
        length: Password length (defaults to PasswordConfig.length)
        config: PasswordConfig with the symbol set and class requirement

    Returns:
        Password drawn with `secrets`; when require_classes is set it holds at
        least one lowercase, uppercase, digit and symbol character

    Raises:
        ValueError: If length is too short for the required classes
    """
    config = config or PasswordConfig()
    length = config.length if length is None else length

    classes = [string.ascii_lowercase, string.ascii_uppercase, string.digits]
    if config.symbols:
        classes.append(config.symbols)
    alphabet = "".join(classes)

    if length < 1:
        raise ValueError("Password length must be positive")
    if config.require_classes and length < len(classes):
        raise ValueError(
            f"Password length {length} cannot hold {len(classes)} character classes"
        )

    if not config.require_classes:
        return "".join(secrets.choice(alphabet) for _ in range(length))

    chars = [secrets.choice(chars) for chars in classes]
    chars += [secrets.choice(alphabet) for _ in range(length - len(chars))]
    # Shuffle so the guaranteed characters are not always up front
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)
