"""
memberscope Configuration Module
================================

Centralized configuration management for memberscope.
Supports environment variables for sensitive data (bind credentials).

Design Decision:
- Configuration is a dataclass tree that is passed through each workflow
- Directory settings never live in module globals of the collaborator;
  they travel inside the DirectorySession built from LDAPConfig
- Output paths are configurable for flexibility in different environments
"""

import os
from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path


@dataclass
class LDAPConfig:
    """Configuration for directory queries.

    Attributes:
        use_ssl: Whether to use LDAPS (port 636) vs LDAP (port 389)
        port: Explicit port, auto-detected from use_ssl when omitted
        page_size: Page size for paged LDAP searches
        timeout: Connection timeout in seconds
        batch_size: Identities fetched per membership batch
        batch_delay: Seconds to pause between membership batches
        search_base: Default search base (derived from the domain if empty)
        bind_user: Bind user (loaded from environment if not provided)
        bind_password: Bind password (loaded from environment if not provided)
    """
    use_ssl: bool = False
    port: Optional[int] = None  # Auto-detect based on use_ssl
    page_size: int = 1000
    timeout: int = 30
    batch_size: int = 200
    batch_delay: float = 0.0
    search_base: Optional[str] = None
    bind_user: Optional[str] = None
    bind_password: Optional[str] = None

    def __post_init__(self):
        if self.port is None:
            self.port = 636 if self.use_ssl else 389
        if self.bind_user is None:
            self.bind_user = os.environ.get("MEMBERSCOPE_BIND_USER")
        if self.bind_password is None:
            self.bind_password = os.environ.get("MEMBERSCOPE_BIND_PASSWORD")
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")


@dataclass
class OutputConfig:
    """Configuration for exported reports.

    Attributes:
        output_dir: Directory for output files
        delimiter: Field delimiter for tabular exports
        run_log: File name (inside output_dir) of the CSV run log
        encoding: Encoding used for every written file
    """
    output_dir: str = "output"
    delimiter: str = ","
    run_log: str = "memberscope_runs.csv"
    encoding: str = "utf-8"

    def __post_init__(self):
        """Ensure output directory exists."""
        Path(self.output_dir).mkdir(parents=True, exist_ok=True)

    @property
    def run_log_path(self) -> Path:
        return Path(self.output_dir) / self.run_log


@dataclass
class PasswordConfig:
    """Configuration for generated passwords.

    Attributes:
        length: Default password length
        symbols: Symbol alphabet mixed into generated passwords
        require_classes: Whether every character class must appear at least once
    """
    length: int = 16
    symbols: str = "!@#$%^*-_=+"
    require_classes: bool = True


@dataclass
class ScopeConfig:
    """Main configuration container for memberscope.

    Usage:
        config = ScopeConfig()  # Uses all defaults
        config = ScopeConfig(ldap=LDAPConfig(use_ssl=True))
    """
    ldap: LDAPConfig = field(default_factory=LDAPConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    passwords: PasswordConfig = field(default_factory=PasswordConfig)

    # Verbosity level for progress output
    verbose: bool = True
    debug: bool = False

    @classmethod
    def from_dict(cls, config_dict: dict) -> "ScopeConfig":
        """Create configuration from a dictionary.

        Useful for loading from JSON files or CLI arguments.
        """
        ldap_config = LDAPConfig(**config_dict.get("ldap", {}))
        output_config = OutputConfig(**config_dict.get("output", {}))
        password_config = PasswordConfig(**config_dict.get("passwords", {}))

        return cls(
            ldap=ldap_config,
            output=output_config,
            passwords=password_config,
            verbose=config_dict.get("verbose", True),
            debug=config_dict.get("debug", False)
        )

    def to_dict(self) -> dict:
        """Convert configuration to dictionary for serialization."""
        from dataclasses import asdict
        data = asdict(self)
        # Never serialize the bind secret
        data["ldap"]["bind_password"] = None
        return data


# Default global configuration instance
_default_config: Optional[ScopeConfig] = None


def get_config() -> ScopeConfig:
    """Get the global configuration instance."""
    global _default_config
    if _default_config is None:
        _default_config = ScopeConfig()
    return _default_config


def set_config(config: ScopeConfig) -> None:
    """Set the global configuration instance."""
    global _default_config
    _default_config = config
