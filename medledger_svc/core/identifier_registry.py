"""
Registry of identifiers that must pass OTP verification.

The registry is static configuration: a YAML mapping of 12-digit
identifiers to the phone numbers their codes are delivered to.
"""
import logging
import re
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

import yaml

logger = logging.getLogger(__name__)

IDENTIFIER_PATTERN = re.compile(r"^\d{12}$")


def is_valid_identifier(identifier: object) -> bool:
    """True if ``identifier`` is a string of exactly 12 decimal digits."""
    return isinstance(identifier, str) and IDENTIFIER_PATTERN.fullmatch(identifier) is not None


class IdentifierRegistry:
    """Read-only identifier -> phone mapping."""

    def __init__(self, phones_by_identifier: Mapping[str, str]):
        for identifier in phones_by_identifier:
            if not is_valid_identifier(identifier):
                raise ValueError(f"Registry entry is not a 12-digit identifier: {identifier!r}")
        self._phones: Dict[str, str] = dict(phones_by_identifier)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "IdentifierRegistry":
        """
        Load the registry from a YAML file with a top-level ``identifiers`` mapping.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is malformed
        """
        config_path = Path(path)
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.error("Identifier registry not found", extra={"path": str(config_path)})
            raise

        raw = config.get("identifiers") or {}
        if not isinstance(raw, dict):
            raise ValueError(f"'identifiers' in {config_path} must be a mapping")

        # YAML may hand back unquoted identifiers as ints
        registry = cls({str(k): str(v) for k, v in raw.items()})
        logger.info("Identifier registry loaded", extra={"path": str(config_path), "entries": len(registry)})
        return registry

    def is_registered(self, identifier: str) -> bool:
        return identifier in self._phones

    def phone_for(self, identifier: str) -> Optional[str]:
        return self._phones.get(identifier)

    def __len__(self) -> int:
        return len(self._phones)
