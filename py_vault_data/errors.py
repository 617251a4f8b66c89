"""
py_vault_data/errors.py
Error taxonomy shared by the data boundary and the analytics engine.
Only VaultNotFoundError is meant to reach callers of the engine.
"""


class VaultNotFoundError(LookupError):
    """Raised when a vault identifier does not resolve."""

    def __init__(self, vault_id: str):
        super().__init__(f"Vault not found: {vault_id}")
        self.vault_id = vault_id


class DataValidationError(ValueError):
    """A stored record is missing required fields or has the wrong shape."""


class ExternalServiceError(RuntimeError):
    """A collaborator (price feed, token list, chain reader) failed."""
