"""Utility functions."""

from src.utils.audit import client_ip, record_action
from src.utils.password import hash_password, verify_password

__all__ = [
    "client_ip",
    "hash_password",
    "verify_password",
    "record_action",
]
