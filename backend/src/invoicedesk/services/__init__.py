"""
Services package - form actions and authentication.
"""

from .actions import add_customer, create_invoice, delete_customer, delete_invoice, update_invoice
from .auth import Authenticator, CredentialsProvider, authenticate

__all__ = [
    "Authenticator",
    "CredentialsProvider",
    "add_customer",
    "authenticate",
    "create_invoice",
    "delete_customer",
    "delete_invoice",
    "update_invoice",
]
