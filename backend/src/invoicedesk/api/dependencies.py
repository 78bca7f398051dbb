"""
Request dependencies resolving the process-wide collaborators that the
application lifespan stores on `app.state`.
"""

from typing import Annotated

from fastapi import Depends, Request

from invoicedesk.infrastructure.cache import PathCache
from invoicedesk.infrastructure.database import Database
from invoicedesk.services.auth import Authenticator


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_revalidator(request: Request) -> PathCache:
    return request.app.state.revalidator


def get_authenticator(request: Request) -> Authenticator:
    return request.app.state.authenticator


DatabaseDep = Annotated[Database, Depends(get_database)]
RevalidatorDep = Annotated[PathCache, Depends(get_revalidator)]
AuthenticatorDep = Annotated[Authenticator, Depends(get_authenticator)]
