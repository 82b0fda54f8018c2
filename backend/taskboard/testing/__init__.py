"""
Shared test utilities and factories.

    from taskboard.testing import create_user, create_project, get_auth_headers
"""

from taskboard.testing.factories import (
    DEFAULT_PASSWORD,
    add_member,
    create_column,
    create_label,
    create_project,
    create_task,
    create_user,
    get_auth_headers,
    get_auth_token,
    get_columns,
)

__all__ = [
    "DEFAULT_PASSWORD",
    "add_member",
    "create_column",
    "create_label",
    "create_project",
    "create_task",
    "create_user",
    "get_auth_headers",
    "get_auth_token",
    "get_columns",
]
