"""Login-identifier allocation.

Identifiers look like ``EMP007``: a role prefix followed by a zero-padded
sequence number.  Allocation is a pure function of the role name and a
snapshot of existing identifiers; uniqueness under concurrency is enforced by
the ``users.user_id_login`` unique constraint and a bounded retry in
``UserService.create_user``.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional

from officehub.common.constants import AccessLevel
from officehub.config import settings

logger = logging.getLogger(__name__)


def _normalise(role_name: Optional[str]) -> str:
    return (role_name or "").strip().lower()


def resolve_prefix(
    role_name: Optional[str],
    prefixes: Optional[Mapping[str, str]] = None,
    fallback: Optional[str] = None,
) -> str:
    """Return the login-id prefix for *role_name* (case-insensitive)."""
    table = {k.lower(): v for k, v in (prefixes or settings.LOGIN_ID_PREFIXES).items()}
    key = _normalise(role_name)
    if key in table:
        return table[key]

    fallback = fallback or settings.LOGIN_ID_FALLBACK_PREFIX
    logger.warning(
        "Unrecognised role %r; using fallback login-id prefix %s", role_name, fallback,
    )
    return fallback


def allocate_login_id(
    role_name: Optional[str],
    existing_ids: Iterable[str],
    *,
    prefixes: Optional[Mapping[str, str]] = None,
    fallback: Optional[str] = None,
    pad_width: Optional[int] = None,
) -> str:
    """
    Next free identifier for *role_name* given a snapshot of *existing_ids*.

    Only identifiers of the form ``<prefix><digits>`` count towards the
    sequence; anything else sharing the prefix is ignored.  Past the pad
    width the number simply grows (``EMP1000``).
    """
    prefix = resolve_prefix(role_name, prefixes, fallback)
    width = pad_width if pad_width is not None else settings.LOGIN_ID_PAD_WIDTH

    highest = 0
    for existing in existing_ids:
        if not existing or not existing.startswith(prefix):
            continue
        suffix = existing[len(prefix):]
        if suffix.isdigit() and suffix.isascii():
            highest = max(highest, int(suffix))

    return f"{prefix}{highest + 1:0{width}d}"


def access_level_for(role_name: Optional[str]) -> AccessLevel:
    """Map a free-text role name onto an access level; unknown → employee."""
    try:
        return AccessLevel(_normalise(role_name))
    except ValueError:
        return AccessLevel.employee
