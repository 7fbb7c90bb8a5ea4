import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, Optional

logger = logging.getLogger(__name__)

UNKNOWN_AUTHOR = "Anonymous"


def display_name(settings=None, user=None) -> str:
    """Best available public name for a review author."""
    if settings is not None and settings.display_name:
        return settings.display_name
    email = getattr(user, "email", None)
    if email:
        local = email.split("@")[0]
        return local[:1].upper() + local[1:]
    username = getattr(user, "username", None)
    if username:
        return username
    return UNKNOWN_AUTHOR


def resolve_author_names(user_ids: Iterable, lookup: Callable[[object], Optional[str]],
                         max_workers: int = 8) -> Dict[object, str]:
    """
    Look up display names for distinct authors in parallel. A lookup that fails
    or returns nothing yields the placeholder name; every id gets an entry.
    """
    unique_ids = list(dict.fromkeys(user_ids))
    if not unique_ids:
        return {}

    def _one(user_id):
        try:
            return lookup(user_id) or UNKNOWN_AUTHOR
        except Exception as exc:  # noqa: BLE001
            logger.error("Error fetching user profile for %s: %s", user_id, exc)
            return UNKNOWN_AUTHOR

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(unique_ids)))) as executor:
        names = executor.map(_one, unique_ids)
        return dict(zip(unique_ids, names))
