"""Automatic alternate linking and permission fixes after a command."""

import logging
from typing import Dict

from .alternates import update_alternates
from .context import InvocationContext
from .errors import DotkeepError
from .perms import update_permissions

logger = logging.getLogger(__name__)


def run_auto_maintenance(context: InvocationContext) -> Dict[str, bool]:
    """Run the post-command steps if the command may have changed files.

    Each step runs unless its setting (``dotkeep.auto-alt`` or
    ``dotkeep.auto-perms``) is explicitly false. Failures are logged and
    never affect the exit status of the command that just ran.

    Returns which steps ran.
    """
    ran = {"alt": False, "perms": False}
    if not context.changes_possible:
        return ran
    context.changes_possible = False

    try:
        if context.config.get_bool("dotkeep.auto-alt") is not False:
            ran["alt"] = True
            update_alternates(context)
    except (DotkeepError, OSError) as e:
        logger.warning(f"Automatic alternate linking failed: {e}")

    try:
        if context.config.get_bool("dotkeep.auto-perms") is not False:
            ran["perms"] = True
            update_permissions(context)
    except (DotkeepError, OSError) as e:
        logger.warning(f"Automatic permission update failed: {e}")

    return ran
