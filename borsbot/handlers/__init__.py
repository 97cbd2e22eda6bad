# Event handlers - dispatching, commands and CI workflow tracking
from .dispatcher import handle_bors_event, handle_comment
from .trybuild import TRY_BRANCH_NAME, TRY_MERGE_BRANCH_NAME

__all__ = ["TRY_BRANCH_NAME", "TRY_MERGE_BRANCH_NAME", "handle_bors_event", "handle_comment"]
