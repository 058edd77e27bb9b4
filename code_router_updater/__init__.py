from __future__ import annotations

from code_router_updater.model_merge import build_model_mapping, merge_into_config
from code_router_updater.model_utils import display_name_from_id

__all__ = ["build_model_mapping", "display_name_from_id", "merge_into_config"]
__version__ = "0.1.0"
