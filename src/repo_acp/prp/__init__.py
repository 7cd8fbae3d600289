"""Policy Retrieval Point (PRP) - locating policies in the store.

Structure:
    policy_util.py    - Policy ID <-> store path mapping
    cache.py          - PolicyCache (checksum-validated LRU)
    policy_finder.py  - HierarchicalPolicyFinder
"""

from repo_acp.prp.policy_util import get_actions, id_for_path, is_policy_id, path_for_id
from repo_acp.prp.cache import PolicyCache, content_checksum
from repo_acp.prp.policy_finder import HierarchicalPolicyFinder

__all__ = [
    "HierarchicalPolicyFinder",
    "PolicyCache",
    "content_checksum",
    "get_actions",
    "id_for_path",
    "is_policy_id",
    "path_for_id",
]
