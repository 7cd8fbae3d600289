"""Policy Information Points (PIPs) - attribute and resource finders.

Structure:
    base.py           - AttributeFinderModule protocol, AttributeFinder chain
    environment.py    - CurrentEnvironmentModule (clock attributes)
    query.py          - SparqlResourceAttributeFinderModule (configured queries)
    triple.py         - TripleAttributeFinderModule (property graph, runs last)
    resources.py      - DescendantResourceFinder (scoped requests)
"""

from repo_acp.pips.base import AttributeFinder, AttributeFinderModule
from repo_acp.pips.environment import CurrentEnvironmentModule
from repo_acp.pips.triple import TripleAttributeFinderModule, resolve_target_path
from repo_acp.pips.query import SparqlResourceAttributeFinderModule
from repo_acp.pips.resources import DescendantResourceFinder, ResourceFinderResult, is_system_node

__all__ = [
    "AttributeFinder",
    "AttributeFinderModule",
    "CurrentEnvironmentModule",
    "DescendantResourceFinder",
    "ResourceFinderResult",
    "SparqlResourceAttributeFinderModule",
    "TripleAttributeFinderModule",
    "is_system_node",
    "resolve_target_path",
]
