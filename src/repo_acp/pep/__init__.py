"""Authorization delegate - the Policy Enforcement Point side of a check.

Request flow:
1. Caller asks the delegate about (session, path, actions[, roles])
2. Delegate builds the EvaluationRequest (context/)
3. PDP evaluates it, using the policy finder (prp/) and attribute finders (pips/)
4. Delegate aggregates: Permit only if every result is Permit

Structure:
    delegate.py   - AuthorizationDelegate, aggregate_decisions
    roles.py      - AccessRolesProvider and the shipped providers
"""

from repo_acp.pep.delegate import AuthorizationDelegate, aggregate_decisions
from repo_acp.pep.roles import AccessRolesProvider, PropertyRolesProvider, StaticRolesProvider

__all__ = [
    "AccessRolesProvider",
    "AuthorizationDelegate",
    "PropertyRolesProvider",
    "StaticRolesProvider",
    "aggregate_decisions",
]
