"""Application-wide constants for repo-acp.

Attribute identifiers, store vocabulary and action names shared by the
request builder, the finders and the PDP.
For user-configurable settings per deployment, see config.py.
"""

__all__ = [
    # Application identity
    "APP_NAME",
    # Data types
    "XSD_STRING",
    "XSD_BOOLEAN",
    "XSD_INTEGER",
    "XSD_DOUBLE",
    "XSD_DATE",
    "XSD_TIME",
    "XSD_DATETIME",
    "XSD_ANY_URI",
    # Attribute identifiers
    "ATTRIBUTEID_SUBJECT_ID",
    "ATTRIBUTEID_SUBJECT_ROLE",
    "ATTRIBUTEID_ACTION_ID",
    "ATTRIBUTEID_RESOURCE_ID",
    "ATTRIBUTEID_RESOURCE_WORKSPACE",
    "ATTRIBUTEID_RESOURCE_SCOPE",
    "ATTRIBUTEID_ENVIRONMENT_ORIGINAL_IP_ADDRESS",
    "ATTRIBUTEID_CURRENT_TIME",
    "ATTRIBUTEID_CURRENT_DATE",
    "ATTRIBUTEID_CURRENT_DATETIME",
    # Scope values
    "SCOPE_DESCENDANTS",
    # Policies
    "POLICY_URI_PREFIX",
    "POLICY_PROPERTY",
    "POLICY_ASSIGNABLE_MIXIN",
    "POLICY_MIME_TYPE",
    "ROLES_PROPERTY",
    # Store vocabulary
    "ROOT_PATH",
    "PATH_SEPARATOR",
    "PROPERTY_SEGMENT_MARKER",
    "CONTENT_NODE_NAME",
    "SYSTEM_NODE_NAMES",
    "SYSTEM_NAME_PREFIXES",
    # Actions
    "ACTION_READ",
    "ACTION_REMOVE",
    "ACTION_SET_PROPERTY",
    "ACTION_ADD_NODE",
    "PARENT_TARGET_ACTIONS",
    # Principals
    "EVERYONE_PRINCIPAL",
]

APP_NAME = "repo-acp"

# =============================================================================
# XML Schema data types
# =============================================================================

XSD_STRING = "http://www.w3.org/2001/XMLSchema#string"
XSD_BOOLEAN = "http://www.w3.org/2001/XMLSchema#boolean"
XSD_INTEGER = "http://www.w3.org/2001/XMLSchema#integer"
XSD_DOUBLE = "http://www.w3.org/2001/XMLSchema#double"
XSD_DATE = "http://www.w3.org/2001/XMLSchema#date"
XSD_TIME = "http://www.w3.org/2001/XMLSchema#time"
XSD_DATETIME = "http://www.w3.org/2001/XMLSchema#dateTime"
XSD_ANY_URI = "http://www.w3.org/2001/XMLSchema#anyURI"

# =============================================================================
# Attribute identifiers
# =============================================================================

# ID of the subject (user principal)
ATTRIBUTEID_SUBJECT_ID = "urn:oasis:names:tc:xacml:1.0:subject:subject-id"

# Effective role of the subject at the requested path (one attribute per role)
ATTRIBUTEID_SUBJECT_ROLE = "urn:repo:xacml:2.0:subject:role"

# ID of the action (store permission name)
ATTRIBUTEID_ACTION_ID = "urn:oasis:names:tc:xacml:1.0:action:action-id"

# ID of the resource (node or property path)
ATTRIBUTEID_RESOURCE_ID = "urn:oasis:names:tc:xacml:1.0:resource:resource-id"

# Workspace the resource lives in
ATTRIBUTEID_RESOURCE_WORKSPACE = "urn:repo:xacml:2.0:resource:resource-workspace"

# Scope of the request (Descendants for "remove", Immediate otherwise)
ATTRIBUTEID_RESOURCE_SCOPE = "urn:oasis:names:tc:xacml:1.0:resource:scope"

# Address the originating request came from
ATTRIBUTEID_ENVIRONMENT_ORIGINAL_IP_ADDRESS = "urn:repo:xacml:2.0:environment:original-ip-address"

# Clock attributes supplied by the environment finder
ATTRIBUTEID_CURRENT_TIME = "urn:oasis:names:tc:xacml:1.0:environment:current-time"
ATTRIBUTEID_CURRENT_DATE = "urn:oasis:names:tc:xacml:1.0:environment:current-date"
ATTRIBUTEID_CURRENT_DATETIME = "urn:oasis:names:tc:xacml:1.0:environment:current-dateTime"

SCOPE_DESCENDANTS = "Descendants"

# =============================================================================
# Policies
# =============================================================================

# Policy IDs are this prefix followed by the policy's absolute store path:
# info:repo/policies/GlobalRolesPolicySet -> /policies/GlobalRolesPolicySet
POLICY_URI_PREFIX = "info:repo"

# Property on a node that points at the path of its assigned policy
POLICY_PROPERTY = "authz:policy"

# Mixin that marks a node as able to carry an assigned policy
POLICY_ASSIGNABLE_MIXIN = "authz:xacmlAssignable"

POLICY_MIME_TYPE = "application/xml"

# Property holding "principal=role" role assignments for a subtree
ROLES_PROPERTY = "authz:roles"

# =============================================================================
# Store vocabulary
# =============================================================================

ROOT_PATH = "/"
PATH_SEPARATOR = "/"

# A segment that starts with this marker addresses a property, not a node:
# /a/{ns}b is property {ns}b of node /a
PROPERTY_SEGMENT_MARKER = "/{"

# Child node holding the bytes of a binary resource
CONTENT_NODE_NAME = "jcr:content"

# Internal nodes never reported as resources
SYSTEM_NODE_NAMES: frozenset[str] = frozenset({"jcr:system", CONTENT_NODE_NAME})
SYSTEM_NAME_PREFIXES: tuple[str, ...] = ("jcr:", "mode:", "rep:")

# =============================================================================
# Actions
# =============================================================================

ACTION_READ = "read"
ACTION_REMOVE = "remove"
ACTION_SET_PROPERTY = "set_property"
ACTION_ADD_NODE = "add_node"

# Actions that address a child or property which may not exist yet; attributes
# for them are resolved on the parent resource
PARENT_TARGET_ACTIONS: frozenset[str] = frozenset({ACTION_SET_PROPERTY, ACTION_ADD_NODE})

# =============================================================================
# Principals
# =============================================================================

# Pseudo-principal whose roles apply to every user
EVERYONE_PRINCIPAL = "EVERYONE"
