"""Global constants for apislice.

This module defines the hardcoded values used throughout the engine.
Values that operators may need to change are mirrored in the configuration
models and can be overridden through environment variables.
"""


# ====================
# Microsoft Graph endpoints
# ====================

GRAPH_AUTHORIZATION_URL = "https://login.microsoftonline.com/common/oauth2/v2.0/authorize"
GRAPH_TOKEN_URL = "https://login.microsoftonline.com/common/oauth2/v2.0/token"

# Formatted with the graph version, e.g. https://graph.microsoft.com/v1.0/
GRAPH_URL_TEMPLATE = "https://graph.microsoft.com/{}/"

GRAPH_VERSION_V1 = "v1.0"


# ====================
# Subset document defaults
# ====================

DEFAULT_SUBSET_TITLE = "Partial Graph API"
DEFAULT_SERVER_DESCRIPTION = "Core"
SECURITY_SCHEME_NAME = "azureaadv2"
OPENAPI_VERSION = "3.0.1"


# ====================
# Extensions and well-known names
# ====================

OPERATION_TYPE_EXTENSION = "x-ms-docs-operation-type"
OPERATION_TYPE_FUNCTION = "function"
OPERATION_TYPE_ACTION = "action"

# Schema whose property description breaks the PowerShell client generator
NETWORK_INTERFACE_SCHEMA = "microsoft.graph.networkInterface"

REF_SEGMENT = "$ref"
VALUE_SEGMENT = "$value"
COUNT_SEGMENT = "$count"


# ====================
# Batching and timeouts
# ====================

# Path entries per normalization batch
DEFAULT_NORMALIZER_BATCH_SIZE = 5000

# Used when downloading source documents
DEFAULT_LOADER_TIMEOUT = 30

USER_AGENT = "apislice/1.0"

# Label used when a single source document is attached to a URL tree
DEFAULT_TREE_LABEL = GRAPH_VERSION_V1
