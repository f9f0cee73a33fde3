"""tablefed: multi-tenant table definitions federated into one GraphQL API."""

__version__ = "0.4.0"
