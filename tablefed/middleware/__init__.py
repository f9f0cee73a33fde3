"""HTTP middleware: request ID and access logging.

Applied in the main app. Import and use from tablefed.main.
"""

from tablefed.middleware.request_id import RequestIDMiddleware

__all__ = ["RequestIDMiddleware"]
