"""FastAPI REST API for managing Fairlx webhooks.

Example:
    ```python
    import uvicorn
    from fairlx.api import create_app

    app = create_app()
    uvicorn.run(app, host="0.0.0.0", port=8000)
    ```

Or run directly:
    ```bash
    uvicorn fairlx.api:app --reload
    ```
"""

from .app import app, create_app, register_exception_handlers
from .router import router, set_services

__all__ = [
    "app",
    "create_app",
    "register_exception_handlers",
    "router",
    "set_services",
]
