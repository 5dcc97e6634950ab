"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from linksnap.api import app

    uvicorn linksnap.api:app --reload
"""

from linksnap.api.app import app
