"""API routers."""

from growthtrack.routers.assistant import router as assistant_router
from growthtrack.routers.auth import router as auth_router
from growthtrack.routers.calendar import router as calendar_router
from growthtrack.routers.children import router as children_router
from growthtrack.routers.share_links import router as share_links_router
from growthtrack.routers.shared import router as shared_router
