# SQLModel definitions, imported here to ensure metadata is populated for Alembic.
from .base import UUIDMixin, TimestampMixin, CreatedAtMixin  # noqa: F401
from .user import User  # noqa: F401
from .project import Project  # noqa: F401
from .project_request import ProjectRequest  # noqa: F401
from .task import Task  # noqa: F401
from .submission import TaskSubmission  # noqa: F401
from .notification import Notification  # noqa: F401
