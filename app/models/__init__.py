from app.models.department import Department  # noqa: F401
from app.models.document import (  # noqa: F401
    Annotation,
    AnnotationType,
    AssignmentStatus,
    Document,
    DocumentAnnotationXfdf,
    DocumentAssignment,
    DocumentStatus,
)
from app.models.notification import (  # noqa: F401
    ActivityAction,
    ActivityLog,
    Notification,
    NotificationType,
)
from app.models.rbac import Permission, Role, RolePermission, UserPermission  # noqa: F401
from app.models.user import User  # noqa: F401
