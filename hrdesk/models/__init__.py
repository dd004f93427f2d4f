"""HR Desk Database Models"""
from hrdesk.models.account import Account
from hrdesk.models.employee import Employee
from hrdesk.models.task import Task, TaskStatus, TaskPriority, STATUS_CYCLE
from hrdesk.models.task_comment import TaskComment
from hrdesk.models.task_attachment import TaskAttachment
from hrdesk.models.notification import Notification, NotificationType, TASK_LINKED_TYPES
from hrdesk.models.document import Document
from hrdesk.models.access import AllowedIP, AuditLog
from hrdesk.utils.change_capture import register_change_capture

__all__ = [
    "Account",
    "Employee",
    "Task",
    "TaskStatus",
    "TaskPriority",
    "STATUS_CYCLE",
    "TaskComment",
    "TaskAttachment",
    "Notification",
    "NotificationType",
    "TASK_LINKED_TYPES",
    "Document",
    "AllowedIP",
    "AuditLog",
]


for _model in (
    Employee,
    Task,
    TaskComment,
    TaskAttachment,
    Notification,
    Document,
):
    register_change_capture(_model)
