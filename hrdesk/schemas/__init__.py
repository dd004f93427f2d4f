"""HR Desk Pydantic Schemas"""
from hrdesk.schemas.employee import (
    EmployeeCreate,
    EmployeeUpdate,
    EmployeeResponse,
    ProfileUpdate,
)
from hrdesk.schemas.auth import (
    SignupRequest,
    LoginRequest,
    Token,
    AccountResponse,
    SessionResponse,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    PasswordChange,
    MessageResponse,
)
from hrdesk.schemas.task import TaskCreate, TaskUpdate, TaskStatusUpdate, TaskResponse, TaskStats
from hrdesk.schemas.comment import TaskCommentCreate, TaskCommentResponse, CommentCount
from hrdesk.schemas.attachment import TaskAttachmentResponse, SignedUrlResponse
from hrdesk.schemas.notification import (
    NotificationResponse,
    NotificationList,
    UnreadCount,
    MarkAllReadResult,
    NotificationOpenResult,
)
from hrdesk.schemas.activity import ActivityItem, ActivityPage
from hrdesk.schemas.access import (
    LocationCheckRequest,
    LocationCheckResponse,
    IPValidationResponse,
    AllowedIPCreate,
    AllowedIPResponse,
    FailedLoginReport,
)
from hrdesk.schemas.document import DocumentResponse
from hrdesk.schemas.calendar import CalendarDay, CalendarMonth

__all__ = [
    "EmployeeCreate",
    "EmployeeUpdate",
    "EmployeeResponse",
    "ProfileUpdate",
    "SignupRequest",
    "LoginRequest",
    "Token",
    "AccountResponse",
    "SessionResponse",
    "ForgotPasswordRequest",
    "ResetPasswordRequest",
    "PasswordChange",
    "MessageResponse",
    "TaskCreate",
    "TaskUpdate",
    "TaskStatusUpdate",
    "TaskResponse",
    "TaskStats",
    "TaskCommentCreate",
    "TaskCommentResponse",
    "CommentCount",
    "TaskAttachmentResponse",
    "SignedUrlResponse",
    "NotificationResponse",
    "NotificationList",
    "UnreadCount",
    "MarkAllReadResult",
    "NotificationOpenResult",
    "ActivityItem",
    "ActivityPage",
    "LocationCheckRequest",
    "LocationCheckResponse",
    "IPValidationResponse",
    "AllowedIPCreate",
    "AllowedIPResponse",
    "FailedLoginReport",
    "DocumentResponse",
    "CalendarDay",
    "CalendarMonth",
]
