from app.models.accommodation import (  # noqa: F401
    AccommodationPriority,
    AccommodationRequest,
    AccommodationStatus,
    AccommodationType,
    ContactMethod,
)
from app.models.activity_log import ActivityLog  # noqa: F401
from app.models.conference_session import (  # noqa: F401
    ConferenceSession,
    InviteStatus,
    RejectionReason,
    SessionStatus,
    TravelStatus,
)
from app.models.cv_upload import CvUpload  # noqa: F401
from app.models.event import Event, EventStatus  # noqa: F401
from app.models.feedback import FeedbackItem, FeedbackType  # noqa: F401
from app.models.presentation import Presentation  # noqa: F401
from app.models.room import Room  # noqa: F401
from app.models.user import User, UserRole  # noqa: F401
