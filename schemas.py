from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Enum pour les rôles : les quatre valeurs sont fixes
class UserRole(str, Enum):
    admin = "admin"                                         # Administrateur
    web_developer = "web_developer"                         # Développeur web
    social_media_coordinator = "social_media_coordinator"   # Coordinateur réseaux sociaux
    client = "client"                                       # Client de l'agence


class ProjectType(str, Enum):
    website = "website"
    social_media = "social_media"


class ProjectStage(str, Enum):
    planning = "planning"
    design = "design"
    development = "development"
    testing = "testing"
    seo_optimization = "seo_optimization"
    launch = "launch"
    maintenance = "maintenance"


class ProjectStatus(str, Enum):
    active = "active"
    paused = "paused"
    completed = "completed"


class TicketType(str, Enum):
    bug_report = "bug_report"
    content_change = "content_change"
    design_update = "design_update"
    feature_request = "feature_request"


class TicketPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class TicketStatus(str, Enum):
    open = "open"
    in_progress = "in_progress"
    resolved = "resolved"
    closed = "closed"


# --- Enregistrements persistés ---

class StoredModel(BaseModel):
    """
    Base des enregistrements persistés.
    Les attributs Python sont en snake_case, le JSON stocké en camelCase
    (clientId, isActive, ...) pour rester compatible avec les données existantes.
    Les champs inconnus sont conservés tels quels.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class User(StoredModel):
    id: str
    email: str
    password: Optional[str] = None  # hashé, ou en clair pour les anciennes données
    full_name: str = ""
    phone: str = ""
    role: UserRole = UserRole.client
    is_active: bool = True
    profile_image: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Project(StoredModel):
    id: str
    name: str
    description: str = ""
    project_type: ProjectType = ProjectType.website
    client_id: str = ""
    web_developer_id: Optional[str] = None
    social_media_coordinator_id: Optional[str] = None
    current_stage: ProjectStage = ProjectStage.planning
    status: ProjectStatus = ProjectStatus.active
    website_url: Optional[str] = None
    brand: Optional[str] = None
    notes: Optional[str] = None
    launch_date: Optional[datetime] = None
    project_date: Optional[datetime] = None
    product: Optional[str] = None
    # Champs spécifiques aux réseaux sociaux
    social_media_platforms: Optional[List[str]] = None
    campaign_goals: Optional[str] = None
    target_audience: Optional[str] = None
    # Métriques réseaux sociaux
    posts: Optional[int] = None
    likes: Optional[int] = None
    impressions: Optional[int] = None
    reach: Optional[int] = None
    engagement: Optional[float] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Ticket(StoredModel):
    id: str
    project_id: str
    created_by: str
    assigned_to: Optional[str] = None
    title: str
    description: str = ""
    type: TicketType = TicketType.feature_request
    priority: TicketPriority = TicketPriority.medium
    status: TicketStatus = TicketStatus.open
    resolved_at: Optional[datetime] = None
    resolution_notes: Optional[str] = None
    attachments: Optional[List[str]] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Message(StoredModel):
    id: str
    sender_id: str
    recipient_id: Optional[str] = None  # absent pour un message diffusé
    subject: str
    content: str
    is_read: bool = False
    is_broadcast: bool = False
    project_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class FileShare(StoredModel):
    id: str
    project_id: str
    uploaded_by: str
    file_name: str
    file_url: str = ""
    file_size: int = 0
    file_type: str = ""
    is_public: bool = False  # visible par le client
    description: Optional[str] = None
    uploaded_at: datetime = Field(default_factory=utcnow)


class WebsiteAnalytics(StoredModel):
    id: str
    project_id: str
    date: datetime
    page_views: int = 0
    unique_visitors: int = 0
    bounce_rate: float = 0
    average_session_duration: Optional[float] = None
    top_pages: Optional[List[Dict[str, Any]]] = None
    recorded_by: str
    created_at: datetime = Field(default_factory=utcnow)


class SocialMediaAnalytics(StoredModel):
    id: str
    project_id: str
    platform: str = "other"
    date: datetime
    posts: int = 0
    engagement: float = 0
    reach: int = 0
    followers: Optional[int] = None
    likes: Optional[int] = None
    comments: Optional[int] = None
    shares: Optional[int] = None
    notes: Optional[str] = None
    recorded_by: str
    created_at: datetime = Field(default_factory=utcnow)


class MonthlyAnalytics(StoredModel):
    id: str
    project_id: str
    project_name: Optional[str] = None
    month: str  # format "YYYY-MM"
    user_engagement: float = 0
    new_users: int = 0
    clicks: int = 0
    referrals: int = 0
    notes: Optional[str] = None
    recorded_by: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


def public_user(user: User) -> dict:
    """Représentation d'un utilisateur renvoyée par l'API (jamais le mot de passe)."""
    document = user.to_document()
    document.pop("password", None)
    return document


# --- Schémas des requêtes ---

class Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SignUpData(Payload):
    email: str
    password: str
    full_name: str = ""
    phone: str = ""
    role: UserRole = UserRole.client


class UserCreate(SignUpData):
    is_active: bool = True


class UserUpdate(Payload):
    email: Optional[str] = None
    password: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    profile_image: Optional[str] = None


class ProjectCreate(Payload):
    name: str
    description: str = ""
    project_type: ProjectType = ProjectType.website
    client_id: str
    web_developer_id: Optional[str] = None
    social_media_coordinator_id: Optional[str] = None
    current_stage: ProjectStage = ProjectStage.planning
    status: ProjectStatus = ProjectStatus.active
    website_url: Optional[str] = None
    brand: Optional[str] = None
    notes: Optional[str] = None
    launch_date: Optional[datetime] = None
    project_date: Optional[datetime] = None
    product: Optional[str] = None
    social_media_platforms: Optional[List[str]] = None
    campaign_goals: Optional[str] = None
    target_audience: Optional[str] = None


class ProjectUpdate(Payload):
    name: Optional[str] = None
    description: Optional[str] = None
    project_type: Optional[ProjectType] = None
    client_id: Optional[str] = None
    web_developer_id: Optional[str] = None
    social_media_coordinator_id: Optional[str] = None
    current_stage: Optional[ProjectStage] = None
    status: Optional[ProjectStatus] = None
    website_url: Optional[str] = None
    brand: Optional[str] = None
    notes: Optional[str] = None
    launch_date: Optional[datetime] = None
    project_date: Optional[datetime] = None
    product: Optional[str] = None
    social_media_platforms: Optional[List[str]] = None
    campaign_goals: Optional[str] = None
    target_audience: Optional[str] = None
    posts: Optional[int] = None
    likes: Optional[int] = None
    impressions: Optional[int] = None
    reach: Optional[int] = None
    engagement: Optional[float] = None


# Champs qu'un coordinateur peut modifier sur ses projets réseaux sociaux
PROJECT_METRIC_FIELDS = {"posts", "likes", "impressions", "reach", "engagement"}


class TicketCreate(Payload):
    project_id: str
    title: str
    description: str = ""
    type: TicketType = TicketType.feature_request
    priority: TicketPriority = TicketPriority.medium
    attachments: Optional[List[str]] = None


class TicketUpdate(Payload):
    title: Optional[str] = None
    description: Optional[str] = None
    type: Optional[TicketType] = None
    priority: Optional[TicketPriority] = None
    status: Optional[TicketStatus] = None
    assigned_to: Optional[str] = None
    resolution_notes: Optional[str] = None
    resolved_at: Optional[datetime] = None


class MessageCreate(Payload):
    recipient_id: Optional[str] = None
    subject: str
    content: str
    project_id: Optional[str] = None
    is_broadcast: bool = False


class FileShareCreate(Payload):
    project_id: str
    file_name: str
    file_url: str = ""
    file_size: int = 0
    file_type: str = ""
    is_public: bool = False
    description: Optional[str] = None


class WebsiteAnalyticsCreate(Payload):
    project_id: str
    date: datetime
    page_views: int = 0
    unique_visitors: int = 0
    bounce_rate: float = 0
    average_session_duration: Optional[float] = None
    top_pages: Optional[List[Dict[str, Any]]] = None


class SocialMediaAnalyticsCreate(Payload):
    project_id: str
    platform: str = "other"
    date: datetime
    posts: int = 0
    engagement: float = 0
    reach: int = 0
    followers: Optional[int] = None
    likes: Optional[int] = None
    comments: Optional[int] = None
    shares: Optional[int] = None
    notes: Optional[str] = None


class MonthlyAnalyticsCreate(Payload):
    project_id: str
    month: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    user_engagement: float = 0
    new_users: int = 0
    clicks: int = 0
    referrals: int = 0
    notes: Optional[str] = None


class MonthlyAnalyticsUpdate(Payload):
    project_id: Optional[str] = None
    month: Optional[str] = Field(None, pattern=r"^\d{4}-\d{2}$")
    user_engagement: Optional[float] = None
    new_users: Optional[int] = None
    clicks: Optional[int] = None
    referrals: Optional[int] = None
    notes: Optional[str] = None


# --- Schémas pour l'Authentification ---

class Token(BaseModel):
    access_token: str
    token_type: str


class TokenWithUser(Token):
    user: Dict[str, Any]


class PasswordResetRequest(Payload):
    email: str


class AuthModeUpdate(Payload):
    use_mock_auth: bool
