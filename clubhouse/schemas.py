"""
Request bodies accepted by the API.

Views validate incoming JSON with these models before handing values to the
services; a pydantic ValidationError is turned into a 400 by the app's error
handlers.
"""
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, EmailStr, Field, TypeAdapter

Position = Literal['BATSMAN', 'BOWLER', 'ALL_ROUNDER', 'WICKET_KEEPER']
Experience = Literal['BEGINNER', 'INTERMEDIATE', 'ADVANCED', 'PROFESSIONAL']


def _blank_to_none(value):
    """Forms post optional emails as empty strings."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


OptionalEmail = Annotated[Optional[EmailStr], BeforeValidator(_blank_to_none)]


class _Body(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


# ==================== Auction floor ====================

class MarkSold(_Body):
    action: Literal['MARK_SOLD']
    auction_team_id: int
    sold_price: int = Field(ge=0)


class MarkUnsold(_Body):
    action: Literal['MARK_UNSOLD']


class MarkAvailable(_Body):
    action: Literal['MARK_AVAILABLE']


class ApprovePlayer(_Body):
    action: Literal['APPROVE']


class RejectPlayer(_Body):
    action: Literal['REJECT']


AuctionPlayerUpdate = Annotated[
    Union[MarkSold, MarkUnsold, MarkAvailable, ApprovePlayer, RejectPlayer],
    Field(discriminator='action')
]
auction_update_adapter = TypeAdapter(AuctionPlayerUpdate)


# ==================== Tournaments ====================

class TournamentCreate(_Body):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    tournament_type: Literal['LEAGUE', 'KNOCKOUT', 'AUCTION'] = 'LEAGUE'
    venue: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    registration_deadline: Optional[datetime] = None
    max_teams: Optional[int] = Field(None, ge=1)
    team_size: int = Field(11, ge=1)
    entry_fee: int = Field(0, ge=0)
    is_auction_based: bool = False
    auction_budget: Optional[int] = Field(None, ge=0)
    auction_date: Optional[datetime] = None
    auction_team_count: Optional[int] = Field(None, ge=1)
    min_player_points: Optional[int] = Field(None, ge=0)
    player_entry_fee: Optional[int] = Field(None, ge=0)
    team_entry_fee: Optional[int] = Field(None, ge=0)
    min_players_per_team: Optional[int] = Field(None, ge=0)
    max_players_per_team: Optional[int] = Field(None, ge=1)


class TournamentUpdate(_Body):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    tournament_type: Optional[Literal['LEAGUE', 'KNOCKOUT', 'AUCTION']] = None
    venue: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    registration_deadline: Optional[datetime] = None
    max_teams: Optional[int] = Field(None, ge=1)
    team_size: Optional[int] = Field(None, ge=1)
    entry_fee: Optional[int] = Field(None, ge=0)
    is_auction_based: Optional[bool] = None
    auction_budget: Optional[int] = Field(None, ge=0)
    auction_date: Optional[datetime] = None
    auction_team_count: Optional[int] = Field(None, ge=1)
    min_player_points: Optional[int] = Field(None, ge=0)
    player_entry_fee: Optional[int] = Field(None, ge=0)
    team_entry_fee: Optional[int] = Field(None, ge=0)
    min_players_per_team: Optional[int] = Field(None, ge=0)
    max_players_per_team: Optional[int] = Field(None, ge=1)


class TournamentAction(_Body):
    action: Literal['open_registration', 'close_registration', 'start', 'complete', 'cancel', 'reopen']


class TournamentImageCreate(_Body):
    image_url: str = Field(min_length=1, max_length=500)
    caption: Optional[str] = None
    is_primary: bool = False


class MatchCreate(_Body):
    home_team_id: int
    away_team_id: int
    match_date: Optional[datetime] = None
    venue: Optional[str] = None


class MatchUpdate(_Body):
    match_date: Optional[datetime] = None
    venue: Optional[str] = None
    status: Optional[Literal['SCHEDULED', 'LIVE', 'COMPLETED', 'CANCELLED']] = None
    result: Optional[str] = None
    winner_team_id: Optional[int] = None


# ==================== Registration ====================

class PlayerEntry(_Body):
    name: str = Field(min_length=1, max_length=100)
    age: Optional[int] = Field(None, ge=5, le=100)
    phone: Optional[str] = None
    email: OptionalEmail = None
    position: Position = 'BATSMAN'
    experience: Optional[Experience] = None
    jersey_number: Optional[int] = Field(None, ge=0, le=999)


class TeamRegistrationCreate(_Body):
    team_name: str = Field(min_length=1, max_length=100)
    captain_name: str = Field(min_length=1, max_length=100)
    captain_phone: str = Field(min_length=6, max_length=30)
    captain_email: EmailStr
    city: Optional[str] = None
    home_ground: Optional[str] = None
    players: List[PlayerEntry] = Field(min_length=1)
    registration_type: Literal['PUBLIC', 'ADMIN'] = 'PUBLIC'
    payment_method: Optional[str] = None
    special_requests: Optional[str] = None


class TeamUpdate(_Body):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    captain_name: Optional[str] = Field(None, min_length=1, max_length=100)
    captain_phone: Optional[str] = Field(None, min_length=6, max_length=30)
    captain_email: OptionalEmail = None
    city: Optional[str] = None
    home_ground: Optional[str] = None


class PlayerUpdate(_Body):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    age: Optional[int] = Field(None, ge=5, le=100)
    phone: Optional[str] = None
    email: OptionalEmail = None
    position: Optional[Position] = None
    experience: Optional[Experience] = None
    jersey_number: Optional[int] = Field(None, ge=0, le=999)
    is_substitute: Optional[bool] = None


class TeamOwnerCreate(_Body):
    team_name: str = Field(min_length=1, max_length=100)
    owner_name: str = Field(min_length=1, max_length=100)
    owner_phone: str = Field(min_length=6, max_length=30)
    owner_email: EmailStr
    owner_city: Optional[str] = None
    sponsor_name: Optional[str] = None
    sponsor_contact: Optional[str] = None


class AuctionPlayerCreate(_Body):
    name: str = Field(min_length=1, max_length=100)
    age: Optional[int] = Field(None, ge=5, le=100)
    phone: str = Field(min_length=6, max_length=30)
    email: OptionalEmail = None
    city: Optional[str] = None
    position: Position = 'BATSMAN'
    batting_style: Optional[str] = None
    bowling_style: Optional[str] = None
    experience: Optional[Experience] = None
    base_price: Optional[int] = Field(None, ge=0)


class RegistrationUpdate(_Body):
    status: Optional[Literal['PENDING', 'CONFIRMED', 'REJECTED']] = None
    payment_status: Optional[Literal['PENDING', 'PAID']] = None
    payment_method: Optional[str] = None
    payment_amount: Optional[int] = Field(None, ge=0)
    reason: Optional[str] = None


class OwnerAction(_Body):
    action: Literal['VERIFY', 'MARK_PAID', 'UNMARK_PAID', 'REJECT', 'REGENERATE_TOKEN']
    reason: Optional[str] = None


class BudgetUpdate(_Body):
    total_budget: int = Field(ge=0)


# ==================== Auth and admin ====================

class LoginRequest(_Body):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class AdminCreate(_Body):
    username: str = Field(min_length=3, max_length=80)
    email: EmailStr
    name: str = Field(min_length=1, max_length=120)
    password: str = Field(min_length=8)
    role: Literal['ADMIN', 'SUPERADMIN'] = 'ADMIN'


class AdminUpdate(_Body):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    role: Optional[Literal['ADMIN', 'SUPERADMIN']] = None
    is_active: Optional[bool] = None
    password: Optional[str] = Field(None, min_length=8)


class EmailSettingsUpdate(_Body):
    smtp_host: str = Field(min_length=1)
    smtp_port: int = Field(587, ge=1, le=65535)
    smtp_user: str = Field(min_length=1)
    smtp_password: Optional[str] = None
    from_email: EmailStr
    from_name: Optional[str] = None
    use_ssl: bool = False


class EmailTest(_Body):
    to: EmailStr


# ==================== Payments ====================

class PaymentSettingsUpdate(_Body):
    upi_id: Optional[str] = None
    upi_name: Optional[str] = None
    qr_code_url: Optional[str] = None
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    ifsc_code: Optional[str] = None
    account_holder: Optional[str] = None
    instructions: Optional[str] = None


class PaymentMethodCreate(PaymentSettingsUpdate):
    method_name: str = Field(min_length=1, max_length=100)
    amount: Optional[int] = Field(None, ge=0)
    display_order: int = 0
    is_active: bool = True


class PaymentMethodUpdate(PaymentSettingsUpdate):
    method_name: Optional[str] = Field(None, min_length=1, max_length=100)
    amount: Optional[int] = Field(None, ge=0)
    display_order: Optional[int] = None
    is_active: Optional[bool] = None


# ==================== Landing page ====================

class SectionCreate(_Body):
    section_type: str = Field(min_length=1, max_length=50)
    title: str = Field(min_length=1, max_length=200)
    subtitle: Optional[str] = None
    content: Optional[str] = None
    background_color: Optional[str] = None
    text_color: Optional[str] = None
    layout: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True


class SectionUpdate(_Body):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    subtitle: Optional[str] = None
    content: Optional[str] = None
    background_color: Optional[str] = None
    text_color: Optional[str] = None
    layout: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class PersonCreate(_Body):
    section_id: Optional[int] = None
    name: str = Field(min_length=1, max_length=100)
    role: str = Field(min_length=1, max_length=100)
    designation: Optional[str] = None
    bio: Optional[str] = None
    image_url: Optional[str] = None
    email: OptionalEmail = None
    phone: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True
    show_on_landing: bool = True


class PersonUpdate(_Body):
    section_id: Optional[int] = None
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    role: Optional[str] = Field(None, min_length=1, max_length=100)
    designation: Optional[str] = None
    bio: Optional[str] = None
    image_url: Optional[str] = None
    email: OptionalEmail = None
    phone: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None
    show_on_landing: Optional[bool] = None


class SectionImageCreate(_Body):
    image_url: str = Field(min_length=1, max_length=500)
    caption: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True


def parse(model, data):
    """Validate a JSON body against `model` (a model class or TypeAdapter)."""
    if isinstance(model, TypeAdapter):
        return model.validate_python(data or {})
    return model.model_validate(data or {})
