"""
Unit tests for request body models.
"""
import pytest
from pydantic import ValidationError

from clubhouse.schemas import (
    AdminCreate, EmailTest, MarkSold, MarkUnsold, PlayerEntry, TeamRegistrationCreate, TeamUpdate,
    auction_update_adapter,
)


def registration(**overrides):
    data = {
        'team_name': 'Riverside Rangers',
        'captain_name': 'Arjun Rao',
        'captain_phone': '9876543210',
        'captain_email': 'arjun@example.org',
        'players': [{'name': 'Player 1'}],
    }
    data.update(overrides)
    return data


class TestAuctionUpdate:
    """Tests for the action-tagged auction update body."""

    def test_mark_sold(self):
        command = auction_update_adapter.validate_python(
            {'action': 'MARK_SOLD', 'auction_team_id': 3, 'sold_price': 4000}
        )

        assert isinstance(command, MarkSold)
        assert command.sold_price == 4000

    def test_action_is_selected_by_tag(self):
        command = auction_update_adapter.validate_python({'action': 'MARK_UNSOLD'})

        assert isinstance(command, MarkUnsold)

    def test_unknown_action(self):
        with pytest.raises(ValidationError):
            auction_update_adapter.validate_python({'action': 'MARK_STOLEN'})

    def test_sold_needs_price(self):
        with pytest.raises(ValidationError):
            auction_update_adapter.validate_python({'action': 'MARK_SOLD', 'auction_team_id': 3})

    def test_strings_are_trimmed(self):
        entry = PlayerEntry(name='  Vikram Singh ', phone=' 98765 11111 ')

        assert entry.name == 'Vikram Singh'
        assert entry.phone == '98765 11111'


class TestEmails:
    """Tests for email address validation."""

    @pytest.mark.parametrize('address', ['not-an-email', 'arjun@', 'a@b..c', 'arjun@@example.org'])
    def test_invalid_captain_email(self, address):
        with pytest.raises(ValidationError):
            TeamRegistrationCreate(**registration(captain_email=address))

    def test_valid_captain_email(self):
        body = TeamRegistrationCreate(**registration(captain_email='arjun.rao+cup@example.org'))

        assert body.captain_email == 'arjun.rao+cup@example.org'

    def test_admin_and_test_email_addresses(self):
        with pytest.raises(ValidationError):
            AdminCreate(username='scorer', email='scorer', name='Club Scorer', password='wicket-keeper')
        with pytest.raises(ValidationError):
            EmailTest(to='')

    def test_blank_optional_email_is_none(self):
        assert PlayerEntry(name='Vikram Singh', email='  ').email is None
        assert TeamUpdate(captain_email='').captain_email is None

    def test_invalid_optional_email(self):
        with pytest.raises(ValidationError):
            PlayerEntry(name='Vikram Singh', email='vikram at example')
