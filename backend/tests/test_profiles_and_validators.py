"""
Tests for role routing, ban state, worker matching, field validators and
event logging.
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest

from shared.models import BanType, Role, WorkerLevel
from shared.auth import is_banned, resolve_role, get_user_groups, is_admin
from shared.profiles import ban_profile, ban_until, find_eligible_workers, matches_job, unban_profile
from shared.validators import (
    ValidationError, format_cpf, format_phone, suggest_email,
    validate_cpf, validate_email, validate_phone,
)

NOW = datetime(2024, 5, 10, 15, 0, tzinfo=timezone.utc)


class TestRoleRouting:

    def test_admin_wins(self):
        """Admins always land on the admin role."""
        assert resolve_role([Role.CLIENT, Role.ADMIN], Role.CLIENT) == Role.ADMIN

    def test_partner_before_preferred(self):
        """Partners land on the partner role."""
        assert resolve_role([Role.WORKER, Role.PARTNER], Role.WORKER) == Role.PARTNER

    def test_preferred_when_allowed(self):
        """The preferred role is used when allowed."""
        assert resolve_role([Role.CLIENT, Role.WORKER], Role.WORKER) == Role.WORKER

    def test_first_role_when_preferred_not_allowed(self):
        """Otherwise the first allowed role is used."""
        assert resolve_role([Role.WORKER], Role.CLIENT) == Role.WORKER

    def test_no_roles_defaults_to_client(self):
        """No roles means client."""
        assert resolve_role([], None) == Role.CLIENT

    def test_groups_from_claims(self, api_event):
        """Comma-separated groups are read from the claims."""
        event = api_event(sub='u1', groups='admin,worker')
        assert get_user_groups(event) == ['admin', 'worker']
        assert is_admin(event)

    def test_groups_in_bracket_form(self, api_event):
        """Bracketed group lists are read too."""
        event = api_event(sub='u1', groups='[partner worker]')
        assert get_user_groups(event) == ['partner', 'worker']
        assert not is_admin(event)

    def test_no_claims(self):
        """Events without an authorizer have no groups."""
        assert get_user_groups({}) == []


class TestBanState:

    def test_active_profile(self):
        """Active profiles are not banned."""
        assert not is_banned({'active': True}, NOW)

    def test_indefinite_ban(self):
        """Inactive without an end date is banned."""
        assert is_banned({'active': False, 'punishment_until': None}, NOW)

    def test_temporary_ban_running(self):
        """A ban ending in the future is in force."""
        until = (NOW + timedelta(days=2)).isoformat()
        assert is_banned({'active': False, 'punishment_until': until}, NOW)

    def test_temporary_ban_expired(self):
        """A ban whose end has passed no longer applies."""
        until = (NOW - timedelta(minutes=1)).isoformat()
        assert not is_banned({'active': False, 'punishment_until': until}, NOW)

    def test_ban_until(self):
        """Seven-day bans end a week out; indefinite ones never do."""
        assert ban_until(BanType.SEVEN_DAYS, NOW) == NOW + timedelta(days=7)
        assert ban_until(BanType.INDEFINITE, NOW) is None
        with pytest.raises(ValueError):
            ban_until('forever', NOW)


class TestBanWrites:

    @patch('shared.profiles.dynamodb')
    def test_ban_resets_worker_level(self, mock_dynamodb):
        """A worker ban saves the level and drops to bronze."""
        table = MagicMock()
        table.get_item.return_value = {'Item': {'id': 'w1', 'level': WorkerLevel.GOLD}}
        mock_dynamodb.Table.return_value = table

        until = ban_profile('w1', BanType.SEVEN_DAYS, reset_level=True, now=NOW)

        assert until == NOW + timedelta(days=7)
        values = table.update_item.call_args.kwargs['ExpressionAttributeValues']
        assert values[':inactive'] is False
        assert values[':previous'] == WorkerLevel.GOLD
        assert values[':bronze'] == WorkerLevel.BRONZE

    @patch('shared.profiles.dynamodb')
    def test_second_ban_keeps_first_level(self, mock_dynamodb):
        """A second ban keeps the level saved by the first."""
        table = MagicMock()
        table.get_item.return_value = {'Item': {'id': 'w1', 'level': WorkerLevel.BRONZE, 'level_before_ban': WorkerLevel.GOLD}}
        mock_dynamodb.Table.return_value = table

        ban_profile('w1', BanType.INDEFINITE, reset_level=True, now=NOW)

        values = table.update_item.call_args.kwargs['ExpressionAttributeValues']
        assert ':previous' not in values
        assert values[':until'] is None

    @patch('shared.profiles.dynamodb')
    def test_unban_restores_level(self, mock_dynamodb):
        """Unbanning restores the saved level."""
        table = MagicMock()
        table.get_item.return_value = {'Item': {'id': 'w1', 'level_before_ban': WorkerLevel.SILVER}}
        mock_dynamodb.Table.return_value = table

        unban_profile('w1')

        kwargs = table.update_item.call_args.kwargs
        assert 'REMOVE punishment_until, level_before_ban' in kwargs['UpdateExpression']
        assert kwargs['ExpressionAttributeValues'][':previous'] == WorkerLevel.SILVER
        assert kwargs['ExpressionAttributeValues'][':clear'] is False


class TestWorkerMatching:

    def test_same_city_ignores_case_and_accents(self):
        """City and specialty match without case or accents."""
        worker = {'city': 'São Paulo', 'specialty': 'Elétrica, Pintura'}
        assert matches_job(worker, 'sao paulo', 'Eletrica')

    def test_other_city(self):
        """Workers in other cities do not match."""
        worker = {'city': 'Campinas', 'specialty': 'Elétrica'}
        assert not matches_job(worker, 'São Paulo', 'Elétrica')

    def test_unrestricted_job_matches_everyone(self):
        """Jobs without a category match any specialty."""
        assert matches_job({'city': 'Santos', 'specialty': ''}, 'Santos', '')

    def test_specialty_mismatch(self):
        """A different specialty does not match."""
        assert not matches_job({'city': 'Santos', 'specialty': 'Jardinagem'}, 'Santos', 'Elétrica')

    @patch('shared.profiles.scan')
    def test_expired_ban_is_eligible_again(self, mock_scan):
        """A worker whose 7-day ban ran out hears about new jobs again."""
        expired = (datetime.now(timezone.utc) - timedelta(hours=1)).isoformat()
        running = (datetime.now(timezone.utc) + timedelta(days=3)).isoformat()
        mock_scan.return_value = [
            {'id': 'w-expired', 'city': 'Santos', 'active': False, 'punishment_until': expired},
            {'id': 'w-banned', 'city': 'Santos', 'active': False, 'punishment_until': running},
            {'id': 'w-forever', 'city': 'Santos', 'active': False, 'punishment_until': None},
            {'id': 'w-ok', 'city': 'Santos', 'active': True},
            {'id': 'client-1', 'city': 'Santos'},
        ]

        workers = find_eligible_workers('Santos', '', exclude_id='client-1')

        assert sorted(w['id'] for w in workers) == ['w-expired', 'w-ok']


class TestValidators:

    def test_phone(self):
        """Mobile numbers need eleven digits and a leading nine."""
        assert validate_phone('11912345678') == '(11) 91234-5678'
        with pytest.raises(ValidationError):
            validate_phone('1134567890')
        with pytest.raises(ValidationError):
            validate_phone('11812345678')

    def test_phone_mask_while_typing(self):
        """Partial numbers are masked as typed."""
        assert format_phone('119') == '(11) 9'

    def test_cpf(self):
        """CPF check digits are verified and repeated digits refused."""
        assert validate_cpf('52998224725') == '529.982.247-25'
        with pytest.raises(ValidationError):
            validate_cpf('529.982.247-26')
        with pytest.raises(ValidationError):
            validate_cpf('111.111.111-11')

    def test_cpf_mask(self):
        """Partial CPFs are masked as typed."""
        assert format_cpf('5299822') == '529.982.2'

    def test_email_typo_suggestion(self):
        """Mistyped domains come with a suggestion."""
        assert suggest_email('ana@gmial.com') == 'ana@gmail.com'
        with pytest.raises(ValidationError) as exc:
            validate_email('ana@gmial.com')
        assert exc.value.suggestion == 'ana@gmail.com'

    def test_email_ok(self):
        """Valid addresses are trimmed and lowercased."""
        assert validate_email(' Ana@Gmail.com ') == 'ana@gmail.com'
        with pytest.raises(ValidationError):
            validate_email('not-an-email')


class TestEventLogging:

    def test_personal_data_stays_out_of_logs(self, api_event):
        """CPFs never reach the log line."""
        from shared import logging as event_logging
        event = api_event(sub='u1', body={'cpf': '52998224725'}, query={'cpf': '52998224725', 'view': 'admin'})
        context = MagicMock(aws_request_id='req-1')

        with patch.object(event_logging.logger, 'info') as info:
            event_logging.log_event(event, context)

        line = info.call_args.args[0]
        assert line.startswith('[req-1] ')
        assert '52998224725' not in line
        assert '"view": "admin"' in line

    def test_stream_batches_log_only_their_size(self):
        """Stream batches log only their record count."""
        from shared import logging as event_logging
        with patch.object(event_logging.logger, 'info') as info:
            event_logging.log_event({'Records': [{'dynamodb': {}}, {'dynamodb': {}}]})

        assert '"Records": 2' in info.call_args.args[0]
