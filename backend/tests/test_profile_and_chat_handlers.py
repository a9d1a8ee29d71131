"""
Tests for the profile handlers and job chat.
"""
import json
from unittest.mock import MagicMock, patch

from shared.models import PointsRules, Role, WorkerLevel


class TestCreateProfile:

    def test_signup_bonus_and_role(self):
        """New accounts get the signup bonus and the chosen role."""
        from handlers.profiles.create_profile import build_profile
        profile = build_profile('u1', {'email': 'Ana@Gmail.com', 'name': 'Ana', 'custom:role': 'worker'})

        assert profile['points'] == PointsRules.REGISTER
        assert profile['allowed_roles'] == [Role.WORKER]
        assert profile['level'] == WorkerLevel.BRONZE
        assert profile['email'] == 'ana@gmail.com'
        assert profile['active'] is True

    def test_unknown_signup_role_falls_back_to_client(self):
        """Signup cannot grant admin."""
        from handlers.profiles.create_profile import build_profile
        assert build_profile('u1', {'custom:role': 'admin'})['allowed_roles'] == [Role.CLIENT]

    @patch('handlers.profiles.create_profile.dynamodb')
    def test_trigger_returns_event(self, mock_dynamodb):
        """The Cognito trigger hands its event back."""
        from handlers.profiles import create_profile
        event = {'userName': 'u1', 'request': {'userAttributes': {'sub': 'u1', 'email': 'a@b.com'}}}
        assert create_profile.handler(event, None) is event
        item = mock_dynamodb.Table.return_value.put_item.call_args.kwargs['Item']
        assert item['id'] == 'u1'


class TestGetProfile:

    def test_session_view(self):
        """The session view carries role, ban state and what is missing."""
        from handlers.profiles.get_profile import session_view
        profile = {
            'id': 'u1', 'allowed_roles': [Role.CLIENT, Role.WORKER],
            'phone': '(11) 91234-5678', 'active': True, 'points': 50, 'level': WorkerLevel.BRONZE
        }
        view = session_view(profile, Role.WORKER)

        assert view['role'] == Role.WORKER
        assert view['isBanned'] is False
        assert view['needsCompletion'] is True
        assert view['needsSpecialty'] is True
        assert view['levelProgress']['next_level'] == WorkerLevel.SILVER


class TestUpdateProfile:

    def call(self, api_event, body, taken=None):
        from handlers.profiles import update_profile
        table = MagicMock()
        profile = {'id': 'u1', 'allowed_roles': [Role.CLIENT]}
        with patch.object(update_profile, 'get_profile', return_value=profile), \
                patch.object(update_profile, 'scan', return_value=taken or []), \
                patch.object(update_profile, 'save_category_suggestion') as save_suggestion, \
                patch.object(update_profile, 'dynamodb') as mock_dynamodb:
            mock_dynamodb.Table.return_value = table
            response = update_profile.handler(api_event(sub='u1', body=body, method='PUT'), None)
        return response, table, save_suggestion

    def test_email_typo_suggestion(self, api_event):
        """A mistyped domain is refused with the likely address."""
        response, table, _ = self.call(api_event, {'email': 'ana@hotmial.com'})

        body = json.loads(response['body'])
        assert response['statusCode'] == 400
        assert body['suggestion'] == 'ana@hotmail.com'
        table.update_item.assert_not_called()

    def test_cpf_must_be_unique(self, api_event):
        """A CPF on another account is refused."""
        response, _, _ = self.call(api_event, {'cpf': '529.982.247-25'}, taken=[{'id': 'someone-else'}])
        assert response['statusCode'] == 400
        assert 'CPF' in json.loads(response['body'])['error']

    def test_other_specialty_needs_text(self, api_event):
        """'Outros' needs the typed specialty."""
        response, _, _ = self.call(api_event, {'specialties': ['Outros']})
        assert response['statusCode'] == 400

    def test_other_specialty_stored_as_suggestion(self, api_event):
        """A typed specialty is stored and kept as a suggestion."""
        body = {'specialties': ['Pintura', 'Outros'], 'otherSpecialty': 'Marcenaria', 'addRole': 'worker'}
        response, table, save_suggestion = self.call(api_event, body)

        assert response['statusCode'] == 200
        values = table.update_item.call_args.kwargs['ExpressionAttributeValues']
        assert values[':specialty'] == 'Pintura, Sugestão: Marcenaria'
        assert values[':allowed_roles'] == [Role.CLIENT, Role.WORKER]
        assert save_suggestion.call_args.args[:2] == ('u1', 'Marcenaria')

    def test_valid_phone_and_cpf(self, api_event):
        """Valid phone and CPF are stored masked."""
        response, table, _ = self.call(api_event, {'phone': '11912345678', 'cpf': '52998224725'})

        assert response['statusCode'] == 200
        values = table.update_item.call_args.kwargs['ExpressionAttributeValues']
        assert values[':phone'] == '(11) 91234-5678'
        assert values[':cpf'] == '529.982.247-25'


class TestChat:

    JOB = {'id': 'job-1', 'client_id': 'client-1', 'worker_id': 'worker-1'}

    def send(self, api_event, sub, body):
        from handlers.chat import send_message
        table = MagicMock()
        with patch.object(send_message, 'get_job', return_value=self.JOB), \
                patch.object(send_message, 'get_profile', return_value={'full_name': 'Ana'}), \
                patch.object(send_message, 'notify_new_message') as notify, \
                patch.object(send_message, 'dynamodb') as mock_dynamodb:
            mock_dynamodb.Table.return_value = table
            response = send_message.handler(api_event(sub=sub, path={'jobId': 'job-1'}, body=body), None)
        return response, table, notify

    def test_party_sends_and_other_is_notified(self, api_event):
        """A party's message is stored and the other party notified."""
        response, table, notify = self.send(api_event, 'client-1', {'content': 'Chego às 10h?'})

        assert response['statusCode'] == 201
        assert table.put_item.call_args.kwargs['Item']['sender_id'] == 'client-1'
        notify.assert_called_once_with('worker-1', 'Ana', 'job-1', 'Chego às 10h?')

    def test_stranger_cannot_send(self, api_event):
        """Outsiders cannot post in a job chat."""
        response, table, _ = self.send(api_event, 'intruder', {'content': 'oi'})
        assert response['statusCode'] == 403
        table.put_item.assert_not_called()

    def test_empty_message(self, api_event):
        """Blank messages are refused."""
        response, _, _ = self.send(api_event, 'worker-1', {'content': '  '})
        assert response['statusCode'] == 400
