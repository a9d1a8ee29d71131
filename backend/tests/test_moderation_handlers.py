"""
Tests for red-list resolution, appeals and admin tools.
"""
import json
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError

from shared.models import AdminVerdict, AppealStatus, BanType, JobStatus, Role, WorkerLevel


def conditional_failure(operation='UpdateItem'):
    return ClientError({'Error': {'Code': 'ConditionalCheckFailedException', 'Message': 'failed'}}, operation)


def audited_job(**overrides):
    job = {
        'id': 'job-1',
        'title': 'Pintar parede',
        'client_id': 'client-1',
        'worker_id': 'worker-1',
        'status': JobStatus.COMPLETED,
        'estimated_hours': 4,
        'is_audited': True,
        'points_awarded': 0,
    }
    job.update(overrides)
    return job


class TestResolveAudit:

    def call(self, api_event, job, body, groups='admin', table=None):
        from handlers.audits import resolve_audit
        table = table or MagicMock()
        mocks = {}
        with patch.object(resolve_audit, 'get_job', return_value=job), \
                patch.object(resolve_audit, 'increment_points') as mocks['increment'], \
                patch.object(resolve_audit, 'set_suspicious') as mocks['suspicious'], \
                patch.object(resolve_audit, 'ban_profile', return_value=None) as mocks['ban'], \
                patch.object(resolve_audit, 'notify_user_absolved') as mocks['absolved'], \
                patch.object(resolve_audit, 'notify_user_banned') as mocks['banned'], \
                patch.object(resolve_audit, 'dynamodb') as mock_dynamodb:
            mock_dynamodb.Table.return_value = table
            event = api_event(sub='admin-1', groups=groups, path={'jobId': 'job-1'}, body=body)
            response = resolve_audit.handler(event, None)
        return response, table, mocks

    def test_absolve_pays_retroactively(self, api_event):
        """Absolving pays both parties and clears their flags."""
        response, table, mocks = self.call(api_event, audited_job(), {'verdict': AdminVerdict.ABSOLVED})

        assert response['statusCode'] == 200
        assert json.loads(response['body'])['pointsAwarded'] == 40
        values = table.update_item.call_args.kwargs['ExpressionAttributeValues']
        assert values[':verdict'] == AdminVerdict.ABSOLVED
        assert values[':points'] == 40
        mocks['suspicious'].assert_called_once_with(['client-1', 'worker-1'], False)
        mocks['increment'].assert_any_call('worker-1', 40)
        mocks['increment'].assert_any_call('client-1', 10)
        mocks['ban'].assert_not_called()

    def test_absolve_award_capped(self, api_event):
        """The retroactive award never exceeds the daily cap."""
        response, _, _ = self.call(api_event, audited_job(estimated_hours=10), {'verdict': AdminVerdict.ABSOLVED})
        assert json.loads(response['body'])['pointsAwarded'] == 80

    def test_punish_bans_both(self, api_event):
        """Punishing bans both parties, resets the worker and pays nothing."""
        response, table, mocks = self.call(
            api_event, audited_job(), {'verdict': AdminVerdict.PUNISHED, 'banType': BanType.INDEFINITE}
        )

        assert response['statusCode'] == 200
        assert table.update_item.call_args.kwargs['ExpressionAttributeValues'][':points'] == 0
        mocks['ban'].assert_any_call('worker-1', BanType.INDEFINITE, reset_level=True)
        mocks['ban'].assert_any_call('client-1', BanType.INDEFINITE)
        assert mocks['banned'].call_count == 2
        mocks['increment'].assert_not_called()

    def test_already_resolved(self, api_event):
        """A job with a verdict cannot be resolved again."""
        job = audited_job(admin_verdict=AdminVerdict.PUNISHED)
        response, table, _ = self.call(api_event, job, {'verdict': AdminVerdict.ABSOLVED})
        assert response['statusCode'] == 409
        table.update_item.assert_not_called()

    def test_concurrent_resolution(self, api_event):
        """Losing the verdict race pays nothing."""
        table = MagicMock()
        table.update_item.side_effect = conditional_failure()
        response, _, mocks = self.call(api_event, audited_job(), {'verdict': AdminVerdict.ABSOLVED}, table=table)

        assert response['statusCode'] == 409
        mocks['increment'].assert_not_called()

    def test_not_audited(self, api_event):
        """Jobs outside the red list cannot be resolved."""
        response, _, _ = self.call(api_event, audited_job(is_audited=False), {'verdict': AdminVerdict.ABSOLVED})
        assert response['statusCode'] == 409

    def test_admin_only(self, api_event):
        """Non-admins get 403."""
        response, _, _ = self.call(api_event, audited_job(), {'verdict': AdminVerdict.ABSOLVED}, groups='worker')
        assert response['statusCode'] == 403


class TestAppeals:

    def create(self, api_event, profile, job, table=None):
        from handlers.appeals import create_appeal
        table = table or MagicMock()
        with patch.object(create_appeal, 'get_profile', return_value=profile), \
                patch.object(create_appeal, 'get_job', return_value=job), \
                patch.object(create_appeal, 'dynamodb') as mock_dynamodb:
            mock_dynamodb.Table.return_value = table
            body = {'jobId': 'job-1', 'appealText': 'Foi um serviço real'}
            response = create_appeal.handler(api_event(sub='worker-1', body=body), None)
        return response, table

    def test_banned_user_files_appeal(self, api_event):
        """A banned user files one appeal keyed by user and job."""
        response, table = self.create(api_event, {'active': False, 'punishment_until': None}, audited_job())

        assert response['statusCode'] == 201
        kwargs = table.put_item.call_args.kwargs
        assert kwargs['Item']['id'] == 'worker-1#job-1'
        assert kwargs['Item']['status'] == AppealStatus.PENDING
        assert kwargs['ConditionExpression'] == 'attribute_not_exists(id)'

    def test_one_appeal_per_job(self, api_event):
        """A second appeal for the same job is a conflict."""
        table = MagicMock()
        table.put_item.side_effect = conditional_failure('PutItem')
        response, _ = self.create(api_event, {'active': False}, audited_job(), table=table)
        assert response['statusCode'] == 409

    def test_active_user_cannot_appeal(self, api_event):
        """Users who are not banned have nothing to appeal."""
        response, table = self.create(api_event, {'active': True}, audited_job())
        assert response['statusCode'] == 403
        table.put_item.assert_not_called()

    def resolve(self, api_event, decision, table):
        from handlers.appeals import resolve_appeal
        with patch.object(resolve_appeal, 'unban_profile') as unban, \
                patch.object(resolve_appeal, 'notify_appeal_resolved') as notify, \
                patch.object(resolve_appeal, 'dynamodb') as mock_dynamodb:
            mock_dynamodb.Table.return_value = table
            event = api_event(sub='admin-1', groups='admin', path={'appealId': 'worker-1#job-1'}, body={'decision': decision})
            response = resolve_appeal.handler(event, None)
        return response, unban, notify

    def appeals_table(self):
        table = MagicMock()
        table.get_item.return_value = {'Item': {'id': 'worker-1#job-1', 'user_id': 'worker-1', 'status': AppealStatus.PENDING}}
        return table

    def test_approve_reactivates(self, api_event):
        """Approving unbans the user and tells them."""
        table = self.appeals_table()
        response, unban, notify = self.resolve(api_event, AppealStatus.APPROVED, table)

        assert response['statusCode'] == 200
        assert table.update_item.call_args.kwargs['ConditionExpression'] == '#status = :pending'
        unban.assert_called_once_with('worker-1')
        notify.assert_called_once_with('worker-1', True)

    def test_reject_keeps_ban(self, api_event):
        """Rejecting keeps the ban and tells the user."""
        response, unban, notify = self.resolve(api_event, AppealStatus.REJECTED, self.appeals_table())
        assert response['statusCode'] == 200
        unban.assert_not_called()
        notify.assert_called_once_with('worker-1', False)

    def test_resolved_once(self, api_event):
        """An appeal resolved elsewhere is a conflict."""
        table = self.appeals_table()
        table.update_item.side_effect = conditional_failure()
        response, unban, notify = self.resolve(api_event, AppealStatus.APPROVED, table)

        assert response['statusCode'] == 409
        unban.assert_not_called()
        notify.assert_not_called()


class TestAdminTools:

    def test_update_user_pins_level(self, api_event):
        """An admin-set level is pinned and the user is notified."""
        from handlers.admin import update_user
        table = MagicMock()
        with patch.object(update_user, 'get_profile', return_value={'id': 'worker-1', 'points': 10}), \
                patch.object(update_user, 'notify_user_profile_updated') as notify, \
                patch.object(update_user, 'dynamodb') as mock_dynamodb:
            mock_dynamodb.Table.return_value = table
            body = {'level': WorkerLevel.GOLD, 'points': 500}
            event = api_event(sub='admin-1', groups='admin', path={'userId': 'worker-1'}, body=body, method='PUT')
            response = update_user.handler(event, None)

        assert response['statusCode'] == 200
        values = table.update_item.call_args.kwargs['ExpressionAttributeValues']
        assert values[':level'] == WorkerLevel.GOLD
        assert values[':override'] is True
        assert values[':points'] == 500
        notify.assert_called_once_with('worker-1', ['pontos', 'nível'])

    def test_update_user_rejects_unknown_role(self, api_event):
        """Roles outside the known set are refused."""
        from handlers.admin import update_user
        with patch.object(update_user, 'get_profile', return_value={'id': 'u1'}), \
                patch.object(update_user, 'dynamodb'):
            event = api_event(sub='admin-1', groups='admin', path={'userId': 'u1'}, body={'allowedRoles': ['root']})
            response = update_user.handler(event, None)
        assert response['statusCode'] == 400

    def test_broadcast_recipients(self):
        """Broadcasts reach every profile holding a selected role."""
        from handlers.admin.broadcast import select_recipients
        profiles = [
            {'id': 'a', 'allowed_roles': [Role.CLIENT]},
            {'id': 'b', 'allowed_roles': [Role.WORKER, Role.CLIENT]},
            {'id': 'c', 'allowed_roles': [Role.PARTNER]},
        ]
        assert [p['id'] for p in select_recipients(profiles, [Role.WORKER])] == ['b']
        assert [p['id'] for p in select_recipients(profiles, [Role.CLIENT])] == ['a', 'b']

    def test_delete_job_removes_messages(self, api_event):
        """Deleting a job removes its chat and evidence."""
        from handlers.admin import delete_job
        table = MagicMock()
        job = audited_job(worker_evidence_url='media/evidence/job-1/x.jpg')
        with patch.object(delete_job, 'get_job', return_value=job), \
                patch.object(delete_job, 'query', return_value=[{'id': 'm1'}, {'id': 'm2'}]), \
                patch.object(delete_job, 'batch_delete_items', return_value=2) as batch_delete, \
                patch.object(delete_job, 'delete_media') as delete_media, \
                patch.object(delete_job, 'dynamodb') as mock_dynamodb:
            mock_dynamodb.Table.return_value = table
            event = api_event(sub='admin-1', groups='admin', path={'jobId': 'job-1'}, method='DELETE')
            response = delete_job.handler(event, None)

        assert response['statusCode'] == 200
        assert batch_delete.call_args.args[1] == [{'id': 'm1'}, {'id': 'm2'}]
        delete_media.assert_called_once_with('media/evidence/job-1/x.jpg')
        table.delete_item.assert_called_once_with(Key={'id': 'job-1'})
