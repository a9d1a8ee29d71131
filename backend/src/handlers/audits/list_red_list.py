"""
Red List Handler.
GET /admin/audits
Audited jobs still waiting for an admin verdict, newest first.
"""
from shared.logging import logger, log_event
from shared.auth import is_admin
from shared.jobs import list_red_list
from shared.profiles import get_profile, display_name
from shared.s3_utils import generate_presigned_url
from shared.utils import format_response


def handler(event, context):
    log_event(event, context)

    try:
        if not is_admin(event):
            return format_response(403, {'error': 'Admin access required'})

        jobs = list_red_list()
        jobs.sort(key=lambda j: j.get('finished_at') or j.get('created_at', ''), reverse=True)

        names = {}
        entries = []
        for job in jobs:
            for user_id in (job.get('client_id'), job.get('worker_id')):
                if user_id and user_id not in names:
                    names[user_id] = display_name(get_profile(user_id))

            entry = dict(job)
            entry['client_name'] = names.get(job.get('client_id'), 'Usuário')
            entry['worker_name'] = names.get(job.get('worker_id'), 'Usuário')
            if entry.get('worker_evidence_url'):
                entry['worker_evidence_url'] = generate_presigned_url(entry['worker_evidence_url'])
            if entry.get('client_evidence_url'):
                entry['client_evidence_url'] = generate_presigned_url(entry['client_evidence_url'])
            entries.append(entry)

        return format_response(200, {'jobs': entries, 'total': len(entries)})

    except Exception as e:
        logger.error(f"Error listing red list: {e}")
        return format_response(500, {'error': str(e)})
