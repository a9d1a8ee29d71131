"""
Finish Job Handler.
POST /worker/jobs/{jobId}/finish
Body: { "evidencePhoto": "data:image/jpeg;base64,...", "auditAnswers": {"q1": "...", "q2": "..."} }

Moves the job to waiting_verification. When the fraud heuristics fire the
worker must answer the audit questions first; the answered job is marked
audited, earns no points and both parties are flagged for the red list.
"""
import boto3
from botocore.exceptions import ClientError
from shared.config import config
from shared.logging import logger, log_event
from shared.models import JobStatus
from shared.auth import get_user_sub
from shared.jobs import get_job, can_transition
from shared.fraud_detection import FraudDetector
from shared.profiles import get_profile, display_name, set_suspicious
from shared.notifications import notify_client_job_finished
from shared.s3_utils import upload_media
from shared.utils import format_response, parse_body, get_path_param, to_iso, utc_now, is_conflict

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)


def handler(event, context):
    log_event(event, context)

    try:
        job_id = get_path_param(event, 'jobId')
        worker_id = get_user_sub(event)
        if not worker_id:
            return format_response(401, {'error': 'Unauthorized'})

        body = parse_body(event)
        evidence = (body.get('evidencePhoto') or '').strip()
        answers = body.get('auditAnswers')

        job = get_job(job_id) if job_id else None
        if not job:
            return format_response(404, {'error': 'Job not found'})

        if job.get('worker_id') != worker_id:
            return format_response(403, {'error': 'Not authorized for this job'})

        if not can_transition(job.get('status'), JobStatus.WAITING_VERIFICATION):
            return format_response(409, {'error': f"Job is {job.get('status')}, cannot be finished"})

        if not evidence:
            return format_response(400, {'error': 'Por favor, adicione uma foto do serviço realizado.'})

        now = utc_now()
        fraud_result = FraudDetector.evaluate(job, now)
        audited = fraud_result['requires_audit']

        answers = FraudDetector.clean_answers(answers)
        if audited and not answers:
            # Nothing is written until the worker answers
            return format_response(409, FraudDetector.get_audit_prompt(fraud_result))

        try:
            evidence_key = upload_media(evidence, f"evidence/{job_id}")
        except ValueError as e:
            return format_response(400, {'error': str(e)})

        update_expr = 'SET #status = :waiting, worker_evidence_url = :evidence, finished_at = :ts'
        values = {
            ':waiting': JobStatus.WAITING_VERIFICATION,
            ':in_progress': JobStatus.IN_PROGRESS,
            ':evidence': evidence_key,
            ':ts': to_iso(now),
            ':wid': worker_id
        }
        if audited:
            update_expr += ', is_audited = :audited, points_awarded = :zero, audit_data = :audit'
            values[':audited'] = True
            values[':zero'] = 0
            values[':audit'] = {
                'worker_q1': answers['q1'],
                'worker_q2': answers['q2'],
                'reasons': fraud_result['reasons']
            }

        jobs_table = dynamodb.Table(config.JOBS_TABLE)
        try:
            jobs_table.update_item(
                Key={'id': job_id},
                UpdateExpression=update_expr,
                ConditionExpression='#status = :in_progress AND worker_id = :wid',
                ExpressionAttributeNames={'#status': 'status'},
                ExpressionAttributeValues=values
            )
        except ClientError as e:
            if is_conflict(e):
                return format_response(409, {'error': 'Job changed while finishing, reload and try again'})
            raise

        if audited:
            set_suspicious([job['client_id'], worker_id], True)
            logger.warning(f"Job {job_id} sent to red list: {fraud_result['reasons']}")

        worker = get_profile(worker_id)
        notify_client_job_finished(job['client_id'], display_name(worker, 'Profissional'), job.get('title', ''), job_id)

        return format_response(200, {
            'message': 'Serviço enviado para verificação!',
            'jobId': job_id,
            'status': JobStatus.WAITING_VERIFICATION,
            'isAudited': audited
        })

    except Exception as e:
        logger.error(f"Error finishing job: {e}")
        return format_response(500, {'error': str(e)})
