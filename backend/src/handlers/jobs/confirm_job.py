"""
Confirm And Rate Handler.
POST /client/jobs/{jobId}/confirm
Body: {
    "rating": 5, "comment": "...", "durationHours": 2.5,
    "evidencePhoto": "data:image/jpeg;base64,..." (optional),
    "auditAnswers": {"q1": "...", "q2": "..."} (audited jobs only)
}

Completes the job and finalizes its points. points_awarded is written here
once and only an admin verdict changes it afterwards.
"""
import boto3
from botocore.exceptions import ClientError
from shared.config import config
from shared.logging import logger, log_event
from shared.models import JobStatus, PointsRules, AUDIT_QUESTIONS
from shared.auth import get_user_sub, is_banned
from shared.jobs import get_job, get_worker_jobs, can_transition
from shared.fraud_detection import FraudDetector
from shared.gamification import resolve_level, update_rating
from shared.points import calculate_worker_points, points_awarded_on, completed_on, increment_points
from shared.profiles import get_profile, display_name
from shared.notifications import notify_worker_job_completed
from shared.s3_utils import upload_media, delete_media
from shared.utils import (
    format_response, parse_body, parse_int, get_path_param, to_decimal, to_iso,
    utc_now, local_day, is_conflict,
)

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)


def handler(event, context):
    log_event(event, context)

    try:
        job_id = get_path_param(event, 'jobId')
        client_id = get_user_sub(event)
        if not client_id:
            return format_response(401, {'error': 'Unauthorized'})

        body = parse_body(event)

        try:
            rating = parse_int(body.get('rating'))
        except ValueError:
            return format_response(400, {'error': 'Avaliação deve ser de 1 a 5 estrelas.'})
        if rating < 1 or rating > 5:
            return format_response(400, {'error': 'Avaliação deve ser de 1 a 5 estrelas.'})

        comment = (body.get('comment') or '').strip()
        if not comment:
            return format_response(400, {'error': 'Escreva um comentário sobre o serviço.'})

        try:
            duration_hours = to_decimal(body.get('durationHours'))
        except ArithmeticError:
            duration_hours = None
        if duration_hours is None or duration_hours <= 0:
            return format_response(400, {'error': 'Informe o tempo de duração.'})

        job = get_job(job_id) if job_id else None
        if not job:
            return format_response(404, {'error': 'Job not found'})

        if job.get('client_id') != client_id:
            return format_response(403, {'error': 'Not authorized for this job'})

        if not can_transition(job.get('status'), JobStatus.COMPLETED):
            return format_response(409, {'error': f"Job is {job.get('status')}, cannot be confirmed"})

        audited = bool(job.get('is_audited'))
        answers = FraudDetector.clean_answers(body.get('auditAnswers'))
        if audited and not answers:
            return format_response(409, {
                'auditRequired': True,
                'questions': AUDIT_QUESTIONS,
                'reasons': (job.get('audit_data') or {}).get('reasons', [])
            })

        worker_id = job['worker_id']
        now = utc_now()

        if audited:
            worker_points = 0
            client_points = 0
        else:
            today = local_day(now)
            worker_jobs = get_worker_jobs(worker_id)
            points_today = points_awarded_on(worker_jobs, today, exclude_job_id=job_id)
            same_pair_today = sum(
                1 for j in worker_jobs
                if j.get('id') != job_id and j.get('client_id') == client_id and completed_on(j, today)
            )
            worker_points = calculate_worker_points(job.get('estimated_hours'), points_today, same_pair_today)
            client_points = PointsRules.CLIENT_FIXED

        client_evidence = None
        if body.get('evidencePhoto'):
            try:
                client_evidence = upload_media(body['evidencePhoto'], f"evidence/{job_id}")
            except ValueError as e:
                return format_response(400, {'error': str(e)})

        update_expr = (
            'SET #status = :completed, rating = :rating, #comment = :comment, '
            'duration_hours = :duration, completed_at = :ts'
        )
        values = {
            ':completed': JobStatus.COMPLETED,
            ':waiting': JobStatus.WAITING_VERIFICATION,
            ':rating': rating,
            ':comment': comment,
            ':duration': duration_hours,
            ':ts': to_iso(now),
            ':cid': client_id
        }
        # Audited jobs keep the points set at audit time or by the admin verdict
        if not audited:
            update_expr += ', points_awarded = :points'
            values[':points'] = worker_points
        if client_evidence:
            update_expr += ', client_evidence_url = :client_evidence'
            values[':client_evidence'] = client_evidence
        if audited:
            update_expr += ', audit_data.client_q1 = :cq1, audit_data.client_q2 = :cq2'
            values[':cq1'] = answers['q1']
            values[':cq2'] = answers['q2']
        # Worker evidence is not kept once the client has seen it
        update_expr += ' REMOVE worker_evidence_url'

        jobs_table = dynamodb.Table(config.JOBS_TABLE)
        try:
            jobs_table.update_item(
                Key={'id': job_id},
                UpdateExpression=update_expr,
                ConditionExpression='#status = :waiting AND client_id = :cid',
                ExpressionAttributeNames={'#status': 'status', '#comment': 'comment'},
                ExpressionAttributeValues=values
            )
        except ClientError as e:
            if is_conflict(e):
                return format_response(409, {'error': 'Job changed while confirming, reload and try again'})
            raise

        if job.get('worker_evidence_url'):
            delete_media(job['worker_evidence_url'])

        worker_balance = increment_points(worker_id, worker_points) if worker_points else None
        if client_points:
            increment_points(client_id, client_points)

        update_worker_stats(worker_id, rating, worker_balance)

        client = get_profile(client_id)
        notify_worker_job_completed(worker_id, display_name(client, 'Cliente'), job.get('title', ''), rating)

        logger.info(f"Job {job_id} completed: worker +{worker_points}, client +{client_points}")

        return format_response(200, {
            'message': 'Avaliação enviada! Pontos creditados automaticamente.',
            'jobId': job_id,
            'workerPoints': worker_points,
            'clientPoints': client_points,
            'isAudited': audited
        })

    except Exception as e:
        logger.error(f"Error confirming job: {e}")
        return format_response(500, {'error': str(e)})


def update_worker_stats(worker_id: str, rating: int, balance: int = None):
    """
    Fold the new rating into the worker's average and recompute the level.

    A punished worker stays at bronze while banned or until an appeal or unban
    restores level_before_ban, so the recomputed level goes there instead.
    """
    worker = get_profile(worker_id) or {}
    completed_jobs = int(worker.get('completed_jobs', 0) or 0)
    new_rating = update_rating(worker.get('rating', 0), completed_jobs, rating)
    held = is_banned(worker) or bool(worker.get('level_before_ban'))

    stats = {
        **worker,
        'rating': new_rating,
        'completed_jobs': completed_jobs + 1,
        'points': balance if balance is not None else worker.get('points', 0)
    }
    if held:
        stats['level'] = worker.get('level_before_ban') or worker.get('level')
    new_level = resolve_level(stats)
    level_field = 'level_before_ban' if held else 'level'

    profiles_table = dynamodb.Table(config.PROFILES_TABLE)
    profiles_table.update_item(
        Key={'id': worker_id},
        UpdateExpression='SET rating = :rating, completed_jobs = :jobs, #lvl = :level',
        ExpressionAttributeNames={'#lvl': level_field},
        ExpressionAttributeValues={
            ':rating': to_decimal(new_rating),
            ':jobs': completed_jobs + 1,
            ':level': new_level
        }
    )

    if worker.get(level_field) != new_level:
        logger.info(f"Worker {worker_id} {level_field} changed: {worker.get(level_field)} -> {new_level}")
