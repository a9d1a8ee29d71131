"""
Post Job Handler.
POST /client/jobs
Creates a pending job and notifies the workers who can take it.
"""
import uuid
import boto3
from botocore.exceptions import ClientError
from shared.config import config
from shared.logging import logger, log_event
from shared.models import JobStatus, Role, ALLOWED_ESTIMATED_HOURS, OTHER_CATEGORY
from shared.auth import get_user_sub, is_banned
from shared.jobs import build_category_string, save_category_suggestion
from shared.profiles import get_profile, display_name, find_eligible_workers
from shared.notifications import notify_workers_new_job, notify_worker_direct_hire
from shared.utils import format_response, parse_body, parse_int, to_decimal, to_iso, utc_now, is_conflict

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)


def handler(event, context):
    """
    Body: {
        "title": "...", "description": "...", "price": 150.0,
        "estimatedHours": 2,
        "categories": ["Elétrica", "Outros"], "allCategories": false,
        "otherCategory": "Instalação de antena",
        "workerId": "..."  (optional, direct hire)
    }
    """
    log_event(event, context)

    try:
        client_id = get_user_sub(event)
        if not client_id:
            return format_response(401, {'error': 'Unauthorized'})

        body = parse_body(event)
        client = get_profile(client_id)
        if not client:
            return format_response(404, {'error': 'Profile not found'})

        if is_banned(client):
            return format_response(403, {
                'error': 'Sua conta está suspensa e não pode publicar pedidos.',
                'punishmentUntil': client.get('punishment_until')
            })

        worker_id = body.get('workerId')
        description = (body.get('description') or '').strip()
        worker = None

        if worker_id:
            worker = get_profile(worker_id)
            if not worker or Role.WORKER not in (worker.get('allowed_roles') or []):
                return format_response(404, {'error': 'Worker not found'})
            if not description:
                return format_response(400, {'error': 'Descreva o serviço.'})
            title = (body.get('title') or '').strip() or f"Serviço Direto: {display_name(worker)}"
            category_name = ''
        else:
            title = (body.get('title') or '').strip()
            if not title:
                return format_response(400, {'error': 'Informe o título do pedido.'})
            try:
                category_name = build_category_string(
                    body.get('categories'),
                    all_categories=body.get('allCategories', False),
                    other_text=body.get('otherCategory', '')
                )
            except ValueError as e:
                return format_response(400, {'error': str(e)})

        try:
            estimated_hours = parse_int(body.get('estimatedHours', 1))
        except ValueError:
            return format_response(400, {'error': 'Invalid estimatedHours'})
        if estimated_hours not in ALLOWED_ESTIMATED_HOURS:
            return format_response(400, {'error': f'estimatedHours must be one of {list(ALLOWED_ESTIMATED_HOURS)}'})

        try:
            price = to_decimal(body.get('price'))
        except ArithmeticError:
            return format_response(400, {'error': 'Invalid price'})
        if price is not None and price < 0:
            return format_response(400, {'error': 'Invalid price'})

        job_id = str(uuid.uuid4())
        now = utc_now()
        job = {
            'id': job_id,
            'title': title,
            'description': description,
            'client_id': client_id,
            'status': JobStatus.PENDING,
            'category_name': category_name,
            'price': price,
            'estimated_hours': estimated_hours,
            'city': client.get('city'),
            'state': client.get('state'),
            'points_awarded': 0,
            'is_audited': False,
            'created_at': to_iso(now)
        }
        if worker_id:
            job['worker_id'] = worker_id

        jobs_table = dynamodb.Table(config.JOBS_TABLE)
        try:
            jobs_table.put_item(Item=job, ConditionExpression='attribute_not_exists(id)')
        except ClientError as e:
            if is_conflict(e):
                return format_response(409, {'error': 'Job already exists'})
            raise

        suggestion = (body.get('otherCategory') or '').strip()
        if not worker_id and suggestion and OTHER_CATEGORY in (body.get('categories') or []):
            save_category_suggestion(client_id, suggestion, to_iso(now))

        client_name = display_name(client, 'Cliente')
        if worker:
            notify_worker_direct_hire(worker_id, client_name, description)
            notified = 1
        else:
            workers = find_eligible_workers(job['city'], category_name, exclude_id=client_id)
            notified = notify_workers_new_job(workers, job_id, title, client_name, job['city'])

        logger.info(f"Job {job_id} posted by {client_id}, {notified} workers notified")

        return format_response(201, {
            'message': 'Pedido publicado com sucesso!',
            'jobId': job_id,
            'categoryName': category_name,
            'notifiedWorkers': notified
        })

    except Exception as e:
        logger.error(f"Error posting job: {e}")
        return format_response(500, {'error': str(e)})
