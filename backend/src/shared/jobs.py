"""
Job lifecycle helpers shared by the job handlers.
Holds the transition table checks, category string building and the
lookups the points and fraud rules run on.
"""
import uuid
from typing import List, Optional

import boto3
from boto3.dynamodb.conditions import Key, Attr

from .config import config
from .dynamo import query, scan
from .models import (
    JobStatus, JOB_TRANSITIONS, ACTIVE_JOB_STATUSES,
    OTHER_CATEGORY, SUGGESTION_PREFIX,
)
from .utils import parse_iso, local_day

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)


def can_transition(current: str, target: str) -> bool:
    return target in JOB_TRANSITIONS.get(current, set())


def build_category_string(
    selected: Optional[List[str]],
    all_categories: bool = False,
    other_text: str = ''
) -> str:
    """
    Build the category_name stored on a job.

    An empty string means the job is open to every worker. "Outros" is swapped
    for "Sugestão: <text>" when the client typed what they meant.

    Raises:
        ValueError: If a restricted job has no category at all
    """
    if all_categories:
        return ''

    categories = [c for c in (selected or []) if c]
    if OTHER_CATEGORY in categories:
        categories = [c for c in categories if c != OTHER_CATEGORY]
        suggestion = (other_text or '').strip()
        categories.append(f"{SUGGESTION_PREFIX}{suggestion}" if suggestion else OTHER_CATEGORY)

    if not categories:
        raise ValueError("Selecione pelo menos uma categoria.")
    return ', '.join(categories)


def split_categories(category_name: str) -> List[str]:
    """Inverse of build_category_string, dropping the suggestion prefix."""
    if not category_name:
        return []
    parts = []
    for part in category_name.split(','):
        part = part.strip()
        if part.startswith(SUGGESTION_PREFIX):
            part = part[len(SUGGESTION_PREFIX):].strip()
        if part:
            parts.append(part)
    return parts


def get_job(job_id: str) -> Optional[dict]:
    jobs_table = dynamodb.Table(config.JOBS_TABLE)
    return jobs_table.get_item(Key={'id': job_id}).get('Item')


def get_worker_jobs(worker_id: str) -> List[dict]:
    """All jobs bound to a worker, newest first."""
    return query(
        config.JOBS_TABLE,
        index_name='byWorker',
        key_condition=Key('worker_id').eq(worker_id),
        scan_forward=False,
        strict=True
    )


def get_client_jobs(client_id: str) -> List[dict]:
    """All jobs posted by a client, newest first."""
    return query(
        config.JOBS_TABLE,
        index_name='byClient',
        key_condition=Key('client_id').eq(client_id),
        scan_forward=False,
        strict=True
    )


def get_pair_jobs(client_id: str, worker_id: str) -> List[dict]:
    """Jobs the same client and worker have done together."""
    return [job for job in get_worker_jobs(worker_id) if job.get('client_id') == client_id]


def find_active_job(worker_id: str, exclude_job_id: str = None) -> Optional[dict]:
    """The worker's in-progress or awaiting-verification job, if any."""
    for job in get_worker_jobs(worker_id):
        if job.get('id') != exclude_job_id and job.get('status') in ACTIVE_JOB_STATUSES:
            return job
    return None


def list_open_jobs() -> List[dict]:
    """Pending jobs, through the status index."""
    return query(
        config.JOBS_TABLE,
        index_name='byStatus',
        key_condition=Key('status').eq(JobStatus.PENDING),
        strict=True
    )


def list_red_list() -> List[dict]:
    """Audited jobs still waiting for an admin verdict."""
    return scan(
        config.JOBS_TABLE,
        Attr('is_audited').eq(True) & Attr('admin_verdict').not_exists(),
        strict=True
    )


def is_visible_to_worker(job: dict, worker_id: str) -> bool:
    """Open jobs are visible to everyone; direct hires only to the hired worker."""
    return job.get('worker_id') in (None, worker_id)


def activity_day(job: dict):
    """Local calendar day a job was performed (completed, or else finished)."""
    moment = parse_iso(job.get('completed_at')) or parse_iso(job.get('finished_at'))
    return local_day(moment) if moment else None


def split_worker_jobs(jobs: List[dict]) -> dict:
    """Group a worker's jobs the way the dashboard tabs show them."""
    return {
        'active': [j for j in jobs if j.get('status') in ACTIVE_JOB_STATUSES],
        'history': [j for j in jobs if j.get('status') in (JobStatus.COMPLETED, JobStatus.CANCELLED)],
    }


def save_category_suggestion(user_id: str, suggestion: str, created_at: str) -> None:
    """Keep a free-text category so admins can promote it to a real one later."""
    dynamodb.Table(config.SUGGESTIONS_TABLE).put_item(Item={
        'id': str(uuid.uuid4()),
        'user_id': user_id,
        'suggestion': suggestion,
        'created_at': created_at
    })
