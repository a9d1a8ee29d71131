"""
Fraud Detection Module.
Detects point farming between a client and a worker: jobs closed too fast,
repeat jobs for the same pair on one day, and pairs working on consecutive days.
Detection only surfaces the job for manual review, it never punishes.
"""
from datetime import datetime, timedelta
from typing import List, Optional

from .jobs import activity_day, get_pair_jobs
from .logging import logger
from .models import JobStatus, AUDIT_QUESTIONS
from .utils import local_day, parse_iso, utc_now

# Jobs of the pair that count as "worked together"
PERFORMED_STATUSES = (JobStatus.WAITING_VERIFICATION, JobStatus.COMPLETED)


class FraudDetector:
    """Detects suspicious client and worker interactions."""

    @staticmethod
    def check_job(job: dict, pair_jobs: List[dict], now: Optional[datetime] = None) -> dict:
        """
        Run all fraud checks on a job being finished.

        Args:
            job: The job row (needs accepted_at, estimated_hours, id)
            pair_jobs: Jobs the same client and worker did together
            now: Time of the finish, defaults to the current time

        Returns:
            dict: {
                'requires_audit': bool,
                'reasons': list of detected issues,
                'checks': per-heuristic results
            }
        """
        now = now or utc_now()
        reasons = []

        early = FraudDetector.check_early_completion(job, now)
        if early['detected']:
            reasons.append(
                f"Finished after {early['elapsed_hours']:.1f}h of an estimated {early['estimated_hours']}h"
            )

        same_day = FraudDetector.check_same_day_pair(job, pair_jobs, now)
        if same_day['detected']:
            reasons.append(f"Same client and worker have {same_day['count']} jobs today")

        consecutive = FraudDetector.check_consecutive_days(job, pair_jobs, now)
        if consecutive['detected']:
            reasons.append("Same client and worker also had a job yesterday")

        return {
            'requires_audit': bool(reasons),
            'reasons': reasons,
            'checks': {
                'early_completion': early,
                'same_day_pair': same_day,
                'consecutive_days': consecutive
            }
        }

    @staticmethod
    def check_early_completion(job: dict, now: datetime) -> dict:
        """
        Detect a job finished in less wall-clock time than estimated.

        Returns:
            dict: {'detected': bool, 'elapsed_hours': float, 'estimated_hours': float}
        """
        accepted_at = parse_iso(job.get('accepted_at'))
        estimated_hours = float(job.get('estimated_hours', 0) or 0)

        if accepted_at is None or estimated_hours <= 0:
            return {'detected': False, 'elapsed_hours': -1, 'estimated_hours': estimated_hours}

        elapsed = now - accepted_at
        return {
            'detected': elapsed < timedelta(hours=estimated_hours),
            'elapsed_hours': elapsed.total_seconds() / 3600,
            'estimated_hours': estimated_hours
        }

    @staticmethod
    def check_same_day_pair(job: dict, pair_jobs: List[dict], now: datetime) -> dict:
        """
        Detect more than one job for the pair today, this one included.

        Returns:
            dict: {'detected': bool, 'count': int}
        """
        today = local_day(now)
        others = [
            j for j in pair_jobs
            if j.get('id') != job.get('id')
            and j.get('status') in PERFORMED_STATUSES
            and activity_day(j) == today
        ]
        count = len(others) + 1
        return {'detected': count > 1, 'count': count}

    @staticmethod
    def check_consecutive_days(job: dict, pair_jobs: List[dict], now: datetime) -> dict:
        """
        Detect a job for the same pair on the previous calendar day.

        Returns:
            dict: {'detected': bool, 'matching_job': str or None}
        """
        yesterday = local_day(now) - timedelta(days=1)
        for j in pair_jobs:
            if j.get('id') == job.get('id') or j.get('status') not in PERFORMED_STATUSES:
                continue
            if activity_day(j) == yesterday:
                return {'detected': True, 'matching_job': j.get('id')}
        return {'detected': False, 'matching_job': None}

    @staticmethod
    def evaluate(job: dict, now: Optional[datetime] = None) -> dict:
        """Load the pair's history and run check_job on it."""
        pair_jobs = get_pair_jobs(job['client_id'], job['worker_id'])
        result = FraudDetector.check_job(job, pair_jobs, now)
        if result['requires_audit']:
            logger.warning(f"Job {job.get('id')} flagged for audit: {'; '.join(result['reasons'])}")
        return result

    @staticmethod
    def clean_answers(answers) -> Optional[dict]:
        """
        Audit answers as stripped text keyed by question, or None when the
        body is not an object or a question is left blank.
        """
        if not isinstance(answers, dict):
            return None
        cleaned = {}
        for question in AUDIT_QUESTIONS:
            value = answers.get(question)
            if isinstance(value, bool) or not isinstance(value, (str, int, float)):
                return None
            text = str(value).strip()
            if not text:
                return None
            cleaned[question] = text
        return cleaned

    @staticmethod
    def get_audit_prompt(fraud_result: dict) -> dict:
        """Payload asking the party to answer the audit questions."""
        return {
            'auditRequired': True,
            'questions': AUDIT_QUESTIONS,
            'reasons': fraud_result.get('reasons', [])
        }
