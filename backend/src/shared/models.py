"""
Data models and status constants for the marketplace.
Based on the job lifecycle: Pending → InProgress → WaitingVerification → Completed, or → Cancelled
"""


class JobStatus:
    """Job lifecycle statuses."""
    PENDING = 'pending'
    IN_PROGRESS = 'in_progress'
    WAITING_VERIFICATION = 'waiting_verification'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


# Allowed forward moves; completed and cancelled are terminal
JOB_TRANSITIONS = {
    JobStatus.PENDING: {JobStatus.IN_PROGRESS, JobStatus.CANCELLED},
    JobStatus.IN_PROGRESS: {JobStatus.WAITING_VERIFICATION, JobStatus.CANCELLED},
    JobStatus.WAITING_VERIFICATION: {JobStatus.COMPLETED},
    JobStatus.COMPLETED: set(),
    JobStatus.CANCELLED: set(),
}

# A worker holding a job in one of these cannot accept another
ACTIVE_JOB_STATUSES = (JobStatus.IN_PROGRESS, JobStatus.WAITING_VERIFICATION)


class AdminVerdict:
    """Admin decision on a red-listed job."""
    ABSOLVED = 'absolved'
    PUNISHED = 'punished'


class AppealStatus:
    """Punishment appeal statuses."""
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'


class BanType:
    """Ban durations available to moderators."""
    SEVEN_DAYS = '7days'
    INDEFINITE = 'indefinite'


class Role:
    """Account roles."""
    CLIENT = 'client'
    WORKER = 'worker'
    PARTNER = 'partner'
    ADMIN = 'admin'

    ALL = ('client', 'worker', 'partner', 'admin')


class WorkerLevel:
    """Worker reputation tiers."""
    BRONZE = 'bronze'
    SILVER = 'silver'
    GOLD = 'gold'
    DIAMOND = 'diamond'


class NotificationType:
    """Notification categories shown in the bell."""
    INFO = 'info'
    JOB_UPDATE = 'job_update'
    CHAT = 'chat'
    PROMO = 'promo'
    ADMIN_ACTION = 'admin_action'
    BAN = 'ban'


class PointsRules:
    """Loyalty points constants."""
    REGISTER = 50
    CLIENT_FIXED = 10
    WORKER_PER_HOUR = 10
    WORKER_DAILY_CAP = 80


# Category picked when none of the listed ones fits
OTHER_CATEGORY = 'Outros'
OTHER_CATEGORY_ENTRY = {'id': 'outros', 'name': OTHER_CATEGORY, 'icon': 'HelpCircle'}
SUGGESTION_PREFIX = 'Sugestão: '

# Free-text questions both parties answer when a job is audited
AUDIT_QUESTIONS = {
    'q1': 'Quais materiais foram usados no serviço?',
    'q2': 'Qual foi o resultado final do serviço?',
}

# Estimated durations a client can pick when posting a job
ALLOWED_ESTIMATED_HOURS = (1, 2, 4, 8)

# Photos a worker can keep in the public portfolio
MAX_PORTFOLIO_ITEMS = 12
