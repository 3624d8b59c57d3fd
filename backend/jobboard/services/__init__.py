from jobboard.services.policy import Action, can_perform, authorize, resolve_view
from jobboard.services.mailer import Mailer, LogMailer, get_mailer
from jobboard.services.jobs import JobPage, parse_salary_range, split_skills
from jobboard.services.snapshot import SnapshotFile, export_snapshot, import_snapshot

__all__ = [
    "Action",
    "can_perform",
    "authorize",
    "resolve_view",
    "Mailer",
    "LogMailer",
    "get_mailer",
    "JobPage",
    "parse_salary_range",
    "split_skills",
    "SnapshotFile",
    "export_snapshot",
    "import_snapshot",
]
